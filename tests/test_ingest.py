import io

import pytest

from services.workers.graph import DecodeError, decode_workbook
from services.workers.graph.core.utils import to_number


def test_xlsx_keeps_sheet_order_and_raw_header(sales_workbook):
    workbook = decode_workbook(sales_workbook)

    assert workbook.sheet_names == ["Sales", "Notes"]
    assert workbook.source_format == "xlsx"
    assert workbook.bytes_read == len(sales_workbook)

    rows = workbook.rows("Sales")
    assert rows[0] == ["Region", "Month", "Units", "Revenue"]
    assert len(rows) == 7
    assert rows[1][0] == "North"
    assert to_number(rows[1][3]) == 100.0
    assert workbook.rows("Notes") == [["Note"], ["quarterly export"]]


def test_xlsx_accepts_binary_stream(make_workbook):
    body = make_workbook({"Data": [["a", "b"], [1, 2]]})
    workbook = decode_workbook(io.BytesIO(body))
    assert workbook.sheet_names == ["Data"]
    assert workbook.total_rows == 1
    assert workbook.total_columns == 2


def test_csv_strips_bom_and_reads_into_single_sheet():
    body = b"\xef\xbb\xbfname,value\nA,1\nB,2\n"
    workbook = decode_workbook(body, filename="upload.csv")

    assert workbook.sheet_names == ["Sheet1"]
    assert workbook.source_format == "csv"
    assert workbook.rows("Sheet1") == [["name", "value"], ["A", "1"], ["B", "2"]]
    assert workbook.bytes_read == len(body)


def test_tsv_detected_from_extension():
    workbook = decode_workbook(b"x\ty\n1\t2\n", filename="points.tsv")
    assert workbook.source_format == "tsv"
    assert workbook.rows("Sheet1") == [["x", "y"], ["1", "2"]]


def test_blank_rows_and_trailing_cells_are_dropped():
    workbook = decode_workbook(b"a,b,\n,\n1,2,\n\n3,,\n")
    assert workbook.rows("Sheet1") == [["a", "b"], ["1", "2"], ["3"]]


def test_empty_payload_is_rejected():
    with pytest.raises(DecodeError):
        decode_workbook(b"")


def test_invalid_utf8_is_a_decode_error():
    with pytest.raises(DecodeError):
        decode_workbook(b"a,b\n\xff\xfe,1\n", filename="broken.csv")


def test_corrupt_excel_is_a_decode_error():
    with pytest.raises(DecodeError) as excinfo:
        decode_workbook(b"not really a workbook", filename="report.xlsx")
    assert isinstance(excinfo.value, ValueError)


def test_truncated_zip_container_is_a_decode_error(sales_workbook):
    with pytest.raises(DecodeError):
        decode_workbook(sales_workbook[:64])


def test_xlsx_blank_rows_do_not_become_records(make_workbook):
    body = make_workbook({"Data": [["a", "b"], [1, 2], [None, None], [3, 4]]})
    rows = decode_workbook(body).rows("Data")
    assert len(rows) == 3
    assert [to_number(cell) for cell in rows[2]] == [3.0, 4.0]
