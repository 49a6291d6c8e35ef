import csv
import io
from typing import Callable, Dict, List, Sequence

import pytest
from openpyxl import Workbook


SALES_ROWS = [
    ["Region", "Month", "Units", "Revenue"],
    ["North", 1, 10, 100.0],
    ["South", 2, 20, 210.0],
    ["North", 3, 30, 290.0],
    ["East", 4, 40, 405.0],
    ["South", 5, 50, 500.0],
    ["East", 6, 60, 615.0],
]


def workbook_bytes(sheets: Dict[str, Sequence[Sequence[object]]]) -> bytes:
    book = Workbook()
    book.remove(book.active)
    for name, rows in sheets.items():
        sheet = book.create_sheet(title=name)
        for row in rows:
            sheet.append(list(row))
    buffer = io.BytesIO()
    book.save(buffer)
    return buffer.getvalue()


def csv_bytes(rows: Sequence[Sequence[object]]) -> bytes:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue().encode("utf-8")


@pytest.fixture()
def make_workbook() -> Callable[[Dict[str, Sequence[Sequence[object]]]], bytes]:
    return workbook_bytes


@pytest.fixture()
def sales_workbook() -> bytes:
    return workbook_bytes({"Sales": SALES_ROWS, "Notes": [["Note"], ["quarterly export"]]})


@pytest.fixture()
def sales_records() -> List[Dict[str, object]]:
    headers = SALES_ROWS[0]
    return [dict(zip(headers, row)) for row in SALES_ROWS[1:]]


@pytest.fixture()
def sales_configuration() -> Dict[str, object]:
    return {
        "selectedSheet": "Sales",
        "xAxis": {"column": "Units"},
        "yAxis": {"column": "Revenue"},
        "chartType": "scatter",
    }
