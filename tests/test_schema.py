import logging
from datetime import datetime

import pytest

from services.workers.graph import (
    ColumnType,
    SheetNotFoundError,
    build_typed_dataset,
    decode_workbook,
    infer_column_type,
    select_sheet,
)


@pytest.mark.parametrize(
    "values, expected",
    [
        ([1, 2, 3], ColumnType.INTEGER),
        ([1.5, 2, 3], ColumnType.FLOAT),
        (["1", "2", "x", "4", "5"], ColumnType.INTEGER),
        ([None, "", "   "], ColumnType.EMPTY),
        (["2024-01-01", "2024-02-03", "2024-03-05"], ColumnType.DATE),
        ([datetime(2024, 1, 1), datetime(2024, 2, 1)], ColumnType.DATE),
        (["yes", "no", "true"], ColumnType.BOOLEAN),
        ([True, False, None], ColumnType.BOOLEAN),
        (["apple", "pear", "plum"], ColumnType.STRING),
    ],
)
def test_infer_column_type(values, expected):
    assert infer_column_type(values) is expected


def test_headers_are_trimmed_deduplicated_and_blank_columns_dropped(caplog):
    rows = [
        ["Name", None, "Name", " Score ", 2024.0],
        ["a", "ignored", "b", 1, 5],
        ["c"],
    ]
    with caplog.at_level(logging.WARNING):
        dataset = build_typed_dataset("Sheet1", rows)

    assert dataset.headers == ["Name", "Name_2", "Score", "2024"]
    assert dataset.records[0] == {"Name": "a", "Name_2": "b", "Score": 1, "2024": 5}
    assert dataset.records[1] == {"Name": "c", "Name_2": None, "Score": None, "2024": None}
    assert dataset.column_types["Score"] is ColumnType.INTEGER
    assert "Dropping columns with blank headers" in caplog.text


def test_blank_headers_can_be_auto_named():
    dataset = build_typed_dataset("Sheet1", [["id", ""], [1, "x"]], auto_name_blank_headers=True)
    assert dataset.headers == ["id", "Column_2"]
    assert dataset.records == [{"id": 1, "Column_2": "x"}]


def test_schema_lists_every_header_with_its_type():
    dataset = build_typed_dataset("S", [["city", "pop"], ["Oslo", 700000], ["Bergen", 285000]])
    assert dataset.schema() == [{"name": "city", "type": "string"}, {"name": "pop", "type": "integer"}]
    assert dataset.row_count == 2
    assert dataset.column("city") == ["Oslo", "Bergen"]


def test_empty_sheet_has_no_columns():
    dataset = build_typed_dataset("Empty", [])
    assert dataset.headers == []
    assert dataset.records == []


def test_select_sheet_builds_dataset(sales_workbook):
    dataset = select_sheet(decode_workbook(sales_workbook), "Sales")
    assert dataset.sheet_name == "Sales"
    assert dataset.headers == ["Region", "Month", "Units", "Revenue"]
    assert dataset.row_count == 6
    assert dataset.column_types["Region"] is ColumnType.STRING
    assert dataset.column_types["Units"] is ColumnType.INTEGER


def test_select_sheet_rejects_unknown_sheet(sales_workbook):
    workbook = decode_workbook(sales_workbook)
    with pytest.raises(SheetNotFoundError) as excinfo:
        select_sheet(workbook, "Missing")
    assert excinfo.value.available == ["Sales", "Notes"]
    assert isinstance(excinfo.value, LookupError)


@pytest.mark.parametrize(
    "values",
    [
        ["March", "April", "May", "June", "July"],
        ["May", "June", "April", "August", "Summer"],
        ["Monday", "Tuesday", "Friday"],
    ],
)
def test_month_and_weekday_names_stay_text(values):
    assert infer_column_type(values) is ColumnType.STRING


def test_dates_mixed_with_text_need_the_date_ratio():
    values = ["2024-01-01", "2024-02-01", "2024-03-01", "2024-04-01", "pending"]
    assert infer_column_type(values) is ColumnType.DATE
    assert infer_column_type(values[:3] + ["pending", "n/a"]) is ColumnType.STRING


def test_written_dates_with_a_day_or_year_are_dates():
    assert infer_column_type(["March 3, 2024", "4 April 2024", "2024/05/06"]) is ColumnType.DATE
