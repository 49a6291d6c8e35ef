from datetime import datetime

import pytest

from services.workers.graph import (
    AnalysisConfiguration,
    ChartFamily,
    process_data_for_chart,
    transform_for_chart,
)
from services.workers.graph.nodes.chart import apply_filters
from services.workers.graph.nodes.chart_config import generate_colors


def test_pie_totals_by_label_in_first_seen_order(sales_records):
    series = process_data_for_chart(sales_records, "Region", "Revenue", "pie")

    assert series.family is ChartFamily.PROPORTION
    assert series.to_dict() == {
        "labels": ["North", "South", "East"],
        "datasets": [{"data": [390.0, 710.0, 1020.0], "backgroundColor": generate_colors(3)}],
    }


def test_bar_keeps_one_label_per_row(sales_records):
    data = process_data_for_chart(sales_records, "Region", "Units", "bar").to_dict()
    assert data["labels"] == ["North", "South", "North", "East", "South", "East"]
    dataset = data["datasets"][0]
    assert dataset["label"] == "Units"
    assert dataset["data"] == [10.0, 20.0, 30.0, 40.0, 50.0, 60.0]
    assert dataset["borderWidth"] == 2


def test_scatter_drops_non_numeric_points():
    records = [{"x": 1, "y": 2}, {"x": "n/a", "y": 3}, {"x": "4", "y": 5.5}, {"x": 6}]
    series = process_data_for_chart(records, "x", "y", "scatter")

    assert series.family is ChartFamily.POINT
    assert series.labels is None
    assert series.datasets[0]["label"] == "y vs x"
    assert series.datasets[0]["data"] == [{"x": 1.0, "y": 2.0}, {"x": 4.0, "y": 5.5}]
    assert series.point_count == 2


def test_grouping_aggregates_numeric_axes(sales_records):
    series = process_data_for_chart(
        sales_records, "Month", "Revenue", "line", group_by="Region", aggregation="average"
    )
    assert list(series.labels) == [2.0, 3.5, 5.0]
    assert series.datasets[0]["data"] == [195.0, 355.0, 510.0]


def test_grouping_uses_group_value_for_text_axis():
    records = [
        {"team": "a", "name": "p", "score": 1},
        {"team": "a", "name": "q", "score": 3},
        {"team": "b", "name": "r", "score": 5},
    ]
    series = process_data_for_chart(records, "name", "score", "bar", group_by="team", aggregation="count")
    assert list(series.labels) == ["a", "b"]
    assert series.datasets[0]["data"] == [2.0, 1.0]


def test_grouping_by_the_x_column_is_ignored(sales_records):
    series = process_data_for_chart(sales_records, "Region", "Units", "bar", group_by="Region")
    assert len(series.labels) == len(sales_records)


def test_filters_match_scalars_and_lists(sales_records):
    assert len(apply_filters(sales_records, {"Region": "North"})) == 2
    assert len(apply_filters(sales_records, {"Region": ["North", "East"]})) == 4
    assert len(apply_filters(sales_records, {"Region": None})) == len(sales_records)
    assert apply_filters(sales_records, {"Region": "West"}) == []


def test_filters_never_equate_booleans_and_numbers():
    records = [{"flag": True, "v": 1}, {"flag": 1, "v": 2}, {"flag": 0, "v": 3}]
    assert apply_filters(records, {"flag": True}) == [records[0]]
    assert apply_filters(records, {"flag": 1}) == [records[1]]
    assert apply_filters(records, {"flag": [False, 0]}) == [records[2]]


def test_date_labels_are_iso_text():
    records = [{"day": datetime(2024, 3, 1), "sales": 4}]
    series = process_data_for_chart(records, "day", "sales", "area")
    assert series.labels == ("2024-03-01T00:00:00",)


def test_transform_for_chart_follows_configuration(sales_records):
    configuration = AnalysisConfiguration.from_dict(
        {
            "selectedSheet": "Sales",
            "xAxis": "Region",
            "yAxis": {"column": "Revenue", "label": "Revenue (USD)"},
            "chartType": "doughnut",
            "filters": {"Region": ["South", "East"]},
        }
    )
    series = transform_for_chart(sales_records, configuration)
    assert series.labels == ("South", "East")
    assert series.datasets[0]["data"] == [710.0, 1020.0]


def test_unknown_chart_type_is_rejected(sales_records):
    with pytest.raises(ValueError):
        process_data_for_chart(sales_records, "Region", "Units", "histogram")


def test_proportion_sums_duplicate_labels():
    records = [{"k": "A", "v": 1}, {"k": "A", "v": 2}, {"k": "B", "v": 3}]
    series = process_data_for_chart(records, "k", "v", "pie")
    assert series.labels == ("A", "B")
    assert series.datasets[0]["data"] == [3.0, 3.0]


def test_point_series_drops_text_y():
    series = process_data_for_chart([{"x": 1, "y": "x"}, {"x": 2, "y": 5}], "x", "y", "bubble")
    assert series.datasets[0]["data"] == [{"x": 2.0, "y": 5.0}]


def test_grouped_average():
    records = [{"g": "A", "v": 2}, {"g": "B", "v": 10}, {"g": "A", "v": 4}]
    series = process_data_for_chart(records, "label", "v", "bar", group_by="g", aggregation="average")
    assert series.labels == ("A", "B")
    assert series.datasets[0]["data"] == [3.0, 10.0]


def test_grouped_median_sorts_each_bucket():
    records = [{"g": "A", "v": 9}, {"g": "A", "v": 1}, {"g": "A", "v": 4}, {"g": "B", "v": 8}, {"g": "B", "v": 2}]
    series = process_data_for_chart(records, "label", "v", "bar", group_by="g", aggregation="median")
    assert series.labels == ("A", "B")
    assert series.datasets[0]["data"] == [4.0, 5.0]
