# tests/test_pipeline_smoke.py
import io

import pytest

from services.common.pipeline import build_results_payload
from services.workers.graph import SheetNotFoundError, run_pipeline
from services.workers.graph.core.constants import PHASE_ORDER


CSV_SMALL = (
    b"sepal_length,sepal_width,species\n"
    b"5.1,3.5,setosa\n"
    b"4.9,3.0,setosa\n"
    b"6.3,3.3,virginica\n"
    b"5.8,2.7,virginica\n"
    b"6.0,2.2,versicolor\n"
)


def _assert_pipeline_result(res):
    # Phases present & ordered
    assert list(res.phases.keys()) == PHASE_ORDER

    # Metrics have core fields
    m = res.metrics
    for k in ["rows", "columns", "bytesRead", "chartType", "dataPoints", "insightCount"]:
        assert k in m, f"missing metric key: {k}"

    assert set(res.statistics) == {"xAxis", "yAxis", "correlation"}
    assert isinstance(res.insights, list)
    assert "datasets" in res.chart_data
    assert res.chart_config["data"] == res.chart_data


def test_pipeline_on_workbook(sales_workbook, sales_configuration):
    seen = []

    def _on_phase(phase, payload, index, total):
        seen.append((phase, index, total))

    res = run_pipeline("pytest-smoke-xlsx", sales_workbook, sales_configuration, on_phase=_on_phase)

    _assert_pipeline_result(res)
    assert seen == [(phase, index, len(PHASE_ORDER)) for index, phase in enumerate(PHASE_ORDER)]
    assert res.metrics["rows"] == 6
    assert res.metrics["columns"] == 4
    assert res.metrics["sourceFormat"] == "xlsx"
    assert res.metrics["chartFamily"] == "point"
    assert res.metrics["dataPoints"] == 6
    assert res.statistics["xAxis"]["count"] == 6
    assert res.statistics["xAxis"]["mean"] == pytest.approx(35.0)
    assert res.statistics["correlation"]["strength"] == "very strong"
    assert res.chart_config["options"]["scales"]["x"]["type"] == "linear"
    assert res.profile["sheetNames"] == ["Sales", "Notes"]
    assert res.schema[0] == {"name": "Region", "type": "string"}


def test_pipeline_on_csv_with_cleaning_and_transforms():
    configuration = {
        "selectedSheet": "Sheet1",
        "xAxis": "species",
        "yAxis": "sepal_length",
        "chartType": "pie",
        "cleaning": {"removeDuplicates": True},
        "transformations": [{"type": "normalize", "column": "sepal_width"}],
    }

    res = run_pipeline("pytest-smoke-csv", io.BytesIO(CSV_SMALL), configuration, filename="iris.csv")

    _assert_pipeline_result(res)
    assert res.phases["prepare"]["addedColumns"] == ["sepal_width_normalized"]
    assert res.metrics["columns"] == 4
    assert res.chart_data["labels"] == ["setosa", "virginica", "versicolor"]
    assert res.chart_data["datasets"][0]["data"] == pytest.approx([10.0, 12.1, 6.0])
    # a text x axis has no numeric statistics and no correlation
    assert res.statistics["xAxis"]["count"] == 0
    assert res.statistics["correlation"] is None


def test_pipeline_missing_sheet_raises(sales_workbook, sales_configuration):
    configuration = dict(sales_configuration, selectedSheet="Q4")
    with pytest.raises(SheetNotFoundError):
        run_pipeline("pytest-smoke-missing", sales_workbook, configuration)


def test_results_payload_is_json_ready(sales_workbook, sales_configuration):
    res = run_pipeline("pytest-smoke-payload", sales_workbook, sales_configuration)
    payload = build_results_payload("pytest-smoke-payload", res)

    assert payload["jobId"] == "pytest-smoke-payload"
    assert payload["summary"]["rows"] == 6
    assert [phase["name"] for phase in payload["phases"]] == PHASE_ORDER
    assert payload["phases"][0]["summary"] == {"rows": 6}
    assert payload["chartConfig"]["type"] == "scatter"
    assert payload["schema"] == res.schema
