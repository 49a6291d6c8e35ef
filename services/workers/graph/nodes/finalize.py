from __future__ import annotations
from typing import Any, Dict, List, MutableMapping, Optional
from ..core.types import AnalysisConfiguration, ChartSeries, ColumnStatistics, CorrelationResult, Insight, RawWorkbook, TypedDataset
from ..core.state import _with_phase, _emit_callback


def finalize_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    dataset: TypedDataset = state["dataset"]
    workbook: RawWorkbook = state["workbook"]
    configuration: AnalysisConfiguration = state["configuration"]
    series: ChartSeries = state["series"]
    phases: Dict[str, Dict[str, Any]] = state.get("phase_outputs", {})
    statistics: Dict[str, ColumnStatistics] = state.get("statistics", {})
    correlation: Optional[CorrelationResult] = state.get("correlation")
    insights: List[Insight] = state.get("findings", [])

    metrics = {
        "rows": dataset.row_count,
        "columns": len(dataset.headers),
        "bytesRead": workbook.bytes_read,
        "sourceFormat": workbook.source_format,
        "sheet": dataset.sheet_name,
        "chartType": configuration.chart_type.value,
        "chartFamily": series.family.value,
        "dataPoints": series.point_count,
        "insightCount": len(insights),
        "datasetCompleteness": phases.get("profile", {}).get("datasetCompleteness"),
    }

    summary = {
        "xAxis": statistics["xAxis"].to_dict() if "xAxis" in statistics else None,
        "yAxis": statistics["yAxis"].to_dict() if "yAxis" in statistics else None,
        "correlation": correlation.to_dict() if correlation else None,
    }

    payload = {"metrics": metrics, "statistics": summary}
    update = _with_phase(state, "finalize", payload, metrics=metrics)
    _emit_callback(state, "finalize", payload)
    return update
