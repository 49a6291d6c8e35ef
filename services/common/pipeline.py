"""Helpers for turning analysis pipeline outputs into the stored job result."""
from __future__ import annotations

import json
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover - import only for static typing
    from services.workers.graph.core.types import PipelineResult
else:  # pragma: no cover - at runtime we treat PipelineResult as ``Any``
    PipelineResult = Any  # type: ignore[misc,assignment]


ANALYSIS_VERSION = "2024.05"


def _json_safe(data: Any) -> Any:
    return json.loads(json.dumps(data, default=str))


def summarize_phase_payload(payload: Mapping[str, Any]) -> Mapping[str, Any]:
    summary: Dict[str, Any] = {}
    metrics = payload.get("metrics")
    if isinstance(metrics, Mapping):
        summary["metrics"] = dict(metrics)
    completeness = payload.get("datasetCompleteness")
    if completeness is not None:
        summary["datasetCompleteness"] = completeness
    rows = payload.get("rows")
    if isinstance(rows, int):
        summary["rows"] = rows
    if summary:
        return summary
    keys = list(payload.keys())[:5]
    return {"fields": keys}


def build_results_payload(
    job_id: str,
    result: "PipelineResult",
    *,
    analysis_version: str = ANALYSIS_VERSION,
) -> Dict[str, Any]:
    metrics = dict(result.metrics)
    summary = {
        "rows": metrics.get("rows"),
        "columns": metrics.get("columns"),
        "bytesRead": metrics.get("bytesRead"),
        "datasetCompleteness": metrics.get("datasetCompleteness"),
    }
    summary = {key: value for key, value in summary.items() if value is not None}

    schema: List[Dict[str, Any]] = [dict(entry) for entry in result.schema]

    payload = {
        "jobId": job_id,
        "analysisVersion": analysis_version,
        "generatedAt": datetime.now(timezone.utc).isoformat(),
        "summary": summary,
        "schema": schema,
        "chartData": result.chart_data,
        "chartConfig": result.chart_config,
        "statistics": result.statistics,
        "insights": result.insights,
        "profile": result.profile,
        "metrics": metrics,
        "phases": [
            {"name": phase, "summary": summarize_phase_payload(body)}
            for phase, body in result.phases.items()
        ],
    }

    # dates in labels and previews are rendered as ISO text
    return _json_safe(payload)


__all__ = [
    "ANALYSIS_VERSION",
    "build_results_payload",
    "summarize_phase_payload",
]
