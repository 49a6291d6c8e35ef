from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional, Union

from langgraph.graph import END, StateGraph

from .nodes import (
    ingest_node, profile_node, prepare_node, chart_data_node, descriptive_stats_node,
    relationships_node, insights_node, chart_config_node, finalize_node,
)
from .core.constants import PHASE_ORDER
from .core.state import AnalysisState, PhaseCallback
from .core.types import AnalysisConfiguration, BinaryInput, PipelineResult
from .core.utils import _ensure_bytes

logger = logging.getLogger(__name__)

_NODES = {
    "ingest": ingest_node,
    "profile": profile_node,
    "prepare": prepare_node,
    "chart_data": chart_data_node,
    "descriptive_stats": descriptive_stats_node,
    "relationships": relationships_node,
    "insights": insights_node,
    "chart_config": chart_config_node,
    "finalize": finalize_node,
}


def build_graph():
    g = StateGraph(AnalysisState)
    for phase in PHASE_ORDER:
        g.add_node(phase, _NODES[phase])

    g.set_entry_point(PHASE_ORDER[0])
    for current, following in zip(PHASE_ORDER, PHASE_ORDER[1:]):
        g.add_edge(current, following)
    g.add_edge(PHASE_ORDER[-1], END)
    return g.compile()


def run_pipeline(
    job_id: str,
    body: BinaryInput,
    configuration: Union[AnalysisConfiguration, Mapping[str, Any]],
    *,
    filename: Optional[str] = None,
    on_phase: Optional[PhaseCallback] = None,
) -> PipelineResult:
    """Run every analysis phase for one dataset and collect the results.

    Decoding and sheet-selection failures propagate unchanged so the caller can
    record them; no partial result is returned.
    """
    if not isinstance(configuration, AnalysisConfiguration):
        configuration = AnalysisConfiguration.from_dict(configuration)

    initial_state: Dict[str, Any] = {
        "job_id": job_id,
        "body": _ensure_bytes(body),
        "filename": filename,
        "configuration": configuration,
        "phase_outputs": {},
    }
    if on_phase:
        initial_state["_callback"] = on_phase

    app = build_graph()
    final_state = app.invoke(initial_state)

    phases = final_state.get("phase_outputs", {}) or {}
    statistics = final_state.get("statistics", {}) or {}
    correlation = final_state.get("correlation")
    dataset = final_state["dataset"]

    logger.debug("Pipeline finished", extra={"job_id": job_id, "phases": list(phases)})
    return PipelineResult(
        phases=phases,
        metrics=final_state.get("metrics", {}) or {},
        chart_data=final_state["series"].to_dict(),
        chart_config=final_state.get("chart_spec", {}) or {},
        statistics={
            "xAxis": statistics["xAxis"].to_dict() if "xAxis" in statistics else None,
            "yAxis": statistics["yAxis"].to_dict() if "yAxis" in statistics else None,
            "correlation": correlation.to_dict() if correlation is not None else None,
        },
        insights=[insight.to_dict() for insight in final_state.get("findings", []) or []],
        profile=final_state.get("profile_summary", {}) or {},
        schema=dataset.schema(),
    )
