from __future__ import annotations
from typing import Any, Callable, Dict, List, Mapping, MutableMapping, Optional, TypedDict
from .constants import PHASE_ORDER
from .types import AnalysisConfiguration, ChartSeries, ColumnStatistics, CorrelationResult, Insight, RawWorkbook, TypedDataset

PhaseCallback = Callable[[str, Mapping[str, Any], int, int], None]


class AnalysisState(TypedDict, total=False):
    job_id: str
    body: Any
    filename: Optional[str]
    configuration: AnalysisConfiguration
    workbook: RawWorkbook
    dataset: TypedDataset
    series: ChartSeries
    statistics: Dict[str, ColumnStatistics]
    skewness: Dict[str, float]
    correlation: Optional[CorrelationResult]
    findings: List[Insight]
    chart_spec: Dict[str, Any]
    profile_summary: Dict[str, Any]
    metrics: Dict[str, Any]
    phase_outputs: Dict[str, Dict[str, Any]]
    _callback: Optional[PhaseCallback]


def _with_phase(state: MutableMapping[str, Any], phase: str, payload: Dict[str, Any], **extra: Any) -> Dict[str, Any]:
    phases = dict(state.get("phase_outputs", {}))
    phases[phase] = payload
    update: Dict[str, Any] = {"phase_outputs": phases}
    update.update(extra)
    return update


def _emit_callback(state: Mapping[str, Any], phase: str, payload: Mapping[str, Any]) -> None:
    callback = state.get("_callback")
    if not callable(callback):
        return
    index = PHASE_ORDER.index(phase)
    callback(phase, payload, index, len(PHASE_ORDER))
