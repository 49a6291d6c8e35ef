from __future__ import annotations
import math
from typing import Any, Dict, List, Mapping, MutableMapping, Optional, Sequence, Tuple
from ..core.types import AnalysisConfiguration, ColumnStatistics, CorrelationResult, TypedDataset
from ..core.state import _with_phase, _emit_callback
from ..core.utils import to_number
from ..core.constants import _CORRELATION_DECIMALS, _SIGNIFICANCE_Z, _STRENGTH_BANDS


def _numeric_pairs(records: Sequence[Mapping[str, Any]], col_a: str, col_b: str) -> List[Tuple[float, float]]:
    pairs: List[Tuple[float, float]] = []
    for record in records:
        left = to_number(record.get(col_a))
        right = to_number(record.get(col_b))
        if left is None or right is None:
            continue
        pairs.append((left, right))
    return pairs


def correlation_strength(coefficient: float) -> str:
    magnitude = abs(coefficient)
    for threshold, label in _STRENGTH_BANDS:
        if magnitude >= threshold:
            return label
    return "very weak"


def compute_correlation(records: Sequence[Mapping[str, Any]], col_a: str, col_b: str) -> CorrelationResult:
    """Pearson correlation between two columns over rows where both are numeric.

    Fewer than four pairs cannot be tested for significance (the critical value
    divides by ``sqrt(n - 3)``) and are reported as insufficient data.
    """
    pairs = _numeric_pairs(records, col_a, col_b)
    n = len(pairs)
    if n <= 3:
        return CorrelationResult(coefficient=None, strength="insufficient data", significance=None, sample_size=n)

    sum_x = sum(x for x, _ in pairs)
    sum_y = sum(y for _, y in pairs)
    sum_xy = sum(x * y for x, y in pairs)
    sum_x2 = sum(x * x for x, _ in pairs)
    sum_y2 = sum(y * y for _, y in pairs)

    numerator = n * sum_xy - sum_x * sum_y
    spread = (n * sum_x2 - sum_x ** 2) * (n * sum_y2 - sum_y ** 2)
    # the sum-of-squares form can leave a tiny positive spread for constant floats
    constant = len({x for x, _ in pairs}) == 1 or len({y for _, y in pairs}) == 1
    if constant or spread <= 0:
        return CorrelationResult(coefficient=0.0, strength="no correlation", significance="not significant", sample_size=n)

    coefficient = max(-1.0, min(1.0, numerator / math.sqrt(spread)))
    critical = _SIGNIFICANCE_Z / math.sqrt(n - 3)
    return CorrelationResult(
        coefficient=round(coefficient, _CORRELATION_DECIMALS),
        strength=correlation_strength(coefficient),
        significance="significant" if abs(coefficient) > critical else "not significant",
        sample_size=n,
    )


def relationships_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    dataset: TypedDataset = state["dataset"]
    configuration: AnalysisConfiguration = state["configuration"]
    statistics: Dict[str, ColumnStatistics] = state.get("statistics", {})
    x_column = configuration.x_axis.column
    y_column = configuration.y_axis.column

    correlation: Optional[CorrelationResult] = None
    x_stats = statistics.get("xAxis")
    y_stats = statistics.get("yAxis")
    if x_stats is not None and y_stats is not None and x_stats.count > 0 and y_stats.count > 0:
        correlation = compute_correlation(dataset.records, x_column, y_column)

    payload: Dict[str, Any] = {
        "columns": [x_column, y_column],
        "correlation": correlation.to_dict() if correlation else None,
    }
    update = _with_phase(state, "relationships", payload, correlation=correlation)
    _emit_callback(state, "relationships", payload)
    return update
