from __future__ import annotations
import math
from collections import Counter
from typing import Any, Dict, Iterable, List, Mapping, MutableMapping, Sequence, Union
from ..core.types import AnalysisConfiguration, ColumnStatistics, Quartiles, TypedDataset
from ..core.state import _with_phase, _emit_callback
from ..core.utils import to_number
from ..core.constants import _IQR_FACTOR, _MIN_SKEW_SAMPLES


def numeric_values(records: Iterable[Mapping[str, Any]], column: str) -> List[float]:
    """Numeric values of ``column`` in record order; non-numeric cells are skipped."""
    values: List[float] = []
    for record in records:
        number = to_number(record.get(column))
        if number is not None:
            values.append(number)
    return values


def _median(ordered: Sequence[float]) -> float:
    middle = len(ordered) // 2
    if len(ordered) % 2 == 0:
        return (ordered[middle - 1] + ordered[middle]) / 2
    return ordered[middle]


def _mode(values: Sequence[float]) -> Union[None, float, List[float]]:
    frequency = Counter(values)
    highest = max(frequency.values())
    if highest <= 1:
        return None
    winners = sorted(value for value, count in frequency.items() if count == highest)
    return winners[0] if len(winners) == 1 else winners


def compute_statistics(records: Sequence[Mapping[str, Any]], column: str) -> ColumnStatistics:
    values = numeric_values(records, column)
    if not values:
        return ColumnStatistics(column=column)

    count = len(values)
    ordered = sorted(values)
    total = sum(values)
    mean = total / count
    median = _median(ordered)
    variance = sum((value - mean) ** 2 for value in values) / count

    # positional quartiles, no interpolation
    q1 = ordered[int(math.floor(count * 0.25))]
    q3 = ordered[int(math.floor(count * 0.75))]
    iqr = q3 - q1
    lower = q1 - _IQR_FACTOR * iqr
    upper = q3 + _IQR_FACTOR * iqr

    return ColumnStatistics(
        column=column,
        count=count,
        sum=total,
        mean=mean,
        median=median,
        mode=_mode(values),
        min=ordered[0],
        max=ordered[-1],
        range=ordered[-1] - ordered[0],
        variance=variance,
        standard_deviation=math.sqrt(variance),
        quartiles=Quartiles(q1=q1, q2=median, q3=q3),
        outliers=tuple(value for value in values if value < lower or value > upper),
    )


def compute_skewness(records: Sequence[Mapping[str, Any]], column: str) -> float:
    values = numeric_values(records, column)
    if len(values) < _MIN_SKEW_SAMPLES:
        return 0.0
    mean = sum(values) / len(values)
    std = math.sqrt(sum((value - mean) ** 2 for value in values) / len(values))
    if std == 0:
        return 0.0
    skew = sum(((value - mean) / std) ** 3 for value in values) / len(values)
    return round(skew, 4)


def descriptive_stats_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    dataset: TypedDataset = state["dataset"]
    configuration: AnalysisConfiguration = state["configuration"]
    x_column = configuration.x_axis.column
    y_column = configuration.y_axis.column

    statistics = {
        "xAxis": compute_statistics(dataset.records, x_column),
        "yAxis": compute_statistics(dataset.records, y_column),
    }
    skewness = {
        x_column: compute_skewness(dataset.records, x_column),
        y_column: compute_skewness(dataset.records, y_column),
    }

    payload = {
        "xAxis": statistics["xAxis"].to_dict(),
        "yAxis": statistics["yAxis"].to_dict(),
        "skewness": dict(skewness),
        "numericColumns": sum(1 for stats in statistics.values() if stats.count),
    }
    update = _with_phase(state, "descriptive_stats", payload, statistics=statistics, skewness=skewness)
    _emit_callback(state, "descriptive_stats", payload)
    return update
