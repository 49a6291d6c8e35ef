from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Hashable, List, Mapping, MutableMapping, Optional, Sequence, Tuple, Union
from ..core.types import AnalysisConfiguration, Aggregation, ChartFamily, ChartSeries, ChartType, Record, TypedDataset
from ..core.state import _with_phase, _emit_callback
from ..core.utils import json_label, to_number
from ..core.constants import _SERIES_BACKGROUND, _SERIES_BORDER
from .chart_config import generate_colors
from .descriptive import _median

logger = logging.getLogger(__name__)


_AGGREGATORS: Dict[Aggregation, Callable[[List[float]], float]] = {
    Aggregation.SUM: lambda values: sum(values),
    Aggregation.AVERAGE: lambda values: sum(values) / len(values),
    Aggregation.COUNT: lambda values: float(len(values)),
    Aggregation.MIN: min,
    Aggregation.MAX: max,
    Aggregation.MEDIAN: lambda values: _median(sorted(values)),
}


def _key(value: Any) -> Hashable:
    # keeps True and 1 in separate buckets
    return (isinstance(value, bool), value)


def _matches(value: Any, expected: Any) -> bool:
    if isinstance(value, bool) != isinstance(expected, bool):
        return False
    return value == expected


def apply_filters(records: Sequence[Mapping[str, Any]], filters: Optional[Mapping[str, Any]]) -> List[Mapping[str, Any]]:
    if not filters:
        return list(records)

    def _passes(record: Mapping[str, Any]) -> bool:
        for column, expected in filters.items():
            if expected is None:
                continue
            value = record.get(column)
            if isinstance(expected, (list, tuple, set, frozenset)):
                if not any(_matches(value, candidate) for candidate in expected):
                    return False
            elif not _matches(value, expected):
                return False
        return True

    return [record for record in records if _passes(record)]


def group_records(
    records: Sequence[Mapping[str, Any]],
    group_by: str,
    x_column: str,
    y_column: str,
    aggregation: Aggregation,
) -> List[Record]:
    groups: Dict[Hashable, Tuple[Any, List[Mapping[str, Any]]]] = {}
    for record in records:
        value = record.get(group_by)
        groups.setdefault(_key(value), (value, []))[1].append(record)

    aggregate = _AGGREGATORS[aggregation]
    synthetic: List[Record] = []
    for group_value, members in groups.values():
        row: Record = {group_by: group_value}
        for column in dict.fromkeys((x_column, y_column)):
            values = [number for number in (to_number(member.get(column)) for member in members) if number is not None]
            if values:
                row[column] = aggregate(values)
        if x_column not in row:
            row[x_column] = group_value
        synthetic.append(row)
    return synthetic


def _proportion_series(records: Sequence[Mapping[str, Any]], x_column: str, y_column: str) -> ChartSeries:
    totals: Dict[Hashable, Tuple[Any, float]] = {}
    for record in records:
        value = to_number(record.get(y_column))
        if value is None:
            continue
        label = json_label(record.get(x_column))
        key = _key(label)
        current = totals.get(key, (label, 0.0))[1]
        totals[key] = (label, current + value)

    labels = [label for label, _ in totals.values()]
    data = [total for _, total in totals.values()]
    return ChartSeries(
        family=ChartFamily.PROPORTION,
        labels=tuple(labels),
        datasets=({"data": data, "backgroundColor": generate_colors(len(labels))},),
    )


def _point_series(records: Sequence[Mapping[str, Any]], x_column: str, y_column: str) -> ChartSeries:
    points = []
    for record in records:
        x = to_number(record.get(x_column))
        y = to_number(record.get(y_column))
        if x is None or y is None:
            continue
        points.append({"x": x, "y": y})
    return ChartSeries(
        family=ChartFamily.POINT,
        datasets=(
            {
                "label": f"{y_column} vs {x_column}",
                "data": points,
                "backgroundColor": _SERIES_BACKGROUND,
                "borderColor": _SERIES_BORDER,
            },
        ),
    )


def _category_series(records: Sequence[Mapping[str, Any]], x_column: str, y_column: str) -> ChartSeries:
    labels: List[Any] = []
    values: List[float] = []
    for record in records:
        value = to_number(record.get(y_column))
        if value is None:
            continue
        labels.append(json_label(record.get(x_column)))
        values.append(value)
    return ChartSeries(
        family=ChartFamily.CATEGORY,
        labels=tuple(labels),
        datasets=(
            {
                "label": y_column,
                "data": values,
                "backgroundColor": _SERIES_BACKGROUND,
                "borderColor": _SERIES_BORDER,
                "borderWidth": 2,
                "fill": False,
            },
        ),
    )


_SHAPERS: Dict[ChartFamily, Callable[[Sequence[Mapping[str, Any]], str, str], ChartSeries]] = {
    ChartFamily.PROPORTION: _proportion_series,
    ChartFamily.POINT: _point_series,
    ChartFamily.CATEGORY: _category_series,
}


def process_data_for_chart(
    records: Sequence[Mapping[str, Any]],
    x_column: str,
    y_column: str,
    chart_type: Union[ChartType, str],
    *,
    group_by: Optional[str] = None,
    aggregation: Union[Aggregation, str] = Aggregation.SUM,
    filters: Optional[Mapping[str, Any]] = None,
) -> ChartSeries:
    """Filter, optionally group, and reshape records into the series shape of ``chart_type``.

    Rows whose required values are not numeric are dropped rather than raising.
    """
    chart_type = ChartType(chart_type)
    aggregation = Aggregation(aggregation)

    rows: Sequence[Mapping[str, Any]] = apply_filters(records, filters)
    if group_by and group_by != x_column:
        rows = group_records(rows, group_by, x_column, y_column, aggregation)

    series = _SHAPERS[chart_type.family](rows, x_column, y_column)
    logger.debug(
        "Prepared chart series",
        extra={"chart_type": chart_type.value, "family": series.family.value, "rows": len(rows)},
    )
    return series


def transform_for_chart(records: Sequence[Mapping[str, Any]], configuration: AnalysisConfiguration) -> ChartSeries:
    return process_data_for_chart(
        records,
        configuration.x_axis.column,
        configuration.y_axis.column,
        configuration.chart_type,
        group_by=configuration.group_by,
        aggregation=configuration.aggregation,
        filters=configuration.filters,
    )


def chart_data_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    dataset: TypedDataset = state["dataset"]
    configuration: AnalysisConfiguration = state["configuration"]
    series = transform_for_chart(dataset.records, configuration)

    payload = {
        "chartType": configuration.chart_type.value,
        "family": series.family.value,
        "points": series.point_count,
        "data": series.to_dict(),
    }
    update = _with_phase(state, "chart_data", payload, series=series)
    _emit_callback(state, "chart_data", payload)
    return update
