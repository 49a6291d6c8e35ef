from __future__ import annotations
import logging
from itertools import combinations
from typing import Any, Dict, List, Mapping, MutableMapping, Sequence
from ..core.types import AnalysisConfiguration, Insight, TypedDataset
from ..core.state import _with_phase, _emit_callback
from ..core.utils import is_missing, to_number
from ..core.constants import (
    _HIGH_VARIABILITY_CV, _INDEPENDENCE_CORRELATION, _INDEPENDENCE_MIN_SAMPLES, _MISSING_DATA_PCT,
    _MULTICOLLINEARITY_CORRELATION, _NUMERIC_SAMPLE_ROWS, _OUTLIER_HIGH_CONFIDENCE_PCT, _OUTLIER_INVESTIGATE_PCT,
    _SKEW_LOG_TRANSFORM_THRESHOLD, _SKEW_THRESHOLD, _STRONG_CORRELATION,
)
from .descriptive import compute_skewness, compute_statistics
from .relationships import compute_correlation

logger = logging.getLogger(__name__)


def _fmt(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def numeric_columns(records: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> List[str]:
    sample = records[:_NUMERIC_SAMPLE_ROWS]
    return [
        column for column in columns
        if any(to_number(record.get(column)) is not None for record in sample)
    ]


def _column_insights(records: Sequence[Mapping[str, Any]], column: str) -> List[Insight]:
    insights: List[Insight] = []
    stats = compute_statistics(records, column)

    if stats.outliers:
        percentage = len(stats.outliers) / stats.count * 100
        preview = ", ".join(_fmt(value) for value in stats.outliers[:3])
        suffix = "..." if len(stats.outliers) > 3 else ""
        insights.append(
            Insight(
                kind="outlier",
                category="data_quality",
                message=(
                    f"Column '{column}' has {len(stats.outliers)} outlier(s) representing "
                    f"{percentage:.2f}% of data: {preview}{suffix}"
                ),
                confidence=0.9 if percentage > _OUTLIER_HIGH_CONFIDENCE_PCT else 0.7,
                column=column,
                data=list(stats.outliers),
                recommendation=(
                    "Consider investigating outlier causes or applying transformation"
                    if percentage > _OUTLIER_INVESTIGATE_PCT
                    else "Outlier percentage is within acceptable range"
                ),
            )
        )

    skewness = compute_skewness(records, column)
    if abs(skewness) > _SKEW_THRESHOLD:
        direction = "positive" if skewness > 0 else "negative"
        interpretation = (
            "Highly right-skewed (long tail on right)" if skewness > 0 else "Highly left-skewed (long tail on left)"
        )
        insights.append(
            Insight(
                kind="distribution",
                category="pattern",
                message=(
                    f"Column '{column}' shows {direction} skewness ({skewness:.2f}), "
                    "indicating an asymmetric distribution"
                ),
                confidence=0.8,
                column=column,
                data={"skewness": skewness, "interpretation": interpretation},
                recommendation=(
                    "Consider log transformation to normalize distribution"
                    if abs(skewness) > _SKEW_LOG_TRANSFORM_THRESHOLD
                    else "Distribution is acceptable for most analyses"
                ),
            )
        )

    if stats.range is not None and stats.standard_deviation is not None:
        # a zero mean is replaced by 1 so the ratio stays defined
        cv = stats.standard_deviation / abs(stats.mean or 1)
        insights.append(
            Insight(
                kind="variability",
                category="distribution",
                message=f"Column '{column}' has {'high' if cv > _HIGH_VARIABILITY_CV else 'moderate'} variability (CV: {cv:.2f})",
                confidence=0.75,
                column=column,
                data={
                    "range": stats.range,
                    "standardDeviation": stats.standard_deviation,
                    "coefficientOfVariation": cv,
                },
            )
        )
    return insights


def _pair_insight(records: Sequence[Mapping[str, Any]], left: str, right: str) -> List[Insight]:
    result = compute_correlation(records, left, right)
    if result.coefficient is None:
        return []
    magnitude = abs(result.coefficient)
    if magnitude > _STRONG_CORRELATION:
        data = result.to_dict()
        data["recommendation"] = (
            "Consider multicollinearity issues in modeling"
            if magnitude > _MULTICOLLINEARITY_CORRELATION
            else "Strong relationship detected - investigate potential causation"
        )
        return [
            Insight(
                kind="correlation",
                category="relationship",
                message=(
                    f"Strong {'positive' if result.coefficient > 0 else 'negative'} correlation "
                    f"({result.coefficient}) found between '{left}' and '{right}'"
                ),
                confidence=0.9 if result.significance == "significant" else 0.7,
                columns=(left, right),
                data=data,
            )
        ]
    if magnitude < _INDEPENDENCE_CORRELATION and result.sample_size > _INDEPENDENCE_MIN_SAMPLES:
        return [
            Insight(
                kind="independence",
                category="relationship",
                message=f"No significant correlation ({result.coefficient}) between '{left}' and '{right}'",
                confidence=0.6,
                columns=(left, right),
                data=result.to_dict(),
            )
        ]
    return []


def _completeness_insight(records: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> List[Insight]:
    total_cells = len(records) * len(columns)
    if not total_cells:
        return []
    missing = sum(1 for record in records for column in columns if is_missing(record.get(column)))
    percentage = missing / total_cells * 100
    if percentage <= _MISSING_DATA_PCT:
        return []
    return [
        Insight(
            kind="data_quality",
            category="completeness",
            message=f"High percentage of missing data detected: {percentage:.2f}% across all columns",
            confidence=0.9,
            data={"missingPercentage": percentage, "totalCells": total_cells, "totalMissing": missing},
            recommendation="Consider data imputation or collection improvement strategies",
        )
    ]


def generate_insights(records: Sequence[Mapping[str, Any]], columns: Sequence[str]) -> List[Insight]:
    """Findings for ``columns`` in generation order: per-column, then per-pair, then completeness."""
    numeric = numeric_columns(records, columns)
    insights: List[Insight] = []
    for column in numeric:
        insights.extend(_column_insights(records, column))
    for left, right in combinations(numeric, 2):
        insights.extend(_pair_insight(records, left, right))
    insights.extend(_completeness_insight(records, columns))
    logger.debug("Generated insights", extra={"numeric_columns": len(numeric), "insights": len(insights)})
    return insights


def rank_insights(insights: Sequence[Insight]) -> List[Insight]:
    return sorted(insights, key=lambda insight: insight.confidence, reverse=True)


def insights_node(state: MutableMapping[str, Any]) -> Dict[str, Any]:
    dataset: TypedDataset = state["dataset"]
    configuration: AnalysisConfiguration = state["configuration"]
    columns = list(dict.fromkeys([configuration.x_axis.column, configuration.y_axis.column]))
    insights = generate_insights(dataset.records, columns)

    payload = {
        "count": len(insights),
        "insights": [insight.to_dict() for insight in insights],
    }
    update = _with_phase(state, "insights", payload, findings=insights)
    _emit_callback(state, "insights", payload)
    return update
