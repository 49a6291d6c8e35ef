import pytest

from services.workers.graph import compute_correlation
from services.workers.graph.nodes.relationships import correlation_strength


def _pairs(xs, ys):
    return [{"x": x, "y": y} for x, y in zip(xs, ys)]


def test_perfect_positive_correlation_with_small_sample():
    result = compute_correlation(_pairs(range(1, 6), [2, 4, 6, 8, 10]), "x", "y")
    assert result.coefficient == 1.0
    assert result.strength == "very strong"
    # 1.96 / sqrt(2) exceeds 1, nothing is significant at n=5
    assert result.significance == "not significant"
    assert result.sample_size == 5


def test_perfect_negative_correlation_is_significant():
    result = compute_correlation(_pairs(range(10), [-value for value in range(10)]), "x", "y")
    assert result.coefficient == -1.0
    assert result.significance == "significant"
    assert result.to_dict() == {
        "correlation": -1.0,
        "strength": "very strong",
        "significance": "significant",
        "sampleSize": 10,
    }


def test_too_few_pairs_is_insufficient():
    result = compute_correlation(_pairs([1, 2, 3], [3, 2, 1]), "x", "y")
    assert result.coefficient is None
    assert result.strength == "insufficient data"
    assert result.significance is None
    assert result.sample_size == 3


def test_constant_column_has_no_correlation():
    result = compute_correlation(_pairs(range(6), [7] * 6), "x", "y")
    assert result.coefficient == 0.0
    assert result.strength == "no correlation"
    assert result.significance == "not significant"


def test_rows_missing_either_side_are_skipped():
    records = _pairs([1, 2, None, 4, 5, "n/a"], [1, 2, 3, None, 5, 6])
    records.append({"x": 3})
    result = compute_correlation(records, "x", "y")
    assert result.sample_size == 3
    assert result.coefficient is None


def test_correlation_is_symmetric():
    records = _pairs([1, 3, 2, 5, 4, 6], [2, 1, 4, 3, 6, 5])
    assert compute_correlation(records, "x", "y") == compute_correlation(records, "y", "x")


def test_coefficient_is_rounded_to_four_places():
    result = compute_correlation(_pairs([1, 2, 3, 4, 5], [2, 1, 4, 3, 5]), "x", "y")
    assert result.coefficient == 0.8
    assert result.strength == "very strong"


@pytest.mark.parametrize(
    "coefficient, label",
    [(0.95, "very strong"), (-0.65, "strong"), (0.45, "moderate"), (0.25, "weak"), (0.1, "very weak")],
)
def test_strength_bands(coefficient, label):
    assert correlation_strength(coefficient) == label


@pytest.mark.parametrize("constant", [0.1, 0.3, 2.675, 1e-7])
def test_constant_float_column_has_no_correlation(constant):
    result = compute_correlation(_pairs([constant] * 7, range(1, 8)), "x", "y")
    assert result.coefficient == 0.0
    assert result.strength == "no correlation"
    assert result.significance == "not significant"
    assert result.sample_size == 7
