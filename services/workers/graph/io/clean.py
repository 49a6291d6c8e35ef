from __future__ import annotations
import json, logging, math, re
from datetime import datetime
from typing import Any, Callable, Dict, Iterable, List, Mapping, Sequence, Tuple
from ..core.types import ColumnTransformation, Record
from ..core.utils import is_missing, to_number

logger = logging.getLogger(__name__)

_INTEGER_TEXT = re.compile(r"[+-]?\d+")
_ISO_DATE = re.compile(r"\d{4}-\d{2}-\d{2}")
_TRUE_TOKENS = {"true", "yes"}
_FALSE_TOKENS = {"false", "no"}
_UNSAFE_NAME = re.compile(r"[^a-zA-Z0-9]")


def _convert_text(value: str) -> Tuple[Any, bool]:
    number = to_number(value)
    if number is not None:
        return (int(value) if _INTEGER_TEXT.fullmatch(value) else number), True
    lowered = value.lower()
    if lowered in _TRUE_TOKENS or lowered in _FALSE_TOKENS:
        return lowered in _TRUE_TOKENS, True
    if _ISO_DATE.match(value):
        try:
            return datetime.fromisoformat(value), True
        except ValueError:
            return value, False
    return value, False


def clean_records(
    records: Sequence[Mapping[str, Any]],
    *,
    remove_nulls: bool = True,
    remove_empty_strings: bool = True,
    trim_strings: bool = True,
    remove_duplicates: bool = False,
    convert_types: bool = True,
) -> Tuple[List[Record], Dict[str, int]]:
    """Return cleaned copies of ``records`` along with counters describing the pass.

    Rows whose every value is missing are dropped when ``remove_nulls`` is set;
    string cells are blanked, trimmed and converted to numbers, booleans or ISO
    dates according to the remaining flags. Input records are never modified.
    """
    stats = {
        "originalRows": len(records),
        "rowsAfterNullRemoval": len(records),
        "duplicatesRemoved": 0,
        "totalTransformations": 0,
    }

    rows = [dict(record) for record in records]
    if remove_nulls:
        rows = [row for row in rows if any(value is not None for value in row.values())]
        stats["rowsAfterNullRemoval"] = len(rows)

    for row in rows:
        for key, value in row.items():
            if not isinstance(value, str):
                continue
            if remove_empty_strings and not value.strip():
                row[key] = None
                stats["totalTransformations"] += 1
                continue
            if trim_strings:
                trimmed = value.strip()
                if trimmed != value:
                    stats["totalTransformations"] += 1
                    value = trimmed
            if convert_types:
                value, converted = _convert_text(value)
                if converted:
                    stats["totalTransformations"] += 1
            row[key] = value

    if remove_duplicates:
        seen = set()
        unique: List[Record] = []
        for row in rows:
            signature = json.dumps(row, sort_keys=True, default=str)
            if signature in seen:
                continue
            seen.add(signature)
            unique.append(row)
        stats["duplicatesRemoved"] = len(rows) - len(unique)
        rows = unique

    logger.debug("Cleaned records", extra=stats)
    return rows, stats


def _numeric_values(records: Iterable[Mapping[str, Any]], column: str) -> List[float]:
    return [number for number in (to_number(record.get(column)) for record in records) if number is not None]


def _normalize(records: List[Record], column: str, options: Mapping[str, Any]) -> None:
    values = _numeric_values(records, column)
    if not values:
        raise ValueError(f"No numeric values to normalize in '{column}'")
    low, high = min(values), max(values)
    spread = high - low
    if spread == 0:
        raise ValueError(f"Zero range in '{column}', cannot normalize")
    for record in records:
        number = to_number(record.get(column))
        if number is not None:
            record[f"{column}_normalized"] = (number - low) / spread


def _standardize(records: List[Record], column: str, options: Mapping[str, Any]) -> None:
    values = _numeric_values(records, column)
    if not values:
        raise ValueError(f"No numeric values to standardize in '{column}'")
    mean = sum(values) / len(values)
    std = math.sqrt(sum((value - mean) ** 2 for value in values) / len(values))
    if std == 0:
        raise ValueError(f"Zero standard deviation in '{column}', cannot standardize")
    for record in records:
        number = to_number(record.get(column))
        if number is not None:
            record[f"{column}_standardized"] = (number - mean) / std


def _log_transform(records: List[Record], column: str, options: Mapping[str, Any]) -> None:
    base = float(options.get("base", math.e))
    add_constant = float(options.get("addConstant", 1))
    skipped = 0
    for record in records:
        number = to_number(record.get(column))
        if number is None:
            continue
        if number <= 0:
            skipped += 1
            continue
        record[f"{column}_log"] = math.log(number + add_constant) / math.log(base)
    if skipped:
        logger.info("Skipped non-positive values in log transform", extra={"column": column, "skipped": skipped})


def _bin_edges(values: List[float], bins: int, method: str) -> List[float]:
    if method == "equal_width":
        low, high = min(values), max(values)
        width = (high - low) / bins
        return [low + index * width for index in range(bins + 1)]
    if method == "quantile":
        ordered = sorted(values)
        return [ordered[int(math.floor(index / bins * (len(ordered) - 1)))] for index in range(bins + 1)]
    raise ValueError(f"Unknown binning method '{method}'")


def _bin(records: List[Record], column: str, options: Mapping[str, Any]) -> None:
    values = _numeric_values(records, column)
    if not values:
        raise ValueError(f"No numeric values to bin in '{column}'")
    bins = int(options.get("bins", 5))
    if bins < 1:
        raise ValueError("bins must be a positive integer")
    edges = _bin_edges(values, bins, str(options.get("method", "equal_width")))
    for record in records:
        number = to_number(record.get(column))
        if number is None:
            continue
        for index in range(len(edges) - 1):
            if edges[index] <= number <= edges[index + 1]:
                record[f"{column}_bin"] = f"Bin {index + 1} ({edges[index]:.2f}-{edges[index + 1]:.2f})"
                break


def _encode(records: List[Record], column: str, options: Mapping[str, Any]) -> None:
    unique: List[Any] = []
    for record in records:
        value = record.get(column)
        if not is_missing(value) and value not in unique:
            unique.append(value)

    method = options.get("method", "label")
    if method == "label":
        labels = {value: index for index, value in enumerate(unique)}
        for record in records:
            value = record.get(column)
            if value in labels:
                record[f"{column}_encoded"] = labels[value]
        return
    if method == "onehot":
        names = [(value, f"{column}_{_UNSAFE_NAME.sub('_', str(value))}") for value in unique]
        for record in records:
            current = record.get(column)
            for value, name in names:
                record[name] = 1 if current == value else 0
        return
    raise ValueError(f"Unknown encoding method '{method}'")


_TRANSFORMS: Dict[str, Callable[[List[Record], str, Mapping[str, Any]], None]] = {
    "normalize": _normalize,
    "standardize": _standardize,
    "log": _log_transform,
    "binning": _bin,
    "encoding": _encode,
}


def transform_records(
    records: Sequence[Mapping[str, Any]],
    transformations: Sequence[ColumnTransformation],
) -> Tuple[List[Record], List[Dict[str, Any]]]:
    """Apply derived-column transformations in order; failures are logged, never raised."""
    rows: List[Record] = [dict(record) for record in records]
    log: List[Dict[str, Any]] = []
    for transformation in transformations:
        entry: Dict[str, Any] = {"type": transformation.type, "column": transformation.column}
        handler = _TRANSFORMS.get(transformation.type)
        if handler is None:
            logger.warning("Unknown transformation type", extra={"transformation": transformation.type})
            entry.update({"status": "skipped", "reason": "Unknown type"})
            log.append(entry)
            continue
        try:
            handler(rows, transformation.column, transformation.options)
        except (ValueError, TypeError, ArithmeticError) as exc:
            logger.warning(
                "Transformation failed",
                extra={"transformation": transformation.type, "column": transformation.column, "error": str(exc)},
            )
            entry.update({"status": "failed", "error": str(exc)})
        else:
            entry.update({"status": "success", "rowsProcessed": len(rows)})
        log.append(entry)
    return rows, log


def derived_columns(before: Sequence[str], records: Sequence[Mapping[str, Any]]) -> List[str]:
    known = set(before)
    added: List[str] = []
    for record in records:
        for key in record.keys():
            if key not in known:
                known.add(key)
                added.append(key)
    return added
