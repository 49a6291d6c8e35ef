from __future__ import annotations
import logging
import re
from datetime import date, datetime
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple
from ..core.types import Cell, ColumnType, RawWorkbook, Record, TypedDataset
from ..core.errors import SheetNotFoundError
from ..core.utils import _format_header, is_missing, is_whole, normalize_cell, to_number
from ..core.constants import (
    _BOOLEAN_TOKENS, _BOOLEAN_TYPE_RATIO, _DATE_TYPE_RATIO, _INTEGER_SUBSET_RATIO, _NUMERIC_TYPE_RATIO,
)

logger = logging.getLogger(__name__)

_DIGIT = re.compile(r"\d")


class _HeaderNormalizer:
    """Normalizes and deduplicates the header row of a sheet."""

    def __init__(self, auto_name_blank: bool = False) -> None:
        self.auto_name_blank = auto_name_blank
        self._base_counts: Dict[str, int] = {}
        self._used: Set[str] = set()

    def _clean(self, raw: Any, index: int) -> Optional[str]:
        text = _format_header(raw).lstrip("\ufeff").strip()
        if text:
            return text
        return f"Column_{index + 1}" if self.auto_name_blank else None

    def _allocate(self, base: str) -> str:
        count = self._base_counts.get(base, 0)
        candidate = base if count == 0 else f"{base}_{count + 1}"
        while candidate in self._used:
            count += 1
            candidate = f"{base}_{count + 1}"
        self._base_counts[base] = count + 1
        self._used.add(candidate)
        return candidate

    def normalize(self, header_row: Sequence[Any]) -> List[Tuple[int, str]]:
        """Return ``(source index, header)`` for every kept column."""
        kept: List[Tuple[int, str]] = []
        for index, raw in enumerate(header_row):
            cleaned = self._clean(raw, index)
            if cleaned is None:
                continue
            kept.append((index, self._allocate(cleaned)))
        return kept


def _count_dates(values: Sequence[Cell]) -> int:
    """Count cells that are dates or strings that parse as calendar dates.

    Strings without a digit are never dates, so bare month or weekday words
    stay text. The remaining strings are parsed in one pandas call.
    """
    native = sum(1 for value in values if isinstance(value, (datetime, date)))
    candidates = [
        value.strip() for value in values if isinstance(value, str) and _DIGIT.search(value)
    ]
    if not candidates:
        return native
    try:
        import pandas as pd  # type: ignore
    except ImportError as exc:  # pragma: no cover - dependency issues are surfaced at runtime
        raise RuntimeError("Date inference requires pandas installed") from exc
    parsed = pd.to_datetime(
        pd.Series(candidates, dtype=object), errors="coerce", format="mixed", utc=True
    )
    return native + int(parsed.notna().sum())


def _is_boolean_like(value: Cell) -> bool:
    if isinstance(value, bool):
        return True
    if isinstance(value, (int, float)):
        return value in (0, 1)
    if isinstance(value, str):
        return value.strip().lower() in _BOOLEAN_TOKENS
    return False


def infer_column_type(values: Sequence[Cell]) -> ColumnType:
    present = [value for value in values if not is_missing(value)]
    if not present:
        return ColumnType.EMPTY
    total = len(present)

    numbers = [number for number in (to_number(value) for value in present) if number is not None]
    if len(numbers) / total >= _NUMERIC_TYPE_RATIO:
        whole = sum(1 for number in numbers if is_whole(number))
        if whole / len(numbers) >= _INTEGER_SUBSET_RATIO:
            return ColumnType.INTEGER
        return ColumnType.FLOAT

    dates = _count_dates(present)
    if dates / total >= _DATE_TYPE_RATIO:
        return ColumnType.DATE

    booleans = sum(1 for value in present if _is_boolean_like(value))
    if booleans / total >= _BOOLEAN_TYPE_RATIO:
        return ColumnType.BOOLEAN

    return ColumnType.STRING


def build_typed_dataset(
    sheet_name: str,
    rows: Sequence[Sequence[Any]],
    *,
    auto_name_blank_headers: bool = False,
) -> TypedDataset:
    if not rows:
        return TypedDataset(sheet_name=sheet_name, headers=[], records=[], column_types={})

    columns = _HeaderNormalizer(auto_name_blank_headers).normalize(rows[0])
    dropped = len(rows[0]) - len(columns)
    if dropped:
        logger.warning(
            "Dropping columns with blank headers",
            extra={"sheet": sheet_name, "dropped_columns": dropped},
        )

    headers = [name for _, name in columns]
    records: List[Record] = []
    for row in rows[1:]:
        record: Record = {}
        for index, name in columns:
            record[name] = normalize_cell(row[index]) if index < len(row) else None
        records.append(record)

    column_types = {name: infer_column_type([record[name] for record in records]) for name in headers}
    return TypedDataset(sheet_name=sheet_name, headers=headers, records=records, column_types=column_types)


def select_sheet(workbook: RawWorkbook, sheet_name: str, *, auto_name_blank_headers: bool = False) -> TypedDataset:
    if sheet_name not in workbook.sheets:
        raise SheetNotFoundError(sheet_name, workbook.sheet_names)
    return build_typed_dataset(
        sheet_name,
        workbook.rows(sheet_name),
        auto_name_blank_headers=auto_name_blank_headers,
    )
