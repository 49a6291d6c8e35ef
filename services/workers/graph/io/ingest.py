from __future__ import annotations
import io, csv, codecs, logging, os
from typing import Any, Dict, Iterable, List, Optional
from ..core.types import BinaryInput, Cell, RawWorkbook
from ..core.errors import DecodeError
from ..core.utils import _open_binary_stream, _ensure_bytes, normalize_cell
from ..core.constants import (
    _DEFAULT_SHEET_NAME, _DELIMITED_EXTENSIONS, _DELIMITED_STREAM_CHUNK_SIZE,
    _EXCEL_EXTENSIONS, _OLE_MAGIC, _ZIP_MAGIC,
)

logger = logging.getLogger(__name__)


def _trim_row(row: Iterable[Any]) -> List[Cell]:
    cells = [normalize_cell(value) for value in row]
    while cells and cells[-1] is None:
        cells.pop()
    return cells


def _append_row(rows: List[List[Cell]], row: Iterable[Any]) -> None:
    cells = _trim_row(row)
    # row 0 is always kept, later rows only when they carry a value
    if rows and not cells:
        return
    rows.append(cells)


def _decode_delimited(body: BinaryInput, delimiter: str, source_format: str) -> RawWorkbook:
    stream, should_close = _open_binary_stream(body)
    decoder = codecs.getincrementaldecoder("utf-8-sig")("strict")
    bytes_read = 0
    buffer = ""

    def _iter_lines() -> Iterable[str]:
        nonlocal buffer, bytes_read
        while True:
            chunk = stream.read(_DELIMITED_STREAM_CHUNK_SIZE)
            if not chunk:
                break
            if isinstance(chunk, bytearray):
                chunk = bytes(chunk)
            if not isinstance(chunk, bytes):
                raise TypeError("Delimited payload chunks must be bytes-like")
            bytes_read += len(chunk)
            buffer += decoder.decode(chunk)
            while True:
                newline_index = buffer.find("\n")
                if newline_index == -1:
                    break
                yield buffer[: newline_index + 1]
                buffer = buffer[newline_index + 1 :]
        buffer += decoder.decode(b"", final=True)
        if buffer:
            yield buffer

    rows: List[List[Cell]] = []
    try:
        for raw_row in csv.reader(_iter_lines(), delimiter=delimiter):
            _append_row(rows, raw_row)
    except (UnicodeDecodeError, csv.Error) as exc:
        raise DecodeError(f"Unreadable {source_format} payload: {exc}") from exc
    finally:
        if should_close:
            stream.close()

    if bytes_read == 0:
        raise DecodeError("Workbook payload is empty")

    return RawWorkbook(
        sheet_names=[_DEFAULT_SHEET_NAME],
        sheets={_DEFAULT_SHEET_NAME: rows},
        source_format=source_format,
        bytes_read=bytes_read,
    )


def _decode_excel(body: bytes, *, legacy: bool) -> RawWorkbook:
    try:
        import pandas as pd  # type: ignore
    except ImportError as exc:  # pragma: no cover - dependency issues are surfaced at runtime
        raise RuntimeError("Excel decoding requires pandas with openpyxl installed") from exc

    engine = None if legacy else "openpyxl"
    try:
        with io.BytesIO(body) as stream:
            frames = pd.read_excel(stream, sheet_name=None, header=None, dtype=object, engine=engine)
    except ImportError as exc:  # pragma: no cover - optional engines are surfaced at runtime
        raise RuntimeError(f"Excel decoding engine unavailable: {exc}") from exc
    except Exception as exc:
        raise DecodeError(f"Unreadable workbook: {type(exc).__name__}: {exc}") from exc

    sheets: Dict[str, List[List[Cell]]] = {}
    for sheet_name, frame in frames.items():
        rows: List[List[Cell]] = []
        if frame is not None and not frame.empty:
            for values in frame.itertuples(index=False, name=None):
                _append_row(rows, values)
        sheets[str(sheet_name)] = rows

    return RawWorkbook(
        sheet_names=list(sheets.keys()),
        sheets=sheets,
        source_format="xls" if legacy else "xlsx",
        bytes_read=len(body),
    )


def _detect_format(head: bytes, filename: Optional[str]) -> str:
    if head.startswith(_ZIP_MAGIC):
        return "xlsx"
    if head.startswith(_OLE_MAGIC):
        return "xls"
    extension = os.path.splitext(filename or "")[1].lower()
    if extension == ".xls":
        return "xls"
    if extension in _EXCEL_EXTENSIONS:
        return "xlsx"
    if extension in _DELIMITED_EXTENSIONS:
        return extension.lstrip(".")
    return "csv"


def decode_workbook(body: BinaryInput, *, filename: Optional[str] = None) -> RawWorkbook:
    """Decode a spreadsheet container into raw row matrices, one per sheet.

    Excel containers are recognised by their ZIP/OLE signature or by extension;
    anything else is read as delimited UTF-8 text into a single ``Sheet1``.
    Row 0 is returned untouched: header handling belongs to the schema layer.
    Trailing empty cells are trimmed and fully blank rows after row 0 are
    dropped, so they never reach the record count or the missing-cell tally.
    """
    data = _ensure_bytes(body)
    if not data:
        raise DecodeError("Workbook payload is empty")

    source_format = _detect_format(data[:8], filename)
    logger.debug("Decoding workbook", extra={"source_format": source_format, "bytes": len(data)})
    if source_format in ("xlsx", "xls"):
        return _decode_excel(data, legacy=source_format == "xls")
    delimiter = _DELIMITED_EXTENSIONS.get(f".{source_format}", ",")
    return _decode_delimited(data, delimiter, source_format)
