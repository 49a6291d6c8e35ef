from __future__ import annotations
import io, math, logging
from datetime import date, datetime, time
from typing import Any, IO, Optional, Tuple, cast
from .types import BinaryInput, Cell

logger = logging.getLogger(__name__)


def _open_binary_stream(body: BinaryInput) -> Tuple[IO[bytes], bool]:
    if isinstance(body, bytes):
        return io.BytesIO(body), True
    if isinstance(body, bytearray):
        return io.BytesIO(bytes(body)), True
    if hasattr(body, "read"):
        return cast(IO[bytes], body), False
    raise TypeError("body must be bytes-like or a binary stream")


def _ensure_bytes(body: BinaryInput) -> bytes:
    if isinstance(body, bytes):
        return body
    if isinstance(body, bytearray):
        return bytes(body)
    if hasattr(body, "read"):
        data = cast(IO[bytes], body).read()
        return data or b""
    raise TypeError("body must be bytes-like or a binary stream")


def is_missing(value: Any) -> bool:
    """True for the values that collapse into a missing cell."""
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    if isinstance(value, str) and not value.strip():
        return True
    # pandas NaT / NA sentinels
    if type(value).__name__ in {"NaTType", "NAType"}:
        return True
    return False


def normalize_cell(value: Any) -> Cell:
    if is_missing(value):
        return None
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime()
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        # numpy scalars
        try:
            return value.item()
        except (TypeError, ValueError):
            return value
    return value


def to_number(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        try:
            number = float(text)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    return None


def is_whole(number: float) -> bool:
    return math.isfinite(number) and float(number).is_integer()


def json_label(value: Any) -> Any:
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return value


def _format_header(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return str(value)
    if isinstance(value, float) and is_whole(value):
        return str(int(value))
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    return str(value).strip()


def _format_preview(value: Any) -> Any:
    if value is None:
        return None
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (int, float, bool)):
        return value
    text = str(value)
    if len(text) > 80:
        return text[:77] + "..."
    return text


def _format_error(exc: BaseException, limit: int) -> str:
    return f"{type(exc).__name__}: {exc}"[:limit]
