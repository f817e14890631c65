import json
import re
from datetime import datetime
from email.utils import parsedate_to_datetime

from viewport import NULL_MARKER

_INT_RE = re.compile(r"^[+-]?\d+$")
_FLOAT_RE = re.compile(r"^[+-]?(\d+\.?\d*|\.\d+)([eE][+-]?\d+)?$")
_DATETIME_FORMATS = (
    "%Y-%m-%d %H:%M:%S %z %Z",
    "%Y-%m-%d %H:%M:%S %Z",
    "%Y-%m-%d %H:%M:%S.%f %z %Z",
    "%Y-%m-%d %H:%M:%S.%f",
    "%Y-%m-%d %H:%M:%S",
    "%Y-%m-%d",
)
MAX_DATETIME_LENGTH = 64


def looks_like_datetime(text: str) -> bool:
    if not text or len(text) > MAX_DATETIME_LENGTH:
        return False
    iso = text[:-1] + "+00:00" if text.endswith("Z") else text
    if "T" in iso:
        try:
            datetime.fromisoformat(iso)
            return True
        except ValueError:
            pass
    for fmt in _DATETIME_FORMATS:
        try:
            datetime.strptime(text, fmt)
            return True
        except ValueError:
            continue
    # RFC 822/1123 style ("Mon, 02 Jan 2006 15:04:05 MST")
    if "," in text or text[:3].isalpha():
        try:
            return parsedate_to_datetime(text) is not None
        except (TypeError, ValueError, IndexError):
            return False
    return False


def infer_field_type(value: str) -> str:
    """Short type badge for a cell value shown in the row detail view."""
    if value == NULL_MARKER:
        return "NULL"
    if value == "":
        return "Text"
    if value in ("true", "false", "TRUE", "FALSE"):
        return "Bool"
    if _INT_RE.match(value):
        return "Int"
    if _FLOAT_RE.match(value):
        return "Float"
    stripped = value.strip()
    if (stripped.startswith("{") and stripped.endswith("}")) or (
        stripped.startswith("[") and stripped.endswith("]")
    ):
        return "JSON"
    if looks_like_datetime(stripped):
        return "DateTime"
    return "Text"


def sanitize_for_display(value: str) -> str:
    """Collapse all whitespace runs so a value fits on one line."""
    return " ".join(str(value).split())


def format_field_value(value: str) -> str:
    stripped = value.strip()
    if not stripped.startswith(("{", "[")):
        return value
    try:
        parsed = json.loads(stripped)
    except ValueError:
        return value
    return json.dumps(parsed, indent=2, ensure_ascii=False)
