import re
from enum import Enum
from functools import lru_cache
from typing import Pattern

from slugify import slugify

DEFAULT_NONALPHANUMERIC_DIMENSION_CHARS = "_-."


class DimensionKeyFormat(Enum):
    RAW = "raw"
    SANITIZE = "sanitize"
    SLUG = "slug"


@lru_cache(maxsize=16)
def _disallowed_chars(allowed: str) -> Pattern:
    return re.compile(f"[^A-Za-z0-9{re.escape(allowed)}]")


def format_dimension_key(
    key: str,
    format_style: DimensionKeyFormat = DimensionKeyFormat.SANITIZE,
    allowed_chars: str = DEFAULT_NONALPHANUMERIC_DIMENSION_CHARS,
) -> str:
    if format_style == DimensionKeyFormat.RAW:
        return key
    elif format_style == DimensionKeyFormat.SANITIZE:
        return _disallowed_chars(allowed_chars).sub("_", key)
    elif format_style == DimensionKeyFormat.SLUG:
        return slugify(key, separator="_", lowercase=False)
    return key


def format_dimension_value(value) -> str:
    """Render an attribute value the way the backend expects dimension values"""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, str):
        return value
    return str(value)
