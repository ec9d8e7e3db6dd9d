from typing import Any, Optional

import structlog

logger = structlog.get_logger(__name__)

NANOS_PER_MILLI = 1_000_000


def parse_unix_nano(value: Any) -> Optional[int]:
    """Parse a unix-nanosecond timestamp, which OTLP/JSON encodes as a string"""
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to parse timestamp {value!r}: {str(e)}")
        return None


def unix_nano_to_millis(value: int) -> int:
    return value // NANOS_PER_MILLI
