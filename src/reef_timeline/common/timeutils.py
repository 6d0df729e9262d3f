"""
Time parsing utilities.

All timestamps are interpreted as UTC and carried as integer epoch
milliseconds. Sub-second precision is dropped at parse time.
"""

from datetime import datetime, timezone

from .config import DAY_MS

SHARK_TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
MANTA_TIME_FORMAT = "%d/%m/%Y %H:%M"
VESSEL_TIME_FORMAT = "%d/%m/%Y %H:%M:%S"

UTC_SUFFIX = " UTC"


def parse_utc_ms(text: str, fmt: str) -> int:
    """
    Parse a naive timestamp string as UTC.

    Args:
        text: Timestamp text
        fmt: strptime format

    Returns:
        Epoch milliseconds, truncated to whole seconds

    Raises:
        ValueError: If text does not match fmt
    """
    dt = datetime.strptime(text.strip(), fmt).replace(tzinfo=timezone.utc)
    return int(dt.timestamp()) * 1000


def parse_vessel_time(text: str) -> int:
    """Vessel fixes carry a literal ' UTC' suffix."""
    text = text.strip()
    if text.endswith(UTC_SUFFIX):
        text = text[:-len(UTC_SUFFIX)]
    return parse_utc_ms(text, VESSEL_TIME_FORMAT)


def day_floor_ms(epoch_ms: int) -> int:
    """Start of the UTC calendar day containing epoch_ms."""
    return epoch_ms - (epoch_ms % DAY_MS)


def day_ceil_ms(epoch_ms: int) -> int:
    """
    Last whole second of the UTC calendar day containing epoch_ms.

    23:59:59.000, not .999: the client's endTime has always been whole
    seconds.
    """
    return day_floor_ms(epoch_ms) + DAY_MS - 1000


def format_utc(epoch_ms: int) -> str:
    """ISO-8601 rendering for log messages."""
    return datetime.fromtimestamp(epoch_ms / 1000, tz=timezone.utc).isoformat()
