from datetime import datetime, timedelta, timezone
from typing import Optional

from utils.errors import InvalidArgumentError

# Review interval in days, indexed by SRS level.
INTERVAL_DAYS = (0, 1, 3, 7, 15, 30, 90, 180, 365)

TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"

# Largest value a SQLite INTEGER column holds.
MAX_LEVEL = 2**63 - 1

RATING_OFFSETS = {
    "hard": -1,
    "good": 0,
    "easy": 1,
}

def validate_level(level: int) -> int:
    if isinstance(level, bool) or not isinstance(level, int):
        raise InvalidArgumentError(f"SRS level must be an integer, got {level!r}")
    if level < 0:
        raise InvalidArgumentError(f"SRS level cannot be negative, got {level}")
    if level > MAX_LEVEL:
        raise InvalidArgumentError(f"SRS level is too large, got {level}")
    return level

def interval_for_level(level: int) -> int:
    """Days until the next review; levels past the table reuse the last interval."""
    validate_level(level)
    return INTERVAL_DAYS[min(level, len(INTERVAL_DAYS) - 1)]

def next_review_for(level: int, reviewed_at: datetime) -> datetime:
    return reviewed_at + timedelta(days=interval_for_level(level))

def adjust_level(level: int, rating: str) -> int:
    """Map a recall button (hard/good/easy) to the level passed to record_review."""
    validate_level(level)
    try:
        offset = RATING_OFFSETS[rating]
    except KeyError:
        raise InvalidArgumentError(f"Unknown recall rating {rating!r}") from None
    return min(MAX_LEVEL, max(0, level + offset))

def utc_now() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)

def to_db_timestamp(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(timezone.utc)
    return value.strftime(TIMESTAMP_FORMAT)

def from_db_timestamp(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
