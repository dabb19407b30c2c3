from .ids import new_record_id, new_subscription_id, new_uuid
from .time import format_clock, now_utc, normalize_dt, parse_rfc3339, to_rfc3339

__all__ = [
    "new_uuid",
    "new_record_id",
    "new_subscription_id",
    "now_utc",
    "parse_rfc3339",
    "to_rfc3339",
    "normalize_dt",
    "format_clock",
]
