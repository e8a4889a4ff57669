"""Utility modules."""
from quiz_api.utils.rounding import percent, round_half_up
from quiz_api.utils.time_utils import as_utc, elapsed_seconds, parse_iso_timestamp, utc_now

__all__ = [
    "as_utc",
    "elapsed_seconds",
    "parse_iso_timestamp",
    "percent",
    "round_half_up",
    "utc_now",
]
