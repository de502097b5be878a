from __future__ import annotations

"""
Management-id helpers
=====================

A management id is `YYMMDD-NNN`: the creation date in the management time
zone (2-digit year) and a per-day sequence zero-padded to a minimum width.

    >>> format_management_id("251227", 7, 3)
    '251227-007'
    >>> format_management_id("251227", 1000, 3)
    '251227-1000'
"""

import re
from datetime import datetime, timezone, tzinfo
from typing import Optional

STORED_ID_RE = re.compile(r"^(\d{6})-(\d+)$")

# Longer suffixes are not sequences this service could have written
MAX_SEQUENCE_DIGITS = 18


def is_blank(value: Optional[str]) -> bool:
    """True for None, "" and whitespace-only strings."""
    return value is None or not str(value).strip()


def as_utc(moment: datetime) -> datetime:
    """Aware UTC datetime; naive values are taken to be UTC already."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def date_bucket(moment: datetime, tz: tzinfo) -> str:
    """`YYMMDD` of `moment` as seen in `tz`."""
    return as_utc(moment).astimezone(tz).strftime("%y%m%d")


def format_management_id(bucket: str, sequence: int, width: int) -> str:
    if sequence < 1:
        raise ValueError(f"sequence must be positive, got {sequence}")
    return f"{bucket}-{sequence:0{width}d}"


def parse_sequence(management_id: Optional[str], bucket: Optional[str] = None) -> Optional[int]:
    """Numeric suffix of a stored id, or None when it isn't `YYMMDD-N…`.

    With `bucket`, ids from any other day also yield None.
    """
    if is_blank(management_id):
        return None
    m = STORED_ID_RE.match(management_id.strip())
    if not m:
        return None
    if bucket is not None and m.group(1) != bucket:
        return None
    digits = m.group(2).lstrip("0")
    if len(digits) > MAX_SEQUENCE_DIGITS:
        return None
    return int(digits or "0")


__all__ = [
    "STORED_ID_RE",
    "is_blank",
    "as_utc",
    "date_bucket",
    "format_management_id",
    "parse_sequence",
]
