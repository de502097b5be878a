from __future__ import annotations

"""
Video list ordering
===================

`order_videos()` puts videos in display order without touching the store:

1. manual rank (`batch_order`) ascending; ranked videos first
2. management id, newest first; parseable ids before unparseable ones
3. creation time, newest first; videos with a timestamp first
4. unparseable ids by a CRC-32 key of the string; any id before none
5. input order

Records may be ORM rows, pydantic models, plain objects or dicts, and may
use the field names other clients send (`batchOrder`, `videoManageNo`,
`createdAt`, ...).
"""

import logging
import math
import re
import zlib
from datetime import datetime
from functools import cmp_to_key
from typing import Any, Callable, Iterable, List, Optional, Sequence

from vidcms.utils.management_id import as_utc

logger = logging.getLogger(__name__)

RANK_FIELDS = ("batch_order", "batchOrder", "manual_rank", "manualRank", "order")
ID_FIELDS = (
    "management_id",
    "managementId",
    "video_manage_no",
    "videoManageNo",
    "management_no",
    "managementNo",
)
TIMESTAMP_FIELDS = ("created_at", "createdAt", "uploaded_at", "uploadedAt")

_SEQ_LIMIT = 10**6
_SEQ_MAX_DIGITS = 6
_SEPARATED_RE = re.compile(r"^(\d{6}|\d{8})-(\d+)$")
_DIGITS_RE = re.compile(r"^\d+$")
_RUN_RE = re.compile(r"\d+")

# Epoch numbers above this are milliseconds
_EPOCH_MS_THRESHOLD = 10**11


# ─────────────────────────────────────────────────────────────
# 🔢 Management-id sort keys
# ─────────────────────────────────────────────────────────────
def _date_key(digits: str, *, min_year: int = 0, max_year: int = 9999) -> Optional[int]:
    if len(digits) == 6:
        year = 2000 + int(digits[:2])
        month, day = int(digits[2:4]), int(digits[4:6])
    elif len(digits) == 8:
        year = int(digits[:4])
        month, day = int(digits[4:6]), int(digits[6:8])
    else:
        return None
    if not (1 <= month <= 12 and 1 <= day <= 31 and min_year <= year <= max_year):
        return None
    return year * 10000 + month * 100 + day


def _compose(date_digits: str, seq_digits: str, **limits: int) -> Optional[int]:
    date = _date_key(date_digits, **limits)
    if date is None:
        return None
    if len(seq_digits.lstrip("0")) > _SEQ_MAX_DIGITS:
        return None
    seq = int(seq_digits) if seq_digits else 0
    return date * _SEQ_LIMIT + seq


def _digits_key(digits: str) -> Optional[int]:
    if len(digits) >= 8:
        key = _compose(digits[:8], digits[8:], min_year=1900, max_year=2099)
        if key is not None:
            return key
    if len(digits) >= 6:
        return _compose(digits[:6], digits[6:])
    return None


def _clean_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    try:
        text = str(value).strip()
    except ValueError:
        # ints past the str() digit limit
        return None
    if not text or text == "-":
        return None
    return text


def management_id_sort_key(value: Any) -> Optional[int]:
    """Numeric key that grows with date then sequence, or None.

    `yyyymmdd * 10**6 + sequence`. Accepts `YYMMDD-N`, `YYYYMMDD-N`, bare
    digits (with or without a sequence) and digit runs inside other text
    such as `ABC-241213-001`.

        >>> management_id_sort_key("251227-001")
        20251227000001
    """
    text = _clean_id(value)
    if text is None:
        return None

    m = _SEPARATED_RE.match(text)
    if m:
        return _compose(m.group(1), m.group(2))

    if _DIGITS_RE.match(text):
        return _digits_key(text)

    runs = _RUN_RE.findall(text)
    if len(runs) == 1:
        return _digits_key(runs[0])
    if len(runs) >= 2:
        return _compose("".join(runs[:-1]), runs[-1])
    return None


def fallback_sort_key(value: Any) -> int:
    """Stable CRC-32 of the stripped identifier string."""
    return zlib.crc32(str(value).strip().encode("utf-8"))


# ─────────────────────────────────────────────────────────────
# 🧲 Field extraction
# ─────────────────────────────────────────────────────────────
def _field(record: Any, names: Sequence[str]) -> Any:
    for name in names:
        if isinstance(record, dict):
            value = record.get(name)
        else:
            value = getattr(record, name, None)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _rank(record: Any) -> Optional[float]:
    for name in RANK_FIELDS:
        value = _field(record, (name,))
        if value is None or isinstance(value, bool):
            continue
        try:
            number = float(value)
        except (TypeError, ValueError, OverflowError):
            continue
        if not math.isnan(number):
            return number
    return None


def _epoch_seconds(number: float) -> Optional[float]:
    if not math.isfinite(number):
        return None
    return number / 1000.0 if abs(number) > _EPOCH_MS_THRESHOLD else number


def _timestamp(record: Any) -> Optional[float]:
    value = _field(record, TIMESTAMP_FIELDS)
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        return as_utc(value).timestamp()
    if isinstance(value, (int, float)):
        try:
            return _epoch_seconds(float(value))
        except OverflowError:
            return None
    text = str(value).strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        return as_utc(datetime.fromisoformat(text)).timestamp()
    except ValueError:
        try:
            return _epoch_seconds(float(text))
        except ValueError:
            return None


class _Keys:
    __slots__ = ("rank", "id_key", "created", "raw_id")

    def __init__(self, record: Any) -> None:
        self.rank = _rank(record)
        self.raw_id = _clean_id(_field(record, ID_FIELDS))
        self.id_key = management_id_sort_key(self.raw_id)
        if self.raw_id is not None and self.id_key is None:
            logger.debug("unparseable management id %r; using fallback key", self.raw_id)
        self.created = _timestamp(record)


# ─────────────────────────────────────────────────────────────
# ⚖️ Comparator pipeline
# ─────────────────────────────────────────────────────────────
def _present_first(a: Any, b: Any) -> Optional[int]:
    if a is not None and b is None:
        return -1
    if a is None and b is not None:
        return 1
    return None


def _cmp(a: Any, b: Any) -> int:
    return (a > b) - (a < b)


def _by_rank(a: _Keys, b: _Keys) -> int:
    if a.rank is not None and b.rank is not None:
        return _cmp(a.rank, b.rank)
    return _present_first(a.rank, b.rank) or 0


def _by_id_key(a: _Keys, b: _Keys) -> int:
    if a.id_key is not None and b.id_key is not None:
        return _cmp(b.id_key, a.id_key)
    return _present_first(a.id_key, b.id_key) or 0


def _by_created(a: _Keys, b: _Keys) -> int:
    if a.created is not None and b.created is not None:
        return _cmp(b.created, a.created)
    return _present_first(a.created, b.created) or 0


def _by_fallback(a: _Keys, b: _Keys) -> int:
    if a.raw_id is not None and b.raw_id is not None:
        return _cmp(fallback_sort_key(a.raw_id), fallback_sort_key(b.raw_id))
    return _present_first(a.raw_id, b.raw_id) or 0


STAGES: Sequence[Callable[[_Keys, _Keys], int]] = (_by_rank, _by_id_key, _by_created, _by_fallback)


def _compare(a: _Keys, b: _Keys) -> int:
    for stage in STAGES:
        result = stage(a, b)
        if result:
            return result
    return 0


def order_videos(records: Iterable[Any]) -> List[Any]:
    """Return `records` in display order; the input is not modified."""
    items = list(records)
    if len(items) < 2:
        return items
    keyed = [(_Keys(r), r) for r in items]
    keyed.sort(key=cmp_to_key(lambda x, y: _compare(x[0], y[0])))
    return [r for _, r in keyed]


__all__ = [
    "order_videos",
    "management_id_sort_key",
    "fallback_sort_key",
    "RANK_FIELDS",
    "ID_FIELDS",
    "TIMESTAMP_FIELDS",
]
