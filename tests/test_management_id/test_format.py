# tests/test_management_id/test_format.py

from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import pytest

from vidcms.services.maintenance_service import RepairResult
from vidcms.utils.management_id import (
    date_bucket,
    format_management_id,
    is_blank,
    parse_sequence,
)

SEOUL = ZoneInfo("Asia/Seoul")


def test_bucket_uses_management_zone_not_utc():
    # 2025-12-26 15:00 UTC is already 2025-12-27 in Seoul
    assert date_bucket(datetime(2025, 12, 26, 15, 0, tzinfo=timezone.utc), SEOUL) == "251227"
    assert date_bucket(datetime(2025, 12, 26, 15, 0, tzinfo=timezone.utc), ZoneInfo("UTC")) == "251226"


def test_bucket_midnight_boundary_is_one_millisecond_wide():
    midnight = datetime(2025, 12, 26, 15, 0, tzinfo=timezone.utc)
    assert date_bucket(midnight - timedelta(milliseconds=1), SEOUL) == "251226"
    assert date_bucket(midnight, SEOUL) == "251227"


def test_naive_datetimes_are_utc():
    assert date_bucket(datetime(2025, 12, 26, 15, 0), SEOUL) == "251227"


def test_format_pads_to_minimum_width():
    assert format_management_id("251227", 1, 3) == "251227-001"
    assert format_management_id("251227", 42, 3) == "251227-042"
    assert format_management_id("251227", 7, 2) == "251227-07"


def test_format_never_truncates():
    assert format_management_id("251227", 1000, 3) == "251227-1000"


def test_format_rejects_non_positive_sequence():
    with pytest.raises(ValueError):
        format_management_id("251227", 0, 3)


@pytest.mark.parametrize(
    "value,bucket,expected",
    [
        ("251227-001", None, 1),
        ("251227-09", None, 9),
        ("251227-1000", None, 1000),
        (" 251227-003 ", None, 3),
        ("251227-010", "251227", 10),
        ("251226-010", "251227", None),
        ("20251227-001", None, None),
        ("bad-id", None, None),
        ("", None, None),
        (None, None, None),
    ],
)
def test_parse_sequence(value, bucket, expected):
    assert parse_sequence(value, bucket) == expected


def test_is_blank():
    assert is_blank(None)
    assert is_blank("")
    assert is_blank("   ")
    assert not is_blank("251227-001")


def test_repair_result_response_shape():
    assert RepairResult(updated=4).as_response() == {"ok": True, "updated": 4}


def test_parse_sequence_ignores_oversized_suffixes():
    assert parse_sequence("251227-" + "1" * 5000) is None
    assert parse_sequence("251227-0000000000000000000000007") == 7
