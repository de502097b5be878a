# tests/test_ordering/test_video_ordering.py

import zlib
from datetime import datetime, timezone
from types import SimpleNamespace

import pytest

from vidcms.db.models.video import Video
from vidcms.services.video_ordering import (
    fallback_sort_key,
    management_id_sort_key,
    order_videos,
)


def _names(records):
    return [r["name"] for r in records]


# ──────────────────────────────────────────────────────────────────────
# Precedence
# ──────────────────────────────────────────────────────────────────────

def test_manual_rank_beats_newer_management_id():
    a = {"name": "A", "batch_order": 1}
    b = {"name": "B", "management_id": "251227-02"}
    c = {"name": "C", "management_id": "251227-01"}

    assert _names(order_videos([b, c, a])) == ["A", "B", "C"]


def test_ranks_ascend_and_equal_ranks_fall_through_to_ids():
    records = [
        {"name": "r2", "batch_order": 2, "management_id": "251227-009"},
        {"name": "r1-old", "batch_order": 1, "management_id": "251227-001"},
        {"name": "r1-new", "batch_order": 1, "management_id": "251227-002"},
    ]
    assert _names(order_videos(records)) == ["r1-new", "r1-old", "r2"]


def test_newer_ids_first_across_days():
    records = [
        {"name": "old", "management_id": "251226-099"},
        {"name": "new", "management_id": "251227-001"},
        {"name": "mid", "management_id": "251226-100"},
    ]
    assert _names(order_videos(records)) == ["new", "mid", "old"]


def test_malformed_id_sorts_after_all_well_formed_ids():
    records = [
        {"name": "bad", "management_id": "bad-id"},
        {"name": "none"},
        {"name": "good-old", "management_id": "240101-001"},
        {"name": "good-new", "management_id": "251227-001"},
    ]
    assert _names(order_videos(records)) == ["good-new", "good-old", "bad", "none"]


def test_created_at_breaks_ties_between_unidentified_records():
    records = [
        {"name": "no-time"},
        {"name": "older", "createdAt": "2025-12-01T00:00:00Z"},
        {"name": "newer", "created_at": "2025-12-27T00:00:00+09:00"},
    ]
    assert _names(order_videos(records)) == ["newer", "older", "no-time"]


def test_epoch_timestamps_in_seconds_and_milliseconds():
    records = [
        {"name": "2020", "createdAt": 1_600_000_000},
        {"name": "2023", "createdAt": 1_700_000_000_000},
    ]
    assert _names(order_videos(records)) == ["2023", "2020"]


def test_unparseable_ids_use_a_deterministic_fallback_key():
    x = {"name": "x", "management_id": "draft-a"}
    y = {"name": "y", "management_id": "draft-b"}
    expected = sorted([x, y], key=lambda r: zlib.crc32(r["management_id"].encode()))

    assert order_videos([x, y]) == expected
    assert order_videos([y, x]) == expected


def test_identical_records_keep_input_order():
    first = {"name": "1", "management_id": "251227-001"}
    second = {"name": "2", "management_id": "251227-001"}
    result = order_videos([first, second])

    assert result[0] is first
    assert result[1] is second


def test_ordering_is_idempotent():
    records = [
        {"name": "a", "batch_order": 3},
        {"name": "b", "management_id": "251227-004"},
        {"name": "c", "management_id": "oops"},
        {"name": "d", "createdAt": "2025-01-01T00:00:00Z"},
        {"name": "e"},
        {"name": "f", "batch_order": 1, "management_id": "251227-001"},
    ]
    once = order_videos(records)
    assert order_videos(once) == once


def test_input_is_not_modified():
    records = [{"name": "b", "management_id": "251227-001"}, {"name": "a", "batch_order": 1}]
    snapshot = list(records)
    order_videos(records)
    assert records == snapshot


# ──────────────────────────────────────────────────────────────────────
# Field aliases & record shapes
# ──────────────────────────────────────────────────────────────────────

def test_camel_case_and_legacy_field_names():
    records = [
        {"name": "manage-no", "videoManageNo": "251227-002"},
        {"name": "ranked", "batchOrder": 2},
        {"name": "camel", "managementId": "251227-003"},
        {"name": "order", "order": "1"},
    ]
    assert _names(order_videos(records)) == ["order", "ranked", "camel", "manage-no"]


def test_non_numeric_rank_is_ignored():
    records = [
        {"name": "junk-rank", "batch_order": "abc", "management_id": "251227-001"},
        {"name": "newer", "management_id": "251227-002"},
    ]
    assert _names(order_videos(records)) == ["newer", "junk-rank"]


def test_oversized_sequence_falls_back_instead_of_raising():
    long_id = "251227-" + "1" * 5000
    records = [
        {"name": "long", "management_id": long_id},
        {"name": "ok", "management_id": "251227-001"},
        {"name": "digits", "management_id": "20251227" + "9" * 5000},
    ]

    assert management_id_sort_key(long_id) is None
    assert _names(order_videos(records))[0] == "ok"
    assert sorted(_names(order_videos(records))[1:]) == ["digits", "long"]


def test_out_of_range_numbers_count_as_absent():
    ranks = [
        {"name": "huge-rank", "batch_order": 10**400, "management_id": "251227-001"},
        {"name": "newer", "management_id": "251227-002"},
    ]
    assert _names(order_videos(ranks)) == ["newer", "huge-rank"]

    stamps = [
        {"name": "huge-ts", "created_at": 10**400},
        {"name": "nan-ts", "created_at": "nan"},
        {"name": "dated", "created_at": 1766804400},
    ]
    assert _names(order_videos(stamps))[0] == "dated"


def test_objects_and_orm_rows():
    older = Video(management_id="251227-001", source_url="u1")
    newer = SimpleNamespace(
        management_id=None,
        batch_order=None,
        created_at=datetime(2025, 12, 27, tzinfo=timezone.utc),
    )
    ranked = SimpleNamespace(batch_order=5)

    assert order_videos([older, newer, ranked]) == [ranked, older, newer]


def test_empty_and_single_inputs():
    assert order_videos([]) == []
    only = {"name": "only"}
    assert order_videos([only]) == [only]


# ──────────────────────────────────────────────────────────────────────
# Sort keys
# ──────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "value",
    ["251227-001", "20251227-001", "251227001", "20251227001", "ABC-251227-001", " 251227-1 "],
)
def test_equivalent_spellings_share_a_key(value):
    assert management_id_sort_key(value) == 20251227000001


def test_date_only_values_have_sequence_zero():
    assert management_id_sort_key("251227") == 20251227000000
    assert management_id_sort_key("20251227") == 20251227000000


def test_key_grows_with_date_then_sequence():
    assert management_id_sort_key("251227-1000") > management_id_sort_key("251227-999")
    assert management_id_sort_key("251228-001") > management_id_sort_key("251227-999")


@pytest.mark.parametrize(
    "value",
    [None, "", "   ", "-", "bad-id", "hello", "251327-001", "251200-001", "251232-001", "251227-1234567", "12345"],
)
def test_unparseable_values(value):
    assert management_id_sort_key(value) is None


def test_fallback_key_is_crc32_of_stripped_string():
    assert fallback_sort_key("  draft-a ") == zlib.crc32(b"draft-a")
