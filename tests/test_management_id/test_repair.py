# tests/test_management_id/test_repair.py

from datetime import timedelta

import pytest

from vidcms.core.exceptions import RepairFailedError
from vidcms.services import allocation_service, maintenance_service
from vidcms.services.maintenance_service import regenerate_management_ids
from tests.utils.factory import NOON_KST, add_video, management_ids

pytestmark = pytest.mark.anyio


async def test_fully_identified_store_is_untouched(db_session, session_factory):
    a = await add_video(session_factory, management_id="251227-001")
    b = await add_video(session_factory, management_id="251227-002")

    result = await regenerate_management_ids(db_session)

    assert result.updated == 0
    assert await management_ids(session_factory) == {a: "251227-001", b: "251227-002"}


async def test_repair_is_idempotent(session_factory):
    for i in range(3):
        await add_video(session_factory, created_at=NOON_KST + timedelta(minutes=i))

    async with session_factory() as session:
        first = await regenerate_management_ids(session)
    async with session_factory() as session:
        second = await regenerate_management_ids(session)

    assert first.updated == 3
    assert second.updated == 0
    assert sorted((await management_ids(session_factory)).values()) == [
        "251227-001",
        "251227-002",
        "251227-003",
    ]


async def test_existing_ids_are_never_overwritten(db_session, session_factory):
    kept = await add_video(session_factory, management_id="251227-001", created_at=NOON_KST + timedelta(hours=1))
    missing = await add_video(session_factory, created_at=NOON_KST)

    await regenerate_management_ids(db_session)

    ids = await management_ids(session_factory)
    assert ids[kept] == "251227-001"
    assert ids[missing] == "251227-002"


async def test_earlier_videos_get_smaller_sequences(db_session, session_factory):
    late = await add_video(session_factory, created_at=NOON_KST + timedelta(minutes=2))
    early = await add_video(session_factory, created_at=NOON_KST)
    middle = await add_video(session_factory, created_at=NOON_KST + timedelta(minutes=1))

    await regenerate_management_ids(db_session)

    ids = await management_ids(session_factory)
    assert (ids[early], ids[middle], ids[late]) == ("251227-001", "251227-002", "251227-003")


async def test_continues_after_current_max(db_session, session_factory):
    await add_video(session_factory, management_id="251227-007")
    missing = await add_video(session_factory)

    await regenerate_management_ids(db_session)

    assert (await management_ids(session_factory))[missing] == "251227-008"


async def test_bucket_comes_from_each_videos_own_created_at(db_session, session_factory):
    yesterday = await add_video(session_factory, created_at=NOON_KST - timedelta(days=1))
    today = await add_video(session_factory, created_at=NOON_KST)

    result = await regenerate_management_ids(db_session)

    ids = await management_ids(session_factory)
    assert ids[yesterday] == "251226-001"
    assert ids[today] == "251227-001"
    assert result.buckets == {"251226": 1, "251227": 1}


async def test_partitions_are_counted_separately(db_session, session_factory):
    await add_video(session_factory, management_id="251227-003", site_id="a")
    in_a = await add_video(session_factory, site_id="a")
    in_b = await add_video(session_factory, site_id="b")
    unpartitioned = await add_video(session_factory)

    await regenerate_management_ids(db_session)

    ids = await management_ids(session_factory)
    assert ids[in_a] == "251227-004"
    assert ids[in_b] == "251227-001"
    assert ids[unpartitioned] == "251227-001"


async def test_empty_string_counts_as_missing(db_session, session_factory):
    first = await add_video(session_factory, management_id="", created_at=NOON_KST)
    second = await add_video(session_factory, management_id="", created_at=NOON_KST + timedelta(seconds=1))

    result = await regenerate_management_ids(db_session)

    assert result.updated == 2
    ids = await management_ids(session_factory)
    assert (ids[first], ids[second]) == ("251227-001", "251227-002")


async def test_spaces_only_counts_as_missing(db_session, session_factory):
    video_id = await add_video(session_factory, management_id="   ")

    result = await regenerate_management_ids(db_session)

    assert result.updated == 1
    assert (await management_ids(session_factory))[video_id] == "251227-001"


async def test_dry_run_writes_nothing(db_session, session_factory):
    missing = await add_video(session_factory)

    result = await regenerate_management_ids(db_session, dry_run=True)

    assert result.dry_run is True
    assert result.updated == 1
    assert (await management_ids(session_factory))[missing] is None


async def test_taken_values_are_skipped(db_session, session_factory, monkeypatch):
    await add_video(session_factory, management_id="251227-001")
    await add_video(session_factory, management_id="251227-002")
    missing = await add_video(session_factory)

    async def _stale(db, *, bucket, site_id):
        return 0

    monkeypatch.setattr(allocation_service, "current_max_sequence", _stale)

    result = await regenerate_management_ids(db_session)

    assert result.updated == 1
    assert result.skipped_collisions == 2
    assert (await management_ids(session_factory))[missing] == "251227-003"


async def test_failure_rolls_back_the_whole_run(db_session, session_factory, monkeypatch):
    first = await add_video(session_factory, created_at=NOON_KST)
    second = await add_video(session_factory, created_at=NOON_KST + timedelta(minutes=1))

    real = maintenance_service._is_taken
    calls = []

    async def _fail_second(db, management_id, site_id):
        calls.append(management_id)
        if len(calls) == 2:
            raise RuntimeError("disk went away")
        return await real(db, management_id, site_id)

    monkeypatch.setattr(maintenance_service, "_is_taken", _fail_second)

    with pytest.raises(RepairFailedError) as ei:
        await regenerate_management_ids(db_session)

    assert ei.value.status_code == 500
    assert ei.value.extra == {"ok": False, "updated": 0}
    ids = await management_ids(session_factory)
    assert ids[first] is None
    assert ids[second] is None
