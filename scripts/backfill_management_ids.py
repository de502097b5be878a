#!/usr/bin/env python3
"""
Video CMS • Backfill Management IDs
===================================

Assigns management ids to videos that have none, outside the HTTP process.
Runs the same repair as `POST /api/v1/admin/maintenance/regenerate-management-ids`
in a single transaction.

Usage
-----
    python scripts/backfill_management_ids.py --dry-run
    python scripts/backfill_management_ids.py --database-url sqlite:///./data/cms.db
"""

import argparse
import asyncio
import sys
from typing import Optional, Sequence

from vidcms.core.config import settings
from vidcms.core.exceptions import RepairFailedError
from vidcms.core.logger import logger
from vidcms.db.session import build_engine, build_session_maker
from vidcms.services.maintenance_service import RepairResult, regenerate_management_ids


async def run(database_url: Optional[str], dry_run: bool) -> RepairResult:
    engine = build_engine(database_url)
    try:
        async with build_session_maker(engine)() as session:
            return await regenerate_management_ids(session, dry_run=dry_run)
    finally:
        await engine.dispose()


def main(argv: Optional[Sequence[str]] = None) -> int:
    ap = argparse.ArgumentParser(description="Assign management ids to videos that have none.")
    ap.add_argument("--dry-run", action="store_true", help="Compute the assignment, then roll it back")
    ap.add_argument("--database-url", help=f"Database URL (default: {settings.DATABASE_URL})")
    args = ap.parse_args(argv)

    try:
        result = asyncio.run(run(args.database_url, args.dry_run))
    except RepairFailedError as exc:
        logger.error("Backfill failed: {}", exc.message)
        return 1

    mode = "would update" if result.dry_run else "updated"
    print(f"{mode} {result.updated} video(s); skipped {result.skipped_collisions} taken id(s)")
    for bucket, count in sorted(result.buckets.items()):
        print(f"  {bucket}: {count}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
