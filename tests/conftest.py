# tests/conftest.py
"""
Global test bootstrap
- Points the app's default engine at a throwaway SQLite file
- Sets a known maintenance key and a fast retry back-off
- Pulls in the db/app fixtures
"""

from __future__ import annotations

import os
import tempfile

# ──────────────────────────────────────────────────────────────────────────────
# 🌱 Test env (set BEFORE importing vidcms so settings pick it up)
# ──────────────────────────────────────────────────────────────────────────────
_TMP_DIR = tempfile.mkdtemp(prefix="vidcms-pytest-")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_TMP_DIR}/app.db"
os.environ["LOG_TO_FILE"] = "0"
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ["MANAGEMENT_ID_TIMEZONE"] = "Asia/Seoul"
os.environ["MANAGEMENT_ID_SEQUENCE_WIDTH"] = "3"
os.environ["ALLOCATION_RETRY_BACKOFF_MS"] = "1"
os.environ["MAINTENANCE_KEY"] = "test-maintenance-key"

# ──────────────────────────────────────────────────────────────────────────────
# 📦 Fixtures (db, app)
# ──────────────────────────────────────────────────────────────────────────────
from tests.fixtures.db import *   # noqa: F401,F403,E402
from tests.fixtures.app import *  # noqa: F401,F403,E402
