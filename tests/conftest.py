"""Shared fixtures for the commission release tests."""
import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import List, Optional, Set

import pytest
from sqlalchemy.pool import NullPool

from funnelhub.database import build_engine, build_session_factory, init_db
from funnelhub.schemas.commission_release import CommissionReleasedEmailData
from funnelhub.services.commission_release import CommissionNotifier


NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=timezone.utc)


class RecordingNotifier(CommissionNotifier):
    """Notifier that records every message and can be told to fail."""

    def __init__(self, fail_for: Optional[Set[str]] = None, fail_all: bool = False):
        self.sent: List[CommissionReleasedEmailData] = []
        self.attempts = 0
        self.fail_for = fail_for or set()
        self.fail_all = fail_all

    async def send_commission_released(self, data: CommissionReleasedEmailData) -> None:
        self.attempts += 1
        if self.fail_all or data.affiliate_owner_email in self.fail_for:
            raise ConnectionError("mail provider unavailable")
        self.sent.append(data)


class FakeReleaseService:
    """Stands in for CommissionReleaseService with a canned outcome."""

    def __init__(self, outcome):
        self.outcome = outcome
        self.calls = 0

    async def release_eligible_commissions(self):
        self.calls += 1
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


@asynccontextmanager
async def ledger_store(url: str, create_tables: bool = True):
    """Session factory on a throwaway SQLite database."""
    engine = build_engine(url, poolclass=NullPool)
    try:
        if create_tables:
            await init_db(engine)
        yield build_session_factory(engine)
    finally:
        await engine.dispose()


@pytest.fixture
def db_url(tmp_path) -> str:
    return f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def run():
    """Run a coroutine to completion on a fresh event loop."""
    return asyncio.run
