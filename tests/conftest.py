"""
Shared pytest fixtures for ComUniMo tests.

Sets required environment variables BEFORE any comunimo module is imported so
that pydantic-settings and SQLAlchemy engine initialisation use safe test values.
"""
from __future__ import annotations

import os
from datetime import date
from typing import AsyncGenerator, Optional

# ── Set env vars before any comunimo import ───────────────────────────────────
os.environ.setdefault("BOT_TOKEN", "test-token-for-pytest")
os.environ.setdefault("ADMIN_IDS", "123456789")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

# ── Third-party ───────────────────────────────────────────────────────────────
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# ── comunimo imports (safe after env vars are set) ────────────────────────────
from comunimo.models.base import Base, enable_sqlite_savepoints


# ── DB fixtures ───────────────────────────────────────────────────────────────

@pytest.fixture
async def async_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Yield a fresh AsyncSession backed by an isolated in-memory SQLite database.
    Schema is created fresh for every test function; engine is always disposed
    on teardown, even if the test raises an exception.
    """
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    enable_sqlite_savepoints(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    try:
        async with factory() as session:
            yield session
    finally:
        await engine.dispose()


# ── Mock helpers ──────────────────────────────────────────────────────────────

class _MockMember:
    """Minimal athlete object for category tests (no DB required)."""

    def __init__(
        self,
        birth_date: Optional[date],
        gender: Optional[str],
        category: Optional[str] = None,
    ) -> None:
        self.birth_date = birth_date
        self.gender     = gender
        self.category   = category


@pytest.fixture
def make_member():
    """Factory fixture — returns a callable that builds a _MockMember."""
    return _MockMember
