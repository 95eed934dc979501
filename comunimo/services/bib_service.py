"""
Bib-number authority.

Numbers are allocated above the highest number ever used in the scope
(cancelled rows included), so a cancelled athlete never loses their number
to someone else and can always be reactivated with it.

The allocation is optimistic: two concurrent callers can receive the same
numbers. The unique constraint rejects the loser, who retries
(see registration_service).
"""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from comunimo.models.models import ChampionshipRegistration, RaceRegistration


async def next_bib_numbers(
    session: AsyncSession,
    championship_id: int,
    count: int,
) -> List[int]:
    """Next `count` consecutive bib numbers for a championship."""
    result = await session.execute(
        select(func.max(ChampionshipRegistration.bib_number))
        .where(ChampionshipRegistration.championship_id == championship_id)
    )
    return _sequence_after(result.scalar_one_or_none(), count)


async def next_race_bib_numbers(
    session: AsyncSession,
    race_id: int,
    count: int,
) -> List[int]:
    """Next `count` consecutive bib numbers for a standalone race."""
    result = await session.execute(
        select(func.max(RaceRegistration.bib_number))
        .where(RaceRegistration.event_id == race_id)
    )
    return _sequence_after(result.scalar_one_or_none(), count)


def _sequence_after(highest: Optional[int], count: int) -> List[int]:
    start = (highest or 0) + 1
    return list(range(start, start + max(count, 0)))


def format_bib_number(bib_number: Optional[int]) -> str:
    """Display form: 7 → "007"."""
    if bib_number is None:
        return "—"
    return f"{bib_number:03d}"
