"""
Championship service — database operations for operators, societies,
athletes, championships, races and registration listings.

All functions receive an AsyncSession parameter and are intentionally
pure async functions (no class coupling) for easy unit testing.
Nothing here commits: the caller owns the transaction.
"""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from comunimo.models.models import (
    User,
    Society,
    Member,
    Championship,
    ChampionshipType,
    Race,
    ChampionshipRegistration,
    RaceRegistration,
    RegistrationStatus,
)
from comunimo.services.errors import NotFoundError


# ── Operators ─────────────────────────────────────────────────────────────────

async def upsert_user(
    session: AsyncSession,
    telegram_id: int,
    first_name: str,
    last_name: Optional[str],
    username: Optional[str],
) -> User:
    """Create or update a Telegram operator record."""
    result = await session.execute(
        select(User).where(User.telegram_id == telegram_id)
    )
    user = result.scalar_one_or_none()
    if user is None:
        user = User(
            telegram_id=telegram_id,
            first_name=first_name,
            last_name=last_name,
            username=username,
        )
        session.add(user)
        await session.flush()
    else:
        user.first_name = first_name
        user.last_name  = last_name
        user.username   = username
    return user


async def get_user(session: AsyncSession, telegram_id: int) -> Optional[User]:
    result = await session.execute(
        select(User)
        .where(User.telegram_id == telegram_id)
        .options(selectinload(User.societies))
    )
    return result.scalar_one_or_none()


async def assign_society(session: AsyncSession, telegram_id: int, society_id: int) -> None:
    """Let an operator manage a society."""
    user = await get_user(session, telegram_id)
    if user is None:
        raise NotFoundError("Utente sconosciuto: deve prima avviare il bot con /start.")
    society = await session.get(Society, society_id)
    if society is None:
        raise NotFoundError("Società non trovata.")
    if society not in user.societies:
        user.societies.append(society)
    await session.flush()


async def can_manage_society(
    session: AsyncSession,
    telegram_id: int,
    society_id: int,
    is_admin: bool = False,
) -> bool:
    """Admins manage every society; other operators only their own."""
    if is_admin:
        return True
    user = await get_user(session, telegram_id)
    if user is None:
        return False
    return any(s.id == society_id for s in user.societies)


async def list_manageable_societies(
    session: AsyncSession,
    telegram_id: int,
    is_admin: bool = False,
) -> List[Society]:
    if is_admin:
        return await list_societies(session)
    user = await get_user(session, telegram_id)
    if user is None:
        return []
    return sorted((s for s in user.societies if s.is_active), key=lambda s: s.name)


# ── Societies ─────────────────────────────────────────────────────────────────

async def create_society(
    session: AsyncSession,
    name: str,
    society_code: Optional[str] = None,
    organization: Optional[str] = None,
) -> Society:
    s = Society(name=name, society_code=society_code, organization=organization)
    session.add(s)
    await session.flush()
    return s


async def get_society(session: AsyncSession, society_id: int) -> Optional[Society]:
    return await session.get(Society, society_id)


async def list_societies(
    session: AsyncSession,
    include_inactive: bool = False,
) -> List[Society]:
    q = select(Society).order_by(Society.name)
    if not include_inactive:
        q = q.where(Society.is_active.is_(True))
    result = await session.execute(q)
    return list(result.scalars().all())


# ── Members ───────────────────────────────────────────────────────────────────

async def create_member(
    session: AsyncSession,
    society_id: Optional[int],
    first_name: str,
    last_name: str,
    birth_date: Optional[date] = None,
    gender: Optional[str] = None,
    organization: Optional[str] = None,
    category: Optional[str] = None,
    membership_number: Optional[str] = None,
) -> Member:
    m = Member(
        society_id=society_id,
        first_name=first_name,
        last_name=last_name,
        birth_date=birth_date,
        gender=gender,
        membership_number=membership_number,
        organization=organization,
        category=category,
    )
    session.add(m)
    await session.flush()
    return m


async def list_members(
    session: AsyncSession,
    society_id: int,
    include_inactive: bool = False,
    organization: Optional[str] = None,
) -> List[Member]:
    q = (
        select(Member)
        .where(Member.society_id == society_id)
        .order_by(Member.last_name, Member.first_name)
    )
    if not include_inactive:
        q = q.where(Member.is_active.is_(True))
    if organization:
        q = q.where(Member.organization == organization)
    result = await session.execute(q)
    return list(result.scalars().all())


# ── Championships ─────────────────────────────────────────────────────────────

async def create_championship(
    session: AsyncSession,
    name: str,
    year: int,
    championship_type: str = ChampionshipType.CROSS_COUNTRY,
    season: Optional[str] = None,
) -> Championship:
    c = Championship(
        name=name,
        year=year,
        championship_type=championship_type,
        season=season,
    )
    session.add(c)
    await session.flush()
    return c


async def get_championship(
    session: AsyncSession,
    championship_id: int,
    load_races: bool = False,
) -> Optional[Championship]:
    q = select(Championship).where(Championship.id == championship_id)
    if load_races:
        q = q.options(selectinload(Championship.races))
    result = await session.execute(q)
    return result.scalar_one_or_none()


async def list_championships(
    session: AsyncSession,
    include_inactive: bool = False,
) -> List[Championship]:
    q = select(Championship).order_by(Championship.year.desc(), Championship.name)
    if not include_inactive:
        q = q.where(Championship.is_active.is_(True))
    result = await session.execute(q)
    return list(result.scalars().all())


# ── Races ─────────────────────────────────────────────────────────────────────

async def create_race(
    session: AsyncSession,
    title: str,
    event_date: date,
    championship_id: Optional[int] = None,
    event_number: Optional[int] = None,
    max_participants: Optional[int] = None,
    location: Optional[str] = None,
) -> Race:
    r = Race(
        title=title,
        event_date=event_date,
        championship_id=championship_id,
        event_number=event_number,
        max_participants=max_participants,
        location=location,
    )
    session.add(r)
    await session.flush()
    return r


async def get_race(session: AsyncSession, race_id: int) -> Optional[Race]:
    return await session.get(Race, race_id)


async def list_races(
    session: AsyncSession,
    championship_id: int,
    include_inactive: bool = False,
) -> List[Race]:
    """Stages of a championship in event_number order."""
    q = (
        select(Race)
        .where(Race.championship_id == championship_id)
        .order_by(Race.event_number.asc().nullslast(), Race.event_date, Race.id)
    )
    if not include_inactive:
        q = q.where(Race.is_active.is_(True))
    result = await session.execute(q)
    return list(result.scalars().all())


# ── Registration listings ─────────────────────────────────────────────────────

async def list_championship_registrations(
    session: AsyncSession,
    championship_id: int,
    include_cancelled: bool = False,
    society_id: Optional[int] = None,
) -> List[ChampionshipRegistration]:
    q = (
        select(ChampionshipRegistration)
        .where(ChampionshipRegistration.championship_id == championship_id)
        .options(selectinload(ChampionshipRegistration.member))
        .order_by(ChampionshipRegistration.bib_number)
    )
    if not include_cancelled:
        q = q.where(ChampionshipRegistration.status == RegistrationStatus.CONFIRMED)
    if society_id is not None:
        q = q.where(ChampionshipRegistration.society_id == society_id)
    result = await session.execute(q)
    return list(result.scalars().all())


async def get_championship_registration(
    session: AsyncSession,
    registration_id: int,
) -> Optional[ChampionshipRegistration]:
    result = await session.execute(
        select(ChampionshipRegistration)
        .where(ChampionshipRegistration.id == registration_id)
        .options(
            selectinload(ChampionshipRegistration.member),
            selectinload(ChampionshipRegistration.championship),
        )
    )
    return result.scalar_one_or_none()


async def list_race_registrations(
    session: AsyncSession,
    race_id: int,
    include_cancelled: bool = False,
) -> List[RaceRegistration]:
    q = (
        select(RaceRegistration)
        .where(RaceRegistration.event_id == race_id)
        .options(selectinload(RaceRegistration.member))
        .order_by(RaceRegistration.bib_number.asc().nullslast(), RaceRegistration.id)
    )
    if not include_cancelled:
        q = q.where(RaceRegistration.status == RegistrationStatus.CONFIRMED)
    result = await session.execute(q)
    return list(result.scalars().all())


async def registered_member_ids(session: AsyncSession, championship_id: int) -> set[int]:
    """Athletes holding a confirmed registration in the championship."""
    result = await session.execute(
        select(ChampionshipRegistration.member_id).where(
            ChampionshipRegistration.championship_id == championship_id,
            ChampionshipRegistration.status == RegistrationStatus.CONFIRMED,
        )
    )
    return set(result.scalars().all())
