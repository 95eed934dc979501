"""
Registration allocator — bib-number assignment and idempotent
(re)registration of athletes into a championship and all of its races.

Flow of register_members:
  1. partition the selected athletes by their existing championship row
     (cancelled → reactivate, confirmed → keep, none → insert)
  2. reactivate cancelled rows; the bib number is kept
  3. insert new rows with fresh bib numbers, retrying on bib conflicts
  4. fan out to every active race of the championship with the same bib

register_athlete runs the same steps for one athlete identified by their
membership number. It creates the athlete when unknown and rejects one
already confirmed.

Functions never commit. The caller's unit of work makes the whole sequence
atomic; bib conflicts are isolated in a SAVEPOINT so a retry keeps steps 1–2.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from pydantic import ValidationError
from sqlalchemy import func, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from comunimo.config import settings
from comunimo.models.models import (
    Championship,
    ChampionshipRegistration,
    Member,
    Race,
    RaceRegistration,
    RegistrationStatus,
    Society,
)
from comunimo.services.bib_service import format_bib_number, next_bib_numbers, next_race_bib_numbers
from comunimo.services.category_service import resolve_category
from comunimo.services.errors import (
    AlreadyRegisteredError,
    BibAllocationError,
    InvalidSelectionError,
    NotFoundError,
    RaceFullError,
)
from comunimo.validators import AthleteSignup, MemberSelection, first_error_message

logger = logging.getLogger(__name__)

BibAllocator = Callable[[AsyncSession, int, int], Awaitable[List[int]]]


@dataclass
class RegistrationResult:
    """Outcome of a registration request, rows in selection order."""
    registrations: list = field(default_factory=list)
    inserted: int = 0
    reactivated: int = 0
    unchanged: int = 0
    race_rows: int = 0      # race registrations inserted or reactivated by the fan-out

    @property
    def processed(self) -> int:
        return len(self.registrations)

    @property
    def bib_numbers(self) -> Dict[int, Optional[int]]:
        return {r.member_id: r.bib_number for r in self.registrations}


# ── Championship registration ─────────────────────────────────────────────────

async def register_members(
    session: AsyncSession,
    championship_id: int,
    society_id: int,
    member_ids: Sequence[int],
    created_by: Optional[int] = None,
    allocate: BibAllocator = next_bib_numbers,
) -> RegistrationResult:
    """
    Register athletes of a society into a championship and every one of its races.

    Safe to repeat: confirmed athletes are left untouched (their race rows are
    reconciled), cancelled ones are reactivated with their old bib number.
    """
    ids = _validate_selection(member_ids)

    championship = await session.get(Championship, championship_id)
    if championship is None or not championship.is_active:
        raise NotFoundError("Campionato non trovato o non attivo.")
    await _require_active_society(session, society_id)
    members = await _load_members(session, ids)

    result = await session.execute(
        select(ChampionshipRegistration).where(
            ChampionshipRegistration.championship_id == championship_id,
            ChampionshipRegistration.member_id.in_(ids),
        )
    )
    existing = {r.member_id: r for r in result.scalars().all()}

    outcome = RegistrationResult()
    to_insert: List[Member] = []
    for mid in ids:
        reg = existing.get(mid)
        if reg is None:
            to_insert.append(members[mid])
        elif reg.status == RegistrationStatus.CANCELLED:
            reg.status = RegistrationStatus.CONFIRMED
            outcome.reactivated += 1
        else:
            outcome.unchanged += 1

    if to_insert:
        def build(member: Member, bib: int) -> ChampionshipRegistration:
            return ChampionshipRegistration(
                championship_id=championship_id,
                member_id=member.id,
                society_id=society_id,
                bib_number=bib,
                organization=member.organization,
                category=resolve_category(member),
                status=RegistrationStatus.CONFIRMED,
                created_by=created_by,
            )

        inserted = await _insert_with_fresh_bibs(
            session, championship_id, to_insert, build, allocate
        )
        existing.update({r.member_id: r for r in inserted})
        outcome.inserted = len(inserted)

    outcome.registrations = [existing[mid] for mid in ids]
    outcome.race_rows = await _fan_out_to_races(session, championship_id, outcome.registrations)

    logger.info(
        "Championship %d: %d athletes registered for society %d "
        "(new=%d reactivated=%d unchanged=%d race_rows=%d)",
        championship_id, outcome.processed, society_id,
        outcome.inserted, outcome.reactivated, outcome.unchanged, outcome.race_rows,
    )
    return outcome


async def _fan_out_to_races(
    session: AsyncSession,
    championship_id: int,
    registrations: List[ChampionshipRegistration],
) -> int:
    """Ensure a confirmed race row, sharing the championship bib, in every active race."""
    result = await session.execute(
        select(Race.id)
        .where(Race.championship_id == championship_id, Race.is_active.is_(True))
        .order_by(Race.event_number.asc().nullslast(), Race.id)
    )
    race_ids = list(result.scalars().all())
    if not race_ids or not registrations:
        return 0

    member_ids = [r.member_id for r in registrations]
    result = await session.execute(
        select(RaceRegistration).where(
            RaceRegistration.event_id.in_(race_ids),
            RaceRegistration.member_id.in_(member_ids),
        )
    )
    existing = {(r.event_id, r.member_id): r for r in result.scalars().all()}

    written = 0
    for race_id in race_ids:
        for reg in registrations:
            race_reg = existing.get((race_id, reg.member_id))
            if race_reg is None:
                session.add(RaceRegistration(
                    event_id=race_id,
                    member_id=reg.member_id,
                    society_id=reg.society_id,
                    bib_number=reg.bib_number,
                    organization=reg.organization,
                    category=reg.category,
                    status=RegistrationStatus.CONFIRMED,
                ))
                written += 1
            elif race_reg.status == RegistrationStatus.CANCELLED:
                race_reg.status       = RegistrationStatus.CONFIRMED
                race_reg.bib_number   = reg.bib_number
                race_reg.organization = reg.organization
                race_reg.category     = reg.category
                written += 1
    try:
        await session.flush()
    except IntegrityError as exc:
        # Another request registered the athlete into the race meanwhile.
        if "unique" not in str(exc.orig).lower():
            raise
        raise AlreadyRegisteredError() from exc
    return written


async def cancel_registration(session: AsyncSession, registration_id: int) -> int:
    """
    Cancel a championship registration and the athlete's rows in all its races.
    Returns the number of race registrations touched.
    """
    reg = await session.get(ChampionshipRegistration, registration_id)
    if reg is None:
        raise NotFoundError("Iscrizione non trovata.")
    reg.status = RegistrationStatus.CANCELLED

    result = await session.execute(
        select(Race.id).where(Race.championship_id == reg.championship_id)
    )
    race_ids = list(result.scalars().all())
    cancelled = 0
    if race_ids:
        res = await session.execute(
            update(RaceRegistration)
            .where(
                RaceRegistration.member_id == reg.member_id,
                RaceRegistration.event_id.in_(race_ids),
            )
            .values(status=RegistrationStatus.CANCELLED)
        )
        cancelled = res.rowcount
    await session.flush()

    logger.info(
        "Championship %d: registration %d cancelled (member %d, %d race rows)",
        reg.championship_id, reg.id, reg.member_id, cancelled,
    )
    return cancelled


# ── Athlete self-registration ─────────────────────────────────────────────────

async def register_athlete(
    session: AsyncSession,
    signup: AthleteSignup,
    championship_id: Optional[int] = None,
    created_by: Optional[int] = None,
    allocate: BibAllocator = next_bib_numbers,
) -> RegistrationResult:
    """
    Register one athlete from their own details.

    The athlete is looked up by membership number + organization and created
    when unknown. Without championship_id the newest active championship is
    used. A cancelled registration is reactivated with its old bib number;
    a confirmed one is rejected.
    """
    championship = await _signup_championship(session, championship_id)

    society = None
    if signup.society_code:
        society = await session.scalar(
            select(Society).where(Society.society_code == signup.society_code)
        )
    society_id = society.id if society else None

    member = await session.scalar(
        select(Member).where(
            Member.membership_number == signup.membership_number,
            Member.organization == signup.organization,
        )
    )
    if member is None:
        member = Member(
            society_id=society_id,
            first_name=signup.first_name,
            last_name=signup.last_name,
            birth_date=signup.birth_date,
            gender=signup.gender,
            membership_number=signup.membership_number,
            organization=signup.organization,
            category=signup.category,
        )
        session.add(member)
        await session.flush()
        logger.info(
            "New athlete %d from self-registration (%s %s)",
            member.id, signup.organization, signup.membership_number,
        )

    reg = await session.scalar(
        select(ChampionshipRegistration).where(
            ChampionshipRegistration.championship_id == championship.id,
            ChampionshipRegistration.member_id == member.id,
        )
    )
    outcome = RegistrationResult()
    if reg is not None and reg.status == RegistrationStatus.CONFIRMED:
        raise AlreadyRegisteredError(
            "Questo atleta è già iscritto al campionato "
            f"con pettorale n° {format_bib_number(reg.bib_number)}."
        )
    if reg is not None:
        reg.status = RegistrationStatus.CONFIRMED
        outcome.reactivated = 1
    else:
        # Unknown societies are kept as a note for the committee.
        notes = None
        if society is None and (signup.society_name or signup.society_code):
            notes = f"Società: {signup.society_name or '-'} ({signup.society_code or '-'})"

        def build(m: Member, bib: int) -> ChampionshipRegistration:
            return ChampionshipRegistration(
                championship_id=championship.id,
                member_id=m.id,
                society_id=society_id,
                bib_number=bib,
                organization=m.organization,
                category=resolve_category(m),
                status=RegistrationStatus.CONFIRMED,
                notes=notes,
                created_by=created_by,
            )

        (reg,) = await _insert_with_fresh_bibs(session, championship.id, [member], build, allocate)
        outcome.inserted = 1

    outcome.registrations = [reg]
    outcome.race_rows = await _fan_out_to_races(session, championship.id, outcome.registrations)

    logger.info(
        "Championship %d: athlete %d self-registered with bib %s (reactivated=%d race_rows=%d)",
        championship.id, member.id, reg.bib_number, outcome.reactivated, outcome.race_rows,
    )
    return outcome


async def _signup_championship(
    session: AsyncSession,
    championship_id: Optional[int],
) -> Championship:
    if championship_id is not None:
        championship = await session.get(Championship, championship_id)
    else:
        championship = await session.scalar(
            select(Championship)
            .where(Championship.is_active.is_(True))
            .order_by(Championship.created_at.desc(), Championship.id.desc())
            .limit(1)
        )
    if championship is None or not championship.is_active:
        raise NotFoundError("Nessun campionato attivo trovato. Contatta il comitato.")
    return championship


# ── Single-race registration ──────────────────────────────────────────────────

async def register_race_members(
    session: AsyncSession,
    race_id: int,
    society_id: int,
    member_ids: Sequence[int],
    allocate: BibAllocator = next_race_bib_numbers,
) -> RegistrationResult:
    """Register athletes into a standalone race (no championship involved)."""
    ids = _validate_selection(member_ids)

    race = await session.get(Race, race_id)
    if race is None or not race.is_active:
        raise NotFoundError("Gara non trovata o non attiva.")
    if not race.is_standalone:
        raise InvalidSelectionError(
            "La gara fa parte di un campionato: usa l'iscrizione al campionato."
        )
    await _require_active_society(session, society_id)
    members = await _load_members(session, ids)

    result = await session.execute(
        select(RaceRegistration).where(
            RaceRegistration.event_id == race_id,
            RaceRegistration.member_id.in_(ids),
        )
    )
    existing = {r.member_id: r for r in result.scalars().all()}

    to_reactivate = [existing[mid] for mid in ids
                     if mid in existing and existing[mid].status == RegistrationStatus.CANCELLED]
    to_insert = [members[mid] for mid in ids if mid not in existing]

    if race.max_participants is not None:
        confirmed = await session.scalar(
            select(func.count(RaceRegistration.id)).where(
                RaceRegistration.event_id == race_id,
                RaceRegistration.status == RegistrationStatus.CONFIRMED,
            )
        )
        if (confirmed or 0) + len(to_reactivate) + len(to_insert) > race.max_participants:
            raise RaceFullError()

    outcome = RegistrationResult(
        reactivated=len(to_reactivate),
        unchanged=len(ids) - len(to_reactivate) - len(to_insert),
    )
    for reg in to_reactivate:
        reg.status = RegistrationStatus.CONFIRMED

    if to_insert:
        def build(member: Member, bib: int) -> RaceRegistration:
            return RaceRegistration(
                event_id=race_id,
                member_id=member.id,
                society_id=society_id,
                bib_number=bib,
                organization=member.organization,
                category=resolve_category(member),
                status=RegistrationStatus.CONFIRMED,
            )

        inserted = await _insert_with_fresh_bibs(session, race_id, to_insert, build, allocate)
        existing.update({r.member_id: r for r in inserted})
        outcome.inserted = len(inserted)

    outcome.registrations = [existing[mid] for mid in ids]
    await session.flush()

    logger.info(
        "Race %d: %d athletes registered for society %d (new=%d reactivated=%d unchanged=%d)",
        race_id, outcome.processed, society_id,
        outcome.inserted, outcome.reactivated, outcome.unchanged,
    )
    return outcome


async def cancel_race_registration(session: AsyncSession, registration_id: int) -> RaceRegistration:
    """
    Cancel one standalone race registration.

    Stage rows follow their championship registration and are cancelled
    through cancel_registration only.
    """
    reg = await session.get(RaceRegistration, registration_id)
    if reg is None:
        raise NotFoundError("Iscrizione non trovata.")
    race = await session.get(Race, reg.event_id)
    if not race.is_standalone:
        raise InvalidSelectionError(
            "La gara fa parte di un campionato: cancella l'iscrizione al campionato."
        )
    reg.status = RegistrationStatus.CANCELLED
    await session.flush()
    return reg


# ── Helpers ───────────────────────────────────────────────────────────────────

def _validate_selection(member_ids: Sequence[int]) -> List[int]:
    try:
        return MemberSelection(member_ids=list(member_ids)).member_ids
    except ValidationError as exc:
        raise InvalidSelectionError(first_error_message(exc)) from exc


async def _require_active_society(session: AsyncSession, society_id: int) -> Society:
    society = await session.get(Society, society_id)
    if society is None or not society.is_active:
        raise NotFoundError("Società non trovata o non attiva.")
    return society


async def _load_members(session: AsyncSession, ids: List[int]) -> Dict[int, Member]:
    result = await session.execute(select(Member).where(Member.id.in_(ids)))
    members = {m.id: m for m in result.scalars().all()}
    missing = [mid for mid in ids if mid not in members]
    if missing:
        raise NotFoundError(f"Atleti non trovati: {', '.join(map(str, missing))}.")
    return members


async def _insert_with_fresh_bibs(
    session: AsyncSession,
    scope_id: int,
    members: List[Member],
    build: Callable[[Member, int], object],
    allocate: BibAllocator,
) -> list:
    """
    Insert one row per member with newly allocated bib numbers.

    A bib-number collision (another caller allocated the same numbers) rolls
    back the savepoint and retries with fresh numbers.
    """
    attempts = settings.BIB_MAX_ATTEMPTS
    for attempt in range(1, attempts + 1):
        bibs = await allocate(session, scope_id, len(members))
        rows = [build(member, bib) for member, bib in zip(members, bibs)]
        try:
            async with session.begin_nested():
                session.add_all(rows)
        except IntegrityError as exc:
            # Rows that never reached the database must not be flushed again.
            for row in rows:
                if row in session:
                    session.expunge(row)
            # Driver message only: the statement text names every column.
            message = str(exc.orig)
            if "unique" not in message.lower():
                raise
            if "bib_number" not in message:
                raise AlreadyRegisteredError() from exc
            logger.warning(
                "Bib number conflict in scope %d (attempt %d/%d), retrying",
                scope_id, attempt, attempts,
            )
            continue
        return rows

    logger.error("Bib allocation failed in scope %d after %d attempts", scope_id, attempts)
    raise BibAllocationError(scope_id, attempts)
