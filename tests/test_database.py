"""
Integration tests — Database CRUD via championship_service / bib_service.

Each test function receives a fresh in-memory SQLite database through the
`async_session` fixture defined in conftest.py.  No external services or
files are touched.

Coverage:
  - Operator upsert / lookup / society assignment and permissions
  - Society and athlete create / list / filters
  - Championship and race create / read / list ordering
  - Registration listings (cancelled filter, society filter)
  - Bib-number authority: next numbers, cancelled rows counted, formatting
"""
from __future__ import annotations

from datetime import date

import pytest

from comunimo.models.models import (
    ChampionshipRegistration,
    Organization,
    RegistrationStatus,
)
from comunimo.services.bib_service import (
    format_bib_number,
    next_bib_numbers,
    next_race_bib_numbers,
)
from comunimo.services.championship_service import (
    assign_society,
    can_manage_society,
    create_championship,
    create_member,
    create_race,
    create_society,
    get_championship,
    get_championship_registration,
    get_race,
    get_society,
    get_user,
    list_championship_registrations,
    list_championships,
    list_manageable_societies,
    list_members,
    list_races,
    list_societies,
    registered_member_ids,
    upsert_user,
)
from comunimo.services.errors import NotFoundError


# ─────────────────────────── Helpers ──────────────────────────────────────────

def _reg(championship_id: int, member_id: int, society_id: int, bib: int,
         status: str = RegistrationStatus.CONFIRMED) -> ChampionshipRegistration:
    return ChampionshipRegistration(
        championship_id=championship_id,
        member_id=member_id,
        society_id=society_id,
        bib_number=bib,
        status=status,
    )


# ─────────────────────────── Operators ───────────────────────────────────────

class TestUserCRUD:
    async def test_create_user(self, async_session) -> None:
        await upsert_user(async_session, 100, "Marco", "Rossi", "mrossi")
        await async_session.commit()

        fetched = await get_user(async_session, 100)
        assert fetched is not None
        assert fetched.first_name == "Marco"
        assert fetched.societies == []

    async def test_upsert_updates_existing_user(self, async_session) -> None:
        await upsert_user(async_session, 100, "Marco", "Rossi", "mrossi")
        await async_session.commit()
        await upsert_user(async_session, 100, "Marco Aurelio", None, "mar")
        await async_session.commit()

        fetched = await get_user(async_session, 100)
        assert fetched.first_name == "Marco Aurelio"
        assert fetched.last_name is None
        assert fetched.username == "mar"

    async def test_get_nonexistent_user_returns_none(self, async_session) -> None:
        assert await get_user(async_session, 99999) is None

    async def test_display_name(self, async_session) -> None:
        a = await upsert_user(async_session, 101, "Giulia", None, None)
        b = await upsert_user(async_session, 102, "Luca", "Bianchi", None)
        assert a.display_name == "Giulia"
        assert b.display_name == "Luca Bianchi"


class TestSocietyPermissions:
    async def test_assign_society_grants_management(self, async_session) -> None:
        await upsert_user(async_session, 200, "Anna", None, None)
        s = await create_society(async_session, "Atletica Carpi", "MO001", Organization.FIDAL)
        await async_session.commit()

        assert not await can_manage_society(async_session, 200, s.id)
        await assign_society(async_session, 200, s.id)
        await async_session.commit()
        assert await can_manage_society(async_session, 200, s.id)

    async def test_assign_society_twice_is_noop(self, async_session) -> None:
        await upsert_user(async_session, 200, "Anna", None, None)
        s = await create_society(async_session, "Atletica Carpi")
        await assign_society(async_session, 200, s.id)
        await assign_society(async_session, 200, s.id)
        await async_session.commit()

        user = await get_user(async_session, 200)
        assert [x.id for x in user.societies] == [s.id]

    async def test_assign_unknown_user_or_society_raises(self, async_session) -> None:
        await upsert_user(async_session, 200, "Anna", None, None)
        s = await create_society(async_session, "Atletica Carpi")
        await async_session.commit()

        with pytest.raises(NotFoundError):
            await assign_society(async_session, 999, s.id)
        with pytest.raises(NotFoundError):
            await assign_society(async_session, 200, 9999)

    async def test_admin_manages_everything(self, async_session) -> None:
        s = await create_society(async_session, "Podistica Modena")
        await async_session.commit()
        assert await can_manage_society(async_session, 999, s.id, is_admin=True)

    async def test_unknown_user_manages_nothing(self, async_session) -> None:
        s = await create_society(async_session, "Podistica Modena")
        assert not await can_manage_society(async_session, 999, s.id)
        assert await list_manageable_societies(async_session, 999) == []

    async def test_manageable_societies_skip_inactive(self, async_session) -> None:
        await upsert_user(async_session, 300, "Paolo", None, None)
        a = await create_society(async_session, "B Runners")
        b = await create_society(async_session, "A Runners")
        c = await create_society(async_session, "Dissolta")
        c.is_active = False
        for s in (a, b, c):
            await assign_society(async_session, 300, s.id)
        await async_session.commit()

        names = [s.name for s in await list_manageable_societies(async_session, 300)]
        assert names == ["A Runners", "B Runners"]

    async def test_admin_sees_all_active_societies(self, async_session) -> None:
        await create_society(async_session, "Uno")
        await create_society(async_session, "Due")
        await async_session.commit()
        assert len(await list_manageable_societies(async_session, 1, is_admin=True)) == 2


# ─────────────────────────── Societies & athletes ────────────────────────────

class TestSocietyCRUD:
    async def test_create_and_get_society(self, async_session) -> None:
        s = await create_society(async_session, "Atletica Carpi", "MO001", Organization.UISP)
        await async_session.commit()

        fetched = await get_society(async_session, s.id)
        assert fetched.name == "Atletica Carpi"
        assert fetched.organization == Organization.UISP
        assert fetched.is_active is True

    async def test_list_societies_inactive_filter(self, async_session) -> None:
        await create_society(async_session, "Attiva")
        closed = await create_society(async_session, "Chiusa")
        closed.is_active = False
        await async_session.commit()

        assert [s.name for s in await list_societies(async_session)] == ["Attiva"]
        assert len(await list_societies(async_session, include_inactive=True)) == 2


class TestMemberCRUD:
    async def test_list_members_sorted_by_surname(self, async_session) -> None:
        s = await create_society(async_session, "Atletica Carpi")
        await create_member(async_session, s.id, "Luca", "Verdi")
        await create_member(async_session, s.id, "Anna", "Bianchi")
        await create_member(async_session, s.id, "Marco", "Bianchi")
        await async_session.commit()

        members = await list_members(async_session, s.id)
        assert [m.full_name for m in members] == [
            "Bianchi Anna", "Bianchi Marco", "Verdi Luca",
        ]

    async def test_list_members_filters(self, async_session) -> None:
        s = await create_society(async_session, "Atletica Carpi")
        other = await create_society(async_session, "Altra")
        await create_member(async_session, s.id, "A", "Fidal", organization=Organization.FIDAL)
        await create_member(async_session, s.id, "B", "Uisp", organization=Organization.UISP)
        gone = await create_member(async_session, s.id, "C", "Ritirato")
        gone.is_active = False
        await create_member(async_session, other.id, "D", "Esterno")
        await async_session.commit()

        assert len(await list_members(async_session, s.id)) == 2
        assert len(await list_members(async_session, s.id, include_inactive=True)) == 3
        uisp = await list_members(async_session, s.id, organization=Organization.UISP)
        assert [m.last_name for m in uisp] == ["Uisp"]


# ─────────────────────────── Championships & races ───────────────────────────

class TestChampionshipCRUD:
    async def test_create_and_get_championship(self, async_session) -> None:
        c = await create_championship(async_session, "Corsa Campestre", 2026, season="2025/26")
        await async_session.commit()

        fetched = await get_championship(async_session, c.id)
        assert fetched.name == "Corsa Campestre"
        assert fetched.year == 2026
        assert fetched.is_active is True

    async def test_get_nonexistent_championship_returns_none(self, async_session) -> None:
        assert await get_championship(async_session, 9999) is None

    async def test_list_championships_newest_first(self, async_session) -> None:
        await create_championship(async_session, "Vecchio", 2024)
        await create_championship(async_session, "Nuovo", 2026)
        off = await create_championship(async_session, "Archiviato", 2025)
        off.is_active = False
        await async_session.commit()

        assert [c.name for c in await list_championships(async_session)] == ["Nuovo", "Vecchio"]
        assert len(await list_championships(async_session, include_inactive=True)) == 3

    async def test_races_loaded_in_stage_order(self, async_session) -> None:
        c = await create_championship(async_session, "Campestre", 2026)
        await create_race(async_session, "Prova 2", date(2026, 2, 1), c.id, event_number=2)
        await create_race(async_session, "Prova 1", date(2026, 1, 1), c.id, event_number=1)
        await async_session.commit()

        fetched = await get_championship(async_session, c.id, load_races=True)
        assert [r.title for r in fetched.races] == ["Prova 1", "Prova 2"]


class TestRaceCRUD:
    async def test_list_races_order_and_inactive_filter(self, async_session) -> None:
        c = await create_championship(async_session, "Campestre", 2026)
        await create_race(async_session, "Finale", date(2026, 3, 1), c.id, event_number=3)
        await create_race(async_session, "Apertura", date(2026, 1, 1), c.id, event_number=1)
        off = await create_race(async_session, "Annullata", date(2026, 2, 1), c.id, event_number=2)
        off.is_active = False
        await create_race(async_session, "Altra gara", date(2026, 1, 5))
        await async_session.commit()

        assert [r.title for r in await list_races(async_session, c.id)] == ["Apertura", "Finale"]
        all_races = await list_races(async_session, c.id, include_inactive=True)
        assert [r.title for r in all_races] == ["Apertura", "Annullata", "Finale"]

    async def test_standalone_race(self, async_session) -> None:
        c = await create_championship(async_session, "Campestre", 2026)
        stage = await create_race(async_session, "Prova", date(2026, 1, 1), c.id)
        solo = await create_race(async_session, "Maratonina", date(2026, 4, 1), max_participants=50)
        await async_session.commit()

        assert stage.is_standalone is False
        fetched = await get_race(async_session, solo.id)
        assert fetched.is_standalone is True
        assert fetched.max_participants == 50


# ─────────────────────────── Registration listings ───────────────────────────

class TestRegistrationListings:
    async def _setup(self, session):
        s1 = await create_society(session, "Uno")
        s2 = await create_society(session, "Due")
        c = await create_championship(session, "Campestre", 2026)
        a = await create_member(session, s1.id, "Anna", "A")
        b = await create_member(session, s1.id, "Bruno", "B")
        d = await create_member(session, s2.id, "Dario", "D")
        session.add_all([
            _reg(c.id, b.id, s1.id, 2),
            _reg(c.id, a.id, s1.id, 1),
            _reg(c.id, d.id, s2.id, 3, RegistrationStatus.CANCELLED),
        ])
        await session.commit()
        return c, s1, s2, a, b, d

    async def test_confirmed_only_ordered_by_bib(self, async_session) -> None:
        c, *_ = await self._setup(async_session)
        regs = await list_championship_registrations(async_session, c.id)
        assert [r.bib_number for r in regs] == [1, 2]
        assert regs[0].member.first_name == "Anna"

    async def test_include_cancelled(self, async_session) -> None:
        c, *_ = await self._setup(async_session)
        regs = await list_championship_registrations(async_session, c.id, include_cancelled=True)
        assert len(regs) == 3

    async def test_society_filter(self, async_session) -> None:
        c, s1, s2, *_ = await self._setup(async_session)
        regs = await list_championship_registrations(
            async_session, c.id, include_cancelled=True, society_id=s2.id,
        )
        assert [r.bib_number for r in regs] == [3]

    async def test_registered_member_ids_excludes_cancelled(self, async_session) -> None:
        c, s1, s2, a, b, d = await self._setup(async_session)
        assert await registered_member_ids(async_session, c.id) == {a.id, b.id}

    async def test_get_registration_loads_relations(self, async_session) -> None:
        c, *_ = await self._setup(async_session)
        first = (await list_championship_registrations(async_session, c.id))[0]
        fetched = await get_championship_registration(async_session, first.id)
        assert fetched.member.last_name == "A"
        assert fetched.championship.name == "Campestre"
        assert await get_championship_registration(async_session, 9999) is None


# ─────────────────────────── Bib-number authority ────────────────────────────

class TestBibNumbers:
    async def test_first_numbers_start_at_one(self, async_session) -> None:
        c = await create_championship(async_session, "Campestre", 2026)
        assert await next_bib_numbers(async_session, c.id, 3) == [1, 2, 3]

    async def test_numbers_follow_highest_including_cancelled(self, async_session) -> None:
        s = await create_society(async_session, "Uno")
        c = await create_championship(async_session, "Campestre", 2026)
        a = await create_member(async_session, s.id, "Anna", "A")
        b = await create_member(async_session, s.id, "Bruno", "B")
        async_session.add_all([
            _reg(c.id, a.id, s.id, 4),
            _reg(c.id, b.id, s.id, 9, RegistrationStatus.CANCELLED),
        ])
        await async_session.flush()

        assert await next_bib_numbers(async_session, c.id, 2) == [10, 11]

    async def test_scopes_are_independent(self, async_session) -> None:
        s = await create_society(async_session, "Uno")
        c1 = await create_championship(async_session, "Uno", 2026)
        c2 = await create_championship(async_session, "Due", 2026)
        a = await create_member(async_session, s.id, "Anna", "A")
        async_session.add(_reg(c1.id, a.id, s.id, 5))
        await async_session.flush()

        assert await next_bib_numbers(async_session, c2.id, 1) == [1]

    async def test_race_numbers(self, async_session) -> None:
        race = await create_race(async_session, "Maratonina", date(2026, 4, 1))
        assert await next_race_bib_numbers(async_session, race.id, 2) == [1, 2]

    async def test_zero_count_returns_empty(self, async_session) -> None:
        c = await create_championship(async_session, "Campestre", 2026)
        assert await next_bib_numbers(async_session, c.id, 0) == []

    @pytest.mark.parametrize("bib,expected", [
        (1,    "001"),
        (42,   "042"),
        (1234, "1234"),
        (None, "—"),
    ])
    def test_format_bib_number(self, bib, expected: str) -> None:
        assert format_bib_number(bib) == expected
