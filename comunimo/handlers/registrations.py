"""
Championship registration handlers.

Wizard:
  🏃 Iscrivi atleti → choose championship → choose society
         → toggle athletes → confirm → register_members ✅

List:
  📋 Iscrizioni campionato → choose championship → tap a registration
         → confirm → cancel_registration
"""
import logging
from typing import List

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery
from sqlalchemy.ext.asyncio import AsyncSession

from comunimo.keyboards import (
    ChampionshipCb, MainMenuCb, MemberCb, RegistrationCb, SocietyCb,
    championship_list_kb, society_list_kb, member_selection_kb,
    confirm_registration_kb, registrations_kb, cancel_confirm_kb, back_to_main,
)
from comunimo.models.models import Member
from comunimo.services import (
    RegistrationError,
    can_manage_society, cancel_registration, format_bib_number,
    get_championship, get_championship_registration, get_society,
    list_championship_registrations, list_championships,
    list_manageable_societies, list_members, register_members, registered_member_ids,
)
from comunimo.states import RegistrationWizard

logger = logging.getLogger(__name__)
router = Router(name="registrations")


# ── Entry: "Iscrivi atleti" button ────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "register"))
async def cq_start_registration(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
) -> None:
    championships = await list_championships(session)
    if not championships:
        await callback.answer("Nessun campionato attivo.", show_alert=True)
        return

    await state.clear()
    await state.set_state(RegistrationWizard.choose_championship)
    await callback.message.edit_text(
        "🏆 *Scegli il campionato:*",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=championship_list_kb(championships, action="register_select"),
    )
    await callback.answer()


# ── Step 1: championship chosen ───────────────────────────────────────────────

@router.callback_query(
    ChampionshipCb.filter(F.action == "register_select"),
    RegistrationWizard.choose_championship,
)
async def cq_championship_selected(
    callback: CallbackQuery,
    callback_data: ChampionshipCb,
    session: AsyncSession,
    state: FSMContext,
    is_admin: bool = False,
) -> None:
    c = await get_championship(session, callback_data.cid, load_races=True)
    if not c or not c.is_active:
        await callback.answer("Campionato non trovato.", show_alert=True)
        return

    societies = await list_manageable_societies(session, callback.from_user.id, is_admin)
    if not societies:
        await callback.answer("Nessuna società associata al tuo account.", show_alert=True)
        return

    await state.update_data(championship_id=c.id, championship_name=c.name)
    await state.set_state(RegistrationWizard.choose_society)

    stages = sum(1 for r in c.races if r.is_active)
    await callback.message.edit_text(
        f"✅ *{c.name}* ({c.year})\n"
        f"🏁 Tappe: `{stages}`\n\n"
        f"Scegli la *società*:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=society_list_kb(societies),
    )
    await callback.answer()


# ── Step 2: society chosen ────────────────────────────────────────────────────

@router.callback_query(SocietyCb.filter(F.action == "select"), RegistrationWizard.choose_society)
async def cq_society_selected(
    callback: CallbackQuery,
    callback_data: SocietyCb,
    session: AsyncSession,
    state: FSMContext,
    is_admin: bool = False,
) -> None:
    if not await can_manage_society(session, callback.from_user.id, callback_data.sid, is_admin):
        await callback.answer("⛔️ Non gestisci questa società.", show_alert=True)
        return

    data = await state.get_data()
    available = await _available_members(session, data["championship_id"], callback_data.sid)
    if not available:
        await callback.answer("Tutti gli atleti attivi sono già iscritti.", show_alert=True)
        return

    society = await get_society(session, callback_data.sid)
    await state.update_data(society_id=society.id, society_name=society.name, selected=[])
    await state.set_state(RegistrationWizard.select_members)
    await callback.message.edit_text(
        f"🏟 *{society.name}*\n\nSeleziona gli atleti da iscrivere:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=member_selection_kb(available, set()),
    )
    await callback.answer()


# ── Step 3: athlete selection ─────────────────────────────────────────────────

@router.callback_query(MemberCb.filter(F.action.in_({"toggle", "all"})), RegistrationWizard.select_members)
async def cq_toggle_member(
    callback: CallbackQuery,
    callback_data: MemberCb,
    session: AsyncSession,
    state: FSMContext,
) -> None:
    data = await state.get_data()
    available = await _available_members(session, data["championship_id"], data["society_id"])
    selected = set(data.get("selected", []))

    if callback_data.action == "all":
        all_ids = {m.id for m in available}
        selected = set() if selected >= all_ids else all_ids
    elif callback_data.mid in selected:
        selected.discard(callback_data.mid)
    else:
        selected.add(callback_data.mid)

    await state.update_data(selected=sorted(selected))
    await callback.message.edit_reply_markup(reply_markup=member_selection_kb(available, selected))
    await callback.answer()


@router.callback_query(MemberCb.filter(F.action == "done"), RegistrationWizard.select_members)
async def cq_selection_done(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
) -> None:
    data = await state.get_data()
    selected = data.get("selected", [])
    if not selected:
        await callback.answer("Seleziona almeno un atleta da iscrivere.", show_alert=True)
        return

    available = await _available_members(session, data["championship_id"], data["society_id"])
    names = [m.full_name for m in available if m.id in set(selected)]
    preview = "\n".join(f"• {n}" for n in names[:20])
    if len(names) > 20:
        preview += f"\n… e altri {len(names) - 20}"

    await state.set_state(RegistrationWizard.confirm)
    await callback.message.edit_text(
        f"📋 *Riepilogo iscrizione*\n\n"
        f"🏆 {data['championship_name']}\n"
        f"🏟 {data['society_name']}\n"
        f"👥 Atleti: `{len(selected)}`\n\n"
        f"{preview}",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=confirm_registration_kb(),
    )
    await callback.answer()


@router.callback_query(F.data == "wiz_edit", RegistrationWizard.confirm)
async def cq_edit_selection(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
) -> None:
    data = await state.get_data()
    available = await _available_members(session, data["championship_id"], data["society_id"])
    await state.set_state(RegistrationWizard.select_members)
    await callback.message.edit_text(
        f"🏟 *{data['society_name']}*\n\nSeleziona gli atleti da iscrivere:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=member_selection_kb(available, set(data.get("selected", []))),
    )
    await callback.answer()


# ── Step 4: confirm → allocate ────────────────────────────────────────────────

@router.callback_query(F.data == "wiz_confirm", RegistrationWizard.confirm)
async def cq_confirm_registration(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
) -> None:
    data = await state.get_data()
    try:
        outcome = await register_members(
            session,
            championship_id=data["championship_id"],
            society_id=data["society_id"],
            member_ids=data.get("selected", []),
            created_by=callback.from_user.id,
        )
    except RegistrationError as exc:
        await session.rollback()
        logger.warning("Registration into championship %s failed: %s", data.get("championship_id"), exc)
        await callback.answer(f"⚠️ {exc.user_message}", show_alert=True)
        return

    await state.clear()
    bibs = ", ".join(format_bib_number(r.bib_number) for r in outcome.registrations[:30])
    text = (
        f"✅ *Iscrizioni completate*\n\n"
        f"🏆 {data['championship_name']}\n"
        f"👥 {outcome.processed} atleti iscritti con successo\n"
        f"   nuovi: `{outcome.inserted}` · riattivati: `{outcome.reactivated}`\n"
        f"🏷 Pettorali: `{bibs}`"
    )
    await callback.message.edit_text(text, parse_mode=ParseMode.MARKDOWN, reply_markup=back_to_main())
    await callback.answer()


# ── Registration list & cancellation ──────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "registrations"))
async def cq_registrations_start(
    callback: CallbackQuery,
    session: AsyncSession,
    state: FSMContext,
) -> None:
    await state.clear()
    championships = await list_championships(session)
    if not championships:
        await callback.answer("Nessun campionato attivo.", show_alert=True)
        return
    await callback.message.edit_text(
        "📋 *Iscrizioni* — scegli il campionato:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=championship_list_kb(championships, action="regs"),
    )
    await callback.answer()


@router.callback_query(ChampionshipCb.filter(F.action == "regs"))
async def cq_registrations_list(
    callback: CallbackQuery,
    callback_data: ChampionshipCb,
    session: AsyncSession,
    is_admin: bool = False,
) -> None:
    c = await get_championship(session, callback_data.cid)
    if not c:
        await callback.answer("Campionato non trovato.", show_alert=True)
        return

    registrations = await list_championship_registrations(session, c.id)
    if not is_admin:
        own = {s.id for s in await list_manageable_societies(session, callback.from_user.id)}
        registrations = [r for r in registrations if r.society_id in own]

    await callback.message.edit_text(
        f"🏆 *{c.name}*\n"
        f"👥 Iscritti confermati: `{len(registrations)}`\n\n"
        f"Tocca un'iscrizione per cancellarla.",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=registrations_kb(registrations, c.id),
    )
    await callback.answer()


@router.callback_query(RegistrationCb.filter(F.action == "cancel"))
async def cq_cancel_registration(
    callback: CallbackQuery,
    callback_data: RegistrationCb,
    session: AsyncSession,
) -> None:
    reg = await get_championship_registration(session, callback_data.rid)
    if not reg:
        await callback.answer("Iscrizione non trovata.", show_alert=True)
        return
    await callback.message.edit_text(
        f"⚠️ Cancellare l'iscrizione di *{reg.member.full_name}* "
        f"(pettorale `{format_bib_number(reg.bib_number)}`) a *{reg.championship.name}*?\n\n"
        f"Verranno cancellate anche le iscrizioni a tutte le tappe.",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=cancel_confirm_kb(reg.id, reg.championship_id),
    )
    await callback.answer()


@router.callback_query(RegistrationCb.filter(F.action == "cancel_confirm"))
async def cq_cancel_registration_confirm(
    callback: CallbackQuery,
    callback_data: RegistrationCb,
    session: AsyncSession,
    is_admin: bool = False,
) -> None:
    reg = await get_championship_registration(session, callback_data.rid)
    if not reg:
        await callback.answer("Iscrizione non trovata.", show_alert=True)
        return
    if not await can_manage_society(session, callback.from_user.id, reg.society_id, is_admin):
        await callback.answer("⛔️ Non gestisci questa società.", show_alert=True)
        return

    try:
        races = await cancel_registration(session, reg.id)
    except RegistrationError as exc:
        await session.rollback()
        await callback.answer(f"⚠️ {exc.user_message}", show_alert=True)
        return

    await callback.answer(f"Iscrizione cancellata ({races} tappe).", show_alert=True)
    registrations = await list_championship_registrations(session, reg.championship_id)
    if not is_admin:
        own = {s.id for s in await list_manageable_societies(session, callback.from_user.id)}
        registrations = [r for r in registrations if r.society_id in own]
    await callback.message.edit_text(
        f"🏆 *{reg.championship.name}*\n"
        f"👥 Iscritti confermati: `{len(registrations)}`",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=registrations_kb(registrations, reg.championship_id),
    )


# ── Helpers ───────────────────────────────────────────────────────────────────

async def _available_members(
    session: AsyncSession,
    championship_id: int,
    society_id: int,
) -> List[Member]:
    """Active athletes of the society without a confirmed registration."""
    members = await list_members(session, society_id)
    already = await registered_member_ids(session, championship_id)
    return [m for m in members if m.id not in already]
