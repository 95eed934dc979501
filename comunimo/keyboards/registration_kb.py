"""
Keyboards for the guided registration wizard and the registration list.
"""
from typing import Collection, List

from aiogram.types import InlineKeyboardButton, InlineKeyboardMarkup
from aiogram.utils.keyboard import InlineKeyboardBuilder

from comunimo.keyboards.callbacks import (
    ChampionshipCb, MainMenuCb, MemberCb, RegistrationCb, SocietyCb,
)
from comunimo.models.models import Championship, ChampionshipRegistration, Member, Society
from comunimo.services.bib_service import format_bib_number

# Telegram caps inline keyboards at 100 buttons
MAX_LIST_ROWS = 80


def championship_list_kb(championships: List[Championship], action: str) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for c in championships:
        builder.row(
            InlineKeyboardButton(
                text=f"🏆 {c.name} ({c.year})",
                callback_data=ChampionshipCb(action=action, cid=c.id).pack(),
            )
        )
    builder.row(InlineKeyboardButton(text="🔙 Indietro", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()


def society_list_kb(societies: List[Society]) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    for s in societies:
        builder.row(
            InlineKeyboardButton(
                text=f"🏟 {s.display_name}",
                callback_data=SocietyCb(action="select", sid=s.id).pack(),
            )
        )
    builder.row(InlineKeyboardButton(text="❌ Annulla", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()


def member_selection_kb(members: List[Member], selected: Collection[int]) -> InlineKeyboardMarkup:
    """Toggle list: ✅ selected, ⬜️ not selected."""
    builder = InlineKeyboardBuilder()
    for m in members[:MAX_LIST_ROWS]:
        mark = "✅" if m.id in selected else "⬜️"
        org = f" · {m.organization}" if m.organization else ""
        builder.row(
            InlineKeyboardButton(
                text=f"{mark} {m.full_name}{org}",
                callback_data=MemberCb(action="toggle", mid=m.id).pack(),
            )
        )
    builder.row(
        InlineKeyboardButton(text="☑️ Seleziona tutti", callback_data=MemberCb(action="all").pack()),
        InlineKeyboardButton(text=f"➡️ Avanti ({len(selected)})", callback_data=MemberCb(action="done").pack()),
    )
    builder.row(InlineKeyboardButton(text="❌ Annulla", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()


def confirm_registration_kb() -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(text="✅ Conferma", callback_data="wiz_confirm"),
        InlineKeyboardButton(text="✏️ Modifica", callback_data="wiz_edit"),
    )
    builder.row(InlineKeyboardButton(text="❌ Annulla", callback_data=MainMenuCb(action="main").pack()))
    return builder.as_markup()


def registrations_kb(
    registrations: List[ChampionshipRegistration],
    championship_id: int,
) -> InlineKeyboardMarkup:
    """One button per confirmed registration; tapping it asks to cancel."""
    builder = InlineKeyboardBuilder()
    for r in registrations[:MAX_LIST_ROWS]:
        builder.row(
            InlineKeyboardButton(
                text=f"🏷 {format_bib_number(r.bib_number)}  {r.member.full_name}",
                callback_data=RegistrationCb(action="cancel", rid=r.id, cid=championship_id).pack(),
            )
        )
    builder.row(InlineKeyboardButton(text="🔙 Indietro", callback_data=MainMenuCb(action="registrations").pack()))
    return builder.as_markup()


def cancel_confirm_kb(registration_id: int, championship_id: int) -> InlineKeyboardMarkup:
    builder = InlineKeyboardBuilder()
    builder.row(
        InlineKeyboardButton(
            text="✅ Sì, cancella",
            callback_data=RegistrationCb(action="cancel_confirm", rid=registration_id, cid=championship_id).pack(),
        ),
        InlineKeyboardButton(
            text="❌ No",
            callback_data=ChampionshipCb(action="regs", cid=championship_id).pack(),
        ),
    )
    return builder.as_markup()
