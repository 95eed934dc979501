"""
Standalone race registration commands.

  /iscrivi_gara <race_id> <society_id> <member_id> [<member_id> ...]
  /annulla_gara <registration_id>
"""
import logging

from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from comunimo.models.models import RaceRegistration
from comunimo.services import (
    RegistrationError,
    can_manage_society, cancel_race_registration, format_bib_number,
    get_race, register_race_members,
)
from comunimo.validators import RaceRegistrationCommand, first_error_message

logger = logging.getLogger(__name__)
router = Router(name="race_registration")


@router.message(Command("iscrivi_gara"))
async def cmd_register_race(
    message: Message,
    command: CommandObject,
    session: AsyncSession,
    is_admin: bool = False,
) -> None:
    try:
        cmd = RaceRegistrationCommand.parse(command.args or "")
    except ValidationError as exc:
        await message.answer(f"⚠️ {first_error_message(exc)}")
        return
    except ValueError as exc:
        await message.answer(f"⚠️ {exc}")
        return

    if not await can_manage_society(session, message.from_user.id, cmd.society_id, is_admin):
        await message.answer("⛔️ Non gestisci questa società.")
        return

    try:
        outcome = await register_race_members(
            session, cmd.race_id, cmd.society_id, cmd.member_ids,
        )
    except RegistrationError as exc:
        await session.rollback()
        logger.warning("Registration into race %d failed: %s", cmd.race_id, exc)
        await message.answer(f"⚠️ {exc.user_message}")
        return

    race = await get_race(session, cmd.race_id)
    lines = [
        f"✅ *{race.title}* — {outcome.processed} atleti iscritti",
        f"nuovi: `{outcome.inserted}` · riattivati: `{outcome.reactivated}`",
        "",
    ]
    lines += [
        f"🏷 `{format_bib_number(r.bib_number)}` atleta #{r.member_id}"
        for r in outcome.registrations
    ]
    await message.answer("\n".join(lines), parse_mode=ParseMode.MARKDOWN)


@router.message(Command("annulla_gara"))
async def cmd_cancel_race_registration(
    message: Message,
    command: CommandObject,
    session: AsyncSession,
    is_admin: bool = False,
) -> None:
    arg = (command.args or "").strip()
    if not arg.isdigit():
        await message.answer("Uso: /annulla_gara <id_iscrizione>")
        return

    reg = await session.get(RaceRegistration, int(arg))
    if reg is None:
        await message.answer("⚠️ Iscrizione non trovata.")
        return
    if not await can_manage_society(session, message.from_user.id, reg.society_id, is_admin):
        await message.answer("⛔️ Non gestisci questa società.")
        return

    try:
        await cancel_race_registration(session, reg.id)
    except RegistrationError as exc:
        await session.rollback()
        await message.answer(f"⚠️ {exc.user_message}")
        return
    await message.answer(
        f"🚫 Iscrizione `{reg.id}` cancellata (pettorale `{format_bib_number(reg.bib_number)}`).",
        parse_mode=ParseMode.MARKDOWN,
    )
