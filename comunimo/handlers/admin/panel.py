"""
Admin commands: link operators to the societies they manage.

  /assegna <telegram_id> <society_id>
  /societa
"""
import logging

from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from sqlalchemy.ext.asyncio import AsyncSession

from comunimo.middlewares import IsAdmin
from comunimo.services import assign_society, get_society, get_user, list_societies

logger = logging.getLogger(__name__)
router = Router(name="admin_panel")
router.message.filter(IsAdmin())


@router.message(Command("assegna"))
async def cmd_assign_society(
    message: Message,
    command: CommandObject,
    session: AsyncSession,
) -> None:
    parts = (command.args or "").split()
    if len(parts) != 2 or not all(p.isdigit() for p in parts):
        await message.answer("Uso: /assegna <telegram_id> <id_società>")
        return

    telegram_id, society_id = int(parts[0]), int(parts[1])
    user = await get_user(session, telegram_id)
    if user is None:
        await message.answer("⚠️ Utente sconosciuto: deve prima avviare il bot con /start.")
        return
    society = await get_society(session, society_id)
    if society is None:
        await message.answer("⚠️ Società non trovata.")
        return

    await assign_society(session, telegram_id, society_id)
    logger.info("Operator %d now manages society %d", telegram_id, society_id)
    await message.answer(
        f"✅ *{user.display_name}* ora gestisce *{society.name}*.",
        parse_mode=ParseMode.MARKDOWN,
    )


@router.message(Command("societa"))
async def cmd_list_societies(message: Message, session: AsyncSession) -> None:
    societies = await list_societies(session)
    if not societies:
        await message.answer("Nessuna società attiva.")
        return
    lines = [f"`{s.id}` {s.display_name}" for s in societies]
    await message.answer("🏟 *Società attive*\n\n" + "\n".join(lines), parse_mode=ParseMode.MARKDOWN)
