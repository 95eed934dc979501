"""
Common handlers: /start, main menu routing.
"""
import logging

from aiogram import F, Router
from aiogram.enums import ParseMode
from aiogram.filters import CommandStart
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery, Message
from sqlalchemy.ext.asyncio import AsyncSession

from comunimo.keyboards import MainMenuCb, main_menu
from comunimo.services import upsert_user

logger = logging.getLogger(__name__)
router = Router(name="common")


# ── /start ────────────────────────────────────────────────────────────────────

@router.message(CommandStart())
async def cmd_start(message: Message, session: AsyncSession, is_admin: bool) -> None:
    tg = message.from_user
    await upsert_user(
        session,
        telegram_id=tg.id,
        first_name=tg.first_name,
        last_name=tg.last_name,
        username=tg.username,
    )

    role = "amministratore" if is_admin else "referente di società"
    text = (
        f"🏃 Benvenuto in *ComUniMo*, {tg.first_name}!\n"
        f"Accesso come _{role}_.\n\n"
        f"Da qui puoi:\n"
        f"• 🏃 Iscrivere gli atleti ai campionati\n"
        f"• 📋 Consultare e cancellare le iscrizioni\n"
        f"• 🏁 Iscrivere a una gara singola con /iscrivi\\_gara\n"
        f"• 🙋 Far iscrivere un atleta con i suoi dati: /iscrizione\n\n"
        f"Scegli un'azione:"
    )
    await message.answer(text, parse_mode=ParseMode.MARKDOWN, reply_markup=main_menu())


# ── Main menu callback ────────────────────────────────────────────────────────

@router.callback_query(MainMenuCb.filter(F.action == "main"))
async def cq_main_menu(callback: CallbackQuery, state: FSMContext) -> None:
    await state.clear()
    await callback.message.edit_text(
        "🏃 *ComUniMo* — Menu principale\n\nScegli un'azione:",
        parse_mode=ParseMode.MARKDOWN,
        reply_markup=main_menu(),
    )
    await callback.answer()


@router.callback_query(F.data == "noop")
async def cq_noop(callback: CallbackQuery) -> None:
    await callback.answer()
