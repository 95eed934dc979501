"""
Global fallback handler — included LAST in the dispatcher.

Catches any callback query that no other router handled, e.g. stale
keyboards after a restart (MemoryStorage is wiped on redeploy).
"""
from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramBadRequest
from aiogram.fsm.context import FSMContext
from aiogram.types import CallbackQuery

from comunimo.keyboards import main_menu

router = Router(name="fallback")


@router.callback_query()
async def cq_fallback(callback: CallbackQuery, state: FSMContext) -> None:
    await callback.answer("⚠️ Pulsante scaduto. Ricomincia.", show_alert=True)
    await state.clear()
    try:
        await callback.message.edit_text(
            "🔄 *Sessione azzerata.* Torna al menu principale:",
            parse_mode=ParseMode.MARKDOWN,
            reply_markup=main_menu(),
        )
    except TelegramBadRequest:
        # Message too old to edit or already showing the menu
        pass
