"""
Operator authorization middleware.

Attaches `is_admin: bool` to handler data for all updates. An operator is an
admin when listed in ADMIN_IDS or flagged in the users table; everybody else
is scoped to the societies linked to their account (see can_manage_society).
Must run after DatabaseMiddleware, which provides the session.
"""
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.filters import BaseFilter
from aiogram.types import CallbackQuery, Message, TelegramObject
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from comunimo.config import settings
from comunimo.models.models import User


class AdminMiddleware(BaseMiddleware):
    """
    Injects `is_admin` flag into data dict.
    Applied globally — individual routers restrict access via filters.
    """

    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        user = data.get("event_from_user")
        is_admin = bool(user and user.id in settings.admin_ids_list)
        session: AsyncSession | None = data.get("session")
        if user and not is_admin and session is not None:
            stored = await session.scalar(
                select(User.is_admin).where(User.telegram_id == user.id)
            )
            is_admin = bool(stored)
        data["is_admin"] = is_admin
        return await handler(event, data)


# ── Reusable filter ──────────────────────────────────────────────────────────

class IsAdmin(BaseFilter):
    """Use on individual routers/handlers to restrict access to admins."""

    async def __call__(self, event: Message | CallbackQuery, is_admin: bool = False) -> bool:
        if not is_admin:
            if isinstance(event, Message):
                await event.answer("⛔️ Accesso negato.")
            elif isinstance(event, CallbackQuery):
                await event.answer("⛔️ Accesso negato.", show_alert=True)
        return is_admin
