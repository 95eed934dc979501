"""
Database session middleware.

Injects an AsyncSession into every handler's data dict under key "session".
One update is one unit of work: committed when the handler returns,
rolled back when it raises.
"""
import logging
from typing import Any, Awaitable, Callable, Dict

from aiogram import BaseMiddleware
from aiogram.types import TelegramObject

from comunimo.models.base import AsyncSessionFactory

logger = logging.getLogger(__name__)


class DatabaseMiddleware(BaseMiddleware):
    async def __call__(
        self,
        handler: Callable[[TelegramObject, Dict[str, Any]], Awaitable[Any]],
        event: TelegramObject,
        data: Dict[str, Any],
    ) -> Any:
        async with AsyncSessionFactory() as session:
            data["session"] = session
            try:
                result = await handler(event, data)
                await session.commit()
                return result
            except Exception:
                logger.debug("Rolling back session for update %s", getattr(event, "update_id", "?"))
                await session.rollback()
                raise
