"""
ComUniMo — championship registration bot.
Entry point: creates the bot, registers routers + middleware, handles graceful shutdown.
"""
import asyncio
import logging
import signal
import sys

from aiogram import Bot, Dispatcher
from aiogram.client.default import DefaultBotProperties
from aiogram.enums import ParseMode
from aiogram.exceptions import TelegramAPIError
from aiogram.fsm.storage.memory import MemoryStorage
from aiogram.types import ErrorEvent
from sqlalchemy.exc import SQLAlchemyError

from comunimo.config import settings
from comunimo.middlewares import DatabaseMiddleware, AdminMiddleware
from comunimo.models.base import engine, Base

# ── Handlers ──────────────────────────────────────────────────────────────────
from comunimo.handlers.common import router as common_router
from comunimo.handlers.registrations import router as registrations_router
from comunimo.handlers.race_registration import router as race_registration_router
from comunimo.handlers.signup import router as signup_router
from comunimo.handlers.admin.panel import router as admin_panel_router
from comunimo.handlers.fallback import router as fallback_router

logging.basicConfig(
    level=settings.LOG_LEVEL,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    stream=sys.stdout,
)
logger = logging.getLogger(__name__)


async def create_tables() -> None:
    """Create all database tables on startup."""
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables ready.")
    except (SQLAlchemyError, OSError) as e:
        logger.critical(
            "❌ Cannot connect to database!\n"
            "   URL: %s\n"
            "   Error: %s\n\n"
            "   → Locally: start PostgreSQL or use SQLite "
            "(DATABASE_URL=sqlite+aiosqlite:///./comunimo.db)",
            settings.DATABASE_URL.split("@")[-1],   # hide credentials in log
            e,
        )
        sys.exit(1)


def build_dispatcher() -> Dispatcher:
    dp = Dispatcher(storage=MemoryStorage())

    # ── Global error handler — ensures callbacks are always answered ──────────
    @dp.errors()
    async def handle_error(event: ErrorEvent) -> None:
        logger.exception("Unhandled error: %s", event.exception)
        update = event.update
        if update.callback_query:
            try:
                await update.callback_query.answer(
                    "⚠️ Operazione non riuscita. Riprova.", show_alert=True
                )
            except TelegramAPIError:
                pass
        elif update.message:
            try:
                await update.message.answer("⚠️ Operazione non riuscita. Riprova.")
            except TelegramAPIError:
                pass

    # ── Global middlewares — session first, the admin check reads it ──────────
    dp.update.middleware(DatabaseMiddleware())
    dp.update.middleware(AdminMiddleware())

    # ── Routers — order matters for handler priority ──────────────────────────
    dp.include_router(common_router)
    dp.include_router(registrations_router)
    dp.include_router(race_registration_router)
    dp.include_router(signup_router)
    dp.include_router(admin_panel_router)

    # !! Must be last — catches any callback not handled above !!
    dp.include_router(fallback_router)

    return dp


async def main() -> None:
    logger.info("Starting ComUniMo bot…")
    await create_tables()

    bot = Bot(
        token=settings.BOT_TOKEN,
        default=DefaultBotProperties(parse_mode=ParseMode.MARKDOWN),
    )
    dp = build_dispatcher()

    # ── Graceful shutdown on SIGTERM (Docker) ─────────────────────────────────
    loop = asyncio.get_running_loop()

    shutdown_event = asyncio.Event()

    def _handle_signal():
        logger.info("Received shutdown signal, stopping…")
        shutdown_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        try:
            loop.add_signal_handler(sig, _handle_signal)
        except NotImplementedError:
            # Windows does not support add_signal_handler
            pass

    polling = asyncio.create_task(
        dp.start_polling(
            bot,
            allowed_updates=dp.resolve_used_update_types(),
            handle_signals=False,
        )
    )
    stop = asyncio.create_task(shutdown_event.wait())
    try:
        logger.info("Bot is running. Press Ctrl+C to stop.")
        await asyncio.wait({polling, stop}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        logger.info("Shutting down…")
        if not polling.done():
            await dp.stop_polling()
            await polling
        stop.cancel()
        await bot.session.close()
        await engine.dispose()
        logger.info("Shutdown complete.")


if __name__ == "__main__":
    asyncio.run(main())
