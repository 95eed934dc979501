"""
Athlete self-registration into the active championship.

  /iscrizione cognome; nome; AAAA-MM-GG; M|F; tessera; ente[; codice società; nome società]

Open to every user: the athlete is matched by membership number, so no
society permission is involved.
"""
import logging

from aiogram import Router
from aiogram.enums import ParseMode
from aiogram.filters import Command, CommandObject
from aiogram.types import Message
from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from comunimo.services import RegistrationError, format_bib_number, register_athlete
from comunimo.validators import AthleteSignup, first_error_message

logger = logging.getLogger(__name__)
router = Router(name="signup")


@router.message(Command("iscrizione"))
async def cmd_signup(message: Message, command: CommandObject, session: AsyncSession) -> None:
    try:
        signup = AthleteSignup.parse(command.args or "")
    except ValidationError as exc:
        await message.answer(f"⚠️ {first_error_message(exc)}")
        return
    except ValueError as exc:
        await message.answer(f"⚠️ {exc}")
        return

    try:
        outcome = await register_athlete(session, signup, created_by=message.from_user.id)
    except RegistrationError as exc:
        await session.rollback()
        logger.warning("Self-registration of %s %s failed: %s",
                       signup.organization, signup.membership_number, exc)
        await message.answer(f"⚠️ {exc.user_message}")
        return

    reg = outcome.registrations[0]
    verb = "riattivata" if outcome.reactivated else "completata"
    await message.answer(
        f"✅ Iscrizione {verb}: *{signup.last_name} {signup.first_name}*\n"
        f"🏷 Pettorale: `{format_bib_number(reg.bib_number)}`\n"
        f"🏁 Tappe: `{outcome.race_rows}`",
        parse_mode=ParseMode.MARKDOWN,
    )
