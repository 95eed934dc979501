"""
Centralized CallbackData factories.
Telegram limits callback_data to 64 bytes — all prefixes are kept short.
"""
from aiogram.filters.callback_data import CallbackData


class MainMenuCb(CallbackData, prefix="mm"):
    action: str           # main | register | registrations


class ChampionshipCb(CallbackData, prefix="chp"):
    action: str           # register_select | regs
    cid: int = 0          # championship id


class SocietyCb(CallbackData, prefix="soc"):
    action: str           # select
    sid: int = 0          # society id


class MemberCb(CallbackData, prefix="mbr"):
    action: str           # toggle | all | done
    mid: int = 0          # member id (0 = N/A)


class RegistrationCb(CallbackData, prefix="reg"):
    action: str           # cancel | cancel_confirm
    rid: int = 0          # championship registration id
    cid: int = 0          # championship id (for context return)
