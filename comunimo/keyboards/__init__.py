from comunimo.keyboards.callbacks import (
    MainMenuCb,
    ChampionshipCb,
    SocietyCb,
    MemberCb,
    RegistrationCb,
)
from comunimo.keyboards.main_menu import main_menu, back_to_main
from comunimo.keyboards.registration_kb import (
    championship_list_kb,
    society_list_kb,
    member_selection_kb,
    confirm_registration_kb,
    registrations_kb,
    cancel_confirm_kb,
)

__all__ = [
    # callbacks
    "MainMenuCb", "ChampionshipCb", "SocietyCb", "MemberCb", "RegistrationCb",
    # main menu
    "main_menu", "back_to_main",
    # registration
    "championship_list_kb", "society_list_kb", "member_selection_kb",
    "confirm_registration_kb", "registrations_kb", "cancel_confirm_kb",
]
