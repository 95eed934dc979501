from aiogram.fsm.state import State, StatesGroup


class RegistrationWizard(StatesGroup):
    """FSM for the guided championship registration."""
    choose_championship = State()   # Select championship from list
    choose_society      = State()   # Select one of the operator's societies
    select_members      = State()   # Toggle athletes
    confirm             = State()   # Show summary → confirm or edit
