from comunimo.states.registration_states import RegistrationWizard

__all__ = ["RegistrationWizard"]
