"""
Registration errors.

Every error carries `user_message`, the text shown to the operator.
Handlers catch RegistrationError; anything else reaches the global error handler.
"""
from __future__ import annotations

from typing import Optional


class RegistrationError(Exception):
    user_message = "Impossibile completare le iscrizioni. Riprova."

    def __init__(self, message: Optional[str] = None) -> None:
        if message:
            self.user_message = message
        super().__init__(self.user_message)


class InvalidSelectionError(RegistrationError):
    """Rejected before any write (empty selection, too many athletes, wrong race kind)."""
    user_message = "Seleziona almeno un atleta da iscrivere."


class NotFoundError(RegistrationError):
    user_message = "Elemento non trovato o non attivo."


class AlreadyRegisteredError(RegistrationError):
    user_message = "Uno o più atleti sono già iscritti a questo campionato."


class BibAllocationError(RegistrationError):
    """Every insert attempt collided with a concurrently allocated bib number."""
    user_message = "Impossibile assegnare i numeri di pettorale. Riprova."

    def __init__(self, scope_id: int, attempts: int) -> None:
        super().__init__()
        self.scope_id = scope_id
        self.attempts = attempts


class RaceFullError(RegistrationError):
    user_message = "Numero massimo di partecipanti raggiunto per questa gara."
