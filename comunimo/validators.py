"""
Input validation for registration requests — Pydantic v2 models.

Used to validate operator-supplied selections before anything is written.
Keeps validation logic out of handler and service code and makes it
trivially testable.
"""
from __future__ import annotations

from datetime import date
from typing import List, Optional

from pydantic import BaseModel, ValidationError, field_validator

from comunimo.config import settings
from comunimo.models.models import Organization


class MemberSelection(BaseModel):
    """
    Athletes selected for a registration.

    Attributes
    ----------
    member_ids : 1..MAX_MEMBERS_PER_REQUEST positive ids; duplicates collapsed,
                 first occurrence order kept
    """

    member_ids: List[int]

    @field_validator("member_ids")
    @classmethod
    def validate_member_ids(cls, v: List[int]) -> List[int]:
        if not v:
            raise ValueError("Seleziona almeno un atleta da iscrivere.")
        if any(mid <= 0 for mid in v):
            raise ValueError("ID atleta non valido.")
        unique = list(dict.fromkeys(v))
        limit = settings.MAX_MEMBERS_PER_REQUEST
        if len(unique) > limit:
            raise ValueError(f"Puoi iscrivere massimo {limit} atleti alla volta.")
        return unique


class RaceRegistrationCommand(MemberSelection):
    """
    Arguments of the race-only registration command:
    ``<race_id> <society_id> <member_id> [<member_id> ...]``
    """

    race_id: int
    society_id: int

    @classmethod
    def parse(cls, args: str) -> "RaceRegistrationCommand":
        parts = (args or "").replace(",", " ").split()
        if len(parts) < 3:
            raise ValueError("Uso: /iscrivi_gara <id_gara> <id_società> <id_atleta> [...]")
        try:
            numbers = [int(p) for p in parts]
        except ValueError:
            raise ValueError("Gli identificativi devono essere numeri interi.") from None
        return cls(race_id=numbers[0], society_id=numbers[1], member_ids=numbers[2:])


SIGNUP_USAGE = (
    "Uso: /iscrizione cognome; nome; AAAA-MM-GG; M|F; tessera; ente"
    "[; codice società; nome società]"
)

SIGNUP_FIELDS = (
    "last_name", "first_name", "birth_date", "gender",
    "membership_number", "organization", "society_code", "society_name",
)


class AthleteSignup(BaseModel):
    """
    Self-registration of an athlete into the active championship.

    The athlete is identified by membership number within the organization;
    society code and name are optional and only matched, never created.
    """

    first_name: str
    last_name: str
    birth_date: date
    gender: str
    membership_number: str
    organization: str
    society_code: Optional[str] = None
    society_name: Optional[str] = None
    category: Optional[str] = None

    @field_validator("first_name", "last_name", "membership_number")
    @classmethod
    def validate_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Nome, cognome e numero di tessera sono obbligatori.")
        return v

    @field_validator("birth_date")
    @classmethod
    def validate_birth_date(cls, v: date) -> date:
        if v >= date.today():
            raise ValueError("Data di nascita non valida.")
        return v

    @field_validator("gender")
    @classmethod
    def validate_gender(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in ("M", "F"):
            raise ValueError("Sesso non valido: usa M o F.")
        return v

    @field_validator("organization")
    @classmethod
    def validate_organization(cls, v: str) -> str:
        v = v.strip().upper()
        if v not in Organization.ALL:
            raise ValueError(f"Ente non valido: usa {', '.join(Organization.ALL)}.")
        return v

    @field_validator("society_code", "society_name", "category")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        return v.strip() or None

    @classmethod
    def parse(cls, args: str) -> "AthleteSignup":
        parts = [p.strip() for p in (args or "").split(";")]
        if len(parts) < 6:
            raise ValueError(SIGNUP_USAGE)
        return cls(**dict(zip(SIGNUP_FIELDS, parts)))


def first_error_message(exc: ValidationError) -> str:
    """Human message of the first validation error, without pydantic's prefix."""
    err = exc.errors()[0]
    cause = err.get("ctx", {}).get("error")
    if cause is not None:
        return str(cause)
    return err["msg"]
