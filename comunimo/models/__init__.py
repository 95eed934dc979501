from comunimo.models.base import Base, engine, AsyncSessionFactory
from comunimo.models.models import (
    User,
    Society,
    Member,
    Championship,
    Race,
    ChampionshipRegistration,
    RaceRegistration,
    RegistrationStatus,
    Organization,
    ChampionshipType,
)

__all__ = [
    "Base",
    "engine",
    "AsyncSessionFactory",
    "User",
    "Society",
    "Member",
    "Championship",
    "Race",
    "ChampionshipRegistration",
    "RaceRegistration",
    "RegistrationStatus",
    "Organization",
    "ChampionshipType",
]
