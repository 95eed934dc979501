"""
ORM models for the ComUniMo championship manager.

Domain overview
---------------
Society            — an athletics club, owns athletes
  └─ Member        — athlete (organization + competition category)
Championship       — multi-stage competition for a season
  └─ Race          — one stage, ordered by event_number (table "events")
ChampionshipRegistration — athlete ↔ championship, bib unique per championship
RaceRegistration         — athlete ↔ race, bib unique per race (table "event_registrations")

Registrations are never deleted: status moves between confirmed and cancelled.
"""
from __future__ import annotations

from datetime import date, datetime
from typing import List, Optional

from sqlalchemy import (
    BigInteger,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Table,
    UniqueConstraint,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from comunimo.models.base import Base

# ─────────────────────────── Constants ────────────────────────────────────────

class RegistrationStatus:
    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"

    LABELS = {
        CONFIRMED: "Confermata",
        CANCELLED: "Cancellata",
    }


class Organization:
    FIDAL   = "FIDAL"
    UISP    = "UISP"
    CSI     = "CSI"
    RUNCARD = "RUNCARD"
    OTHER   = "ALTRO"

    ALL = [FIDAL, UISP, CSI, RUNCARD, OTHER]


class ChampionshipType:
    CROSS_COUNTRY = "cross_country"
    ROAD          = "road"
    TRACK         = "track"
    OTHER         = "other"

    LABELS = {
        CROSS_COUNTRY: "Corsa campestre",
        ROAD:          "Strada",
        TRACK:         "Pista",
        OTHER:         "Altro",
    }


# ─────────────────────────── Models ───────────────────────────────────────────

user_societies = Table(
    "user_societies",
    Base.metadata,
    Column("user_id", ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("society_id", ForeignKey("societies.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    """Bot operator: an admin or a society manager."""
    __tablename__ = "users"

    id:          Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    telegram_id: Mapped[int]           = mapped_column(BigInteger, unique=True, index=True)
    username:    Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    first_name:  Mapped[str]           = mapped_column(String(255))
    last_name:   Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_admin:    Mapped[bool]          = mapped_column(Boolean, default=False)
    created_at:  Mapped[datetime]      = mapped_column(DateTime, default=func.now())

    societies: Mapped[List["Society"]] = relationship(secondary=user_societies)

    @property
    def display_name(self) -> str:
        parts = [self.first_name]
        if self.last_name:
            parts.append(self.last_name)
        return " ".join(parts)


class Society(Base):
    """An athletics club."""
    __tablename__ = "societies"

    id:           Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    name:         Mapped[str]           = mapped_column(String(255))
    society_code: Mapped[Optional[str]] = mapped_column(String(20), unique=True, nullable=True)
    organization: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)  # Organization.*
    is_active:    Mapped[bool]          = mapped_column(Boolean, default=True)
    created_at:   Mapped[datetime]      = mapped_column(DateTime, default=func.now())

    members: Mapped[List["Member"]] = relationship(back_populates="society")

    @property
    def display_name(self) -> str:
        if self.society_code:
            return f"{self.society_code} · {self.name}"
        return self.name


class Member(Base):
    """An athlete. `category` is an explicit override of the calculated one."""
    __tablename__ = "members"

    id:                Mapped[int]            = mapped_column(Integer, primary_key=True, autoincrement=True)
    society_id:        Mapped[Optional[int]]  = mapped_column(ForeignKey("societies.id"), nullable=True, index=True)
    first_name:        Mapped[str]            = mapped_column(String(100))
    last_name:         Mapped[str]            = mapped_column(String(100))
    birth_date:        Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender:            Mapped[Optional[str]]  = mapped_column(String(5), nullable=True)   # "M" | "F"
    membership_number: Mapped[Optional[str]]  = mapped_column(String(50), nullable=True, index=True)
    organization:      Mapped[Optional[str]]  = mapped_column(String(20), nullable=True)  # Organization.*
    category:          Mapped[Optional[str]]  = mapped_column(String(50), nullable=True)
    is_active:         Mapped[bool]           = mapped_column(Boolean, default=True)
    created_at:        Mapped[datetime]       = mapped_column(DateTime, default=func.now())

    society: Mapped[Optional["Society"]] = relationship(back_populates="members")

    @property
    def full_name(self) -> str:
        return f"{self.last_name} {self.first_name}"


class Championship(Base):
    """A multi-race competition for one season."""
    __tablename__ = "championships"

    id:                Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    name:              Mapped[str]           = mapped_column(String(255))
    year:              Mapped[int]           = mapped_column(Integer)
    season:            Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    championship_type: Mapped[str]           = mapped_column(String(30), default=ChampionshipType.CROSS_COUNTRY)
    is_active:         Mapped[bool]          = mapped_column(Boolean, default=True)
    created_at:        Mapped[datetime]      = mapped_column(DateTime, default=func.now())

    races: Mapped[List["Race"]] = relationship(
        back_populates="championship", order_by="Race.event_number"
    )

    @property
    def type_label(self) -> str:
        return ChampionshipType.LABELS.get(self.championship_type, self.championship_type)


class Race(Base):
    """One stage of a championship, or a standalone race when championship_id is NULL."""
    __tablename__ = "events"

    id:               Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    championship_id:  Mapped[Optional[int]] = mapped_column(ForeignKey("championships.id"), nullable=True, index=True)
    title:            Mapped[str]           = mapped_column(String(255))
    event_date:       Mapped[date]          = mapped_column(Date)
    event_number:     Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    location:         Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    max_participants: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    poster_url:       Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    results_url:      Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active:        Mapped[bool]          = mapped_column(Boolean, default=True)
    created_at:       Mapped[datetime]      = mapped_column(DateTime, default=func.now())

    championship: Mapped[Optional["Championship"]] = relationship(back_populates="races")

    @property
    def is_standalone(self) -> bool:
        return self.championship_id is None


class ChampionshipRegistration(Base):
    """
    Athlete entry in a championship.

    Bib number and athlete are unique per championship across every row,
    cancelled ones included: a cancelled athlete keeps their number.
    """
    __tablename__ = "championship_registrations"
    __table_args__ = (
        UniqueConstraint("championship_id", "bib_number", name="uq_championship_registrations_bib_number"),
        UniqueConstraint("championship_id", "member_id", name="uq_championship_registrations_member"),
    )

    id:              Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    championship_id: Mapped[int]           = mapped_column(ForeignKey("championships.id"), index=True)
    member_id:       Mapped[int]           = mapped_column(ForeignKey("members.id"))
    society_id:      Mapped[Optional[int]] = mapped_column(ForeignKey("societies.id"), nullable=True)
    bib_number:      Mapped[int]           = mapped_column(Integer)
    organization:    Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    category:        Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status:          Mapped[str]           = mapped_column(String(20), default=RegistrationStatus.CONFIRMED)
    notes:           Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    created_by:      Mapped[Optional[int]] = mapped_column(BigInteger, nullable=True)  # telegram_id
    created_at:      Mapped[datetime]      = mapped_column(DateTime, default=func.now())
    updated_at:      Mapped[datetime]      = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    member:       Mapped["Member"]       = relationship()
    championship: Mapped["Championship"] = relationship()

    @property
    def is_confirmed(self) -> bool:
        return self.status == RegistrationStatus.CONFIRMED


class RaceRegistration(Base):
    """Athlete entry in a single race."""
    __tablename__ = "event_registrations"
    __table_args__ = (
        UniqueConstraint("event_id", "bib_number", name="uq_event_registrations_bib_number"),
        UniqueConstraint("event_id", "member_id", name="uq_event_registrations_member"),
    )

    id:           Mapped[int]           = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id:     Mapped[int]           = mapped_column(ForeignKey("events.id"), index=True)
    member_id:    Mapped[int]           = mapped_column(ForeignKey("members.id"))
    society_id:   Mapped[Optional[int]] = mapped_column(ForeignKey("societies.id"), nullable=True)
    bib_number:   Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    organization: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)
    category:     Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status:       Mapped[str]           = mapped_column(String(20), default=RegistrationStatus.CONFIRMED)
    created_at:   Mapped[datetime]      = mapped_column(DateTime, default=func.now())
    updated_at:   Mapped[datetime]      = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    member: Mapped["Member"] = relationship()
    race:   Mapped["Race"]   = relationship()
