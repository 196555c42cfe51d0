"""
springbattle.database.models — SQLAlchemy 2.0 Data Models
==========================================================

Tables:
- users       — Battle participants (Telegram user id PK)
- logs        — Append-only distance journal, guild denormalized per row
- log_events  — In-progress logging conversation, at most one per user

Guild and sport are closed enums.  They are stored as plain strings
(``native_enum=False``) but validated on the way in, so a typo never
reaches the table.
"""

from __future__ import annotations

import enum
from datetime import UTC, datetime

from sqlalchemy import (
    BigInteger,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship


# ---------------------------------------------------------------------------
# Base
# ---------------------------------------------------------------------------
class Base(DeclarativeBase):
    """Shared base for all Spring Battle ORM models."""


def utcnow() -> datetime:
    return datetime.now(UTC)


# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------
class Guild(enum.StrEnum):
    """The two competing guilds."""
    SIK = "SIK"
    KIK = "KIK"


class Sport(enum.StrEnum):
    """Activity categories.  Declaration order is the report row order."""
    STEPS = "Steps"
    BIKING = "Biking"
    RUNNING_WALKING = "Running/Walking"


def _enum_column(enum_cls: type[enum.Enum], name: str) -> Enum:
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        length=32,
        validate_strings=True,
        values_callable=lambda members: [m.value for m in members],
    )


# ---------------------------------------------------------------------------
# Users — one row per Telegram account
# ---------------------------------------------------------------------------
class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True)
    user_name: Mapped[str] = mapped_column(String(200), nullable=False)
    guild: Mapped[Guild | None] = mapped_column(
        _enum_column(Guild, "guild"), nullable=True, default=None
    )

    # Relationships
    logs: Mapped[list[LogRecord]] = relationship(
        back_populates="user", cascade="all, delete-orphan"
    )
    pending_event: Mapped[PendingLogEvent | None] = relationship(
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
    )

    __table_args__ = (
        Index("ix_users_guild", "guild"),
    )

    def __repr__(self) -> str:
        return f"<User id={self.id} name={self.user_name!r} guild={self.guild}>"


# ---------------------------------------------------------------------------
# LogRecord — append-only distance journal
# ---------------------------------------------------------------------------
class LogRecord(Base):
    """One recorded exercise.

    ``guild`` is a snapshot of the owner's guild at insertion time; it is
    only rewritten by an explicit guild reset.  ``distance`` is always in
    kilometres (steps are converted before insert).
    """
    __tablename__ = "logs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    guild: Mapped[Guild] = mapped_column(_enum_column(Guild, "guild"), nullable=False)
    sport: Mapped[Sport] = mapped_column(_enum_column(Sport, "sport"), nullable=False)
    distance: Mapped[float] = mapped_column(Float, nullable=False)

    user: Mapped[User] = relationship(back_populates="logs")

    __table_args__ = (
        Index("ix_logs_user_id", "user_id"),
        Index("ix_logs_created_at", "created_at"),
        Index("ix_logs_guild_sport", "guild", "sport"),
    )

    def __repr__(self) -> str:
        return (
            f"<LogRecord id={self.id} user={self.user_id} "
            f"{self.guild} {self.sport} {self.distance}>"
        )


# ---------------------------------------------------------------------------
# PendingLogEvent — in-progress logging conversation
# ---------------------------------------------------------------------------
class PendingLogEvent(Base):
    """A submission is waiting for its sport and/or distance.

    ``sport`` is NULL until the user picks one from the keyboard.
    """
    __tablename__ = "log_events"

    user_id: Mapped[int] = mapped_column(
        BigInteger, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    sport: Mapped[Sport | None] = mapped_column(
        _enum_column(Sport, "sport"), nullable=True, default=None
    )

    user: Mapped[User] = relationship(back_populates="pending_event")

    def __repr__(self) -> str:
        return f"<PendingLogEvent user={self.user_id} sport={self.sport}>"
