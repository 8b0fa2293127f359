"""SQLAlchemy models for habit completion tracking."""

from datetime import UTC, date, datetime
from enum import StrEnum

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Integer,
    String,
    TypeDecorator,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, declared_attr, mapped_column, relationship

from core.database import Base

MIN_GOAL = 1
MAX_GOAL = 7


def utcnow() -> datetime:
    """Return current UTC time (timezone-aware)."""
    return datetime.now(UTC)


class UTCDateTime(TypeDecorator[datetime]):
    """Timezone-aware timestamp stored and returned in UTC.

    SQLite keeps no offset, so values read back without one are UTC.
    """

    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is not None and value.tzinfo is not None:
            return value.astimezone(UTC)
        return value

    def process_result_value(self, value, dialect):
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value


class HabitColor(StrEnum):
    """Display palette offered to users."""

    LIME = "#BFFF95"
    MINT = "#89E2CD"
    LEMON = "#FBEF95"
    PINK = "#FEBCEA"
    PEACH = "#F2C394"


class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamp columns."""

    @declared_attr
    def created_at(cls) -> Mapped[datetime]:
        return mapped_column(UTCDateTime(), default=utcnow)

    @declared_attr
    def updated_at(cls) -> Mapped[datetime]:
        return mapped_column(UTCDateTime(), default=utcnow, onupdate=utcnow)


class User(TimestampMixin, Base):
    """Owner of habits. Deleting a user cascades to habits and their records."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(255), primary_key=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    deleted_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )

    habits: Mapped[list["Habit"]] = relationship(
        back_populates="user",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )


class Habit(TimestampMixin, Base):
    """A recurring activity with a completions-per-week goal.

    Soft-deleted through deleted_at; completion records stay until the habit
    row itself is removed.
    """

    __tablename__ = "habits"
    __table_args__ = (
        CheckConstraint(
            f"goal >= {MIN_GOAL} AND goal <= {MAX_GOAL}", name="ck_habits_goal"
        ),
        Index("ix_habits_user_deleted", "user_id", "deleted_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("users.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    goal: Mapped[int] = mapped_column(Integer, nullable=False)
    color: Mapped[str] = mapped_column(
        String(7), nullable=False, default=HabitColor.LIME.value
    )
    deleted_at: Mapped[datetime | None] = mapped_column(
        UTCDateTime(), nullable=True
    )

    user: Mapped["User"] = relationship(back_populates="habits")
    completions: Mapped[list["CompletionRecord"]] = relationship(
        back_populates="habit",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None


class CompletionRecord(Base):
    """Whether a habit was accomplished on one calendar day.

    ``day`` is the reference-zone date the record stands for and never changes.
    ``date_changed`` is the instant of the last toggle and moves on every flip.
    """

    __tablename__ = "completion_records"
    __table_args__ = (
        UniqueConstraint("habit_id", "day", name="uq_completion_habit_day"),
        Index("ix_completion_records_habit_done_day", "habit_id", "done", "day"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    habit_id: Mapped[int] = mapped_column(
        Integer,
        ForeignKey("habits.id", ondelete="CASCADE"),
        nullable=False,
    )
    day: Mapped[date] = mapped_column(Date, nullable=False)
    done: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    date_changed: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )
    created_at: Mapped[datetime] = mapped_column(
        UTCDateTime(), nullable=False, default=utcnow
    )

    habit: Mapped["Habit"] = relationship(back_populates="completions")
