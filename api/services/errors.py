"""Domain exceptions shared by the engine's services.

Two families:
- InputError: the caller asked for something malformed or unknown. Raised
  before any computation, never silently defaulted.
- StoreUnavailableError: the completion store could not answer. Raised by
  repositories and propagated untouched, so "could not get data" is never
  confused with "no history".

An empty history is not an error; calculators return zero results for it.
"""

from datetime import datetime


class InputError(ValueError):
    """Base class for rejected inputs."""


class InvalidWindowError(InputError):
    """Raised when a time window is inverted, empty or timezone-naive."""

    def __init__(self, start: object, end: object, reason: str = "") -> None:
        self.start = start
        self.end = end
        message = f"Invalid window: {start} to {end}"
        if reason:
            message = f"{message} ({reason})"
        super().__init__(message)


class InvalidGoalError(InputError):
    """Raised when a habit goal is not a positive integer."""

    def __init__(self, goal: object) -> None:
        self.goal = goal
        super().__init__(f"Invalid goal: {goal!r}")


class InvalidFrequencyError(InputError):
    """Raised for an analytics frequency other than weekly, monthly, all time."""

    def __init__(self, frequency: object) -> None:
        self.frequency = frequency
        super().__init__(f"Invalid frequency: {frequency!r}")


class NaiveDatetimeError(InputError):
    """Raised when an instant carries no timezone information."""

    def __init__(self, value: datetime) -> None:
        self.value = value
        super().__init__(f"Timezone-aware datetime required, got {value!r}")


class HabitNotFoundError(InputError):
    """Raised when a habit id is unknown or the habit was deleted."""

    def __init__(self, habit_id: int) -> None:
        self.habit_id = habit_id
        super().__init__(f"Habit not found: {habit_id}")


class UserNotFoundError(InputError):
    """Raised when a user id is unknown."""

    def __init__(self, user_id: str) -> None:
        self.user_id = user_id
        super().__init__(f"User not found: {user_id}")


class StoreUnavailableError(Exception):
    """Raised when the completion store fails or times out.

    The original driver exception is chained as __cause__.
    """

    def __init__(self, operation: str, error: BaseException) -> None:
        self.operation = operation
        self.error_type = type(error).__name__
        super().__init__(f"Store unavailable during {operation}: {self.error_type}")
