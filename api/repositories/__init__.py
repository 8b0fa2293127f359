"""Repository layer for database operations.

Repositories encapsulate all database queries, keeping services focused on
calendar rules and streak arithmetic. This separation provides:
- Single source of truth for database operations
- Easier testing (repositories can be mocked)
- One place where driver failures become StoreUnavailableError
"""

from repositories.completion_repository import CompletionRepository
from repositories.habit_repository import HabitRepository
from repositories.user_repository import UserRepository
from repositories.utils import log_slow_query

__all__ = [
    "CompletionRepository",
    "HabitRepository",
    "UserRepository",
    "log_slow_query",
]
