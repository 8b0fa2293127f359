"""Tests for repositories/utils.py - query timing and store failure mapping."""

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError

from repositories.completion_repository import CompletionRepository
from repositories.utils import log_slow_query
from services.errors import StoreUnavailableError

pytestmark = pytest.mark.unit


def _failing_session(error: BaseException) -> MagicMock:
    db = MagicMock()
    db.execute = AsyncMock(side_effect=error)
    return db


class TestStoreFailureTranslation:
    async def test_operational_error_becomes_store_unavailable(self):
        cause = OperationalError("SELECT 1", {}, Exception("database is locked"))
        repo = CompletionRepository(_failing_session(cause))

        with pytest.raises(StoreUnavailableError) as exc_info:
            await repo.find({1})

        assert exc_info.value.operation == "find_completions"
        assert exc_info.value.error_type == "OperationalError"
        assert exc_info.value.__cause__ is cause

    async def test_timeout_becomes_store_unavailable(self):
        repo = CompletionRepository(_failing_session(TimeoutError()))

        with pytest.raises(StoreUnavailableError):
            await repo.count_for_habit(1)

    async def test_invalidated_connection_becomes_store_unavailable(self):
        cause = DBAPIError(
            "SELECT 1", {}, Exception("gone"), connection_invalidated=True
        )
        repo = CompletionRepository(_failing_session(cause))

        with pytest.raises(StoreUnavailableError):
            await repo.first_day({1})

    async def test_integrity_error_propagates_unchanged(self):
        cause = IntegrityError("INSERT", {}, Exception("duplicate"))
        repo = CompletionRepository(_failing_session(cause))

        with pytest.raises(IntegrityError):
            await repo.count_for_habit(1)

    async def test_failure_is_logged(self):
        repo = CompletionRepository(_failing_session(TimeoutError()))

        with patch("repositories.utils.logger") as mock_logger:
            with pytest.raises(StoreUnavailableError):
                await repo.count_for_habit(1)

        mock_logger.error.assert_called_once()
        assert mock_logger.error.call_args.args[0] == "db.query.failed"
        assert mock_logger.error.call_args.kwargs["db_operation"] == "count_completions"

    def test_store_unavailable_is_not_an_input_error(self):
        assert not issubclass(StoreUnavailableError, ValueError)


class TestLogSlowQuery:
    async def test_slow_query_warns(self):
        @log_slow_query("slow_op")
        async def operation() -> str:
            return "ok"

        with (
            patch("repositories.utils.time") as mock_time,
            patch("repositories.utils.logger") as mock_logger,
        ):
            mock_time.perf_counter.side_effect = [0.0, 1.0]
            assert await operation() == "ok"

        mock_logger.warning.assert_called_once()
        assert mock_logger.warning.call_args.kwargs["db_operation"] == "slow_op"

    async def test_fast_query_is_quiet(self):
        @log_slow_query("fast_op")
        async def operation() -> int:
            return 1

        with (
            patch("repositories.utils.time") as mock_time,
            patch("repositories.utils.logger") as mock_logger,
        ):
            mock_time.perf_counter.side_effect = [0.0, 0.01]
            assert await operation() == 1

        mock_logger.warning.assert_not_called()

    def test_preserves_function_name(self):
        @log_slow_query("named_op")
        async def my_query() -> None:
            return None

        assert my_query.__name__ == "my_query"
