"""Tests for the Executor's 202 (not ready) retry policy and settle delay.

Tests cover:
- GET 202 is retried until a non-202 arrives
- Retry budget exhaustion raises RetryExhaustedError naming the limit
- retry_delay_seconds=0 disables retries and returns the 202
- Non-GET 202 is never retried
- Settle delay after successful mutations only
"""

from unittest.mock import patch

import pytest

from ghrest.errors import ApiError, RetryExhaustedError
from ghrest.models import RequestDescriptor
from tests.conftest import make_response


def _not_ready():
    return make_response(202, {})


class TestNotReadyRetry:
    """GET requests answered with 202 are retried with a fixed delay."""

    def test_three_202_then_200_with_budget_of_three(self, build_executor) -> None:
        executor, transport = build_executor(
            _not_ready(), _not_ready(), _not_ready(), make_response(200, {"total": 42}),
            max_retries_when_not_ready=3,
            retry_delay_seconds=1,
        )

        with patch("ghrest.executor.time.sleep") as mock_sleep:
            envelope = executor.execute(RequestDescriptor(target="repos/o/r/stats/contributors"))

        assert envelope.status_code == 200
        assert envelope.body == {"total": 42}
        assert len(transport.requests) == 4
        assert mock_sleep.call_count == 3
        for call in mock_sleep.call_args_list:
            assert call.args[0] == 1

    def test_three_202_exhausts_budget_of_two(self, build_executor) -> None:
        executor, transport = build_executor(
            _not_ready(), _not_ready(), _not_ready(), make_response(200, {}),
            max_retries_when_not_ready=2,
            retry_delay_seconds=1,
        )

        with patch("ghrest.executor.time.sleep"):
            with pytest.raises(RetryExhaustedError) as exc_info:
                executor.execute(RequestDescriptor(target="repos/o/r/stats/contributors"))

        assert exc_info.value.limit == 2
        assert "2" in str(exc_info.value)
        assert len(transport.requests) == 3

    def test_zero_budget_fails_on_first_202(self, build_executor) -> None:
        executor, transport = build_executor(
            _not_ready(),
            max_retries_when_not_ready=0,
            retry_delay_seconds=5,
        )

        with patch("ghrest.executor.time.sleep") as mock_sleep:
            with pytest.raises(RetryExhaustedError) as exc_info:
                executor.execute(RequestDescriptor(target="repos/o/r/stats/punch_card"))

        assert exc_info.value.limit == 0
        assert len(transport.requests) == 1
        mock_sleep.assert_not_called()

    def test_zero_delay_returns_202_without_retry(self, build_executor, caplog) -> None:
        executor, transport = build_executor(
            _not_ready(),
            max_retries_when_not_ready=5,
            retry_delay_seconds=0,
        )

        with patch("ghrest.executor.time.sleep") as mock_sleep:
            with caplog.at_level("WARNING", logger="ghrest"):
                envelope = executor.execute(RequestDescriptor(target="repos/o/r/stats/commit_activity"))

        assert envelope.status_code == 202
        assert len(transport.requests) == 1
        mock_sleep.assert_not_called()
        assert "retries are disabled" in caplog.text

    def test_each_retry_logs_remaining_budget(self, build_executor, caplog) -> None:
        executor, _ = build_executor(
            _not_ready(), _not_ready(), make_response(200, []),
            max_retries_when_not_ready=3,
        )

        with patch("ghrest.executor.time.sleep"):
            with caplog.at_level("WARNING", logger="ghrest"):
                executor.execute(RequestDescriptor(target="repos/o/r/stats/participation"))

        warnings = [r.getMessage() for r in caplog.records if r.levelname == "WARNING"]
        assert len(warnings) == 2
        assert "3 of 3 retries remaining" in warnings[0]
        assert "2 of 3 retries remaining" in warnings[1]

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    def test_non_get_202_not_retried(self, build_executor, caplog, method: str) -> None:
        executor, transport = build_executor(make_response(202, {"queued": True}))

        with patch("ghrest.executor.time.sleep") as mock_sleep:
            with caplog.at_level("WARNING", logger="ghrest"):
                envelope = executor.execute(RequestDescriptor(method=method, target="repos/o/r/forks"))

        assert envelope.status_code == 202
        assert envelope.body == {"queued": True}
        assert len(transport.requests) == 1
        mock_sleep.assert_not_called()
        assert "not retrying" in caplog.text

    def test_error_during_retry_propagates(self, build_executor) -> None:
        executor, transport = build_executor(
            _not_ready(), make_response(500, {"message": "Server Error"}),
        )

        with patch("ghrest.executor.time.sleep"):
            with pytest.raises(ApiError) as exc_info:
                executor.execute(RequestDescriptor(target="repos/o/r/stats/contributors"))

        assert exc_info.value.status_code == 500
        assert len(transport.requests) == 2


class TestSettleDelay:
    """State-changing calls optionally pause after success."""

    @pytest.mark.parametrize("method", ["POST", "PUT", "PATCH", "DELETE"])
    def test_mutation_sleeps_configured_delay(self, build_executor, method: str) -> None:
        executor, _ = build_executor(make_response(200, {}), state_change_delay_seconds=2)

        with patch("ghrest.executor.time.sleep") as mock_sleep:
            executor.execute(RequestDescriptor(method=method, target="repos/o/r/labels"))

        mock_sleep.assert_called_once_with(2)

    def test_get_does_not_settle(self, build_executor) -> None:
        executor, _ = build_executor(make_response(200, {}), state_change_delay_seconds=2)

        with patch("ghrest.executor.time.sleep") as mock_sleep:
            executor.execute(RequestDescriptor(target="repos/o/r/labels"))

        mock_sleep.assert_not_called()

    def test_zero_delay_does_not_sleep(self, build_executor) -> None:
        executor, _ = build_executor(make_response(201, {"id": 1}), state_change_delay_seconds=0)

        with patch("ghrest.executor.time.sleep") as mock_sleep:
            executor.execute(RequestDescriptor(method="POST", target="repos/o/r/labels", body="{}"))

        mock_sleep.assert_not_called()

    def test_failed_mutation_does_not_settle(self, build_executor) -> None:
        executor, _ = build_executor(
            make_response(422, {"message": "Validation Failed"}), state_change_delay_seconds=2
        )

        with patch("ghrest.executor.time.sleep") as mock_sleep:
            with pytest.raises(ApiError):
                executor.execute(RequestDescriptor(method="POST", target="repos/o/r/labels", body="{}"))

        mock_sleep.assert_not_called()
