"""Unit tests for the async retry helper"""
import pytest
from unittest.mock import AsyncMock, patch

from bundler_sdk.services import retry as retry_module
from bundler_sdk.services.retry import retry_async


class TestRetryAsync:
    """Tests for retry_async"""

    @pytest.mark.asyncio
    async def test_returns_first_success(self):
        """Test no retry happens when the first attempt succeeds"""
        factory = AsyncMock(return_value="ok")
        assert await retry_async(factory, min_timeout=0) == "ok"
        assert factory.await_count == 1

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        """Test failed attempts are retried"""
        factory = AsyncMock(side_effect=[RuntimeError("boom"), RuntimeError("boom"), "ok"])
        assert await retry_async(factory, attempts=3, min_timeout=0) == "ok"
        assert factory.await_count == 3

    @pytest.mark.asyncio
    async def test_raises_last_error_when_exhausted(self):
        """Test the last error propagates once attempts run out"""
        factory = AsyncMock(side_effect=[RuntimeError("first"), RuntimeError("last")])
        with pytest.raises(RuntimeError, match="last"):
            await retry_async(factory, attempts=2, min_timeout=0)

    @pytest.mark.asyncio
    async def test_bail_stops_immediately(self):
        """Test bail re-raises the given error without retrying"""
        calls = []

        async def factory(bail):
            calls.append(1)
            bail(KeyError("fatal"))

        with pytest.raises(KeyError):
            await retry_async(factory, attempts=5, min_timeout=0)
        assert len(calls) == 1

    @pytest.mark.asyncio
    async def test_backoff_delays(self):
        """Test delays grow by the backoff factor"""
        factory = AsyncMock(side_effect=[RuntimeError(), RuntimeError(), RuntimeError(), "ok"])
        with patch.object(retry_module.asyncio, "sleep", AsyncMock()) as sleep:
            await retry_async(factory, attempts=4, min_timeout=1.0, factor=2.0, max_timeout=3.0)

        assert [call.args[0] for call in sleep.await_args_list] == [1.0, 2.0, 3.0]
