"""
Shared fixtures: a mocked aiohttp session behind a real RequestExecutor.
"""

import pytest
from unittest.mock import MagicMock
from aiohttp import ClientSession

from restbase.retry import RequestExecutor
from restbase.types import RetryPolicy


@pytest.fixture
def mock_session() -> MagicMock:
    """Create mock aiohttp session."""
    return MagicMock(spec=ClientSession)


@pytest.fixture
def executor(mock_session: MagicMock) -> RequestExecutor:
    """Executor that retries up to three times without waiting."""
    return RequestExecutor(
        mock_session,
        RetryPolicy(max_retries=3, retry_interval_ms=0),
        timeout_ms=1000,
    )
