"""
RestbaseClient unit tests.
"""

import pytest
from unittest.mock import MagicMock

from restbase import RestbaseClient, ClientOptions
from restbase.auth import AuthClient
from restbase.database import QueryBuilder
from restbase.storage import StorageClient
from restbase.types import Session

from helpers import MockResponse, request_body, request_headers, request_url


@pytest.fixture
def client(mock_session: MagicMock) -> RestbaseClient:
    options = ClientOptions(retry_interval_ms=0, headers={"X-Client-Info": "restbase-py"})
    return RestbaseClient("https://api.test.com/", "anon-key", options, session=mock_session)


class TestRestbaseClient:
    """Tests for RestbaseClient construction and wiring."""

    def test_initialization(self, client: RestbaseClient) -> None:
        """Test client initialization."""
        assert client.base_url == "https://api.test.com"
        assert isinstance(client.auth, AuthClient)
        assert isinstance(client.storage, StorageClient)
        assert isinstance(client.from_("users"), QueryBuilder)

    def test_missing_url_raises(self) -> None:
        """Test that missing URL raises ValueError."""
        with pytest.raises(ValueError, match="url is required"):
            RestbaseClient(url="", key="key")

    def test_missing_key_raises(self) -> None:
        """Test that missing key raises ValueError."""
        with pytest.raises(ValueError, match="key is required"):
            RestbaseClient(url="https://api.test.com", key="")

    def test_default_options(self) -> None:
        client = RestbaseClient("https://api.test.com", "anon-key")

        assert client.options.schema == "public"
        assert client.options.timeout_ms == 10000
        assert client.options.max_retries == 3
        assert client.options.retry_interval_ms == 1000
        assert client.options.service_key is None

    def test_websocket_url(self) -> None:
        """Test WebSocket URL generation."""
        client = RestbaseClient("https://project.example.com", "key")
        assert client._build_websocket_url() == "wss://project.example.com/realtime/v1/websocket"

        client = RestbaseClient("http://localhost:54321", "key")
        assert client._build_websocket_url() == "ws://localhost:54321/realtime/v1/websocket"

    def test_from_env(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESTBASE_URL", "https://env.example.com")
        monkeypatch.setenv("RESTBASE_ANON_KEY", "env-anon")
        monkeypatch.setenv("RESTBASE_SERVICE_KEY", "env-service")

        client = RestbaseClient.from_env()

        assert client.base_url == "https://env.example.com"
        assert client.options.service_key == "env-service"

    def test_from_env_leaves_caller_options_alone(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RESTBASE_URL", "https://env.example.com")
        monkeypatch.setenv("RESTBASE_ANON_KEY", "env-anon")
        monkeypatch.setenv("RESTBASE_SERVICE_KEY", "env-service")
        options = ClientOptions(timeout_ms=500)

        client = RestbaseClient.from_env(options)

        assert options.service_key is None
        assert client.options is not options
        assert client.options.service_key == "env-service"
        assert client.options.timeout_ms == 500

    def test_from_env_requires_url(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("RESTBASE_URL", raising=False)
        monkeypatch.setenv("RESTBASE_ANON_KEY", "env-anon")

        with pytest.raises(ValueError):
            RestbaseClient.from_env()

    def test_bearer_token_fallback(self) -> None:
        client = RestbaseClient("https://api.test.com", "anon-key")
        assert client._bearer_token() == "anon-key"

        client.options.service_key = "service-key"
        assert client._bearer_token() == "service-key"

        client.auth._session = Session.from_json({
            "access_token": "user-token",
            "refresh_token": "refresh",
            "expires_in": 3600,
            "user": {"id": "1", "email": "a@example.com"},
        })
        assert client._bearer_token() == "user-token"

    @pytest.mark.asyncio
    async def test_query_sends_custom_headers(
        self, client: RestbaseClient, mock_session: MagicMock
    ) -> None:
        mock_session.request.return_value = MockResponse([{"id": "1"}])

        result = await client.from_("users").select("id").execute()

        assert result.error is None
        headers = request_headers(mock_session.request.call_args)
        assert headers["X-Client-Info"] == "restbase-py"
        assert headers["apikey"] == "anon-key"
        assert headers["Authorization"] == "Bearer anon-key"

    @pytest.mark.asyncio
    async def test_rpc(self, client: RestbaseClient, mock_session: MagicMock) -> None:
        mock_session.request.return_value = MockResponse({"sum": 3})

        result = await client.rpc("add", {"a": 1, "b": 2})

        assert result.data == {"sum": 3}
        call_args = mock_session.request.call_args
        assert request_url(call_args) == "https://api.test.com/rest/v1/rpc/add"
        assert request_body(call_args) == {"a": 1, "b": 2}

    @pytest.mark.asyncio
    async def test_execute_query(self, client: RestbaseClient, mock_session: MagicMock) -> None:
        mock_session.request.return_value = MockResponse([])

        await client.execute_query(QueryBuilder("orders").order("created_at").limit(5))

        assert request_url(mock_session.request.call_args) == (
            "https://api.test.com/rest/v1/orders?order=created_at.asc&limit=5"
        )

    @pytest.mark.asyncio
    async def test_close_keeps_injected_session(
        self, client: RestbaseClient, mock_session: MagicMock
    ) -> None:
        async with client:
            pass

        mock_session.close.assert_not_called()
