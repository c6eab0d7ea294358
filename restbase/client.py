"""
RestbaseClient - Main client class for Restbase Python SDK.

Entry point for all Restbase operations.
Initializes and exposes auth, database, rpc, storage, and realtime clients.
"""

from dataclasses import replace
from typing import Optional, Any, Sequence
from urllib.parse import urlparse
import os

import aiohttp

from .auth import AuthClient
from .database import PostgrestClient, QueryBuilder
from .json_value import JsonValue
from .realtime import MessageHandler, RealtimeClient, RealtimeChannel
from .retry import RequestExecutor
from .rpc import RpcClient
from .storage import StorageClient
from .types import ClientOptions, RestbaseResponse


class RestbaseClient:
    """
    Main Restbase client class.

    Example:
        async with RestbaseClient(url="https://project.example.com", key="anon-key") as client:
            result = await client.from_("users").select("id,name").eq("id", "123").execute()
    """

    def __init__(
        self,
        url: str,
        key: str,
        options: Optional[ClientOptions] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """
        Initialize Restbase client.

        Args:
            url: Base URL of the Restbase instance
            key: Anonymous API key, sent as ``apikey`` on every request
            options: Timeouts, retry policy, schema and custom headers
            session: aiohttp session to reuse; one is created lazily otherwise
        """
        if not url:
            raise ValueError("RestbaseClient: url is required")
        if not key:
            raise ValueError("RestbaseClient: key is required")

        # Normalize URL
        self._base_url = url.rstrip("/")
        self._api_key = key
        self.options = options or ClientOptions()

        self._executor = RequestExecutor(
            session,
            self.options.retry_policy(),
            timeout_ms=self.options.timeout_ms,
            headers=self.options.headers,
        )

        self.auth = AuthClient(self._base_url, self._executor, self._api_key)

        self._db = PostgrestClient(
            self._base_url,
            self._executor,
            self._api_key,
            self._bearer_token,
            self.options.schema,
        )

        self._rpc = RpcClient(
            self._base_url,
            self._executor,
            self._api_key,
            self._bearer_token,
            self.options.schema,
        )

        self.storage = StorageClient(
            self._base_url,
            self._executor,
            self._api_key,
            self._bearer_token,
        )

        ws_url = self._build_websocket_url()
        self.realtime = RealtimeClient(ws_url, self._api_key, self.auth.get_token)

    @classmethod
    def from_env(cls, options: Optional[ClientOptions] = None) -> "RestbaseClient":
        """Build a client from RESTBASE_URL, RESTBASE_ANON_KEY and RESTBASE_SERVICE_KEY."""
        url = os.environ.get("RESTBASE_URL")
        key = os.environ.get("RESTBASE_ANON_KEY")
        if not url or not key:
            raise ValueError("RESTBASE_URL and RESTBASE_ANON_KEY must be set")
        options = options or ClientOptions()
        if options.service_key is None:
            options = replace(options, service_key=os.environ.get("RESTBASE_SERVICE_KEY"))
        return cls(url, key, options)

    @property
    def base_url(self) -> str:
        return self._base_url

    def _bearer_token(self) -> Optional[str]:
        """User token when signed in, else the service key, else the anon key."""
        return self.auth.get_token() or self.options.service_key or self._api_key

    def _build_websocket_url(self) -> str:
        """Build WebSocket URL from base URL."""
        parsed = urlparse(self._base_url)
        protocol = "wss" if parsed.scheme == "https" else "ws"
        return f"{protocol}://{parsed.netloc}/realtime/v1/websocket"

    def from_(self, table: str) -> QueryBuilder:
        """
        Create a query builder for a database table.
        Uses from_ to avoid Python keyword clash.
        """
        return self._db.from_(table)

    async def execute_query(self, builder: QueryBuilder) -> RestbaseResponse[JsonValue]:
        """Execute a builder, which may have been created standalone."""
        return await self._db.execute_query(builder)

    async def batch_insert(
        self, table: str, items: Sequence[JsonValue]
    ) -> RestbaseResponse[None]:
        return await self._db.batch_insert(table, items)

    async def batch_update(
        self, table: str, items: Sequence[JsonValue]
    ) -> RestbaseResponse[None]:
        return await self._db.batch_update(table, items)

    async def batch_delete(self, table: str, ids: Sequence[str]) -> RestbaseResponse[None]:
        return await self._db.batch_delete(table, ids)

    async def rpc(
        self, function: str, params: Optional[JsonValue] = None
    ) -> RestbaseResponse[JsonValue]:
        """Call a database function."""
        return await self._rpc.call(function, params)

    def channel(self, name: str) -> RealtimeChannel:
        """Create or get a realtime channel."""
        return self.realtime.channel(name)

    async def subscribe(self, name: str, callback: MessageHandler) -> RealtimeChannel:
        """Subscribe ``callback`` to the text messages of a channel."""
        return await self.realtime.subscribe(name, callback)

    async def close(self) -> None:
        """Close the client and release resources."""
        await self.realtime.disconnect()
        await self._executor.close()

    async def __aenter__(self) -> "RestbaseClient":
        """Async context manager entry."""
        return self

    async def __aexit__(
        self,
        exc_type: Any,
        exc_val: Any,
        exc_tb: Any,
    ) -> None:
        """Async context manager exit."""
        await self.close()
