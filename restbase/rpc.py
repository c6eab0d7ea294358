"""
RpcClient - Remote procedure calls for Restbase.

Invoke Postgres functions exposed under /rest/v1/rpc.
"""

from http import HTTPStatus
from typing import TYPE_CHECKING, Optional, Dict, Any

from .decoder import build_metadata, decode_response, error_details
from .exceptions import RestbaseException, RpcError
from .json_value import JsonValue, dump_json
from .types import RestbaseError, RestbaseResponse

if TYPE_CHECKING:
    from .retry import RequestExecutor


class RpcClient:
    """RPC client for database function invocation."""

    def __init__(
        self,
        base_url: str,
        executor: "RequestExecutor",
        api_key: str,
        get_token: Any,
        schema: str = "public",
    ) -> None:
        self._rpc_url = f"{base_url}/rest/v1/rpc"
        self._executor = executor
        self._api_key = api_key
        self._get_token = get_token
        self._schema = schema

    def _get_headers(self) -> Dict[str, str]:
        """Build request headers."""
        headers: Dict[str, str] = {
            "apikey": self._api_key,
            "Content-Type": "application/json",
        }
        token = self._get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if self._schema != "public":
            headers["Content-Profile"] = self._schema
        return headers

    async def call(
        self,
        function_name: str,
        params: Optional[JsonValue] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> RestbaseResponse[JsonValue]:
        """Invoke a function by name."""
        url = f"{self._rpc_url}/{function_name}"
        request_headers = self._get_headers()
        if headers:
            request_headers.update(headers)
        try:
            body = dump_json(params) if params is not None else None
            response = await self._executor.request("POST", url, request_headers, body)
            if not response.ok:
                message, details = error_details(response, "RPC failed")
                raise RpcError(message, status=response.status, details=details)

            # void functions answer 204 with no body
            if response.status == HTTPStatus.NO_CONTENT or not response.body:
                return RestbaseResponse(
                    data=None, error=None, metadata=build_metadata(response)
                )
            data, metadata = decode_response(response)
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))
        return RestbaseResponse(data=data, error=None, metadata=metadata)
