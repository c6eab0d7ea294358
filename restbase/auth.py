"""
AuthClient - Authentication operations for Restbase.

Handles user signup, signin, signout, token refresh and password recovery.
Uses Result pattern - never raises exceptions.
"""

from typing import TYPE_CHECKING, Optional, Dict, Any
import logging

from .decoder import decode_response, error_details
from .exceptions import AuthError, RestbaseException
from .json_value import dump_json
from .types import (
    RestbaseResponse,
    RestbaseError,
    User,
    Session,
)

if TYPE_CHECKING:
    from .retry import RawResponse, RequestExecutor

logger = logging.getLogger(__name__)


class AuthClient:
    """Authentication client for user management."""

    def __init__(
        self,
        base_url: str,
        executor: "RequestExecutor",
        api_key: str,
    ) -> None:
        self._auth_url = f"{base_url}/auth/v1"
        self._executor = executor
        self._api_key = api_key
        self._session: Optional[Session] = None

    def _get_headers(self, token: Optional[str] = None) -> Dict[str, str]:
        """Build request headers."""
        headers: Dict[str, str] = {
            "apikey": self._api_key,
            "Content-Type": "application/json",
        }
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def get_token(self) -> Optional[str]:
        """Get current access token."""
        return self._session.access_token if self._session else None

    def get_session(self) -> Optional[Session]:
        """Get current session."""
        return self._session

    async def _send(
        self,
        method: str,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        token: Optional[str] = None,
        failure: str = "Auth request failed",
    ) -> "RawResponse":
        body = dump_json(payload) if payload is not None else None
        response = await self._executor.request(
            method, f"{self._auth_url}/{path}", self._get_headers(token), body
        )
        if not response.ok:
            message, details = error_details(response, failure)
            raise AuthError(
                message,
                status=response.status,
                details=details,
            )
        return response

    async def _session_request(
        self, path: str, payload: Dict[str, Any], failure: str
    ) -> RestbaseResponse[Session]:
        try:
            response = await self._send("POST", path, payload, failure=failure)
            data, _ = decode_response(response)
            session = Session.from_json(data)
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))

        self._session = session
        return RestbaseResponse(data=session, error=None)

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> RestbaseResponse[Session]:
        """Sign up a new user."""
        payload: Dict[str, Any] = {"email": email, "password": password}
        if metadata:
            payload["data"] = metadata
        return await self._session_request("signup", payload, "Signup failed")

    async def sign_in(self, email: str, password: str) -> RestbaseResponse[Session]:
        """Sign in with email and password."""
        return await self._session_request(
            "token?grant_type=password",
            {"email": email, "password": password},
            "Login failed",
        )

    async def sign_out(self) -> RestbaseResponse[None]:
        """Sign out the current user."""
        token = self.get_token()
        if not token:
            return RestbaseResponse(
                data=None,
                error=RestbaseError(message="Not authenticated", code="NOT_AUTHENTICATED"),
            )

        try:
            await self._send("POST", "logout", token=token, failure="Logout failed")
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))

        self._session = None
        return RestbaseResponse(data=None, error=None)

    async def get_user(self) -> RestbaseResponse[User]:
        """Get the current authenticated user."""
        token = self.get_token()
        if not token:
            return RestbaseResponse(
                data=None,
                error=RestbaseError(message="Not authenticated", code="NOT_AUTHENTICATED"),
            )

        try:
            response = await self._send(
                "GET", "user", token=token, failure="Failed to fetch user"
            )
            data, _ = decode_response(response)
            user = User.from_json(data)
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))
        return RestbaseResponse(data=user, error=None)

    async def refresh_session(
        self, refresh_token: Optional[str] = None
    ) -> RestbaseResponse[Session]:
        """Refresh the access token."""
        token = refresh_token or (self._session.refresh_token if self._session else None)
        if not token:
            return RestbaseResponse(
                data=None,
                error=RestbaseError(message="No refresh token", code="NO_REFRESH_TOKEN"),
            )

        result = await self._session_request(
            "token?grant_type=refresh_token",
            {"refresh_token": token},
            "Refresh failed",
        )
        if result.error is not None and result.error.code == AuthError.code:
            # the server rejected the token; the local session is unusable
            logger.info("Session refresh rejected with status %s", result.error.status)
            self._session = None
        return result

    async def reset_password_for_email(self, email: str) -> RestbaseResponse[None]:
        """Send a password recovery email."""
        try:
            await self._send(
                "POST", "recover", {"email": email}, failure="Password recovery failed"
            )
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))
        return RestbaseResponse(data=None, error=None)
