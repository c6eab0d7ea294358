"""
Type definitions for Restbase Python SDK.
All types are fully annotated for mypy strict mode.
"""

from dataclasses import dataclass, field
from typing import TypeVar, Generic, Optional, Dict, Any

from .exceptions import InvalidResponse, RestbaseException
from .json_value import JsonValue, deep_clone

T = TypeVar("T")


@dataclass
class RestbaseError:
    """Standard error type for all Restbase operations."""
    message: str
    status: Optional[int] = None
    code: Optional[str] = None
    details: Optional[Any] = None

    @classmethod
    def from_exception(cls, exc: RestbaseException) -> "RestbaseError":
        return cls(
            message=exc.message,
            status=exc.status,
            code=exc.code,
            details=exc.details,
        )


@dataclass(frozen=True)
class ResponseMetadata:
    """Typed metadata of a completed request."""
    status: int
    status_text: str
    count: Optional[int] = None


@dataclass
class RestbaseResponse(Generic[T]):
    """Standard response type for all Restbase async operations.
    Uses Result pattern - never raises exceptions."""
    data: Optional[T]
    error: Optional[RestbaseError]
    metadata: Optional[ResponseMetadata] = None


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded retry with a constant delay.

    max_retries is the total number of attempts: 0 makes no attempt at all,
    1 makes exactly one.
    """
    max_retries: int = 3
    retry_interval_ms: int = 1000

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_interval_ms < 0:
            raise ValueError("retry_interval_ms must be >= 0")


@dataclass
class ClientOptions:
    """Client configuration."""
    schema: str = "public"
    headers: Dict[str, str] = field(default_factory=dict)
    service_key: Optional[str] = None
    timeout_ms: int = 10000
    max_retries: int = 3
    retry_interval_ms: int = 1000

    def retry_policy(self) -> RetryPolicy:
        return RetryPolicy(
            max_retries=self.max_retries,
            retry_interval_ms=self.retry_interval_ms,
        )


def _require(obj: Dict[str, Any], key: str, kind: type, where: str) -> Any:
    value = obj.get(key)
    # bool is an int subclass; an integer field never accepts true/false
    if not isinstance(value, kind) or (kind is int and isinstance(value, bool)):
        raise InvalidResponse(f"{where}: missing or invalid field '{key}'")
    return value


@dataclass
class User:
    """User type returned from auth operations."""
    id: str
    email: str
    role: Optional[str] = None
    email_verified: bool = False
    created_at: Optional[str] = None
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_json(cls, data: JsonValue) -> "User":
        if not isinstance(data, dict):
            raise InvalidResponse("user: expected a JSON object")
        role = data.get("role")
        metadata = data.get("user_metadata", data.get("metadata"))
        return cls(
            id=_require(data, "id", str, "user"),
            email=_require(data, "email", str, "user"),
            role=role if isinstance(role, str) else None,
            email_verified=bool(data.get("email_verified", False)),
            created_at=data.get("created_at"),
            metadata=deep_clone(metadata) if isinstance(metadata, dict) else None,
        )


@dataclass
class Session:
    """Session type containing authentication tokens."""
    access_token: str
    refresh_token: str
    expires_in: int
    user: User
    token_type: Optional[str] = None

    @classmethod
    def from_json(cls, data: JsonValue) -> "Session":
        """Decode a session. Every expected field is mandatory."""
        if not isinstance(data, dict):
            raise InvalidResponse("session: expected a JSON object")
        token_type = data.get("token_type")
        return cls(
            access_token=_require(data, "access_token", str, "session"),
            refresh_token=_require(data, "refresh_token", str, "session"),
            expires_in=_require(data, "expires_in", int, "session"),
            user=User.from_json(_require(data, "user", dict, "session")),
            token_type=token_type if isinstance(token_type, str) else None,
        )


@dataclass
class FileObject:
    """File object returned from storage uploads."""
    name: str
    bucket: str
    path: str
    size: int
    content_type: str
    key: Optional[str] = None


@dataclass
class StorageObject:
    """Entry of a bucket listing."""
    name: str
    size: int
    last_modified: Any
    content_type: str
    metadata: Optional[Dict[str, Any]] = None

    @classmethod
    def from_json(cls, data: JsonValue) -> "StorageObject":
        if not isinstance(data, dict):
            raise InvalidResponse("storage object: expected a JSON object")
        metadata = _require(data, "metadata", dict, "storage object")
        last_modified = metadata.get("lastModified")
        if last_modified is None:
            raise InvalidResponse("storage object: missing field 'lastModified'")
        return cls(
            name=_require(data, "name", str, "storage object"),
            size=_require(metadata, "size", int, "storage object"),
            last_modified=last_modified,
            content_type=_require(metadata, "mimetype", str, "storage object"),
            metadata=deep_clone(metadata),  # type: ignore[arg-type]
        )
