"""
Restbase Python Client SDK

Async client library for PostgREST-based backend-as-a-service platforms.
Provides access to Auth, Database, RPC, Storage, and Realtime APIs.

Example usage:
    from restbase import RestbaseClient

    client = RestbaseClient(url="https://project.example.com", key="your-anon-key")

    # Auth
    result = await client.auth.sign_in(email="user@example.com", password="password123")

    # Database queries
    result = await client.from_("users").select("id,name").eq("role", "admin").limit(10).execute()
    print(result.data, result.metadata.count)

    # Realtime subscriptions
    await client.subscribe("messages", lambda text: print(text))
"""

from .client import RestbaseClient
from .database import Order, QueryBuilder
from .exceptions import (
    RestbaseException,
    ParseError,
    InvalidResponse,
    SerializationError,
    NetworkError,
    MaxRetriesExceeded,
    AuthError,
    QueryError,
    StorageError,
    RpcError,
    RealtimeError,
    EmptyInList,
)
from .json_value import JsonValue, JsonKind, deep_clone, dump_json, parse_json
from .retry import TRANSIENT_STATUSES
from .types import (
    ClientOptions,
    ResponseMetadata,
    RestbaseResponse,
    RestbaseError,
    RetryPolicy,
    User,
    Session,
    FileObject,
    StorageObject,
)

__version__ = "1.0.0"

__all__ = [
    "RestbaseClient",
    "QueryBuilder",
    "Order",
    "ClientOptions",
    "RetryPolicy",
    "TRANSIENT_STATUSES",
    "RestbaseResponse",
    "RestbaseError",
    "ResponseMetadata",
    "User",
    "Session",
    "FileObject",
    "StorageObject",
    "JsonValue",
    "JsonKind",
    "parse_json",
    "dump_json",
    "deep_clone",
    "RestbaseException",
    "ParseError",
    "InvalidResponse",
    "SerializationError",
    "NetworkError",
    "MaxRetriesExceeded",
    "AuthError",
    "QueryError",
    "StorageError",
    "RpcError",
    "RealtimeError",
    "EmptyInList",
]
