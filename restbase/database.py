"""
Database module - QueryBuilder and PostgrestClient for Restbase.

Implements fluent API for building PostgREST filter queries.
Query is not executed until execute() is called.
"""

from enum import Enum
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Sequence, Tuple, Union
from urllib.parse import quote
import logging

from .decoder import build_metadata, decode_response, error_details
from .exceptions import EmptyInList, QueryError, RestbaseException
from .json_value import JsonValue, dump_json
from .types import RestbaseError, RestbaseResponse

if TYPE_CHECKING:
    from .retry import RequestExecutor

logger = logging.getLogger(__name__)


class Order(str, Enum):
    ASC = "asc"
    DESC = "desc"


def _format_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def encode_filter(rendered: str) -> str:
    """Percent-encode both sides of a ``key=value`` filter."""
    key, sep, value = rendered.partition("=")
    return f"{quote(key, safe='')}{sep}{quote(value, safe='')}"


class QueryBuilder:
    """Fluent API for building database queries.

    Every filter call appends exactly one rendered clause; clauses are sent
    in call order. Column names and values are not validated.
    """

    def __init__(self, table: str, client: Optional["PostgrestClient"] = None) -> None:
        self._table = table
        self._client = client
        self._filters: List[str] = []
        self._range: Optional[Tuple[int, int]] = None

    @property
    def table(self) -> str:
        return self._table

    @property
    def filters(self) -> Tuple[str, ...]:
        return tuple(self._filters)

    @property
    def range_bounds(self) -> Optional[Tuple[int, int]]:
        return self._range

    def _append(self, rendered: str) -> "QueryBuilder":
        self._filters.append(rendered)
        return self

    def _filter(self, column: str, op: str, value: Any) -> "QueryBuilder":
        return self._append(f"{column}={op}.{_format_value(value)}")

    def select(self, columns: str = "*") -> "QueryBuilder":
        """Select specific columns."""
        return self._append(f"select={columns}")

    def eq(self, column: str, value: Any) -> "QueryBuilder":
        """Filter: equal."""
        return self._filter(column, "eq", value)

    def neq(self, column: str, value: Any) -> "QueryBuilder":
        """Filter: not equal."""
        return self._filter(column, "neq", value)

    def gt(self, column: str, value: Any) -> "QueryBuilder":
        """Filter: greater than."""
        return self._filter(column, "gt", value)

    def gte(self, column: str, value: Any) -> "QueryBuilder":
        """Filter: greater than or equal."""
        return self._filter(column, "gte", value)

    def lt(self, column: str, value: Any) -> "QueryBuilder":
        """Filter: less than."""
        return self._filter(column, "lt", value)

    def lte(self, column: str, value: Any) -> "QueryBuilder":
        """Filter: less than or equal."""
        return self._filter(column, "lte", value)

    def like(self, column: str, pattern: str) -> "QueryBuilder":
        """Filter: LIKE pattern match (case sensitive)."""
        return self._filter(column, "like", pattern)

    def ilike(self, column: str, pattern: str) -> "QueryBuilder":
        """Filter: ILIKE pattern match (case insensitive)."""
        return self._filter(column, "ilike", pattern)

    def in_(self, column: str, values: Sequence[Any]) -> "QueryBuilder":
        """Filter: IN list of values.

        Raises:
            EmptyInList: if ``values`` is empty.
        """
        if not values:
            raise EmptyInList(column)
        joined = ",".join(_format_value(v) for v in values)
        return self._append(f"{column}=in.({joined})")

    def is_(self, column: str, value: Any) -> "QueryBuilder":
        """Filter: IS (null, true, false)."""
        return self._filter(column, "is", value)

    def not_(self, column: str, operator: str, value: Any) -> "QueryBuilder":
        """Negate another operator."""
        return self._append(f"{column}=not.{operator}.{_format_value(value)}")

    def contains(self, column: str, value: Any) -> "QueryBuilder":
        """Filter: array/range column contains every element of value."""
        return self._append(f"{column}=cs.{{{_format_value(value)}}}")

    def contained_by(self, column: str, value: Any) -> "QueryBuilder":
        """Filter: every element of the column is contained in value."""
        return self._append(f"{column}=cd.{{{_format_value(value)}}}")

    def order(
        self, column: str, direction: Union[Order, str] = Order.ASC
    ) -> "QueryBuilder":
        """Order results."""
        return self._append(f"order={column}.{Order(direction).value}")

    def limit(self, count: int) -> "QueryBuilder":
        """Limit number of results."""
        return self._append(f"limit={count}")

    def offset(self, count: int) -> "QueryBuilder":
        """Offset for pagination."""
        return self._append(f"offset={count}")

    def range(self, start: int, end: int) -> "QueryBuilder":
        """Request rows start..end (inclusive) through the Range header."""
        self._range = (start, end)
        return self

    def build_query_string(self) -> str:
        """Render ``?f1&f2...`` with each filter percent-encoded, or ''."""
        if not self._filters:
            return ""
        return "?" + "&".join(encode_filter(f) for f in self._filters)

    def range_headers(self) -> Dict[str, str]:
        if self._range is None:
            return {}
        start, end = self._range
        return {"Range-Unit": "items", "Range": f"{start}-{end}"}

    async def execute(self) -> RestbaseResponse[JsonValue]:
        """Execute SELECT query."""
        if self._client is None:
            raise RuntimeError("QueryBuilder is not bound to a client")
        return await self._client.execute_query(self)


class PostgrestClient:
    """Database operations wrapper. Creates QueryBuilder instances."""

    def __init__(
        self,
        base_url: str,
        executor: "RequestExecutor",
        api_key: str,
        get_token: Any,  # Callable that returns Optional[str]
        schema: str = "public",
    ) -> None:
        self._rest_url = f"{base_url}/rest/v1"
        self._executor = executor
        self._api_key = api_key
        self._get_token = get_token
        self._schema = schema

    def _get_headers(self, prefer: Optional[str] = None) -> Dict[str, str]:
        """Build request headers."""
        headers: Dict[str, str] = {
            "apikey": self._api_key,
            "Content-Type": "application/json",
        }
        token = self._get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        if self._schema != "public":
            headers["Accept-Profile"] = self._schema
            headers["Content-Profile"] = self._schema
        if prefer:
            headers["Prefer"] = prefer
        return headers

    def from_(self, table: str) -> QueryBuilder:
        """Create a query builder for a table.
        Uses from_ to avoid Python keyword clash."""
        return QueryBuilder(table, self)

    async def execute_query(self, builder: QueryBuilder) -> RestbaseResponse[JsonValue]:
        """Run a built query and decode rows plus pagination metadata."""
        url = f"{self._rest_url}/{builder.table}{builder.build_query_string()}"
        headers = self._get_headers()
        headers.update(builder.range_headers())
        try:
            response = await self._executor.request("GET", url, headers)
            if not response.ok:
                message, details = error_details(response, "Query failed")
                raise QueryError(message, status=response.status, details=details)
            data, metadata = decode_response(response)
        except RestbaseException as e:
            logger.debug("Query on %s failed: %s", builder.table, e)
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))
        return RestbaseResponse(data=data, error=None, metadata=metadata)

    async def _batch(
        self,
        method: str,
        table: str,
        query_string: str = "",
        items: Optional[Sequence[JsonValue]] = None,
    ) -> RestbaseResponse[None]:
        url = f"{self._rest_url}/{table}{query_string}"
        try:
            body = dump_json(list(items)) if items is not None else None
            response = await self._executor.request(
                method, url, self._get_headers(prefer="return=minimal"), body
            )
            if not response.ok:
                message, details = error_details(response, f"Batch {method} failed")
                raise QueryError(message, status=response.status, details=details)
            metadata = build_metadata(response)
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))
        return RestbaseResponse(data=None, error=None, metadata=metadata)

    async def batch_insert(
        self, table: str, items: Sequence[JsonValue]
    ) -> RestbaseResponse[None]:
        """Insert many rows in one request."""
        return await self._batch("POST", table, items=items)

    async def batch_update(
        self, table: str, items: Sequence[JsonValue]
    ) -> RestbaseResponse[None]:
        """Send many row patches in one request."""
        return await self._batch("PATCH", table, items=items)

    async def batch_delete(self, table: str, ids: Sequence[str]) -> RestbaseResponse[None]:
        """Delete rows by id.

        Raises:
            EmptyInList: if ``ids`` is empty.
        """
        query = QueryBuilder(table).in_("id", ids)
        return await self._batch("DELETE", table, query.build_query_string())
