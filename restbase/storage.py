"""
StorageClient - File storage operations for Restbase.

Upload, download, delete, and list files in storage buckets.
Uses Result pattern - never raises exceptions.
"""

from typing import TYPE_CHECKING, Optional, List, Dict, Any
from urllib.parse import quote

from .decoder import decode_response, error_details
from .exceptions import InvalidResponse, ParseError, RestbaseException, StorageError
from .json_value import dump_json, parse_json
from .types import RestbaseResponse, RestbaseError, FileObject, StorageObject

if TYPE_CHECKING:
    from .retry import RawResponse, RequestExecutor


def _object_key(body: bytes) -> Optional[str]:
    """``Key`` of an upload answer; None when the body does not carry one."""
    if not body:
        return None
    try:
        result = parse_json(body)
    except ParseError:
        return None
    if isinstance(result, dict) and isinstance(result.get("Key"), str):
        return result["Key"]
    return None


class BucketOperations:
    """Bucket-specific file operations."""

    def __init__(
        self,
        bucket_name: str,
        storage_url: str,
        executor: "RequestExecutor",
        api_key: str,
        get_token: Any,
    ) -> None:
        self._bucket_name = bucket_name
        self._storage_url = storage_url
        self._executor = executor
        self._api_key = api_key
        self._get_token = get_token

    @property
    def bucket(self) -> str:
        return self._bucket_name

    def _get_headers(self, content_type: Optional[str] = None) -> Dict[str, str]:
        """Build request headers."""
        headers: Dict[str, str] = {"apikey": self._api_key}
        if content_type:
            headers["Content-Type"] = content_type
        token = self._get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    def _object_url(self, path: str) -> str:
        return f"{self._storage_url}/object/{self._bucket_name}/{quote(path)}"

    async def _send(
        self,
        method: str,
        url: str,
        headers: Dict[str, str],
        body: Optional[Any] = None,
        failure: str = "Storage request failed",
    ) -> "RawResponse":
        response = await self._executor.request(method, url, headers, body)
        if not response.ok:
            message, details = error_details(response, failure)
            raise StorageError(message, status=response.status, details=details)
        return response

    async def upload(
        self,
        path: str,
        data: bytes,
        content_type: str = "application/octet-stream",
        upsert: bool = False,
    ) -> RestbaseResponse[FileObject]:
        """Upload a file to the bucket."""
        headers = self._get_headers(content_type)
        if upsert:
            headers["x-upsert"] = "true"

        try:
            response = await self._send(
                "POST", self._object_url(path), headers, data, "Upload failed"
            )
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))

        file_obj = FileObject(
            name=path.rsplit("/", 1)[-1],
            bucket=self._bucket_name,
            path=path,
            size=len(data),
            content_type=content_type,
            key=_object_key(response.body),
        )
        return RestbaseResponse(data=file_obj, error=None)

    async def download(self, path: str) -> RestbaseResponse[bytes]:
        """Download a file from the bucket."""
        try:
            response = await self._send(
                "GET", self._object_url(path), self._get_headers(), failure="Download failed"
            )
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))
        return RestbaseResponse(data=response.body, error=None)

    async def remove(self, path: str) -> RestbaseResponse[None]:
        """Delete one file from the bucket."""
        try:
            await self._send(
                "DELETE", self._object_url(path), self._get_headers(), failure="Delete failed"
            )
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))
        return RestbaseResponse(data=None, error=None)

    async def remove_many(self, paths: List[str]) -> RestbaseResponse[None]:
        """Delete several files in one request."""
        url = f"{self._storage_url}/object/{self._bucket_name}"
        try:
            await self._send(
                "DELETE",
                url,
                self._get_headers("application/json"),
                dump_json({"prefixes": paths}),
                "Delete failed",
            )
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))
        return RestbaseResponse(data=None, error=None)

    async def list_(
        self,
        path: str = "",
        limit: Optional[int] = None,
        offset: Optional[int] = None,
    ) -> RestbaseResponse[List[StorageObject]]:
        """List files in the bucket."""
        params: List[str] = []
        if path:
            params.append(f"prefix={quote(path, safe='')}")
        if limit is not None:
            params.append(f"limit={limit}")
        if offset is not None:
            params.append(f"offset={offset}")

        url = f"{self._storage_url}/object/list/{self._bucket_name}"
        if params:
            url += "?" + "&".join(params)

        try:
            response = await self._send("GET", url, self._get_headers(), failure="List failed")
            data, _ = decode_response(response)
            if not isinstance(data, list):
                raise InvalidResponse("List failed: expected a JSON array")
            objects = [StorageObject.from_json(item) for item in data]
        except RestbaseException as e:
            return RestbaseResponse(data=None, error=RestbaseError.from_exception(e))
        return RestbaseResponse(data=objects, error=None)

    def get_public_url(self, path: str) -> str:
        """Get public URL for a file (if bucket is public)."""
        return f"{self._storage_url}/object/public/{self._bucket_name}/{quote(path)}"


class StorageClient:
    """Storage client for file operations."""

    def __init__(
        self,
        base_url: str,
        executor: "RequestExecutor",
        api_key: str,
        get_token: Any,
    ) -> None:
        self._storage_url = f"{base_url}/storage/v1"
        self._executor = executor
        self._api_key = api_key
        self._get_token = get_token

    def from_(self, bucket: str) -> BucketOperations:
        """Get bucket operations for a specific bucket."""
        return BucketOperations(
            bucket_name=bucket,
            storage_url=self._storage_url,
            executor=self._executor,
            api_key=self._api_key,
            get_token=self._get_token,
        )
