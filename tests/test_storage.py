"""
StorageClient unit tests.
"""

import pytest
from unittest.mock import MagicMock

from restbase.retry import RequestExecutor
from restbase.storage import StorageClient, BucketOperations

from helpers import MockResponse, request_body, request_headers, request_url


@pytest.fixture
def storage_client(executor: RequestExecutor) -> StorageClient:
    """Create StorageClient over the mocked executor."""
    return StorageClient(
        "https://api.test.com",
        executor,
        "test-api-key",
        lambda: "test-token",
    )


def listing_entry(name: str, size: int) -> dict:
    return {
        "name": name,
        "id": f"id-{name}",
        "metadata": {
            "size": size,
            "lastModified": "2024-01-01T00:00:00.000Z",
            "mimetype": "text/plain",
        },
    }


class TestBucketOperations:
    """Tests for bucket-specific operations."""

    def test_from_returns_bucket(self, storage_client: StorageClient) -> None:
        bucket = storage_client.from_("test-bucket")

        assert isinstance(bucket, BucketOperations)
        assert bucket.bucket == "test-bucket"

    @pytest.mark.asyncio
    async def test_upload_success(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        """Test successful file upload."""
        mock_session.request.return_value = MockResponse({"Key": "avatars/user/avatar.png"})

        bucket = storage_client.from_("avatars")
        result = await bucket.upload("user/avatar.png", b"image data", "image/png")

        assert result.error is None
        assert result.data is not None
        assert result.data.name == "avatar.png"
        assert result.data.bucket == "avatars"
        assert result.data.size == len(b"image data")
        assert result.data.key == "avatars/user/avatar.png"

        call_args = mock_session.request.call_args
        assert call_args.args[0] == "POST"
        assert request_url(call_args) == (
            "https://api.test.com/storage/v1/object/avatars/user/avatar.png"
        )
        assert call_args.kwargs["data"] == b"image data"
        headers = request_headers(call_args)
        assert headers["Content-Type"] == "image/png"
        assert headers["apikey"] == "test-api-key"
        assert headers["Authorization"] == "Bearer test-token"

    @pytest.mark.asyncio
    async def test_upload_failure(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        """Test upload failure."""
        mock_session.request.return_value = MockResponse(
            {"error": "Bucket not found"},
            status=404,
        )

        bucket = storage_client.from_("nonexistent")
        result = await bucket.upload("file.txt", b"data")

        assert result.data is None
        assert result.error is not None
        assert result.error.status == 404
        assert result.error.code == "STORAGE_ERROR"
        assert result.error.message == "Bucket not found"

    @pytest.mark.asyncio
    async def test_upload_with_upsert(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        """Test upload with upsert option."""
        mock_session.request.return_value = MockResponse({"Key": "docs/file.txt"})

        bucket = storage_client.from_("docs")
        await bucket.upload("file.txt", b"data", upsert=True)

        headers = request_headers(mock_session.request.call_args)
        assert headers.get("x-upsert") == "true"
        assert headers["Content-Type"] == "application/octet-stream"

    @pytest.mark.asyncio
    async def test_upload_plain_text_answer(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        """A successful upload without a JSON body still succeeds."""
        mock_session.request.return_value = MockResponse(body=b"OK", status=200)

        result = await storage_client.from_("docs").upload("notes.txt", b"hello", "text/plain")

        assert result.error is None
        assert result.data is not None
        assert result.data.key is None
        assert result.data.name == "notes.txt"

    @pytest.mark.asyncio
    async def test_download_success(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        """Test successful file download."""
        file_content = b"\x00\x01binary\xff"
        mock_session.request.return_value = MockResponse(body=file_content)

        bucket = storage_client.from_("files")
        result = await bucket.download("document.pdf")

        assert result.error is None
        assert result.data == file_content
        assert mock_session.request.call_args.args[0] == "GET"

    @pytest.mark.asyncio
    async def test_download_not_found(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        """Test download file not found."""
        mock_session.request.return_value = MockResponse({}, status=404)

        bucket = storage_client.from_("files")
        result = await bucket.download("missing.pdf")

        assert result.data is None
        assert result.error is not None
        assert result.error.status == 404

    @pytest.mark.asyncio
    async def test_remove_single_file(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        """Test removal of one object by path."""
        mock_session.request.return_value = MockResponse({"message": "Successfully deleted"})

        bucket = storage_client.from_("files")
        result = await bucket.remove("reports/2024 q1.pdf")

        assert result.error is None
        call_args = mock_session.request.call_args
        assert call_args.args[0] == "DELETE"
        assert request_url(call_args) == (
            "https://api.test.com/storage/v1/object/files/reports/2024%20q1.pdf"
        )
        assert call_args.kwargs["data"] is None

    @pytest.mark.asyncio
    async def test_remove_single_file_not_found(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        mock_session.request.return_value = MockResponse({"error": "Object not found"}, status=404)

        result = await storage_client.from_("files").remove("missing.txt")

        assert result.error is not None
        assert result.error.code == "STORAGE_ERROR"
        assert result.error.message == "Object not found"

    @pytest.mark.asyncio
    async def test_remove_many(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        """Test bulk removal by prefixes."""
        mock_session.request.return_value = MockResponse([])

        bucket = storage_client.from_("files")
        result = await bucket.remove_many(["file1.txt", "file2.txt"])

        assert result.error is None
        call_args = mock_session.request.call_args
        assert call_args.args[0] == "DELETE"
        assert request_url(call_args) == "https://api.test.com/storage/v1/object/files"
        assert request_body(call_args) == {"prefixes": ["file1.txt", "file2.txt"]}

    @pytest.mark.asyncio
    async def test_list_files(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        """Test listing files."""
        mock_session.request.return_value = MockResponse([
            listing_entry("file1.txt", 100),
            listing_entry("file2.txt", 200),
        ])

        bucket = storage_client.from_("docs")
        result = await bucket.list_()

        assert result.error is None
        assert result.data is not None
        assert [obj.name for obj in result.data] == ["file1.txt", "file2.txt"]
        assert result.data[1].size == 200
        assert result.data[0].content_type == "text/plain"
        assert result.data[0].last_modified == "2024-01-01T00:00:00.000Z"

    @pytest.mark.asyncio
    async def test_list_with_prefix(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        """Test listing files with prefix filter."""
        mock_session.request.return_value = MockResponse([])

        bucket = storage_client.from_("docs")
        await bucket.list_(path="folder/", limit=10, offset=0)

        url = request_url(mock_session.request.call_args)
        assert url == (
            "https://api.test.com/storage/v1/object/list/docs?prefix=folder%2F&limit=10&offset=0"
        )

    @pytest.mark.asyncio
    async def test_list_entry_missing_metadata(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        mock_session.request.return_value = MockResponse([{"name": "file1.txt"}])

        result = await storage_client.from_("docs").list_()

        assert result.data is None
        assert result.error is not None
        assert result.error.code == "INVALID_RESPONSE"

    @pytest.mark.asyncio
    async def test_list_not_an_array(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        mock_session.request.return_value = MockResponse({"name": "file1.txt"})

        result = await storage_client.from_("docs").list_()

        assert result.error is not None
        assert result.error.code == "INVALID_RESPONSE"

    def test_get_public_url(self, storage_client: StorageClient) -> None:
        """Test public URL generation."""
        bucket = storage_client.from_("public-bucket")
        url = bucket.get_public_url("images/photo.jpg")

        assert url == "https://api.test.com/storage/v1/object/public/public-bucket/images/photo.jpg"

    @pytest.mark.asyncio
    async def test_remove_many_unserializable_paths(
        self, storage_client: StorageClient, mock_session: MagicMock
    ) -> None:
        result = await storage_client.from_("files").remove_many([object()])  # type: ignore[list-item]

        assert result.error is not None
        assert result.error.code == "SERIALIZATION_ERROR"
        mock_session.request.assert_not_called()
