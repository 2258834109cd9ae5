import logging
import mimetypes
from collections.abc import AsyncIterator

from azure.core.exceptions import ResourceExistsError, ResourceNotFoundError
from azure.storage.blob import ContentSettings
from azure.storage.blob.aio import BlobServiceClient

from .errors import BlobNotFoundError
from .storage_protocols import (
    AsyncBlobHandle,
    AsyncContainerHandle,
    AsyncStorageAdapter,
    UploadData,
)

logger = logging.getLogger(__name__)


class AzureBlobAdapter(AsyncStorageAdapter):
    """Azure Blob Storage adapter for AsyncFileService."""

    def __init__(self, blob_service_client: BlobServiceClient):
        """
        Create an adapter from an existing BlobServiceClient.
        This allows custom authentication and configuration.
        """
        self._client = blob_service_client

    @classmethod
    def from_connection_string(cls, connection_string: str) -> "AzureBlobAdapter":
        """
        Convenience builder: create adapter from a connection string.
        """
        client = BlobServiceClient.from_connection_string(connection_string)
        return cls(client)

    def get_container(self, container_name: str) -> AsyncContainerHandle:
        return _AzureContainerHandle(self._client.get_container_client(container_name))

    async def close(self) -> None:
        await self._client.close()


class _AzureContainerHandle(AsyncContainerHandle):
    def __init__(self, container_client):
        self._container_client = container_client

    async def create_if_not_exists(self, public_access: bool = False) -> None:
        kwargs = {"public_access": "container"} if public_access else {}
        try:
            await self._container_client.create_container(**kwargs)
            logger.debug(
                "Created container '%s' (public_access=%s)",
                self._container_client.container_name,
                public_access,
            )
        except ResourceExistsError:
            pass

    def get_blob(self, blob_name: str) -> AsyncBlobHandle:
        return _AzureBlobHandle(self._container_client.get_blob_client(blob_name))


class _AzureBlobHandle(AsyncBlobHandle):
    def __init__(self, blob_client):
        self._blob_client = blob_client

    @property
    def url(self) -> str:
        return self._blob_client.url

    async def upload(self, data: UploadData, content_type: str | None = None) -> None:
        """Note: Guesses content type if not provided."""

        if content_type is None:
            guessed, _ = mimetypes.guess_type(self._blob_client.blob_name)
            content_type = guessed or "application/octet-stream"

        await self._blob_client.upload_blob(
            data,
            overwrite=True,
            content_settings=ContentSettings(content_type=content_type),
        )

    async def open_download(self) -> AsyncIterator[bytes]:
        try:
            downloader = await self._blob_client.download_blob()
        except ResourceNotFoundError:
            raise BlobNotFoundError(f"Blob '{self._blob_client.blob_name}' not found")
        return downloader.chunks()

    async def delete_if_exists(self) -> bool:
        try:
            await self._blob_client.delete_blob()
        except ResourceNotFoundError:
            return False
        return True
