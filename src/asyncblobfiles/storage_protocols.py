from collections.abc import AsyncIterable, AsyncIterator
from typing import IO, Protocol, Union

UploadData = Union[bytes, IO[bytes], AsyncIterable[bytes]]


class AsyncBlobHandle(Protocol):
    """Represents a single blob in storage."""

    @property
    def url(self) -> str:
        """Canonical URL of the blob. Does not check that it exists."""
        ...

    async def upload(self, data: UploadData, content_type: str | None = None) -> None:
        """Upload bytes, a binary file object or an async byte stream, overwriting."""
        ...

    async def open_download(self) -> AsyncIterator[bytes]:
        """Return an iterator over the blob's content chunks.

        Raises BlobNotFoundError before returning if the blob is missing.
        """
        ...

    async def delete_if_exists(self) -> bool:
        """Delete blob. Return False instead of raising if it did not exist."""
        ...


class AsyncContainerHandle(Protocol):
    """Represents a container/bucket in storage."""

    async def create_if_not_exists(self, public_access: bool = False) -> None:
        """Create the container; an existing container is left untouched."""
        ...

    def get_blob(self, blob_name: str) -> AsyncBlobHandle:
        """Return a handle to a blob."""
        ...


class AsyncStorageAdapter(Protocol):
    """Protocol for a storage backend adapter."""

    def get_container(self, container_name: str) -> AsyncContainerHandle:
        """Return a handle to a container."""
        ...

    async def close(self) -> None:
        """Close any resources/connections."""
        ...
