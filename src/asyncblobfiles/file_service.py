import asyncio
import logging
import os
import time
from collections.abc import AsyncIterator, Callable
from dataclasses import dataclass
from enum import Enum
from typing import IO

from .azure_blob_adapter import AzureBlobAdapter
from .config import StorageConfig
from .storage_protocols import AsyncBlobHandle, AsyncStorageAdapter
from .streams import BlobWriteStream

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class Visibility(Enum):
    PUBLIC = "public"
    PRIVATE = "private"

    @classmethod
    def parse(cls, value: "Visibility | str | None") -> "Visibility":
        """Only an exact ``"private"`` is private; anything else is public."""
        if value is cls.PRIVATE or value == cls.PRIVATE.value:
            return cls.PRIVATE
        return cls.PUBLIC


@dataclass(frozen=True)
class ContainerTarget:
    name: str
    public_access: bool


@dataclass
class UploadedFile:
    """
    A file already materialized by the host: either a path on local
    (temporary) storage or an in-memory / file-like binary stream.
    """

    original_name: str
    path: str | os.PathLike | None = None
    stream: bytes | IO[bytes] | None = None
    content_type: str | None = None

    def __post_init__(self) -> None:
        if self.path is None and self.stream is None:
            raise ValueError(f"File '{self.original_name}' has neither path nor stream")


@dataclass(frozen=True)
class StoredFile:
    url: str
    key: str


@dataclass(frozen=True)
class FileReference:
    key: str
    visibility: Visibility | str | None = None


@dataclass(frozen=True)
class WriteStreamDescriptor:
    name: str
    extension: str
    visibility: Visibility | str | None = None


@dataclass
class UploadStream:
    write_stream: BlobWriteStream
    completion: "asyncio.Task[None]"
    url: str
    key: str


def current_millis() -> int:
    return time.time_ns() // 1_000_000


def timestamped_key(original_name: str, clock: Clock = current_millis) -> str:
    """
    Key for uploaded files: ``<base>-<millis><ext>``.
    Identical names uploaded within the same millisecond get the same key.
    """
    base, ext = os.path.splitext(os.path.basename(original_name))
    return f"{base}-{clock()}{ext}"


def exact_key(name: str, extension: str) -> str:
    """Key for streamed uploads: ``<name>.<extension>``, no timestamp."""
    return f"{name}.{extension}"


class AsyncFileService:
    """
    File service backed by blob storage.

    Every operation targets one of two containers: the protected container
    when the requested visibility is exactly ``"private"``, the public one
    otherwise. Containers are created on demand.
    """

    def __init__(
        self,
        adapter: AsyncStorageAdapter,
        config: StorageConfig,
        clock: Clock = current_millis,
    ) -> None:
        config.validate()
        self.adapter = adapter
        self.config = config
        self.clock = clock

    async def __aenter__(self) -> "AsyncFileService":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def close(self) -> None:
        await self.adapter.close()

    def resolve_container(
        self, visibility: Visibility | str | None = None
    ) -> ContainerTarget:
        if Visibility.parse(visibility) is Visibility.PRIVATE:
            return ContainerTarget(self.config.protected_container_name, False)
        return ContainerTarget(self.config.public_container_name, True)

    async def get_blob(
        self, key: str, visibility: Visibility | str | None = None
    ) -> AsyncBlobHandle:
        """Resolve the container for ``visibility``, create it if absent, return the blob."""
        target = self.resolve_container(visibility)
        logger.debug(
            "Resolved '%s' to container '%s' (public_access=%s)",
            key,
            target.name,
            target.public_access,
        )
        container = self.adapter.get_container(target.name)
        await container.create_if_not_exists(public_access=target.public_access)
        return container.get_blob(key)

    async def upload(self, file: UploadedFile) -> StoredFile:
        return await self._upload_file(file)

    async def upload_protected(self, file: UploadedFile) -> StoredFile:
        # Goes to the public container, same as upload()
        logger.debug("upload_protected('%s') uses public visibility", file.original_name)
        return await self._upload_file(file)

    async def _upload_file(self, file: UploadedFile) -> StoredFile:
        key = timestamped_key(file.original_name, self.clock)
        blob = await self.get_blob(key)
        if file.path is not None:
            with open(file.path, "rb") as fh:
                await blob.upload(fh, content_type=file.content_type)
        else:
            await blob.upload(file.stream, content_type=file.content_type)
        logger.debug("Uploaded '%s' as '%s'", file.original_name, key)
        return StoredFile(url=blob.url, key=key)

    async def delete(self, ref: FileReference) -> None:
        blob = await self.get_blob(ref.key, ref.visibility)
        if not await blob.delete_if_exists():
            logger.debug("Delete of missing blob '%s' ignored", ref.key)

    async def open_write_stream(self, descriptor: WriteStreamDescriptor) -> UploadStream:
        """
        Open a streaming upload. Write bytes to ``write_stream``, close it,
        then await ``completion``; it finishes once the backend has stored
        everything written.
        """
        key = exact_key(descriptor.name, descriptor.extension)
        blob = await self.get_blob(key, descriptor.visibility)
        write_stream = BlobWriteStream()
        completion = asyncio.create_task(blob.upload(write_stream))
        write_stream.attach(completion)
        return UploadStream(
            write_stream=write_stream, completion=completion, url=blob.url, key=key
        )

    async def open_read_stream(self, ref: FileReference) -> AsyncIterator[bytes]:
        blob = await self.get_blob(ref.key, ref.visibility)
        return await blob.open_download()

    async def get_access_url(self, ref: FileReference) -> str:
        blob = await self.get_blob(ref.key, ref.visibility)
        return blob.url


def create_file_service(
    config: StorageConfig | None = None,
    adapter: AsyncStorageAdapter | None = None,
    clock: Clock = current_millis,
) -> AsyncFileService:
    """
    Build a ready file service.

    Reads the config from the environment when none is given and connects to
    Azure Blob Storage unless another adapter is supplied. Raises
    ConfigurationError if the connection string is missing.
    """
    if config is None:
        config = StorageConfig.from_env()
    config.validate()
    if adapter is None:
        adapter = AzureBlobAdapter.from_connection_string(config.connection_string)
    return AsyncFileService(adapter, config, clock=clock)
