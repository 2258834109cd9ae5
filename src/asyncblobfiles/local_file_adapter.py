import os
import shutil
import tempfile
from collections.abc import AsyncIterator
from pathlib import Path
from typing import IO

from .errors import BlobNotFoundError
from .storage_protocols import (
    AsyncBlobHandle,
    AsyncContainerHandle,
    AsyncStorageAdapter,
    UploadData,
)

ACCESS_MARKER = ".access"
PARTIAL_SUFFIX = ".part"
CHUNK_SIZE = 64 * 1024


def _ensure_within(base: Path, target: Path, strict: bool = True) -> Path:
    """
    Resolve target path and ensure it is inside base path.
    strict=True will fail if the target does not exist (good for read/delete).
    strict=False allows non-existing targets and missing parent directories;
    the existing part of the path is still resolved, so symlink escapes are caught.
    """
    base_resolved = base.resolve()
    target_resolved = target.resolve(strict=strict)
    if not target_resolved.is_relative_to(base_resolved):
        raise ValueError(
            f"Path {target_resolved} escapes base directory {base_resolved}"
        )
    return target_resolved


class LocalFileAdapter(AsyncStorageAdapter):
    """Local filesystem adapter for AsyncFileService."""

    def __init__(self, base_path: str):
        self._base_path = Path(base_path).resolve()
        self._base_path.mkdir(parents=True, exist_ok=True)

    def get_container(self, container_name: str) -> AsyncContainerHandle:
        container_path = _ensure_within(
            self._base_path, self._base_path / container_name, strict=False
        )
        return _LocalContainerHandle(container_path)

    async def close(self) -> None:
        pass


class _LocalContainerHandle(AsyncContainerHandle):
    def __init__(self, container_path: Path):
        self._container_path = container_path

    async def create_if_not_exists(self, public_access: bool = False) -> None:
        self._container_path.mkdir(parents=True, exist_ok=True)
        marker = self._container_path / ACCESS_MARKER
        # Access level is fixed by whoever created the container first
        if not marker.exists():
            marker.write_text("container" if public_access else "private")

    def access_level(self) -> str | None:
        marker = self._container_path / ACCESS_MARKER
        return marker.read_text() if marker.exists() else None

    def get_blob(self, blob_name: str) -> AsyncBlobHandle:
        if blob_name == ACCESS_MARKER or blob_name.endswith(PARTIAL_SUFFIX):
            raise ValueError(f"Blob name '{blob_name}' is reserved")
        blob_path = _ensure_within(
            self._container_path, self._container_path / blob_name, strict=False
        )
        return _LocalBlobHandle(blob_path, self._container_path)


class _LocalBlobHandle(AsyncBlobHandle):
    def __init__(self, file_path: Path, container_path: Path):
        self._file_path = file_path
        self._container_path = container_path

    @property
    def url(self) -> str:
        return self._file_path.as_uri()

    async def upload(self, data: UploadData, content_type: str | None = None) -> None:
        _ensure_within(self._container_path, self._file_path, strict=False)
        self._file_path.parent.mkdir(parents=True, exist_ok=True)
        # Open readers keep the file they opened; the last completed write wins
        fd, partial = tempfile.mkstemp(
            dir=self._file_path.parent,
            prefix=f".{self._file_path.name}.",
            suffix=PARTIAL_SUFFIX,
        )
        try:
            with os.fdopen(fd, "wb") as out:
                if isinstance(data, (bytes, bytearray)):
                    out.write(data)
                elif hasattr(data, "__aiter__"):
                    async for chunk in data:
                        out.write(chunk)
                else:
                    shutil.copyfileobj(data, out, CHUNK_SIZE)
            os.replace(partial, self._file_path)
        except BaseException:
            Path(partial).unlink(missing_ok=True)
            raise

    async def open_download(self) -> AsyncIterator[bytes]:
        if not self._file_path.is_file():
            raise BlobNotFoundError(f"Blob '{self._file_path.name}' not found")
        _ensure_within(self._container_path, self._file_path, strict=True)
        return _read_chunks(self._file_path.open("rb"))

    async def delete_if_exists(self) -> bool:
        if not self._file_path.is_file():
            return False
        _ensure_within(self._container_path, self._file_path, strict=True)
        self._file_path.unlink(missing_ok=True)
        return True


async def _read_chunks(src: IO[bytes]) -> AsyncIterator[bytes]:
    with src:
        while chunk := src.read(CHUNK_SIZE):
            yield chunk
