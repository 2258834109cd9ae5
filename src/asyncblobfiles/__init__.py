"""
asyncblobfiles
==============

Async file service for e-commerce uploads, backed by Azure Blob Storage or local filesystem.

Main entry points:
- AsyncFileService, create_file_service: the service and its factory
- StorageConfig: connection string and container names
- Visibility: public/private enum selecting the target container
- UploadedFile, StoredFile, FileReference, WriteStreamDescriptor, UploadStream: operation shapes
- LocalFileAdapter, AzureBlobAdapter: storage backends
- BlobNotFoundError, ConfigurationError: exceptions

Example:
    from asyncblobfiles import create_file_service, StorageConfig, UploadedFile

    async with create_file_service(StorageConfig.from_env()) as files:
        stored = await files.upload(UploadedFile("photo.png", path="/tmp/upload-1"))
"""

from .file_service import (
    AsyncFileService,
    ContainerTarget,
    FileReference,
    StoredFile,
    UploadedFile,
    UploadStream,
    Visibility,
    WriteStreamDescriptor,
    create_file_service,
    exact_key,
    timestamped_key,
)
from .config import StorageConfig
from .errors import BlobNotFoundError, ConfigurationError
from .streams import BlobWriteStream

from .storage_protocols import (
    AsyncStorageAdapter,
    AsyncContainerHandle,
    AsyncBlobHandle,
)
from .local_file_adapter import LocalFileAdapter
from .azure_blob_adapter import AzureBlobAdapter

import importlib.metadata

try:
    __version__ = importlib.metadata.version(__name__)
except importlib.metadata.PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "AsyncFileService",
    "create_file_service",
    "ContainerTarget",
    "FileReference",
    "StoredFile",
    "UploadedFile",
    "UploadStream",
    "Visibility",
    "WriteStreamDescriptor",
    "exact_key",
    "timestamped_key",
    "StorageConfig",
    "BlobNotFoundError",
    "ConfigurationError",
    "BlobWriteStream",
    "AsyncStorageAdapter",
    "AsyncContainerHandle",
    "AsyncBlobHandle",
    "LocalFileAdapter",
    "AzureBlobAdapter",
]
