import os
from collections.abc import Mapping
from dataclasses import dataclass

from dotenv import load_dotenv

from .errors import ConfigurationError

CONNECTION_STRING_VAR = "AZURE_STORAGE_CONNECTION_STRING"
PUBLIC_CONTAINER_VAR = "AZURE_STORAGE_PUBLIC_CONTAINER_NAME"
PROTECTED_CONTAINER_VAR = "AZURE_STORAGE_PROTECTED_CONTAINER_NAME"

DEFAULT_PUBLIC_CONTAINER = "public"
DEFAULT_PROTECTED_CONTAINER = "protected"


@dataclass(frozen=True)
class StorageConfig:
    connection_string: str | None
    public_container_name: str = DEFAULT_PUBLIC_CONTAINER
    protected_container_name: str = DEFAULT_PROTECTED_CONTAINER

    @classmethod
    def from_env(
        cls, environ: Mapping[str, str] | None = None, load_env_file: bool = True
    ) -> "StorageConfig":
        """
        Build a config from environment variables.
        A .env file is loaded first unless ``load_env_file`` is False or an
        explicit mapping is given.
        """
        if environ is None:
            if load_env_file:
                load_dotenv()
            environ = os.environ
        return cls(
            connection_string=environ.get(CONNECTION_STRING_VAR),
            public_container_name=environ.get(PUBLIC_CONTAINER_VAR)
            or DEFAULT_PUBLIC_CONTAINER,
            protected_container_name=environ.get(PROTECTED_CONTAINER_VAR)
            or DEFAULT_PROTECTED_CONTAINER,
        )

    def validate(self) -> None:
        if not self.connection_string:
            raise ConfigurationError(
                f"Azure Storage connection string not found ({CONNECTION_STRING_VAR})"
            )
