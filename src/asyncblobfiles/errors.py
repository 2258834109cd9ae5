class ConfigurationError(ValueError):
    """Raised when the file service is built from an incomplete configuration."""

    pass


class BlobNotFoundError(Exception):
    """Raised when a requested blob does not exist."""

    pass
