"""
Error kinds surfaced to API callers as ``{"error": message}``.

Every failure is terminal for its request; nothing here is retried.
"""


class RelayError(Exception):
    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ClientInputError(RelayError):
    """Missing file, malformed body and similar caller mistakes."""
    status_code = 400


class UnsupportedFileType(ClientInputError):
    pass


class DocumentReadError(ClientInputError):
    """The uploaded word-processor file could not be opened."""
    pass


class FileTooLarge(RelayError):
    """Audio exceeds what the speech API accepts in a single request."""
    status_code = 413


class ConversionError(RelayError):
    """FFmpeg failed or produced no output."""
    pass


class UpstreamError(RelayError):
    """Non-success response (or no response at all) from an upstream API."""

    def __init__(self, message: str, upstream_status: int | None = None):
        super().__init__(message)
        self.upstream_status = upstream_status


class ConfigurationError(RelayError):
    pass
