from typing import Optional


class ExternalServiceError(Exception):
    """A call to the mailbox provider or the completion API failed."""

    def __init__(self, service: str, message: str, status_code: Optional[int] = None):
        super().__init__(f"{service}: {message}")
        self.service = service
        self.message = message
        self.status_code = status_code


class StorageError(Exception):
    """A read or write against the archive database failed."""


class IngestionError(Exception):
    """The ingestion batch could not be settled as a whole."""
