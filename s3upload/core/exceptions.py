"""
Custom exceptions for S3 upload batches.

Every failure in a batch is reported to the listener as one of these,
tagged with the index of the resource it applies to.
"""
from typing import Optional


class S3UploadError(Exception):
    """Base exception for all upload errors."""

    def __init__(self, message: str, index: Optional[int] = None) -> None:
        """
        Initialize the exception.

        Args:
            message: Error message
            index: Position in the batch the error applies to (if any)
        """
        self.index = index
        super().__init__(message)


class CredentialsUnavailableError(S3UploadError):
    """Raised when the credentials provider yields no credentials."""

    def __init__(self, message: str = "Failed retrieving S3 credentials from provider") -> None:
        super().__init__(message, index=0)


class InvalidResourceError(S3UploadError):
    """Raised for a missing (None) resource handle."""
    pass


class ResourceUnreadableError(S3UploadError):
    """Raised when a resource cannot be opened or read."""
    pass


class ContextUnavailableError(ResourceUnreadableError):
    """Raised when the host context used to resolve resources is gone."""
    pass


class TransportError(S3UploadError):
    """Raised for network-level failures while submitting a file."""
    pass


class UnexpectedStatusError(S3UploadError):
    """Raised when S3 answers with anything other than the success status."""

    def __init__(
        self,
        status: int,
        body: str = "",
        index: Optional[int] = None
    ) -> None:
        """
        Initialize the exception.

        Args:
            status: HTTP status code returned by S3
            body: Response body (S3 returns an XML error document)
            index: Position in the batch
        """
        self.status = status
        self.body = body
        super().__init__(f"Unexpected response status {status}", index)
