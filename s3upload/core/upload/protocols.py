"""
Protocol definitions for upload module.

Defines the seams the executor depends on: naming, resource resolution,
transport, listener and callback dispatch.
"""
from pathlib import Path
from typing import Protocol, Sequence, Union, Callable, Any

from .models import ResolvedResource, SignedPostForm, PostResponse


ResourceHandle = Union[str, Path]


class SuffixRule(Protocol):
    """
    Protocol for storage key suffix rules.

    Maps a resource and its position in the batch to the string appended to
    the credentials' unique prefix.
    """

    def get_suffix(self, resource: ResourceHandle, index: int) -> str:
        """
        Return the key suffix for a resource.

        Args:
            resource: The resource being uploaded
            index: Position of the resource in the batch

        Returns:
            Suffix to append to the key prefix
        """
        ...


class ResourceResolverProtocol(Protocol):
    """Protocol for turning a resource handle into uploadable content."""

    async def resolve(self, resource: ResourceHandle) -> ResolvedResource:
        """
        Read a resource.

        Raises:
            ResourceUnreadableError: If the resource cannot be opened
        """
        ...


class TransportProtocol(Protocol):
    """Protocol for submitting a signed multipart POST."""

    async def submit(self, endpoint: str, form: SignedPostForm) -> PostResponse:
        """
        Submit a form and return the response, whatever its status.

        Raises:
            TransportError: On network-level failures
        """
        ...

    async def close(self) -> None:
        """Release connections; called once when the batch ends."""
        ...


class UploadListenerProtocol(Protocol):
    """Receives progress, completion and failure of a batch."""

    def on_progress(self, progress: int) -> None: ...
    def on_upload_complete(self, urls: Sequence[str]) -> None: ...
    def on_upload_failed(self, error: BaseException, failed_index: int) -> None: ...


class CallbackDispatcher(Protocol):
    """Queues a call onto the context that owns the listener."""

    def post(self, fn: Callable[..., Any], *args: Any) -> None: ...
