"""
Data models for upload module.

Uses dataclasses for immutable, type-safe data structures.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, List, Optional, Tuple


class UploadState(Enum):
    """Lifecycle of one batch."""
    IDLE = 'idle'
    CREDENTIALS_PENDING = 'credentials_pending'
    UPLOADING = 'uploading'
    COMPLETED = 'completed'
    ABORTED = 'aborted'
    CANCELLED = 'cancelled'

    @property
    def is_final(self) -> bool:
        return self in (UploadState.COMPLETED, UploadState.ABORTED, UploadState.CANCELLED)


@dataclass(frozen=True)
class ResolvedResource:
    """
    Content of a resource, ready to be posted.

    Attributes:
        data: Raw file bytes
        filename: Name sent with the file part
        extension: Extension used in the storage key (no leading dot)
        content_type: Guessed MIME type, if any
    """
    data: bytes
    filename: str
    extension: str
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.data)


@dataclass(frozen=True)
class SignedPostForm:
    """
    Form fields of an S3 signed POST.

    S3 requires the file part to come last; `fields()` keeps the order.
    """
    key: str
    access_key_id: str
    policy: str
    signature: str
    success_action_status: int
    acl: str
    content_type: str
    filename: str
    data: bytes

    def fields(self) -> List[Tuple[str, str]]:
        """Text fields in submission order."""
        return [
            ('key', self.key),
            ('AWSAccessKeyId', self.access_key_id),
            ('policy', self.policy),
            ('signature', self.signature),
            ('success_action_status', str(self.success_action_status)),
            ('acl', self.acl),
            ('Content-Type', self.content_type),
        ]


@dataclass(frozen=True)
class PostResponse:
    """
    Response to a signed POST.

    Attributes:
        status: HTTP status code
        body: Response body (S3 answers errors with an XML document)
    """
    status: int
    body: str = ""


@dataclass
class UploadProgress:
    """
    Batch progress.

    Attributes:
        total_files: Number of resources in the batch
        uploaded_files: Number of resources uploaded so far
    """
    total_files: int
    uploaded_files: int = 0

    @property
    def percentage(self) -> int:
        """Returns floor(uploaded / total * 100)."""
        if self.total_files == 0:
            return 0
        return self.uploaded_files * 100 // self.total_files

    @property
    def is_complete(self) -> bool:
        return self.uploaded_files >= self.total_files


@dataclass
class UploadRequest:
    """
    One batch as submitted by the caller.

    Attributes:
        resources: Resource handles, in upload order (None entries fail the batch)
        suffix_rule: Rule deriving each key's suffix
        acl: Canned ACL applied to every object
        listener: Receives progress, completion and failure
    """
    resources: Tuple[Any, ...]
    suffix_rule: Any
    acl: str
    listener: Any = None

    def __post_init__(self):
        self.resources = tuple(self.resources)

    @property
    def total(self) -> int:
        return len(self.resources)


@dataclass(frozen=True)
class UploadResult:
    """
    Result of a batch.

    Attributes:
        urls: One URL per resource, in input order; "" where nothing was uploaded
        state: Final state of the batch
        failed_index: Index of the failing resource when the batch aborted
        error: The error the batch aborted with
    """
    urls: Tuple[str, ...]
    state: UploadState
    failed_index: Optional[int] = None
    error: Optional[BaseException] = field(default=None, compare=False)

    @property
    def succeeded(self) -> bool:
        return self.state is UploadState.COMPLETED
