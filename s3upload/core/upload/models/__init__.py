"""Upload models."""
from .upload_models import (
    UploadState,
    ResolvedResource,
    SignedPostForm,
    PostResponse,
    UploadProgress,
    UploadRequest,
    UploadResult,
)

__all__ = [
    'UploadState',
    'ResolvedResource',
    'SignedPostForm',
    'PostResponse',
    'UploadProgress',
    'UploadRequest',
    'UploadResult',
]
