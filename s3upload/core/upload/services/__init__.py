"""Upload services module."""
from .resource_service import ResourceResolver
from .post_service import SignedPostUploader, build_form_data

__all__ = [
    'ResourceResolver',
    'SignedPostUploader',
    'build_form_data',
]
