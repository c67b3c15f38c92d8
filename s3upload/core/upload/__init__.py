"""
Upload module for S3 signed-POST batches.

Batches run sequentially on a worker thread with pluggable key naming,
resource resolution and transport, and report to a listener through a
dispatcher bound to the caller's context.
"""
from .coordinator import UploadExecutor, build_key, build_url
from .task import UploadTask
from .reporter import (
    ProgressReporter,
    UploadListener,
    CallbackListener,
    ImmediateDispatcher,
    QueueDispatcher,
    ThreadDispatcher,
    AsyncioDispatcher,
)
from .models import (
    UploadState,
    ResolvedResource,
    SignedPostForm,
    PostResponse,
    UploadProgress,
    UploadRequest,
    UploadResult,
)
from .protocols import (
    SuffixRule,
    ResourceResolverProtocol,
    TransportProtocol,
    UploadListenerProtocol,
    CallbackDispatcher,
)
from .strategies import (
    IncrementalSuffixRule,
    IndexedSuffixRule,
    CallableSuffixRule,
    SUFFIX_INCREMENTAL,
    SUFFIX_DIMENSIONS,
    suffix_rule_from_name,
)
from .services import ResourceResolver, SignedPostUploader

__all__ = [
    # Main classes
    'UploadExecutor',
    'UploadTask',
    'ProgressReporter',
    'build_key',
    'build_url',

    # Listeners and dispatchers
    'UploadListener',
    'CallbackListener',
    'ImmediateDispatcher',
    'QueueDispatcher',
    'ThreadDispatcher',
    'AsyncioDispatcher',

    # Models
    'UploadState',
    'ResolvedResource',
    'SignedPostForm',
    'PostResponse',
    'UploadProgress',
    'UploadRequest',
    'UploadResult',

    # Protocols
    'SuffixRule',
    'ResourceResolverProtocol',
    'TransportProtocol',
    'UploadListenerProtocol',
    'CallbackDispatcher',

    # Suffix rules
    'IncrementalSuffixRule',
    'IndexedSuffixRule',
    'CallableSuffixRule',
    'SUFFIX_INCREMENTAL',
    'SUFFIX_DIMENSIONS',
    'suffix_rule_from_name',

    # Services
    'ResourceResolver',
    'SignedPostUploader',
]
