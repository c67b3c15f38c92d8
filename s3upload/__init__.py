"""
s3upload - Background S3 uploads with signed-POST credentials.

Usage:
    >>> from s3upload import UploadManager, HttpCredentialsProvider, CallbackListener
    >>>
    >>> manager = UploadManager(HttpCredentialsProvider("https://api.example.com/s3/credentials"))
    >>> task = manager.upload(
    ...     ["cat.jpg", "dog.jpg"],
    ...     CallbackListener(on_progress=print, on_complete=print),
    ... )
    >>> task.join()
"""
import logging
from .manager import UploadManager

from .core.config import UploadConfig, TimeoutConfig, SSLConfig
from .core.credentials import (
    Credentials,
    CredentialsProvider,
    StaticCredentialsProvider,
    JsonFileCredentialsProvider,
    HttpCredentialsProvider,
    SigningCredentialsProvider,
)
from .core.exceptions import (
    S3UploadError,
    CredentialsUnavailableError,
    InvalidResourceError,
    ResourceUnreadableError,
    ContextUnavailableError,
    TransportError,
    UnexpectedStatusError,
)
from .core.upload import (
    UploadTask,
    UploadResult,
    UploadState,
    UploadListener,
    CallbackListener,
    QueueDispatcher,
    ThreadDispatcher,
    AsyncioDispatcher,
    IncrementalSuffixRule,
    IndexedSuffixRule,
    CallableSuffixRule,
    SUFFIX_INCREMENTAL,
    SUFFIX_DIMENSIONS,
)

__version__ = '1.0.0'


def setup_logging(level=logging.INFO):
    """
    Configure logging for s3upload modules.

    Args:
        level: Logging level (default: logging.INFO)
    """
    loggers = [
        's3upload',
        's3upload.manager',
        's3upload.credentials',
        's3upload.upload.coordinator',
        's3upload.upload.task',
        's3upload.upload.reporter',
        's3upload.upload.resource',
        's3upload.upload.post',
    ]

    for logger_name in loggers:
        logger = logging.getLogger(logger_name)
        logger.setLevel(level)
        logger.propagate = True


__all__ = [
    'UploadManager',
    'UploadTask',
    'UploadResult',
    'UploadState',
    'UploadConfig',
    'TimeoutConfig',
    'SSLConfig',
    'Credentials',
    'CredentialsProvider',
    'StaticCredentialsProvider',
    'JsonFileCredentialsProvider',
    'HttpCredentialsProvider',
    'SigningCredentialsProvider',
    'UploadListener',
    'CallbackListener',
    'QueueDispatcher',
    'ThreadDispatcher',
    'AsyncioDispatcher',
    'IncrementalSuffixRule',
    'IndexedSuffixRule',
    'CallableSuffixRule',
    'SUFFIX_INCREMENTAL',
    'SUFFIX_DIMENSIONS',
    'S3UploadError',
    'CredentialsUnavailableError',
    'InvalidResourceError',
    'ResourceUnreadableError',
    'ContextUnavailableError',
    'TransportError',
    'UnexpectedStatusError',
    'setup_logging',
]
