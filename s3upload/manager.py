"""
Upload manager.

Main entry point: uploads any number of local files to S3 in the
background, one batch at a time per call.
"""
from pathlib import Path
from typing import Callable, Optional, Sequence, Union

from .core.config import UploadConfig
from .core.credentials import CredentialsProvider
from .core.upload import (
    UploadExecutor,
    UploadTask,
    UploadRequest,
    ProgressReporter,
    ThreadDispatcher,
    ResourceResolver,
    SUFFIX_INCREMENTAL,
)
from .core.upload.protocols import (
    CallbackDispatcher,
    ResourceResolverProtocol,
    SuffixRule,
    TransportProtocol,
    UploadListenerProtocol,
)
from .core.logging import get_logger

logger = get_logger('s3upload.manager')

Resource = Optional[Union[str, Path]]


class UploadManager:
    """
    Uploads local files to Amazon S3 with per-batch signed-POST credentials.

    For every call to `upload`, the credentials provider is asked for a new
    bundle. The bundle decides the bucket, the signed policy and the prefix
    of every key in the batch. Keys look like::

        https://{bucket}.s3.amazonaws.com/{unique_file_prefix}{suffix}.{extension}

    where the suffix comes from the batch's suffix rule (incremental by
    default). Files in a batch are uploaded one after the other; the first
    failure stops the batch.

    Example:
        >>> manager = UploadManager(HttpCredentialsProvider("https://api.example.com/s3"))
        >>> task = manager.upload(
        ...     ["photo.jpg", "photo_small.jpg"],
        ...     CallbackListener(on_complete=print),
        ...     suffix_rule=SUFFIX_DIMENSIONS,
        ... )
    """

    def __init__(
        self,
        credentials_provider: CredentialsProvider,
        config: Optional[UploadConfig] = None,
        dispatcher: Optional[CallbackDispatcher] = None,
        resolver: Optional[ResourceResolverProtocol] = None,
        transport_factory: Optional[Callable[[UploadConfig], TransportProtocol]] = None
    ):
        """
        Initialize upload manager.

        Args:
            credentials_provider: Issues credentials for every batch
            config: Upload configuration
            dispatcher: Where listener callbacks run (a dedicated callback
                thread by default)
            resolver: Reads resources (local files by default)
            transport_factory: Builds a new transport for every batch from
                the config (SignedPostUploader by default)
        """
        self._provider = credentials_provider
        self._config = config or UploadConfig.default()
        self._owns_dispatcher = dispatcher is None
        self._dispatcher = dispatcher or ThreadDispatcher()
        self._resolver = resolver or ResourceResolver()
        self._transport_factory = transport_factory

    @property
    def config(self) -> UploadConfig:
        return self._config

    @property
    def dispatcher(self) -> CallbackDispatcher:
        return self._dispatcher

    def upload(
        self,
        resources: Union[Resource, Sequence[Resource]],
        listener: Optional[UploadListenerProtocol],
        suffix_rule: SuffixRule = SUFFIX_INCREMENTAL,
        acl: Optional[str] = None,
        dispatcher: Optional[CallbackDispatcher] = None
    ) -> UploadTask:
        """
        Upload one file or a sequence of files in the background.

        Never raises for upload errors: they are reported once through
        `listener.on_upload_failed(error, index)`.

        Args:
            resources: A path / file:// URI, or a sequence of them
            listener: Receives progress, completion and failure
            suffix_rule: Builds each key's suffix
            acl: Canned ACL (the config's default, "public-read", when omitted)
            dispatcher: Overrides the manager's callback dispatcher for this batch

        Returns:
            Handle to the running batch

        Raises:
            RuntimeError: If the manager was closed
        """
        if self._resolver is None:
            raise RuntimeError("UploadManager is closed")
        if resources is None or isinstance(resources, (str, Path)):
            resources = [resources]

        request = UploadRequest(
            resources=resources,
            suffix_rule=suffix_rule,
            acl=acl if acl is not None else self._config.default_acl,
            listener=listener
        )
        reporter = ProgressReporter(listener, dispatcher or self._dispatcher)
        executor = UploadExecutor(
            credentials_provider=self._provider,
            resolver=self._resolver,
            config=self._config,
            transport_factory=self._transport_factory
        )
        logger.debug(f"Queued upload of {request.total} file(s) with acl={request.acl}")
        return UploadTask(executor, request, reporter).start()

    # Mobile client name
    upload_images = upload

    def close(self) -> None:
        """
        Release the manager's resources.

        Batches still running lose their resource context and fail at their
        next file with ContextUnavailableError.
        """
        self._resolver = None
        if self._owns_dispatcher:
            self._dispatcher.close()
