"""
Upload executor.

Runs one batch: fetches credentials once, then uploads every resource in
order, stopping at the first error.
"""
import asyncio
import threading
import time
import weakref
from typing import Any, Callable, List, Optional, Tuple

from .models import (
    PostResponse,
    SignedPostForm,
    UploadProgress,
    UploadRequest,
    UploadResult,
    UploadState,
)
from .protocols import ResourceResolverProtocol, SuffixRule, TransportProtocol
from .reporter import ProgressReporter
from .services import SignedPostUploader
from ..config import UploadConfig
from ..credentials import Credentials, CredentialsProvider
from ..exceptions import (
    S3UploadError,
    CredentialsUnavailableError,
    InvalidResourceError,
    ResourceUnreadableError,
    ContextUnavailableError,
    TransportError,
    UnexpectedStatusError,
)
from ..logging import get_logger

logger = get_logger('s3upload.upload.coordinator')


def build_key(credentials: Credentials, suffix_rule: SuffixRule, resource: Any, index: int, extension: str) -> str:
    """Storage key: ``{prefix}{suffix}.{extension}``."""
    return f"{credentials.unique_file_prefix}{suffix_rule.get_suffix(resource, index)}.{extension}"


def build_url(endpoint: str, key: str) -> str:
    """Public URL of an uploaded object."""
    return f"{endpoint}/{key}"


class UploadExecutor:
    """
    Executes one upload batch.

    States: IDLE -> CREDENTIALS_PENDING -> UPLOADING -> COMPLETED | ABORTED | CANCELLED

    Failure policy is fail-fast: the first error of any kind (no
    credentials, None resource, unreadable resource, network error,
    non-201 response) is reported once with its index and nothing after it
    is processed. There are no retries.

    Progress after file ``i`` (0-based) of ``N`` is ``floor((i + 1) / N * 100)``,
    so the last file always reports 100. Earlier mobile clients reported
    ``i / N * 100``, which never reached 100 for batches of more than one
    file.

    The executor keeps only a weak reference to its resolver (the host
    context). If the resolver has been released by the time a resource is
    processed, that resource fails with ContextUnavailableError.

    Cancellation is cooperative: `cancel()` may be called from any thread;
    the batch stops before the next resource, and a POST that was in flight
    when it was requested has its result discarded, success or failure.
    """

    def __init__(
        self,
        credentials_provider: CredentialsProvider,
        resolver: ResourceResolverProtocol,
        transport: Optional[TransportProtocol] = None,
        config: Optional[UploadConfig] = None,
        transport_factory: Optional[Callable[[UploadConfig], TransportProtocol]] = None
    ):
        """
        Initialize upload executor.

        Args:
            credentials_provider: Issues the batch's credentials
            resolver: Reads resources; held weakly
            transport: Signed POST transport owned by the caller (used as is,
                never closed)
            config: Upload configuration
            transport_factory: Builds this batch's transport from the config;
                the transport is closed when the batch ends (SignedPostUploader
                by default)
        """
        self._provider = credentials_provider
        self._resolver_ref = weakref.ref(resolver)
        self._transport = transport
        self._transport_factory = transport_factory or SignedPostUploader
        self._config = config or UploadConfig.default()
        self._urls: List[str] = []
        self._cancelled = threading.Event()
        self._state = UploadState.IDLE
        self._current_index = 0

    @property
    def state(self) -> UploadState:
        return self._state

    @property
    def current_index(self) -> int:
        """Index of the resource being processed (0 before the loop starts)."""
        return self._current_index

    @property
    def urls(self) -> Tuple[str, ...]:
        """URLs recorded so far, one entry per resource (empty before `run`)."""
        return tuple(self._urls)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Request the batch to stop before its next resource."""
        self._cancelled.set()

    async def run(self, request: UploadRequest, reporter: ProgressReporter) -> UploadResult:
        """
        Execute the batch.

        Args:
            request: Resources, suffix rule and ACL
            reporter: Receives progress, completion and failure

        Returns:
            The batch result; `urls` always has one entry per resource

        Raises:
            RuntimeError: If this executor already ran a batch
        """
        if self._state is not UploadState.IDLE:
            raise RuntimeError("UploadExecutor instances run a single batch")

        total = request.total
        urls: List[str] = [''] * total
        self._urls = urls
        batch_start = time.time()
        logger.info(f"Starting upload batch of {total} file(s)")

        self._state = UploadState.CREDENTIALS_PENDING
        credentials = await self._fetch_credentials()
        if isinstance(credentials, S3UploadError):
            return self._abort(credentials, 0, urls, reporter)

        self._state = UploadState.UPLOADING
        endpoint = self._config.endpoint_for(credentials.bucket)
        progress = UploadProgress(total_files=total)

        transport = self._transport
        owns_transport = transport is None
        if owns_transport:
            transport = self._transport_factory(self._config)

        try:
            for index, resource in enumerate(request.resources):
                if self._cancelled.is_set():
                    return self._stop_cancelled(urls)

                self._current_index = index
                try:
                    url = await self._upload_one(
                        transport, credentials, endpoint, request, resource, index
                    )
                except S3UploadError as e:
                    if self._cancelled.is_set():
                        logger.info(f"Discarding failure of file {index}: batch was cancelled")
                        return self._stop_cancelled(urls)
                    return self._abort(e, index, urls, reporter)

                if self._cancelled.is_set():
                    logger.info(f"Discarding result of file {index}: batch was cancelled")
                    return self._stop_cancelled(urls)

                urls[index] = url
                progress.uploaded_files = index + 1
                logger.info(f"Uploaded file {index + 1}/{total}: {url}")
                reporter.progress(progress.percentage)
        finally:
            if owns_transport:
                await transport.close()

        self._state = UploadState.COMPLETED
        elapsed = time.time() - batch_start
        logger.info(f"Upload batch completed: {total} file(s) in {elapsed:.2f}s")
        reporter.complete(urls)
        return UploadResult(urls=tuple(urls), state=UploadState.COMPLETED)

    async def _fetch_credentials(self):
        """Credentials for the batch, or the error to abort with."""
        loop = asyncio.get_running_loop()
        try:
            credentials = await loop.run_in_executor(None, self._provider.get_credentials)
        except Exception as e:
            logger.error(f"Credentials provider raised: {e}")
            error = CredentialsUnavailableError()
            error.__cause__ = e
            return error

        if credentials is None:
            logger.error("Credentials provider returned no credentials")
            return CredentialsUnavailableError()
        return credentials

    async def _upload_one(
        self,
        transport: TransportProtocol,
        credentials: Credentials,
        endpoint: str,
        request: UploadRequest,
        resource: Any,
        index: int
    ) -> str:
        """Upload one resource and return its URL."""
        if resource is None:
            raise InvalidResourceError("Resource cannot be None", index)

        resolver = self._resolver_ref()
        if resolver is None:
            raise ContextUnavailableError("Resource context is no longer available", index)

        try:
            resolved = await resolver.resolve(resource)
        except ResourceUnreadableError as e:
            e.index = index
            raise
        except OSError as e:
            raise ResourceUnreadableError(f"Cannot open {resource}: {e}", index) from e

        key = build_key(credentials, request.suffix_rule, resource, index, resolved.extension)
        form = SignedPostForm(
            key=key,
            access_key_id=credentials.access_key_id,
            policy=credentials.policy,
            signature=credentials.signature,
            success_action_status=self._config.success_status,
            acl=request.acl,
            content_type=credentials.content_type,
            filename=resolved.filename,
            data=resolved.data
        )

        try:
            response: PostResponse = await transport.submit(endpoint, form)
        except TransportError as e:
            e.index = index
            raise
        except OSError as e:
            raise TransportError(f"Failed uploading {key}: {e}", index) from e

        if response.status != self._config.success_status:
            logger.error(f"S3 rejected {key} with HTTP {response.status}")
            raise UnexpectedStatusError(response.status, response.body, index)

        return build_url(endpoint, key)

    def _abort(
        self,
        error: S3UploadError,
        index: int,
        urls: List[str],
        reporter: ProgressReporter
    ) -> UploadResult:
        self._state = UploadState.ABORTED
        self._cancelled.set()
        if error.index is None:
            error.index = index
        logger.error(f"Upload batch aborted at file {index}: {error}")
        reporter.failed(error, index)
        return UploadResult(
            urls=tuple(urls),
            state=UploadState.ABORTED,
            failed_index=index,
            error=error
        )

    def _stop_cancelled(self, urls: List[str]) -> UploadResult:
        self._state = UploadState.CANCELLED
        logger.info("Upload batch cancelled")
        return UploadResult(urls=tuple(urls), state=UploadState.CANCELLED)
