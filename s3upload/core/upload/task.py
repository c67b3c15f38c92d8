"""Background execution of an upload batch."""
import asyncio
import threading
from typing import Optional

from .coordinator import UploadExecutor
from .models import UploadRequest, UploadResult, UploadState
from .reporter import ProgressReporter
from ..logging import get_logger

logger = get_logger('s3upload.upload.task')


class UploadTask:
    """
    Handle for a batch running on its own worker thread.

    The worker thread runs the executor on a private event loop. Listener
    callbacks never run on it; they go through the reporter's dispatcher.

    Example:
        >>> task = manager.upload(["a.jpg", "b.jpg"], listener)
        >>> task.join(timeout=60)
        >>> task.result.urls
        ('https://bucket.s3.amazonaws.com/prefix0.jpg', ...)
    """

    def __init__(
        self,
        executor: UploadExecutor,
        request: UploadRequest,
        reporter: ProgressReporter
    ):
        self._executor = executor
        self._request = request
        self._reporter = reporter
        self._result: Optional[UploadResult] = None
        self._done = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def request(self) -> UploadRequest:
        return self._request

    @property
    def state(self) -> UploadState:
        if self._result is not None:
            return self._result.state
        return self._executor.state

    @property
    def result(self) -> Optional[UploadResult]:
        """The batch result once the worker has finished, else None."""
        return self._result

    @property
    def done(self) -> bool:
        return self._done.is_set()

    def start(self) -> 'UploadTask':
        """Start the worker thread."""
        if self._thread:
            return self

        def upload_loop():
            loop = asyncio.new_event_loop()
            asyncio.set_event_loop(loop)
            try:
                self._result = loop.run_until_complete(
                    self._executor.run(self._request, self._reporter)
                )
            except Exception as e:
                logger.exception("Upload worker failed unexpectedly")
                index = self._executor.current_index
                self._reporter.failed(e, index)
                self._result = UploadResult(
                    urls=self._executor.urls or ('',) * self._request.total,
                    state=UploadState.ABORTED,
                    failed_index=index,
                    error=e
                )
            finally:
                loop.close()
                self._done.set()

        self._thread = threading.Thread(target=upload_loop, name='s3upload-worker', daemon=True)
        self._thread.start()
        return self

    def cancel(self) -> None:
        """Stop before the next resource; no completion or failure is reported."""
        self._executor.cancel()

    def detach_listener(self) -> None:
        """Stop delivering notifications; the upload continues."""
        self._reporter.detach()

    def join(self, timeout: Optional[float] = None) -> bool:
        """
        Wait for the worker to finish.

        Returns:
            True if the batch finished within `timeout`
        """
        return self._done.wait(timeout)
