"""
Progress reporting.

The executor runs on a worker thread; listeners expect to be called on the
caller's context. A ProgressReporter queues every notification onto a
CallbackDispatcher bound to that context and never calls the listener from
the worker thread itself.
"""
import asyncio
import queue
import threading
from typing import Any, Callable, Optional, Sequence

from .protocols import CallbackDispatcher
from ..logging import get_logger

logger = get_logger('s3upload.upload.reporter')


class UploadListener:
    """
    Base listener with no-op callbacks; override what you need.

    Callbacks:
        on_progress: After each uploaded file, with floor(uploaded / total * 100).
            A single-file batch reports 100 once.
        on_upload_complete: Once, after the last on_progress, with one URL per
            resource in input order.
        on_upload_failed: Once, with the error and the index of the resource
            that failed. Nothing follows it.
    """

    def on_progress(self, progress: int) -> None:
        pass

    def on_upload_complete(self, urls: Sequence[str]) -> None:
        pass

    def on_upload_failed(self, error: BaseException, failed_index: int) -> None:
        pass


class CallbackListener(UploadListener):
    """Adapts plain callables to the listener interface."""

    def __init__(
        self,
        on_progress: Optional[Callable[[int], None]] = None,
        on_complete: Optional[Callable[[Sequence[str]], None]] = None,
        on_failed: Optional[Callable[[BaseException, int], None]] = None
    ):
        self._on_progress = on_progress
        self._on_complete = on_complete
        self._on_failed = on_failed

    def on_progress(self, progress: int) -> None:
        if self._on_progress:
            self._on_progress(progress)

    def on_upload_complete(self, urls: Sequence[str]) -> None:
        if self._on_complete:
            self._on_complete(urls)

    def on_upload_failed(self, error: BaseException, failed_index: int) -> None:
        if self._on_failed:
            self._on_failed(error, failed_index)


class ImmediateDispatcher:
    """Runs callbacks inline on the posting thread."""

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        fn(*args)


class QueueDispatcher:
    """
    Single-consumer queue drained by the thread that owns the listener.

    Call `run_pending()` from your main loop, or `process()` to block for
    the next callback.

    Example:
        >>> dispatcher = QueueDispatcher()
        >>> task = manager.upload(files, listener, dispatcher=dispatcher)
        >>> while not task.done or dispatcher.pending:
        ...     dispatcher.process(timeout=0.1)
    """

    def __init__(self):
        self._queue: queue.Queue = queue.Queue()

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        self._queue.put((fn, args))

    @property
    def pending(self) -> int:
        return self._queue.qsize()

    def process(self, timeout: Optional[float] = None) -> bool:
        """
        Run the next queued callback, waiting up to `timeout` for one.

        Returns:
            True if a callback ran
        """
        try:
            fn, args = self._queue.get(timeout=timeout)
        except queue.Empty:
            return False
        fn(*args)
        return True

    def run_pending(self) -> int:
        """Run every callback queued so far without blocking; returns how many ran."""
        count = 0
        while True:
            try:
                fn, args = self._queue.get_nowait()
            except queue.Empty:
                return count
            fn(*args)
            count += 1


class ThreadDispatcher:
    """
    Delivers callbacks on one dedicated daemon thread, in posting order.

    The thread is started on first use and shared by every batch posted
    through this dispatcher.
    """

    _STOP = object()

    def __init__(self, name: str = 's3upload-callbacks'):
        self._name = name
        self._queue: queue.Queue = queue.Queue()
        self._thread: Optional[threading.Thread] = None
        self._lock = threading.Lock()

    @property
    def thread(self) -> Optional[threading.Thread]:
        return self._thread

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        self._ensure_started()
        self._queue.put((fn, args))

    def flush(self, timeout: Optional[float] = None) -> bool:
        """Wait until everything posted so far has been delivered."""
        done = threading.Event()
        self.post(done.set)
        return done.wait(timeout)

    def close(self, timeout: Optional[float] = None) -> None:
        """Deliver what is queued, then stop the callback thread."""
        with self._lock:
            thread = self._thread
            self._thread = None
        if thread is None:
            return
        self._queue.put((self._STOP, ()))
        thread.join(timeout)

    def _ensure_started(self) -> None:
        with self._lock:
            if self._thread is None:
                self._thread = threading.Thread(target=self._run, name=self._name, daemon=True)
                self._thread.start()

    def _run(self) -> None:
        while True:
            fn, args = self._queue.get()
            if fn is self._STOP:
                return
            try:
                fn(*args)
            except Exception:
                logger.exception("Callback raised on the callback thread")


class AsyncioDispatcher:
    """Delivers callbacks on an asyncio event loop owned by the caller."""

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._loop = loop or asyncio.get_running_loop()

    def post(self, fn: Callable[..., Any], *args: Any) -> None:
        try:
            self._loop.call_soon_threadsafe(fn, *args)
        except RuntimeError:
            logger.debug("Callback loop is closed, dropping notification")


class ProgressReporter:
    """
    Queues listener notifications onto a dispatcher.

    - Never blocks the producer waiting for the listener.
    - Keeps notifications in the order they were produced.
    - Posts nothing after a completion or failure.
    - Drops notifications silently once the listener is detached; the
      upload itself carries on.
    - Logs listener exceptions on the callback context instead of letting
      them reach the batch.
    """

    def __init__(self, listener: Any, dispatcher: CallbackDispatcher):
        self._listener = listener
        self._dispatcher = dispatcher
        self._finished = False

    @property
    def listener(self) -> Any:
        return self._listener

    def detach(self) -> None:
        """Stop delivering notifications to the listener."""
        self._listener = None

    def progress(self, percent: int) -> None:
        if not self._finished:
            self._post('on_progress', percent)

    def complete(self, urls: Sequence[str]) -> None:
        if not self._finished:
            self._finished = True
            self._post('on_upload_complete', list(urls))

    def failed(self, error: BaseException, index: int) -> None:
        if not self._finished:
            self._finished = True
            self._post('on_upload_failed', error, index)

    def _post(self, method: str, *args: Any) -> None:
        if self._listener is None:
            return
        self._dispatcher.post(self._deliver, method, args)

    def _deliver(self, method: str, args: tuple) -> None:
        listener = self._listener
        if listener is None:
            return
        try:
            getattr(listener, method)(*args)
        except Exception:
            logger.exception(f"Listener raised in {method}")
