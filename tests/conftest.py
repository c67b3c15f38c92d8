"""Pytest fixtures for s3upload tests."""
import threading

import pytest

from s3upload.core.credentials import Credentials, StaticCredentialsProvider
from s3upload.core.upload.models import PostResponse
from s3upload.core.upload.reporter import UploadListener


class FakeTransport:
    """Records submitted forms and answers with scripted responses."""

    def __init__(self, responses=None):
        # Each entry is a status code, a PostResponse or an exception to raise
        self.responses = list(responses or [])
        self.submissions = []
        self.closed = 0

    async def submit(self, endpoint, form):
        self.submissions.append((endpoint, form))
        outcome = self.responses.pop(0) if self.responses else 201
        if isinstance(outcome, BaseException):
            raise outcome
        if isinstance(outcome, PostResponse):
            return outcome
        return PostResponse(status=outcome)

    async def close(self):
        self.closed += 1


class RecordingListener(UploadListener):
    """Keeps every notification, in order, with the thread it arrived on."""

    def __init__(self):
        self.events = []
        self.threads = []
        self.finished = threading.Event()

    def on_progress(self, progress):
        self.events.append(('progress', progress))
        self.threads.append(threading.get_ident())

    def on_upload_complete(self, urls):
        self.events.append(('complete', list(urls)))
        self.threads.append(threading.get_ident())
        self.finished.set()

    def on_upload_failed(self, error, failed_index):
        self.events.append(('failed', error, failed_index))
        self.threads.append(threading.get_ident())
        self.finished.set()

    @property
    def progress(self):
        return [e[1] for e in self.events if e[0] == 'progress']

    @property
    def failures(self):
        return [e for e in self.events if e[0] == 'failed']

    @property
    def completions(self):
        return [e for e in self.events if e[0] == 'complete']


@pytest.fixture
def credentials():
    """Credentials as issued by a backend."""
    return Credentials(
        bucket='media-bucket',
        unique_file_prefix='uploads/abc123_',
        access_key_id='AKIATEST',
        policy='eyJleHBpcmF0aW9uIjogIjIwMzAtMDEtMDFUMDA6MDA6MDBaIn0=',
        signature='c2lnbmF0dXJl',
        content_type='image/jpeg'
    )


@pytest.fixture
def provider(credentials):
    return StaticCredentialsProvider(credentials)


@pytest.fixture
def transport():
    return FakeTransport()


@pytest.fixture
def listener():
    return RecordingListener()


@pytest.fixture
def images(tmp_path):
    """Three small JPEG-looking files."""
    paths = []
    for name in ('first.jpg', 'second.jpg', 'third.jpg'):
        path = tmp_path / name
        path.write_bytes(b'\xff\xd8\xff\xe0' + name.encode())
        paths.append(path)
    return paths


@pytest.fixture
def make_transport():
    """Factory for transports with scripted responses."""
    return FakeTransport


@pytest.fixture
def make_listener():
    """Factory for additional recording listeners."""
    return RecordingListener
