"""
Signed POST service.

Submits one file to S3 as a browser-style multipart POST.
"""
from typing import Optional
import asyncio
import time

import aiohttp

from ..models import SignedPostForm, PostResponse
from ...config import UploadConfig
from ...exceptions import TransportError
from ...logging import get_logger


def build_form_data(form: SignedPostForm) -> aiohttp.FormData:
    """
    Compose the multipart body for a signed POST.

    Text fields go first, in the order S3 expects; the file part is last.
    """
    data = aiohttp.FormData()
    for name, value in form.fields():
        data.add_field(name, value)
    data.add_field(
        'file',
        form.data,
        filename=form.filename,
        content_type=form.content_type
    )
    return data


class SignedPostUploader:
    """
    Posts files to an S3 bucket endpoint.

    Reuses one HTTP session for every file in a batch. Sessions are bound
    to the event loop they were created on, so an uploader must not be
    shared between batches.

    Responsibilities:
    - Build the multipart form
    - Send it with the configured timeouts
    - Turn network failures into TransportError
    """

    def __init__(
        self,
        config: Optional[UploadConfig] = None,
        session: Optional[aiohttp.ClientSession] = None
    ):
        """
        Initialize uploader.

        Args:
            config: Upload configuration (timeouts, TLS, headers)
            session: Optional shared session
        """
        self._config = config or UploadConfig.default()
        self._session = session
        self._owns_session = False
        self._logger = get_logger('s3upload.upload.post')

    async def _get_session(self) -> aiohttp.ClientSession:
        """Get or create HTTP session."""
        if self._session is None:
            self._session = aiohttp.ClientSession(
                connector=aiohttp.TCPConnector(**self._config.get_connector_kwargs()),
                **self._config.get_session_kwargs()
            )
            self._owns_session = True
        return self._session

    async def close(self):
        """Close session if we own it."""
        if self._owns_session and self._session:
            await self._session.close()
            self._session = None

    async def submit(self, endpoint: str, form: SignedPostForm) -> PostResponse:
        """
        Submit a signed POST.

        Args:
            endpoint: Bucket endpoint URL
            form: Signed form fields and file content

        Returns:
            Response status and body, success or not

        Raises:
            TransportError: On connection errors and timeouts
        """
        size_kb = len(form.data) / 1024
        session = await self._get_session()

        upload_start = time.time()
        self._logger.debug(f"Posting {form.key} to {endpoint} ({size_kb:.1f} KB)")

        try:
            async with session.post(endpoint, data=build_form_data(form)) as response:
                body = await response.text()
                upload_time = time.time() - upload_start
                self._logger.debug(f"{form.key}: HTTP {response.status} in {upload_time:.2f}s")
                return PostResponse(status=response.status, body=body)
        except asyncio.TimeoutError as e:
            upload_time = time.time() - upload_start
            self._logger.error(f"Upload of {form.key} timed out after {upload_time:.2f}s")
            raise TransportError(f"Timed out uploading {form.key}") from e
        except aiohttp.ClientError as e:
            upload_time = time.time() - upload_start
            self._logger.error(f"Upload of {form.key} failed after {upload_time:.2f}s: {e}")
            raise TransportError(f"Failed uploading {form.key}: {e}") from e
