"""
Resource resolution service.

Turns a resource handle (path or file:// URI) into bytes, a filename and
the extension used in the storage key.
"""
import mimetypes
from pathlib import Path
from typing import Optional, Tuple, Union
from urllib.parse import urlparse, unquote

import aiofiles

from ..models import ResolvedResource
from ...exceptions import ResourceUnreadableError
from ...logging import get_logger


class ResourceResolver:
    """
    Resolves local media resources for upload.

    Responsibilities:
    - Accept plain paths, Path objects and file:// URIs
    - Read the file content without blocking the event loop
    - Work out the key extension from the filename, falling back to the
      content's signature when the name has none
    """

    # Leading bytes of common media formats -> (content type, extension)
    SIGNATURES = (
        (b'\xff\xd8\xff', 'image/jpeg', 'jpg'),
        (b'\x89PNG\r\n\x1a\n', 'image/png', 'png'),
        (b'GIF87a', 'image/gif', 'gif'),
        (b'GIF89a', 'image/gif', 'gif'),
        (b'%PDF', 'application/pdf', 'pdf'),
    )

    def __init__(self):
        self._logger = get_logger('s3upload.upload.resource')

    def to_path(self, resource: Union[str, Path]) -> Path:
        """
        Convert a handle to a local path.

        Raises:
            ResourceUnreadableError: For URIs with a non-file scheme
        """
        if isinstance(resource, Path):
            return resource

        text = str(resource)
        if '://' not in text:
            return Path(text)

        parsed = urlparse(text)
        if parsed.scheme != 'file':
            raise ResourceUnreadableError(f"Unsupported resource scheme: {parsed.scheme}")
        return Path(unquote(parsed.path))

    async def resolve(self, resource: Union[str, Path]) -> ResolvedResource:
        """
        Read a resource.

        Args:
            resource: Path or file:// URI

        Returns:
            Resolved content

        Raises:
            ResourceUnreadableError: If the file cannot be opened or read
        """
        path = self.to_path(resource)
        try:
            async with aiofiles.open(path, 'rb') as f:
                data = await f.read()
        except OSError as e:
            raise ResourceUnreadableError(f"Cannot open {path}: {e}") from e

        content_type, extension = self.describe(path, data)
        self._logger.debug(f"Resolved {path} ({len(data)} bytes, extension '{extension}')")

        return ResolvedResource(
            data=data,
            filename=path.name,
            extension=extension,
            content_type=content_type
        )

    def describe(self, path: Path, data: bytes) -> Tuple[Optional[str], str]:
        """
        Content type hint and key extension for a file.

        The filename wins; the content signature is only consulted for
        names without an extension. The extension is "" when neither helps.
        """
        if path.suffix:
            content_type, _ = mimetypes.guess_type(path.name)
            return content_type, path.suffix[1:].lower()

        for signature, content_type, extension in self.SIGNATURES:
            if data.startswith(signature):
                return content_type, extension
        return None, ''
