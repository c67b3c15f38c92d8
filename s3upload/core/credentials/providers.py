"""
Credentials providers.

A provider is asked once per batch. Returning None is the expected way to
say "no credentials"; the batch then fails before touching any resource.
"""
import base64
import json
import uuid
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Protocol, Optional, Dict, Union, runtime_checkable

import requests
from Crypto.Hash import HMAC, SHA1

from .models import Credentials
from ..config import DEFAULT_SUCCESS_STATUS
from ..logging import get_logger

logger = get_logger('s3upload.credentials')


@runtime_checkable
class CredentialsProvider(Protocol):
    """Protocol for objects that issue per-batch credentials."""

    def get_credentials(self) -> Optional[Credentials]:
        """
        Fetch a fresh credentials bundle.

        Returns:
            Credentials, or None if they could not be obtained
        """
        ...


class StaticCredentialsProvider:
    """Returns the same credentials for every batch."""

    def __init__(self, credentials: Optional[Credentials]):
        self._credentials = credentials

    def get_credentials(self) -> Optional[Credentials]:
        return self._credentials


class JsonFileCredentialsProvider:
    """Reads a credentials bundle from a JSON file on every call."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    def get_credentials(self) -> Optional[Credentials]:
        try:
            data = json.loads(self._path.read_text(encoding='utf-8'))
            return Credentials.from_dict(data)
        except (OSError, ValueError, KeyError) as e:
            logger.error(f"Could not load credentials from {self._path}: {e}")
            return None


class HttpCredentialsProvider:
    """
    Fetches credentials from the issuing backend over HTTP.

    The backend is expected to answer a GET with a JSON object carrying
    bucket, uniqueFilePrefix, AWSAccessKeyId, policy, signature and
    contentType.
    """

    DEFAULT_TIMEOUT = 30

    def __init__(
        self,
        url: str,
        headers: Optional[Dict[str, str]] = None,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None
    ):
        """
        Initialize provider.

        Args:
            url: Credentials endpoint
            headers: Extra request headers (e.g. Authorization)
            timeout: Request timeout in seconds
            session: Optional shared requests session
        """
        self._url = url
        self._headers = headers or {}
        self._timeout = timeout
        self._session = session or requests.Session()

    def get_credentials(self) -> Optional[Credentials]:
        logger.debug(f"Requesting credentials from {self._url}")
        try:
            response = self._session.get(
                self._url,
                headers=self._headers,
                timeout=self._timeout
            )
            response.raise_for_status()
            return Credentials.from_dict(response.json())
        except requests.RequestException as e:
            logger.error(f"Credentials request failed: {e}")
            return None
        except (ValueError, KeyError) as e:
            logger.error(f"Invalid credentials response: {e}")
            return None


class SigningCredentialsProvider:
    """
    Issues credentials by signing a POST policy locally.

    This is what an issuing backend does; use it when the AWS secret key is
    available to the process (development, tests, trusted tools). Each call
    generates a new unique key prefix and a policy valid for `expires_in`.

    Example:
        >>> provider = SigningCredentialsProvider(
        ...     "my-bucket", "AKIA...", "secret", key_prefix="uploads/"
        ... )
        >>> creds = provider.get_credentials()
        >>> creds.unique_file_prefix.startswith("uploads/")
        True
    """

    def __init__(
        self,
        bucket: str,
        access_key_id: str,
        secret_key: str,
        key_prefix: str = "",
        content_type: str = "image/jpeg",
        expires_in: timedelta = timedelta(hours=1),
        max_content_length: Optional[int] = None
    ):
        self._bucket = bucket
        self._access_key_id = access_key_id
        self._secret_key = secret_key
        self._key_prefix = key_prefix
        self._content_type = content_type
        self._expires_in = expires_in
        self._max_content_length = max_content_length

    def get_credentials(self) -> Optional[Credentials]:
        prefix = f"{self._key_prefix}{uuid.uuid4().hex}_"
        policy = self.encode_policy(self.build_policy(prefix))
        logger.debug(f"Signed policy for prefix {prefix}")
        return Credentials(
            bucket=self._bucket,
            unique_file_prefix=prefix,
            access_key_id=self._access_key_id,
            policy=policy,
            signature=self.sign(policy),
            content_type=self._content_type
        )

    def build_policy(self, prefix: str, now: Optional[datetime] = None) -> Dict:
        """Build the policy document restricting keys to `prefix`."""
        now = now or datetime.now(timezone.utc)
        expiration = (now + self._expires_in).strftime('%Y-%m-%dT%H:%M:%S.000Z')
        conditions = [
            {'bucket': self._bucket},
            ['starts-with', '$key', prefix],
            ['starts-with', '$acl', ''],
            {'success_action_status': str(DEFAULT_SUCCESS_STATUS)},
            ['starts-with', '$Content-Type', ''],
        ]
        if self._max_content_length:
            conditions.append(['content-length-range', 0, self._max_content_length])
        return {'expiration': expiration, 'conditions': conditions}

    @staticmethod
    def encode_policy(policy: Dict) -> str:
        """Base64-encode a policy document."""
        raw = json.dumps(policy, separators=(',', ':')).encode('utf-8')
        return base64.b64encode(raw).decode('ascii')

    def sign(self, encoded_policy: str) -> str:
        """Compute the HMAC-SHA1 signature of an encoded policy."""
        mac = HMAC.new(
            self._secret_key.encode('utf-8'),
            msg=encoded_policy.encode('ascii'),
            digestmod=SHA1
        )
        return base64.b64encode(mac.digest()).decode('ascii')
