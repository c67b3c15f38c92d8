"""
Upload configuration module.

Dataclass configuration for the signed-POST transport.
"""
from dataclasses import dataclass, field
from typing import Optional, Dict, Any
import ssl

import aiohttp


S3_URL_TEMPLATE = "https://{bucket}.s3.amazonaws.com"
DEFAULT_ACL = "public-read"
DEFAULT_SUCCESS_STATUS = 201


@dataclass
class SSLConfig:
    """
    SSL/TLS configuration.

    Allows customization of SSL behavior for security requirements.
    """
    verify: bool = True
    cert_file: Optional[str] = None
    key_file: Optional[str] = None
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self):
        """Create SSL context from configuration (False disables verification)."""
        if not self.verify:
            return False

        context = ssl.create_default_context()

        if self.ca_file:
            context.load_verify_locations(self.ca_file)

        if self.cert_file:
            context.load_cert_chain(
                self.cert_file,
                keyfile=self.key_file
            )

        context.check_hostname = self.check_hostname

        return context


@dataclass
class TimeoutConfig:
    """
    Timeout configuration for a single file submission.

    Timeouts surface as ordinary transport failures.
    """
    connect: float = 60.0
    sock_read: float = 180.0
    total: float = 600.0  # covers the write phase as well

    def to_aiohttp_timeout(self) -> aiohttp.ClientTimeout:
        """Convert to aiohttp ClientTimeout."""
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_read=self.sock_read
        )


@dataclass
class UploadConfig:
    """
    Complete upload configuration.

    Attributes:
        url_template: Endpoint template, formatted with the credentials' bucket
        default_acl: ACL used when the caller does not pass one
        success_status: The only HTTP status treated as success
        user_agent: User-Agent header sent with every POST
        timeout: Transport timeouts
        ssl: TLS settings
        extra_headers: Additional headers for every POST
    """
    url_template: str = S3_URL_TEMPLATE
    default_acl: str = DEFAULT_ACL
    success_status: int = DEFAULT_SUCCESS_STATUS
    user_agent: str = 's3upload/1.0.0'
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    ssl: SSLConfig = field(default_factory=SSLConfig)
    extra_headers: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def default(cls) -> 'UploadConfig':
        """Create default configuration."""
        return cls()

    @classmethod
    def insecure(cls, **kwargs) -> 'UploadConfig':
        """Create configuration with SSL verification disabled."""
        return cls(
            ssl=SSLConfig(verify=False, check_hostname=False),
            **kwargs
        )

    def endpoint_for(self, bucket: str) -> str:
        """Returns the upload endpoint for a bucket."""
        return self.url_template.format(bucket=bucket)

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp ClientSession."""
        headers = {
            'User-Agent': self.user_agent,
            **self.extra_headers
        }

        return {
            'headers': headers,
            'timeout': self.timeout.to_aiohttp_timeout(),
        }

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Get kwargs for aiohttp TCPConnector."""
        return {
            'ssl': self.ssl.create_ssl_context(),
        }
