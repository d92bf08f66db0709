"""
API configuration module.

Connection, timeout and upload tuning for the Stream API client.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union
from urllib.parse import quote, urlsplit, urlunsplit
import ssl

import aiohttp

from ..exceptions import InvalidInputError

MiB = 1024 * 1024

DEFAULT_BASE_URL = 'https://api.cloudflare.com/client/v4/'


@dataclass
class ProxyConfig:
    """HTTP(S) proxy, optionally with credentials."""
    url: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None

    def to_aiohttp_proxy(self) -> Optional[str]:
        """Proxy URL for aiohttp's ``proxy=`` argument, credentials embedded."""
        if not self.url:
            return None
        if not (self.username and self.password):
            return self.url

        parts = urlsplit(self.url)
        if not parts.scheme or not parts.hostname:
            return self.url
        creds = f"{quote(self.username, safe='')}:{quote(self.password, safe='')}"
        host = parts.hostname if parts.port is None else f"{parts.hostname}:{parts.port}"
        return urlunsplit((parts.scheme, f"{creds}@{host}", parts.path, parts.query, parts.fragment))


@dataclass
class SSLConfig:
    """TLS verification settings."""
    verify: bool = True
    ca_file: Optional[str] = None
    check_hostname: bool = True

    def create_ssl_context(self) -> Union[ssl.SSLContext, bool]:
        """SSL context for the connector, or False to skip verification."""
        if not self.verify:
            return False
        context = ssl.create_default_context(cafile=self.ca_file)
        context.check_hostname = self.check_hostname
        return context


@dataclass
class TimeoutConfig:
    """
    Per-request timeouts in seconds.

    ``total`` is unset so a large chunk on a slow link is never cut off;
    a stalled transfer is ended by ``sock_read``.
    """
    total: Optional[float] = None
    connect: float = 30.0
    sock_connect: float = 30.0
    sock_read: float = 300.0

    def to_aiohttp_timeout(self) -> aiohttp.ClientTimeout:
        return aiohttp.ClientTimeout(
            total=self.total,
            connect=self.connect,
            sock_connect=self.sock_connect,
            sock_read=self.sock_read
        )


@dataclass
class UploadConfig:
    """
    Upload engine tuning.

    Attributes:
        resumable_threshold: Files of at least this size use the resumable
            session protocol
        chunk_size: Bytes per PATCH request on the resumable path
        multipart_buffer_size: Bytes per read on the single-shot path
        progress_queue_size: Capacity of the progress relay queue
        max_duration_seconds: Maximum video duration requested for
            direct uploads (0 leaves it to the service)
    """
    resumable_threshold: int = 200 * MiB
    chunk_size: int = 50 * MiB
    multipart_buffer_size: int = 1 * MiB
    progress_queue_size: int = 10
    max_duration_seconds: int = 21600

    def __post_init__(self):
        for name in ('resumable_threshold', 'chunk_size', 'multipart_buffer_size', 'progress_queue_size'):
            if getattr(self, name) <= 0:
                raise InvalidInputError(f"{name} must be positive (got: {getattr(self, name)})")
        if self.max_duration_seconds < 0:
            raise InvalidInputError("max_duration_seconds cannot be negative")


@dataclass
class APIConfig:
    """
    Everything the Stream API client needs to talk to one account.

    Example:
        >>> config = APIConfig(account_id="abc", api_token="token")
        >>> config.stream_url
        'https://api.cloudflare.com/client/v4/accounts/abc/stream'
    """
    account_id: str = ''
    api_token: str = ''
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = 'cfstream/0.1.0'

    proxy: Optional[ProxyConfig] = None
    ssl: SSLConfig = field(default_factory=SSLConfig)
    timeout: TimeoutConfig = field(default_factory=TimeoutConfig)
    upload: UploadConfig = field(default_factory=UploadConfig)

    # Sent on every request, including direct upload URLs
    extra_headers: Dict[str, str] = field(default_factory=dict)

    # Connection pool
    limit: int = 100
    limit_per_host: int = 10

    def __post_init__(self):
        if not self.base_url.endswith('/'):
            self.base_url += '/'

    @classmethod
    def default(cls) -> 'APIConfig':
        return cls()

    @property
    def proxy_url(self) -> Optional[str]:
        return self.proxy.to_aiohttp_proxy() if self.proxy else None

    @property
    def stream_url(self) -> str:
        """Account-scoped Stream endpoint (also the resumable session endpoint)."""
        return f"{self.base_url}accounts/{self.account_id}/stream"

    def auth_headers(self) -> Dict[str, str]:
        """Bearer auth, added per request to account API calls only."""
        return {'Authorization': f"Bearer {self.api_token}"}

    def get_connector_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for aiohttp.TCPConnector."""
        return {
            'limit': self.limit,
            'limit_per_host': self.limit_per_host,
            'ssl': self.ssl.create_ssl_context(),
        }

    def get_session_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for aiohttp.ClientSession."""
        return {
            'headers': {'User-Agent': self.user_agent, **self.extra_headers},
            'timeout': self.timeout.to_aiohttp_timeout(),
        }
