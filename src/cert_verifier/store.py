"""
Content store clients for fetching certificates by identifier.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Protocol
from urllib.parse import urlparse

import httpx

from .errors import ContentFetchError

logger = logging.getLogger(__name__)


class ContentStore(Protocol):
    """Anything that can return the raw bytes stored under an identifier."""

    async def get(self, identifier: str) -> bytes:
        ...


@dataclass(frozen=True)
class StoreConfig:
    """
    Content store configuration.

    Attributes:
        provider: Store provider (http, azure, aws)
        base_url: Base URL for the http provider
        account: Storage account for the azure provider
        container: Container or bucket holding certificates
        timeout_s: Bound on each fetch, in seconds
    """
    provider: str = "http"
    base_url: str | None = None
    account: str | None = None
    container: str | None = None
    timeout_s: float = 5.0


def container_relative_path(identifier: str, container: str | None = None) -> str:
    """
    Reduce a certificate identifier to its path inside the container.

    Examples:
        >>> container_relative_path("https://x.blob.core.windows.net/certs/a/b.json", "certs")
        'a/b.json'
        >>> container_relative_path("a/b.json", "certs")
        'a/b.json'
    """
    path = urlparse(identifier).path if "://" in identifier else identifier
    path = path.lstrip("/")
    if container and path.startswith(container.strip("/") + "/"):
        path = path[len(container.strip("/")) + 1:]
    return path


class HttpContentStore:
    """
    Fetches certificates over HTTP from ``base_url/<container-relative path>``.

    Without a base URL, identifiers must be absolute http(s) URLs and are
    fetched as they are. One httpx client is shared by all fetches until
    ``aclose`` is called.

    Args:
        base_url: URL that relative certificate paths are resolved against
        container: Container name stripped from absolute identifiers
        timeout_s: Request timeout in seconds. Default: 5.0
    """

    def __init__(
        self,
        base_url: str | None = None,
        container: str | None = None,
        timeout_s: float = 5.0,
    ):
        self.base_url = base_url.rstrip("/") if base_url else None
        self.container = container
        self.timeout_s = timeout_s
        self._client: httpx.AsyncClient | None = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout_s)
        return self._client

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    def url_for(self, identifier: str) -> str:
        """
        Raises:
            ContentFetchError: If there is no base URL and the identifier
                is not an absolute http(s) URL
        """
        if self.base_url is None:
            if urlparse(identifier).scheme not in ("http", "https"):
                raise ContentFetchError(identifier, not_found=True)
            return identifier
        return f"{self.base_url}/{container_relative_path(identifier, self.container)}"

    async def get(self, identifier: str) -> bytes:
        """
        Fetch the raw certificate bytes.

        Raises:
            ContentFetchError: On a malformed identifier, not-found, other
                HTTP errors, network errors or timeouts
        """
        url = identifier
        try:
            url = self.url_for(identifier)
            response = await self._get_client().get(url)
            response.raise_for_status()
        except (ValueError, httpx.InvalidURL) as e:
            logger.warning("Malformed certificate identifier %r: %s", identifier, e)
            raise ContentFetchError(identifier, cause=e, not_found=True) from e
        except httpx.HTTPStatusError as e:
            not_found = e.response.status_code == 404
            logger.warning("Content store returned %s for %s", e.response.status_code, url)
            raise ContentFetchError(identifier, cause=e, not_found=not_found) from e
        except httpx.HTTPError as e:
            logger.warning("Content store unreachable for %s: %s", url, e)
            raise ContentFetchError(identifier, cause=e) from e
        return response.content


def get_content_store(config: StoreConfig) -> HttpContentStore:
    """
    Select a content store from configuration.

    Raises:
        ValueError: If the provider is unknown or its required settings
            are missing (the http provider needs none)
    """
    provider = config.provider.lower()
    if provider == "http":
        base_url = config.base_url
    elif provider == "azure":
        if not config.account or not config.container:
            raise ValueError("CERT_STORE_ACCOUNT and CERT_STORE_CONTAINER are required for the azure store")
        base_url = f"https://{config.account}.blob.core.windows.net/{config.container}"
    elif provider == "aws":
        if not config.container:
            raise ValueError("CERT_STORE_CONTAINER is required for the aws store")
        base_url = f"https://{config.container}.s3.amazonaws.com"
    else:
        raise ValueError(f"Unknown content store provider: {config.provider!r}")

    return HttpContentStore(base_url, container=config.container, timeout_s=config.timeout_s)
