"""Remote flag config fetchers."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field

import httpx
from pydantic import ValidationError

from .exceptions import ConfigLoadError, ErrorCodes
from .models import FlagConfig


@dataclass
class FetchResponse:
    """Config fetch outcome. data is None when the source reports no change.

    Header names are stored lowercased.
    """

    data: FlagConfig | None
    headers: dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.headers = {k.lower(): v for k, v in self.headers.items()}

    @property
    def etag(self) -> str | None:
        return self.headers.get("etag") or None


class ConfigFetcher(ABC):
    """Abstract config fetcher."""

    @abstractmethod
    async def fetch(self, url: str, headers: dict[str, str]) -> FetchResponse:
        """Fetch the config. Raises ConfigLoadError on failure."""
        ...


class HttpConfigFetcher(ConfigFetcher):
    """httpx based config fetcher supporting If-None-Match revalidation."""

    def __init__(self, timeout_seconds: float = 10.0) -> None:
        self._timeout_seconds = timeout_seconds

    def _make_client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self._timeout_seconds, follow_redirects=True)

    def _handle_error(self, resp: httpx.Response, url: str) -> None:
        if resp.status_code >= 400:
            raise ConfigLoadError(
                code=ErrorCodes.FETCH_FAILED,
                message=f"Failed to retrieve config file {url}: HTTP {resp.status_code}",
            )

    async def fetch(self, url: str, headers: dict[str, str]) -> FetchResponse:
        try:
            async with self._make_client() as client:
                resp = await client.get(url, headers=headers)
        except httpx.HTTPError as e:
            raise ConfigLoadError(
                code=ErrorCodes.FETCH_FAILED,
                message=f"Failed to retrieve config file {url}: {e}",
                cause=e,
            ) from e
        self._handle_error(resp, url)
        resp_headers = {k.lower(): v for k, v in resp.headers.items()}
        if resp.status_code == 304 or not resp.content:
            return FetchResponse(data=None, headers=resp_headers)
        try:
            config = FlagConfig.model_validate_json(resp.content)
        except ValidationError as e:
            raise ConfigLoadError(
                code=ErrorCodes.INVALID_CONFIG,
                message=f"Invalid config file {url}: {e}",
                cause=e,
            ) from e
        return FetchResponse(data=config, headers=resp_headers)
