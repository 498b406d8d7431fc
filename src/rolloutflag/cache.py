"""Flag config cache: staleness tracking and conditional refresh."""

from __future__ import annotations

import asyncio
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

import structlog
from pydantic import ValidationError

from .exceptions import ConfigLoadError, ErrorCodes, FeatureFlagError
from .fetcher import ConfigFetcher, FetchResponse
from .models import FlagConfig
from .storage import (
    FEATURE_FLAG_CONFIG,
    FEATURE_FLAG_CONFIG_ETAG,
    FEATURE_FLAG_CONFIG_FETCHED_AT,
    FlagStorage,
)

DEFAULT_REFRESH_INTERVAL_MS = 86_400_000
NO_ETAG = "-1"


def wall_clock_ms() -> float:
    return time.time() * 1000


class RefreshStatus(StrEnum):
    """What ensure_fresh did."""

    SKIPPED = "SKIPPED"
    FROM_STORAGE = "FROM_STORAGE"
    FETCHED = "FETCHED"
    NOT_MODIFIED = "NOT_MODIFIED"
    FAILED = "FAILED"


@dataclass
class RefreshResult:
    status: RefreshStatus
    error: FeatureFlagError | None = None

    @property
    def ok(self) -> bool:
        return self.status != RefreshStatus.FAILED


class ConfigCacheManager:
    """Holds the in-memory config and keeps it fresh.

    Staleness is elapsed wall-clock time since the last successful fetch
    compared with the refresh interval. The fetch time is persisted next to the
    config, so a restarted process measures from the original fetch. Before
    any fetch is known it measures from construction. Refreshes send the
    stored revalidation token as If-None-Match.
    """

    def __init__(
        self,
        storage: FlagStorage,
        fetcher: ConfigFetcher,
        config_url: str | None = None,
        config: FlagConfig | None = None,
        refresh_interval_ms: int | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
        clock: Callable[[], float] = wall_clock_ms,
    ) -> None:
        self._storage = storage
        self._fetcher = fetcher
        self._config_url = config_url
        self._config = config
        self._refresh_interval_ms = refresh_interval_ms
        self._logger = logger or structlog.stdlib.get_logger(__name__)
        self._clock = clock
        self._last_fetch = clock()
        self._lock = asyncio.Lock()

    @property
    def config(self) -> FlagConfig | None:
        return self._config

    @property
    def refresh_interval_ms(self) -> int:
        if self._refresh_interval_ms is None:
            return DEFAULT_REFRESH_INTERVAL_MS
        return self._refresh_interval_ms

    def is_stale(self, interval_ms: float | None = None) -> bool:
        """True when more than interval_ms has elapsed since the last fetch."""
        if interval_ms is None:
            interval_ms = self.refresh_interval_ms
        return (self._clock() - self._last_fetch) > interval_ms

    async def load_config(self, etag: str = NO_ETAG) -> FetchResponse:
        """Issue one conditional fetch against the config url."""
        if not self._config_url:
            raise ConfigLoadError(
                code=ErrorCodes.NO_CONFIG_URL,
                message="Failed to load config file - no config url provided.",
            )
        return await self._fetcher.fetch(self._config_url, {"If-None-Match": etag})

    async def ensure_fresh(self) -> RefreshResult:
        """Load or refresh the config if needed. Never raises."""
        if self._config is not None and not self.is_stale():
            return RefreshResult(RefreshStatus.SKIPPED)
        async with self._lock:
            stale = self.is_stale()
            if self._config is not None and not stale:
                return RefreshResult(RefreshStatus.SKIPPED)
            try:
                status = await self._refresh(stale)
            except FeatureFlagError as e:
                self._logger.error(
                    "config_refresh_failed",
                    error_code=e.code,
                    error=str(e),
                    config_url=self._config_url,
                )
                return RefreshResult(RefreshStatus.FAILED, e)
            except Exception as e:
                self._logger.exception("config_refresh_failed", config_url=self._config_url)
                return RefreshResult(
                    RefreshStatus.FAILED,
                    ConfigLoadError(code=ErrorCodes.FETCH_FAILED, message=str(e), cause=e),
                )
        self._logger.debug("config_refreshed", status=str(status), config_url=self._config_url)
        return RefreshResult(status)

    async def _refresh(self, stale: bool) -> RefreshStatus:
        if not self._config_url:
            raise ConfigLoadError(
                code=ErrorCodes.NO_CONFIG_URL,
                message="Failed to load config file - no config url provided.",
            )
        stored = await self._read_stored_config()
        if stored is not None:
            self._config = stored
            fetched_at = await self._read_fetched_at()
            if fetched_at is not None:
                self._last_fetch = fetched_at
                stale = self.is_stale()
            if not stale:
                return RefreshStatus.FROM_STORAGE

        etag = await self._storage.get(FEATURE_FLAG_CONFIG_ETAG) or NO_ETAG
        response = await self.load_config(etag)
        if response.data is not None:
            self._config = response.data
        if response.etag:
            await self._storage.set(FEATURE_FLAG_CONFIG_ETAG, response.etag)
        self._last_fetch = self._clock()
        if self._config is not None:
            await self._storage.set(FEATURE_FLAG_CONFIG, self._config.to_json())
            await self._storage.set(FEATURE_FLAG_CONFIG_FETCHED_AT, repr(self._last_fetch))
        return RefreshStatus.FETCHED if response.data is not None else RefreshStatus.NOT_MODIFIED

    async def _read_stored_config(self) -> FlagConfig | None:
        blob = await self._storage.get(FEATURE_FLAG_CONFIG)
        if not blob:
            return None
        try:
            return FlagConfig.model_validate_json(blob)
        except ValidationError as e:
            self._logger.warning("stored_config_invalid", error=str(e))
            return None

    async def _read_fetched_at(self) -> float | None:
        value = await self._storage.get(FEATURE_FLAG_CONFIG_FETCHED_AT)
        if not value:
            return None
        try:
            return float(value)
        except ValueError:
            self._logger.warning("stored_fetch_time_invalid", value=value)
            return None
