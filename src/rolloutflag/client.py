"""FeatureFlagClient: evaluates flags for one user context."""

from __future__ import annotations

import asyncio
import dataclasses
from collections.abc import Callable
from typing import Any

import structlog
from pydantic import ValidationError

from .bucketing import bucket_index
from .cache import ConfigCacheManager, RefreshResult, wall_clock_ms
from .exceptions import (
    BatchError,
    ConstructionError,
    ErrorCodes,
    EvaluationError,
    FeatureFlagError,
)
from .fetcher import ConfigFetcher, FetchResponse, HttpConfigFetcher
from .identity import IdentityResolver
from .models import (
    DEFAULT_TARGETING,
    EvaluationReason,
    EvaluationResult,
    FlagConfig,
    FlagContext,
    UserIdType,
)
from .settings import ClientSettings
from .storage import FlagStorage, create_storage
from .targeting import resolve_targeting

FF_USER_ID_STICKINESS = "ffUserId"


def _coerce_config(config: FlagConfig | dict[str, Any] | None) -> FlagConfig | None:
    if config is None or isinstance(config, FlagConfig):
        return config
    try:
        return FlagConfig.model_validate(config)
    except ValidationError as e:
        raise ConstructionError(
            code=ErrorCodes.INVALID_CONFIG,
            message=f"Invalid config file: {e}",
            cause=e,
        ) from e


class FeatureFlagClient:
    """Decides which features are enabled for a user.

    Args:
        context: caller context, or its camelCase dict form.
        config: optional static config. Required when context has no config_url.
        storage: key-value backend. Defaults to create_storage(context.storage_type).
        fetcher: config fetcher. Defaults to HttpConfigFetcher.
        logger: structlog logger.
        clock: millisecond clock used for cache staleness.
    """

    def __init__(
        self,
        context: FlagContext | dict[str, Any] | None,
        config: FlagConfig | dict[str, Any] | None = None,
        *,
        storage: FlagStorage | None = None,
        fetcher: ConfigFetcher | None = None,
        logger: structlog.stdlib.BoundLogger | None = None,
        clock: Callable[[], float] = wall_clock_ms,
    ) -> None:
        if context is None:
            raise ConstructionError(
                code=ErrorCodes.MISSING_CONTEXT,
                message="Please provide a context object to the constructor.",
            )
        if isinstance(context, dict):
            context = FlagContext.from_dict(context)
        if not context.config_url and config is None:
            raise ConstructionError(
                code=ErrorCodes.MISSING_CONFIG_SOURCE,
                message="Please provide either a config url or a valid config file.",
            )
        self._context = context
        self._storage = storage if storage is not None else create_storage(context.storage_type)
        self._logger = logger or structlog.stdlib.get_logger(__name__)
        self._cache = ConfigCacheManager(
            storage=self._storage,
            fetcher=fetcher if fetcher is not None else HttpConfigFetcher(),
            config_url=context.config_url,
            config=_coerce_config(config),
            refresh_interval_ms=context.config_refresh_interval,
            logger=self._logger,
            clock=clock,
        )
        self._identity = IdentityResolver(self._storage)
        self._initialized = False
        self._init_lock = asyncio.Lock()

    @classmethod
    def from_settings(
        cls,
        settings: ClientSettings,
        context: FlagContext | None = None,
        config: FlagConfig | dict[str, Any] | None = None,
        **kwargs: Any,
    ) -> FeatureFlagClient:
        """Build a client from settings. Context fields win over settings.

        The client works on a copy of the context, the caller's is not modified.
        """
        context = context or FlagContext()
        context = dataclasses.replace(
            context,
            config_url=context.config_url or settings.config_url,
            config_refresh_interval=(
                context.config_refresh_interval
                if context.config_refresh_interval is not None
                else settings.config_refresh_interval_ms
            ),
            attributes=dict(context.attributes),
        )
        kwargs.setdefault(
            "storage",
            create_storage(context.storage_type or settings.storage_type, settings.storage_path),
        )
        kwargs.setdefault("fetcher", HttpConfigFetcher(timeout_seconds=settings.timeout_seconds))
        return cls(context, config, **kwargs)

    @property
    def context(self) -> FlagContext:
        return self._context

    @property
    def config(self) -> FlagConfig | None:
        return self._cache.config

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def ff_user_id(self) -> str | None:
        return self._identity.ff_user_id

    def check_config_cache_expiry(self, interval_ms: float) -> bool:
        """True when the config has been cached longer than interval_ms."""
        return self._cache.is_stale(interval_ms)

    async def load_config(self, etag: str = "-1") -> FetchResponse:
        return await self._cache.load_config(etag)

    async def initialize(self) -> RefreshResult:
        """Ensure a fresh config, and on first call resolve user identities."""
        result = await self._cache.ensure_fresh()
        if self._initialized:
            return result
        async with self._init_lock:
            if not self._initialized:
                await self._identity.resolve_app_user_id(self._context)
                await self._identity.get_or_create_ff_user_id()
                self._initialized = True
        return result

    async def query_feature_flag(self, flag_name: str) -> EvaluationResult:
        """Evaluate one flag. Failures are logged and yield enabled=False."""
        try:
            await self.initialize()
        except Exception as e:
            return self._failure(flag_name, e, self._context.user_id, UserIdType.APP_USER_ID)
        return await self._evaluate(flag_name)

    async def is_enabled(self, flag_name: str) -> bool:
        result = await self.query_feature_flag(flag_name)
        return result.enabled

    async def query_all_feature_flags(self) -> list[EvaluationResult]:
        """Evaluate every configured flag concurrently.

        Raises:
            BatchError: no config is available.
        """
        await self.initialize()
        config = self._cache.config
        if config is None:
            raise BatchError(
                code=ErrorCodes.NO_CONFIG,
                message="No config file or invalid config file detected.",
            )
        results = await asyncio.gather(*(self._evaluate(f.flag_name) for f in config.flags))
        return list(results)

    async def _evaluate(self, flag_name: str) -> EvaluationResult:
        user_id = self._context.user_id
        user_id_type = UserIdType.APP_USER_ID
        try:
            config = self._cache.config
            if config is None or not config.flags:
                raise EvaluationError(
                    code=ErrorCodes.CONFIG_MISSING,
                    message="Operation failed - no config file or invalid config file detected.",
                )
            flag = config.get_flag(flag_name)
            if flag is None:
                raise EvaluationError(
                    code=ErrorCodes.FLAG_NOT_FOUND,
                    message=f"Flag not found: {flag_name}",
                )

            targeting = resolve_targeting(self._context, flag.targeting)
            if targeting.stickiness_property == FF_USER_ID_STICKINESS:
                user_id_type = UserIdType.FF_USER_ID
                user_id = await self._identity.get_or_create_ff_user_id()
            if not user_id:
                raise EvaluationError(
                    code=ErrorCodes.USER_ID_MISSING,
                    message="Operation failed - userId not provided",
                )

            bucket = bucket_index(user_id, flag.flag_id)
            enabled = bucket < targeting.rollout_percent
        except Exception as e:
            return self._failure(flag_name, e, user_id, user_id_type)

        return EvaluationResult(
            feature_name=flag_name,
            enabled=enabled,
            user_id=user_id,
            user_id_type=user_id_type,
            reason=(
                EvaluationReason.DEFAULT_TARGETING
                if targeting is DEFAULT_TARGETING
                else EvaluationReason.TARGET_MATCH
            ),
        )

    def _failure(
        self,
        flag_name: str,
        error: Exception,
        user_id: str | None,
        user_id_type: UserIdType,
    ) -> EvaluationResult:
        if isinstance(error, FeatureFlagError):
            code = error.code
            self._logger.error(
                "flag_evaluation_failed",
                flag_name=flag_name,
                error_code=code,
                error=str(error),
            )
        else:
            code = ErrorCodes.EVALUATION_FAILED
            self._logger.exception("flag_evaluation_failed", flag_name=flag_name, error_code=code)
        return EvaluationResult(
            feature_name=flag_name,
            enabled=False,
            user_id=user_id,
            user_id_type=user_id_type,
            reason=EvaluationReason.ERROR,
            error_code=code,
        )
