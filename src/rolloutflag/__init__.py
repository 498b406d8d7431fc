"""rolloutflag: percentage rollout feature flags with targeting rules."""

from .bucketing import bucket_index, create_hash
from .cache import (
    DEFAULT_REFRESH_INTERVAL_MS,
    ConfigCacheManager,
    RefreshResult,
    RefreshStatus,
)
from .client import FF_USER_ID_STICKINESS, FeatureFlagClient
from .exceptions import (
    BatchError,
    ConfigLoadError,
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
    Flag,
    FlagConfig,
    FlagContext,
    TargetCriterion,
    TargetingConfig,
    UserIdType,
)
from .settings import ClientSettings, load_settings
from .storage import (
    FileFlagStorage,
    FlagStorage,
    InMemoryFlagStorage,
    NullFlagStorage,
    create_storage,
)
from .targeting import criterion_matches, resolve_targeting

__all__ = [
    "BatchError",
    "ClientSettings",
    "ConfigCacheManager",
    "ConfigFetcher",
    "ConfigLoadError",
    "ConstructionError",
    "DEFAULT_REFRESH_INTERVAL_MS",
    "DEFAULT_TARGETING",
    "ErrorCodes",
    "EvaluationError",
    "EvaluationReason",
    "EvaluationResult",
    "FF_USER_ID_STICKINESS",
    "FeatureFlagClient",
    "FeatureFlagError",
    "FetchResponse",
    "FileFlagStorage",
    "Flag",
    "FlagConfig",
    "FlagContext",
    "FlagStorage",
    "HttpConfigFetcher",
    "IdentityResolver",
    "InMemoryFlagStorage",
    "NullFlagStorage",
    "RefreshResult",
    "RefreshStatus",
    "TargetCriterion",
    "TargetingConfig",
    "UserIdType",
    "bucket_index",
    "create_hash",
    "create_storage",
    "criterion_matches",
    "load_settings",
    "resolve_targeting",
]
