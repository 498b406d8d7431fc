"""rolloutflag exception types."""

from __future__ import annotations


class FeatureFlagError(Exception):
    """Base error for the rolloutflag library."""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {super().__str__()}"


class ConstructionError(FeatureFlagError):
    """Client could not be constructed."""


class ConfigLoadError(FeatureFlagError):
    """Flag config could not be fetched, parsed or persisted."""


class EvaluationError(FeatureFlagError):
    """A single flag could not be evaluated."""


class BatchError(FeatureFlagError):
    """A batch query could not run at all."""


class ErrorCodes:
    """Error code constants."""

    MISSING_CONTEXT: str = "MISSING_CONTEXT"
    MISSING_CONFIG_SOURCE: str = "MISSING_CONFIG_SOURCE"
    UNKNOWN_STORAGE_TYPE: str = "UNKNOWN_STORAGE_TYPE"

    NO_CONFIG_URL: str = "NO_CONFIG_URL"
    FETCH_FAILED: str = "FETCH_FAILED"
    INVALID_CONFIG: str = "INVALID_CONFIG"
    STORAGE_ERROR: str = "STORAGE_ERROR"

    CONFIG_MISSING: str = "CONFIG_MISSING"
    FLAG_NOT_FOUND: str = "FLAG_NOT_FOUND"
    USER_ID_MISSING: str = "USER_ID_MISSING"
    EVALUATION_FAILED: str = "EVALUATION_FAILED"

    NO_CONFIG: str = "NO_CONFIG"

    SETTINGS_ERROR: str = "SETTINGS_ERROR"
