"""Client settings (pydantic), loadable from YAML."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ErrorCodes, FeatureFlagError


class ClientSettings(BaseModel):
    """Client settings."""

    config_url: str | None = None
    config_refresh_interval_ms: int = Field(default=86_400_000, ge=0)
    storage_type: Literal["memory", "file", "none"] = "memory"
    storage_path: str | None = None
    timeout_seconds: float = Field(default=10.0, gt=0)


def load_settings(path: Path) -> ClientSettings:
    """Read a YAML settings file.

    The settings may sit at the top level or under a "featureflag" section.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise FeatureFlagError(
            code=ErrorCodes.SETTINGS_ERROR,
            message=f"Failed to read settings file: {path}",
            cause=e,
        ) from e
    try:
        data: Any = yaml.safe_load(text) or {}
    except yaml.YAMLError as e:
        raise FeatureFlagError(
            code=ErrorCodes.SETTINGS_ERROR,
            message=f"Failed to parse YAML: {path}",
            cause=e,
        ) from e
    if isinstance(data, dict) and isinstance(data.get("featureflag"), dict):
        data = data["featureflag"]
    try:
        return ClientSettings.model_validate(data)
    except ValidationError as e:
        raise FeatureFlagError(
            code=ErrorCodes.SETTINGS_ERROR,
            message=f"Settings validation failed: {e}",
            cause=e,
        ) from e
