"""rolloutflag data models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

AttributeValue = str | list[str]


class UserIdType(StrEnum):
    """Which identifier was hashed for a result."""

    APP_USER_ID = "appUserId"
    FF_USER_ID = "ffUserId"


class EvaluationReason(StrEnum):
    """Why a result came out the way it did."""

    TARGET_MATCH = "TARGET_MATCH"
    DEFAULT_TARGETING = "DEFAULT_TARGETING"
    ERROR = "ERROR"


class _WireModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class TargetCriterion(_WireModel):
    """A single context-attribute match rule."""

    target_field_name: str = Field(alias="targetFieldName")
    target_field_values: list[str] = Field(default_factory=list, alias="targetFieldValues")


class TargetingConfig(_WireModel):
    """A targeting candidate: rollout percentage scoped by criteria."""

    target_priority: int = Field(default=1, alias="targetPriority")
    rollout_value: str = Field(default="0", alias="rolloutValue")
    stickiness_property: str | None = Field(default=None, alias="stickinessProperty")
    target_criteria: list[TargetCriterion] | None = Field(default=None, alias="targetCriteria")

    @field_validator("rollout_value", mode="before")
    @classmethod
    def _check_rollout_value(cls, value: Any) -> str:
        if value is None:
            return "0"
        text = str(value)
        try:
            percent = int(text)
        except ValueError:
            raise ValueError(f"rolloutValue must be an integer string: {text!r}") from None
        if not 0 <= percent <= 100:
            raise ValueError(f"rolloutValue out of range 0-100: {percent}")
        return text

    @property
    def rollout_percent(self) -> int:
        return int(self.rollout_value)


DEFAULT_TARGETING = TargetingConfig(rollout_value="0", target_priority=1)


class Flag(_WireModel):
    """A single feature flag definition."""

    flag_name: str = Field(alias="flagName")
    flag_id: str = Field(alias="flagId")
    flag_type: str = Field(default="", alias="flagType")
    targeting: list[TargetingConfig] = Field(default_factory=list)


class FlagConfig(_WireModel):
    """The full flag definition set."""

    version: str | None = Field(default=None, alias="featureFlagLibraryVersion")
    flags: list[Flag] = Field(default_factory=list)

    def get_flag(self, flag_name: str) -> Flag | None:
        for flag in self.flags:
            if flag.flag_name == flag_name:
                return flag
        return None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


_CONTEXT_KEYS = {
    "userId": "user_id",
    "configUrl": "config_url",
    "configRefreshInterval": "config_refresh_interval",
    "storageType": "storage_type",
}


@dataclass
class FlagContext:
    """Evaluation context supplied by the caller."""

    user_id: str | None = None
    config_url: str | None = None
    config_refresh_interval: int | None = None
    storage_type: str | None = None
    attributes: dict[str, AttributeValue] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FlagContext:
        """Build a context from its camelCase wire form.

        Known keys map to fields; everything else becomes a targeting attribute.
        """
        known: dict[str, Any] = {}
        attributes: dict[str, AttributeValue] = {}
        for key, value in data.items():
            if key in _CONTEXT_KEYS:
                known[_CONTEXT_KEYS[key]] = value
            elif isinstance(value, (list, tuple)):
                attributes[key] = [str(v) for v in value]
            elif value is not None:
                attributes[key] = str(value)
        return cls(**known, attributes=attributes)

    def get_attribute(self, name: str) -> AttributeValue | None:
        return self.attributes.get(name)


@dataclass
class EvaluationResult:
    """Outcome of evaluating one flag."""

    feature_name: str
    enabled: bool
    user_id: str | None = None
    user_id_type: UserIdType = UserIdType.APP_USER_ID
    reason: EvaluationReason = EvaluationReason.DEFAULT_TARGETING
    error_code: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "featureName": self.feature_name,
            "enabled": self.enabled,
            "userId": self.user_id,
            "userIdType": str(self.user_id_type),
        }
