"""Shared fixtures for rolloutflag tests."""

from __future__ import annotations

import asyncio
from typing import Any

import pytest
from rolloutflag import ConfigFetcher, ConfigLoadError, ErrorCodes, FetchResponse, FlagConfig

CONFIG_URL = "https://flags.example.com/config.json"

CONFIG_DATA: dict[str, Any] = {
    "featureFlagLibraryVersion": "1.0.0",
    "flags": [
        {
            "flagName": "feature-A",
            "flagId": "flag-a-id",
            "flagType": "boolean",
            "targeting": [
                {
                    "targetPriority": 1,
                    "rolloutValue": "100",
                    "targetCriteria": [
                        {"targetFieldName": "Platform", "targetFieldValues": ["iOS", "Android"]}
                    ],
                }
            ],
        },
        {
            "flagName": "feature-B",
            "flagId": "flag-b-id",
            "flagType": "boolean",
            "targeting": [
                {
                    "targetPriority": 1,
                    "rolloutValue": "10",
                    "targetCriteria": [
                        {"targetFieldName": "Platform", "targetFieldValues": ["iOS"]}
                    ],
                },
                {
                    "targetPriority": 2,
                    "rolloutValue": "100",
                    "stickinessProperty": "ffUserId",
                    "targetCriteria": [
                        {"targetFieldName": "Brand", "targetFieldValues": ["BrandB"]}
                    ],
                },
            ],
        },
    ],
}


class FakeClock:
    """Millisecond clock moved by hand."""

    def __init__(self, now: float = 1_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, ms: float) -> None:
        self.now += ms


class StubFetcher(ConfigFetcher):
    """Returns canned responses and records every request."""

    def __init__(
        self,
        data: dict[str, Any] | None = None,
        etag: str | None = None,
        error: Exception | None = None,
    ) -> None:
        self.data = data
        self.etag = etag
        self.error = error
        self.requests: list[tuple[str, dict[str, str]]] = []

    async def fetch(self, url: str, headers: dict[str, str]) -> FetchResponse:
        self.requests.append((url, dict(headers)))
        await asyncio.sleep(0)
        if self.error is not None:
            raise self.error
        headers_out = {"etag": self.etag} if self.etag else {}
        config = FlagConfig.model_validate(self.data) if self.data is not None else None
        return FetchResponse(data=config, headers=headers_out)


def failing_fetcher() -> StubFetcher:
    return StubFetcher(
        error=ConfigLoadError(code=ErrorCodes.FETCH_FAILED, message="Failed to retrieve config file.")
    )


@pytest.fixture
def config_data() -> dict[str, Any]:
    return CONFIG_DATA


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
