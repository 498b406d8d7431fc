"""User identity resolution."""

from __future__ import annotations

import asyncio
import uuid

from .models import FlagContext
from .storage import APP_USER_ID, FEATURE_FLAG_USER_ID, FlagStorage


def create_user_id() -> str:
    return str(uuid.uuid4())


class IdentityResolver:
    """Resolves the app user id and the anonymous feature-flag user id.

    The app user id is never generated: it comes from the context, or from
    storage when the context has none. The anonymous id is generated once and
    persisted. Creation is serialised so concurrent evaluations agree on one id.
    """

    def __init__(self, storage: FlagStorage) -> None:
        self._storage = storage
        self._ff_user_id: str | None = None
        self._lock = asyncio.Lock()

    @property
    def ff_user_id(self) -> str | None:
        return self._ff_user_id

    async def resolve_app_user_id(self, context: FlagContext) -> str | None:
        """Persist the context user id, or backfill it from storage."""
        if context.user_id:
            await self._storage.set(APP_USER_ID, context.user_id)
        else:
            stored = await self._storage.get(APP_USER_ID)
            if stored:
                context.user_id = stored
        return context.user_id

    async def get_or_create_ff_user_id(self) -> str:
        if self._ff_user_id:
            return self._ff_user_id
        async with self._lock:
            if self._ff_user_id:
                return self._ff_user_id
            stored = await self._storage.get(FEATURE_FLAG_USER_ID)
            if not stored:
                stored = create_user_id()
                await self._storage.set(FEATURE_FLAG_USER_ID, stored)
            self._ff_user_id = stored
            return stored
