"""Deterministic user bucketing."""

from __future__ import annotations

import hashlib
import hmac


def create_hash(identifier: str, salt: str) -> str:
    """Return the HMAC-SHA256 hex digest of identifier keyed by salt."""
    return hmac.new(salt.encode("utf-8"), identifier.encode("utf-8"), hashlib.sha256).hexdigest()


def bucket_index(identifier: str, salt: str) -> int:
    """Map identifier + salt to a bucket in [0, 99].

    The last two hex digits are read as an integer and the last two characters
    of its decimal form become the bucket. Existing users are bucketed with this
    exact derivation, so it must not change.
    """
    segment = int(create_hash(identifier, salt)[-2:], 16)
    return int(str(segment)[-2:])
