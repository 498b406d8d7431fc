"""Bucketing tests."""

import pytest
from rolloutflag import bucket_index, create_hash


def test_create_hash_is_hmac_sha256_hex() -> None:
    digest = create_hash("123", "flag-a-id")
    assert digest == "0b8c516a8d54a25af73b2e07c7a4fc43c32e1fce861b435af81da398600c2926"


@pytest.mark.parametrize(
    ("identifier", "salt", "expected"),
    [
        ("123", "flag-a-id", 38),  # 0x26 = 38
        ("123", "flag-b-id", 14),  # 0xd6 = 214 -> "14"
        ("user-1", "salt", 1),  # 0xc9 = 201 -> "01"
        ("abc", "xyz", 45),  # 0x91 = 145 -> "45"
        ("123", "2f9c1d5e", 95),  # 0x5f = 95
    ],
)
def test_bucket_index_known_values(identifier: str, salt: str, expected: int) -> None:
    """Hex tail -> int -> last two decimal digits."""
    assert bucket_index(identifier, salt) == expected


def test_bucket_index_is_deterministic() -> None:
    first = bucket_index("some-user", "some-flag")
    for _ in range(10):
        assert bucket_index("some-user", "some-flag") == first


def test_bucket_index_in_range() -> None:
    for i in range(500):
        assert 0 <= bucket_index(f"user-{i}", "flag") <= 99


def test_bucket_index_depends_on_salt() -> None:
    assert bucket_index("123", "flag-a-id") != bucket_index("123", "flag-b-id")
