"""Unit tests for auth/hashing.py -- bcrypt password hashing.

Covers:
- hash() / verify() round trip
- wrong secret and tampered hash both verify False without raising
- salts differ between two hashes of the same secret
- secrets past bcrypt's 72-byte input limit are compared in full
- needs_rehash() compares the embedded cost with the configured one
"""

import pytest

from auth.hashing import PasswordHasher


@pytest.fixture(scope="module")
def hasher():
    return PasswordHasher(rounds=4)


def test_round_trip(hasher):
    stored = hasher.hash("Tr0ub4dor&3!")
    assert stored.startswith("$2")
    assert "Tr0ub4dor&3!" not in stored
    assert hasher.verify("Tr0ub4dor&3!", stored)


def test_wrong_secret_is_false(hasher):
    stored = hasher.hash("Tr0ub4dor&3!")
    assert hasher.verify("Tr0ub4dor&3?", stored) is False


def test_tampered_hash_is_false(hasher):
    stored = hasher.hash("Tr0ub4dor&3!")
    swapped = "a" if stored[-10] != "a" else "b"
    assert hasher.verify("Tr0ub4dor&3!", stored[:-10] + swapped + stored[-9:]) is False


@pytest.mark.parametrize("bad_hash", ["", "not-a-hash", "$2b$04$short", "ééé"])
def test_malformed_hash_never_raises(hasher, bad_hash):
    assert hasher.verify("Tr0ub4dor&3!", bad_hash) is False


def test_non_string_input_is_false(hasher):
    stored = hasher.hash("Tr0ub4dor&3!")
    assert hasher.verify(None, stored) is False
    assert hasher.verify("Tr0ub4dor&3!", None) is False


def test_same_secret_gets_different_salts(hasher):
    assert hasher.hash("Tr0ub4dor&3!") != hasher.hash("Tr0ub4dor&3!")


def test_long_secret_is_accepted(hasher):
    secret = "Aa1!" * 40
    stored = hasher.hash(secret)
    assert hasher.verify(secret, stored)


def test_long_secrets_sharing_a_prefix_differ(hasher):
    prefix = "Aa1!" * 18  # 72 bytes, all bcrypt would otherwise read
    stored = hasher.hash(prefix + "RealTail1!")
    assert hasher.verify(prefix + "RealTail1!", stored)
    assert hasher.verify(prefix + "WrongTail2?", stored) is False
    assert hasher.verify(prefix, stored) is False


def test_needs_rehash(hasher):
    stored = hasher.hash("Tr0ub4dor&3!")
    assert hasher.needs_rehash(stored) is False
    assert PasswordHasher(rounds=5).needs_rehash(stored) is True
    assert hasher.needs_rehash("garbage") is True


@pytest.mark.parametrize("rounds", [3, 32])
def test_rejects_out_of_range_rounds(rounds):
    with pytest.raises(ValueError):
        PasswordHasher(rounds=rounds)
