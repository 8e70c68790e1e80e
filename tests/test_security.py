"""Tests for PIN / passphrase hashing."""

import pytest

from domains.notebook_hub.core.security import SecretHasher


@pytest.fixture
def hasher():
    return SecretHasher(iterations=1_000)


def test_hash_verifies(hasher):
    hashed = hasher.hash("1234")
    assert hashed.startswith("pbkdf2_sha256$1000$")
    assert hasher.verify("1234", hashed)
    assert not hasher.verify("4321", hashed)


def test_hash_is_salted(hasher):
    assert hasher.hash("1234") != hasher.hash("1234")


def test_verify_uses_stored_iterations(hasher):
    hashed = SecretHasher(iterations=2_000).hash("secret")
    assert hasher.verify("secret", hashed)


@pytest.mark.parametrize("value", ["", "1234", "pbkdf2_sha256$x$y$z", "md5$1$aa$bb", "pbkdf2_sha256$0$aa$bb"])
def test_malformed_hash_never_verifies(hasher, value):
    assert not hasher.verify("1234", value)


def test_is_hashed(hasher):
    assert SecretHasher.is_hashed(hasher.hash("1234"))
    assert not SecretHasher.is_hashed("1234")
    assert not SecretHasher.is_hashed(None)


def test_iterations_must_be_positive():
    with pytest.raises(ValueError):
        SecretHasher(iterations=0)
