"""
Tests for master password strength rules.
"""
import pytest

from passvault import policy


@pytest.mark.parametrize("password", [
    "Str0ng!Pass123",
    "N3w&Better!Pass",
    "Aa1 aaaaaaaaa",
    "Ünïcode-Passw0rd",
])
def test_strong_passwords(password):
    assert policy.check_strength(password) == (True, "Password is strong")
    assert policy.is_strong(password)


@pytest.mark.parametrize("password,reason", [
    ("Sh0rt!Pass1", "at least 12 characters"),
    ("n0upper!case!", "uppercase"),
    ("N0LOWER!CASE!", "lowercase"),
    ("NoDigits!Here!", "digits"),
    ("NoSymbols1Here", "special characters"),
    ("", "at least 12 characters"),
])
def test_weak_passwords(password, reason):
    ok, message = policy.check_strength(password)
    assert not ok
    assert reason in message
    assert not policy.is_strong(password)


def test_description_names_minimum_length():
    assert str(policy.MIN_PASSWORD_LENGTH) in policy.POLICY_DESCRIPTION
