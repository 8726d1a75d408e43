"""
Tests for random password generation.
"""
import string

import pytest

from passvault import config
from passvault.generator import SYMBOLS, character_classes, generate_password


def test_default_length_and_classes():
    password = generate_password()
    assert len(password) == config.PASSWORD_GENERATOR_DEFAULT_LENGTH
    for pool in (string.ascii_lowercase, string.ascii_uppercase, string.digits, SYMBOLS):
        assert any(c in pool for c in password)


def test_without_symbols():
    password = generate_password(40, include_symbols=False)
    assert password.isalnum()


def test_excluded_characters_never_appear():
    exclude = config.PASSWORD_GENERATOR_AMBIGUOUS_CHARS + "xyz"
    for _ in range(20):
        assert not set(generate_password(64, exclude=exclude)) & set(exclude)


def test_passwords_differ():
    assert len({generate_password() for _ in range(20)}) == 20


def test_strict_mode_needs_room_for_each_class():
    with pytest.raises(ValueError):
        generate_password(3)
    assert len(generate_password(3, strict=False)) == 3


def test_emptied_pool_is_dropped():
    pools = character_classes(include_symbols=False, exclude=string.digits)
    assert pools == [string.ascii_lowercase, string.ascii_uppercase]
    assert not set(generate_password(2, include_symbols=False, exclude=string.digits)) & set(string.digits)


@pytest.mark.parametrize("kwargs", [
    {"size": 0},
    {"size": 10, "include_symbols": False,
     "exclude": string.ascii_letters + string.digits},
])
def test_invalid_requests(kwargs):
    with pytest.raises(ValueError):
        generate_password(**kwargs)
