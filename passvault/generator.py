"""
Random password generation for new credentials.

Uses the ``secrets`` module so generated values are suitable as secrets.
"""

import secrets
import string
from typing import List

from . import config

SYMBOLS = string.punctuation

_random = secrets.SystemRandom()


def character_classes(include_symbols: bool = True, exclude: str = "") -> List[str]:
    """Character pools used for generation, minus excluded characters.

    Pools left empty by the exclusions are dropped.
    """
    pools = [string.ascii_lowercase, string.ascii_uppercase, string.digits]
    if include_symbols:
        pools.append(SYMBOLS)
    excluded = set(exclude)
    filtered = [''.join(c for c in pool if c not in excluded) for pool in pools]
    return [pool for pool in filtered if pool]


def generate_password(size: int = config.PASSWORD_GENERATOR_DEFAULT_LENGTH,
                      include_symbols: bool = True,
                      exclude: str = "",
                      strict: bool = True) -> str:
    """
    Generate a random password.

    Args:
        size: Length of the password
        include_symbols: Whether punctuation is part of the alphabet
        exclude: Characters that must never appear
        strict: Guarantee at least one character from every included class

    Raises:
        ValueError: If size is not positive, every character is excluded, or
                    strict mode cannot fit one character of each class.
    """
    if size < 1:
        raise ValueError("Password size must be a positive number")

    pools = character_classes(include_symbols, exclude)
    if not pools:
        raise ValueError("No characters left to generate a password from")

    alphabet = ''.join(pools)
    if not strict:
        return ''.join(secrets.choice(alphabet) for _ in range(size))

    if size < len(pools):
        raise ValueError(
            f"Password size must be at least {len(pools)} to include every character class"
        )
    chars = [secrets.choice(pool) for pool in pools]
    chars.extend(secrets.choice(alphabet) for _ in range(size - len(pools)))
    _random.shuffle(chars)
    return ''.join(chars)
