"""
Master password strength rules.
"""

import re
from typing import Tuple

from . import config

MIN_PASSWORD_LENGTH = config.PASSWORD_MIN_LENGTH

_DIGIT = re.compile(r'[0-9]')
_UPPER = re.compile(r'[A-Z]')
_LOWER = re.compile(r'[a-z]')
_SYMBOL = re.compile(r'[^0-9A-Za-z]')

POLICY_DESCRIPTION = (
    f"It MUST be at least {MIN_PASSWORD_LENGTH} chars long and have upper and lower case "
    "letters, numbers and special chars."
)


def check_strength(password: str) -> Tuple[bool, str]:
    """
    Check if password meets minimum requirements.

    Returns:
        Tuple of (is_strong, message)
    """
    if len(password) < MIN_PASSWORD_LENGTH:
        return False, f"Password must be at least {MIN_PASSWORD_LENGTH} characters long"
    if not _UPPER.search(password):
        return False, "Password must contain uppercase letters"
    if not _LOWER.search(password):
        return False, "Password must contain lowercase letters"
    if not _DIGIT.search(password):
        return False, "Password must contain digits"
    if not _SYMBOL.search(password):
        return False, "Password must contain special characters"
    return True, "Password is strong"


def is_strong(password: str) -> bool:
    return check_strength(password)[0]
