"""
utils/validation_utils.py

Purpose: Input validation

- Username format rule
- Field merge rule for profile updates
"""

import re
from typing import Any, Optional


# Starts with a letter, then 4-15 letters, digits or underscores (5-16 total)
USERNAME_PATTERN = re.compile(r"[a-zA-Z][a-zA-Z0-9_]{4,15}")


def validate_username(username: Optional[Any]) -> bool:
    """
    Validates a username.
    
    Args:
        username: Candidate username, possibly missing
    
    Returns:
        True if valid, False otherwise
    """
    if not isinstance(username, str):
        return False
    
    return USERNAME_PATTERN.fullmatch(username) is not None


def merge_field(new_value: Any, current_value: Any) -> Any:
    """
    Picks the value to store for a profile field.
    
    Falsy new values (None, empty string) keep the current value.
    """
    return new_value or current_value
