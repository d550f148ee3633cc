"""
Reusable validation functions for configuration values.

- Email addresses
- Secret masking utilities
"""

import re


def validate_email(email: str) -> tuple[bool, str | None]:
    """Validate an email address.

    Returns:
        Tuple of (is_valid, error_message). error_message is None if valid.
    """
    if not email:
        return False, "Email is empty"

    # Basic email regex - not exhaustive but catches common issues
    pattern = r"^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$"
    if not re.match(pattern, email):
        return False, "Invalid email format"

    return True, None


def mask_secret(value: str | None, *, visible_chars: int = 4) -> str:
    """Mask a secret value for safe display.

    Shows the first few characters followed by asterisks.

    Args:
        value: The secret value to mask (can be None)
        visible_chars: Number of characters to show at the start (default: 4)

    Returns:
        Masked string like "xoxb****" or "[EMPTY]" if value is empty/None
    """
    if value is None or not value:
        return "[EMPTY]"

    if len(value) <= visible_chars:
        return "*" * len(value)

    return value[:visible_chars] + "*" * (len(value) - visible_chars)
