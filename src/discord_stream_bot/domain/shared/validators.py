"""Shared validators for domain models and settings.

Discord snowflake IDs are 64-bit unsigned integers representing unique
identifiers for users, guilds, channels, messages, etc.
"""

from __future__ import annotations

from discord_stream_bot.domain.shared.messages import ErrorMessages


def validate_discord_snowflake(value: int) -> int:
    """Validate a Discord snowflake ID.

    Args:
        value: The snowflake ID to validate.

    Returns:
        The validated snowflake ID.

    Raises:
        ValueError: If the snowflake ID is invalid.
    """
    if value <= 0:
        raise ValueError(ErrorMessages.INVALID_SNOWFLAKE)
    if value >= 2**64:
        raise ValueError(ErrorMessages.SNOWFLAKE_TOO_LARGE)
    return value


def strip_or_empty(value: object) -> object:
    """Strip surrounding whitespace from strings, leaving other values untouched."""
    if isinstance(value, str):
        return value.strip()
    return value
