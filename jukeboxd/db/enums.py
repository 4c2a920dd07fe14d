"""Enum definitions for application constants."""

from enum import Enum


class ActivityType(str, Enum):
    """Kinds of content actions recorded in the activity log."""
    RATING = "rating"
    REVIEW = "review"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid activity type."""
        return value in cls._value2member_map_
