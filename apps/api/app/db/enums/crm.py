"""CRM enums."""

from enum import Enum


class ActivityType(str, Enum):
    """Kinds of interaction logged against a contact."""

    CALL = "call"
    EMAIL = "email"
    MEETING = "meeting"
    NOTE = "note"
    TASK = "task"
