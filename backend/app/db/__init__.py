"""Database utilities for ZenJournal."""

from .models import (
    NOTIFICATION_FIELDS,
    Base,
    JournalEntry,
    SettingEntry,
    User,
)

__all__ = [
    "Base",
    "JournalEntry",
    "NOTIFICATION_FIELDS",
    "SettingEntry",
    "User",
]
