"""Database package."""

from .db import get_session, init_db, configure_engine
from .models import SessionRecord, Task, UserSettings, UserProgress, DEFAULT_USER_ID
from .service import PersistenceService

__all__ = [
    "get_session",
    "init_db",
    "configure_engine",
    "SessionRecord",
    "Task",
    "UserSettings",
    "UserProgress",
    "DEFAULT_USER_ID",
    "PersistenceService",
]
