"""Session identity, records and their persistent store."""

from .keys import IdentityContext, derive_session_key
from .lock import StoreLock
from .models import SessionRecord, SessionState
from .store import SessionStore, open_store, reset_database

__all__ = [
    "IdentityContext",
    "derive_session_key",
    "StoreLock",
    "SessionRecord",
    "SessionState",
    "SessionStore",
    "open_store",
    "reset_database",
]
