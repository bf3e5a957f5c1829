from __future__ import annotations

from .SessionManager import (
    Session,
    SessionStore,
    FileSessionStore,
    ArraySessionStore
)

__all__ = [
    'Session',
    'SessionStore',
    'FileSessionStore',
    'ArraySessionStore'
]
