from __future__ import annotations

import json
import secrets
import time
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from bucketfs.Utils.Logger import get_logger

logger = get_logger(__name__)


class SessionStore(ABC):
    """Abstract session store."""

    @abstractmethod
    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        """Get session data, or None if the session is missing or expired."""
        pass

    @abstractmethod
    def put(self, session_id: str, data: Dict[str, Any], lifetime: int) -> None:
        """Store session data for ``lifetime`` seconds."""
        pass

    @abstractmethod
    def forget(self, session_id: str) -> None:
        """Delete session."""
        pass


def _envelope(data: Dict[str, Any], lifetime: int) -> Dict[str, Any]:
    now = time.time()
    return {'data': data, 'expires_at': now + lifetime, 'created_at': now}


class FileSessionStore(SessionStore):
    """File-based session store, one JSON document per session."""

    def __init__(self, path: str = 'storage/framework/sessions') -> None:
        self.path = Path(path)
        self.path.mkdir(parents=True, exist_ok=True)

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        file_path = self.path / session_id

        if not file_path.exists():
            return None

        try:
            with open(file_path, 'r') as f:
                envelope = json.load(f)
        except (json.JSONDecodeError, IOError) as e:
            logger.warning("Unreadable session file", {'session': session_id, 'error': str(e)})
            return None

        if envelope.get('expires_at', 0) < time.time():
            self.forget(session_id)
            return None

        return envelope.get('data', {})  # type: ignore[no-any-return]

    def put(self, session_id: str, data: Dict[str, Any], lifetime: int) -> None:
        with open(self.path / session_id, 'w') as f:
            json.dump(_envelope(data, lifetime), f)

    def forget(self, session_id: str) -> None:
        (self.path / session_id).unlink(missing_ok=True)


class ArraySessionStore(SessionStore):
    """In-memory session store (for testing and single-process use)."""

    def __init__(self) -> None:
        self._sessions: Dict[str, Dict[str, Any]] = {}

    def get(self, session_id: str) -> Optional[Dict[str, Any]]:
        envelope = self._sessions.get(session_id)
        if envelope is None:
            return None

        if envelope['expires_at'] < time.time():
            del self._sessions[session_id]
            return None

        return envelope['data']  # type: ignore[no-any-return]

    def put(self, session_id: str, data: Dict[str, Any], lifetime: int) -> None:
        self._sessions[session_id] = _envelope(data, lifetime)

    def forget(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)


class Session:
    """Key/value bag bound to a store, shared by the adapters of one request.

    Data is loaded lazily on first access and written back on ``save()``;
    the owner of the session decides when a request ends.
    """

    def __init__(self, store: SessionStore, session_id: Optional[str] = None, lifetime: int = 7200) -> None:
        self.store = store
        self.session_id = session_id or self._generate_session_id()
        self.lifetime = lifetime
        self._data: Dict[str, Any] = {}
        self._started = False

    def _generate_session_id(self) -> str:
        return secrets.token_urlsafe(40)

    def start(self) -> None:
        """Load the stored data once."""
        if self._started:
            return

        self._data = self.store.get(self.session_id) or {}
        self._started = True

    def save(self) -> None:
        """Write the data back to the store."""
        if not self._started:
            return

        self.store.put(self.session_id, self._data, self.lifetime)

    def get(self, key: str, default: Any = None) -> Any:
        self.start()
        return self._data.get(key, default)

    def put(self, key: str, value: Any) -> None:
        self.start()
        self._data[key] = value

    def forget(self, keys: Union[str, List[str]]) -> None:
        """Remove one or more keys."""
        self.start()

        if isinstance(keys, str):
            keys = [keys]

        for key in keys:
            self._data.pop(key, None)

    def get_id(self) -> str:
        return self.session_id
