from __future__ import annotations

from typing import Any, Dict, Optional

from bucketfs.Session.SessionManager import Session

Metadata = Dict[str, Any]

SESSION_KEY = 'bucketfs.stat_cache'


class StatCache:
    """Last known metadata per logical path.

    Two levels: a dict owned by one adapter, and an optional session that
    keeps a copy per listed directory so later adapters in the same session
    can answer stat calls without a request. Session entries live under a
    key derived from ``scope``, so only caches with the same scope (the
    adapter passes its bucket and path prefix) see each other's records.
    Entries are only ever added or replaced; writes and deletes do not
    evict them.
    """

    def __init__(self, session: Optional[Session] = None, scope: str = '') -> None:
        self.session = session
        self.scope = scope
        self._stats: Dict[str, Metadata] = {}

    @property
    def session_key(self) -> str:
        if not self.scope:
            return SESSION_KEY
        return f'{SESSION_KEY}.{self.scope}'

    def get(self, path: str) -> Optional[Metadata]:
        """Look a path up in the instance cache, then in every session directory."""
        if path in self._stats:
            return self._stats[path]

        for stats in self._session_stats().values():
            if path in stats:
                return stats[path]  # type: ignore[no-any-return]

        return None

    def put(self, path: str, metadata: Metadata) -> None:
        """Remember metadata for a path on this instance."""
        self._stats[path] = metadata

    def remember_directory(self, directory: str) -> None:
        """Copy the instance cache into the session under ``directory``."""
        if self.session is None:
            return

        stats = self._session_stats()
        stats[directory] = dict(self._stats)
        self.session.put(self.session_key, stats)

    def has(self, path: str) -> bool:
        return self.get(path) is not None

    def flush(self) -> None:
        """Forget everything cached on this instance and in this scope of the session."""
        self._stats.clear()
        if self.session is not None:
            self.session.forget(self.session_key)

    def all(self) -> Dict[str, Metadata]:
        return dict(self._stats)

    def _session_stats(self) -> Dict[str, Dict[str, Metadata]]:
        if self.session is None:
            return {}
        return dict(self.session.get(self.session_key) or {})
