"""Test sessions and session stores."""

from __future__ import annotations

from pathlib import Path

import pytest

from bucketfs.Session.SessionManager import (
    ArraySessionStore,
    FileSessionStore,
    Session,
)


class TestSession:
    """Test the session object over an array store."""

    @pytest.fixture
    def store(self) -> ArraySessionStore:
        return ArraySessionStore()

    def test_put_get_forget(self, store: ArraySessionStore) -> None:
        session = Session(store)
        session.put('a', 1)
        session.put('b', 2)
        session.put('c', 3)

        assert session.get('a') == 1
        assert session.get('missing', 'fallback') == 'fallback'

        session.forget('a')
        session.forget(['b', 'c'])

        assert session.get('a') is None
        assert session.get('b') is None
        assert session.get('c') is None

    def test_save_persists_to_store(self, store: ArraySessionStore) -> None:
        """Data is written to the store on save and read back by id."""
        session = Session(store)
        session.put('stats', {'notes': {}})
        session.save()

        assert Session(store, session.get_id()).get('stats') == {'notes': {}}

    def test_unsaved_data_stays_local(self, store: ArraySessionStore) -> None:
        session = Session(store)
        session.put('a', 1)

        assert store.get(session.get_id()) is None

    def test_expired_session_is_dropped(self, store: ArraySessionStore) -> None:
        """Expired sessions are not returned by the store."""
        session = Session(store, lifetime=-1)
        session.put('a', 1)
        session.save()

        assert store.get(session.get_id()) is None


class TestFileSessionStore:
    """Test the file-backed store."""

    def test_round_trip(self, tmp_path: Path) -> None:
        store = FileSessionStore(str(tmp_path))
        store.put('abc', {'stats': {'': {'a.txt': {'path': 'a.txt', 'size': 1}}}}, 60)

        assert store.get('abc') == {'stats': {'': {'a.txt': {'path': 'a.txt', 'size': 1}}}}

    def test_unreadable_file_is_ignored(self, tmp_path: Path) -> None:
        """A corrupt session file reads as no session."""
        (tmp_path / 'broken').write_text('{not json')

        assert FileSessionStore(str(tmp_path)).get('broken') is None

    def test_expired_file_is_removed(self, tmp_path: Path) -> None:
        """Reading an expired session deletes its file."""
        store = FileSessionStore(str(tmp_path))
        store.put('old', {}, -1)
        store.put('new', {}, 60)

        assert store.get('old') is None
        assert sorted(p.name for p in tmp_path.iterdir()) == ['new']

    def test_forget(self, tmp_path: Path) -> None:
        store = FileSessionStore(str(tmp_path))
        store.put('abc', {'a': 1}, 60)

        store.forget('abc')
        store.forget('abc')

        assert store.get('abc') is None
