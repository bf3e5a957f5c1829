from __future__ import annotations

import pytest

from bucketfs.Clients.ArrayStorageClient import ArrayStorageClient
from bucketfs.Session.SessionManager import ArraySessionStore, Session
from bucketfs.Storage.AwsS3Adapter import AwsS3Adapter


@pytest.fixture
def storage_client() -> ArrayStorageClient:
    """In-memory provider."""
    return ArrayStorageClient()


@pytest.fixture
def session() -> Session:
    """Session backed by an array store."""
    return Session(ArraySessionStore())


@pytest.fixture
def adapter(storage_client: ArrayStorageClient, session: Session) -> AwsS3Adapter:
    """Adapter over the in-memory provider without a prefix."""
    return AwsS3Adapter(storage_client, 'bucket', session=session)
