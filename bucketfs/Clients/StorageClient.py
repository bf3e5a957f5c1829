from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Union


class StorageException(Exception):
    """Base exception for storage client errors."""
    pass


class ProviderError(StorageException):
    """A request the provider rejected for any reason other than not-found."""

    def __init__(self, message: str, status_code: Optional[int] = None, code: Optional[str] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code

    def __repr__(self) -> str:
        return f"ProviderError(status_code={self.status_code!r}, code={self.code!r}, message={self.message!r})"


class MultipartUploadError(StorageException):
    """An upload (single or multipart) that did not complete."""
    pass


class DeleteMultipleObjectsError(StorageException):
    """A bulk delete in which some or all keys were not removed."""

    def __init__(self, message: str, failed_keys: Optional[List[str]] = None) -> None:
        super().__init__(message)
        self.failed_keys = failed_keys or []


@dataclass(frozen=True)
class NotFound:
    """Explicit not-found result for head and get requests."""

    key: str


@dataclass(frozen=True)
class HeadResult:
    key: str
    content_length: Optional[int] = None
    content_type: Optional[str] = None
    etag: Optional[str] = None
    last_modified: Optional[datetime] = None
    metadata: Optional[Dict[str, str]] = None
    storage_class: Optional[str] = None
    version_id: Optional[str] = None


@dataclass(frozen=True)
class GetResult(HeadResult):
    body: Optional[BinaryIO] = None


@dataclass(frozen=True)
class ListEntry:
    key: str
    size: Optional[int] = None
    last_modified: Optional[datetime] = None
    etag: Optional[str] = None
    storage_class: Optional[str] = None


@dataclass(frozen=True)
class CommonPrefix:
    prefix: str


@dataclass(frozen=True)
class UploadResult:
    key: str
    content_length: Optional[int] = None
    content_type: Optional[str] = None
    etag: Optional[str] = None
    version_id: Optional[str] = None
    metadata: Optional[Dict[str, str]] = None
    storage_class: Optional[str] = None


@dataclass(frozen=True)
class ListPage:
    contents: List[ListEntry] = field(default_factory=list)
    common_prefixes: List[CommonPrefix] = field(default_factory=list)


@dataclass(frozen=True)
class AclResult:
    """Grants as reported by the provider, e.g.
    ``{'Grantee': {'Type': 'Group', 'URI': ...}, 'Permission': 'READ'}``."""

    grants: List[Dict[str, Any]] = field(default_factory=list)


ProviderResult = Union[HeadResult, GetResult, ListEntry, CommonPrefix, UploadResult]


class StorageClient(ABC):
    """The slice of an S3-compatible API the filesystem adapter depends on.

    Not-found on head/get comes back as a ``NotFound`` value. Every other
    failed request raises ``ProviderError``.
    """

    @abstractmethod
    def head_object(self, bucket: str, key: str, options: Optional[Dict[str, Any]] = None) -> Union[HeadResult, NotFound]:
        """Fetch object metadata."""
        pass

    @abstractmethod
    def get_object(self, bucket: str, key: str, options: Optional[Dict[str, Any]] = None) -> Union[GetResult, NotFound]:
        """Fetch an object; the body is a readable binary stream."""
        pass

    @abstractmethod
    def upload(
        self,
        bucket: str,
        key: str,
        body: Union[bytes, BinaryIO],
        acl: str = 'private',
        options: Optional[Dict[str, Any]] = None
    ) -> UploadResult:
        """Upload an object. Raises MultipartUploadError when the upload fails."""
        pass

    @abstractmethod
    def delete_object(self, bucket: str, key: str) -> None:
        """Delete an object. Deleting a missing key is not an error."""
        pass

    @abstractmethod
    def delete_matching_objects(self, bucket: str, prefix: str) -> None:
        """Delete every key starting with prefix. Raises DeleteMultipleObjectsError."""
        pass

    @abstractmethod
    def copy_object(
        self,
        source_bucket: str,
        source_key: str,
        bucket: str,
        key: str,
        acl: str = 'private',
        options: Optional[Dict[str, Any]] = None
    ) -> None:
        """Server-side copy."""
        pass

    @abstractmethod
    def get_object_acl(self, bucket: str, key: str) -> AclResult:
        """Get the object's access control list."""
        pass

    @abstractmethod
    def put_object_acl(self, bucket: str, key: str, acl: str) -> None:
        """Apply a canned ACL to an object."""
        pass

    @abstractmethod
    def list_objects(
        self,
        bucket: str,
        prefix: str,
        delimiter: Optional[str] = None,
        max_keys: Optional[int] = None
    ) -> Iterator[ListPage]:
        """Iterate listing pages until the listing is exhausted or max_keys is reached."""
        pass

    @abstractmethod
    def does_object_exist(self, bucket: str, key: str, options: Optional[Dict[str, Any]] = None) -> bool:
        """Check whether an object exists at exactly this key."""
        pass
