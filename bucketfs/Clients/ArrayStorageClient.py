from __future__ import annotations

import hashlib
import io
from collections import Counter
from datetime import datetime, timezone
from typing import Any, BinaryIO, Dict, Iterator, List, Optional, Union

from .StorageClient import (
    AclResult,
    CommonPrefix,
    GetResult,
    HeadResult,
    ListEntry,
    ListPage,
    MultipartUploadError,
    NotFound,
    ProviderError,
    StorageClient,
    StorageException,
    UploadResult,
)

ALL_USERS_URI = 'http://acs.amazonaws.com/groups/global/AllUsers'

OWNER_GRANT: Dict[str, Any] = {
    'Grantee': {'Type': 'CanonicalUser', 'ID': 'owner'},
    'Permission': 'FULL_CONTROL',
}


class ArrayStorageClient(StorageClient):
    """In-memory StorageClient.

    Keeps every bucket in a dict, counts calls per method and can be told to
    fail a method with a given exception, which makes it the fake provider
    for tests and a usable backend for local development.
    """

    def __init__(self, page_size: int = 1000) -> None:
        self.page_size = page_size
        self.buckets: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self.calls: Counter = Counter()
        self._failures: Dict[str, StorageException] = {}

    def fail(self, method: str, exception: StorageException) -> None:
        """Make every following call to ``method`` raise ``exception``."""
        self._failures[method] = exception

    def recover(self, method: Optional[str] = None) -> None:
        """Stop failing ``method``, or every method when none is given."""
        if method is None:
            self._failures.clear()
        else:
            self._failures.pop(method, None)

    def _record(self, method: str) -> None:
        self.calls[method] += 1
        if method in self._failures:
            raise self._failures[method]

    def _objects(self, bucket: str) -> Dict[str, Dict[str, Any]]:
        return self.buckets.setdefault(bucket, {})

    def keys(self, bucket: str) -> List[str]:
        """All keys in a bucket, sorted."""
        return sorted(self._objects(bucket))

    def _grants_for(self, acl: str) -> List[Dict[str, Any]]:
        grants = [dict(OWNER_GRANT)]
        if acl in ('public-read', 'public-read-write'):
            grants.append({'Grantee': {'Type': 'Group', 'URI': ALL_USERS_URI}, 'Permission': 'READ'})
        return grants

    def head_object(self, bucket: str, key: str, options: Optional[Dict[str, Any]] = None) -> Union[HeadResult, NotFound]:
        self._record('head_object')
        obj = self._objects(bucket).get(key)
        if obj is None:
            return NotFound(key)

        return HeadResult(key=key, **self._head_fields(obj))

    def get_object(self, bucket: str, key: str, options: Optional[Dict[str, Any]] = None) -> Union[GetResult, NotFound]:
        self._record('get_object')
        obj = self._objects(bucket).get(key)
        if obj is None:
            return NotFound(key)

        return GetResult(key=key, body=io.BytesIO(obj['body']), **self._head_fields(obj))

    def _head_fields(self, obj: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'content_length': len(obj['body']),
            'content_type': obj['content_type'],
            'etag': obj['etag'],
            'last_modified': obj['last_modified'],
            'metadata': dict(obj['metadata']),
            'storage_class': obj['storage_class'],
        }

    def upload(
        self,
        bucket: str,
        key: str,
        body: Union[bytes, BinaryIO],
        acl: str = 'private',
        options: Optional[Dict[str, Any]] = None
    ) -> UploadResult:
        self._record('upload')
        options = options or {}

        data = body if isinstance(body, (bytes, bytearray)) else body.read()
        if isinstance(data, str):
            data = data.encode('utf-8')

        if 'ContentLength' in options and options['ContentLength'] != len(data):
            raise MultipartUploadError(
                f"Declared length {options['ContentLength']} does not match {len(data)} byte body"
            )

        etag = '"%s"' % hashlib.md5(bytes(data)).hexdigest()
        self._objects(bucket)[key] = {
            'body': bytes(data),
            'content_type': options.get('ContentType', 'binary/octet-stream'),
            'etag': etag,
            'last_modified': datetime.now(timezone.utc),
            'metadata': dict(options.get('Metadata') or {}),
            'storage_class': options.get('StorageClass', 'STANDARD'),
            'grants': self._grants_for(acl),
            'options': dict(options),
        }

        return UploadResult(
            key=key,
            content_length=len(data),
            content_type=options.get('ContentType'),
            etag=etag,
            metadata=options.get('Metadata'),
            storage_class=options.get('StorageClass'),
        )

    def delete_object(self, bucket: str, key: str) -> None:
        self._record('delete_object')
        self._objects(bucket).pop(key, None)

    def delete_matching_objects(self, bucket: str, prefix: str) -> None:
        self._record('delete_matching_objects')
        objects = self._objects(bucket)
        for key in [key for key in objects if key.startswith(prefix)]:
            del objects[key]

    def copy_object(
        self,
        source_bucket: str,
        source_key: str,
        bucket: str,
        key: str,
        acl: str = 'private',
        options: Optional[Dict[str, Any]] = None
    ) -> None:
        self._record('copy_object')
        source = self._objects(source_bucket).get(source_key)
        if source is None:
            raise ProviderError(f"Not Found: {source_key}", status_code=404, code='404')

        copied = dict(source)
        copied['grants'] = self._grants_for(acl)
        copied['last_modified'] = datetime.now(timezone.utc)
        self._objects(bucket)[key] = copied

    def get_object_acl(self, bucket: str, key: str) -> AclResult:
        self._record('get_object_acl')
        obj = self._objects(bucket).get(key)
        if obj is None:
            raise ProviderError(f"The specified key does not exist: {key}", status_code=404, code='NoSuchKey')

        return AclResult(grants=[dict(grant) for grant in obj['grants']])

    def put_object_acl(self, bucket: str, key: str, acl: str) -> None:
        self._record('put_object_acl')
        obj = self._objects(bucket).get(key)
        if obj is None:
            raise ProviderError(f"The specified key does not exist: {key}", status_code=404, code='NoSuchKey')

        obj['grants'] = self._grants_for(acl)

    def list_objects(
        self,
        bucket: str,
        prefix: str,
        delimiter: Optional[str] = None,
        max_keys: Optional[int] = None
    ) -> Iterator[ListPage]:
        self._record('list_objects')

        items: List[Union[ListEntry, CommonPrefix]] = []
        seen_prefixes = set()
        for key in self.keys(bucket):
            if not key.startswith(prefix):
                continue

            rest = key[len(prefix):]
            if delimiter and delimiter in rest:
                common = prefix + rest.split(delimiter, 1)[0] + delimiter
                if common not in seen_prefixes:
                    seen_prefixes.add(common)
                    items.append(CommonPrefix(prefix=common))
                continue

            obj = self._objects(bucket)[key]
            items.append(ListEntry(
                key=key,
                size=len(obj['body']),
                last_modified=obj['last_modified'],
                etag=obj['etag'],
                storage_class=obj['storage_class'],
            ))

        if max_keys:
            items = items[:max_keys]

        for start in range(0, len(items), self.page_size):
            chunk = items[start:start + self.page_size]
            yield ListPage(
                contents=[item for item in chunk if isinstance(item, ListEntry)],
                common_prefixes=[item for item in chunk if isinstance(item, CommonPrefix)],
            )

    def does_object_exist(self, bucket: str, key: str, options: Optional[Dict[str, Any]] = None) -> bool:
        self._record('does_object_exist')
        return key in self._objects(bucket)
