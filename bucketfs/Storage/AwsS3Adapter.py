from __future__ import annotations

import io
from typing import Any, BinaryIO, Dict, List, Optional, Union

from bucketfs.Clients.StorageClient import (
    DeleteMultipleObjectsError,
    ListPage,
    MultipartUploadError,
    NotFound,
    ProviderError,
    ProviderResult,
    StorageClient,
)
from bucketfs.Session.SessionManager import Session
from bucketfs.Support.Config import Config
from bucketfs.Utils.Logger import get_logger

from .AbstractAdapter import (
    VISIBILITY_PRIVATE,
    VISIBILITY_PUBLIC,
    AbstractAdapter,
    CanOverwriteFiles,
    Metadata,
)
from .MimeTypes import guess_mime_type
from .ResponseNormalizer import emulate_directories, is_only_dir, normalize_response
from .StatCache import StatCache


class AwsS3Adapter(AbstractAdapter, CanOverwriteFiles):
    """Filesystem adapter for S3-compatible object stores.

    Directories do not exist on the provider: a directory is either a
    zero-length ``name/`` marker object or just a shared key prefix, and is
    detected and listed through prefix queries.

    Metadata seen by ``list_contents`` and ``get_metadata`` is cached on the
    adapter (and, with a session, per listed directory across adapters on
    the same bucket and prefix) and served to later stat calls without a
    request. Callers get a copy of each record. Writes, deletes and
    renames leave those entries alone, so they can outlive the object until
    the directory is listed again.
    """

    PUBLIC_GRANT_URI = 'http://acs.amazonaws.com/groups/global/AllUsers'

    META_OPTIONS: List[str] = [
        'ACL',
        'CacheControl',
        'ContentDisposition',
        'ContentEncoding',
        'ContentLength',
        'ContentMD5',
        'ContentType',
        'Expires',
        'GrantFullControl',
        'GrantRead',
        'GrantReadACP',
        'GrantWriteACP',
        'Metadata',
        'RequestPayer',
        'SSECustomerAlgorithm',
        'SSECustomerKey',
        'SSECustomerKeyMD5',
        'SSEKMSKeyId',
        'ServerSideEncryption',
        'StorageClass',
        'Tagging',
        'WebsiteRedirectLocation',
    ]

    def __init__(
        self,
        client: StorageClient,
        bucket: str,
        prefix: str = '',
        options: Optional[Dict[str, Any]] = None,
        stream_reads: bool = True,
        session: Optional[Session] = None,
    ) -> None:
        super().__init__()
        self._client = client
        self.bucket = bucket
        self.stat_cache = StatCache(session)
        self.set_path_prefix(prefix)
        self.options: Dict[str, Any] = dict(options or {})
        self.stream_reads = stream_reads
        self.logger = get_logger(__name__)

    def get_bucket(self) -> str:
        return self.bucket

    def set_bucket(self, bucket: str) -> None:
        self.bucket = bucket
        self.stat_cache.scope = self._cache_scope()

    def set_path_prefix(self, prefix: Optional[str]) -> None:
        super().set_path_prefix(prefix)
        self.stat_cache.scope = self._cache_scope()

    def _cache_scope(self) -> str:
        # Session records are only shared between adapters on the same bucket and prefix
        return f'{self.bucket}/{self.get_path_prefix() or ""}'

    def get_client(self) -> StorageClient:
        return self._client

    def get_options(self) -> Dict[str, Any]:
        return dict(self.options)

    def get_stat_cache(self) -> StatCache:
        return self.stat_cache

    def write(self, path: str, contents: Union[str, bytes], config: Optional[Config] = None) -> Optional[Metadata]:
        return self._upload(path, contents, config)

    def update(self, path: str, contents: Union[str, bytes], config: Optional[Config] = None) -> Optional[Metadata]:
        return self._upload(path, contents, config)

    def write_stream(self, path: str, resource: BinaryIO, config: Optional[Config] = None) -> Optional[Metadata]:
        return self._upload(path, resource, config)

    def update_stream(self, path: str, resource: BinaryIO, config: Optional[Config] = None) -> Optional[Metadata]:
        return self._upload(path, resource, config)

    def rename(self, path: str, newpath: str) -> bool:
        """Copy to the new path, then delete the original.

        A failed delete leaves both copies in place.
        """
        if not self.copy(path, newpath):
            return False

        return self.delete(path)

    def delete(self, path: str) -> bool:
        """Delete a file; success means the key is gone afterwards."""
        location = self.apply_path_prefix(path)

        self.logger.debug("Deleting object", {'bucket': self.bucket, 'key': location})

        try:
            self._client.delete_object(self.bucket, location)
        except ProviderError as e:
            self.logger.warning("Delete request failed", {'path': path, 'status': e.status_code})

        return not self.has(path)

    def delete_dir(self, dirname: str) -> bool:
        prefix = self.apply_path_prefix(dirname).rstrip('/') + '/'

        try:
            self._client.delete_matching_objects(self.bucket, prefix)
        except DeleteMultipleObjectsError as e:
            self.logger.warning("Directory delete failed", {'prefix': prefix, 'failed': len(e.failed_keys)})
            return False

        return True

    def create_dir(self, dirname: str, config: Optional[Config] = None) -> Optional[Metadata]:
        return self._upload(dirname.rstrip('/') + '/', b'', config)

    def has(self, path: str) -> bool:
        location = self.apply_path_prefix(path)

        if self._client.does_object_exist(self.bucket, location, self.options):
            return True

        return self.does_directory_exist(location)

    def read(self, path: str) -> Optional[Metadata]:
        response = self._read_object(path)

        if response is not None:
            body = response['contents']
            try:
                response['contents'] = body.read()
            finally:
                body.close()

        return response

    def read_stream(self, path: str) -> Optional[Metadata]:
        response = self._read_object(path)

        if response is not None:
            response['stream'] = response.pop('contents')

        return response

    def list_contents(self, directory: str = '', recursive: bool = False) -> List[Metadata]:
        prefix = self.apply_path_prefix(directory.rstrip('/') + '/')
        delimiter = None if recursive else '/'

        listing = self._retrieve_paginated_listing(prefix, delimiter)
        listed_dir = directory.strip('/')

        normalized: List[Metadata] = []
        for item in listing:
            metadata = normalize_response(item, remove_prefix=self.remove_path_prefix)

            # The directory's own marker object is not part of its contents
            if metadata['path'] == listed_dir:
                continue

            if metadata['type'] == 'file' and 'mimetype' not in metadata:
                metadata['mimetype'] = guess_mime_type(metadata['path'])

            self.stat_cache.put(metadata['path'], dict(metadata))
            normalized.append(metadata)

        self.stat_cache.remember_directory(directory)

        return emulate_directories(normalized, listed_dir)

    def _retrieve_paginated_listing(self, prefix: str, delimiter: Optional[str]) -> List[ProviderResult]:
        self.logger.debug("Listing objects", {'bucket': self.bucket, 'prefix': prefix, 'delimiter': delimiter})

        listing: List[ProviderResult] = []
        for page in self._client.list_objects(self.bucket, prefix, delimiter=delimiter):
            listing.extend(page.contents)
            listing.extend(page.common_prefixes)

        return listing

    def get_metadata(self, path: str) -> Optional[Metadata]:
        cached = self.stat_cache.get(path)
        if cached is not None:
            self.logger.debug("Stat cache hit", {'path': path})
            return dict(cached)

        location = self.apply_path_prefix(path)
        self.logger.debug("Fetching object metadata", {'bucket': self.bucket, 'key': location})

        result = self._client.head_object(self.bucket, location, self.options)
        if isinstance(result, NotFound):
            return None

        metadata = normalize_response(result, path)
        self.stat_cache.put(path, dict(metadata))

        return metadata

    def get_size(self, path: str) -> Optional[Metadata]:
        return self.get_metadata(path)

    def get_mimetype(self, path: str) -> Optional[Metadata]:
        return {'mimetype': guess_mime_type(path)}

    def get_timestamp(self, path: str) -> Optional[Metadata]:
        return self.get_metadata(path)

    def copy(self, path: str, newpath: str) -> bool:
        """Server-side copy that keeps the source's visibility."""
        try:
            acl = 'public-read' if self._get_raw_visibility(path) == VISIBILITY_PUBLIC else 'private'
            self._client.copy_object(
                self.bucket,
                self.apply_path_prefix(path),
                self.bucket,
                self.apply_path_prefix(newpath),
                acl,
                self.options,
            )
        except ProviderError as e:
            self.logger.warning("Copy failed", {'from': path, 'to': newpath, 'status': e.status_code})
            return False

        return True

    def set_visibility(self, path: str, visibility: str) -> Optional[Metadata]:
        acl = 'public-read' if visibility == VISIBILITY_PUBLIC else 'private'

        try:
            self._client.put_object_acl(self.bucket, self.apply_path_prefix(path), acl)
        except ProviderError as e:
            self.logger.warning("Setting visibility failed", {'path': path, 'status': e.status_code})
            return None

        return {'path': path, 'visibility': visibility}

    def get_visibility(self, path: str) -> Optional[Metadata]:
        return {'visibility': self._get_raw_visibility(path)}

    def _get_raw_visibility(self, path: str) -> str:
        """Public when all users hold a READ grant on the object."""
        acl = self._client.get_object_acl(self.bucket, self.apply_path_prefix(path))

        for grant in acl.grants:
            grantee = grant.get('Grantee') or {}
            if grantee.get('URI') == self.PUBLIC_GRANT_URI and grant.get('Permission') == 'READ':
                return VISIBILITY_PUBLIC

        return VISIBILITY_PRIVATE

    def _read_object(self, path: str) -> Optional[Metadata]:
        location = self.apply_path_prefix(path)

        try:
            result = self._client.get_object(self.bucket, location, self.options)
        except ProviderError as e:
            self.logger.warning("Read failed", {'path': path, 'status': e.status_code})
            return None

        if isinstance(result, NotFound):
            return None

        response = normalize_response(result, path)
        body = response.get('contents')

        if body is None:
            response['contents'] = io.BytesIO(b'')
        elif not self.stream_reads:
            try:
                response['contents'] = io.BytesIO(body.read())
            finally:
                body.close()

        return response

    def _upload(self, path: str, body: Union[str, bytes, BinaryIO], config: Optional[Config]) -> Optional[Metadata]:
        key = self.apply_path_prefix(path)
        options = self._get_options_from_config(config or Config())
        acl = options.get('ACL', 'private')

        if isinstance(body, str):
            body = body.encode('utf-8')

        if not is_only_dir(path):
            if 'ContentType' not in options:
                options['ContentType'] = guess_mime_type(path)

            if 'ContentLength' not in options:
                options['ContentLength'] = content_size(body)

            if options['ContentLength'] is None:
                del options['ContentLength']

        self.logger.debug("Uploading object", {'bucket': self.bucket, 'key': key, 'acl': acl})

        try:
            result = self._client.upload(self.bucket, key, body, acl, options)
        except MultipartUploadError as e:
            self.logger.warning("Upload failed", {'path': path, 'error': str(e)})
            return None

        return normalize_response(result, path)

    def _get_options_from_config(self, config: Config) -> Dict[str, Any]:
        options = dict(self.options)

        visibility = config.get('visibility')
        if visibility:
            # For local reference
            options['visibility'] = visibility
            # For the provider
            options['ACL'] = 'public-read' if visibility == VISIBILITY_PUBLIC else 'private'

        mimetype = config.get('mimetype')
        if mimetype:
            options['mimetype'] = mimetype
            options['ContentType'] = mimetype

        for option in self.META_OPTIONS:
            if config.has(option):
                options[option] = config.get(option)

        return options

    def does_directory_exist(self, location: str) -> bool:
        """A virtual directory exists when any key sits under ``location/``."""
        prefix = location.rstrip('/') + '/'

        try:
            page: Optional[ListPage] = next(
                iter(self._client.list_objects(self.bucket, prefix, max_keys=1)), None
            )
        except ProviderError as e:
            if e.status_code in (403, 404):
                return False
            raise

        return page is not None and bool(page.contents or page.common_prefixes)


def content_size(body: Union[bytes, BinaryIO]) -> Optional[int]:
    """Byte length of a buffer, or of what is left to read in a seekable stream."""
    if isinstance(body, (bytes, bytearray)):
        return len(body)

    seekable = getattr(body, 'seekable', None)
    if seekable is None or not seekable():
        return None

    position = body.tell()
    end = body.seek(0, io.SEEK_END)
    body.seek(position)

    return end - position
