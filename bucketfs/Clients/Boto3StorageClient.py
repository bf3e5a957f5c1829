from __future__ import annotations

import io
import os
from typing import Any, BinaryIO, Dict, Iterable, Iterator, List, Optional, Union

import boto3
from boto3.exceptions import S3UploadFailedError
from botocore.config import Config as BotocoreConfig
from botocore.exceptions import ClientError
from s3transfer.manager import TransferManager

from bucketfs.Utils.Logger import get_logger

from .StorageClient import (
    AclResult,
    CommonPrefix,
    DeleteMultipleObjectsError,
    GetResult,
    HeadResult,
    ListEntry,
    ListPage,
    MultipartUploadError,
    NotFound,
    ProviderError,
    StorageClient,
    UploadResult,
)

NOT_FOUND_CODES = ('404', 'NoSuchKey', 'NotFound')

# delete_objects accepts at most this many keys per request
DELETE_BATCH_SIZE = 1000


def _status_code(error: ClientError) -> Optional[int]:
    return error.response.get('ResponseMetadata', {}).get('HTTPStatusCode')


def _is_not_found(error: ClientError) -> bool:
    return _status_code(error) == 404 or error.response.get('Error', {}).get('Code') in NOT_FOUND_CODES


def _provider_error(error: ClientError) -> ProviderError:
    details = error.response.get('Error', {})
    return ProviderError(
        details.get('Message') or str(error),
        status_code=_status_code(error),
        code=details.get('Code'),
    )


def _only(options: Optional[Dict[str, Any]], allowed: Iterable[str]) -> Dict[str, Any]:
    """Keep the options a given boto3 call accepts."""
    if not options:
        return {}
    allowed = set(allowed)
    return {key: value for key, value in options.items() if key in allowed}


class Boto3StorageClient(StorageClient):
    """StorageClient backed by a boto3 S3 client.

    Retries and multipart orchestration are boto3's and s3transfer's job;
    this class only maps request shapes and errors.
    """

    def __init__(
        self,
        client: Optional[Any] = None,
        region: Optional[str] = None,
        access_key_id: Optional[str] = None,
        secret_access_key: Optional[str] = None,
        session_token: Optional[str] = None,
        endpoint_url: Optional[str] = None,
        use_path_style_endpoint: bool = False,
        max_attempts: int = 3,
        max_pool_connections: int = 50,
    ) -> None:
        self.logger = get_logger(__name__)

        if client is not None:
            self._client = client
            return

        s3_config: Dict[str, Any] = {}
        if use_path_style_endpoint:
            s3_config['addressing_style'] = 'path'

        config = BotocoreConfig(
            region_name=region or os.getenv('AWS_DEFAULT_REGION', 'us-east-1'),
            retries={'max_attempts': max_attempts, 'mode': 'adaptive'},
            max_pool_connections=max_pool_connections,
            s3=s3_config or None,
        )

        session = boto3.Session(
            aws_access_key_id=access_key_id,
            aws_secret_access_key=secret_access_key,
            aws_session_token=session_token,
        )

        self._client = session.client('s3', config=config, endpoint_url=endpoint_url)

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'Boto3StorageClient':
        """Build a client from a disk configuration dict."""
        return cls(
            region=config.get('region'),
            access_key_id=config.get('key'),
            secret_access_key=config.get('secret'),
            session_token=config.get('token'),
            endpoint_url=config.get('endpoint'),
            use_path_style_endpoint=bool(config.get('use_path_style_endpoint', False)),
            max_attempts=int(config.get('max_attempts', 3)),
        )

    @property
    def client(self) -> Any:
        """The underlying boto3 client."""
        return self._client

    def head_object(self, bucket: str, key: str, options: Optional[Dict[str, Any]] = None) -> Union[HeadResult, NotFound]:
        try:
            response = self._client.head_object(
                Bucket=bucket, Key=key, **_only(options, TransferManager.ALLOWED_DOWNLOAD_ARGS)
            )
        except ClientError as e:
            if _is_not_found(e):
                return NotFound(key)
            raise _provider_error(e) from e

        return HeadResult(key=key, **self._head_fields(response))

    def get_object(self, bucket: str, key: str, options: Optional[Dict[str, Any]] = None) -> Union[GetResult, NotFound]:
        try:
            response = self._client.get_object(
                Bucket=bucket, Key=key, **_only(options, TransferManager.ALLOWED_DOWNLOAD_ARGS)
            )
        except ClientError as e:
            if _is_not_found(e):
                return NotFound(key)
            raise _provider_error(e) from e

        return GetResult(key=key, body=response['Body'], **self._head_fields(response))

    def _head_fields(self, response: Dict[str, Any]) -> Dict[str, Any]:
        return {
            'content_length': response.get('ContentLength'),
            'content_type': response.get('ContentType'),
            'etag': response.get('ETag'),
            'last_modified': response.get('LastModified'),
            'metadata': response.get('Metadata'),
            'storage_class': response.get('StorageClass'),
            'version_id': response.get('VersionId'),
        }

    def upload(
        self,
        bucket: str,
        key: str,
        body: Union[bytes, BinaryIO],
        acl: str = 'private',
        options: Optional[Dict[str, Any]] = None
    ) -> UploadResult:
        extra_args = _only(options, TransferManager.ALLOWED_UPLOAD_ARGS)
        extra_args['ACL'] = acl

        fileobj = io.BytesIO(body) if isinstance(body, (bytes, bytearray)) else body

        try:
            self._client.upload_fileobj(fileobj, bucket, key, ExtraArgs=extra_args)
        except S3UploadFailedError as e:
            raise MultipartUploadError(str(e)) from e

        options = options or {}
        return UploadResult(
            key=key,
            content_length=options.get('ContentLength'),
            content_type=options.get('ContentType'),
            metadata=options.get('Metadata'),
            storage_class=options.get('StorageClass'),
        )

    def delete_object(self, bucket: str, key: str) -> None:
        try:
            self._client.delete_object(Bucket=bucket, Key=key)
        except ClientError as e:
            raise _provider_error(e) from e

    def delete_matching_objects(self, bucket: str, prefix: str) -> None:
        keys: List[str] = []
        for page in self.list_objects(bucket, prefix):
            keys.extend(entry.key for entry in page.contents)

        failed: List[str] = []
        for start in range(0, len(keys), DELETE_BATCH_SIZE):
            batch = keys[start:start + DELETE_BATCH_SIZE]
            try:
                response = self._client.delete_objects(
                    Bucket=bucket,
                    Delete={'Objects': [{'Key': key} for key in batch], 'Quiet': True},
                )
            except ClientError as e:
                raise DeleteMultipleObjectsError(str(e), batch) from e

            failed.extend(error['Key'] for error in response.get('Errors', []))

        if failed:
            self.logger.warning("Bulk delete left keys behind", {'bucket': bucket, 'failed': len(failed)})
            raise DeleteMultipleObjectsError(f"Failed to delete {len(failed)} object(s) under '{prefix}'", failed)

    def copy_object(
        self,
        source_bucket: str,
        source_key: str,
        bucket: str,
        key: str,
        acl: str = 'private',
        options: Optional[Dict[str, Any]] = None
    ) -> None:
        extra_args = _only(options, TransferManager.ALLOWED_COPY_ARGS)
        extra_args['ACL'] = acl

        try:
            self._client.copy(
                {'Bucket': source_bucket, 'Key': source_key},
                bucket,
                key,
                ExtraArgs=extra_args,
            )
        except ClientError as e:
            raise _provider_error(e) from e

    def get_object_acl(self, bucket: str, key: str) -> AclResult:
        try:
            response = self._client.get_object_acl(Bucket=bucket, Key=key)
        except ClientError as e:
            raise _provider_error(e) from e

        return AclResult(grants=list(response.get('Grants', [])))

    def put_object_acl(self, bucket: str, key: str, acl: str) -> None:
        try:
            self._client.put_object_acl(Bucket=bucket, Key=key, ACL=acl)
        except ClientError as e:
            raise _provider_error(e) from e

    def list_objects(
        self,
        bucket: str,
        prefix: str,
        delimiter: Optional[str] = None,
        max_keys: Optional[int] = None
    ) -> Iterator[ListPage]:
        params: Dict[str, Any] = {'Bucket': bucket, 'Prefix': prefix}
        if delimiter:
            params['Delimiter'] = delimiter
        if max_keys:
            params['PaginationConfig'] = {'MaxItems': max_keys, 'PageSize': max_keys}

        paginator = self._client.get_paginator('list_objects_v2')

        try:
            for page in paginator.paginate(**params):
                yield ListPage(
                    contents=[
                        ListEntry(
                            key=obj['Key'],
                            size=obj.get('Size'),
                            last_modified=obj.get('LastModified'),
                            etag=obj.get('ETag'),
                            storage_class=obj.get('StorageClass'),
                        )
                        for obj in page.get('Contents', [])
                    ],
                    common_prefixes=[
                        CommonPrefix(prefix=common['Prefix'])
                        for common in page.get('CommonPrefixes', [])
                    ],
                )
        except ClientError as e:
            raise _provider_error(e) from e

    def does_object_exist(self, bucket: str, key: str, options: Optional[Dict[str, Any]] = None) -> bool:
        try:
            self._client.head_object(
                Bucket=bucket, Key=key, **_only(options, TransferManager.ALLOWED_DOWNLOAD_ARGS)
            )
        except ClientError as e:
            status = _status_code(e)
            if status is not None and status >= 500:
                raise _provider_error(e) from e
            return False

        return True
