"""Test the boto3-backed storage client with stubbed responses."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Iterator

import boto3
import pytest
from boto3.exceptions import S3UploadFailedError
from botocore.stub import Stubber

from bucketfs.Clients.Boto3StorageClient import Boto3StorageClient
from bucketfs.Clients.StorageClient import (
    CommonPrefix,
    DeleteMultipleObjectsError,
    HeadResult,
    ListEntry,
    MultipartUploadError,
    NotFound,
    ProviderError,
    UploadResult,
)

MODIFIED = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)


class TestBoto3StorageClient:
    """Test request shapes and error mapping."""

    @pytest.fixture
    def s3(self) -> Any:
        """Raw boto3 S3 client with dummy credentials."""
        return boto3.client(
            's3',
            region_name='us-east-1',
            aws_access_key_id='testing',
            aws_secret_access_key='testing',
        )

    @pytest.fixture
    def stubber(self, s3: Any) -> Iterator[Stubber]:
        with Stubber(s3) as stubber:
            yield stubber
            stubber.assert_no_pending_responses()

    @pytest.fixture
    def client(self, s3: Any) -> Boto3StorageClient:
        return Boto3StorageClient(client=s3)

    def test_head_object(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        stubber.add_response(
            'head_object',
            {
                'ContentLength': 8,
                'ContentType': 'text/plain',
                'ETag': '"abc"',
                'LastModified': MODIFIED,
                'Metadata': {'owner': 'ops'},
                'StorageClass': 'STANDARD_IA',
            },
            {'Bucket': 'bucket', 'Key': 'notes/todo.txt'},
        )

        result = client.head_object('bucket', 'notes/todo.txt')

        assert result == HeadResult(
            key='notes/todo.txt',
            content_length=8,
            content_type='text/plain',
            etag='"abc"',
            last_modified=MODIFIED,
            metadata={'owner': 'ops'},
            storage_class='STANDARD_IA',
        )

    def test_head_object_forwards_only_download_arguments(
        self, client: Boto3StorageClient, stubber: Stubber
    ) -> None:
        """Options head_object does not accept are dropped."""
        stubber.add_response(
            'head_object',
            {'ContentLength': 1},
            {'Bucket': 'bucket', 'Key': 'k', 'RequestPayer': 'requester'},
        )

        client.head_object('bucket', 'k', {'RequestPayer': 'requester', 'CacheControl': 'no-cache', 'visibility': 'public'})

    def test_head_object_not_found(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        """404 is a NotFound result."""
        stubber.add_client_error('head_object', service_error_code='404', http_status_code=404)

        assert client.head_object('bucket', 'missing') == NotFound('missing')

    def test_head_object_server_error(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        """Anything else becomes a ProviderError carrying the status."""
        stubber.add_client_error(
            'head_object', service_error_code='InternalError', service_message='boom', http_status_code=500
        )

        with pytest.raises(ProviderError) as exc_info:
            client.head_object('bucket', 'k')

        assert exc_info.value.status_code == 500
        assert exc_info.value.code == 'InternalError'

    def test_get_object_no_such_key(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        stubber.add_client_error('get_object', service_error_code='NoSuchKey', http_status_code=404)

        assert client.get_object('bucket', 'missing') == NotFound('missing')

    def test_list_objects(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        """Listing pages carry entries and common prefixes."""
        stubber.add_response(
            'list_objects_v2',
            {
                'Contents': [{'Key': 'notes/a.txt', 'Size': 1, 'LastModified': MODIFIED, 'ETag': '"a"'}],
                'CommonPrefixes': [{'Prefix': 'notes/sub/'}],
                'IsTruncated': False,
                'KeyCount': 2,
            },
            {'Bucket': 'bucket', 'Prefix': 'notes/', 'Delimiter': '/'},
        )

        pages = list(client.list_objects('bucket', 'notes/', delimiter='/'))

        assert len(pages) == 1
        assert pages[0].contents == [ListEntry(key='notes/a.txt', size=1, last_modified=MODIFIED, etag='"a"')]
        assert pages[0].common_prefixes == [CommonPrefix(prefix='notes/sub/')]

    def test_list_objects_paginates(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        """Every page is yielded until the listing is exhausted."""
        stubber.add_response(
            'list_objects_v2',
            {'Contents': [{'Key': 'a'}], 'IsTruncated': True, 'NextContinuationToken': 'next', 'KeyCount': 1},
            {'Bucket': 'bucket', 'Prefix': ''},
        )
        stubber.add_response(
            'list_objects_v2',
            {'Contents': [{'Key': 'b'}], 'IsTruncated': False, 'KeyCount': 1},
            {'Bucket': 'bucket', 'Prefix': '', 'ContinuationToken': 'next'},
        )

        keys = [entry.key for page in client.list_objects('bucket', '') for entry in page.contents]

        assert keys == ['a', 'b']

    def test_list_objects_with_cap(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        """A key cap is sent as MaxKeys."""
        stubber.add_response(
            'list_objects_v2',
            {'Contents': [{'Key': 'notes/a.txt'}], 'IsTruncated': False, 'KeyCount': 1},
            {'Bucket': 'bucket', 'Prefix': 'notes/', 'MaxKeys': 1},
        )

        pages = list(client.list_objects('bucket', 'notes/', max_keys=1))

        assert pages[0].contents[0].key == 'notes/a.txt'

    def test_list_objects_error(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        stubber.add_client_error('list_objects_v2', service_error_code='AccessDenied', http_status_code=403)

        with pytest.raises(ProviderError) as exc_info:
            list(client.list_objects('bucket', 'notes/'))

        assert exc_info.value.status_code == 403

    def test_delete_matching_objects(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        """Every listed key is deleted in one quiet bulk request."""
        stubber.add_response(
            'list_objects_v2',
            {'Contents': [{'Key': 'notes/a.txt'}, {'Key': 'notes/b.txt'}], 'IsTruncated': False, 'KeyCount': 2},
            {'Bucket': 'bucket', 'Prefix': 'notes/'},
        )
        stubber.add_response(
            'delete_objects',
            {'Deleted': [{'Key': 'notes/a.txt'}, {'Key': 'notes/b.txt'}]},
            {
                'Bucket': 'bucket',
                'Delete': {'Objects': [{'Key': 'notes/a.txt'}, {'Key': 'notes/b.txt'}], 'Quiet': True},
            },
        )

        client.delete_matching_objects('bucket', 'notes/')

    def test_delete_matching_objects_partial_failure(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        """Keys reported as errors are surfaced on the exception."""
        stubber.add_response(
            'list_objects_v2',
            {'Contents': [{'Key': 'notes/a.txt'}, {'Key': 'notes/b.txt'}], 'IsTruncated': False, 'KeyCount': 2},
            {'Bucket': 'bucket', 'Prefix': 'notes/'},
        )
        stubber.add_response(
            'delete_objects',
            {'Errors': [{'Key': 'notes/b.txt', 'Code': 'AccessDenied', 'Message': 'Access Denied'}]},
        )

        with pytest.raises(DeleteMultipleObjectsError) as exc_info:
            client.delete_matching_objects('bucket', 'notes/')

        assert exc_info.value.failed_keys == ['notes/b.txt']

    def test_delete_matching_nothing(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        """An empty prefix issues no delete request."""
        stubber.add_response(
            'list_objects_v2',
            {'IsTruncated': False, 'KeyCount': 0},
            {'Bucket': 'bucket', 'Prefix': 'empty/'},
        )

        client.delete_matching_objects('bucket', 'empty/')

    def test_object_acl(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        grants = [{
            'Grantee': {'Type': 'Group', 'URI': 'http://acs.amazonaws.com/groups/global/AllUsers'},
            'Permission': 'READ',
        }]
        stubber.add_response('get_object_acl', {'Grants': grants}, {'Bucket': 'bucket', 'Key': 'k'})
        stubber.add_response('put_object_acl', {}, {'Bucket': 'bucket', 'Key': 'k', 'ACL': 'private'})

        assert client.get_object_acl('bucket', 'k').grants == grants
        client.put_object_acl('bucket', 'k', 'private')

    def test_put_object_acl_error(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        stubber.add_client_error('put_object_acl', service_error_code='NoSuchKey', http_status_code=404)

        with pytest.raises(ProviderError):
            client.put_object_acl('bucket', 'missing', 'public-read')

    def test_does_object_exist(self, client: Boto3StorageClient, stubber: Stubber) -> None:
        """Missing and forbidden keys do not exist; server errors raise."""
        stubber.add_response('head_object', {}, {'Bucket': 'bucket', 'Key': 'k'})
        stubber.add_client_error('head_object', service_error_code='404', http_status_code=404)
        stubber.add_client_error('head_object', service_error_code='403', http_status_code=403)
        stubber.add_client_error('head_object', service_error_code='503', http_status_code=503)

        assert client.does_object_exist('bucket', 'k') is True
        assert client.does_object_exist('bucket', 'missing') is False
        assert client.does_object_exist('bucket', 'forbidden') is False
        with pytest.raises(ProviderError):
            client.does_object_exist('bucket', 'k')

    def test_upload(self, client: Boto3StorageClient, s3: Any, monkeypatch: pytest.MonkeyPatch) -> None:
        """Uploads go through the managed transfer with filtered arguments."""
        calls: Dict[str, Any] = {}

        def upload_fileobj(fileobj: Any, bucket: str, key: str, ExtraArgs: Dict[str, Any]) -> None:
            calls.update(body=fileobj.read(), bucket=bucket, key=key, extra_args=ExtraArgs)

        monkeypatch.setattr(s3, 'upload_fileobj', upload_fileobj)

        result = client.upload('bucket', 'notes/todo.txt', b'buy milk', 'public-read', {
            'ContentType': 'text/plain',
            'ContentLength': 8,
            'CacheControl': 'max-age=60',
            'visibility': 'public',
        })

        assert calls == {
            'body': b'buy milk',
            'bucket': 'bucket',
            'key': 'notes/todo.txt',
            'extra_args': {'ContentType': 'text/plain', 'CacheControl': 'max-age=60', 'ACL': 'public-read'},
        }
        assert result == UploadResult(key='notes/todo.txt', content_length=8, content_type='text/plain')

    def test_upload_failure(self, client: Boto3StorageClient, s3: Any, monkeypatch: pytest.MonkeyPatch) -> None:
        """A failed managed upload becomes a MultipartUploadError."""
        def upload_fileobj(fileobj: Any, bucket: str, key: str, ExtraArgs: Dict[str, Any]) -> None:
            raise S3UploadFailedError('Failed to upload: part 2')

        monkeypatch.setattr(s3, 'upload_fileobj', upload_fileobj)

        with pytest.raises(MultipartUploadError):
            client.upload('bucket', 'big.bin', b'x')

    def test_copy_object(self, client: Boto3StorageClient, s3: Any, monkeypatch: pytest.MonkeyPatch) -> None:
        """Copies keep only the arguments a copy accepts."""
        calls: Dict[str, Any] = {}

        def copy(source: Dict[str, str], bucket: str, key: str, ExtraArgs: Dict[str, Any]) -> None:
            calls.update(source=source, bucket=bucket, key=key, extra_args=ExtraArgs)

        monkeypatch.setattr(s3, 'copy', copy)

        client.copy_object('bucket', 'a.txt', 'bucket', 'b.txt', 'public-read', {
            'ServerSideEncryption': 'AES256',
            'ContentLength': 5,
        })

        assert calls == {
            'source': {'Bucket': 'bucket', 'Key': 'a.txt'},
            'bucket': 'bucket',
            'key': 'b.txt',
            'extra_args': {'ServerSideEncryption': 'AES256', 'ACL': 'public-read'},
        }

    def test_from_config(self) -> None:
        """Disk configuration maps onto the boto3 client."""
        client = Boto3StorageClient.from_config({
            'key': 'testing',
            'secret': 'testing',
            'region': 'eu-central-1',
            'endpoint': 'http://localhost:9000',
            'use_path_style_endpoint': True,
            'max_attempts': 5,
        })

        meta = client.client.meta
        assert meta.endpoint_url == 'http://localhost:9000'
        assert meta.region_name == 'eu-central-1'
        assert meta.config.s3 == {'addressing_style': 'path'}
        assert meta.config.retries == {'max_attempts': 5, 'mode': 'adaptive'}
        assert meta.config.max_pool_connections == 50
