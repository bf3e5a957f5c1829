from __future__ import annotations

from .StorageClient import (
    StorageClient,
    StorageException,
    ProviderError,
    MultipartUploadError,
    DeleteMultipleObjectsError,
    NotFound,
    HeadResult,
    GetResult,
    ListEntry,
    CommonPrefix,
    UploadResult,
    ListPage,
    AclResult,
    ProviderResult
)
from .ArrayStorageClient import ArrayStorageClient

__all__ = [
    'StorageClient',
    'StorageException',
    'ProviderError',
    'MultipartUploadError',
    'DeleteMultipleObjectsError',
    'NotFound',
    'HeadResult',
    'GetResult',
    'ListEntry',
    'CommonPrefix',
    'UploadResult',
    'ListPage',
    'AclResult',
    'ProviderResult',
    'ArrayStorageClient'
]
