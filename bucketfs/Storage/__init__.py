from __future__ import annotations

from .AbstractAdapter import (
    AbstractAdapter,
    CanOverwriteFiles,
    Metadata,
    VISIBILITY_PUBLIC,
    VISIBILITY_PRIVATE
)
from .AwsS3Adapter import AwsS3Adapter
from .StatCache import StatCache
from .MimeTypes import guess_mime_type, mime_type_from_extension
from .ResponseNormalizer import normalize_response, emulate_directories, pathinfo

__all__ = [
    'AbstractAdapter',
    'CanOverwriteFiles',
    'Metadata',
    'VISIBILITY_PUBLIC',
    'VISIBILITY_PRIVATE',
    'AwsS3Adapter',
    'StatCache',
    'guess_mime_type',
    'mime_type_from_extension',
    'normalize_response',
    'emulate_directories',
    'pathinfo'
]
