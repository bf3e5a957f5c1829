from __future__ import annotations

from .Storage import AwsS3Adapter, AbstractAdapter
from .Filesystem import FilesystemManager
from .Support import Config

__version__ = '1.0.0'

__all__ = [
    'AwsS3Adapter',
    'AbstractAdapter',
    'FilesystemManager',
    'Config',
    '__version__'
]
