from __future__ import annotations

from .FilesystemManager import FilesystemManager, storage

__all__ = [
    'FilesystemManager',
    'storage'
]
