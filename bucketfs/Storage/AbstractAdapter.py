from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, BinaryIO, Dict, List, Optional, Union

from bucketfs.Support.Config import Config

Metadata = Dict[str, Any]

VISIBILITY_PUBLIC = 'public'
VISIBILITY_PRIVATE = 'private'


class CanOverwriteFiles:
    """Marker for adapters whose writes replace existing files in place."""
    pass


class AbstractAdapter(ABC):
    """Filesystem adapter interface with path prefix handling.

    Failures the caller is expected to handle come back as ``None`` or
    ``False``; anything else propagates.
    """

    path_separator = '/'

    def __init__(self) -> None:
        self._path_prefix: Optional[str] = None

    def set_path_prefix(self, prefix: Optional[str]) -> None:
        """Set the prefix every logical path is stored under."""
        prefix = (prefix or '').lstrip('/')

        if prefix == '':
            self._path_prefix = None
            return

        self._path_prefix = prefix.rstrip('\\/') + self.path_separator

    def get_path_prefix(self) -> Optional[str]:
        return self._path_prefix

    def apply_path_prefix(self, path: str) -> str:
        """Logical path -> physical key."""
        return ((self._path_prefix or '') + path.lstrip('\\/')).lstrip('/')

    def remove_path_prefix(self, path: str) -> str:
        """Physical key -> logical path."""
        return path[len(self._path_prefix or ''):]

    @abstractmethod
    def write(self, path: str, contents: Union[str, bytes], config: Optional[Config] = None) -> Optional[Metadata]:
        """Write a new file."""
        pass

    @abstractmethod
    def write_stream(self, path: str, resource: BinaryIO, config: Optional[Config] = None) -> Optional[Metadata]:
        """Write a new file from a stream."""
        pass

    @abstractmethod
    def update(self, path: str, contents: Union[str, bytes], config: Optional[Config] = None) -> Optional[Metadata]:
        """Update a file."""
        pass

    @abstractmethod
    def update_stream(self, path: str, resource: BinaryIO, config: Optional[Config] = None) -> Optional[Metadata]:
        """Update a file from a stream."""
        pass

    @abstractmethod
    def rename(self, path: str, newpath: str) -> bool:
        """Rename a file."""
        pass

    @abstractmethod
    def copy(self, path: str, newpath: str) -> bool:
        """Copy a file."""
        pass

    @abstractmethod
    def delete(self, path: str) -> bool:
        """Delete a file."""
        pass

    @abstractmethod
    def delete_dir(self, dirname: str) -> bool:
        """Delete a directory and everything below it."""
        pass

    @abstractmethod
    def create_dir(self, dirname: str, config: Optional[Config] = None) -> Optional[Metadata]:
        """Create a directory."""
        pass

    @abstractmethod
    def set_visibility(self, path: str, visibility: str) -> Optional[Metadata]:
        """Set the visibility of a file."""
        pass

    @abstractmethod
    def has(self, path: str) -> bool:
        """Check whether a file or directory exists."""
        pass

    @abstractmethod
    def read(self, path: str) -> Optional[Metadata]:
        """Read a file into memory."""
        pass

    @abstractmethod
    def read_stream(self, path: str) -> Optional[Metadata]:
        """Read a file as a stream."""
        pass

    @abstractmethod
    def list_contents(self, directory: str = '', recursive: bool = False) -> List[Metadata]:
        """List the contents of a directory."""
        pass

    @abstractmethod
    def get_metadata(self, path: str) -> Optional[Metadata]:
        """Get all the metadata of a file or directory."""
        pass

    @abstractmethod
    def get_size(self, path: str) -> Optional[Metadata]:
        """Get the size of a file."""
        pass

    @abstractmethod
    def get_mimetype(self, path: str) -> Optional[Metadata]:
        """Get the mimetype of a file."""
        pass

    @abstractmethod
    def get_timestamp(self, path: str) -> Optional[Metadata]:
        """Get the last modified time of a file."""
        pass

    @abstractmethod
    def get_visibility(self, path: str) -> Optional[Metadata]:
        """Get the visibility of a file."""
        pass
