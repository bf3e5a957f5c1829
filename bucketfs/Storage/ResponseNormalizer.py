from __future__ import annotations

import posixpath
from dataclasses import fields
from typing import Any, Callable, Dict, List, Optional

from bucketfs.Clients.StorageClient import (
    CommonPrefix,
    GetResult,
    HeadResult,
    ListEntry,
    ProviderResult,
    UploadResult,
)

Metadata = Dict[str, Any]

# Provider result field -> normalized record field
RESULT_MAP: Dict[str, str] = {
    'body': 'contents',
    'content_length': 'size',
    'content_type': 'mimetype',
    'size': 'size',
    'metadata': 'metadata',
    'storage_class': 'storageclass',
    'etag': 'etag',
    'version_id': 'versionid',
}

FILE_VARIANTS = (GetResult, HeadResult, ListEntry, UploadResult)


def is_only_dir(path: str) -> bool:
    """Paths ending in a separator name a directory marker."""
    return path.endswith('/')


def pathinfo(path: str) -> Metadata:
    """Split a logical path into path, dirname, basename, filename and extension."""
    dirname = posixpath.dirname(path)
    basename = posixpath.basename(path)

    info: Metadata = {
        'path': path,
        'dirname': '' if dirname in ('.', '/') else dirname,
        'basename': basename,
        'filename': basename,
    }

    if '.' in basename:
        filename, _, extension = basename.rpartition('.')
        info['filename'] = filename
        info['extension'] = extension

    return info


def _identity(key: str) -> str:
    return key


def _merge_mapped(record: Metadata, values: Dict[str, Any], table: Dict[str, str]) -> Metadata:
    for source, target in table.items():
        value = values.get(source)
        if value is not None:
            record[target] = value
    return record


def _dir_record(path: str, base: Metadata) -> Metadata:
    record = pathinfo(path.rstrip('/'))
    if 'timestamp' in base:
        record['timestamp'] = base['timestamp']
    record['type'] = 'dir'
    return record


def normalize_response(
    result: ProviderResult,
    path: Optional[str] = None,
    remove_prefix: Callable[[str], str] = _identity
) -> Metadata:
    """Turn one provider result into a normalized metadata record.

    ``path`` is used as-is when given; otherwise it is derived from the
    result's key (or common prefix) with ``remove_prefix`` applied.
    """
    if isinstance(result, CommonPrefix):
        physical = result.prefix
    elif isinstance(result, FILE_VARIANTS):
        physical = result.key
    else:
        raise TypeError(f"Cannot normalize {type(result).__name__}")

    if not path:
        path = remove_prefix(physical)

    record = pathinfo(path)

    last_modified = getattr(result, 'last_modified', None)
    if last_modified is not None:
        record['timestamp'] = int(last_modified.timestamp())

    if is_only_dir(path) or isinstance(result, CommonPrefix):
        return _dir_record(path, record)

    values = {f.name: getattr(result, f.name) for f in fields(result)}
    _merge_mapped(record, values, RESULT_MAP)
    record['type'] = 'file'

    return record


def _is_below(path: str, directory: str) -> bool:
    directory = directory.strip('/')
    if not directory:
        return True
    return path.startswith(directory + '/')


def emulate_directories(listing: List[Metadata], directory: str = '') -> List[Metadata]:
    """Add the parent directories a listing implies but does not contain.

    Only parents that lie below ``directory`` are added, so the directory
    being listed never shows up as its own child.
    """
    directories: List[str] = []
    seen = set()
    listed = set()

    for item in listing:
        if item.get('type') == 'dir':
            listed.add(item['path'])

        parent = item.get('dirname', '')
        while parent and parent not in seen:
            seen.add(parent)
            directories.append(parent)
            parent = posixpath.dirname(parent)

    emulated = [
        dict(pathinfo(parent), type='dir')
        for parent in directories
        if parent not in listed and _is_below(parent, directory)
    ]

    return listing + emulated
