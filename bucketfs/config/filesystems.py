from __future__ import annotations

import os
from typing import Dict, Any


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


# Default filesystem disk
default = os.getenv('FILESYSTEM_DISK', 's3')

# Cloud storage disk
cloud = os.getenv('FILESYSTEM_CLOUD', 's3')

# Filesystem disks configuration
disks: Dict[str, Dict[str, Any]] = {
    's3': {
        'driver': 's3',
        'key': os.getenv('AWS_ACCESS_KEY_ID'),
        'secret': os.getenv('AWS_SECRET_ACCESS_KEY'),
        'token': os.getenv('AWS_SESSION_TOKEN'),
        'region': os.getenv('AWS_DEFAULT_REGION'),
        'bucket': os.getenv('AWS_BUCKET'),
        'endpoint': os.getenv('AWS_ENDPOINT'),
        'use_path_style_endpoint': _env_bool('AWS_USE_PATH_STYLE_ENDPOINT', False),
        'prefix': os.getenv('AWS_PREFIX', ''),
        'stream_reads': _env_bool('AWS_STREAM_READS', True),
        # Sent with every request the disk makes, e.g. {'ServerSideEncryption': 'AES256'}
        'options': {},
    },

    # In-memory bucket (for testing)
    'array': {
        'driver': 'array',
        'bucket': 'testing',
        'prefix': '',
        'stream_reads': True,
        'options': {},
    },
}
