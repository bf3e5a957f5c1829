from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional

from bucketfs.Clients.ArrayStorageClient import ArrayStorageClient
from bucketfs.Clients.StorageClient import StorageClient
from bucketfs.Session.SessionManager import Session
from bucketfs.Storage.AbstractAdapter import AbstractAdapter
from bucketfs.Storage.AwsS3Adapter import AwsS3Adapter
from bucketfs.Utils.Logger import get_logger

DiskConfig = Dict[str, Any]
DriverCreator = Callable[[DiskConfig], AbstractAdapter]


def _load_filesystems_config() -> Dict[str, Any]:
    from bucketfs.config import filesystems

    return {
        'default': filesystems.default,
        'cloud': filesystems.cloud,
        'disks': filesystems.disks,
    }


class FilesystemManager:
    """Laravel-style filesystem manager.

    Disks are built on first use from their configuration and memoized.
    Every adapter built here shares the manager's session, so metadata one
    disk has listed is visible to other disks on the same bucket and prefix.
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None, session: Optional[Session] = None) -> None:
        self._config = config if config is not None else _load_filesystems_config()
        self._session = session
        self._disks: Dict[str, AbstractAdapter] = {}
        self._custom_drivers: Dict[str, DriverCreator] = {}
        self._default_disk: str = self._config.get('default') or 's3'
        self.logger = get_logger(__name__)

    def disk(self, name: Optional[str] = None) -> AbstractAdapter:
        """Get a filesystem disk."""
        name = name or self._default_disk

        if name not in self._disks:
            self._disks[name] = self._create_disk(name)

        return self._disks[name]

    def cloud(self) -> AbstractAdapter:
        """Get the default cloud disk."""
        return self.disk(self._config.get('cloud') or 's3')

    def get_default_driver(self) -> str:
        return self._default_disk

    def set_default_driver(self, name: str) -> None:
        self._default_disk = name

    def disk_config(self, name: str) -> DiskConfig:
        """Get the configuration of a disk."""
        disks = self._config.get('disks') or {}

        if name not in disks:
            raise ValueError(f"Disk [{name}] does not have a configured driver")

        return dict(disks[name])

    def available_drivers(self) -> List[str]:
        return ['s3', 'array'] + sorted(self._custom_drivers)

    def extend(self, driver: str, creator: DriverCreator) -> None:
        """Register a custom driver creator."""
        self._custom_drivers[driver] = creator

    def forget_disk(self, name: str) -> None:
        """Drop a memoized disk so the next call rebuilds it."""
        self._disks.pop(name, None)

    def _create_disk(self, name: str) -> AbstractAdapter:
        config = self.disk_config(name)
        driver = config.get('driver')

        self.logger.debug("Creating disk", {'disk': name, 'driver': driver})

        if driver in self._custom_drivers:
            return self._custom_drivers[driver](config)
        elif driver == 's3':
            return self._create_s3_driver(config)
        elif driver == 'array':
            return self._create_array_driver(config)
        else:
            raise ValueError(f"Filesystem driver '{driver}' not supported")

    def _create_s3_driver(self, config: DiskConfig) -> AbstractAdapter:
        from bucketfs.Clients.Boto3StorageClient import Boto3StorageClient

        return self._adapt(Boto3StorageClient.from_config(config), config)

    def _create_array_driver(self, config: DiskConfig) -> AbstractAdapter:
        return self._adapt(ArrayStorageClient(), config)

    def _adapt(self, client: StorageClient, config: DiskConfig) -> AwsS3Adapter:
        bucket = config.get('bucket')
        if not bucket:
            raise ValueError("Disk configuration is missing a bucket")

        return AwsS3Adapter(
            client,
            bucket,
            prefix=config.get('prefix') or '',
            options=config.get('options'),
            stream_reads=_as_bool(config.get('stream_reads', True)),
            session=self._session,
        )


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ('1', 'true', 'yes', 'on')
    return bool(value)


# Global filesystem manager, built on first use
filesystem_manager: Optional[FilesystemManager] = None


def storage(disk: Optional[str] = None) -> AbstractAdapter:
    """Get storage disk instance."""
    global filesystem_manager

    if filesystem_manager is None:
        filesystem_manager = FilesystemManager()

    return filesystem_manager.disk(disk)
