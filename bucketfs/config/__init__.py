from . import filesystems

__all__ = ["filesystems"]
