from .Config import Config

__all__ = [
    "Config"
]
