from __future__ import annotations

from typing import Any, Dict, Optional


class Config:
    """Per-call settings handed to write-style adapter operations.

    Lookups that miss fall through to an optional fallback Config, so a
    filesystem-wide default (say, ``visibility``) can sit behind the
    settings of a single call.
    """

    def __init__(self, settings: Optional[Dict[str, Any]] = None) -> None:
        self._settings: Dict[str, Any] = dict(settings or {})
        self._fallback: Optional[Config] = None

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting, consulting the fallback when it is not set here."""
        if key not in self._settings:
            return self._get_default(key, default)

        return self._settings[key]

    def has(self, key: str) -> bool:
        """Check if a setting exists here or in the fallback."""
        if key in self._settings:
            return True

        return self._fallback is not None and self._fallback.has(key)

    def _get_default(self, key: str, default: Any) -> Any:
        if self._fallback is None:
            return default

        return self._fallback.get(key, default)

    def set(self, key: str, value: Any) -> 'Config':
        """Set a setting."""
        self._settings[key] = value
        return self

    def set_fallback(self, fallback: 'Config') -> 'Config':
        """Set the fallback config."""
        self._fallback = fallback
        return self

    def all(self) -> Dict[str, Any]:
        """Get the settings set directly on this config."""
        return self._settings.copy()
