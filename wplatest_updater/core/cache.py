"""Transient cache for remote descriptors.

A transient is a string value with an expiry time. The resolver keeps one
entry per plugin slug; the host decides where entries live by passing a
store (in-memory for a single request cycle, JSON file across restarts).
"""

import json
import logging
import os
import re
import time
from abc import ABC, abstractmethod

from wplatest_updater.branding import UpdaterBranding

logger = logging.getLogger(__name__)

CACHE_TTL = 24 * 60 * 60    # seconds


def make_cache_key(slug: str) -> str:
    """Build the transient name for ``slug`` ("my-plugin" -> "my-plugin-wplatest")."""
    name = f"{slug}-{UpdaterBranding.CACHE_SUFFIX}".lower()
    name = re.sub(r'[^a-z0-9_\-]+', '-', name)
    name = re.sub(r'-+', '-', name)
    return name.strip('-')


class TransientStore(ABC):
    """Key/value store with per-entry expiry."""

    @abstractmethod
    def get(self, key: str) -> str | None:
        """Return the live value for ``key``, or None if absent or expired."""

    @abstractmethod
    def set(self, key: str, value: str, ttl: int = CACHE_TTL):
        """Store ``value`` under ``key`` for ``ttl`` seconds, replacing any entry."""

    @abstractmethod
    def delete(self, key: str) -> bool:
        """Remove ``key``; return whether an entry existed."""


class MemoryTransientStore(TransientStore):
    """Process-local transients. Expired entries are dropped on read."""

    def __init__(self, clock=time.time):
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    def get(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._entries[key]
            return None
        return value

    def set(self, key: str, value: str, ttl: int = CACHE_TTL):
        self._entries[key] = (value, self._clock() + ttl)

    def delete(self, key: str) -> bool:
        return self._entries.pop(key, None) is not None


class JsonFileTransientStore(TransientStore):
    """Transients persisted to a JSON file.

    File layout: {"<key>": {"value": "<str>", "expires_at": <epoch>}}.
    A missing or corrupt file reads as empty; write failures are logged.
    """

    def __init__(self, path: str, clock=time.time):
        self.path = path
        self._clock = clock

    def get(self, key: str) -> str | None:
        entries = self._load()
        entry = entries.get(key)
        if not isinstance(entry, dict):
            return None
        value = entry.get('value')
        expires_at = entry.get('expires_at')
        if not isinstance(value, str) or not isinstance(expires_at, (int, float)):
            return None
        if self._clock() >= expires_at:
            del entries[key]
            self._save(entries)
            return None
        return value

    def set(self, key: str, value: str, ttl: int = CACHE_TTL):
        entries = self._load()
        entries[key] = {'value': value, 'expires_at': self._clock() + ttl}
        self._save(entries)

    def delete(self, key: str) -> bool:
        entries = self._load()
        if key not in entries:
            return False
        del entries[key]
        self._save(entries)
        return True

    def _load(self) -> dict:
        if not os.path.isfile(self.path):
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read cache file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def _save(self, entries: dict):
        directory = os.path.dirname(self.path)
        try:
            if directory:
                os.makedirs(directory, exist_ok=True)
            with open(self.path, 'w', encoding='utf-8') as f:
                json.dump(entries, f, indent=2)
        except OSError as e:
            logger.warning("Failed to write cache file %s: %s", self.path, e)
