"""Updater configuration — validated on construction, loadable from JSON."""

import json
import logging
import os
from dataclasses import dataclass, field, fields

from wplatest_updater.core.cache import make_cache_key
from wplatest_updater.core.errors import ConfigurationError
from wplatest_updater.core.plugin_data import plugin_basename, plugin_slug

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ('plugin_file_path', 'api_base_url')

# Option names used by the plugin-side bootstrap code
OPTION_ALIASES = {
    'file': 'plugin_file_path',
    'api_url': 'api_base_url',
    'id': 'plugin_id',
    'version': 'current_version',
}


@dataclass(frozen=True)
class UpdaterConfig:
    """Immutable updater configuration.

    ``plugin_base``, ``plugin_slug`` and ``cache_key`` are derived from
    ``plugin_file_path`` and cannot be passed in.
    """
    # Identity
    plugin_file_path: str = ""
    api_base_url: str = ""
    plugin_id: str = ""
    current_version: str | None = None     # None = read from plugin header

    # Behaviour
    use_cache: bool = False
    secret: str | None = None              # Bearer token for the API
    telemetry_enabled: bool = False
    hostname: str | None = None            # Namespaces the update_plugins_{hostname} hook

    # Host context
    plugins_dir: str | None = None
    site_url: str | None = None            # Referrer; guessed when empty

    plugin_base: str = field(init=False)
    plugin_slug: str = field(init=False)
    cache_key: str = field(init=False)

    def __post_init__(self):
        missing = [name for name in REQUIRED_FIELDS
                   if not str(getattr(self, name) or "").strip()]
        if missing:
            raise ConfigurationError(missing)

        object.__setattr__(self, 'plugin_file_path', str(self.plugin_file_path))
        object.__setattr__(self, 'api_base_url', str(self.api_base_url).strip())
        plugin_id = self.plugin_id
        object.__setattr__(self, 'plugin_id', "" if plugin_id is None else str(plugin_id).strip())
        if self.current_version is not None:
            object.__setattr__(self, 'current_version', str(self.current_version).strip() or None)

        base = plugin_basename(self.plugin_file_path, self.plugins_dir)
        slug = plugin_slug(base)
        object.__setattr__(self, 'plugin_base', base)
        object.__setattr__(self, 'plugin_slug', slug)
        object.__setattr__(self, 'cache_key', make_cache_key(slug))

    @classmethod
    def from_mapping(cls, data: dict) -> 'UpdaterConfig':
        """Build from a mapping, accepting field names or bootstrap option names."""
        accepted = {f.name for f in fields(cls) if f.init}
        kwargs = {}
        for key, value in data.items():
            name = OPTION_ALIASES.get(key, key)
            if name in accepted:
                kwargs[name] = value
            else:
                logger.debug("Ignoring unknown config key: %s", key)
        return cls(**kwargs)

    @classmethod
    def load(cls, path: str) -> 'UpdaterConfig':
        """Load configuration from a JSON object file.

        Raises ConfigurationError when the file is missing, unreadable or
        lacks required keys.
        """
        config = cls.from_mapping(read_config_file(path))
        logger.info("Loaded updater config from %s", path)
        return config


def read_config_file(path: str) -> dict:
    """Return the JSON object stored at ``path`` without validating it."""
    if not os.path.isfile(path):
        logger.error("No config file at %s", path)
        raise ConfigurationError(list(REQUIRED_FIELDS))

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        logger.error("Failed to load config from %s: %s", path, e)
        raise ConfigurationError(list(REQUIRED_FIELDS)) from e

    if not isinstance(data, dict):
        logger.error("Config file %s does not hold a JSON object", path)
        raise ConfigurationError(list(REQUIRED_FIELDS))
    return data
