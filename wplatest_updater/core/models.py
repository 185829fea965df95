"""Update data models — remote descriptor and the host-facing directive."""

import logging
from dataclasses import dataclass, field, asdict

logger = logging.getLogger(__name__)

PLUGIN_INFORMATION = "plugin_information"


def _text(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        return ""
    if isinstance(value, (str, int, float)):
        return str(value)
    return ""


def _mapping(data: dict, key: str) -> dict[str, str]:
    value = data.get(key)
    if not isinstance(value, dict):
        return {}
    result = {}
    for k, v in value.items():
        if isinstance(v, (str, int, float)):
            result[str(k)] = str(v)
        else:
            logger.debug("Dropping non-scalar %s entry %r", key, k)
    return result


@dataclass
class RemoteDescriptor:
    """Plugin version record as returned by the update API."""

    name: str = ""
    slug: str = ""
    version: str = ""
    tested: str = ""            # Host version tested up to
    requires: str = ""          # Minimum host version
    requires_php: str = ""      # Minimum runtime version
    author: str = ""
    author_profile: str = ""
    download_url: str = ""
    last_updated: str = ""
    requires_plugins: list[str] = field(default_factory=list)
    sections: dict[str, str] = field(default_factory=dict)    # description, changelog, ...
    banners: dict[str, str] = field(default_factory=dict)     # low / high -> URL
    icons: dict[str, str] = field(default_factory=dict)       # 1x / 2x / svg -> URL

    @property
    def is_complete(self) -> bool:
        return bool(self.name and self.slug and self.version)

    @classmethod
    def from_json(cls, data: object) -> 'RemoteDescriptor':
        """Build from a decoded API body. Missing or mistyped fields default."""
        if not isinstance(data, dict):
            return cls()
        requires_plugins = data.get('requires_plugins')
        if isinstance(requires_plugins, str):
            requires_plugins = [p.strip() for p in requires_plugins.split(',') if p.strip()]
        elif isinstance(requires_plugins, list):
            requires_plugins = [str(p) for p in requires_plugins]
        else:
            requires_plugins = []
        return cls(
            name=_text(data, 'name'),
            slug=_text(data, 'slug'),
            version=_text(data, 'version').strip(),
            tested=_text(data, 'tested'),
            requires=_text(data, 'requires'),
            requires_php=_text(data, 'requires_php'),
            author=_text(data, 'author'),
            author_profile=_text(data, 'author_profile'),
            download_url=_text(data, 'download_url'),
            last_updated=_text(data, 'last_updated'),
            requires_plugins=requires_plugins,
            sections=_mapping(data, 'sections'),
            banners=_mapping(data, 'banners'),
            icons=_mapping(data, 'icons'),
        )

    def to_json(self) -> dict:
        return asdict(self)


@dataclass
class UpdateResult:
    """Install directive handed back to the host's update machinery."""

    plugin: str                 # Plugin base, e.g. "my-plugin/my-plugin.php"
    id: str
    name: str
    slug: str
    version: str
    tested: str
    requires: str
    requires_php: str
    author: str
    author_profile: str
    download_link: str
    trunk: str
    last_updated: str
    sections: dict[str, str]
    banners: dict[str, str]
    icons: dict[str, str]
    requires_plugins: list[str]
    has_update: bool
    new_version: str | None = None
    package: str | None = None

    @classmethod
    def from_descriptor(cls, remote: RemoteDescriptor, plugin: str,
                        plugin_id: str = "", has_update: bool = True) -> 'UpdateResult':
        return cls(
            plugin=plugin,
            id=plugin_id,
            name=remote.name,
            slug=remote.slug,
            version=remote.version,
            tested=remote.tested,
            requires=remote.requires,
            requires_php=remote.requires_php,
            author=remote.author,
            author_profile=remote.author_profile,
            download_link=remote.download_url,
            trunk=remote.download_url,
            last_updated=remote.last_updated,
            sections=dict(remote.sections),
            banners=dict(remote.banners),
            icons=dict(remote.icons),
            requires_plugins=list(remote.requires_plugins),
            has_update=has_update,
            new_version=remote.version if has_update else None,
            package=remote.download_url if has_update else None,
        )

    def to_dict(self) -> dict:
        """Host-facing mapping. ``new_version``/``package`` only when newer."""
        data = asdict(self)
        if not self.has_update:
            data.pop('new_version')
            data.pop('package')
        return data


@dataclass
class CatalogQuery:
    """A host request for full plugin details."""

    slug: str
    action: str = PLUGIN_INFORMATION

    @classmethod
    def from_args(cls, action: str, args: object) -> 'CatalogQuery':
        """Accept the host's args as a mapping or an object with ``slug``."""
        if isinstance(args, dict):
            slug = args.get('slug')
        else:
            slug = getattr(args, 'slug', None)
        return cls(slug=str(slug or ""), action=action or "")
