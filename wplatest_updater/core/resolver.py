"""Update resolver — queries the WPLatest API and answers host update hooks.

Architecture:
  UpdateResolver — pure Python logic, blocking methods, one instance per plugin
  TransientStore — where fetched descriptors are cached (see core/cache.py)
  HookRegistry   — host-owned subscription table (see host/hooks.py)

Nothing on the remote path is allowed to raise into the host: a broken or
unreachable API degrades to "no update".
"""

import json
import logging
from http.client import HTTPException
from urllib.error import HTTPError, URLError
from urllib.parse import parse_qsl, quote, urlencode, urlsplit, urlunsplit
from urllib.request import Request, urlopen

from wplatest_updater.branding import UpdaterBranding
from wplatest_updater.config.settings import UpdaterConfig
from wplatest_updater.core.cache import CACHE_TTL, MemoryTransientStore, TransientStore
from wplatest_updater.core.errors import FetchError, VersionMissing
from wplatest_updater.core.models import (
    PLUGIN_INFORMATION, CatalogQuery, RemoteDescriptor, UpdateResult,
)
from wplatest_updater.core.plugin_data import read_plugin_version
from wplatest_updater.core.versions import is_newer
from wplatest_updater.network.environment import HostEnvironment, guess_site_url

logger = logging.getLogger(__name__)

# Same as the host HTTP layer's default; not configurable
REQUEST_TIMEOUT = 5

# Reserved for server-side extensions, sent verbatim
REQUEST_META = {'foo': 'bar'}

# Host hook names
HOOK_PLUGINS_API = 'plugins_api'
HOOK_UPDATE_TRANSIENT = 'site_transient_update_plugins'
HOOK_UPGRADER_COMPLETE = 'upgrader_process_complete'
HOOK_UPDATE_PLUGINS = 'update_plugins_{hostname}'


class UpdateResolver:
    """Resolves available updates for one plugin.

    All methods are synchronous (blocking) and run inside a host callback.
    At most one HTTP request is made per call; none when the cache is fresh.
    """

    def __init__(self, config: UpdaterConfig,
                 store: TransientStore | None = None,
                 hooks=None,
                 environment: HostEnvironment | None = None):
        self.config = config
        self.store = store if store is not None else MemoryTransientStore()
        self.environment = environment
        self.version = config.current_version or read_plugin_version(config.plugin_file_path)
        if self.version is None:
            logger.info("No version known for %s; any remote version counts as newer",
                        config.plugin_base)

        if hooks is not None:
            self.register(hooks)

    @property
    def plugin_slug(self) -> str:
        return self.config.plugin_slug

    @property
    def plugin_base(self) -> str:
        return self.config.plugin_base

    def register(self, hooks):
        """Subscribe this resolver's callbacks on the host registry."""
        hooks.add_filter(HOOK_PLUGINS_API, self.info, 20)
        hooks.add_filter(HOOK_UPDATE_TRANSIENT, self.filter_update_transient)
        hooks.add_action(HOOK_UPGRADER_COMPLETE, self.on_update_completed)
        if self.config.hostname:
            hooks.add_filter(
                HOOK_UPDATE_PLUGINS.format(hostname=self.config.hostname),
                self.check_update,
            )

    # ── Fetch ────────────────────────────────────────────────────────

    def request_url(self) -> str:
        """Build the API URL with identity, referrer, telemetry and meta."""
        telemetry = {}
        if self.config.telemetry_enabled:
            env = self.environment or HostEnvironment.detect()
            telemetry = env.telemetry_payload()

        params = [
            ('id', self.config.plugin_id),
            ('slug', self.plugin_slug),
            ('version', self.version or ""),
            ('referrer', guess_site_url(self.config.site_url)),
            ('telemetry', json.dumps(telemetry)),
            ('meta', json.dumps(REQUEST_META)),
        ]

        scheme, netloc, path, query, fragment = urlsplit(self.config.api_base_url)
        names = {name for name, _ in params}
        existing = [(k, v) for k, v in parse_qsl(query, keep_blank_values=True)
                    if k not in names]
        query = urlencode(existing + params, quote_via=quote)
        return urlunsplit((scheme, netloc, path, query, fragment))

    def request_headers(self) -> dict:
        headers = {
            'User-Agent': UpdaterBranding.user_agent(),
            'Accept': 'application/json',
        }
        if self.config.secret:
            headers['Authorization'] = f"Bearer {self.config.secret}"
        return headers

    def fetch(self) -> RemoteDescriptor:
        """Query the update API once. Raises FetchError on any failure."""
        url = self.config.api_base_url
        try:
            url = self.request_url()
            req = Request(url, headers=self.request_headers())
            with urlopen(req, timeout=REQUEST_TIMEOUT) as resp:
                status = getattr(resp, 'status', None) or resp.getcode()
                body = resp.read()
        except HTTPError as e:
            raise FetchError(f"HTTP {e.code}: {e.reason}", status=e.code, url=url) from e
        except (URLError, OSError, HTTPException, ValueError) as e:
            raise FetchError(f"Request failed: {e}", url=url) from e

        if status != 200:
            raise FetchError(f"Unexpected HTTP status {status}", status=status, url=url)

        try:
            data = json.loads(body.decode('utf-8'))
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise FetchError(f"Undecodable response body: {e}", status=status, url=url) from e

        if not isinstance(data, dict):
            raise FetchError("Response body is not a JSON object", status=status, url=url)

        return RemoteDescriptor.from_json(data)

    def request(self) -> RemoteDescriptor | None:
        """Return the descriptor from cache or a live fetch; None on failure."""
        if self.config.use_cache:
            cached = self._read_cache()
            if cached is not None:
                return cached

        try:
            remote = self.fetch()
        except FetchError as e:
            logger.warning("%s API request failed for %s: %s",
                           UpdaterBranding.SERVICE_NAME, self.plugin_slug, e)
            return None

        if self.config.use_cache:
            self.store.set(self.config.cache_key, json.dumps(remote.to_json()), CACHE_TTL)
        return remote

    def _read_cache(self) -> RemoteDescriptor | None:
        raw = self.store.get(self.config.cache_key)
        if raw is None:
            return None
        try:
            data = json.loads(raw)
        except (TypeError, json.JSONDecodeError):
            logger.warning("Dropping undecodable cache entry %s", self.config.cache_key)
            self.store.delete(self.config.cache_key)
            return None
        logger.debug("Cache hit for %s", self.config.cache_key)
        return RemoteDescriptor.from_json(data)

    # ── Resolve ──────────────────────────────────────────────────────

    def resolve_update(self, for_slug: str, current_version: str | None = None,
                       existing=None):
        """Return an UpdateResult when a newer version exists, else None.

        Calls for another plugin's slug return ``existing`` untouched so
        several resolvers can share one hook.
        """
        if for_slug != self.plugin_slug:
            return existing

        remote = self.request()
        if remote is None:
            return None

        try:
            self._require_identity(remote)
        except VersionMissing as e:
            logger.debug("No update for %s: %s", self.plugin_slug, e)
            return None

        installed = current_version if current_version is not None else self.version
        if not is_newer(installed, remote.version):
            return None

        logger.info("Update available for %s: %s -> %s",
                    self.plugin_slug, installed or "unknown", remote.version)
        return UpdateResult.from_descriptor(remote, self.plugin_base, self.config.plugin_id)

    def describe_for_catalog(self, query: CatalogQuery, result=None):
        """Return the full descriptor for a details request, else ``result``."""
        if query.action != PLUGIN_INFORMATION or query.slug != self.plugin_slug:
            return result

        remote = self.request()
        if remote is None or not remote.is_complete:
            return result
        return remote

    def purge_cache_on_completion(self, options) -> bool:
        """Drop the cached descriptor after this plugin was updated."""
        if not self.config.use_cache or not isinstance(options, dict):
            return False
        if options.get('action') != 'update' or options.get('type') != 'plugin':
            return False
        plugins = options.get('plugins')
        if not isinstance(plugins, (list, tuple)) or self.plugin_base not in plugins:
            return False

        purged = self.store.delete(self.config.cache_key)
        logger.info("Purged update cache for %s", self.plugin_slug)
        return purged

    @staticmethod
    def _require_identity(remote: RemoteDescriptor):
        if not remote.is_complete:
            raise VersionMissing(
                f"descriptor lacks identity fields "
                f"(name={remote.name!r}, slug={remote.slug!r}, version={remote.version!r})"
            )

    # ── Host callbacks ───────────────────────────────────────────────

    def check_update(self, existing, plugin_data=None, plugin_file=None, locales=None):
        """``update_plugins_{hostname}`` filter.

        A non-empty ``existing`` means another subscriber already decided.
        """
        if existing:
            return existing
        if plugin_file != self.plugin_base:
            return existing

        current = None
        if isinstance(plugin_data, dict) and plugin_data.get('Version'):
            current = str(plugin_data['Version'])

        result = self.resolve_update(self.plugin_slug, current)
        if result is None:
            return existing
        return result.to_dict()

    def filter_update_transient(self, transient):
        """``site_transient_update_plugins`` filter.

        Records this plugin under ``response`` when newer, or under
        ``no_update`` when the remote version is current.
        """
        checked = _slot(transient, 'checked')
        if not checked:
            return transient

        remote = self.request()
        if remote is None or not remote.is_complete:
            return transient

        if is_newer(self.version, remote.version):
            result = UpdateResult.from_descriptor(remote, self.plugin_base, self.config.plugin_id)
            _bucket(transient, 'response')[self.plugin_base] = result.to_dict()
        else:
            result = UpdateResult.from_descriptor(
                remote, self.plugin_base, self.config.plugin_id, has_update=False)
            _bucket(transient, 'no_update')[self.plugin_base] = result.to_dict()
        return transient

    def info(self, result, action, args):
        """``plugins_api`` filter."""
        return self.describe_for_catalog(CatalogQuery.from_args(action, args), result)

    def on_update_completed(self, upgrader, options):
        """``upgrader_process_complete`` action."""
        self.purge_cache_on_completion(options)


def _slot(record, name):
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def _bucket(record, name) -> dict:
    """Return the dict stored at ``name`` on ``record``, creating it if needed."""
    value = _slot(record, name)
    if not isinstance(value, dict):
        value = {}
        if isinstance(record, dict):
            record[name] = value
        else:
            setattr(record, name, value)
    return value
