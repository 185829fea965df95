"""wplatest-updater — run one update check from the command line."""

import argparse
import json
import logging
import sys

from wplatest_updater.branding import UpdaterBranding
from wplatest_updater.config.settings import OPTION_ALIASES, UpdaterConfig, read_config_file
from wplatest_updater.core.cache import JsonFileTransientStore
from wplatest_updater.core.errors import ConfigurationError
from wplatest_updater.core.models import CatalogQuery
from wplatest_updater.core.resolver import UpdateResolver

# CLI flag -> config field
_FLAG_FIELDS = {
    'plugin_file': 'plugin_file_path',
    'api_url': 'api_base_url',
    'plugin_id': 'plugin_id',
    'current_version': 'current_version',
    'secret': 'secret',
    'site_url': 'site_url',
    'plugins_dir': 'plugins_dir',
}


def setup_logging(verbose: bool = False, log_file: str | None = None):
    """Configure logging to console and, optionally, a file."""
    handlers = [logging.StreamHandler()]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding='utf-8'))

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format='%(asctime)s [%(levelname)s] %(name)s: %(message)s',
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=UpdaterBranding.APP_NAME,
        description="Check the WPLatest update API for a newer plugin version.",
    )
    parser.add_argument('--config', help="JSON file with updater settings")
    parser.add_argument('--plugin-file', help="Plugin main file")
    parser.add_argument('--api-url', help="Update API endpoint")
    parser.add_argument('--plugin-id', help="Plugin ID assigned by WPLatest")
    parser.add_argument('--current-version', help="Installed version (default: plugin header)")
    parser.add_argument('--secret', help="Bearer token for the API")
    parser.add_argument('--site-url', help="Referrer sent with the query")
    parser.add_argument('--plugins-dir', help="Host plugins directory")
    parser.add_argument('--telemetry', action='store_true', default=None,
                        help="Send anonymous host environment facts")
    parser.add_argument('--cache-file', help="Cache descriptors in this JSON file")
    parser.add_argument('--info', action='store_true',
                        help="Print the full plugin descriptor instead of an update check")
    parser.add_argument('--verbose', '-v', action='store_true')
    parser.add_argument('--log-file')
    parser.add_argument('--version', action='version', version=UpdaterBranding.VERSION)
    return parser


def load_config(args) -> UpdaterConfig:
    """Merge the optional config file with CLI flags (flags win)."""
    data = {}
    if args.config:
        for key, value in read_config_file(args.config).items():
            data[OPTION_ALIASES.get(key, key)] = value

    for flag, name in _FLAG_FIELDS.items():
        value = getattr(args, flag)
        if value is not None:
            data[name] = value
    if args.telemetry is not None:
        data['telemetry_enabled'] = args.telemetry
    if args.cache_file:
        data['use_cache'] = True
    return UpdaterConfig.from_mapping(data)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose, args.log_file)
    logger = logging.getLogger(__name__)

    try:
        config = load_config(args)
    except ConfigurationError as e:
        logger.error("%s", e)
        return 2

    store = JsonFileTransientStore(args.cache_file) if args.cache_file else None
    resolver = UpdateResolver(config, store=store)

    if args.info:
        remote = resolver.describe_for_catalog(CatalogQuery(slug=config.plugin_slug))
        if remote is None:
            print("No plugin information available.")
        else:
            print(json.dumps(remote.to_json(), indent=2))
        return 0

    result = resolver.resolve_update(config.plugin_slug)
    if result is None:
        print(f"{config.plugin_slug} is up to date.")
    else:
        print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == '__main__':
    sys.exit(main())
