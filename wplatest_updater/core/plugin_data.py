"""Plugin identity helpers — base name, slug and header version.

The host identifies a plugin by its base name ("my-plugin/my-plugin.php"),
a path relative to the plugins directory. The slug is the directory part.
"""

import logging
import os
import re

logger = logging.getLogger(__name__)

# The host only scans the start of the main file for header fields
HEADER_READ_BYTES = 8192

_VERSION_HEADER = re.compile(
    r'^(?:[ \t]*<\?php)?[ \t/*#@]*Version:(.*)$', re.IGNORECASE | re.MULTILINE
)
_HEADER_TAIL = re.compile(r'\s*(?:\*/|\?>).*')


def _normalize(path: str) -> str:
    path = path.replace('\\', '/')
    path = re.sub(r'/+', '/', path)
    return path


def plugin_basename(plugin_file: str, plugins_dir: str | None = None) -> str:
    """Return the plugin's path relative to the plugins directory.

    Without a known plugins directory (or when the file lies outside it)
    the last two path components are used, matching the usual
    "<dir>/<main-file>.php" layout.
    """
    file_path = _normalize(plugin_file.strip())
    if plugins_dir:
        root = _normalize(plugins_dir.strip()).rstrip('/') + '/'
        if file_path.startswith(root):
            return file_path[len(root):].lstrip('/')

    parts = [p for p in file_path.split('/') if p]
    return '/'.join(parts[-2:])


def plugin_slug(plugin_base: str) -> str:
    """Return the directory component of ``plugin_base``.

    Single-file plugins have no directory; their file stem is used.
    """
    directory = os.path.dirname(plugin_base)
    if directory:
        return directory
    return os.path.splitext(plugin_base)[0]


def read_plugin_version(plugin_file: str) -> str | None:
    """Read the ``Version:`` header from the plugin's main file.

    Best-effort: returns None when the file is missing, unreadable or has
    no version header.
    """
    try:
        with open(plugin_file, 'r', encoding='utf-8', errors='replace') as f:
            head = f.read(HEADER_READ_BYTES)
    except OSError as e:
        logger.debug("Cannot read plugin header from %s: %s", plugin_file, e)
        return None

    match = _VERSION_HEADER.search(head)
    if not match:
        return None
    version = _HEADER_TAIL.sub('', match.group(1)).strip()
    return version or None
