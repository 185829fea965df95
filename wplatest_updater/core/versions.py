"""Version ordering for update decisions.

Versions are compared with packaging's PEP 440 rules after dropping an
optional leading "v", so "1.10.0" > "1.9.0" and "1.2.0rc1" < "1.2.0".
"""

import logging

from packaging.version import Version, InvalidVersion

logger = logging.getLogger(__name__)


def parse_version(value: str | None) -> Version | None:
    """Return a Version for ``value``, or None if empty or unparsable."""
    text = (value or "").strip().lstrip('vV')
    if not text:
        return None
    try:
        return Version(text)
    except InvalidVersion:
        return None


def is_newer(current: str | None, candidate: str | None) -> bool:
    """Return True if ``candidate`` is strictly newer than ``current``.

    An empty current version counts as older than any valid candidate.
    An unparsable candidate is never newer.
    """
    remote = parse_version(candidate)
    if remote is None:
        if (candidate or "").strip():
            logger.warning("Cannot parse remote version: %s", candidate)
        return False

    if not (current or "").strip():
        return True

    installed = parse_version(current)
    if installed is None:
        logger.error("Cannot parse current version: %s", current)
        return False

    return remote > installed
