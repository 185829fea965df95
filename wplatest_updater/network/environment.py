"""Host environment facts — anonymous telemetry and referrer guess."""

import locale
import logging
import platform
import socket
import time
from dataclasses import dataclass

logger = logging.getLogger(__name__)


@dataclass
class HostEnvironment:
    """Anonymous facts about the host sent with update queries."""
    platform_version: str = ""     # Host application version
    runtime_version: str = ""
    max_upload_size: int = 0       # bytes
    timezone: str = ""
    locale: str = ""

    @staticmethod
    def detect(platform_version: str = "", max_upload_size: int = 0) -> 'HostEnvironment':
        """Fill in what the running process can tell about itself."""
        return HostEnvironment(
            platform_version=platform_version,
            runtime_version=platform.python_version(),
            max_upload_size=max_upload_size,
            timezone=HostEnvironment._detect_timezone(),
            locale=HostEnvironment._detect_locale(),
        )

    @staticmethod
    def _detect_timezone() -> str:
        try:
            return time.tzname[time.localtime().tm_isdst > 0]
        except Exception as e:
            logger.warning("Timezone detection failed: %s", e)
            return ""

    @staticmethod
    def _detect_locale() -> str:
        try:
            lang, _encoding = locale.getlocale()
        except ValueError as e:
            logger.warning("Locale detection failed: %s", e)
            return ""
        return lang or ""

    def telemetry_payload(self) -> dict:
        """Wire mapping expected by the update API."""
        return {
            'wp_version': self.platform_version,
            'php_version': self.runtime_version,
            'wp_max_upload': self.max_upload_size,
            'wp_default_timezone': self.timezone,
            'wp_lang': self.locale,
        }


def guess_site_url(explicit: str | None = None) -> str:
    """Return the host's public URL, best effort.

    Uses ``explicit`` when given, otherwise the machine's FQDN.
    """
    if explicit and explicit.strip():
        return explicit.strip().rstrip('/')
    try:
        host = socket.getfqdn()
    except OSError as e:
        logger.warning("Hostname lookup failed: %s", e)
        host = ""
    return f"http://{host or 'localhost'}"
