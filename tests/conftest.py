import io
import json
from urllib.error import HTTPError

import pytest

from wplatest_updater.config.settings import UpdaterConfig
from wplatest_updater.core.cache import MemoryTransientStore


REMOTE_BODY = {
    "name": "My Plugin",
    "slug": "my-plugin",
    "version": "1.2.0",
    "tested": "6.5",
    "requires": "6.0",
    "requires_php": "8.0",
    "author": "Acme",
    "author_profile": "https://example.com/acme",
    "download_url": "https://example.com/my-plugin-1.2.0.zip",
    "last_updated": "2024-05-01 10:00:00",
    "sections": {"description": "Does things", "changelog": "<ul><li>Fix</li></ul>"},
    "banners": {"low": "https://example.com/banner-772x250.png"},
}


class FakeResponse:
    """Minimal stand-in for the object returned by urlopen()."""

    def __init__(self, body, status=200):
        if isinstance(body, (dict, list)):
            body = json.dumps(body)
        if isinstance(body, str):
            body = body.encode('utf-8')
        self.status = status
        self._body = body

    def read(self):
        return self._body

    def getcode(self):
        return self.status

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False


class FakeOpener:
    """Records requests and replays queued responses or errors."""

    def __init__(self, *responses):
        self.responses = list(responses)
        self.requests = []

    def __call__(self, req, timeout=None):
        self.requests.append(req)
        item = self.responses.pop(0) if len(self.responses) > 1 else self.responses[0]
        if isinstance(item, Exception):
            raise item
        return item

    @property
    def calls(self):
        return len(self.requests)


def http_error(code):
    return HTTPError("https://api.example.com/update", code, "Error", {}, io.BytesIO(b""))


@pytest.fixture
def remote_body():
    return json.loads(json.dumps(REMOTE_BODY))


@pytest.fixture
def opener(monkeypatch, remote_body):
    fake = FakeOpener(FakeResponse(remote_body))
    monkeypatch.setattr('wplatest_updater.core.resolver.urlopen', fake)
    return fake


@pytest.fixture
def clock():
    class Clock:
        now = 1_700_000_000.0

        def __call__(self):
            return self.now

    return Clock()


@pytest.fixture
def store(clock):
    return MemoryTransientStore(clock=clock)


@pytest.fixture
def make_config():
    def _make(**overrides):
        options = {
            "plugin_file_path": "/var/www/wp-content/plugins/my-plugin/my-plugin.php",
            "plugins_dir": "/var/www/wp-content/plugins",
            "api_base_url": "https://api.example.com/update",
            "plugin_id": "plg_123",
            "current_version": "1.0.0",
            "site_url": "https://blog.example.org",
        }
        options.update(overrides)
        return UpdaterConfig(**options)

    return _make
