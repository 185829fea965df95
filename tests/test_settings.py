import json
import unittest

import pytest

from wplatest_updater.config.settings import UpdaterConfig, read_config_file
from wplatest_updater.core.errors import ConfigurationError


class ConfigValidationTests(unittest.TestCase):
    def test_missing_plugin_file(self) -> None:
        with self.assertRaises(ConfigurationError) as ctx:
            UpdaterConfig(api_base_url="https://api.example.com")
        self.assertEqual(ctx.exception.missing, ["plugin_file_path"])

    def test_missing_api_url(self) -> None:
        with self.assertRaises(ConfigurationError) as ctx:
            UpdaterConfig(plugin_file_path="my-plugin/my-plugin.php", api_base_url="   ")
        self.assertEqual(ctx.exception.missing, ["api_base_url"])

    def test_lists_every_missing_field(self) -> None:
        with self.assertRaises(ConfigurationError) as ctx:
            UpdaterConfig()
        self.assertEqual(ctx.exception.missing, ["plugin_file_path", "api_base_url"])
        self.assertIn("plugin_file_path", str(ctx.exception))
        self.assertIn("api_base_url", str(ctx.exception))

    def test_config_is_immutable(self) -> None:
        config = UpdaterConfig(plugin_file_path="a/a.php", api_base_url="https://x")
        with self.assertRaises(Exception):
            config.use_cache = True  # type: ignore[misc]


@pytest.mark.parametrize("path, plugins_dir, base, slug", [
    ("my-plugin/my-plugin.php", None, "my-plugin/my-plugin.php", "my-plugin"),
    ("/srv/wp/wp-content/plugins/my-plugin/my-plugin.php", "/srv/wp/wp-content/plugins",
     "my-plugin/my-plugin.php", "my-plugin"),
    ("/srv/wp/wp-content/plugins/my-plugin/my-plugin.php", None,
     "my-plugin/my-plugin.php", "my-plugin"),
    ("C:\\wp\\plugins\\Fancy Plugin\\fancy.php", "C:\\wp\\plugins",
     "Fancy Plugin/fancy.php", "Fancy Plugin"),
    ("/srv/wp/wp-content/plugins/hello.php", "/srv/wp/wp-content/plugins",
     "hello.php", "hello"),
])
def test_slug_is_directory_of_base(path, plugins_dir, base, slug):
    config = UpdaterConfig(plugin_file_path=path, api_base_url="https://x",
                           plugins_dir=plugins_dir)
    assert config.plugin_base == base
    assert config.plugin_slug == slug


def test_cache_key_derived_from_slug():
    config = UpdaterConfig(plugin_file_path="C:\\wp\\plugins\\Fancy Plugin\\fancy.php",
                           api_base_url="https://x")
    assert config.cache_key == "fancy-plugin-wplatest"


def test_values_are_trimmed():
    config = UpdaterConfig(plugin_file_path="a/a.php", api_base_url="  https://x/api ",
                           plugin_id=" plg_1 ", current_version=" ")
    assert config.api_base_url == "https://x/api"
    assert config.plugin_id == "plg_1"
    assert config.current_version is None


def test_from_mapping_accepts_option_names():
    config = UpdaterConfig.from_mapping({
        "file": "my-plugin/my-plugin.php",
        "api_url": "https://api.example.com",
        "id": "plg_9",
        "version": "2.1.0",
        "use_cache": True,
        "unknown": "ignored",
    })
    assert config.plugin_slug == "my-plugin"
    assert config.plugin_id == "plg_9"
    assert config.current_version == "2.1.0"
    assert config.use_cache is True
    assert config.secret is None
    assert config.telemetry_enabled is False


def test_load_from_json(tmp_path):
    path = tmp_path / "updater.json"
    path.write_text(json.dumps({
        "plugin_file_path": "my-plugin/my-plugin.php",
        "api_base_url": "https://api.example.com",
        "hostname": "api.example.com",
    }), encoding="utf-8")
    config = UpdaterConfig.load(str(path))
    assert config.hostname == "api.example.com"


def test_load_missing_required_key(tmp_path):
    path = tmp_path / "updater.json"
    path.write_text(json.dumps({"plugin_file_path": "my-plugin/my-plugin.php"}))
    with pytest.raises(ConfigurationError) as excinfo:
        UpdaterConfig.load(str(path))
    assert excinfo.value.missing == ["api_base_url"]


@pytest.mark.parametrize("content", ["not json", "[1, 2]"])
def test_read_config_file_rejects_bad_content(tmp_path, content):
    path = tmp_path / "updater.json"
    path.write_text(content)
    with pytest.raises(ConfigurationError):
        read_config_file(str(path))


def test_read_config_file_missing(tmp_path):
    with pytest.raises(ConfigurationError):
        read_config_file(str(tmp_path / "absent.json"))


def test_numeric_option_values_are_coerced():
    config = UpdaterConfig.from_mapping({
        "file": "my-plugin/my-plugin.php",
        "api_url": "https://x",
        "id": 123,
        "version": 1.2,
    })
    assert config.plugin_id == "123"
    assert config.current_version == "1.2"


def test_numeric_id_in_config_file(tmp_path):
    path = tmp_path / "updater.json"
    path.write_text(json.dumps({"file": "a/a.php", "api_url": "https://x", "id": 7}))
    assert UpdaterConfig.load(str(path)).plugin_id == "7"
