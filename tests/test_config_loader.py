import pytest
from loguru import logger

from tools.app_shell import config_loader
from tools.app_shell.config_loader import (
    DEFAULT_CONFIG,
    ConfigManager,
    LocationAuthorization,
    TranslationServiceType,
    get_config_path,
    get_developer_keys,
    get_location_authorization,
    get_settings_path,
    get_settings_section,
    load_config,
    load_settings,
    reload_config,
    update_settings,
)


@pytest.fixture
def bundled_config(tmp_path, monkeypatch):
    """Point the config manager at a temporary file; returns a writer for its content."""
    path = tmp_path / "app_shell.yaml"
    original = ConfigManager.get_config_path
    monkeypatch.setattr(ConfigManager, "get_config_path", lambda self: path)

    def write(text):
        path.write_text(text, encoding="utf-8")
        return reload_config()

    yield write
    monkeypatch.setattr(ConfigManager, "get_config_path", original)
    reload_config()


@pytest.fixture
def log_messages():
    messages = []
    handler_id = logger.add(lambda message: messages.append(message.record["message"]),
                            level="WARNING")
    yield messages
    logger.remove(handler_id)


def test_missing_config_file_uses_defaults(tmp_path, monkeypatch, log_messages):
    original = config_loader.__file__
    monkeypatch.setattr(config_loader, "__file__", str(tmp_path / "app_shell" / "config_loader.py"))
    try:
        assert get_config_path() is None
        assert reload_config() == DEFAULT_CONFIG
    finally:
        monkeypatch.setattr(config_loader, "__file__", original)
        reload_config()
    assert any("No app_shell.yaml found" in m for m in log_messages)


def test_broken_config_file_uses_defaults(bundled_config, log_messages):
    assert bundled_config("region: [unclosed\n") == DEFAULT_CONFIG
    assert any("Error loading config" in m for m in log_messages)


def test_non_mapping_config_file_uses_defaults(bundled_config, log_messages):
    assert bundled_config("- just\n- a list\n") == DEFAULT_CONFIG
    assert any("is not a mapping" in m for m in log_messages)


def test_partial_config_file_is_merged(bundled_config):
    config = bundled_config("region:\n  probe_domains: [example.cn]\ngeocoder:\n")

    assert config["region"]["probe_domains"] == ["example.cn"]
    assert config["region"]["http_timeout"] == DEFAULT_CONFIG["region"]["http_timeout"]
    assert config["geocoder"] == DEFAULT_CONFIG["geocoder"]
    assert config["identifiers"] == DEFAULT_CONFIG["identifiers"]


def test_reload_config_rereads_file(bundled_config):
    bundled_config("region:\n  min_successes: 2\n")
    assert load_config()["region"]["min_successes"] == 2

    bundled_config("region:\n  min_successes: 3\n")
    assert load_config()["region"]["min_successes"] == 3


def test_developer_keys_ignore_unknown_services(bundled_config):
    bundled_config("developer_keys:\n  google: AIza-test\n  bing: nope\n  qianwen:\n")
    assert get_developer_keys() == {TranslationServiceType.GOOGLE: "AIza-test"}


def test_developer_keys_must_be_mapping(bundled_config):
    bundled_config("developer_keys:\n  - AIza-test\n")
    assert get_developer_keys() == {}


def test_bundled_config_is_loaded():
    config = load_config()
    assert config["app"]["version"] == "1.5.0 - Phase 1"
    assert config["developer_keys_are_placeholders"] is True


def test_settings_missing_file():
    assert load_settings() == {}


@pytest.mark.parametrize("text", ["- just a list\n", "plain text\n", "location: [unclosed\n"])
def test_malformed_settings_are_ignored(text):
    get_settings_path().parent.mkdir(parents=True, exist_ok=True)
    get_settings_path().write_text(text, encoding="utf-8")

    assert load_settings() == {}
    assert get_settings_section("location") == {}
    assert get_location_authorization() == LocationAuthorization.NOT_DETERMINED


def test_null_and_scalar_sections():
    get_settings_path().parent.mkdir(parents=True, exist_ok=True)
    get_settings_path().write_text("location:\nregion: 5\nlanguage: English\n", encoding="utf-8")

    assert get_settings_section("location") == {}
    assert get_settings_section("region") == {}
    assert load_settings()["language"] == "English"


def test_invalid_authorization_value():
    update_settings({"location": {"authorization": "sometimes"}})
    assert get_location_authorization() == LocationAuthorization.NOT_DETERMINED


def test_update_settings_deep_merges():
    assert update_settings({"language": "Chinese", "location": {"latitude": 31.2}})
    assert update_settings({"location": {"longitude": 121.5}})

    settings = load_settings()
    assert settings["language"] == "Chinese"
    assert settings["location"] == {"latitude": 31.2, "longitude": 121.5}


def test_update_settings_replaces_malformed_file():
    get_settings_path().parent.mkdir(parents=True, exist_ok=True)
    get_settings_path().write_text("- just a list\n", encoding="utf-8")

    assert update_settings({"location": {"authorization": "denied"}})
    assert get_location_authorization() == LocationAuthorization.DENIED


def test_update_settings_unwritable_home(tmp_path, monkeypatch, log_messages):
    blocker = tmp_path / "not_a_directory"
    blocker.write_text("", encoding="utf-8")
    monkeypatch.setenv("APP_SHELL_HOME", str(blocker))

    assert update_settings({"language": "English"}) is False
    assert any("Error updating settings" in m for m in log_messages)
