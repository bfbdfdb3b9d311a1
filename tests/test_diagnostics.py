from typer.testing import CliRunner

import main
from tools import diagnostics
from tools.app_shell.api_key_manager import APIKeyManager
from tools.app_shell.config_loader import TranslationServiceType
from tools.app_shell.credential_store import MemoryCredentialStore
from tools.app_shell.developer_config import DeveloperConfigManager

runner = CliRunner()

IDENTIFIERS = {
    TranslationServiceType.GOOGLE: "dev.google",
    TranslationServiceType.QIANWEN: "dev.qianwen",
}


def make_manager(developer_keys):
    developer = DeveloperConfigManager(store=MemoryCredentialStore(), developer_keys=developer_keys,
                                       identifiers=IDENTIFIERS)
    return APIKeyManager(developer_config=developer, legacy_identifiers={})


def test_placeholder_detection():
    placeholder = diagnostics.get_placeholder_keys()[TranslationServiceType.QIANWEN]
    assert diagnostics.is_placeholder_key(TranslationServiceType.QIANWEN, placeholder)
    assert not diagnostics.is_placeholder_key(TranslationServiceType.QIANWEN, "sk-real")


def test_key_report_with_placeholders():
    lines = diagnostics.build_key_report(make_manager(diagnostics.get_placeholder_keys()))
    assert "  This is a PLACEHOLDER key (not real)" in lines
    assert lines[-1].startswith("Translation expected to fail")


def test_key_report_ready():
    lines = diagnostics.build_key_report(make_manager({TranslationServiceType.GOOGLE: "AIza" + "x" * 35}))
    assert "  Qianwen key: not found" in lines
    assert "  Google Translate key: found (39 chars)" in lines
    assert lines[-1] == "Translation ready with Google Translate"


def test_key_report_without_keys():
    lines = diagnostics.build_key_report(make_manager({}))
    assert lines[-1] == "Cannot test translation: no API key"


def test_diagnostics_run_skip_detection():
    result = runner.invoke(main.app, ["diagnostics", "run", "--skip-detection"])
    assert result.exit_code == 0
    assert "Developer Configuration" in result.output
    assert "API Key Management" in result.output


def test_diagnostics_run_detects_region(fake_connectivity):
    result = runner.invoke(main.app, ["diagnostics", "run"])
    assert result.exit_code == 0
    assert len(fake_connectivity.calls) == 1
    assert "China Mainland" in result.output


def test_diagnostics_keys_reports_placeholders():
    result = runner.invoke(main.app, ["diagnostics", "keys"])
    assert result.exit_code == 0
    assert "PLACEHOLDER" in result.output


def test_bundled_keys_not_marked_as_placeholders(monkeypatch):
    monkeypatch.setattr(diagnostics, "load_config", lambda: {"developer_keys_are_placeholders": False})
    bundled = diagnostics.get_developer_keys()[TranslationServiceType.QIANWEN]

    assert diagnostics.get_placeholder_keys() == {}
    assert not diagnostics.is_placeholder_key(TranslationServiceType.QIANWEN, bundled)
