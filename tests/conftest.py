import sys

import pytest
import requests
from loguru import logger

from tools.app_shell import api_key_manager, developer_config


class FakeResponse:
    def __init__(self, status_code=200, payload=None):
        self.status_code = status_code
        self._payload = payload

    def json(self):
        if self._payload is None:
            raise ValueError("No JSON object could be decoded")
        return self._payload

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")


@pytest.fixture(autouse=True)
def app_home(tmp_path, monkeypatch):
    home = tmp_path / "app_home"
    monkeypatch.setenv("APP_SHELL_HOME", str(home))
    monkeypatch.setattr(developer_config, "_developer_config_manager", None)
    monkeypatch.setattr(api_key_manager, "_api_key_manager", None)
    return home


@pytest.fixture(autouse=True)
def no_network(monkeypatch):
    def refuse(*args, **kwargs):
        raise requests.ConnectionError("network disabled in tests")

    monkeypatch.setattr(requests, "get", refuse)


@pytest.fixture
def fake_connectivity(monkeypatch):
    """Replace the mainland connectivity check used by NetworkRegionManager; returns the call log."""
    calls = []

    def fake(report=None):
        calls.append(report)
        if report is not None:
            report("China connectivity test: 1/3 domains reachable")
        return fake.result

    fake.result = True
    fake.calls = calls
    monkeypatch.setattr("tools.app_shell.region_manager.check_china_mainland_connectivity", fake)
    return fake


@pytest.fixture
def make_response():
    return FakeResponse


@pytest.fixture(autouse=True)
def restore_logging():
    yield
    # main.py's callback swaps sinks to the CliRunner's stderr
    logger.remove()
    logger.add(sys.stderr)
