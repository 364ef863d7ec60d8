import pytest
from starlette.testclient import TestClient
from typer.testing import CliRunner

from codespace_api.config import Settings
from codespace_api.main import app
from codespace_api.services.accounts import AccountWorkflow, get_workflow
from tests.provisioner_utils import FakeProvisioner

BASE_DIR = "/srv/codespaces"


@pytest.fixture
def settings() -> Settings:
    return Settings(base_dir=BASE_DIR, key_bits=2048, command_timeout=5)


@pytest.fixture
def fake_provisioner() -> FakeProvisioner:
    return FakeProvisioner()


@pytest.fixture
def workflow(fake_provisioner, settings) -> AccountWorkflow:
    return AccountWorkflow(provisioner=fake_provisioner, settings=settings)


@pytest.fixture
def client(workflow):
    app.dependency_overrides[get_workflow] = lambda: workflow

    with TestClient(app) as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def cli_runner(fake_provisioner, settings, monkeypatch):
    import codespace_api.cli as cli
    import codespace_api.provisioner as provisioner_module
    import codespace_api.services.accounts as accounts_module

    monkeypatch.setattr(provisioner_module, "provisioner", fake_provisioner)
    monkeypatch.setattr(accounts_module, "get_settings", lambda: settings)

    return CliRunner(), cli.app
