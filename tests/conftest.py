import pytest
from fastapi.testclient import TestClient

from config import AppConfig
from main import create_app


CONFIGURED_ENV = {
    "COMPLIANCE_APP_ID": "zdhc-test",
    "DATABRICKS_HOST": "https://adb-0000000000000000.0.azuredatabricks.net/",
    "DATABRICKS_HTTP_PATH": "/sql/1.0/warehouses/test",
    "DATABRICKS_CATALOG": "test_catalog",
    "DATABRICKS_CLIENT_ID": "client-id",
    "DATABRICKS_CLIENT_SECRET": "client-secret",
}


class InMemoryDocumentStore:
    configured = True

    def __init__(self):
        self.documents = {}

    def ensure_table(self):
        pass

    def save(self, user_id, document, slot="latest"):
        self.documents[(user_id, slot)] = document
        return document

    def load(self, user_id, slot="latest"):
        return self.documents.get((user_id, slot))


class FailingDocumentStore(InMemoryDocumentStore):
    def save(self, user_id, document, slot="latest"):
        raise ConnectionError("warehouse unavailable")

    def load(self, user_id, slot="latest"):
        raise ConnectionError("warehouse unavailable")


class UnconfiguredDocumentStore(InMemoryDocumentStore):
    configured = False


@pytest.fixture
def configured_env():
    return dict(CONFIGURED_ENV)


@pytest.fixture
def app_config(configured_env):
    return AppConfig.from_env(configured_env)


@pytest.fixture
def document_store():
    return InMemoryDocumentStore()


def _client(config, store, tmp_path):
    app = create_app(config=config, storage=store, static_dir=tmp_path / "no-static")
    return TestClient(app)


@pytest.fixture
def client(app_config, document_store, tmp_path):
    return _client(app_config, document_store, tmp_path)


@pytest.fixture
def failing_client(app_config, tmp_path):
    return _client(app_config, FailingDocumentStore(), tmp_path)


@pytest.fixture
def unconfigured_client(tmp_path):
    return _client(AppConfig(), UnconfiguredDocumentStore(), tmp_path)


@pytest.fixture
def session_body():
    """Textile / Foundational session with one failing metal and an in-range pH."""
    return {
        "industry": "T",
        "complianceTier": "F",
        "dischargeType": "Direct",
        "inputs": {"cadmium": "0.02", "ph": "7.5", "cod": "", "np_sludge": "0.1"},
    }
