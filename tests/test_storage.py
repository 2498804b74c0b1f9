"""DatabricksDocumentStore against a fake DB-API connection."""
import pytest
from fastapi.testclient import TestClient

from config import AppConfig
from main import create_app
from services.storage import (
    CorruptDocumentError,
    DatabricksDocumentStore,
    StorageNotConfiguredError,
    get_connection,
)


COLUMNS = ["id", "app_id", "user_id", "slot", "document", "updated_at"]


class FakeDatabase:
    def __init__(self):
        self.rows = {}
        self.statements = []

    def connect(self, config):
        return FakeConnection(self)


class FakeConnection:
    def __init__(self, db):
        self.db = db

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def cursor(self):
        return FakeCursor(self.db)


class FakeCursor:
    def __init__(self, db):
        self.db = db
        self.description = None
        self._row = None

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        return False

    def execute(self, sql, params=()):
        self.db.statements.append(sql)
        verb = sql.split()[0].upper()
        if verb == "SELECT":
            row = self.db.rows.get(tuple(params))
            self.description = [(c,) for c in COLUMNS]
            self._row = None if row is None else tuple(row[c] for c in COLUMNS)
        elif verb == "MERGE":
            row = dict(zip(COLUMNS, params))
            key = (row["app_id"], row["user_id"], row["slot"])
            if key in self.db.rows:
                self.db.rows[key].update(document=row["document"], updated_at=row["updated_at"])
            else:
                self.db.rows[key] = row

    def fetchone(self):
        return self._row


@pytest.fixture
def fake_db():
    return FakeDatabase()


@pytest.fixture
def store(fake_db, app_config):
    return DatabricksDocumentStore(app_config, connection_factory=fake_db.connect)


class TestDocumentStore:
    def test_load_missing_document(self, store):
        assert store.load("user-1") is None

    def test_save_upserts_with_single_merge(self, store, fake_db):
        store.save("user-1", {"inputs": {"cod": "100"}, "industry": "T"})
        first_id = fake_db.rows[("zdhc-test", "user-1", "latest")]["id"]
        store.save("user-1", {"inputs": {"cod": "90"}, "industry": "L"})

        assert len(fake_db.rows) == 1
        assert fake_db.rows[("zdhc-test", "user-1", "latest")]["id"] == first_id
        writes = [s for s in fake_db.statements if not s.startswith("SELECT")]
        assert len(writes) == 2
        assert all(s.startswith("MERGE INTO test_catalog.compliance_checker.compliance_documents") for s in writes)
        assert store.load("user-1") == {"inputs": {"cod": "90"}, "industry": "L"}

    def test_documents_are_scoped_by_user_and_app(self, store, fake_db):
        store.save("user-1", {"inputs": {"np": "1"}})
        store.save("user-2", {"inputs": {"np": "2"}})
        assert store.load("user-1") == {"inputs": {"np": "1"}}
        assert store.load("user-2") == {"inputs": {"np": "2"}}
        assert {key[0] for key in fake_db.rows} == {"zdhc-test"}
        assert {key[2] for key in fake_db.rows} == {"latest"}

    def test_table_name_uses_catalog_and_schema(self, store, fake_db):
        store.ensure_table()
        assert "test_catalog.compliance_checker.compliance_documents" in fake_db.statements[0]

    def test_corrupt_document_raises(self, store, fake_db):
        store.save("user-1", {"inputs": {}})
        fake_db.rows[("zdhc-test", "user-1", "latest")]["document"] = "{not json"
        with pytest.raises(CorruptDocumentError):
            store.load("user-1")


class TestConnection:
    def test_unconfigured_connection_raises(self):
        with pytest.raises(StorageNotConfiguredError):
            get_connection(AppConfig())

    def test_store_reports_configuration(self, app_config):
        assert DatabricksDocumentStore(AppConfig()).configured is False
        assert DatabricksDocumentStore(app_config).configured is True


class TestStoreBehindApi:
    @pytest.fixture
    def api(self, store, app_config, tmp_path):
        app = create_app(config=app_config, storage=store, static_dir=tmp_path / "no-static")
        return TestClient(app)

    def test_save_and_load_round_trip(self, api, session_body):
        assert api.post("/api/compliance/save", json=session_body).status_code == 200
        data = api.get("/api/compliance/load").json()
        assert data["session"]["inputs"] == session_body["inputs"]

    def test_corrupt_document_is_reported_as_load_error(self, api, fake_db, session_body):
        api.post("/api/compliance/save", json=session_body)
        fake_db.rows[("zdhc-test", "anonymous", "latest")]["document"] = "{not json"

        response = api.get("/api/compliance/load")
        assert response.status_code == 500
        assert response.json()["detail"].startswith("Error loading data: Stored compliance document is not valid JSON")
