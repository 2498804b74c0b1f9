import uuid
import json
import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from databricks.sql import connect
from databricks.sdk.core import Config, oauth_service_principal

from config import AppConfig

logger = logging.getLogger(__name__)

LATEST_SLOT = "latest"


class StorageNotConfiguredError(RuntimeError):
    pass


class CorruptDocumentError(ValueError):
    pass


def get_connection(config: AppConfig):
    if not config.persistence_configured:
        raise StorageNotConfiguredError(
            "Persistence not configured. "
            "Set DATABRICKS_HOST, DATABRICKS_HTTP_PATH, DATABRICKS_CLIENT_ID, and DATABRICKS_CLIENT_SECRET."
        )

    cfg = Config(
        host=f"https://{config.server_hostname}",
        client_id=config.databricks_client_id,
        client_secret=config.databricks_client_secret,
    )

    def credential_provider():
        return oauth_service_principal(cfg)

    return connect(
        server_hostname=config.server_hostname,
        http_path=config.databricks_http_path,
        credentials_provider=credential_provider,
        catalog=config.databricks_catalog,
    )


def _row_to_dict(cursor, row):
    columns = [desc[0] for desc in cursor.description]
    return dict(zip(columns, row))


def _serialize_json(value):
    if value is None:
        return None
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)


def _deserialize_json(value):
    if value is None:
        return None
    if isinstance(value, (dict, list)):
        return value
    try:
        return json.loads(value)
    except (json.JSONDecodeError, TypeError) as e:
        raise CorruptDocumentError(f"Stored compliance document is not valid JSON ({e})") from e


class DatabricksDocumentStore:
    """
    Per-user document slots in a Delta table, one row per
    (app_id, user_id, slot). Writes overwrite; there is no history.
    """

    def __init__(
        self,
        config: AppConfig,
        connection_factory: Optional[Callable[[AppConfig], object]] = None,
    ):
        self.config = config
        self._connection_factory = connection_factory or get_connection

    @property
    def configured(self) -> bool:
        return self.config.persistence_configured

    @property
    def _documents(self):
        return (
            f"{self.config.databricks_catalog}."
            f"{self.config.compliance_schema}.compliance_documents"
        )

    def _connect(self):
        return self._connection_factory(self.config)

    def ensure_table(self):
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"CREATE TABLE IF NOT EXISTS {self._documents} ("
                    "id STRING, app_id STRING, user_id STRING, slot STRING, "
                    "document STRING, updated_at TIMESTAMP)"
                )

    def _get_row(self, cur, user_id: str, slot: str) -> Optional[dict]:
        cur.execute(
            f"SELECT * FROM {self._documents} "
            "WHERE app_id = ? AND user_id = ? AND slot = ?",
            (self.config.app_id, user_id, slot),
        )
        row = cur.fetchone()
        if row is None:
            return None
        return _row_to_dict(cur, row)

    def load(self, user_id: str, slot: str = LATEST_SLOT) -> Optional[dict]:
        with self._connect() as conn:
            with conn.cursor() as cur:
                row = self._get_row(cur, user_id, slot)
        if row is None:
            return None
        return _deserialize_json(row.get("document"))

    def save(self, user_id: str, document: dict, slot: str = LATEST_SLOT) -> dict:
        now = datetime.now(timezone.utc)
        payload = _serialize_json(document)

        # One row per (app_id, user_id, slot); the MERGE is a single atomic upsert.
        with self._connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    f"MERGE INTO {self._documents} AS target "
                    "USING (SELECT ? AS id, ? AS app_id, ? AS user_id, ? AS slot, "
                    "? AS document, ? AS updated_at) AS source "
                    "ON target.app_id = source.app_id "
                    "AND target.user_id = source.user_id "
                    "AND target.slot = source.slot "
                    "WHEN MATCHED THEN UPDATE SET "
                    "document = source.document, updated_at = source.updated_at "
                    "WHEN NOT MATCHED THEN INSERT "
                    "(id, app_id, user_id, slot, document, updated_at) "
                    "VALUES (source.id, source.app_id, source.user_id, source.slot, "
                    "source.document, source.updated_at)",
                    (str(uuid.uuid4()), self.config.app_id, user_id, slot, payload, now),
                )

        logger.info("Saved compliance document for user %s (slot %s)", user_id, slot)
        return document
