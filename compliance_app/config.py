"""
Application settings, read from the environment once at startup and passed
into the app factory.
"""
import os
from typing import Mapping, Optional

from pydantic import BaseModel


class AppConfig(BaseModel):
    app_id: str = "default-app-id"
    databricks_host: str = ""
    databricks_http_path: str = ""
    databricks_catalog: str = "main"
    databricks_client_id: str = ""
    databricks_client_secret: str = ""
    compliance_schema: str = "compliance_checker"
    anonymous_user_id: str = "anonymous"

    model_config = {"frozen": True}

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "AppConfig":
        env = os.environ if environ is None else environ
        return cls(
            app_id=env.get("COMPLIANCE_APP_ID", "default-app-id"),
            databricks_host=env.get("DATABRICKS_HOST", ""),
            databricks_http_path=env.get("DATABRICKS_HTTP_PATH", ""),
            databricks_catalog=env.get("DATABRICKS_CATALOG", "main"),
            databricks_client_id=env.get("DATABRICKS_CLIENT_ID", ""),
            databricks_client_secret=env.get("DATABRICKS_CLIENT_SECRET", ""),
            compliance_schema=env.get("COMPLIANCE_SCHEMA", "compliance_checker"),
            anonymous_user_id=env.get("COMPLIANCE_ANONYMOUS_USER", "anonymous"),
        )

    @property
    def server_hostname(self) -> str:
        return self.databricks_host.removeprefix("https://").rstrip("/")

    @property
    def persistence_configured(self) -> bool:
        return bool(
            self.databricks_host
            and self.databricks_http_path
            and self.databricks_client_id
            and self.databricks_client_secret
        )
