"""
ZDHC Wastewater Compliance Checker - Databricks App Entry Point

FastAPI application serving both the React form (static files) and the
backend API. Saved form state lives in a Unity Catalog Delta table reached
with the app's OAuth service principal.
"""
import logging
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.staticfiles import StaticFiles
from fastapi.responses import FileResponse, JSONResponse

from api.routes import api_router
from config import AppConfig
from services.identity import HeaderIdentityProvider
from services.storage import DatabricksDocumentStore

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger("zdhc-compliance")

STATIC_DIR = Path(__file__).parent / "static"


def _mount_frontend(app: FastAPI, static_dir: Path):
    if static_dir.exists():
        static_root = static_dir.resolve()
        if (static_root / "assets").exists():
            app.mount("/assets", StaticFiles(directory=str(static_root / "assets")), name="assets")

        @app.get("/{full_path:path}", include_in_schema=False)
        async def serve_spa(request: Request, full_path: str):
            if full_path.startswith("api/"):
                return JSONResponse(status_code=404, content={"error": "Not found"})

            # Only files inside the build directory; anything else gets the SPA shell.
            file_path = (static_root / full_path).resolve()
            if file_path.is_relative_to(static_root) and file_path.is_file():
                return FileResponse(str(file_path))

            return FileResponse(str(static_root / "index.html"))
    else:
        logger.warning(
            "Static directory not found at %s. "
            "Run 'npm run build' in the frontend project and copy dist/ to compliance_app/static/",
            static_dir,
        )

        @app.get("/", include_in_schema=False)
        async def root():
            return {
                "status": "running",
                "message": "ZDHC Compliance API is running. Frontend static files not found.",
                "docs": "/docs",
            }


def create_app(
    config: Optional[AppConfig] = None,
    storage=None,
    identity=None,
    static_dir: Path = STATIC_DIR,
) -> FastAPI:
    config = config or AppConfig.from_env()

    app = FastAPI(
        title="ZDHC Wastewater Compliance Checker",
        description="Checks wastewater and sludge results against ZDHC Wastewater Guidelines V2.2 limits",
        version="1.0.0",
    )
    app.state.config = config
    app.state.storage = storage if storage is not None else DatabricksDocumentStore(config)
    app.state.identity = identity or HeaderIdentityProvider(config.anonymous_user_id)

    app.include_router(api_router)
    _mount_frontend(app, static_dir)

    @app.on_event("startup")
    async def startup_event():
        logger.info("ZDHC Compliance Checker starting up...")
        logger.info("App ID: %s", config.app_id)
        logger.info("Databricks Host: %s", config.server_hostname or "(unset)")
        logger.info("HTTP Path: %s", config.databricks_http_path or "(unset)")
        logger.info("Catalog: %s, schema: %s", config.databricks_catalog, config.compliance_schema)

        store = app.state.storage
        if not store.configured:
            logger.warning("Persistence not configured; save/load endpoints will return 503")
            return
        try:
            store.ensure_table()
        except Exception as e:
            logger.error("Could not verify compliance document table: %s", str(e))

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
