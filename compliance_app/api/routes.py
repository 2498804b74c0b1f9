import logging
from datetime import datetime, timezone
from typing import Literal

from fastapi import APIRouter, HTTPException, Query, Request, Response

from api.validation import validate_inputs
from knowledge_base.zdhc_limits import (
    DISCHARGE_TYPE_LABELS,
    INDUSTRY_LABELS,
    TIER_LABELS,
    blank_inputs,
)
from models.schemas import (
    CheckResponse,
    ComplianceSession,
    ComplianceTier,
    Industry,
    LoadResponse,
    MessageResponse,
    OptionItem,
    OptionsResponse,
    ParameterGroup,
    SavedDocument,
)
from services.compliance import chart_groups, describe_parameters, evaluate_all
from services.export_service import (
    EXPORT_MEDIA_TYPES,
    build_export_document,
    export_filename,
    render_export,
)
from services.storage import StorageNotConfiguredError

logger = logging.getLogger(__name__)

api_router = APIRouter(prefix="/api")

ExportFormat = Literal["json", "pdf", "xlsx"]

NOT_CONFIGURED_MESSAGE = "Error: persistence is not configured. Cannot save/load data."


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _storage(request: Request):
    return request.app.state.storage


def _current_user_id(request: Request) -> str:
    return request.app.state.identity.current_user_id(request.headers)


def _require_storage(request: Request):
    store = _storage(request)
    if not store.configured:
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED_MESSAGE)
    return store


def run_check(session: ComplianceSession) -> CheckResponse:
    validated = validate_inputs(session.inputs)
    outcome = evaluate_all(validated["inputs"], session.context())
    return CheckResponse(
        results=outcome.results,
        overall_compliant=outcome.overall_compliant,
        chart_series=outcome.chart_series,
        chart_groups=chart_groups(outcome.chart_series),
        warnings=validated["warnings"],
    )


# ---------------------------------------------------------------------------
# Form metadata
# ---------------------------------------------------------------------------


@api_router.get("/health")
async def health(request: Request):
    return {
        "status": "ok",
        "persistenceConfigured": _storage(request).configured,
    }


@api_router.get("/options")
async def get_options() -> OptionsResponse:
    return OptionsResponse(
        industries=[OptionItem(value=k, label=v) for k, v in INDUSTRY_LABELS.items()],
        compliance_tiers=[OptionItem(value=k, label=v) for k, v in TIER_LABELS.items()],
        discharge_types=[OptionItem(value=k, label=v) for k, v in DISCHARGE_TYPE_LABELS.items()],
    )


@api_router.get("/parameters")
async def get_parameters(
    industry: Industry = Query("T"),
    tier: ComplianceTier = Query("F"),
) -> list[ParameterGroup]:
    return describe_parameters(industry, tier)


@api_router.get("/session/default")
async def get_default_session() -> ComplianceSession:
    return ComplianceSession(inputs=blank_inputs())


# ---------------------------------------------------------------------------
# Compliance check
# ---------------------------------------------------------------------------


@api_router.post("/compliance/check")
async def check_compliance(session: ComplianceSession) -> CheckResponse:
    try:
        return run_check(session)
    except Exception as e:
        logger.error("Error checking compliance: %s", str(e))
        raise HTTPException(status_code=500, detail="Failed to check compliance")


# ---------------------------------------------------------------------------
# Save / load
# ---------------------------------------------------------------------------


@api_router.post("/compliance/save")
async def save_session(session: ComplianceSession, request: Request) -> MessageResponse:
    store = _require_storage(request)
    try:
        user_id = _current_user_id(request)
        document = SavedDocument(
            inputs=session.inputs,
            industry=session.industry,
            compliance_tier=session.compliance_tier,
            discharge_type=session.discharge_type,
            timestamp=datetime.now(timezone.utc),
        )
        store.save(user_id, document.model_dump(mode="json", by_alias=True))
        return MessageResponse(message="Data saved successfully!")
    except StorageNotConfiguredError:
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED_MESSAGE)
    except Exception as e:
        logger.error("Error saving compliance data: %s", str(e))
        raise HTTPException(status_code=500, detail=f"Error saving data: {str(e)}")


@api_router.get("/compliance/load")
async def load_session(request: Request) -> LoadResponse:
    store = _require_storage(request)
    try:
        user_id = _current_user_id(request)
        document = store.load(user_id)
        if document is None:
            raise HTTPException(status_code=404, detail="No saved data found for this user.")

        saved = SavedDocument.model_validate(document)
        session = ComplianceSession(
            inputs=saved.inputs,
            industry=saved.industry,
            compliance_tier=saved.compliance_tier,
            discharge_type=saved.discharge_type,
        )
        return LoadResponse(
            message="Data loaded successfully!",
            session=session,
            saved_at=saved.timestamp,
            outcome=run_check(session),
        )
    except HTTPException:
        raise
    except StorageNotConfiguredError:
        raise HTTPException(status_code=503, detail=NOT_CONFIGURED_MESSAGE)
    except Exception as e:
        logger.error("Error loading compliance data: %s", str(e))
        raise HTTPException(status_code=500, detail=f"Error loading data: {str(e)}")


# ---------------------------------------------------------------------------
# Export
# ---------------------------------------------------------------------------


@api_router.post("/compliance/export")
async def export_report(
    session: ComplianceSession,
    fmt: ExportFormat = Query("json", alias="format"),
):
    try:
        outcome = evaluate_all(session.inputs, session.context())
        document = build_export_document(session, outcome)
        content = render_export(document, fmt)
        filename = export_filename(fmt, document.timestamp.date())
        return Response(
            content=content,
            media_type=EXPORT_MEDIA_TYPES[fmt],
            headers={
                "Content-Disposition": f'attachment; filename="{filename}"',
                "Content-Length": str(len(content)),
            },
        )
    except Exception as e:
        logger.error("Error exporting compliance report (%s): %s", fmt, str(e))
        raise HTTPException(status_code=500, detail="Failed to export report")
