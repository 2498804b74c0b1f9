import io
import json
from datetime import date, datetime, timezone

import pytest
from openpyxl import load_workbook

from models.schemas import ComplianceSession
from services.compliance import evaluate_all
from services.export_service import (
    build_export_document,
    export_compliance_excel,
    export_compliance_json,
    export_compliance_pdf,
    export_filename,
    render_export,
)


@pytest.fixture
def export_document():
    session = ComplianceSession(
        industry="L",
        compliance_tier="P",
        discharge_type="Indirect",
        inputs={"chromiumVI": "0.08", "ph": "6.5", "temp_diff": "4", "cod": ""},
    )
    outcome = evaluate_all(session.inputs, session.context())
    return build_export_document(
        session, outcome, timestamp=datetime(2026, 3, 14, 9, 30, tzinfo=timezone.utc)
    )


class TestExportFilename:
    def test_includes_date(self):
        assert export_filename("json", date(2026, 3, 14)) == "zdhc_compliance_report_2026-03-14.json"

    def test_defaults_to_today(self):
        assert export_filename("pdf").endswith(".pdf")


class TestJsonExport:
    def test_document_shape(self, export_document):
        data = json.loads(export_compliance_json(export_document))
        assert set(data) == {
            "inputs", "results", "industry", "complianceTier",
            "dischargeType", "overallCompliant", "timestamp",
        }
        assert data["industry"] == "L"
        assert data["complianceTier"] == "P"
        assert data["dischargeType"] == "Indirect"
        assert data["inputs"]["chromiumVI"] == "0.08"
        assert data["timestamp"].startswith("2026-03-14T09:30:00")

    def test_results_reflect_evaluation(self, export_document):
        data = json.loads(export_compliance_json(export_document))
        assert data["overallCompliant"] is False
        chromium = next(r for r in data["results"] if r["paramId"] == "chromiumVI")
        assert chromium["resolvedLimit"] == 0.05
        assert chromium["compliant"] is False
        ph = next(r for r in data["results"] if r["paramId"] == "ph")
        assert ph["resolvedLimit"] == {"min": 6, "max": 9}
        assert ph["limitDisplay"] == "6-9"


class TestBinaryExports:
    def test_pdf(self, export_document):
        content = export_compliance_pdf(export_document)
        assert content.startswith(b"%PDF")

    def test_excel_sheets(self, export_document):
        wb = load_workbook(io.BytesIO(export_compliance_excel(export_document)))
        assert wb.sheetnames == ["Summary", "Results", "Inputs"]

        results = wb["Results"]
        rows = list(results.iter_rows(min_row=2, values_only=True))
        assert len(rows) == len(export_document.results)
        chromium = next(r for r in rows if r[2] == "chromiumVI")
        assert chromium[3] == pytest.approx(0.08)
        assert chromium[6] == "NON-COMPLIANT"

    def test_unknown_format(self, export_document):
        with pytest.raises(ValueError):
            render_export(export_document, "csv")
