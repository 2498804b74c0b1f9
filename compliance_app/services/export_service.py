import io
import logging
from datetime import date, datetime, timezone
from typing import Optional

from knowledge_base.zdhc_limits import (
    DISCHARGE_TYPE_LABELS,
    INDUSTRY_LABELS,
    TIER_LABELS,
    category_labels,
    category_order,
)
from models.schemas import (
    ComplianceSession,
    EvaluationOutcome,
    EvaluationResult,
    ExportDocument,
)

logger = logging.getLogger(__name__)

REPORT_TITLE = "ZDHC Wastewater Compliance Report"
FILENAME_PREFIX = "zdhc_compliance_report"

EXPORT_MEDIA_TYPES = {
    "json": "application/json",
    "pdf": "application/pdf",
    "xlsx": "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
}


def _sanitize(text) -> str:
    if not text:
        return ""
    s = str(text)
    s = s.replace("‘", "'").replace("’", "'")
    s = s.replace("“", '"').replace("”", '"')
    s = s.replace("–", "-").replace("—", "--")
    s = s.replace("Δ", "delta ").replace("≤", "<=").replace("≥", ">=")
    s = s.replace(" ", " ")
    return s


def _fmt_num(val) -> str:
    if val is None:
        return "N/A"
    try:
        return f"{float(val):g}"
    except (ValueError, TypeError):
        return str(val)


def _status(result: EvaluationResult) -> str:
    return "COMPLIANT" if result.compliant else "NON-COMPLIANT"


def export_filename(extension: str, today: Optional[date] = None) -> str:
    today = today or datetime.now(timezone.utc).date()
    return f"{FILENAME_PREFIX}_{today.isoformat()}.{extension}"


def build_export_document(
    session: ComplianceSession,
    outcome: EvaluationOutcome,
    timestamp: Optional[datetime] = None,
) -> ExportDocument:
    return ExportDocument(
        inputs=dict(session.inputs),
        results=outcome.results,
        industry=session.industry,
        compliance_tier=session.compliance_tier,
        discharge_type=session.discharge_type,
        overall_compliant=outcome.overall_compliant,
        timestamp=timestamp or datetime.now(timezone.utc),
    )


def export_compliance_json(document: ExportDocument) -> bytes:
    return document.model_dump_json(by_alias=True, indent=2).encode("utf-8")


def _selection_lines(document: ExportDocument) -> list[str]:
    return [
        f"Industry: {INDUSTRY_LABELS.get(document.industry, document.industry)}",
        f"Compliance Level: {TIER_LABELS.get(document.compliance_tier, document.compliance_tier)}",
        f"Discharge Type: {DISCHARGE_TYPE_LABELS.get(document.discharge_type, document.discharge_type)}",
    ]


def _overall_line(document: ExportDocument) -> str:
    if document.overall_compliant:
        return "Overall: All entered parameters are COMPLIANT!"
    return "Overall: Some parameters are NON-COMPLIANT. Please review."


def _results_by_category(document: ExportDocument) -> dict[str, list[EvaluationResult]]:
    grouped: dict[str, list[EvaluationResult]] = {c: [] for c in category_order}
    for result in document.results:
        grouped.setdefault(result.category, []).append(result)
    return grouped


def _wrap_text(text: str, max_width: float, font_name: str, font_size: int) -> list:
    from reportlab.pdfbase.pdfmetrics import stringWidth
    words = text.split()
    lines = []
    current = ""
    for word in words:
        test = f"{current} {word}".strip()
        if stringWidth(test, font_name, font_size) <= max_width:
            current = test
        else:
            if current:
                lines.append(current)
            current = word
    if current:
        lines.append(current)
    return lines if lines else [""]


def _draw_table(c, headers, rows, x, y, col_widths,
                font_size=8, header_bg="#2563EB", page_height=792,
                highlight_rows=None):
    from reportlab.lib.colors import HexColor
    from reportlab.pdfbase.pdfmetrics import stringWidth
    min_row_h = 16
    pad = 3
    table_w = sum(col_widths)
    highlight_rows = highlight_rows or set()

    def measure_h(cells, font_name):
        max_h = min_row_h
        for i, cell in enumerate(cells):
            lines = _wrap_text(_sanitize(cell), col_widths[i] - pad * 2, font_name, font_size)
            h = (len(lines) * (font_size + 2)) + pad * 2
            if h > max_h:
                max_h = h
        return max_h

    def draw_row(cells, bold, bg=None, fc="#333333"):
        nonlocal y
        fn = "Helvetica-Bold" if bold else "Helvetica"
        rh = measure_h(cells, fn)
        if bg:
            c.setFillColor(HexColor(bg))
            c.rect(x, y - rh, table_w, rh, fill=1, stroke=0)
        cx = x
        for i, cell in enumerate(cells):
            c.setFont(fn, font_size)
            c.setFillColor(HexColor(fc))
            ty = y - pad - font_size
            for line in _wrap_text(_sanitize(cell), col_widths[i] - pad * 2, fn, font_size):
                if ty < y - rh + pad:
                    break
                c.drawString(cx + pad, ty, line)
                ty -= (font_size + 2)
            cx += col_widths[i]
        c.setStrokeColor(HexColor("#CCCCCC"))
        c.setLineWidth(0.5)
        c.rect(x, y - rh, table_w, rh, fill=0, stroke=1)
        y -= rh

    draw_row(headers, True, header_bg, "#FFFFFF")
    for idx, row in enumerate(rows):
        safe_row = [str(cell) if cell is not None else "-" for cell in row]
        if y - measure_h(safe_row, "Helvetica") < 60:
            c.showPage()
            y = page_height - 50
            draw_row(headers, True, header_bg, "#FFFFFF")
        if idx in highlight_rows:
            draw_row(safe_row, True, "#FDECEA", "#B91C1C")
        else:
            draw_row(safe_row, False, "#F8F9FA" if idx % 2 == 1 else None)
    return y


def _add_section_header(c, title, y, left_margin, content_width, page_height=792):
    from reportlab.lib.colors import HexColor
    if y < 100:
        c.showPage()
        y = page_height - 50
    c.setFont("Helvetica-Bold", 12)
    c.setFillColor(HexColor("#1E3A5F"))
    c.drawString(left_margin, y, _sanitize(title))
    y -= 20
    c.setStrokeColor(HexColor("#CCCCCC"))
    c.setLineWidth(0.5)
    c.line(left_margin, y, left_margin + content_width, y)
    y -= 8
    return y


def export_compliance_pdf(document: ExportDocument) -> bytes:
    from reportlab.lib.pagesizes import LETTER
    from reportlab.pdfgen import canvas
    from reportlab.lib.colors import HexColor

    page_width, page_height = LETTER
    left_margin = 50
    content_width = page_width - 100

    buf = io.BytesIO()
    c = canvas.Canvas(buf, pagesize=LETTER)

    c.setFont("Helvetica-Bold", 18)
    c.setFillColor(HexColor("#1E3A5F"))
    c.drawCentredString(page_width / 2, page_height - 50, REPORT_TITLE)

    c.setFont("Helvetica", 10)
    c.setFillColor(HexColor("#666666"))
    header_y = page_height - 75
    for line in _selection_lines(document):
        c.drawCentredString(page_width / 2, header_y, line)
        header_y -= 13
    c.drawCentredString(page_width / 2, header_y, f"Generated: {document.timestamp.strftime('%m/%d/%Y %H:%M UTC')}")

    y = header_y - 25
    c.setFont("Helvetica-Bold", 11)
    c.setFillColor(HexColor("#15803D" if document.overall_compliant else "#B91C1C"))
    c.drawString(left_margin, y, _overall_line(document))
    y -= 22

    headers = ["Parameter", "Measured", "Limit", "Unit", "Status"]
    for category, results in _results_by_category(document).items():
        if not results:
            continue
        y = _add_section_header(c, category_labels.get(category, category), y, left_margin, content_width, page_height)
        rows = [[
            r.display_name,
            _fmt_num(r.measured_value),
            r.limit_display,
            r.unit or "-",
            _status(r),
        ] for r in results]
        failing = {i for i, r in enumerate(results) if not r.compliant}
        y = _draw_table(c, headers, rows, left_margin, y, [170, 80, 80, 82, 100],
                        page_height=page_height, highlight_rows=failing)
        y -= 15

    c.setFont("Helvetica", 7)
    c.setFillColor(HexColor("#666666"))
    note = ("Based on the ZDHC Wastewater Guidelines V2.2 (demonstration subset). Sludge parameters are "
            "simplified. Always refer to the official ZDHC document for complete and accurate limits.")
    if y < 60:
        c.showPage()
        y = page_height - 50
    for line in _wrap_text(note, content_width, "Helvetica", 7):
        c.drawString(left_margin, y, line)
        y -= 9

    c.save()
    buf.seek(0)
    return buf.read()


def export_compliance_excel(document: ExportDocument) -> bytes:
    from openpyxl import Workbook
    from openpyxl.styles import Font, PatternFill

    wb = Workbook()
    ws = wb.active
    ws.title = "Summary"
    ws.append([REPORT_TITLE])
    ws["A1"].font = Font(bold=True, size=14)
    for line in _selection_lines(document):
        label, _, value = line.partition(": ")
        ws.append([label, value])
    ws.append(["Generated", document.timestamp.isoformat()])
    ws.append(["Overall", "COMPLIANT" if document.overall_compliant else "NON-COMPLIANT"])
    ws.column_dimensions["A"].width = 24
    ws.column_dimensions["B"].width = 32

    ws = wb.create_sheet("Results")
    ws.append(["Category", "Parameter", "Parameter ID", "Measured", "Limit", "Unit", "Status"])
    for cell in ws[1]:
        cell.font = Font(bold=True)
    failing_fill = PatternFill(start_color="FDECEA", end_color="FDECEA", fill_type="solid")
    for r in document.results:
        ws.append([
            category_labels.get(r.category, r.category),
            r.display_name,
            r.param_id,
            r.measured_value,
            r.limit_display,
            r.unit,
            _status(r),
        ])
        if not r.compliant:
            for cell in ws[ws.max_row]:
                cell.fill = failing_fill
    for col_letter, w in [("A", 44), ("B", 32), ("C", 20), ("D", 12),
                           ("E", 12), ("F", 14), ("G", 16)]:
        ws.column_dimensions[col_letter].width = w

    ws = wb.create_sheet("Inputs")
    ws.append(["Parameter ID", "Entered Value"])
    for param_id, raw in document.inputs.items():
        ws.append([param_id, "" if raw is None else raw])
    ws.column_dimensions["A"].width = 24
    ws.column_dimensions["B"].width = 20

    output = io.BytesIO()
    wb.save(output)
    output.seek(0)
    return output.read()


def render_export(document: ExportDocument, fmt: str) -> bytes:
    if fmt == "json":
        return export_compliance_json(document)
    if fmt == "pdf":
        return export_compliance_pdf(document)
    if fmt == "xlsx":
        return export_compliance_excel(document)
    raise ValueError(f"Unsupported export format: {fmt}")
