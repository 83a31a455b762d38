from __future__ import annotations

import logging
from datetime import date, datetime, timezone
from io import BytesIO
from typing import Sequence
from xml.sax.saxutils import escape

from reportlab.lib import colors
from reportlab.lib.pagesizes import A4
from reportlab.lib.styles import ParagraphStyle, getSampleStyleSheet
from reportlab.lib.units import mm
from reportlab.platypus import Paragraph, SimpleDocTemplate, Spacer, Table, TableStyle

from app.services.report_csv import ExportFile, export_filename
from app.services.report_errors import ExportFailedError
from app.services.report_projection import format_datetime

logger = logging.getLogger("catms.exports")

PDF_MEDIA_TYPE = "application/pdf"
MARGIN = 14 * mm
HEADER_FILL = colors.Color(66 / 255, 139 / 255, 202 / 255)
ALTERNATE_FILL = colors.HexColor("#f5f5f5")
TIMESTAMP_GREY = colors.Color(100 / 255, 100 / 255, 100 / 255)

_base_styles = getSampleStyleSheet()
TITLE_STYLE = ParagraphStyle(
    "ReportTitle",
    parent=_base_styles["Heading1"],
    fontName="Helvetica-Bold",
    fontSize=18,
    leading=22,
    spaceAfter=2 * mm,
)
TIMESTAMP_STYLE = ParagraphStyle(
    "ReportTimestamp",
    parent=_base_styles["Normal"],
    fontName="Helvetica",
    fontSize=10,
    leading=12,
    textColor=TIMESTAMP_GREY,
)
HEAD_CELL_STYLE = ParagraphStyle(
    "ReportHeadCell",
    parent=_base_styles["Normal"],
    fontName="Helvetica-Bold",
    fontSize=10,
    leading=12,
    textColor=colors.white,
)
BODY_CELL_STYLE = ParagraphStyle(
    "ReportBodyCell",
    parent=_base_styles["Normal"],
    fontName="Helvetica",
    fontSize=9,
    leading=11,
)


def _cell(value: object, style: ParagraphStyle) -> Paragraph:
    return Paragraph(escape("" if value is None else str(value)), style)


def _table(columns: Sequence[str], rows: Sequence[Sequence[object]], width: float) -> Table:
    data = [[_cell(column, HEAD_CELL_STYLE) for column in columns]]
    for row in rows:
        data.append([_cell(value, BODY_CELL_STYLE) for value in row])
    commands = [
        ("BACKGROUND", (0, 0), (-1, 0), HEADER_FILL),
        ("GRID", (0, 0), (-1, -1), 0.5, colors.HexColor("#c8c8c8")),
        ("VALIGN", (0, 0), (-1, -1), "TOP"),
        ("TOPPADDING", (0, 0), (-1, -1), 3),
        ("BOTTOMPADDING", (0, 0), (-1, -1), 3),
    ]
    if rows:
        commands.append(("ROWBACKGROUNDS", (0, 1), (-1, -1), [colors.white, ALTERNATE_FILL]))
    table = Table(
        data,
        colWidths=[width / len(columns)] * len(columns),
        repeatRows=1,
        splitInRow=1,
    )
    table.setStyle(TableStyle(commands))
    return table


def build_table_pdf(
    title: str,
    columns: Sequence[str],
    rows: Sequence[Sequence[object]],
    generated_at: datetime | None = None,
) -> bytes:
    buffer = BytesIO()
    doc = SimpleDocTemplate(
        buffer,
        pagesize=A4,
        leftMargin=MARGIN,
        rightMargin=MARGIN,
        topMargin=MARGIN,
        bottomMargin=MARGIN,
        title=title,
        author="CATMS",
        invariant=True,
    )
    stamp = format_datetime(generated_at or datetime.now(timezone.utc))
    story = [
        Paragraph(escape(title), TITLE_STYLE),
        Paragraph(f"Generated on: {escape(stamp)}", TIMESTAMP_STYLE),
        Spacer(1, 4 * mm),
    ]
    if columns:
        story.append(_table(columns, rows, doc.width))
    doc.build(story)
    return buffer.getvalue()


def export_to_pdf(
    title: str,
    columns: Sequence[str],
    rows: Sequence[Sequence[object]],
    filename: str,
    today: date | None = None,
    generated_at: datetime | None = None,
) -> ExportFile:
    try:
        content = build_table_pdf(title, columns, rows, generated_at=generated_at)
    except Exception as exc:
        logger.exception("PDF export failed for %s", filename)
        raise ExportFailedError("Failed to export PDF") from exc
    return ExportFile(
        filename=export_filename(filename, "pdf", today),
        media_type=PDF_MEDIA_TYPE,
        content=content,
    )
