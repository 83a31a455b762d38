from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Sequence

from app.services.report_errors import ExportFailedError

logger = logging.getLogger("catms.exports")

CSV_MEDIA_TYPE = "text/csv; charset=utf-8"


@dataclass(frozen=True)
class ExportFile:
    filename: str
    media_type: str
    content: bytes

    @property
    def content_disposition(self) -> str:
        return f'attachment; filename="{self.filename}"'


def export_filename(base: str, extension: str, today: date | None = None) -> str:
    stamp = (today or datetime.now(timezone.utc).date()).isoformat()
    return f"{base}_{stamp}.{extension}"


def build_csv(columns: Sequence[str], rows: Sequence[Sequence[object]]) -> str:
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\r\n")
    writer.writerow(columns)
    for row in rows:
        writer.writerow(row)
    return buffer.getvalue()


def export_to_csv(
    filename: str,
    columns: Sequence[str],
    rows: Sequence[Sequence[object]],
    today: date | None = None,
) -> ExportFile:
    try:
        content = build_csv(columns, rows).encode("utf-8")
    except (csv.Error, TypeError, ValueError, UnicodeError) as exc:
        logger.exception("CSV export failed for %s", filename)
        raise ExportFailedError("Failed to export CSV") from exc
    return ExportFile(
        filename=export_filename(filename, "csv", today),
        media_type=CSV_MEDIA_TYPE,
        content=content,
    )
