from __future__ import annotations

import logging
import os
import tempfile
import time
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterable, Mapping

from app.schemas.export import DataType, ExportFormat, ExportRequest
from app.services.report_csv import ExportFile, export_to_csv
from app.services.report_pdf import export_to_pdf
from app.services.report_projection import ExportTable, default_title, project, resolve_data_type

logger = logging.getLogger("catms.exports")


@dataclass(frozen=True)
class ExportBundle:
    data_type: DataType
    filename: str
    title: str
    table: ExportTable

    def to_csv(self, today: date | None = None) -> ExportFile:
        return _timed(
            self,
            ExportFormat.csv,
            lambda: export_to_csv(self.filename, self.table.columns, self.table.rows, today=today),
        )

    def to_pdf(self, today: date | None = None, generated_at: datetime | None = None) -> ExportFile:
        return _timed(
            self,
            ExportFormat.pdf,
            lambda: export_to_pdf(
                self.title,
                self.table.columns,
                self.table.rows,
                self.filename,
                today=today,
                generated_at=generated_at,
            ),
        )

    def render(self, fmt: ExportFormat, today: date | None = None) -> ExportFile:
        if fmt == ExportFormat.csv:
            return self.to_csv(today=today)
        return self.to_pdf(today=today)


def _timed(bundle: ExportBundle, fmt: ExportFormat, build) -> ExportFile:
    start_time = time.perf_counter()
    export_file = build()
    elapsed_ms = (time.perf_counter() - start_time) * 1000
    logger.info(
        "perf: export_%s_ms=%.2f data_type=%s rows=%d bytes=%d",
        fmt.value,
        elapsed_ms,
        bundle.data_type.value,
        len(bundle.table.rows),
        len(export_file.content),
    )
    return export_file


def smart_export(
    rows: Iterable[Mapping[str, Any]],
    data_type: DataType | str,
    filename: str,
    title: str | None = None,
) -> ExportBundle:
    resolved = resolve_data_type(data_type)
    return ExportBundle(
        data_type=resolved,
        filename=filename,
        title=title or default_title(resolved),
        table=project(resolved, rows),
    )


def export_rows(request: ExportRequest, fmt: ExportFormat, today: date | None = None) -> ExportFile:
    bundle = smart_export(request.rows, request.data_type, request.filename, request.title)
    return bundle.render(fmt, today=today)


def save_export(export_file: ExportFile, directory: Path) -> Path:
    directory.mkdir(parents=True, exist_ok=True)
    target = directory / export_file.filename
    fd, tmp_name = tempfile.mkstemp(dir=directory, prefix=f".{export_file.filename}.", suffix=".part")
    tmp_path = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as handle:
            handle.write(export_file.content)
        tmp_path.replace(target)
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    return target
