from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from app.schemas.export import CurrentUser, DataType, clean_export_filename
from app.services.api_rows import RowsClient, RowsFetchError, fetch_rows_for, unwrap_rows
from app.services.export_permissions import allowed_roles_for, can_export
from app.services.report_errors import ExportFailedError
from app.services.report_export import save_export, smart_export


def _load_input_rows(path: Path, data_type: DataType) -> list[dict]:
    with path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return unwrap_rows(payload, (data_type.value,))


def _print_summary(data_type: DataType, rows: int, written: list[Path], *, file=sys.stderr) -> None:
    print("CATMS export", file=file)
    print(f"  data_type: {data_type.value}", file=file)
    print(f"  rows: {rows}", file=file)
    for path in written:
        print(f"  wrote: {path}", file=file)


def main() -> int:
    parser = argparse.ArgumentParser(description="Export CATMS records to CSV and/or PDF.")
    parser.add_argument(
        "--data-type",
        required=True,
        choices=[item.value for item in DataType],
        help="Record category to export.",
    )
    parser.add_argument("--endpoint", default=None, help="API path to read rows from.")
    parser.add_argument("--input", default=None, help="Read rows from a JSON file instead of the API.")
    parser.add_argument(
        "--format",
        dest="fmt",
        default="both",
        choices=("csv", "pdf", "both"),
        help="Output format (default: both).",
    )
    parser.add_argument("--filename", default=None, help="Base filename (default: data type).")
    parser.add_argument("--title", default=None, help="PDF report title.")
    parser.add_argument("--out-dir", default=".", help="Directory for exported files.")
    parser.add_argument(
        "--role",
        default=None,
        help="Only export if this role is allowed to export the data type.",
    )
    parser.add_argument("--verbose", action="store_true", help="Log progress to stderr.")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    data_type = DataType(args.data_type)
    try:
        filename = clean_export_filename(args.filename or data_type.value)
    except ValueError as exc:
        print(f"Invalid --filename: {exc}", file=sys.stderr)
        return 2

    if args.role is not None:
        user = CurrentUser(user_id=0, role=args.role)
        if not can_export(user, allowed_roles_for(data_type)):
            print(f"Role '{args.role}' may not export {data_type.value}.", file=sys.stderr)
            return 2

    try:
        if args.input:
            rows = _load_input_rows(Path(args.input), data_type)
        else:
            with RowsClient() as client:
                rows = fetch_rows_for(client, data_type, args.endpoint)
    except (OSError, json.JSONDecodeError, RowsFetchError) as exc:
        print(f"Could not load rows: {exc}", file=sys.stderr)
        return 1

    bundle = smart_export(rows, data_type, filename, args.title)
    out_dir = Path(args.out_dir)
    written: list[Path] = []
    try:
        if args.fmt in {"csv", "both"}:
            written.append(save_export(bundle.to_csv(), out_dir))
        if args.fmt in {"pdf", "both"}:
            written.append(save_export(bundle.to_pdf(), out_dir))
    except (ExportFailedError, OSError) as exc:
        print(f"Export failed: {exc}", file=sys.stderr)
        return 1

    _print_summary(data_type, len(rows), written)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
