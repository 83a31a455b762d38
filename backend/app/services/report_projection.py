"""Tabular projection of API records for CSV/PDF exports.

Every data type has a fixed column list and a projector turning one record
(a JSON object as returned by the CATMS API, relations nested under their
model names such as ``Patient``) into display strings. Missing fields render
as ``N/A``; missing money renders as zero rupees.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Any, Callable, Iterable, Mapping, Sequence
from zoneinfo import ZoneInfo

from app.core.settings import settings
from app.schemas.export import DataType
from app.services.currency import format_lkr, to_amount
from app.services.report_errors import UnknownDataTypeError

NOT_AVAILABLE = "N/A"

Row = Mapping[str, Any]
Projector = Callable[[Row], list[str]]


@dataclass(frozen=True)
class ExportTable:
    columns: list[str]
    rows: list[list[str]]


@dataclass(frozen=True)
class ReportDefinition:
    columns: tuple[str, ...]
    projector: Projector


def lookup(row: object, path: str) -> Any:
    current = row
    for key in path.split("."):
        if current is None:
            return None
        if isinstance(current, Mapping):
            current = current.get(key)
        else:
            current = getattr(current, key, None)
    return current


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def _display(value: Any) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def text(row: Row, path: str) -> str:
    value = lookup(row, path)
    if _is_missing(value):
        return NOT_AVAILABLE
    return _display(value)


def money(row: Row, path: str) -> float:
    number = to_amount(lookup(row, path))
    return number if number is not None else 0.0


def _report_tz() -> ZoneInfo:
    return ZoneInfo(settings.report_timezone)


def parse_when(value: Any) -> date | datetime | None:
    """Read a date/datetime from API data; None when it cannot be read."""
    if _is_missing(value) or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed: date | datetime = value
    elif isinstance(value, date):
        return value
    elif isinstance(value, (int, float)):
        # epoch milliseconds, as serialised by JavaScript clients
        try:
            parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None
    elif isinstance(value, str):
        raw = value.strip()
        if raw.endswith(("Z", "z")):
            raw = raw[:-1] + "+00:00"
        try:
            if len(raw) == 10:
                return date.fromisoformat(raw)
            parsed = datetime.fromisoformat(raw)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(_report_tz())
    return parsed


def format_date(value: Any) -> str:
    parsed = parse_when(value)
    if parsed is None:
        return NOT_AVAILABLE
    return f"{parsed:%b} {parsed.day}, {parsed.year}"


def format_datetime(value: Any) -> str:
    parsed = parse_when(value)
    if parsed is None:
        return NOT_AVAILABLE
    if not isinstance(parsed, datetime):
        parsed = datetime(parsed.year, parsed.month, parsed.day)
    hour = parsed.hour % 12 or 12
    meridiem = "AM" if parsed.hour < 12 else "PM"
    return f"{parsed:%b} {parsed.day}, {parsed.year}, {hour}:{parsed:%M:%S} {meridiem}"


def _appointment_row(apt: Row) -> list[str]:
    return [
        text(apt, "appointment_id"),
        text(apt, "Patient.full_name"),
        text(apt, "Doctor.full_name"),
        format_date(lookup(apt, "appointment_date")),
        text(apt, "appointment_time"),
        text(apt, "status"),
        text(apt, "appointment_type"),
        text(apt, "notes"),
    ]


def _invoice_row(inv: Row) -> list[str]:
    total = money(inv, "total_amount")
    paid = money(inv, "paid_amount")
    return [
        text(inv, "invoice_id"),
        text(inv, "Patient.full_name"),
        format_lkr(total),
        format_lkr(paid),
        format_lkr(total - paid),
        text(inv, "status"),
        format_date(lookup(inv, "created_at")),
        format_date(lookup(inv, "due_date")),
    ]


def _audit_log_row(log: Row) -> list[str]:
    return [
        text(log, "User.full_name"),
        text(log, "action"),
        text(log, "target_table"),
        text(log, "target_id"),
        text(log, "ip_address"),
        format_datetime(lookup(log, "timestamp")),
        text(log, "details"),
    ]


def _patient_row(patient: Row) -> list[str]:
    return [
        text(patient, "patient_id"),
        text(patient, "full_name"),
        text(patient, "email"),
        text(patient, "phone"),
        format_date(lookup(patient, "date_of_birth")),
        text(patient, "gender"),
        text(patient, "address"),
        format_date(lookup(patient, "created_at")),
    ]


def _user_row(user: Row) -> list[str]:
    return [
        text(user, "user_id"),
        text(user, "full_name"),
        text(user, "email"),
        text(user, "Role.role_name"),
        text(user, "Branch.branch_name"),
        text(user, "status"),
        format_date(lookup(user, "created_at")),
    ]


def _payment_row(payment: Row) -> list[str]:
    return [
        text(payment, "payment_id"),
        text(payment, "invoice_id"),
        text(payment, "Invoice.Patient.full_name"),
        format_lkr(money(payment, "amount")),
        text(payment, "payment_method"),
        text(payment, "status"),
        format_date(lookup(payment, "payment_date")),
    ]


REPORTS: dict[DataType, ReportDefinition] = {
    DataType.appointments: ReportDefinition(
        columns=(
            "Appointment ID",
            "Patient Name",
            "Doctor Name",
            "Date",
            "Time",
            "Status",
            "Type",
            "Notes",
        ),
        projector=_appointment_row,
    ),
    DataType.invoices: ReportDefinition(
        columns=(
            "Invoice ID",
            "Patient Name",
            "Total Amount",
            "Paid Amount",
            "Balance",
            "Status",
            "Date",
            "Due Date",
        ),
        projector=_invoice_row,
    ),
    DataType.audit_logs: ReportDefinition(
        columns=("User", "Action", "Module", "Entity ID", "IP Address", "Timestamp", "Details"),
        projector=_audit_log_row,
    ),
    DataType.patients: ReportDefinition(
        columns=(
            "Patient ID",
            "Full Name",
            "Email",
            "Phone",
            "Date of Birth",
            "Gender",
            "Address",
            "Registration Date",
        ),
        projector=_patient_row,
    ),
    DataType.users: ReportDefinition(
        columns=("User ID", "Full Name", "Email", "Role", "Branch", "Status", "Created Date"),
        projector=_user_row,
    ),
    DataType.payments: ReportDefinition(
        columns=("Payment ID", "Invoice ID", "Patient Name", "Amount", "Method", "Status", "Date"),
        projector=_payment_row,
    ),
}


def resolve_data_type(data_type: DataType | str) -> DataType:
    if isinstance(data_type, DataType):
        return data_type
    try:
        return DataType(data_type)
    except ValueError:
        raise UnknownDataTypeError(data_type) from None


def default_title(data_type: DataType | str) -> str:
    value = resolve_data_type(data_type).value
    return f"{value[:1].upper()}{value[1:]} Report"


def project(data_type: DataType | str, rows: Iterable[Row]) -> ExportTable:
    definition = REPORTS.get(resolve_data_type(data_type))
    if definition is None:
        raise UnknownDataTypeError(data_type)
    return ExportTable(
        columns=list(definition.columns),
        rows=[definition.projector(row) for row in rows],
    )


def column_specs() -> dict[DataType, Sequence[str]]:
    return {data_type: definition.columns for data_type, definition in REPORTS.items()}
