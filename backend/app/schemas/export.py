import enum
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator


class DataType(str, enum.Enum):
    appointments = "appointments"
    invoices = "invoices"
    audit_logs = "auditLogs"
    patients = "patients"
    users = "users"
    payments = "payments"


class ExportFormat(str, enum.Enum):
    csv = "csv"
    pdf = "pdf"


def clean_export_filename(value: str) -> str:
    cleaned = value.strip()
    if cleaned in {"", ".", ".."} or any(char in cleaned for char in '/\\"\r\n'):
        raise ValueError("filename must be a plain base name")
    return cleaned


class CurrentUser(BaseModel):
    user_id: int
    role: str
    full_name: Optional[str] = None
    email: Optional[str] = None
    branch_id: Optional[int] = None


class ExportRequest(BaseModel):
    data_type: DataType
    rows: list[dict[str, Any]] = Field(default_factory=list)
    filename: str = Field(min_length=1, max_length=120)
    title: Optional[str] = Field(default=None, max_length=200)

    @field_validator("filename")
    @classmethod
    def _safe_filename(cls, value: str) -> str:
        return clean_export_filename(value)


class DataTypeOut(BaseModel):
    data_type: DataType
    title: str
    columns: list[str]
    allowed_roles: list[str]


class ExportPermissionOut(BaseModel):
    data_type: DataType
    can_export: bool
    allowed_roles: list[str]
