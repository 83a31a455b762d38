from __future__ import annotations

from typing import Iterable

from app.core.settings import settings
from app.schemas.export import CurrentUser, DataType

APPOINTMENT_EXPORT_ROLES = ["System Administrator", "Receptionist", "Manager", "Doctor"]
BILLING_EXPORT_ROLES = ["System Administrator", "Accountant", "Billing Staff", "Manager"]
AUDIT_EXPORT_ROLES = ["System Administrator", "Manager", "Auditor"]

EXPORT_CONTEXT_ROLES: dict[DataType, list[str]] = {
    DataType.appointments: APPOINTMENT_EXPORT_ROLES,
    DataType.invoices: BILLING_EXPORT_ROLES,
    DataType.payments: BILLING_EXPORT_ROLES,
    DataType.audit_logs: AUDIT_EXPORT_ROLES,
}


def default_export_roles() -> list[str]:
    return list(settings.export_roles)


def allowed_roles_for(data_type: DataType) -> list[str]:
    roles = EXPORT_CONTEXT_ROLES.get(data_type)
    if roles is None:
        return default_export_roles()
    return list(roles)


def can_export(user: CurrentUser | None, allowed_roles: Iterable[str] | None = None) -> bool:
    if user is None or not user.role:
        return False
    roles = default_export_roles() if allowed_roles is None else list(allowed_roles)
    return user.role in roles
