import csv
import io
from datetime import date

from app.core.settings import settings
from app.services import report_pdf


def _payload(rows, data_type="appointments", **extra):
    return {"data_type": data_type, "rows": rows, "filename": data_type, **extra}


def test_health(api_client):
    response = api_client.get("/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_export_requires_bearer_token(api_client, appointment_rows):
    response = api_client.post("/exports/csv", json=_payload(appointment_rows))
    assert response.status_code == 401


def test_export_rejects_garbage_token(api_client, appointment_rows):
    response = api_client.post(
        "/exports/csv",
        json=_payload(appointment_rows),
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert response.status_code == 401


def test_export_forbidden_for_role_outside_allow_list(api_client, headers_for, appointment_rows):
    response = api_client.post(
        "/exports/csv",
        json=_payload(appointment_rows),
        headers=headers_for("Accountant"),
    )
    assert response.status_code == 403


def test_csv_export_downloads_file(api_client, headers_for, appointment_rows):
    response = api_client.post(
        "/exports/csv",
        json=_payload(appointment_rows),
        headers=headers_for("Receptionist"),
    )
    assert response.status_code == 200, response.text
    assert response.headers["content-type"].startswith("text/csv")
    today = response.headers["content-disposition"].split("appointments_")[1][:10]
    assert date.fromisoformat(today)
    assert response.headers["content-disposition"].endswith('.csv"')
    parsed = list(csv.reader(io.StringIO(response.content.decode("utf-8"), newline="")))
    assert len(parsed) == 4
    assert parsed[2][parsed[0].index("Doctor Name")] == "N/A"


def test_pdf_export_with_custom_title(api_client, auth_headers):
    response = api_client.post(
        "/exports/pdf",
        json=_payload([], data_type="invoices", title="January Billing"),
        headers=auth_headers,
    )
    assert response.status_code == 200, response.text
    assert response.headers["content-type"] == "application/pdf"
    assert response.content.startswith(b"%PDF")


def test_unknown_data_type_is_rejected(api_client, auth_headers):
    response = api_client.post(
        "/exports/csv",
        json=_payload([], data_type="not-a-real-type"),
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_unknown_format_is_rejected(api_client, auth_headers):
    response = api_client.post("/exports/xlsx", json=_payload([]), headers=auth_headers)
    assert response.status_code == 422


def test_filename_with_path_is_rejected(api_client, auth_headers):
    response = api_client.post(
        "/exports/csv",
        json={"data_type": "patients", "rows": [], "filename": "../etc/passwd"},
        headers=auth_headers,
    )
    assert response.status_code == 422


def test_too_many_rows(api_client, auth_headers, monkeypatch):
    monkeypatch.setattr(settings, "export_max_rows", 2)
    response = api_client.post(
        "/exports/csv",
        json=_payload([{}, {}, {}], data_type="patients"),
        headers=auth_headers,
    )
    assert response.status_code == 422
    assert "Too many rows" in response.json()["detail"]


def test_serializer_failure_surfaces_as_export_failed(api_client, auth_headers, monkeypatch):
    def _boom(*args, **kwargs):
        raise RuntimeError("reportlab fell over")

    monkeypatch.setattr(report_pdf, "build_table_pdf", _boom)
    response = api_client.post(
        "/exports/pdf",
        json=_payload([], data_type="users"),
        headers=auth_headers,
    )
    assert response.status_code == 500
    assert response.json() == {"detail": "Failed to export PDF"}


def test_permissions_endpoint_reports_gate(api_client, headers_for):
    allowed = api_client.get(
        "/exports/permissions",
        params={"data_type": "auditLogs"},
        headers=headers_for("Auditor"),
    )
    assert allowed.status_code == 200
    assert allowed.json()["can_export"] is True

    denied = api_client.get(
        "/exports/permissions",
        params={"data_type": "auditLogs"},
        headers=headers_for("Doctor"),
    )
    assert denied.json()["can_export"] is False
    assert "Auditor" in denied.json()["allowed_roles"]


def test_data_types_listing(api_client, auth_headers):
    response = api_client.get("/exports/data-types", headers=auth_headers)
    assert response.status_code == 200
    by_type = {item["data_type"]: item for item in response.json()}
    assert set(by_type) == {"appointments", "invoices", "auditLogs", "patients", "users", "payments"}
    assert by_type["invoices"]["columns"][4] == "Balance"
    assert by_type["auditLogs"]["title"] == "AuditLogs Report"
