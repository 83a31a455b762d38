import pytest
from fastapi.testclient import TestClient

from app.core.security import create_access_token
from app.core.settings import settings
from app.main import app


def make_token(role: str, user_id: int = 1, **extra) -> str:
    return create_access_token(
        subject=str(user_id),
        secret=settings.secret_key,
        alg=settings.jwt_alg,
        expires_minutes=30,
        extra={"user_id": user_id, "role": role, "email": "staff@example.lk", **extra},
    )


@pytest.fixture(scope="session")
def api_client():
    with TestClient(app) as client:
        yield client


@pytest.fixture()
def headers_for():
    def _headers(role: str, user_id: int = 1) -> dict[str, str]:
        return {"Authorization": f"Bearer {make_token(role, user_id)}"}

    return _headers


@pytest.fixture()
def auth_headers(headers_for):
    return headers_for("System Administrator")


@pytest.fixture()
def appointment_rows():
    return [
        {
            "appointment_id": 101,
            "Patient": {"full_name": "Nimal Perera"},
            "Doctor": {"full_name": "Dr. Silva"},
            "appointment_date": "2024-01-05",
            "appointment_time": "09:30",
            "status": "Scheduled",
            "appointment_type": "Consultation",
            "notes": 'Bring "old" reports, fasting',
        },
        {
            "appointment_id": 102,
            "Patient": {"full_name": "Kumari Fernando"},
            "Doctor": None,
            "appointment_date": "2024-01-06",
            "appointment_time": "10:00",
            "status": "Completed",
            "appointment_type": "Follow-up",
            "notes": "Line one\nLine two",
        },
        {
            "appointment_id": 103,
            "Patient": {"full_name": "Saman Jayasuriya"},
            "Doctor": {"full_name": "Dr. Wickramasinghe"},
            "appointment_date": None,
            "appointment_time": None,
            "status": "Cancelled",
        },
    ]
