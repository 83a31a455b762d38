from pathlib import Path

import pytest

from app.core.security import create_access_token
from app.core.settings import settings
from app.deps import get_current_user
from app.services.report_csv import ExportFile
from app.services.report_export import save_export


def _file() -> ExportFile:
    return ExportFile(filename="invoices_2024-01-05.csv", media_type="text/csv", content=b"A,B\r\n1,2\r\n")


def test_save_export_writes_file(tmp_path):
    target = save_export(_file(), tmp_path / "reports")
    assert target == tmp_path / "reports" / "invoices_2024-01-05.csv"
    assert target.read_bytes() == b"A,B\r\n1,2\r\n"
    assert [path.name for path in (tmp_path / "reports").iterdir()] == ["invoices_2024-01-05.csv"]


def test_save_export_leaves_nothing_behind_on_failure(tmp_path, monkeypatch):
    def _fail(self, target):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "replace", _fail)
    with pytest.raises(OSError, match="disk full"):
        save_export(_file(), tmp_path)
    assert list(tmp_path.iterdir()) == []


def test_save_export_keeps_previous_file_on_failure(tmp_path, monkeypatch):
    existing = tmp_path / "invoices_2024-01-05.csv"
    existing.write_bytes(b"old")

    def _fail(self, target):
        raise OSError("disk full")

    monkeypatch.setattr(Path, "replace", _fail)
    with pytest.raises(OSError):
        save_export(_file(), tmp_path)
    assert existing.read_bytes() == b"old"
    assert list(tmp_path.iterdir()) == [existing]


def test_current_user_carries_full_name_claim():
    token = create_access_token(
        subject="7",
        secret=settings.secret_key,
        alg=settings.jwt_alg,
        expires_minutes=5,
        extra={"user_id": 7, "role": "Manager", "full_name": "Anura Bandara", "branch_id": 2},
    )
    user = get_current_user(authorization=f"Bearer {token}")
    assert user.user_id == 7
    assert user.full_name == "Anura Bandara"
    assert user.branch_id == 2


def test_current_user_without_full_name_claim():
    token = create_access_token(
        subject="8",
        secret=settings.secret_key,
        alg=settings.jwt_alg,
        expires_minutes=5,
        extra={"role": "Accountant"},
    )
    user = get_current_user(authorization=f"Bearer {token}")
    assert user.user_id == 8
    assert user.full_name is None
