from __future__ import annotations

import logging
from typing import Any

import httpx

from app.core.settings import settings
from app.schemas.export import DataType

logger = logging.getLogger("catms.api_rows")

DEFAULT_ENDPOINTS: dict[DataType, str] = {
    DataType.appointments: "/api/appointments",
    DataType.invoices: "/api/invoices",
    DataType.audit_logs: "/api/audit-logs",
    DataType.patients: "/api/patients",
    DataType.users: "/api/users",
    DataType.payments: "/api/payments",
}

ENVELOPE_KEYS = ("data", "rows", "items", "logs", "results")


class RowsFetchError(RuntimeError):
    pass


class RowsAuthError(RowsFetchError):
    pass


def unwrap_rows(payload: Any, extra_keys: tuple[str, ...] = ()) -> list[dict[str, Any]]:
    if isinstance(payload, dict):
        for key in (*extra_keys, *ENVELOPE_KEYS):
            if isinstance(payload.get(key), list):
                payload = payload[key]
                break
    if not isinstance(payload, list):
        raise RowsFetchError("Expected a JSON array of records")
    if not all(isinstance(item, dict) for item in payload):
        raise RowsFetchError("Expected every record to be a JSON object")
    return payload


class RowsClient:
    """Fetches already-authorised rows from the CATMS REST API."""

    def __init__(
        self,
        base_url: str | None = None,
        token: str | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ):
        headers = {"Accept": "application/json"}
        token = token if token is not None else settings.api_token
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.Client(
            base_url=base_url or settings.api_base_url,
            headers=headers,
            timeout=timeout or settings.api_timeout_seconds,
            transport=transport,
        )

    def __enter__(self) -> "RowsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def fetch_rows(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
        envelope_key: str | None = None,
    ) -> list[dict[str, Any]]:
        try:
            response = self._client.get(endpoint, params=params)
        except httpx.HTTPError as exc:
            raise RowsFetchError(f"Request to {endpoint} failed: {exc}") from exc
        if response.status_code in {401, 403}:
            raise RowsAuthError(f"Not authorised to read {endpoint} ({response.status_code})")
        if response.is_error:
            raise RowsFetchError(f"{endpoint} returned HTTP {response.status_code}")
        try:
            payload = response.json()
        except ValueError as exc:
            raise RowsFetchError(f"{endpoint} did not return JSON") from exc
        rows = unwrap_rows(payload, (envelope_key,) if envelope_key else ())
        logger.info("Fetched %d rows from %s", len(rows), endpoint)
        return rows


def fetch_rows_for(client: RowsClient, data_type: DataType, endpoint: str | None = None) -> list[dict[str, Any]]:
    return client.fetch_rows(endpoint or DEFAULT_ENDPOINTS[data_type], envelope_key=data_type.value)
