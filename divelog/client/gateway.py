"""HTTP client for the dive log service.

Every call returns decoded JSON rows (plain dicts) or raises GatewayError.
There are no retries: a rejected call is reported to the caller once.
"""
from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Any, Optional
from uuid import UUID

import httpx

from divelog.client.errors import GatewayError

logger = logging.getLogger(__name__)

_TIMEOUT = 30.0

DEFAULT_RANKS = ["Supervisor", "Diver 1", "Diver 2", "Diver 3", "Tender", "LSS"]


def _jsonable(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, UUID):
        return str(value)
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def _detail(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text or resp.reason_phrase
    detail = body.get("detail") if isinstance(body, dict) else None
    if isinstance(detail, list):
        # pydantic validation errors
        return "; ".join(str(d.get("msg", d)) for d in detail)
    return str(detail or body)


class DiveLogClient:
    """Thin wrapper over the REST API.

    Pass ``http`` to reuse an existing ``httpx.Client`` (the test suite hands
    in Starlette's TestClient); otherwise one is created for ``base_url``.
    """

    def __init__(
        self,
        base_url: str = "",
        token: Optional[str] = None,
        http: Optional[httpx.Client] = None,
        timeout: float = _TIMEOUT,
    ):
        self._owns_http = http is None
        self._http = http or httpx.Client(base_url=base_url, timeout=timeout)
        self.token = token

    def close(self) -> None:
        if self._owns_http:
            self._http.close()

    def __enter__(self) -> "DiveLogClient":
        return self

    def __exit__(self, *args) -> None:
        self.close()

    # ── transport ─────────────────────────────────────────────────────────────

    def _send(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = dict(kwargs.pop("headers", None) or {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        if "json" in kwargs:
            kwargs["json"] = _jsonable(kwargs["json"])
        if "params" in kwargs:
            kwargs["params"] = {k: _jsonable(v) for k, v in kwargs["params"].items() if v is not None}
        try:
            resp = self._http.request(method, path, headers=headers, **kwargs)
        except httpx.HTTPError as exc:
            raise GatewayError(0, f"{method} {path} failed: {exc}") from exc
        if resp.status_code >= 400:
            raise GatewayError(resp.status_code, _detail(resp))
        return resp

    def _request(self, method: str, path: str, **kwargs) -> Any:
        resp = self._send(method, path, **kwargs)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    # ── auth ──────────────────────────────────────────────────────────────────

    def sign_in(self, email: str, password: str) -> dict:
        data = self._request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = data["access_token"]
        return data

    def sign_up(self, email: str, password: str, full_name: Optional[str] = None) -> dict:
        data = self._request(
            "POST", "/auth/signup",
            json={"email": email, "password": password, "full_name": full_name},
        )
        self.token = data["access_token"]
        return data

    def sign_out(self) -> None:
        if self.token:
            try:
                self._request("POST", "/auth/logout")
            finally:
                self.token = None

    def current_session(self) -> Optional[dict]:
        if not self.token:
            return None
        return self._request("GET", "/auth/session")

    def request_password_reset(self, email: str) -> None:
        self._request("POST", "/auth/password-reset", json={"email": email})

    def confirm_password_reset(self, token: str, password: str) -> None:
        self._request("POST", "/auth/password-reset/confirm", json={"token": token, "password": password})

    def update_password(self, password: str) -> None:
        self._request("PUT", "/auth/password", json={"password": password})

    # ── profiles ──────────────────────────────────────────────────────────────

    def ensure_profile(self, user_id) -> dict:
        return self._request("PUT", f"/profiles/{user_id}")

    # ── jobs ──────────────────────────────────────────────────────────────────

    def list_jobs(self, status: Optional[str] = None) -> list[dict]:
        return self._request("GET", "/jobs", params={"status": status})

    def create_job(self, **fields) -> dict:
        return self._request("POST", "/jobs", json=fields)

    def update_job(self, job_id, **fields) -> dict:
        return self._request("PUT", f"/jobs/{job_id}", json=fields)

    def delete_job(self, job_id) -> None:
        self._request("DELETE", f"/jobs/{job_id}")

    def list_job_dives(self, job_id) -> list[dict]:
        return self._request("GET", f"/jobs/{job_id}/dives")

    # ── divers and ranks ──────────────────────────────────────────────────────

    def list_divers(self) -> list[dict]:
        return self._request("GET", "/divers")

    def create_diver(self, **fields) -> dict:
        return self._request("POST", "/divers", json=fields)

    def update_diver(self, diver_id, **fields) -> dict:
        return self._request("PUT", f"/divers/{diver_id}", json=fields)

    def delete_diver(self, diver_id) -> None:
        self._request("DELETE", f"/divers/{diver_id}")

    def list_ranks(self) -> list[dict]:
        return self._request("GET", "/ranks")

    def create_rank(self, name: str) -> dict:
        return self._request("POST", "/ranks", json={"name": name})

    def delete_rank(self, rank_id) -> None:
        self._request("DELETE", f"/ranks/{rank_id}")

    def available_ranks(self) -> list[str]:
        """Rank names for the diver form; the built-in list if the master list is unreachable."""
        try:
            return self._request("GET", "/ranks/names")
        except GatewayError as exc:
            logger.warning("Could not fetch ranks, using defaults: %s", exc)
            return list(DEFAULT_RANKS)

    # ── dives ─────────────────────────────────────────────────────────────────

    def create_dive(self, job_id, diver_id, supervisor_id=None, started_at: Optional[datetime] = None) -> dict:
        body = {"job_id": job_id, "diver_id": diver_id, "supervisor_id": supervisor_id}
        if started_at is not None:
            body["started_at"] = started_at
        return self._request("POST", "/dives", json=body)

    def get_dive(self, dive_id) -> dict:
        return self._request("GET", f"/dives/{dive_id}")

    def update_dive(self, dive_id, **fields) -> dict:
        return self._request("PUT", f"/dives/{dive_id}", json=fields)

    def delete_dive(self, dive_id) -> None:
        self._request("DELETE", f"/dives/{dive_id}")

    def find_active_dive(self, supervisor_id=None, job_id=None, diver_id=None) -> Optional[dict]:
        try:
            return self._request(
                "GET", "/dives/active",
                params={"supervisor_id": supervisor_id, "job_id": job_id, "diver_id": diver_id},
            )
        except GatewayError as exc:
            if exc.not_found:
                return None
            raise

    def list_events(self, dive_id) -> list[dict]:
        return self._request("GET", f"/dives/{dive_id}/events")

    def insert_event(
        self,
        dive_id,
        event_type: str,
        description: Optional[str] = None,
        event_time: Optional[datetime] = None,
        depth: float = 0,
    ) -> dict:
        return self._request(
            "POST", f"/dives/{dive_id}/events",
            json={
                "event_type": event_type,
                "description": description,
                "event_time": event_time,
                "depth": depth,
            },
        )

    def delete_dive_events(self, dive_id) -> None:
        self._request("DELETE", f"/dives/{dive_id}/events")

    # ── reports ───────────────────────────────────────────────────────────────

    def dashboard(self) -> dict:
        return self._request("GET", "/reports/dashboard")

    def daily_report(self, on: Optional[date] = None) -> dict:
        return self._request("GET", "/reports/daily", params={"on": on})

    def dive_report(self, dive_id) -> dict:
        return self._request("GET", f"/reports/dives/{dive_id}")

    def dive_report_pdf(self, dive_id) -> bytes:
        return self._send("GET", f"/reports/dives/{dive_id}/pdf").content

    def share_dive_report(self, dive_id) -> dict:
        return self._request("POST", f"/reports/dives/{dive_id}/share")
