"""HTTP client for the remote OpEx Hub API."""
from __future__ import annotations

import logging
from typing import Any
from urllib.parse import urlparse

import httpx

from opexhub.core.schema import MonitoringEntry, TimelineEntry, WorkflowTransaction

logger = logging.getLogger(__name__)


class OpexApiError(RuntimeError):
    """Raised when the OpEx Hub API rejects a request or cannot be reached."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class OpexApiClient:
    """Thin wrapper over the OpEx Hub REST endpoints used by the portal pages."""

    def __init__(
        self,
        base_url: str = "http://localhost:8080",
        *,
        token: str | None = None,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ) -> None:
        parsed = urlparse(base_url)
        if not parsed.scheme or not parsed.netloc:
            raise ValueError("base_url must include scheme and host")

        self._base_url = base_url.rstrip("/")
        self._token = token
        self._timeout = timeout
        self._client = http_client or httpx.Client(timeout=timeout)
        self._owns_client = http_client is None

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def token(self) -> str | None:
        return self._token

    def with_token(self, token: str | None) -> "OpexApiClient":
        """Return a client bound to ``token`` that shares this client's connection pool."""

        return OpexApiClient(self._base_url, token=token, timeout=self._timeout, http_client=self._client)

    # ------------------------------------------------------------------
    # helpers
    # ------------------------------------------------------------------
    def _headers(self) -> dict[str, str]:
        headers = {"Accept": "application/json"}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    @staticmethod
    def _clean_params(params: dict[str, Any] | None) -> dict[str, Any] | None:
        if not params:
            return None
        cleaned: dict[str, Any] = {}
        for key, value in params.items():
            if value is None:
                continue
            cleaned[key] = str(value).lower() if isinstance(value, bool) else value
        return cleaned

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        try:
            payload = response.json()
        except ValueError:
            payload = None
        if isinstance(payload, dict):
            for key in ("message", "error"):
                if payload.get(key):
                    return str(payload[key])
        text = response.text.strip()
        return text or f"Request failed with status {response.status_code}"

    def _send(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> httpx.Response:
        url = f"{self._base_url}{path}"
        try:
            response = self._client.request(
                method,
                url,
                params=self._clean_params(params),
                json=json,
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            logger.warning("OpEx Hub request %s %s failed: %s", method, path, exc)
            raise OpexApiError(str(exc) or "Network error") from exc

        if response.status_code >= 400:
            message = self._error_message(response)
            logger.warning("OpEx Hub %s %s returned %s: %s", method, path, response.status_code, message)
            raise OpexApiError(message, response.status_code)
        return response

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> Any:
        response = self._send(method, path, params=params, json=json)
        if not response.content:
            return None
        try:
            payload = response.json()
        except ValueError as exc:
            raise OpexApiError("Malformed response from OpEx Hub API", response.status_code) from exc

        # {success, message, data} envelope
        if isinstance(payload, dict) and "success" in payload and ("data" in payload or "message" in payload):
            if not payload.get("success"):
                raise OpexApiError(str(payload.get("message") or "Request failed"), response.status_code)
            return payload.get("data")
        return payload

    @staticmethod
    def _as_list(payload: Any) -> list[dict[str, Any]]:
        if isinstance(payload, list):
            return payload
        if isinstance(payload, dict) and isinstance(payload.get("content"), list):
            return payload["content"]
        return []

    # ------------------------------------------------------------------
    # authentication
    # ------------------------------------------------------------------
    def sign_in(self, email: str, password: str) -> dict[str, Any]:
        payload = self._request("POST", "/api/auth/signin", json={"email": email, "password": password})
        return payload if isinstance(payload, dict) else {}

    def sign_up(self, payload: dict[str, Any]) -> dict[str, Any]:
        result = self._request("POST", "/api/auth/signup", json=payload)
        return result if isinstance(result, dict) else {}

    # ------------------------------------------------------------------
    # initiatives
    # ------------------------------------------------------------------
    def list_initiatives(
        self,
        *,
        status: str | None = None,
        site: str | None = None,
        search: str | None = None,
        page: int | None = None,
        size: int | None = None,
    ) -> Any:
        """Return the raw page object; callers check for its ``content`` list."""

        params = {"status": status, "site": site, "search": search, "page": page, "size": size}
        return self._request("GET", "/api/initiatives", params=params)

    def get_initiative(self, initiative_id: int | str) -> dict[str, Any]:
        return self._request("GET", f"/api/initiatives/{initiative_id}") or {}

    def create_initiative(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/api/initiatives", json=payload) or {}

    def update_initiative(self, initiative_id: int | str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/api/initiatives/{initiative_id}", json=payload) or {}

    # ------------------------------------------------------------------
    # workflow transactions
    # ------------------------------------------------------------------
    def workflow_transactions(self, initiative_id: int | str) -> list[WorkflowTransaction]:
        payload = self._request("GET", f"/api/workflow-transactions/initiative/{initiative_id}")
        return [WorkflowTransaction.model_validate(item) for item in self._as_list(payload)]

    def pending_transactions_for_role(self, role: str) -> list[WorkflowTransaction]:
        payload = self._request("GET", f"/api/workflow-transactions/pending/role/{role}")
        return [WorkflowTransaction.model_validate(item) for item in self._as_list(payload)]

    def pending_transactions_for_site_role(self, site: str, role: str) -> list[WorkflowTransaction]:
        payload = self._request("GET", f"/api/workflow-transactions/pending/site/{site}/role/{role}")
        return [WorkflowTransaction.model_validate(item) for item in self._as_list(payload)]

    def current_pending_stage(self, initiative_id: int | str) -> WorkflowTransaction | None:
        payload = self._request("GET", f"/api/workflow-transactions/current-pending/{initiative_id}")
        if not isinstance(payload, dict) or payload.get("stageNumber") is None:
            return None
        return WorkflowTransaction.model_validate(payload)

    def progress_percentage(self, initiative_id: int | str) -> float | None:
        payload = self._request("GET", f"/api/workflow-transactions/progress/{initiative_id}")
        if isinstance(payload, dict):
            payload = payload.get("progressPercentage")
        if isinstance(payload, (int, float)) and not isinstance(payload, bool):
            return float(payload)
        return None

    def process_stage(self, transaction_id: int, action: str, comment: str = "") -> dict[str, Any]:
        body = {"transactionId": transaction_id, "action": action, "comment": comment}
        return self._request("POST", "/api/workflow-transactions/process-stage", json=body) or {}

    # ------------------------------------------------------------------
    # monthly monitoring
    # ------------------------------------------------------------------
    def monitoring_entries(self, initiative_id: int | str, month: str | None = None) -> list[MonitoringEntry]:
        path = f"/api/monthly-monitoring/{initiative_id}"
        if month:
            path = f"{path}/month/{month}"
        payload = self._request("GET", path)
        return [MonitoringEntry.model_validate(item) for item in self._as_list(payload)]

    def create_monitoring_entry(self, initiative_id: int | str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", f"/api/monthly-monitoring/{initiative_id}", json=payload) or {}

    def update_monitoring_entry(self, entry_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/api/monthly-monitoring/entry/{entry_id}", json=payload) or {}

    def finalize_monitoring_entry(self, entry_id: int, is_finalized: bool) -> dict[str, Any]:
        params = {"isFinalized": is_finalized}
        return self._request("PUT", f"/api/monthly-monitoring/entry/{entry_id}/finalize", params=params) or {}

    def set_fa_approval(self, entry_id: int, fa_approval: bool, fa_comments: str | None = None) -> dict[str, Any]:
        params = {"faApproval": fa_approval, "faComments": fa_comments or None}
        return self._request("PUT", f"/api/monthly-monitoring/entry/{entry_id}/fa-approval", params=params) or {}

    def delete_monitoring_entry(self, entry_id: int) -> None:
        self._request("DELETE", f"/api/monthly-monitoring/entry/{entry_id}")

    def pending_fa_approvals(self, initiative_id: int | str) -> list[MonitoringEntry]:
        payload = self._request("GET", f"/api/monthly-monitoring/{initiative_id}/pending-fa-approvals")
        return [MonitoringEntry.model_validate(item) for item in self._as_list(payload)]

    # ------------------------------------------------------------------
    # timeline tracker
    # ------------------------------------------------------------------
    def timeline_entries(self, initiative_id: int | str) -> list[TimelineEntry]:
        payload = self._request("GET", f"/api/timeline-tracker/{initiative_id}")
        return [TimelineEntry.model_validate(item) for item in self._as_list(payload)]

    def create_timeline_entry(self, initiative_id: int | str, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", f"/api/timeline-tracker/{initiative_id}", json=payload) or {}

    def update_timeline_entry(self, entry_id: int, payload: dict[str, Any]) -> dict[str, Any]:
        return self._request("PUT", f"/api/timeline-tracker/entry/{entry_id}", json=payload) or {}

    def update_timeline_approvals(
        self,
        entry_id: int,
        *,
        site_lead_approval: bool | None = None,
        initiative_lead_approval: bool | None = None,
    ) -> dict[str, Any]:
        params = {"siteLeadApproval": site_lead_approval, "initiativeLeadApproval": initiative_lead_approval}
        return self._request("PUT", f"/api/timeline-tracker/entry/{entry_id}/approvals", params=params) or {}

    def delete_timeline_entry(self, entry_id: int) -> None:
        self._request("DELETE", f"/api/timeline-tracker/entry/{entry_id}")

    def pending_timeline_approvals(self, initiative_id: int | str) -> list[TimelineEntry]:
        payload = self._request("GET", f"/api/timeline-tracker/{initiative_id}/pending-approvals")
        return [TimelineEntry.model_validate(item) for item in self._as_list(payload)]

    # ------------------------------------------------------------------
    # reports
    # ------------------------------------------------------------------
    def export_detailed_excel(self, *, site: str | None = None, year: str | None = None) -> bytes:
        response = self._send(
            "GET", "/api/reports/export/detailed-excel", params={"site": site, "year": year}
        )
        return response.content

    def close(self) -> None:  # pragma: no cover - best effort cleanup
        if self._owns_client:
            self._client.close()


__all__ = ["OpexApiClient", "OpexApiError"]
