"""Shared fixtures: an in-process fake of the OpEx Hub API and a portal test client."""
from __future__ import annotations

import copy
import json
import sys
from pathlib import Path

import httpx
import pytest
from fastapi.testclient import TestClient

sys.path.append(str(Path(__file__).resolve().parents[1]))

from opexhub.application import configure_api_client, reset_portal_state
from opexhub.infrastructure import OpexApiClient

BASE_URL = "http://opex.test"
PASSWORD = "secret"

USERS = {
    "stld@opex.test": {"id": 1, "email": "stld@opex.test", "fullName": "Priya Sharma", "role": "STLD", "site": "NDS", "discipline": "OP", "roleName": "Site TSD Lead"},
    "il@opex.test": {"id": 2, "email": "il@opex.test", "fullName": "Ravi Kumar", "role": "IL", "site": "NDS", "discipline": "EG", "roleName": "Initiative Lead"},
    "sh@opex.test": {"id": 3, "email": "sh@opex.test", "fullName": "Anita Rao", "role": "SH", "site": "NDS", "discipline": "OP", "roleName": "Site Head"},
    "fa@opex.test": {"id": 4, "email": "fa@opex.test", "fullName": "Farah Ali", "role": "F&A Approver", "site": "NDS", "discipline": "OT"},
    "admin@opex.test": {"id": 5, "email": "admin@opex.test", "fullName": "Admin", "role": "ADMIN", "site": "NDS", "discipline": "OT"},
}


def _initiatives() -> list[dict]:
    items = []
    for index in range(12):
        number = 101 + index
        site = "NDS" if index % 2 == 0 else "HSD1"
        items.append(
            {
                "id": number,
                "initiativeNumber": f"{site}/25/OP/AB/{number}",
                "title": f"Initiative {number}",
                "description": "Reduce steam losses across the utility block",
                "site": site,
                "discipline": "OP",
                "priority": "High" if index % 3 == 0 else "Medium",
                "status": "In Progress",
                "expectedSavings": 100000 + index * 1000,
                "progressPercentage": 20,
                "currentStage": 2,
                "startDate": "2025-04-01",
                "endDate": "2026-04-01",
                "estimatedCapex": 5,
                "createdAt": "2025-04-02T10:00:00",
                "updatedAt": "2025-05-01T10:00:00",
            }
        )
    return items


def _transactions() -> dict[int, list[dict]]:
    return {
        101: [
            {"id": 1, "initiativeId": 101, "stageNumber": 1, "stageName": "Register Initiative", "requiredRole": "STLD", "approveStatus": "approved"},
            {"id": 2, "initiativeId": 101, "stageNumber": 2, "stageName": "Approval", "requiredRole": "SH", "approveStatus": "pending"},
            {"id": 3, "initiativeId": 101, "stageNumber": 3, "stageName": "Define Responsibilities", "requiredRole": "EH", "approveStatus": "pending"},
        ]
    }


def _assignments() -> dict[tuple[str, str], list[dict]]:
    summary = {
        "initiativeNumber": "NDS/25/OP/AB/101",
        "initiativeTitle": "Initiative 101",
        "initiativeStatus": "In Progress",
        "site": "NDS",
        "expectedSavings": 250000,
        "description": "Reduce steam losses across the utility block",
    }
    return {
        ("NDS", "STLD"): [
            {"id": 20, "initiativeId": 101, "stageNumber": 9, "status": "APPROVED", "assignedUserEmail": "stld@opex.test", **summary},
            {"id": 21, "initiativeId": 102, "stageNumber": 9, "status": "APPROVED", "assignedUserEmail": "other@opex.test", **summary},
            {"id": 22, "initiativeId": 103, "stageNumber": 8, "status": "APPROVED", "assignedUserEmail": "stld@opex.test", **summary},
            {"id": 24, "initiativeId": 104, "stageNumber": 9, "status": "PENDING", "assignedUserEmail": "stld@opex.test", **summary},
        ],
        ("NDS", "IL"): [
            {"id": 23, "initiativeId": 101, "stageNumber": 6, "status": "APPROVED", "assignedUserEmail": "il@opex.test", **summary},
        ],
    }


def _monitoring() -> dict[int, dict]:
    return {
        501: {"id": 501, "initiativeId": 101, "monitoringMonth": "2025-05", "kpiDescription": "Steam savings", "category": "Cost Savings", "targetValue": 1000, "achievedValue": 1200, "deviation": 200, "deviationPercentage": 20, "isFinalized": False, "faApproval": False, "enteredBy": "stld@opex.test"},
        502: {"id": 502, "initiativeId": 101, "monitoringMonth": "2025-04", "kpiDescription": "Condensate recovery", "category": "General", "targetValue": 1000, "achievedValue": 800, "deviation": -200, "deviationPercentage": -20, "isFinalized": True, "faApproval": True, "enteredBy": "stld@opex.test"},
    }


def _timeline() -> dict[int, dict]:
    return {
        701: {"id": 701, "initiativeId": 101, "stageName": "Trial run", "plannedStartDate": "2025-01-01", "plannedEndDate": "2025-02-01", "status": "COMPLETED", "responsiblePerson": "Ravi", "enteredBy": "il@opex.test", "siteLeadApproval": True, "initiativeLeadApproval": False},
        702: {"id": 702, "initiativeId": 101, "stageName": "Rollout", "plannedStartDate": "2025-03-01", "plannedEndDate": "2025-06-01", "status": "PENDING", "responsiblePerson": "Meena", "enteredBy": "someone@opex.test", "siteLeadApproval": False, "initiativeLeadApproval": False},
    }


def _envelope(data, message: str = "ok") -> dict:
    return {"success": True, "message": message, "data": data}


class FakeOpexApi:
    """Minimal stateful stand-in for the OpEx Hub REST API."""

    def __init__(self) -> None:
        self.initiatives = _initiatives()
        self.transactions = _transactions()
        self.assignments = _assignments()
        self.monitoring = _monitoring()
        self.timeline = _timeline()
        self.progress: dict[int, float] = {101: 27.5}
        self.registered: list[dict] = []
        self.calls: list[dict] = []
        self.failures: dict[tuple[str, str], tuple[int, str]] = {}
        self.list_without_content = False
        self._next_id = 900

    def fail(self, method: str, path: str, status: int = 500, message: str = "Server exploded") -> None:
        self.failures[(method, path)] = (status, message)

    def paths(self, method: str | None = None) -> list[str]:
        return [call["path"] for call in self.calls if method is None or call["method"] == method]

    def _new_id(self) -> int:
        self._next_id += 1
        return self._next_id

    def handler(self, request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content.decode("utf-8")) if request.content else None
        path = request.url.path
        self.calls.append(
            {
                "method": request.method,
                "path": path,
                "params": dict(request.url.params),
                "json": body,
                "authorization": request.headers.get("Authorization"),
            }
        )
        failure = self.failures.get((request.method, path))
        if failure:
            status, message = failure
            return httpx.Response(status, json={"message": message})
        return self._route(request.method, path.strip("/").split("/"), dict(request.url.params), body)

    def _route(self, method: str, parts: list[str], params: dict, body) -> httpx.Response:
        area = parts[1] if len(parts) > 1 else ""
        rest = parts[2:]

        if area == "auth":
            return self._auth(rest[0], body)
        if area == "initiatives":
            return self._initiatives(method, rest, params, body)
        if area == "workflow-transactions":
            return self._workflow(method, rest, body)
        if area == "monthly-monitoring":
            return self._monitoring(method, rest, params, body)
        if area == "timeline-tracker":
            return self._timeline(method, rest, params, body)
        if area == "reports":
            return httpx.Response(200, content=b"PK-fake-xlsx")
        return httpx.Response(404, json={"message": "not found"})

    # ------------------------------------------------------------------
    # areas
    # ------------------------------------------------------------------
    def _auth(self, action: str, body: dict) -> httpx.Response:
        if action == "signin":
            user = USERS.get(body.get("email"))
            if user is None or body.get("password") != PASSWORD:
                return httpx.Response(401, json={"success": False, "message": "Invalid email or password"})
            return httpx.Response(200, json=_envelope({"token": f"api-{user['id']}", "user": user}))
        if body.get("email") in USERS:
            return httpx.Response(400, json={"success": False, "message": "Email is already taken!"})
        self.registered.append(body)
        return httpx.Response(200, json={"success": True, "message": "User registered successfully"})

    def _initiatives(self, method: str, rest: list[str], params: dict, body) -> httpx.Response:
        if not rest:
            if method == "POST":
                created = {**body, "id": self._new_id(), "status": "Registered", "currentStage": 1}
                self.initiatives.append(created)
                return httpx.Response(200, json=created)
            if self.list_without_content:
                return httpx.Response(200, json={"items": []})
            rows = [item for item in self.initiatives if not params.get("site") or item["site"] == params["site"]]
            return httpx.Response(200, json={"content": copy.deepcopy(rows), "totalElements": len(rows)})
        initiative_id = int(rest[0])
        for item in self.initiatives:
            if item["id"] == initiative_id:
                if method == "PUT":
                    item.update(body)
                return httpx.Response(200, json=item)
        return httpx.Response(404, json={"message": "Initiative not found"})

    def _workflow(self, method: str, rest: list[str], body) -> httpx.Response:
        kind = rest[0]
        if kind == "initiative":
            return httpx.Response(200, json=copy.deepcopy(self.transactions.get(int(rest[1]), [])))
        if kind == "pending" and rest[1] == "role":
            rows = [
                item
                for items in self.transactions.values()
                for item in items
                if item["approveStatus"] == "pending" and item["requiredRole"] == rest[2]
            ]
            return httpx.Response(200, json=copy.deepcopy(rows))
        if kind == "pending" and rest[1] == "site":
            return httpx.Response(200, json=copy.deepcopy(self.assignments.get((rest[2], rest[4]), [])))
        if kind == "current-pending":
            for item in self.transactions.get(int(rest[1]), []):
                if item["approveStatus"] == "pending":
                    return httpx.Response(200, json=item)
            return httpx.Response(200)
        if kind == "progress":
            value = self.progress.get(int(rest[1]))
            return httpx.Response(200, json={"progressPercentage": value}) if value is not None else httpx.Response(200)
        if kind == "process-stage" and method == "POST":
            for items in self.transactions.values():
                for item in items:
                    if item["id"] == body["transactionId"]:
                        item["approveStatus"] = body["action"]
                        item["comment"] = body.get("comment")
                        return httpx.Response(200, json=item)
            return httpx.Response(404, json={"message": "Transaction not found"})
        return httpx.Response(404, json={"message": "not found"})

    def _monitoring(self, method: str, rest: list[str], params: dict, body) -> httpx.Response:
        if rest[0] == "entry":
            entry_id = int(rest[1])
            entry = self.monitoring.get(entry_id)
            if entry is None:
                return httpx.Response(404, json={"success": False, "message": "Entry not found"})
            if method == "DELETE":
                del self.monitoring[entry_id]
                return httpx.Response(200, json=_envelope(None, "Deleted"))
            if len(rest) == 3 and rest[2] == "finalize":
                entry["isFinalized"] = params["isFinalized"] == "true"
            elif len(rest) == 3 and rest[2] == "fa-approval":
                entry["faApproval"] = params["faApproval"] == "true"
                entry["faComments"] = params.get("faComments")
            else:
                entry.update(body)
            return httpx.Response(200, json=_envelope(entry))

        initiative_id = int(rest[0])
        if method == "POST":
            created = {**body, "id": self._new_id()}
            self.monitoring[created["id"]] = created
            return httpx.Response(200, json=_envelope(created))
        entries = [item for item in self.monitoring.values() if item["initiativeId"] == initiative_id]
        if len(rest) == 3 and rest[1] == "month":
            entries = [item for item in entries if item["monitoringMonth"] == rest[2]]
        elif len(rest) == 2 and rest[1] == "pending-fa-approvals":
            entries = [item for item in entries if item["isFinalized"] and not item["faApproval"]]
        return httpx.Response(200, json=_envelope(copy.deepcopy(entries)))

    def _timeline(self, method: str, rest: list[str], params: dict, body) -> httpx.Response:
        if rest[0] == "entry":
            entry_id = int(rest[1])
            entry = self.timeline.get(entry_id)
            if entry is None:
                return httpx.Response(404, json={"success": False, "message": "Entry not found"})
            if method == "DELETE":
                del self.timeline[entry_id]
                return httpx.Response(200, json=_envelope(None, "Deleted"))
            if len(rest) == 3 and rest[2] == "approvals":
                if "siteLeadApproval" in params:
                    entry["siteLeadApproval"] = params["siteLeadApproval"] == "true"
                if "initiativeLeadApproval" in params:
                    entry["initiativeLeadApproval"] = params["initiativeLeadApproval"] == "true"
            else:
                entry.update(body)
            return httpx.Response(200, json=_envelope(entry))

        initiative_id = int(rest[0])
        if method == "POST":
            created = {**body, "id": self._new_id()}
            self.timeline[created["id"]] = created
            return httpx.Response(200, json=_envelope(created))
        entries = [item for item in self.timeline.values() if item["initiativeId"] == initiative_id]
        if len(rest) == 2 and rest[1] == "pending-approvals":
            entries = [item for item in entries if not (item["siteLeadApproval"] and item["initiativeLeadApproval"])]
        return httpx.Response(200, json=_envelope(copy.deepcopy(entries)))


@pytest.fixture()
def fake_api() -> FakeOpexApi:
    return FakeOpexApi()


@pytest.fixture()
def api_client(fake_api: FakeOpexApi) -> OpexApiClient:
    http_client = httpx.Client(transport=httpx.MockTransport(fake_api.handler))
    client = OpexApiClient(BASE_URL, http_client=http_client)
    yield client
    http_client.close()


@pytest.fixture(autouse=True)
def reset_state():
    reset_portal_state()
    yield
    reset_portal_state()


@pytest.fixture()
def client(api_client: OpexApiClient):
    from opexhub.app import create_app

    app = create_app()
    configure_api_client(api_client)
    with TestClient(app) as test_client:
        yield test_client


def sign_in(client: TestClient, email: str) -> dict[str, str]:
    response = client.post("/api/auth/login", json={"email": email, "password": PASSWORD})
    assert response.status_code == 200
    token = response.json()["token"]
    assert token
    return {"X-Session-Token": token}
