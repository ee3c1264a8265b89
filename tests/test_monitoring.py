from __future__ import annotations

import pytest
from conftest import sign_in

from opexhub.application import MonitoringPage, configure_api_client, get_portal_service
from opexhub.application.monitoring import build_monitoring_payload, current_month
from opexhub.domain import User

ASSIGNED_PATH = "/api/workflow-transactions/pending/site/NDS/role/STLD"


@pytest.fixture()
def headers(client):
    return sign_in(client, "stld@opex.test")


@pytest.fixture()
def selected(client, headers):
    response = client.post("/api/monitoring/select/101", headers=headers)
    assert response.status_code == 200, response.text
    return headers


def _view(response) -> dict:
    assert response.status_code == 200, response.text
    return response.json()["view"]


def _calls(fake_api, method: str, path: str) -> list[dict]:
    return [call for call in fake_api.calls if call["method"] == method and call["path"] == path]


def test_payload_carries_deviation_and_defaults():
    payload = build_monitoring_payload(
        {"kpiDescription": " Steam ", "targetValue": "500", "achievedValue": 450, "monitoringMonth": "2025-06"}
    )
    assert payload["kpiDescription"] == "Steam"
    assert payload["category"] == "General"
    assert payload["deviation"] == pytest.approx(-50)
    assert payload["deviationPercentage"] == pytest.approx(-10)
    assert payload["isFinalized"] is False
    assert payload["faApproval"] is False

    missing = build_monitoring_payload({"kpiDescription": "x", "targetValue": 500, "monitoringMonth": "2025-06"})
    assert missing["achievedValue"] is None
    assert missing["deviation"] is None


def test_only_stage_nine_assignments_of_the_user_are_listed(client, headers):
    view = _view(client.get("/api/monitoring", headers=headers))

    assert [item["id"] for item in view["initiatives"]] == [101]
    assert view["initiatives"][0]["currentStage"] == 9
    assert view["selectedMonth"] == current_month()
    assert view["dialog"] == {"open": False, "editingId": None, "form": {}}
    assert "entries" not in view
    assert client.post("/api/monitoring/select/102", headers=headers).status_code == 404


def test_assignment_lookup_failure_shows_empty_list(client, headers, fake_api):
    fake_api.fail("GET", ASSIGNED_PATH)
    view = _view(client.get("/api/monitoring", headers=headers))
    assert view["initiatives"] == []
    assert view["emptyMessage"] == "No initiatives have been approved for savings monitoring yet."


def test_reloading_the_page_shows_server_changes(client, selected, fake_api):
    before = _view(client.get("/api/monitoring", headers=selected))
    assert {entry["id"]: entry["faApproval"] for entry in before["entries"]} == {501: False, 502: True}
    assert [item["id"] for item in before["initiatives"]] == [101]

    fake_api.monitoring[501]["faApproval"] = True
    fake_api.assignments[("NDS", "STLD")][3]["status"] = "APPROVED"

    after = _view(client.get("/api/monitoring", headers=selected))
    assert {entry["id"]: entry["faApproval"] for entry in after["entries"]} == {501: True, 502: True}
    assert [item["id"] for item in after["initiatives"]] == [101, 104]


def test_search_with_no_match(client, headers):
    view = _view(client.post("/api/monitoring/filters", json={"search": "zzz"}, headers=headers))
    assert view["initiatives"] == []
    assert view["emptyMessage"] == "No initiatives match your search."


def test_selected_initiative_shows_entries_summary_and_month(client, selected):
    view = _view(client.post("/api/monitoring/month", json={"month": "2025-05"}, headers=selected))

    assert view["selectedInitiativeId"] == 101
    assert sorted(entry["id"] for entry in view["entries"]) == [501, 502]
    assert [entry["id"] for entry in view["monthEntries"]] == [501]
    assert view["monthEntries"][0]["achievementRatio"] == pytest.approx(120)
    assert view["summary"]["totalEntries"] == 2
    assert view["summary"]["finalizedEntries"] == 1
    assert [point["month"] for point in view["chartData"]] == ["2025-04", "2025-05"]
    assert view["pendingFaApprovals"] == []

    by_id = {entry["id"]: entry for entry in view["entries"]}
    assert by_id[501]["canFinalize"] is True
    assert by_id[502]["canFinalize"] is False
    assert by_id[501]["canApprove"] is False


def test_month_without_entries(client, selected):
    view = _view(client.post("/api/monitoring/month", json={"month": "2024-01"}, headers=selected))
    assert view["monthEntries"] == []
    assert view["monthEmptyMessage"] == "No entries for 2024-01."


def test_invalid_month_and_tab_are_rejected(client, selected):
    assert client.post("/api/monitoring/month", json={"month": "2025-13"}, headers=selected).status_code == 400
    assert client.post("/api/monitoring/tab", json={"tab": "charts"}, headers=selected).status_code == 400
    assert _view(client.post("/api/monitoring/tab", json={"tab": "analytics"}, headers=selected))["activeTab"] == "analytics"


def test_create_entry_sends_derived_fields(client, selected, fake_api):
    client.post("/api/monitoring/dialog/create", headers=selected)
    client.put(
        "/api/monitoring/dialog/form",
        json={"kpiDescription": "Steam savings", "targetValue": 500, "achievedValue": 450, "monitoringMonth": "2025-06"},
        headers=selected,
    )

    body = client.post("/api/monitoring/dialog/submit", headers=selected).json()

    created = _calls(fake_api, "POST", "/api/monthly-monitoring/101")[0]["json"]
    assert created["deviation"] == pytest.approx(-50)
    assert created["deviationPercentage"] == pytest.approx(-10)
    assert created["enteredBy"] == "stld@opex.test"
    assert created["initiativeId"] == 101
    assert created["category"] == "General"
    assert created["entryDate"]
    assert body["toasts"] == [{"title": "Success", "description": "Monitoring entry created successfully", "variant": "default"}]
    assert body["view"]["dialog"] == {"open": False, "editingId": None, "form": {}}
    assert len(body["view"]["entries"]) == 3


def test_incomplete_entry_is_not_sent(client, selected, fake_api):
    client.post("/api/monitoring/dialog/create", headers=selected)
    client.put("/api/monitoring/dialog/form", json={"kpiDescription": "Steam", "targetValue": 0, "monitoringMonth": "2025-06"}, headers=selected)

    body = client.post("/api/monitoring/dialog/submit", headers=selected).json()

    assert body["toasts"] == [{"title": "Error", "description": "Please fill in all required fields", "variant": "destructive"}]
    assert body["view"]["dialog"]["open"] is True
    assert _calls(fake_api, "POST", "/api/monthly-monitoring/101") == []


def test_failed_create_keeps_the_draft(client, selected, fake_api):
    fake_api.fail("POST", "/api/monthly-monitoring/101", status=400, message="Duplicate KPI for month")
    client.post("/api/monitoring/dialog/create", headers=selected)
    form = {"kpiDescription": "Steam", "targetValue": 500, "monitoringMonth": "2025-06"}
    client.put("/api/monitoring/dialog/form", json=form, headers=selected)

    body = client.post("/api/monitoring/dialog/submit", headers=selected).json()

    assert body["toasts"][0]["description"] == "Duplicate KPI for month"
    assert body["view"]["dialog"]["open"] is False
    assert body["view"]["dialog"]["form"] == form

    reopened = _view(client.post("/api/monitoring/dialog/create", headers=selected))
    assert reopened["dialog"]["form"] == form


def test_editing_resets_review_flags(client, selected, fake_api):
    opened = _view(client.post("/api/monitoring/entries/502/edit", headers=selected))
    assert opened["dialog"]["editingId"] == 502
    assert opened["dialog"]["form"]["kpiDescription"] == "Condensate recovery"

    client.put("/api/monitoring/dialog/form", json={"achievedValue": 900, "enteredBy": "mallory@opex.test"}, headers=selected)
    body = client.post("/api/monitoring/dialog/submit", headers=selected).json()

    updated = _calls(fake_api, "PUT", "/api/monthly-monitoring/entry/502")[0]["json"]
    assert updated["achievedValue"] == pytest.approx(900)
    assert updated["deviation"] == pytest.approx(-100)
    assert updated["isFinalized"] is False
    assert updated["faApproval"] is False
    assert updated["lastModified"]
    assert "enteredBy" not in updated
    assert body["toasts"][0]["description"] == "Monitoring entry updated successfully"


def test_entries_of_other_users_cannot_be_edited(client, headers, fake_api):
    fake_api.monitoring[501]["enteredBy"] = "other@opex.test"
    client.post("/api/monitoring/select/101", headers=headers)

    assert client.post("/api/monitoring/entries/501/edit", headers=headers).status_code == 403
    assert client.post("/api/monitoring/entries/999/edit", headers=headers).status_code == 404


def test_finalize_entry(client, selected, fake_api):
    body = client.post("/api/monitoring/entries/501/finalize", headers=selected).json()

    call = _calls(fake_api, "PUT", "/api/monthly-monitoring/entry/501/finalize")[0]
    assert call["params"] == {"isFinalized": "true"}
    assert body["toasts"][0]["description"] == "Finalization status updated"
    assert {entry["id"]: entry["isFinalized"] for entry in body["view"]["entries"]}[501] is True

    assert client.post("/api/monitoring/entries/502/finalize", headers=selected).status_code == 403


def test_site_lead_cannot_give_fa_approval(client, selected):
    response = client.post("/api/monitoring/entries/501/fa-approval", json={"faApproval": True}, headers=selected)
    assert response.status_code == 403
    invalid = client.post("/api/monitoring/entries/501/fa-approval", json={"faApproval": "yes"}, headers=selected)
    assert invalid.status_code == 400


def test_fa_approver_records_approval(api_client, fake_api):
    configure_api_client(api_client)
    service = get_portal_service()
    session = service.open_session(
        User(id="4", email="fa@opex.test", full_name="Farah Ali", role="F&A Approver", site="NDS"), "api-4"
    )
    ctx = service.context(session)
    page = MonitoringPage()
    page.selected_id = 101

    assert page.set_fa_approval(ctx, 501, True, "Verified against ledger") is True

    call = _calls(fake_api, "PUT", "/api/monthly-monitoring/entry/501/fa-approval")[0]
    assert call["params"] == {"faApproval": "true", "faComments": "Verified against ledger"}
    assert call["authorization"] == "Bearer api-4"
    assert [toast.description for toast in session.drain_toasts()] == ["F&A approval status updated"]

    view = page.render(ctx)
    assert all(entry["canApprove"] for entry in view["entries"])
    assert all(entry["canEdit"] for entry in view["entries"])


def test_delete_entry(client, selected, fake_api):
    body = client.delete("/api/monitoring/entries/501", headers=selected).json()

    assert _calls(fake_api, "DELETE", "/api/monthly-monitoring/entry/501")
    assert body["toasts"][0]["description"] == "Monitoring entry deleted successfully"
    assert [entry["id"] for entry in body["view"]["entries"]] == [502]


def test_csv_export(client, headers):
    assert client.get("/api/monitoring/export.csv", headers=headers).status_code == 400

    client.post("/api/monitoring/select/101", headers=headers)
    response = client.get("/api/monitoring/export.csv", headers=headers)

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/csv")
    assert 'filename="monitoring_101.csv"' in response.headers["content-disposition"]
    lines = response.text.strip().splitlines()
    assert lines[0].startswith("monitoring_month,kpi_description,category")
    assert lines[1].startswith("2025-04,Condensate recovery")
    assert len(lines) == 3
