from __future__ import annotations

import pytest
from conftest import sign_in

from opexhub.application import next_pending_stage
from opexhub.application.workflow import stage_progress
from opexhub.core.schema import WorkflowTransaction


@pytest.fixture()
def headers(client):
    return sign_in(client, "sh@opex.test")


def _view(response) -> dict:
    assert response.status_code == 200, response.text
    return response.json()["view"]


def test_next_pending_stage_is_first_pending_in_order():
    transactions = [
        WorkflowTransaction(stage_number=1, approve_status="approved"),
        WorkflowTransaction(stage_number=3, approve_status="pending"),
        WorkflowTransaction(stage_number=2, approve_status="pending"),
    ]
    assert next_pending_stage(transactions).stage_number == 3
    assert next_pending_stage(transactions[:1]) is None
    assert next_pending_stage([]) is None


def test_stage_progress_over_eleven_stages():
    assert stage_progress(None) == 0
    assert stage_progress(1) == 0
    assert stage_progress(2) == 9
    assert stage_progress(11) == 91


def test_cards_are_paged_by_six(client, headers):
    view = _view(client.get("/api/workflow", headers=headers))
    assert len(view["initiatives"]) == 6
    assert view["pagination"]["totalPages"] == 2
    assert view["initiatives"][0]["progress"] == 9
    assert view["selectedInitiativeId"] is None
    assert view["userRole"] == {"code": "SH", "name": "Site Head"}

    second = _view(client.post("/api/workflow/page", json={"page": 2}, headers=headers))
    assert [card["id"] for card in second["initiatives"]] == ["107", "108", "109", "110", "111", "112"]


def test_selected_initiative_shows_stage_history(client, headers):
    view = _view(client.post("/api/workflow/select/101", headers=headers))

    assert view["selectedInitiativeId"] == "101"
    assert [item["stageNumber"] for item in view["transactions"]] == [1, 2, 3]
    assert [item["canProcess"] for item in view["transactions"]] == [False, True, False]
    assert view["transactions"][1]["requiredRoleName"] == "Site Head"
    assert view["transactions"][0]["tone"] == "success"
    assert view["nextPendingStage"] == 2
    assert [item["id"] for item in view["myPendingActions"]] == [2]


def test_initiative_without_transactions(client, headers):
    view = _view(client.post("/api/workflow/select/102", headers=headers))
    assert view["transactions"] == []
    assert view["emptyMessage"] == "No workflow transactions found for this initiative."

    back = _view(client.post("/api/workflow/back", headers=headers))
    assert back["selectedInitiativeId"] is None
    assert back["emptyMessage"] is None


def test_unknown_initiative_is_not_selectable(client, headers):
    assert client.post("/api/workflow/select/999", headers=headers).status_code == 404


def test_stage_for_another_role_cannot_be_opened(client, headers):
    client.post("/api/workflow/select/101", headers=headers)
    assert client.post("/api/workflow/transactions/3/dialog", headers=headers).status_code == 403
    assert client.post("/api/workflow/transactions/1/dialog", headers=headers).status_code == 403
    assert client.post("/api/workflow/transactions/77/dialog", headers=headers).status_code == 404


def test_approving_a_stage_advances_the_workflow(client, headers, fake_api):
    client.post("/api/workflow/select/101", headers=headers)
    opened = _view(client.post("/api/workflow/transactions/2/dialog", headers=headers))
    assert opened["dialog"]["id"] == 2

    response = client.post("/api/workflow/dialog/process", json={"action": "approved", "comment": "Go ahead"}, headers=headers)

    body = response.json()
    assert body["toasts"] == [
        {"title": "Stage approved successfully", "description": "The workflow has been updated.", "variant": "default"}
    ]
    processed = [call for call in fake_api.calls if call["path"] == "/api/workflow-transactions/process-stage"]
    assert processed[0]["json"] == {"transactionId": 2, "action": "approved", "comment": "Go ahead"}
    view = body["view"]
    assert view["dialog"] is None
    assert view["nextPendingStage"] == 3
    assert view["myPendingActions"] == []
    assert view["myPendingEmptyMessage"] == "No pending actions for your role."


def test_rejecting_a_stage(client, headers):
    client.post("/api/workflow/select/101", headers=headers)
    client.post("/api/workflow/transactions/2/dialog", headers=headers)

    body = client.post("/api/workflow/dialog/process", json={"action": "rejected"}, headers=headers).json()

    assert body["toasts"][0]["title"] == "Stage rejected"
    assert body["view"]["transactions"][1]["approveStatus"] == "rejected"
    assert body["view"]["nextPendingStage"] == 3


def test_failed_processing_keeps_the_dialog(client, headers, fake_api):
    fake_api.fail("POST", "/api/workflow-transactions/process-stage")
    client.post("/api/workflow/select/101", headers=headers)
    client.post("/api/workflow/transactions/2/dialog", headers=headers)

    body = client.post("/api/workflow/dialog/process", json={"action": "approved"}, headers=headers).json()

    assert body["toasts"] == [{"title": "Error processing stage", "description": "Server exploded", "variant": "destructive"}]
    assert body["view"]["dialog"]["id"] == 2
    assert body["view"]["nextPendingStage"] == 2


def test_processing_requires_an_open_dialog_and_valid_action(client, headers):
    assert client.post("/api/workflow/dialog/process", json={"action": "approved"}, headers=headers).status_code == 404

    client.post("/api/workflow/select/101", headers=headers)
    client.post("/api/workflow/transactions/2/dialog", headers=headers)
    assert client.post("/api/workflow/dialog/process", json={"action": "maybe"}, headers=headers).status_code == 400

    closed = _view(client.post("/api/workflow/dialog/close", headers=headers))
    assert closed["dialog"] is None


def test_sample_cards_when_api_has_no_initiatives(client, headers, fake_api):
    fake_api.list_without_content = True

    view = _view(client.get("/api/workflow", headers=headers))
    assert [card["label"] for card in view["initiatives"]] == [
        "NDS/25/OP/AB/001",
        "HSD1/25/EV/CD/002",
        "DHJ/25/QA/EF/003",
    ]
    assert view["initiatives"][1]["progress"] == 45


def test_approved_stage_nine_reaches_the_monitoring_picker(client, fake_api):
    headers = sign_in(client, "stld@opex.test")
    fake_api.transactions[101][0]["approveStatus"] = "pending"
    monitoring = _view(client.get("/api/monitoring", headers=headers))
    assert [item["id"] for item in monitoring["initiatives"]] == [101]

    client.post("/api/workflow/select/101", headers=headers)
    client.post("/api/workflow/transactions/1/dialog", headers=headers)
    fake_api.assignments[("NDS", "STLD")][3]["status"] = "APPROVED"
    processed = client.post("/api/workflow/dialog/process", json={"action": "approved"}, headers=headers)
    assert processed.json()["toasts"][0]["title"] == "Stage approved successfully"

    # filters re-render without a page reload
    monitoring = _view(client.post("/api/monitoring/filters", json={"search": ""}, headers=headers))
    assert [item["id"] for item in monitoring["initiatives"]] == [101, 104]


def test_reselecting_reads_fresh_transactions(client, headers, fake_api):
    client.post("/api/workflow/select/101", headers=headers)
    fake_api.transactions[101][1]["approveStatus"] = "approved"

    client.post("/api/workflow/back", headers=headers)
    view = _view(client.post("/api/workflow/select/101", headers=headers))
    assert view["nextPendingStage"] == 3
