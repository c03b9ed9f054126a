"""Tests for event templates and simulated contract deployments."""

import re

import pytest

from blocktrust_api.errors import Forbidden, InvalidTemplate, TemplateNotFound, ValidationError
from blocktrust_api.events.lifecycle import EventLifecycleManager
from blocktrust_api.events.templates import TemplateManager
from blocktrust_api.ledger.service import LedgerService
from blocktrust_api.models import ContractDeployment, EventType, LedgerEntryType, TemplateType

from conftest import auth_headers


@pytest.fixture
def ballot_template(db, admin):
    return TemplateManager(db).create_template(
        admin,
        name="Board ballot",
        template_type=TemplateType.VOTING,
        description="Yearly board election",
        config={"options": ["Alice", "Bob", "Carol"]},
    )


class TestTemplateManager:
    def test_create_and_list(self, db, admin, ballot_template):
        templates = TemplateManager(db).list_templates(admin)
        assert [t.id for t in templates] == [ballot_template.id]
        assert ballot_template.type == "voting"
        assert ballot_template.is_active is True
        assert ballot_template.created_by == admin.id

    def test_voter_cannot_manage_templates(self, db, voter):
        with pytest.raises(Forbidden):
            TemplateManager(db).create_template(voter, "Mine", TemplateType.VOTING)
        with pytest.raises(Forbidden):
            TemplateManager(db).list_templates(voter)

    def test_deactivated_templates_are_hidden(self, db, admin, ballot_template):
        manager = TemplateManager(db)
        updated = manager.update_template(admin, ballot_template.id, {"is_active": False})

        assert updated.is_active is False
        assert manager.list_templates(admin) == []
        assert [t.id for t in manager.list_templates(admin, include_inactive=True)] == [ballot_template.id]

    def test_update_rejects_unknown_fields(self, db, admin, ballot_template):
        with pytest.raises(ValidationError):
            TemplateManager(db).update_template(admin, ballot_template.id, {"created_by": "someone"})

    def test_update_unknown_template(self, db, admin):
        with pytest.raises(TemplateNotFound):
            TemplateManager(db).update_template(admin, "missing", {"name": "x"})


class TestDeployContract:
    def test_deployment_is_recorded_on_the_ledger(self, db, admin, ballot_template):
        deployment = TemplateManager(db).deploy_contract(
            admin, ballot_template.id, "sepolia", {"quorum": 10}
        )

        assert re.fullmatch(r"0x[0-9a-f]{40}", deployment.contract_address)
        assert deployment.status == "deployed"
        assert deployment.deployment_params == {"quorum": 10}

        entries = LedgerService(db).for_entity(deployment.id)
        assert len(entries) == 1
        assert entries[0].transaction_type == LedgerEntryType.CONTRACT_DEPLOYMENT.value
        assert entries[0].transaction_hash == deployment.transaction_hash
        assert entries[0].block_number == deployment.block_number
        assert entries[0].data["contract_address"] == deployment.contract_address

    def test_inactive_template_cannot_be_deployed(self, db, admin, ballot_template):
        manager = TemplateManager(db)
        manager.update_template(admin, ballot_template.id, {"is_active": False})
        with pytest.raises(InvalidTemplate):
            manager.deploy_contract(admin, ballot_template.id, "sepolia")
        assert db.query(ContractDeployment).count() == 0

    def test_unknown_template(self, db, admin):
        with pytest.raises(TemplateNotFound):
            TemplateManager(db).deploy_contract(admin, "missing", "sepolia")

    def test_list_deployments(self, db, admin, ballot_template):
        manager = TemplateManager(db)
        deployment = manager.deploy_contract(admin, ballot_template.id, "sepolia")
        assert [d.id for d in manager.list_deployments(admin)] == [deployment.id]
        assert manager.list_deployments(admin)[0].template.name == "Board ballot"


class TestEventsFromTemplates:
    def test_voting_event_takes_template_options(self, db, admin, open_window, ballot_template):
        start, end = open_window
        event = EventLifecycleManager(db).create_voting_event(
            admin, "Board 2026", "", [], start, end, template_id=ballot_template.id
        )
        assert event.options == ["Alice", "Bob", "Carol"]
        assert event.template_id == ballot_template.id

    def test_explicit_options_win(self, db, admin, open_window, ballot_template):
        start, end = open_window
        event = EventLifecycleManager(db).create_voting_event(
            admin, "Board 2026", "", ["Yes", "No"], start, end, template_id=ballot_template.id
        )
        assert event.options == ["Yes", "No"]

    def test_template_type_must_match(self, db, admin, open_window, ballot_template):
        start, end = open_window
        with pytest.raises(InvalidTemplate):
            EventLifecycleManager(db).create_petition(
                admin, "Wrong kind", "", start, end, template_id=ballot_template.id
            )

    def test_inactive_template_is_rejected(self, db, admin, open_window, ballot_template):
        TemplateManager(db).update_template(admin, ballot_template.id, {"is_active": False})
        start, end = open_window
        with pytest.raises(InvalidTemplate):
            EventLifecycleManager(db).create_voting_event(
                admin, "Board 2026", "", [], start, end, template_id=ballot_template.id
            )

    def test_unknown_template_is_rejected(self, db, admin, open_window):
        start, end = open_window
        with pytest.raises(TemplateNotFound):
            EventLifecycleManager(db).create_voting_event(
                admin, "Board 2026", "", ["A", "B"], start, end, template_id="missing"
            )

    def test_petition_takes_template_target(self, db, admin, petitioner, open_window):
        template = TemplateManager(db).create_template(
            admin, "Local issue", TemplateType.PETITION, config={"target_signatures": 40}
        )
        start, end = open_window
        petition = EventLifecycleManager(db).create_petition(
            petitioner, "Fix the park", "", start, end, template_id=template.id
        )
        assert petition.target_signatures == 40
        assert petition.template_id == template.id

    def test_resolve_for_event(self, db, ballot_template):
        manager = TemplateManager(db)
        assert manager.resolve_for_event(ballot_template.id, EventType.VOTING).id == ballot_template.id


def test_routes_require_admin(client, voter):
    response = client.get("/v1/templates", headers=auth_headers(voter.id))
    assert response.status_code == 403
    assert "error" in response.json()


def test_template_routes(client, admin):
    headers = auth_headers(admin.id)
    response = client.post(
        "/v1/templates",
        json={
            "action": "create-template",
            "name": "Petition drive",
            "type": "petition",
            "config": {"target_signatures": 100},
        },
        headers=headers,
    )
    assert response.status_code == 200
    template = response.json()["template"]
    assert template["type"] == "petition"
    assert template["is_active"] is True

    response = client.get("/v1/templates", params={"action": "list-templates"}, headers=headers)
    assert [t["id"] for t in response.json()["templates"]] == [template["id"]]

    response = client.post(
        "/v1/templates",
        json={"action": "deploy-contract", "templateId": template["id"], "networkId": "sepolia"},
        headers=headers,
    )
    assert response.status_code == 200
    body = response.json()
    assert body["contractAddress"] == body["deployment"]["contract_address"]
    assert body["blockNumber"] == body["deployment"]["block_number"]

    response = client.get("/v1/templates", params={"action": "list-deployments"}, headers=headers)
    deployments = response.json()["deployments"]
    assert len(deployments) == 1
    assert deployments[0]["template"]["name"] == "Petition drive"

    response = client.put(
        "/v1/templates",
        json={"action": "update-template", "templateId": template["id"], "updates": {"is_active": False}},
        headers=headers,
    )
    assert response.status_code == 200
    assert response.json()["template"]["is_active"] is False

    response = client.get("/v1/templates", headers=headers)
    assert response.json()["templates"] == []
    response = client.get("/v1/templates", params={"include_inactive": True}, headers=headers)
    assert len(response.json()["templates"]) == 1


def test_update_with_unknown_field(client, admin, ballot_template):
    response = client.put(
        "/v1/templates",
        json={"action": "update-template", "templateId": ballot_template.id, "updates": {"owner": "x"}},
        headers=auth_headers(admin.id),
    )
    assert response.status_code == 400


def test_voting_event_with_unknown_template(client, admin, open_window):
    start, end = open_window
    response = client.post(
        "/v1/voting",
        json={
            "action": "create",
            "title": "From nowhere",
            "options": ["A", "B"],
            "start_time": start.isoformat(),
            "end_time": end.isoformat(),
            "template_id": "missing",
        },
        headers=auth_headers(admin.id),
    )
    assert response.status_code == 404
    assert response.json() == {"error": "Template missing not found"}
