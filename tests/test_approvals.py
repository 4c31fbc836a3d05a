# tests/test_approvals.py
import pytest

from app.approval import services as approval_service
from app.core.errors import InvalidInput, NotFound, PermissionDenied
from app.store.records import ConversionRequest, Ticket


@pytest.fixture
def pending(seeded):
    """A support ticket of org-A with a billing conversion waiting on both sides."""
    seeded.create_ticket(
        Ticket(id="tkt-1", title="Invoice wrong", description="d", organization_id="org-A", created_by="u1")
    )
    seeded.create_conversion_request(
        ConversionRequest(id="cr-1", ticket_id="tkt-1", proposed_type="billing", reason="r", proposed_by="agent-1")
    )
    return seeded


def _activity_types(store):
    return [a.type for a in store.list_activities(50)]


def test_both_sides_approve_applies_conversion(pending, agent, client_a):
    first = approval_service.update_approval(pending, agent, "cr-1", "internal", "approved")
    assert first.internal_approval == "approved"
    assert first.client_approval == "pending"
    assert pending.get_ticket("tkt-1").category == "support"

    second = approval_service.update_approval(pending, client_a, "cr-1", "client", "approved")
    assert second.fully_approved
    assert pending.get_ticket("tkt-1").category == "billing"
    assert _activity_types(pending).count("conversion-approved") == 1
    assert "conversion-updated" in _activity_types(pending)


def test_order_of_sides_does_not_matter(pending, agent, client_a):
    approval_service.update_approval(pending, client_a, "cr-1", "client", "approved")
    assert pending.get_ticket("tkt-1").category == "support"

    approval_service.update_approval(pending, agent, "cr-1", "internal", "approved")
    assert pending.get_ticket("tkt-1").category == "billing"


def test_reapproving_is_harmless(pending, agent, admin):
    approval_service.update_approval(pending, agent, "cr-1", "internal", "approved")
    approval_service.update_approval(pending, admin, "cr-1", "client", "approved")
    updated_at = pending.get_ticket("tkt-1").updated_at

    again = approval_service.update_approval(pending, agent, "cr-1", "internal", "approved")

    assert again.fully_approved
    # category already applied, the ticket is not written again
    assert pending.get_ticket("tkt-1").updated_at == updated_at


def test_rejection_keeps_category(pending, agent, client_a):
    approval_service.update_approval(pending, agent, "cr-1", "internal", "approved")
    rejected = approval_service.update_approval(pending, client_a, "cr-1", "client", "rejected")

    assert rejected.client_approval == "rejected"
    assert not rejected.fully_approved
    assert pending.get_ticket("tkt-1").category == "support"
    assert "conversion-rejected" in _activity_types(pending)
    assert "conversion-approved" not in _activity_types(pending)


def test_rejection_can_be_reversed(pending, agent, client_a):
    approval_service.update_approval(pending, client_a, "cr-1", "client", "rejected")
    approval_service.update_approval(pending, agent, "cr-1", "internal", "approved")
    approval_service.update_approval(pending, client_a, "cr-1", "client", "approved")

    assert pending.get_ticket("tkt-1").category == "billing"


def test_side_permissions(pending, agent, client_a):
    with pytest.raises(PermissionDenied):
        approval_service.update_approval(pending, client_a, "cr-1", "internal", "approved")
    with pytest.raises(PermissionDenied):
        approval_service.update_approval(pending, agent, "cr-1", "client", "approved")

    request = pending.get_conversion_request("cr-1")
    assert request.internal_approval == "pending"
    assert request.client_approval == "pending"


def test_other_tenant_cannot_approve(pending, client_b):
    with pytest.raises(PermissionDenied):
        approval_service.update_approval(pending, client_b, "cr-1", "client", "approved")
    assert pending.get_conversion_request("cr-1").client_approval == "pending"


def test_invalid_side_or_status(pending, admin):
    with pytest.raises(InvalidInput):
        approval_service.update_approval(pending, admin, "cr-1", "vendor", "approved")
    with pytest.raises(InvalidInput):
        approval_service.update_approval(pending, admin, "cr-1", "internal", "pending")
    with pytest.raises(NotFound):
        approval_service.update_approval(pending, admin, "cr-missing", "internal", "approved")


def test_list_approvals_scoped_to_pending(pending, admin, agent, client_a, client_b):
    assert [cr.id for cr in approval_service.list_approvals(pending, client_a)] == ["cr-1"]
    assert approval_service.list_approvals(pending, client_b) == []

    approval_service.update_approval(pending, agent, "cr-1", "internal", "approved")
    approval_service.update_approval(pending, admin, "cr-1", "client", "approved")

    assert approval_service.list_approvals(pending, admin) == []
    assert [cr.id for cr in approval_service.list_approvals(pending, admin, include_decided=True)] == ["cr-1"]


def test_approval_over_http(client, headers):
    tid = client.post(
        "/api/tickets", json={"title": "T", "description": "D"}, headers=headers["client_a"]
    ).json()["id"]
    cr = client.post(
        f"/api/tickets/{tid}/convert",
        json={"id": "cr-9", "proposed_type": "feature", "reason": "it is a request"},
        headers=headers["agent"],
    ).json()

    r = client.put(f"/api/approvals/{cr['id']}", json={"side": "client", "status": "approved"}, headers=headers["agent"])
    assert r.status_code == 403

    client.put(f"/api/approvals/{cr['id']}", json={"side": "internal", "status": "approved"}, headers=headers["agent"])
    r2 = client.put(
        f"/api/approvals/{cr['id']}", json={"side": "client", "status": "approved"}, headers=headers["client_a"]
    )
    assert r2.status_code == 200
    assert r2.json()["client_approval"] == "approved"

    assert client.get(f"/api/tickets/{tid}", headers=headers["client_a"]).json()["category"] == "feature"
    assert client.get("/api/approvals", headers=headers["admin"]).json() == []
    decided = client.get("/api/approvals?includeDecided=true", headers=headers["admin"]).json()
    assert [c["id"] for c in decided] == ["cr-9"]
