"""Membership ledger and join workflow tests."""

import pytest
from conftest import create_trip, join_trip, member_id_for

from trippack.errors import Conflict, NotFound, NotTripMember
from trippack.models import TripMember
from trippack.models.enums import MembershipStatus, ViewerStatus
from trippack.models.trip import Trip
from trippack.services.membership import MembershipService, can_access, viewer_status


def test_join_requires_approval(alice, trip, published):
    """Test joining a trip without auto-approve leaves the request pending."""
    response = join_trip(alice, trip["id"])
    assert response.status_code == 200
    assert response.json() == {"status": "pending", "trip_id": trip["id"]}

    channel, payload = published.publish.call_args.args
    assert channel == f"trip:{trip['id']}"
    assert '"member_requested"' in payload


def test_join_auto_approve(owner, alice):
    """Test joining an auto-approve trip grants access straight away."""
    trip = create_trip(owner, auto_approve_members=True)
    response = join_trip(alice, trip["id"])
    assert response.json()["status"] == "approved"
    assert alice.get(f"/api/trip/{trip['id']}/folders").status_code == 200


def test_join_twice(alice, trip):
    """Test a second request for the same trip conflicts."""
    assert join_trip(alice, trip["id"]).status_code == 200
    assert join_trip(alice, trip["id"]).status_code == 409


def test_join_when_already_approved(alice, shared_trip):
    assert join_trip(alice, shared_trip["id"]).status_code == 409


def test_owner_cannot_join(owner, trip):
    """Test the owner cannot request to join their own trip."""
    assert join_trip(owner, trip["id"]).status_code == 409


def test_join_unknown_trip(alice):
    assert join_trip(alice, 99999).status_code == 404


def test_join_missing_trip_id(alice):
    response = alice.post("/api/trip/join", json={})
    assert response.status_code == 400


def test_join_requires_login(client, trip):
    assert join_trip(client, trip["id"]).status_code == 401


def test_join_by_invite_code(owner, alice):
    """Test a private trip can be joined through its invite link."""
    trip = create_trip(owner, is_public=False)
    response = alice.post(f"/api/trip/join/{trip['invite_code']}")
    assert response.status_code == 200
    assert response.json() == {"status": "pending", "trip_id": trip["id"]}


def test_join_by_unknown_invite_code(alice):
    assert alice.post("/api/trip/join/nope").status_code == 404


def test_pending_member_has_no_access(alice, trip):
    """Test pending members cannot use the packing list."""
    join_trip(alice, trip["id"])
    assert alice.get(f"/api/trip/{trip['id']}/folders").status_code == 401
    assert alice.get(f"/api/trip/{trip['id']}/tasks").status_code == 401
    assert alice.get(f"/api/trip/{trip['id']}").status_code == 401


def test_approve_member(owner, alice, trip, published):
    """Test the owner approving a request grants access."""
    join_trip(alice, trip["id"])
    member_id = member_id_for(owner, trip["id"], alice.user["id"])

    response = owner.post(f"/api/trip/{trip['id']}/members/{member_id}/approve")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "approved"
    assert data["user"]["username"] == "alice"
    assert alice.get(f"/api/trip/{trip['id']}/tasks").status_code == 200

    channels = [call.args[0] for call in published.publish.call_args_list]
    assert f"user:{alice.user['id']}" in channels


def test_approve_by_non_owner(owner, alice, bob):
    """Test approved members cannot approve others."""
    trip = create_trip(owner, auto_approve_members=False)
    join_trip(alice, trip["id"])
    join_trip(bob, trip["id"])
    alice_id = member_id_for(owner, trip["id"], alice.user["id"])
    bob_id = member_id_for(owner, trip["id"], bob.user["id"])
    owner.post(f"/api/trip/{trip['id']}/members/{alice_id}/approve")

    response = alice.post(f"/api/trip/{trip['id']}/members/{bob_id}/approve")
    assert response.status_code == 403


def test_approve_non_pending(owner, alice, shared_trip):
    """Test approving an already approved member is not found."""
    member_id = member_id_for(owner, shared_trip["id"], alice.user["id"])
    response = owner.post(f"/api/trip/{shared_trip['id']}/members/{member_id}/approve")
    assert response.status_code == 404


def test_approve_on_other_trip(owner, alice, trip):
    """Test a membership id only works on its own trip."""
    other = create_trip(owner, name="Other trip")
    join_trip(alice, trip["id"])
    member_id = member_id_for(owner, trip["id"], alice.user["id"])

    response = owner.post(f"/api/trip/{other['id']}/members/{member_id}/approve")
    assert response.status_code == 404


def test_reject_then_request_again(owner, alice, trip):
    """Test a rejected user can send a fresh request."""
    join_trip(alice, trip["id"])
    member_id = member_id_for(owner, trip["id"], alice.user["id"])

    response = owner.post(f"/api/trip/{trip['id']}/members/{member_id}/reject")
    assert response.status_code == 204
    assert owner.get(f"/api/trip/{trip['id']}/members").json()["pending"] == []

    assert join_trip(alice, trip["id"]).json()["status"] == "pending"


def test_reject_by_non_owner(alice, bob, shared_trip, owner):
    join_trip(bob, shared_trip["id"])
    member_id = member_id_for(owner, shared_trip["id"], bob.user["id"])
    response = alice.post(f"/api/trip/{shared_trip['id']}/members/{member_id}/reject")
    assert response.status_code == 403


def test_remove_member(owner, alice, shared_trip, published):
    """Test the owner can remove an approved member."""
    member_id = member_id_for(owner, shared_trip["id"], alice.user["id"])

    response = owner.delete(f"/api/trip/{shared_trip['id']}/members/{member_id}")
    assert response.status_code == 204
    assert alice.get(f"/api/trip/{shared_trip['id']}/tasks").status_code == 401

    channels = [call.args[0] for call in published.publish.call_args_list]
    assert f"trip:{shared_trip['id']}" in channels
    assert f"user:{alice.user['id']}" in channels


def test_remove_unknown_member(owner, shared_trip):
    assert owner.delete(f"/api/trip/{shared_trip['id']}/members/99999").status_code == 404


def test_remove_by_non_owner(owner, alice, bob, shared_trip):
    join_trip(bob, shared_trip["id"])
    member_id = member_id_for(owner, shared_trip["id"], bob.user["id"])
    response = alice.delete(f"/api/trip/{shared_trip['id']}/members/{member_id}")
    assert response.status_code == 403


def test_non_owner_cannot_tell_which_members_exist(alice, shared_trip):
    """Test non-owners get the same 403 for real and made-up membership ids."""
    trip_id = shared_trip["id"]
    for member_id in (99999, 99998):
        assert alice.delete(f"/api/trip/{trip_id}/members/{member_id}").status_code == 403
        assert alice.post(f"/api/trip/{trip_id}/members/{member_id}/reject").status_code == 403


def test_leave_trip(alice, shared_trip):
    """Test a member can leave and then no longer has access."""
    response = alice.post(f"/api/trip/{shared_trip['id']}/leave")
    assert response.status_code == 204
    assert alice.get(f"/api/trip/{shared_trip['id']}/tasks").status_code == 401


def test_withdraw_pending_request(owner, alice, trip):
    join_trip(alice, trip["id"])
    assert alice.post(f"/api/trip/{trip['id']}/leave").status_code == 204
    assert owner.get(f"/api/trip/{trip['id']}/members").json()["pending"] == []


def test_leave_without_membership(owner, trip):
    """Test the owner has no membership row to leave."""
    assert owner.post(f"/api/trip/{trip['id']}/leave").status_code == 404


def test_pending_visible_to_owner_only(owner, alice, bob, trip):
    """Test pending requests are listed for the owner but not for members."""
    join_trip(alice, trip["id"])
    alice_id = member_id_for(owner, trip["id"], alice.user["id"])
    owner.post(f"/api/trip/{trip['id']}/members/{alice_id}/approve")
    assert join_trip(bob, trip["id"]).json()["status"] == "pending"

    owner_view = owner.get(f"/api/trip/{trip['id']}/members").json()
    assert owner_view["owner"]["username"] == "olivia"
    assert [m["user"]["username"] for m in owner_view["members"]] == ["alice"]
    assert [m["user"]["username"] for m in owner_view["pending"]] == ["bob"]

    member_view = alice.get(f"/api/trip/{trip['id']}/members").json()
    assert [m["user"]["username"] for m in member_view["members"]] == ["alice"]
    assert member_view["pending"] == []


def test_members_list_requires_access(bob, shared_trip):
    assert bob.get(f"/api/trip/{shared_trip['id']}/members").status_code == 401


def test_viewer_status_and_access(db, owner, alice, bob, trip):
    """Test the derived relationship for each kind of user."""
    join_trip(alice, trip["id"])
    record = db.get(Trip, trip["id"])

    assert viewer_status(db, record, owner.user["id"]) == ViewerStatus.OWNER
    assert viewer_status(db, record, alice.user["id"]) == ViewerStatus.PENDING
    assert viewer_status(db, record, bob.user["id"]) == ViewerStatus.NONE
    assert can_access(db, record, owner.user["id"])
    assert not can_access(db, record, alice.user["id"])
    assert not can_access(db, record, bob.user["id"])

    membership = db.query(TripMember).filter(TripMember.user_id == alice.user["id"]).one()
    membership.status = MembershipStatus.APPROVED
    db.commit()
    assert viewer_status(db, record, alice.user["id"]) == ViewerStatus.APPROVED
    assert can_access(db, record, alice.user["id"])


def test_rejected_row_grants_no_access(db, alice, trip):
    """Test a leftover rejected row behaves like no membership."""
    db.add(TripMember(trip_id=trip["id"], user_id=alice.user["id"], status="rejected"))
    db.commit()
    record = db.get(Trip, trip["id"])

    assert viewer_status(db, record, alice.user["id"]) == ViewerStatus.NONE
    assert not can_access(db, record, alice.user["id"])


def test_service_errors(db, owner, alice, trip):
    """Test the service raises the error types the API maps to status codes."""
    service = MembershipService(db)

    with pytest.raises(NotFound):
        service.request_join(99999, alice.user["id"])
    with pytest.raises(Conflict):
        service.request_join(trip["id"], owner.user["id"])
    with pytest.raises(NotTripMember):
        service.require_access(trip["id"], alice.user["id"])

    service.request_join(trip["id"], alice.user["id"])
    with pytest.raises(Conflict):
        service.request_join(trip["id"], alice.user["id"])


def test_one_row_per_user_and_trip(db, alice, trip):
    """Test the database refuses a second row for the same pair."""
    from sqlalchemy.exc import IntegrityError

    db.add(TripMember(trip_id=trip["id"], user_id=alice.user["id"], status="pending"))
    db.commit()
    db.add(TripMember(trip_id=trip["id"], user_id=alice.user["id"], status="approved"))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()
