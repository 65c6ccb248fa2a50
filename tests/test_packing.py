"""Folder, task and packing record tests."""

import json

import pytest
from conftest import create_trip

from trippack.errors import Conflict
from trippack.models import Task, TaskPacker
from trippack.services.packing import PackingService


@pytest.fixture
def folder(owner, shared_trip):
    response = owner.post(f"/api/trip/{shared_trip['id']}/folders", json={"name": "Clothes"})
    assert response.status_code == 201
    return response.json()


def add_task(test_client, trip_id, **fields):
    payload = {"text": "Rain jacket", **fields}
    response = test_client.post(f"/api/trip/{trip_id}/tasks", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


# Folders


def test_create_folder(owner, shared_trip, published):
    """Test creating a folder publishes a folder event."""
    response = owner.post(f"/api/trip/{shared_trip['id']}/folders", json={"name": " Gear "})
    assert response.status_code == 201
    assert response.json()["name"] == "Gear"

    channel, payload = published.publish.call_args.args
    assert channel == f"trip:{shared_trip['id']}"
    assert json.loads(payload)["type"] == "folder_created"


def test_create_folder_blank_name(owner, shared_trip):
    for body in ({"name": "   "}, {}):
        response = owner.post(f"/api/trip/{shared_trip['id']}/folders", json=body)
        assert response.status_code == 400
        assert response.json()["detail"] == "Folder name is required"


def test_create_folder_name_checked_before_access(bob, shared_trip):
    """Test a missing name is reported even to callers without access."""
    response = bob.post(f"/api/trip/{shared_trip['id']}/folders", json={})
    assert response.status_code == 400
    assert response.json()["detail"] == "Folder name is required"


def test_create_folder_on_missing_trip(owner):
    assert owner.post("/api/trip/99999/folders", json={"name": "Gear"}).status_code == 404


def test_folders_require_access(bob, shared_trip):
    """Test outsiders cannot see or add folders."""
    assert bob.get(f"/api/trip/{shared_trip['id']}/folders").status_code == 401
    response = bob.post(f"/api/trip/{shared_trip['id']}/folders", json={"name": "Mine"})
    assert response.status_code == 401


def test_list_folders_in_creation_order(alice, shared_trip, folder):
    add = alice.post(f"/api/trip/{shared_trip['id']}/folders", json={"name": "Toiletries"})
    assert add.status_code == 201

    names = [f["name"] for f in alice.get(f"/api/trip/{shared_trip['id']}/folders").json()]
    assert names == ["Clothes", "Toiletries"]


def test_rename_folder(alice, folder):
    """Test any member can rename a folder."""
    response = alice.put(f"/api/folders/{folder['id']}", json={"name": "Layers"})
    assert response.status_code == 200
    assert response.json()["name"] == "Layers"


def test_rename_folder_blank(alice, folder):
    assert alice.put(f"/api/folders/{folder['id']}", json={"name": ""}).status_code == 400


def test_rename_missing_folder(owner):
    assert owner.put("/api/folders/99999", json={"name": "Ghost"}).status_code == 404


def test_delete_folder_unfiles_tasks(owner, alice, shared_trip, folder):
    """Test deleting a folder keeps its tasks on the trip."""
    task = add_task(alice, shared_trip["id"], folder_id=folder["id"])

    assert alice.delete(f"/api/folders/{folder['id']}").status_code == 204

    tasks = owner.get(f"/api/trip/{shared_trip['id']}/tasks").json()
    assert [t["id"] for t in tasks] == [task["id"]]
    assert tasks[0]["folder_id"] is None
    assert owner.get(f"/api/trip/{shared_trip['id']}/folders").json() == []


def test_delete_folder_outsider(bob, folder):
    assert bob.delete(f"/api/folders/{folder['id']}").status_code == 401


# Tasks


def test_create_task(alice, shared_trip, folder, published):
    """Test a task records the creator's name at creation time."""
    task = add_task(
        alice,
        shared_trip["id"],
        text="  Hiking boots ",
        description="Broken in",
        folder_id=folder["id"],
    )
    assert task["text"] == "Hiking boots"
    assert task["creator_id"] == alice.user["id"]
    assert task["creator_name"] == "alice"
    assert task["folder_id"] == folder["id"]
    assert task["packers"] == []

    message = json.loads(published.publish.call_args.args[1])
    assert message["type"] == "task_created"
    assert message["trip_id"] == shared_trip["id"]
    assert message["data"] == {"task_id": task["id"]}


def test_create_task_blank_text(owner, shared_trip):
    response = owner.post(f"/api/trip/{shared_trip['id']}/tasks", json={"text": "  "})
    assert response.status_code == 400


def test_create_task_in_other_trips_folder(owner, shared_trip):
    """Test a task cannot be filed under another trip's folder."""
    other = create_trip(owner, name="Other trip")
    other_folder = owner.post(f"/api/trip/{other['id']}/folders", json={"name": "Elsewhere"})

    response = owner.post(
        f"/api/trip/{shared_trip['id']}/tasks",
        json={"text": "Passport", "folder_id": other_folder.json()["id"]},
    )
    assert response.status_code == 400
    assert response.json()["detail"] == "Folder does not belong to this trip"


def test_tasks_require_access(bob, shared_trip):
    assert bob.get(f"/api/trip/{shared_trip['id']}/tasks").status_code == 401
    response = bob.post(f"/api/trip/{shared_trip['id']}/tasks", json={"text": "Sneaky"})
    assert response.status_code == 401


def test_tasks_on_missing_trip(owner):
    assert owner.get("/api/trip/99999/tasks").status_code == 404


def test_creator_name_survives_rename(alice, shared_trip):
    """Test renaming a user leaves names captured earlier untouched."""
    task = add_task(alice, shared_trip["id"])
    alice.post(f"/api/tasks/{task['id']}/toggle-packed")

    assert alice.put("/api/auth/profile", json={"username": "alicia"}).status_code == 200

    stored = alice.get(f"/api/trip/{shared_trip['id']}/tasks").json()[0]
    assert stored["creator_name"] == "alice"
    assert stored["packers"][0]["user_name"] == "alice"

    newer = add_task(alice, shared_trip["id"], text="Sunscreen")
    assert newer["creator_name"] == "alicia"


def test_edit_task(alice, shared_trip, folder):
    """Test the creator can edit a task and clear its folder."""
    task = add_task(alice, shared_trip["id"], folder_id=folder["id"], description="Blue one")

    response = alice.put(
        f"/api/tasks/{task['id']}", json={"text": "Shell jacket", "folder_id": None}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["text"] == "Shell jacket"
    assert data["folder_id"] is None
    assert data["description"] == "Blue one"


def test_edit_task_by_non_creator(owner, alice, shared_trip):
    """Test other members, even the owner, cannot edit someone's task."""
    task = add_task(alice, shared_trip["id"])
    response = owner.put(f"/api/tasks/{task['id']}", json={"text": "Mine now"})
    assert response.status_code == 403


def test_edit_task_by_outsider(bob, alice, shared_trip):
    task = add_task(alice, shared_trip["id"])
    assert bob.put(f"/api/tasks/{task['id']}", json={"text": "Nope"}).status_code == 401


def test_edit_missing_task(owner):
    assert owner.put("/api/tasks/99999", json={"text": "Ghost"}).status_code == 404


def test_delete_task(alice, owner, shared_trip, db):
    """Test deleting a task removes everyone's packing records for it."""
    task = add_task(alice, shared_trip["id"])
    alice.post(f"/api/tasks/{task['id']}/toggle-packed")
    owner.post(f"/api/tasks/{task['id']}/toggle-packed")

    assert alice.delete(f"/api/tasks/{task['id']}").status_code == 204

    db.expire_all()
    assert db.query(Task).filter(Task.id == task["id"]).count() == 0
    assert db.query(TaskPacker).filter(TaskPacker.task_id == task["id"]).count() == 0
    assert alice.get(f"/api/tasks/{task['id']}/packers").status_code == 404


def test_delete_task_by_non_creator(owner, alice, shared_trip):
    task = add_task(alice, shared_trip["id"])
    assert owner.delete(f"/api/tasks/{task['id']}").status_code == 403


# Packing


def test_toggle_packed_twice(alice, shared_trip, published):
    """Test toggling packs and then unpacks."""
    task = add_task(alice, shared_trip["id"])

    first = alice.post(f"/api/tasks/{task['id']}/toggle-packed")
    assert first.status_code == 200
    assert first.json()["packed"] is True
    assert [p["user_name"] for p in first.json()["packers"]] == ["alice"]
    assert json.loads(published.publish.call_args.args[1])["type"] == "task_packed"

    second = alice.post(f"/api/tasks/{task['id']}/toggle-packed")
    assert second.json()["packed"] is False
    assert second.json()["packers"] == []
    assert json.loads(published.publish.call_args.args[1])["type"] == "task_unpacked"


def test_packing_is_per_user(owner, alice, shared_trip):
    """Test one user's toggle leaves other users' marks alone."""
    task = add_task(alice, shared_trip["id"])
    alice.post(f"/api/tasks/{task['id']}/toggle-packed")
    owner.post(f"/api/tasks/{task['id']}/toggle-packed")

    response = alice.post(f"/api/tasks/{task['id']}/toggle-packed")
    assert response.json()["packed"] is False
    assert [p["user_name"] for p in response.json()["packers"]] == ["olivia"]


def test_packers_in_packing_order(owner, alice, shared_trip):
    task = add_task(owner, shared_trip["id"])
    alice.post(f"/api/tasks/{task['id']}/toggle-packed")
    owner.post(f"/api/tasks/{task['id']}/toggle-packed")

    packers = owner.get(f"/api/tasks/{task['id']}/packers").json()
    assert [p["user_name"] for p in packers] == ["alice", "olivia"]


def test_toggle_by_outsider(bob, alice, shared_trip):
    task = add_task(alice, shared_trip["id"])
    assert bob.post(f"/api/tasks/{task['id']}/toggle-packed").status_code == 401
    assert bob.get(f"/api/tasks/{task['id']}/packers").status_code == 401


def test_toggle_missing_task(alice):
    assert alice.post("/api/tasks/99999/toggle-packed").status_code == 404


def test_one_packing_record_per_user(db, alice, shared_trip):
    """Test the database refuses a duplicate packing record."""
    from sqlalchemy.exc import IntegrityError

    task = add_task(alice, shared_trip["id"])
    user_id = alice.user["id"]
    db.add(TaskPacker(task_id=task["id"], user_id=user_id, user_name="alice"))
    db.commit()
    db.add(TaskPacker(task_id=task["id"], user_id=user_id, user_name="alice"))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_toggle_conflict_surfaces(db, alice, shared_trip, monkeypatch):
    """Test losing a race on the packing record is reported as a conflict."""
    task = add_task(alice, shared_trip["id"])
    service = PackingService(db)
    db.add(TaskPacker(task_id=task["id"], user_id=alice.user["id"], user_name="alice"))
    db.commit()

    # Pretend the existing record was not seen, as in a concurrent request
    original_query = db.query

    def query(*entities):
        result = original_query(*entities)
        if entities == (TaskPacker,):
            result = result.filter(TaskPacker.id == -1)
        return result

    monkeypatch.setattr(db, "query", query)
    with pytest.raises(Conflict):
        service.toggle_packed(task["id"], alice.user["id"], "alice")


def test_progress(owner, alice, shared_trip):
    """Test progress counts only the caller's own packing records."""
    first = add_task(owner, shared_trip["id"], text="Tent")
    add_task(owner, shared_trip["id"], text="Stove")
    add_task(alice, shared_trip["id"], text="Map")
    add_task(alice, shared_trip["id"], text="Compass")
    alice.post(f"/api/tasks/{first['id']}/toggle-packed")

    response = alice.get(f"/api/trip/{shared_trip['id']}/progress")
    assert response.status_code == 200
    assert response.json() == {
        "trip_id": shared_trip["id"],
        "packed_count": 1,
        "total_count": 4,
        "progress": 0.25,
    }

    owner_progress = owner.get(f"/api/trip/{shared_trip['id']}/progress").json()
    assert owner_progress["packed_count"] == 0


def test_progress_empty_trip(owner, trip):
    data = owner.get(f"/api/trip/{trip['id']}/progress").json()
    assert data["total_count"] == 0
    assert data["progress"] == 0.0


def test_progress_requires_access(bob, shared_trip):
    assert bob.get(f"/api/trip/{shared_trip['id']}/progress").status_code == 401
