import math
import string
from datetime import datetime

import pytest

from core.geo import haversine_km
from db_models.complaint import Complaint
from api.complaints import db_manager as complaint_manager


async def create_complaint(client, headers, files=None, **fields):
    data = {
        "title": "Pothole",
        "description": "Large pothole in the middle of the road",
        "category": "road",
        "longitude": "-74.0",
        "latitude": "40.0",
        "address": "5th Avenue",
    }
    data.update({k: str(v) for k, v in fields.items()})
    return await client.post("/api/complaints", data=data, files=files, headers=headers)


async def register_user(client, email, password="secret123"):
    resp = await client.post(
        "/api/auth/register",
        json={"firstName": "Alex", "lastName": "Citizen", "email": email, "password": password},
    )
    assert resp.status_code == 201, resp.text
    client.cookies.clear()
    return {"Authorization": f"Bearer {resp.json()['data']['token']}"}


def parse_dt(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.mark.anyio
async def test_end_to_end_lifecycle(async_client, admin_headers, notifier):
    """Register, login, submit, then assign and resolve as admin"""
    await register_user(async_client, "lifecycle.a@test.com")
    resp = await async_client.post(
        "/api/auth/login", json={"email": "lifecycle.a@test.com", "password": "secret123"}
    )
    assert resp.status_code == 200
    async_client.cookies.clear()
    headers = {"Authorization": f"Bearer {resp.json()['data']['token']}"}

    resp = await create_complaint(async_client, headers)
    assert resp.status_code == 201, resp.text
    complaint = resp.json()["data"]["complaint"]
    assert complaint["status"] == "pending"
    assert complaint["priority"] == "medium"
    assert len(complaint["complaintId"]) == 10
    assert all(ch in string.ascii_uppercase + string.digits for ch in complaint["complaintId"])
    assert complaint["location"] == {
        "type": "Point",
        "coordinates": [-74.0, 40.0],
        "address": "5th Avenue",
    }
    assert complaint["resolutionDetails"] is None
    assert "Complaint Submitted Successfully" in notifier.subjects_for("lifecycle.a@test.com")

    resp = await async_client.get("/api/complaints", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 1
    assert len(body["data"]["complaints"]) == 1
    assert body["data"]["complaints"][0]["status"] == "pending"

    complaint_id = complaint["id"]
    resp = await async_client.patch(
        f"/api/complaints/{complaint_id}/assign",
        json={"department": "roads"},
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    assigned = resp.json()["data"]["complaint"]
    assert assigned["status"] == "in-progress"
    assert assigned["assignedDepartment"] == "roads"

    resp = await async_client.patch(
        f"/api/complaints/{complaint_id}/status",
        json={"status": "resolved", "comment": "Fixed"},
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    resolved = resp.json()["data"]["complaint"]
    assert resolved["status"] == "resolved"
    details = resolved["resolutionDetails"]
    assert details["text"] == "Fixed"
    assert details["resolvedBy"]["id"] == 1
    assert parse_dt(details["resolvedAt"]) >= parse_dt(resolved["createdAt"])
    assert [c["text"] for c in resolved["comments"]] == ["Fixed"]

    subjects = notifier.subjects_for("lifecycle.a@test.com")
    assert f"Complaint Assigned: {complaint['complaintId']}" in subjects
    assert f"Complaint Status Updated: {complaint['complaintId']}" in subjects


@pytest.mark.anyio
async def test_complaint_read_authorization(async_client, citizen_headers, other_headers, admin_headers):
    resp = await create_complaint(async_client, citizen_headers, title="Broken streetlight", category="streetlight")
    assert resp.status_code == 201
    complaint_id = resp.json()["data"]["complaint"]["id"]

    resp = await async_client.get(f"/api/complaints/{complaint_id}", headers=other_headers)
    assert resp.status_code == 403
    assert resp.json() == {"success": False, "message": "Not authorized to view this complaint"}

    resp = await async_client.get(f"/api/complaints/{complaint_id}", headers=admin_headers)
    assert resp.status_code == 200

    # Owner can read it whatever the status
    for status in ("rejected", "resolved", "pending"):
        resp = await async_client.patch(
            f"/api/complaints/{complaint_id}/status",
            json={"status": status},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        resp = await async_client.get(f"/api/complaints/{complaint_id}", headers=citizen_headers)
        assert resp.status_code == 200
        assert resp.json()["data"]["complaint"]["status"] == status

    resp = await async_client.get("/api/complaints/999999", headers=citizen_headers)
    assert resp.status_code == 404
    assert resp.json()["message"] == "Complaint not found"


@pytest.mark.anyio
async def test_list_is_scoped_for_citizens(async_client, other_headers, admin_headers):
    headers = await register_user(async_client, "scoped.list@test.com")
    resp = await create_complaint(async_client, headers, title="Mine")
    assert resp.status_code == 201
    mine = resp.json()["data"]["complaint"]["id"]
    resp = await create_complaint(async_client, other_headers, title="Not mine")
    theirs = resp.json()["data"]["complaint"]["id"]

    resp = await async_client.get("/api/complaints", headers=headers)
    ids = [c["id"] for c in resp.json()["data"]["complaints"]]
    assert ids == [mine]

    resp = await async_client.get("/api/complaints?limit=100", headers=admin_headers)
    ids = [c["id"] for c in resp.json()["data"]["complaints"]]
    assert mine in ids and theirs in ids


@pytest.mark.anyio
async def test_pagination_and_sorting(async_client):
    headers = await register_user(async_client, "paging@test.com")
    for title in ("Charlie", "Alpha", "Bravo"):
        resp = await create_complaint(async_client, headers, title=title, priority="high")
        assert resp.status_code == 201

    for limit in (1, 2, 3, 5):
        pages_seen = []
        for page in range(1, 5):
            resp = await async_client.get(
                f"/api/complaints?page={page}&limit={limit}", headers=headers
            )
            assert resp.status_code == 200
            body = resp.json()
            assert len(body["data"]["complaints"]) <= limit
            assert body["count"] == len(body["data"]["complaints"])
            assert body["pagination"]["total"] == 3
            assert body["pagination"]["pages"] == math.ceil(3 / limit)
            assert body["pagination"]["limit"] == limit
            pages_seen.extend(c["id"] for c in body["data"]["complaints"])
        assert len(pages_seen) == len(set(pages_seen)) == 3

    # Oversized pages are clamped to 100
    resp = await async_client.get("/api/complaints?limit=200", headers=headers)
    assert resp.status_code == 200
    body = resp.json()
    assert body["pagination"]["limit"] == 100
    assert body["pagination"]["pages"] == 1
    assert len(body["data"]["complaints"]) == 3

    # Newest first by default
    resp = await async_client.get("/api/complaints", headers=headers)
    assert [c["title"] for c in resp.json()["data"]["complaints"]] == ["Bravo", "Alpha", "Charlie"]

    resp = await async_client.get("/api/complaints?sortBy=title&sortOrder=asc", headers=headers)
    assert [c["title"] for c in resp.json()["data"]["complaints"]] == ["Alpha", "Bravo", "Charlie"]

    resp = await async_client.get("/api/complaints?sortBy=password", headers=headers)
    assert resp.status_code == 400

    resp = await async_client.get("/api/complaints?priority=low", headers=headers)
    assert resp.json()["pagination"]["total"] == 0


@pytest.mark.anyio
async def test_assign_never_regresses_status(async_client, citizen_headers, admin_headers):
    for status in ("in-progress", "resolved", "rejected"):
        resp = await create_complaint(async_client, citizen_headers, title=f"Assign {status}")
        complaint_id = resp.json()["data"]["complaint"]["id"]
        resp = await async_client.patch(
            f"/api/complaints/{complaint_id}/status",
            json={"status": status},
            headers=admin_headers,
        )
        assert resp.status_code == 200

        resp = await async_client.patch(
            f"/api/complaints/{complaint_id}/assign",
            json={"department": "water"},
            headers=admin_headers,
        )
        assert resp.status_code == 200
        assert resp.json()["data"]["complaint"]["status"] == status
        assert resp.json()["data"]["complaint"]["assignedDepartment"] == "water"


@pytest.mark.anyio
async def test_assign_with_note_and_assignee(async_client, citizen_headers, admin_headers):
    resp = await create_complaint(async_client, citizen_headers, title="Leaking pipe", category="water")
    complaint_id = resp.json()["data"]["complaint"]["id"]

    resp = await async_client.patch(
        f"/api/complaints/{complaint_id}/assign",
        json={"department": "water", "assignedTo": 999999},
        headers=admin_headers,
    )
    assert resp.status_code == 404
    assert resp.json()["message"] == "Assigned user not found"

    resp = await async_client.patch(
        f"/api/complaints/{complaint_id}/assign",
        json={"department": "public works", "assignedTo": 1, "note": "Crew scheduled"},
        headers=admin_headers,
    )
    assert resp.status_code == 200, resp.text
    complaint = resp.json()["data"]["complaint"]
    assert complaint["assignedTo"]["id"] == 1
    assert complaint["comments"][-1]["text"] == "Assigned to public works department. Crew scheduled"
    assert complaint["comments"][-1]["createdBy"]["role"] == "admin"


@pytest.mark.anyio
async def test_resolution_defaults_and_is_kept_on_reopen(async_client, citizen_headers, admin_headers):
    resp = await create_complaint(async_client, citizen_headers, title="Overflowing bin", category="garbage")
    complaint_id = resp.json()["data"]["complaint"]["id"]

    resp = await async_client.patch(
        f"/api/complaints/{complaint_id}/status",
        json={"status": "resolved"},
        headers=admin_headers,
    )
    details = resp.json()["data"]["complaint"]["resolutionDetails"]
    assert details["text"] == "Issue resolved"
    assert resp.json()["data"]["complaint"]["comments"] == []

    resp = await async_client.patch(
        f"/api/complaints/{complaint_id}/status",
        json={"status": "in-progress", "comment": "Reopened"},
        headers=admin_headers,
    )
    complaint = resp.json()["data"]["complaint"]
    assert complaint["status"] == "in-progress"
    assert complaint["resolutionDetails"] == details


@pytest.mark.anyio
async def test_admin_only_transitions(async_client, citizen_headers):
    resp = await create_complaint(async_client, citizen_headers, title="Admin only")
    complaint_id = resp.json()["data"]["complaint"]["id"]

    resp = await async_client.patch(
        f"/api/complaints/{complaint_id}/status",
        json={"status": "resolved"},
        headers=citizen_headers,
    )
    assert resp.status_code == 403
    assert resp.json()["message"] == "Access denied. Admin role required."

    resp = await async_client.patch(
        f"/api/complaints/{complaint_id}/assign",
        json={"department": "roads"},
        headers=citizen_headers,
    )
    assert resp.status_code == 403

    resp = await async_client.patch(
        f"/api/complaints/{complaint_id}/status",
        json={"status": "closed"},
        headers=citizen_headers,
    )
    assert resp.status_code in (400, 403)


@pytest.mark.anyio
async def test_comments(async_client, citizen_headers, other_headers, admin_headers, notifier):
    resp = await create_complaint(async_client, citizen_headers, title="Sewage smell", category="sewage")
    complaint_id = resp.json()["data"]["complaint"]["id"]
    code = resp.json()["data"]["complaint"]["complaintId"]
    notifier.sent.clear()

    resp = await async_client.post(
        f"/api/complaints/{complaint_id}/comments",
        json={"comment": "Still smells today"},
        headers=citizen_headers,
    )
    assert resp.status_code == 200, resp.text
    comment = resp.json()["data"]["comment"]
    assert comment["text"] == "Still smells today"
    assert comment["createdBy"] == {
        "id": 2,
        "firstName": "Test",
        "lastName": "Citizen",
        "email": "citizen@test.com",
        "role": "user",
    }
    # Owners commenting on their own complaint are not emailed
    assert notifier.sent == []

    resp = await async_client.post(
        f"/api/complaints/{complaint_id}/comments",
        json={"comment": "Inspection booked"},
        headers=admin_headers,
    )
    assert resp.status_code == 200
    assert notifier.subjects_for("citizen@test.com") == [
        f"New Comment on Your Complaint: {code}"
    ]

    resp = await async_client.post(
        f"/api/complaints/{complaint_id}/comments",
        json={"comment": "Not my complaint"},
        headers=other_headers,
    )
    assert resp.status_code == 403
    assert resp.json()["message"] == "Not authorized to comment on this complaint"

    resp = await async_client.post(
        f"/api/complaints/{complaint_id}/comments", json={"comment": ""}, headers=citizen_headers
    )
    assert resp.status_code == 400

    resp = await async_client.get(f"/api/complaints/{complaint_id}", headers=citizen_headers)
    texts = [c["text"] for c in resp.json()["data"]["complaint"]["comments"]]
    assert texts == ["Still smells today", "Inspection booked"]


@pytest.mark.anyio
async def test_create_validation(async_client, citizen_headers):
    resp = await async_client.post(
        "/api/complaints",
        data={"description": "No title", "longitude": "1", "latitude": "1"},
        headers=citizen_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["success"] is False

    resp = await create_complaint(async_client, citizen_headers, category="spaceship")
    assert resp.status_code == 400

    resp = await create_complaint(async_client, {})
    assert resp.status_code == 401


@pytest.mark.anyio
async def test_image_upload_limits(async_client, citizen_headers):
    png = b"\x89PNG\r\n\x1a\n" + b"0" * 64

    resp = await create_complaint(
        async_client,
        citizen_headers,
        files=[("images", ("pothole photo.png", png, "image/png"))],
    )
    assert resp.status_code == 201, resp.text
    images = resp.json()["data"]["complaint"]["images"]
    assert len(images) == 1
    assert images[0].startswith("/uploads/")
    assert images[0].endswith("-2-pothole-photo.png")

    resp = await async_client.get(images[0])
    assert resp.status_code == 200
    assert resp.content == png

    too_many = [("images", (f"p{i}.jpg", b"x", "image/jpeg")) for i in range(6)]
    resp = await create_complaint(async_client, citizen_headers, files=too_many)
    assert resp.status_code == 400

    resp = await create_complaint(
        async_client,
        citizen_headers,
        files=[("images", ("notes.txt", b"hello", "text/plain"))],
    )
    assert resp.status_code == 400
    assert resp.json()["message"] == "Only image files are allowed!"


@pytest.mark.anyio
async def test_nearby_radius(async_client, citizen_headers):
    center_lon, center_lat = 100.0, 10.0
    points = {
        "Center": (center_lon, center_lat),
        "One km": (center_lon + 0.009, center_lat),
        "Twenty km": (center_lon + 0.18, center_lat),
    }
    for title, (lon, lat) in points.items():
        resp = await create_complaint(async_client, citizen_headers, title=title, longitude=lon, latitude=lat)
        assert resp.status_code == 201

    resp = await async_client.get(
        f"/api/complaints/nearby?longitude={center_lon}&latitude={center_lat}",
        headers=citizen_headers,
    )
    assert resp.status_code == 200, resp.text
    complaints = resp.json()["data"]["complaints"]
    assert [c["title"] for c in complaints] == ["One km", "Center"]
    for c in complaints:
        lon, lat = c["location"]["coordinates"]
        assert haversine_km(center_lon, center_lat, lon, lat) <= 5

    resp = await async_client.get(
        f"/api/complaints/nearby?longitude={center_lon}&latitude={center_lat}&radius=50",
        headers=citizen_headers,
    )
    assert resp.json()["count"] == 3

    resp = await async_client.get("/api/complaints/nearby?longitude=100", headers=citizen_headers)
    assert resp.status_code == 400


@pytest.mark.anyio
async def test_nearby_caps_results(async_client, db_session, citizen_headers):
    lon, lat = -20.0, -30.0
    db_session.add_all(
        Complaint(
            title=f"Bulk {i}",
            description="Bulk inserted",
            longitude=lon + i * 0.0001,
            latitude=lat,
            user_id=2,
        )
        for i in range(55)
    )
    await db_session.commit()

    resp = await async_client.get(
        f"/api/complaints/nearby?longitude={lon}&latitude={lat}&radius=10",
        headers=citizen_headers,
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 50
    assert len(body["data"]["complaints"]) == 50


@pytest.mark.anyio
async def test_nearby_scans_in_batches(db_session, monkeypatch):
    lon, lat = 60.0, 0.0
    # Even rows sit about 0.1 km away; odd rows are inside the bounding box
    # corner but about 1.26 km away
    db_session.add_all(
        Complaint(
            title=f"Batch {i}",
            description="Batch scan",
            longitude=lon + (0.001 if i % 2 == 0 else 0.008),
            latitude=lat + (0.0 if i % 2 == 0 else 0.008),
            user_id=2,
        )
        for i in range(10)
    )
    await db_session.commit()

    monkeypatch.setattr(complaint_manager, "NEARBY_SCAN_BATCH", 3)
    monkeypatch.setattr(complaint_manager, "NEARBY_LIMIT", 4)

    complaints = await complaint_manager.nearby_complaints(db_session, lon, lat, 1.0)
    assert [c.title for c in complaints] == ["Batch 8", "Batch 6", "Batch 4", "Batch 2"]
    assert all(c.user.email == "citizen@test.com" for c in complaints)

    assert await complaint_manager.nearby_complaints(db_session, -60.0, 0.0, 1.0) == []
