"""HTTP Routes — end-to-end flows through the FastAPI app.

Invariants checked:
    - Missing/invalid bearer token → 401 AUTH_ERROR envelope
    - Domain errors surface with their code and HTTP status
    - Full scenario: register → create → accept → progress → complete → rate
"""

from datetime import datetime, timedelta, timezone
from decimal import Decimal

import pytest

from notehub.core.events import request_topic
from notehub.services.accounts import identity_of


def _deadline(hours: int = 24) -> str:
    return (datetime.now(timezone.utc) + timedelta(hours=hours)).isoformat()


def _form(**overrides):
    data = {
        "subject": "History",
        "topic": "French revolution",
        "note_type": "handwritten",
        "pages": "5",
        "deadline": _deadline(),
        "delivery_location": "Main hall",
        "amount": "12.50",
        "payment_type": "cod",
    }
    data.update(overrides)
    return data


# ─── auth & health ───────────────────────────────────────────────

async def test_liveness(client):
    res = await client.get("/api/v1/health/")
    assert res.status_code == 200
    assert res.json()["service"] == "notehub-api"


async def test_readiness_with_test_db(client):
    res = await client.get("/api/v1/health/ready")
    assert res.status_code == 200
    assert res.json()["checks"]["database"] == "healthy"


async def test_register_login_and_me(client):
    res = await client.post("/api/v1/auth/register", json={
        "username": "lena", "email": "lena@example.com",
        "password": "hunter22", "role": "writer", "phone": "555-0300",
    })
    assert res.status_code == 201
    body = res.json()
    assert body["user"]["role"] == "writer"
    assert "password_hash" not in body["user"]

    res = await client.post("/api/v1/auth/login", json={
        "email": "lena@example.com", "password": "hunter22",
    })
    assert res.status_code == 200
    token = res.json()["token"]

    res = await client.get("/api/v1/users/me", headers={"Authorization": f"Bearer {token}"})
    assert res.status_code == 200
    assert res.json()["username"] == "lena"


async def test_register_duplicate_is_409(client, student):
    res = await client.post("/api/v1/auth/register", json={
        "username": "stu", "email": "fresh@example.com",
        "password": "hunter22", "role": "student",
    })
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "CONFLICT"


async def test_register_invalid_role_is_400(client):
    res = await client.post("/api/v1/auth/register", json={
        "username": "zed", "email": "zed@example.com",
        "password": "hunter22", "role": "admin",
    })
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_bad_login_is_401(client, student):
    res = await client.post("/api/v1/auth/login", json={
        "email": "stu@example.com", "password": "nope-nope",
    })
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "AUTH_ERROR"


async def test_missing_token_is_401(client):
    res = await client.get("/api/v1/requests")
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "AUTH_ERROR"


async def test_invalid_token_is_401(client):
    res = await client.get("/api/v1/requests", headers={"Authorization": "Bearer junk"})
    assert res.status_code == 401


# ─── requests ────────────────────────────────────────────────────

async def test_create_request_with_reference_files(client, student, headers):
    res = await client.post(
        "/api/v1/requests",
        data=_form(),
        files=[
            ("reference_files", ("outline.pdf", b"%PDF-1.4", "application/pdf")),
            ("reference_files", ("board.jpg", b"\xff\xd8", "image/jpeg")),
        ],
        headers=headers(student),
    )
    assert res.status_code == 201
    request_id = res.json()["id"]

    res = await client.get(f"/api/v1/requests/{request_id}", headers=headers(student))
    view = res.json()
    assert view["status"] == "open"
    assert view["payment_type"] == "cod"
    assert Decimal(str(view["amount"])) == Decimal("12.50")
    assert len(view["reference_files"]) == 2

    res = await client.get(
        f"/api/v1/files/{view['reference_files'][0]}", headers=headers(student),
    )
    assert res.status_code == 200
    assert res.content == b"%PDF-1.4"
    assert res.headers["content-type"] == "application/pdf"


async def test_attachment_readable_only_by_participants(
    client, student, writer, other_writer, headers, make_request,
):
    request = await make_request(student, writer, status="accepted")
    res = await client.post(
        f"/api/v1/requests/{request.id}/messages",
        files={"file": ("draft.pdf", b"%PDF-draft", "application/pdf")},
        headers=headers(writer),
    )
    reference = res.json()["file_path"]

    res = await client.get(f"/api/v1/files/{reference}", headers=headers(student))
    assert res.status_code == 200
    assert res.content == b"%PDF-draft"

    res = await client.get(f"/api/v1/files/{reference}", headers=headers(other_writer))
    assert res.status_code == 404
    assert res.json()["error"]["code"] == "RESOURCE_NOT_FOUND"


async def test_reference_file_follows_request_visibility(
    client, student, writer, other_writer, headers,
):
    res = await client.post(
        "/api/v1/requests", data=_form(),
        files=[("reference_files", ("outline.pdf", b"%PDF-1.4", "application/pdf"))],
        headers=headers(student),
    )
    request_id = res.json()["id"]
    res = await client.get(f"/api/v1/requests/{request_id}", headers=headers(student))
    reference = res.json()["reference_files"][0]

    res = await client.get(f"/api/v1/files/{reference}", headers=headers(other_writer))
    assert res.status_code == 200

    await client.post(f"/api/v1/requests/{request_id}/accept", headers=headers(writer))

    res = await client.get(f"/api/v1/files/{reference}", headers=headers(writer))
    assert res.status_code == 200
    res = await client.get(f"/api/v1/files/{reference}", headers=headers(other_writer))
    assert res.status_code == 404


async def test_unknown_file_is_404(client, student, headers):
    res = await client.get("/api/v1/files/20240101000000_abcd_none.pdf", headers=headers(student))
    assert res.status_code == 404


async def test_create_without_files(client, student, headers):
    res = await client.post("/api/v1/requests", data=_form(), headers=headers(student))
    assert res.status_code == 201


async def test_deadline_inside_lead_time_is_400(client, student, headers):
    soon = (datetime.now(timezone.utc) + timedelta(minutes=20)).isoformat()
    res = await client.post(
        "/api/v1/requests", data=_form(deadline=soon), headers=headers(student),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_zero_pages_is_400(client, student, headers):
    res = await client.post(
        "/api/v1/requests", data=_form(pages="0"), headers=headers(student),
    )
    assert res.status_code == 400


async def test_writer_cannot_create(client, writer, headers):
    res = await client.post("/api/v1/requests", data=_form(), headers=headers(writer))
    assert res.status_code == 403
    assert res.json()["error"]["code"] == "FORBIDDEN"


async def test_accept_twice_conflicts(client, student, writer, other_writer, headers, make_request):
    request = await make_request(student)
    res = await client.post(f"/api/v1/requests/{request.id}/accept", headers=headers(writer))
    assert res.status_code == 200
    assert res.json()["request"]["writer_name"] == "wri"

    res = await client.post(
        f"/api/v1/requests/{request.id}/accept", headers=headers(other_writer),
    )
    assert res.status_code == 409
    assert res.json()["error"]["message"] == "Request not available"


async def test_status_update_by_outsider_is_404(client, student, writer, other_writer, headers, make_request):
    request = await make_request(student, writer, status="accepted")
    res = await client.post(
        f"/api/v1/requests/{request.id}/status",
        json={"status": "in_progress"},
        headers=headers(other_writer),
    )
    assert res.status_code == 404


async def test_bad_status_value_is_400(client, student, writer, headers, make_request):
    request = await make_request(student, writer, status="accepted")
    res = await client.post(
        f"/api/v1/requests/{request.id}/status",
        json={"status": "finished"},
        headers=headers(writer),
    )
    assert res.status_code == 400


# ─── chat ────────────────────────────────────────────────────────

async def test_chat_round_trip(client, hub, student, writer, headers, make_request):
    request = await make_request(student, writer, status="accepted")
    listener = hub.connect(identity_of(writer))
    hub.join(listener, request_topic(request.id))

    res = await client.post(
        f"/api/v1/requests/{request.id}/messages",
        data={"message": "Can you add diagrams?"},
        headers=headers(student),
    )
    assert res.status_code == 201
    sent = res.json()
    assert sent["receiver_id"] == writer.id
    assert listener.queue.get_nowait()["type"] == "new_message"

    res = await client.post(
        f"/api/v1/requests/{request.id}/messages",
        files={"file": ("diagram.png", b"\x89PNG", "image/png")},
        headers=headers(writer),
    )
    assert res.status_code == 201
    assert res.json()["message_type"] == "image"
    assert res.json()["message"] == ""

    res = await client.get(f"/api/v1/requests/{request.id}/messages", headers=headers(writer))
    assert [m["sender_name"] for m in res.json()] == ["stu", "wri"]


async def test_empty_chat_message_is_400(client, student, writer, headers, make_request):
    request = await make_request(student, writer, status="accepted")
    res = await client.post(
        f"/api/v1/requests/{request.id}/messages",
        data={"message": "  "},
        headers=headers(student),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_MESSAGE"


async def test_chat_by_outsider_is_403(client, student, writer, other_writer, headers, make_request):
    request = await make_request(student, writer, status="accepted")
    res = await client.get(
        f"/api/v1/requests/{request.id}/messages", headers=headers(other_writer),
    )
    assert res.status_code == 403


# ─── rating ──────────────────────────────────────────────────────

async def test_invalid_score_is_400(client, student, writer, headers, make_request):
    request = await make_request(student, writer, status="completed")
    res = await client.post(
        f"/api/v1/requests/{request.id}/rating", json={"score": 9},
        headers=headers(student),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_SCORE"


@pytest.mark.parametrize("raw", [True, "4", 4.5])
async def test_non_integer_score_is_never_coerced(
    client, student, writer, headers, make_request, raw,
):
    request = await make_request(student, writer, status="completed")
    res = await client.post(
        f"/api/v1/requests/{request.id}/rating", json={"score": raw},
        headers=headers(student),
    )
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "INVALID_SCORE"

    res = await client.get(f"/api/v1/users/{writer.id}", headers=headers(student))
    assert res.json()["total_orders"] == 0


async def test_full_marketplace_scenario(client, student, writer, headers):
    res = await client.post("/api/v1/requests", data=_form(), headers=headers(student))
    request_id = res.json()["id"]

    res = await client.get("/api/v1/requests", headers=headers(writer))
    assert request_id in [r["id"] for r in res.json()]

    res = await client.post(f"/api/v1/requests/{request_id}/accept", headers=headers(writer))
    assert res.status_code == 200

    for status in ("in_progress", "ready", "delivered"):
        res = await client.post(
            f"/api/v1/requests/{request_id}/status",
            json={"status": status}, headers=headers(writer),
        )
        assert res.status_code == 200
        assert res.json()["request"]["status"] == status

    res = await client.post(
        f"/api/v1/requests/{request_id}/rating", json={"score": 5},
        headers=headers(student),
    )
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "INVALID_STATE"

    res = await client.post(
        f"/api/v1/requests/{request_id}/status",
        json={"status": "completed"}, headers=headers(student),
    )
    assert res.status_code == 200

    res = await client.post(
        f"/api/v1/requests/{request_id}/rating",
        json={"score": 5, "review": "Great"}, headers=headers(student),
    )
    assert res.status_code == 201
    assert Decimal(str(res.json()["writer_rating"])) == Decimal("5.00")

    res = await client.post(
        f"/api/v1/requests/{request_id}/rating", json={"score": 4},
        headers=headers(student),
    )
    assert res.status_code == 409
    assert res.json()["error"]["code"] == "ALREADY_RATED"

    res = await client.get(f"/api/v1/users/{writer.id}", headers=headers(student))
    profile = res.json()
    assert profile["total_orders"] == 1
    assert Decimal(str(profile["rating"])) == Decimal("5.00")
    assert "email" not in profile
