import pytest
from uuid import uuid4

from ekko.models.audit import AuditLog


@pytest.mark.anyio("asyncio")
async def test_user_creation_audit_has_api_actor(client, admin_headers, db_session):
    payload = {
        "username": f"audit-user-{uuid4().hex[:6]}",
        "email": f"audit-user-{uuid4().hex[:6]}@example.com",
    }
    resp = await client.post("/users", json=payload, headers=admin_headers)
    assert resp.status_code == 201

    db_session.expire_all()
    audit = (
        db_session.query(AuditLog)
        .filter(AuditLog.action == "CREATE_USER")
        .order_by(AuditLog.id.desc())
        .first()
    )
    assert audit is not None
    assert audit.actor.startswith("apikey:")
    assert audit.data_json["email"].startswith("***@")


@pytest.mark.anyio("asyncio")
async def test_me_returns_bound_user(client, make_user, headers_for):
    user = make_user("me")
    resp = await client.get("/users/me", headers=headers_for(user))
    assert resp.status_code == 200
    assert resp.json()["id"] == user.id


@pytest.mark.anyio("asyncio")
async def test_inactive_user_is_rejected(client, make_user, headers_for):
    user = make_user("sleepy", is_active=False)
    resp = await client.get("/users/me", headers=headers_for(user))
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "USER_INACTIVE"


@pytest.mark.anyio("asyncio")
async def test_user_scope_cannot_read_other_users(client, make_user, headers_for):
    user = make_user("nosy")
    resp = await client.get(f"/users/{user.id}", headers=headers_for(user))
    assert resp.status_code == 403
    assert resp.json()["error"]["code"] == "INSUFFICIENT_SCOPE"
