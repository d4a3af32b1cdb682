"""
Account administration: only admins manage accounts, and every account
keeps a matching supervisor profile.
"""
from uuid import UUID

import pytest

from divelog.models.profile import Profile


def _create(client, headers, **body):
    body.setdefault("password", "longpass1")
    return client.post("/users", json=body, headers=headers)


@pytest.mark.parametrize("who", ["supervisor_headers", "viewer_headers"])
def test_account_admin_is_admin_only(client, request, who):
    headers = request.getfixturevalue(who)
    assert client.get("/users", headers=headers).status_code == 403
    assert _create(client, headers, email="x@example.com").status_code == 403


def test_accounts_listed_by_email(client, admin_headers, admin_user, supervisor_user, other_supervisor):
    emails = [a["email"] for a in client.get("/users", headers=admin_headers).json()]
    assert emails == sorted(emails)
    assert {"admin@example.com", "supervisor@example.com", "other@example.com"} <= set(emails)


def test_new_account_gets_profile(client, admin_headers, db_session):
    resp = _create(client, admin_headers, email="New.Diver@example.com", role="supervisor")
    assert resp.status_code == 201
    account = resp.json()
    assert account["email"] == "new.diver@example.com"
    assert "password_hash" not in account

    profile = db_session.get(Profile, UUID(account["id"]))
    assert profile.username == "new.diver@example.com"
    assert profile.full_name == "new.diver"
    assert profile.role == "supervisor"


def test_new_account_full_name_and_default_role(client, admin_headers, db_session):
    resp = _create(client, admin_headers, email="sam@example.com", full_name="Sam Kerr")
    assert resp.status_code == 201
    assert resp.json()["role"] == "supervisor"
    assert db_session.get(Profile, UUID(resp.json()["id"])).full_name == "Sam Kerr"


@pytest.mark.parametrize(
    "body",
    [
        {"email": "x@example.com", "password": "abc"},
        {"email": "x@example.com", "role": "superuser"},
        {"email": "not-an-email"},
    ],
)
def test_new_account_rejects_bad_input(client, admin_headers, body):
    assert _create(client, admin_headers, **body).status_code == 422


def test_email_must_be_unique(client, admin_headers, admin_user, supervisor_user):
    assert _create(client, admin_headers, email="Supervisor@example.com").status_code == 409

    resp = client.put(
        f"/users/{supervisor_user.id}", json={"email": "admin@example.com"}, headers=admin_headers
    )
    assert resp.status_code == 409


def test_role_change_reaches_profile(client, admin_headers, supervisor_user, db_session):
    resp = client.put(f"/users/{supervisor_user.id}", json={"role": "viewer"}, headers=admin_headers)
    assert resp.status_code == 200
    assert resp.json()["role"] == "viewer"
    db_session.expire_all()
    assert db_session.get(Profile, supervisor_user.id).role == "viewer"


def test_password_change_takes_effect_at_login(client, admin_headers, supervisor_user):
    resp = client.put(
        f"/users/{supervisor_user.id}", json={"password": "fresh-secret"}, headers=admin_headers
    )
    assert resp.status_code == 200

    login = {"email": "supervisor@example.com"}
    assert client.post("/auth/login", json={**login, "password": "supervisorpass"}).status_code == 401
    assert client.post("/auth/login", json={**login, "password": "fresh-secret"}).status_code == 200


def test_unknown_account_is_404(client, admin_headers):
    missing = "00000000-0000-0000-0000-000000000000"
    assert client.put(f"/users/{missing}", json={"role": "viewer"}, headers=admin_headers).status_code == 404
    assert client.delete(f"/users/{missing}", headers=admin_headers).status_code == 404


def test_deleted_account_loses_profile_but_dives_remain(
    client, admin_headers, supervisor_user, started_dive, db_session
):
    supervisor_id = supervisor_user.id
    assert client.delete(f"/users/{supervisor_id}", headers=admin_headers).status_code == 204

    emails = [a["email"] for a in client.get("/users", headers=admin_headers).json()]
    assert "supervisor@example.com" not in emails
    db_session.expire_all()
    assert db_session.get(Profile, supervisor_id) is None

    dive = client.get(f"/dives/{started_dive['id']}", headers=admin_headers)
    assert dive.status_code == 200
    assert dive.json()["supervisor_id"] is None


def test_admin_cannot_delete_own_account(client, admin_headers, admin_user):
    assert client.delete(f"/users/{admin_user.id}", headers=admin_headers).status_code == 409


def test_account_changes_are_audited(client, admin_headers):
    created = _create(client, admin_headers, email="sam@example.com").json()
    client.put(f"/users/{created['id']}", json={"role": "viewer"}, headers=admin_headers)
    client.delete(f"/users/{created['id']}", headers=admin_headers)

    entries = client.get(
        "/audit-log",
        params={"resource_type": "user", "resource_id": created["id"]},
        headers=admin_headers,
    ).json()
    assert {e["action"] for e in entries} == {"user.create", "user.update", "user.delete"}
    update = next(e for e in entries if e["action"] == "user.update")
    assert update["detail"] == {"changed": ["role"]}


@pytest.mark.parametrize(
    "who, email, role",
    [
        ("admin_headers", "admin@example.com", "admin"),
        ("viewer_headers", "viewer@example.com", "viewer"),
    ],
)
def test_me_returns_own_account(client, request, who, email, role):
    resp = client.get("/users/me", headers=request.getfixturevalue(who))
    assert resp.status_code == 200
    assert resp.json()["email"] == email
    assert resp.json()["role"] == role
