import uuid

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backoffice.models import Permission

API = "/api/v1"


def permission_id(db, code):
    return str(db.query(Permission).filter(Permission.code == code).one().id)


def test_system_role_cannot_be_renamed_or_deleted(client, admin, admin_headers):
    url = f"{API}/roles/{admin.role_id}"

    renamed = client.put(url, headers=admin_headers, json={"name": "superuser"})
    assert renamed.status_code == 400

    deleted = client.delete(url, headers=admin_headers)
    assert deleted.status_code == 400
    assert deleted.json()["error"] == "System roles cannot be deleted"


def test_role_with_users_cannot_be_deleted(client, admin_headers, viewer):
    response = client.delete(f"{API}/roles/{viewer.role_id}", headers=admin_headers)
    assert response.status_code == 400
    assert response.json()["user_count"] == 1


def test_unused_role_is_deleted(client, admin_headers, make_role):
    role = make_role("stagiaire")
    assert client.delete(f"{API}/roles/{role.id}", headers=admin_headers).status_code == 200
    assert client.get(f"{API}/roles/{role.id}", headers=admin_headers).status_code == 404


def test_admin_role_permissions_are_locked(client, db, admin, admin_headers):
    body = {"permission_ids": [permission_id(db, "hr.leaves.create")]}
    response = client.put(f"{API}/roles/{admin.role_id}", headers=admin_headers, json=body)
    assert response.status_code == 403

    response = client.put(
        f"{API}/permissions/role/{admin.role_id}",
        headers=admin_headers,
        json={"permissionIds": body["permission_ids"]},
    )
    assert response.status_code == 403


def test_unknown_permission_ids_are_rejected(client, db, admin_headers, make_role):
    role = make_role("comptable")
    known = permission_id(db, "hr.leaves.create")

    response = client.put(
        f"{API}/permissions/role/{role.id}",
        headers=admin_headers,
        json={"permissionIds": [known, str(uuid.uuid4())]},
    )
    assert response.status_code == 400

    response = client.put(
        f"{API}/permissions/role/{role.id}", headers=admin_headers, json={"permissionIds": [known]}
    )
    assert response.status_code == 200
    assert response.json()["permissions"] == ["hr.leaves.create"]


def test_cannot_delete_own_account(client, admin, admin_headers):
    response = client.delete(f"{API}/users/{admin.id}", headers=admin_headers)
    assert response.status_code == 400


def test_referenced_user_is_not_deleted(client, admin_headers, make_profile, monkeypatch):
    user = make_profile("ancien")

    def referenced(self):
        raise IntegrityError("DELETE FROM profiles", {}, Exception("foreign key violation"))

    monkeypatch.setattr(Session, "commit", referenced)
    response = client.delete(f"{API}/users/{user.id}", headers=admin_headers)
    monkeypatch.undo()

    assert response.status_code == 409
    assert response.json()["code"] == "USER_IN_USE"
    users = client.get(f"{API}/users/", headers=admin_headers).json()["users"]
    assert "ancien" in [u["username"] for u in users]
