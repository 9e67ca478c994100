from backoffice.models import Permission, UserRole
from backoffice.services.permissions import (
    PERMISSION_CATALOGUE,
    get_user_permissions,
    has_permission,
    iter_catalogue,
    sync_permissions,
)

API = "/api/v1"


def test_login_returns_token_and_permissions(client, viewer):
    response = client.post(f"{API}/auth/login", json={"username": "viewer", "password": "secret123"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["token"]
    assert body["user"]["username"] == "viewer"
    assert body["permissions"] == ["formation.formations.view_page"]
    assert "access_token" in response.cookies


def test_login_with_wrong_password_is_rejected(client, viewer):
    response = client.post(f"{API}/auth/login", json={"username": "viewer", "password": "nope"})
    assert response.status_code == 401
    assert response.json() == {"success": False, "error": "Invalid credentials"}


def test_me_requires_a_token(client):
    response = client.get(f"{API}/auth/me")
    assert response.status_code == 401
    assert response.json()["code"] == "NO_TOKEN"


def test_garbage_token_is_forbidden(client):
    response = client.get(f"{API}/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 403
    assert response.json()["code"] == "INVALID_TOKEN"


def test_me_returns_the_profile(client, viewer, viewer_headers):
    response = client.get(f"{API}/auth/me", headers=viewer_headers)
    assert response.status_code == 200
    assert response.json()["user"]["username"] == "viewer"


def test_missing_permission_gives_403(client, viewer_headers):
    response = client.get(f"{API}/users/", headers=viewer_headers)
    assert response.status_code == 403
    body = response.json()
    assert body["success"] is False
    assert body["code"] == "INSUFFICIENT_PERMISSION"
    assert body["required"] == ["accounting.users.view_page"]


def test_admin_bypasses_permission_checks(client, admin_headers):
    response = client.get(f"{API}/users/", headers=admin_headers)
    assert response.status_code == 200
    assert [u["username"] for u in response.json()["users"]] == ["admin"]


def test_wildcard_permission_grants_everything(db, make_role, make_profile):
    db.add(Permission(code="*", module="*", menu="*", action="*"))
    db.commit()
    role = make_role("superuser", ["*"])
    profile = make_profile("root", role)
    assert has_permission(db, profile, "hr.payroll.manage")


def test_user_roles_take_precedence_over_profile_role(db, make_role, make_profile):
    viewer_role = make_role("viewer", ["formation.formations.view_page"])
    hr_role = make_role("hr", ["hr.employees.view_page"])
    profile = make_profile("mixed", viewer_role)
    db.add(UserRole(user_id=profile.id, role_id=hr_role.id))
    db.commit()
    assert get_user_permissions(db, profile) == {"hr.employees.view_page"}


def test_sync_permissions_is_idempotent(db):
    expected = sum(len(actions) for menus in PERMISSION_CATALOGUE.values() for actions in menus.values())
    assert db.query(Permission).count() == expected
    assert sync_permissions(db) == 0


def test_catalogue_codes_follow_module_menu_action():
    for entry in iter_catalogue():
        assert entry["code"].split(".") == [entry["module"], entry["menu"], entry["action"]]


def test_create_user_validates_password_length(client, admin_headers, make_role):
    role = make_role("staff")
    response = client.post(
        f"{API}/users/",
        headers=admin_headers,
        json={"username": "new", "password": "123", "full_name": "New", "role_id": str(role.id)},
    )
    assert response.status_code == 400


def test_change_password(client, viewer_headers):
    response = client.post(
        f"{API}/auth/change-password",
        headers=viewer_headers,
        json={"current_password": "secret123", "new_password": "another-secret"},
    )
    assert response.status_code == 200

    response = client.post(
        f"{API}/auth/login", json={"username": "viewer", "password": "another-secret"}
    )
    assert response.status_code == 200


def test_validation_errors_are_400(client):
    response = client.post(f"{API}/auth/login", json={"username": "x"})
    assert response.status_code == 400
    assert response.json()["error"] == "Validation error"
