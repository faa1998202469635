from conftest import bearer, make_user


def test_admin_lists_users_without_hashes(client, admin_headers, regular_user):
    r = client.get("/api/users", headers=admin_headers)
    assert r.status_code == 200
    users = r.json()["users"]
    assert {u["username"] for u in users} == {"admin", "shopper"}
    assert all("password_hash" not in u for u in users)


def test_non_admin_rejected(client, user_headers):
    assert client.get("/api/users", headers=user_headers).status_code == 403


def test_create_update_delete_user(client, admin_headers):
    r = client.post("/api/users", json={"username": "clerk", "email": "clerk@example.com",
                                        "password": "secret123", "is_admin": False}, headers=admin_headers)
    assert r.status_code == 201
    uid = r.json()["user"]["id"]

    r = client.put(f"/api/users/{uid}", json={"email": "clerk2@example.com"}, headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["user"]["email"] == "clerk2@example.com"
    assert r.json()["user"]["username"] == "clerk"

    r = client.get(f"/api/users/{uid}", headers=admin_headers)
    assert r.json()["user"]["email"] == "clerk2@example.com"

    r = client.delete(f"/api/users/{uid}", headers=admin_headers)
    assert r.status_code == 200
    assert r.json()["message"] == "User deleted successfully"
    # Deleting again should return 404
    assert client.delete(f"/api/users/{uid}", headers=admin_headers).status_code == 404


def test_update_username_collision(client, admin_headers, regular_user):
    r = client.put(f"/api/users/{regular_user.id}", json={"username": "admin"}, headers=admin_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Username already exists"


def test_sole_admin_cannot_be_deleted(client, admin_user, admin_headers):
    r = client.delete(f"/api/users/{admin_user.id}", headers=admin_headers)
    assert r.status_code == 400
    assert r.json() == {"success": False, "message": "Cannot delete the last admin user"}


def test_non_last_admin_can_be_deleted(client, db_session, admin_headers):
    other = make_user(db_session, "deputy", is_admin=True)
    r = client.delete(f"/api/users/{other.id}", headers=admin_headers)
    assert r.status_code == 200


def test_change_password_self(client, regular_user, user_headers):
    r = client.put(f"/api/users/{regular_user.id}/change-password",
                   json={"current_password": "secret123", "new_password": "fresh-pass"}, headers=user_headers)
    assert r.status_code == 200
    r = client.post("/api/auth/login", json={"username": "shopper", "password": "fresh-pass"})
    assert r.status_code == 200


def test_change_password_wrong_current(client, regular_user, user_headers):
    r = client.put(f"/api/users/{regular_user.id}/change-password",
                   json={"current_password": "wrong", "new_password": "fresh-pass"}, headers=user_headers)
    assert r.status_code == 400
    assert r.json()["message"] == "Current password is incorrect"


def test_change_password_other_user_forbidden(client, db_session, regular_user, settings):
    other = make_user(db_session, "other")
    r = client.put(f"/api/users/{regular_user.id}/change-password",
                   json={"current_password": "secret123", "new_password": "fresh-pass"},
                   headers=bearer(other, settings))
    assert r.status_code == 403
    assert r.json()["message"] == "Not authorized to change this user's password"


def test_admin_changes_other_password(client, regular_user, admin_headers):
    r = client.put(f"/api/users/{regular_user.id}/change-password",
                   json={"current_password": "secret123", "new_password": "reset-pass"}, headers=admin_headers)
    assert r.status_code == 200
