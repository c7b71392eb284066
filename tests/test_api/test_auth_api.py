# tests/test_api/test_auth_api.py
from helpers import auth, book_payload


def test_login_creates_identity(client):
    before = client.post("/api/auth/validate", headers=auth("dave-token"))
    assert before.json() == {"authenticated": False, "user": None}

    login = client.post("/api/auth/login", json={"idToken": "dave-token"})
    assert login.status_code == 200
    body = login.json()
    assert body["token"] == "dave-token"
    assert body["user"]["id"] == "dave"
    assert body["user"]["preferences"]["sortingStyle"] == "alphabetical"

    after = client.post("/api/auth/validate", headers=auth("dave-token"))
    assert after.json() == {
        "authenticated": True,
        "user": {"id": "dave", "email": "dave@example.com", "name": "Dave"},
    }


def test_login_with_bad_token(client):
    response = client.post("/api/auth/login", json={"idToken": "forged-token"})
    assert response.status_code == 401
    assert response.json()["error"] == "Authentication required"

    assert client.post("/api/auth/login", json={}).status_code == 422


def test_logout(client):
    assert client.post("/api/auth/logout").status_code == 204


def test_profile(client, users):
    assert client.get("/api/auth/profile").status_code == 401

    profile = client.get("/api/auth/profile", headers=auth("alice-token"))
    assert profile.status_code == 200
    assert profile.json()["email"] == "alice@example.com"

    updated = client.put(
        "/api/auth/profile",
        json={"name": "Alice Liddell", "preferences": {"theme": "dark"}},
        headers=auth("alice-token"),
    )
    assert updated.status_code == 200
    assert updated.json()["name"] == "Alice Liddell"
    assert updated.json()["preferences"]["theme"] == "dark"
    assert updated.json()["preferences"]["booksPerPage"] == 20


def test_delete_account_removes_owned_books(client, users):
    client.post("/api/records", json=book_payload("9780132350884"), headers=auth("bob-token"))
    client.post("/api/records/9780132350884/share", json={"identities": ["alice"]}, headers=auth("bob-token"))
    assert client.get("/api/records/9780132350884", headers=auth("alice-token")).status_code == 200

    assert client.delete("/api/auth/profile", headers=auth("bob-token")).status_code == 204

    assert client.get("/api/auth/profile", headers=auth("bob-token")).status_code == 401
    assert client.get("/api/records/9780132350884", headers=auth("alice-token")).status_code == 404
