from auth import create_access_token, decode_token
from services import user_service
from usermodel.user_model import Role


def mk_user(username: str, email: str, role: Role = Role.USER, password: str = "Str0ng!pass"):
    return user_service.save_user(username=username, email=email, password=password, role=role)


def test_password_is_stored_hashed():
    user = mk_user("asha", "asha@x.com")

    stored = user_service.find_by_email("asha@x.com")
    assert stored.id == user.id
    assert stored.password != "Str0ng!pass"
    assert stored.password.startswith("$argon2")


def test_login_success(client):
    user = mk_user("asha", "asha@x.com", Role.GUIDE)

    resp = client.post(
        "/api/users/login", json={"email": "asha@x.com", "password": "Str0ng!pass"}
    )

    assert resp.status_code == 200
    body = resp.json()
    assert body["id"] == user.id
    assert body["username"] == "asha"
    assert body["email"] == "asha@x.com"
    assert body["role"] == "GUIDE"
    assert body["message"] == "Login successful"

    token = decode_token(body["jwt"])
    assert token.typ == "login"
    assert token.uid == user.id


def test_login_wrong_password(client):
    mk_user("asha", "asha@x.com")

    resp = client.post(
        "/api/users/login", json={"email": "asha@x.com", "password": "nope"}
    )

    assert resp.status_code == 401
    assert resp.json() == {"message": "Invalid Credentials. Try again"}


def test_login_unknown_email(client):
    resp = client.post(
        "/api/users/login", json={"email": "ghost@x.com", "password": "Str0ng!pass"}
    )
    assert resp.status_code == 401


def test_all_users_empty_is_not_found(client):
    assert client.get("/api/users/all-users").status_code == 404


def test_all_users_lists_public_details(client):
    mk_user("asha", "asha@x.com")
    mk_user("ravi", "ravi@x.com", Role.RESTAURANT)

    resp = client.get("/api/users/all-users")

    assert resp.status_code == 200
    body = resp.json()
    assert [u["email"] for u in body] == ["asha@x.com", "ravi@x.com"]
    assert all("password" not in u for u in body)


def test_find_by_email(client):
    mk_user("asha", "asha@x.com")

    resp = client.get("/api/users/find", params={"email": "asha@x.com"})
    assert resp.status_code == 200
    assert resp.json()["username"] == "asha"

    assert client.get("/api/users/find", params={"email": "ghost@x.com"}).status_code == 404


def test_users_by_role(client):
    mk_user("asha", "asha@x.com", Role.GUIDE)
    mk_user("ravi", "ravi@x.com", Role.RESTAURANT)
    mk_user("meera", "meera@x.com", Role.GUIDE)

    resp = client.get("/api/users/role/GUIDE")

    assert resp.status_code == 200
    assert [u["username"] for u in resp.json()] == ["asha", "meera"]
    assert client.get("/api/users/role/RESTAURANT").json()[0]["username"] == "ravi"
    assert client.get("/api/users/role/USER").json() == []


def test_users_by_unknown_role(client):
    assert client.get("/api/users/role/PILOT").status_code == 422


def test_me_with_login_token(client):
    user = mk_user("asha", "asha@x.com")
    token = create_access_token("asha@x.com", "login", user.id)

    resp = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})

    assert resp.status_code == 200
    assert resp.json() == {
        "id": user.id,
        "username": "asha",
        "email": "asha@x.com",
        "role": "USER",
    }


def test_me_rejects_otp_token(client):
    token = create_access_token("asha@x.com", "otp")
    resp = client.get("/api/users/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 403


def test_me_rejects_garbage_token(client):
    resp = client.get("/api/users/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert resp.status_code == 403
