from coding_jojo_app.core import config
from coding_jojo_app.users.models.user_models import UserModel

AUTH = "/api/v1/auth"


async def signup(client, email="new@example.com", **extra):
    payload = {"name": "New User", "email": email, "password": "secret-pass", **extra}
    return await client.post(f"{AUTH}/signup", json=payload)


async def test_signup_and_login(client):
    response = await signup(client)
    assert response.status_code == 201
    assert response.json()["role"] == "student"
    assert "password" not in response.json()

    stored = await UserModel.find_one(UserModel.email == "new@example.com")
    assert stored.password != "secret-pass"

    login = await client.post(f"{AUTH}/login", data={"username": "new@example.com", "password": "secret-pass"})
    assert login.status_code == 200
    tokens = login.json()

    me = await client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {tokens['access_token']}"})
    assert me.status_code == 200
    assert me.json()["email"] == "new@example.com"


async def test_duplicate_email(client):
    await signup(client)
    response = await signup(client)
    assert response.status_code == 400


async def test_wrong_password(client):
    await signup(client)
    login = await client.post(f"{AUTH}/login", data={"username": "new@example.com", "password": "nope-nope"})
    assert login.status_code == 401


async def test_public_signup_cannot_create_admins(client):
    response = await signup(client, role="admin")
    assert response.status_code == 403


async def test_admin_signup_needs_the_key(client, monkeypatch):
    monkeypatch.setattr(config, "ADMIN_SIGNUP_KEY", "let-me-in")
    payload = {"name": "Boss", "email": "boss@example.com", "password": "secret-pass"}

    denied = await client.post(f"{AUTH}/signup/admin", json=payload, headers={"X-Admin-Signup-Key": "wrong"})
    assert denied.status_code == 403

    created = await client.post(f"{AUTH}/signup/admin", json=payload, headers={"X-Admin-Signup-Key": "let-me-in"})
    assert created.status_code == 201
    assert created.json()["role"] == "admin"


async def test_refresh_token_contract(client):
    await signup(client)
    login = await client.post(f"{AUTH}/login", data={"username": "new@example.com", "password": "secret-pass"})
    tokens = login.json()

    refreshed = await client.post(f"{AUTH}/refresh", json={"refresh_token": tokens["refresh_token"]})
    assert refreshed.status_code == 200
    assert refreshed.json()["access_token"]

    # access tokens cannot be used to refresh, nor refresh tokens to authenticate
    wrong_type = await client.post(f"{AUTH}/refresh", json={"refresh_token": tokens["access_token"]})
    assert wrong_type.status_code == 401
    me = await client.get(f"{AUTH}/me", headers={"Authorization": f"Bearer {tokens['refresh_token']}"})
    assert me.status_code == 401
