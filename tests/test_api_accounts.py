from tests.conftest import auth_headers


async def register(client, email="new@example.com", password="correct-horse"):
    return await client.post(
        "/api/auth/register", json={"email": email, "password": password, "name": "New User"}
    )


async def test_register_starts_on_the_free_plan(client):
    response = await register(client)
    assert response.status_code == 201
    data = response.json()["data"]
    assert data["user"]["email"] == "new@example.com"
    assert "password_hash" not in data["user"]

    headers = {"Authorization": f"Bearer {data['token']}"}
    me = await client.get("/api/user/subscription", headers=headers)
    assert me.json()["data"]["plan"]["code"] == "free"
    assert me.json()["data"]["subscription"]["active"] is True


async def test_duplicate_email_conflicts(client):
    await register(client, email="Dup@Example.com")
    again = await register(client, email="dup@example.com")
    assert again.status_code == 409


async def test_login(client):
    await register(client)

    ok = await client.post("/api/auth/login", json={"email": "new@example.com", "password": "correct-horse"})
    assert ok.status_code == 200
    token = ok.json()["data"]["token"]
    me = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert me.json()["data"]["email"] == "new@example.com"

    wrong = await client.post("/api/auth/login", json={"email": "new@example.com", "password": "wrong-horse"})
    assert wrong.status_code == 401


async def test_invalid_token_is_unauthorized(client):
    response = await client.get("/api/auth/me", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


async def test_plan_catalog_is_public(client):
    response = await client.get("/api/subscription-plans")
    plans = response.json()["data"]
    assert [plan["code"] for plan in plans] == ["free", "pro", "business"]
    assert plans[1]["dailyVideoLimit"] == 10
    assert plans[2]["resolution"] == "4K"


async def test_upgrade_and_cancel(client, make_user):
    user = await make_user(plan_code="free")
    headers = auth_headers(user)
    plans = {plan["code"]: plan for plan in (await client.get("/api/subscription-plans")).json()["data"]}

    upgraded = await client.post("/api/user/subscription/upgrade", json={"planId": plans["pro"]["id"]}, headers=headers)
    assert upgraded.status_code == 200
    assert upgraded.json()["data"]["plan"]["code"] == "pro"

    same = await client.post("/api/user/subscription/upgrade", json={"planId": plans["pro"]["id"]}, headers=headers)
    assert same.status_code == 400
    assert same.json()["error"]["code"] == "ALREADY_ON_PLAN"

    cancelled = await client.post("/api/user/subscription/cancel", headers=headers)
    assert cancelled.json()["data"]["plan"]["code"] == "free"

    again = await client.post("/api/user/subscription/cancel", headers=headers)
    assert again.status_code == 400

    me = await client.get("/api/user/subscription", headers=headers)
    assert me.json()["data"]["plan"]["code"] == "free"


async def test_upgrade_to_unknown_plan(client, make_user):
    user = await make_user()
    response = await client.post("/api/user/subscription/upgrade", json={"planId": 999}, headers=auth_headers(user))
    assert response.status_code == 404


async def test_upgraded_plan_raises_the_duration_limit(client, make_user, orchestrator):
    user = await make_user(plan_code="pro")
    response = await client.post(
        "/api/ai/create-video",
        json={
            "text": "A story about a lighthouse keeper and the sea.",
            "videoOptions": {"duration": 180, "resolution": "1080p"},
        },
        headers=auth_headers(user),
    )
    assert response.status_code == 202
