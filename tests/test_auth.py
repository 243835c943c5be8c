"""
Auth tests.

Verifies:
1. Registration and password login with real bcrypt hashes
2. HttpOnly cookie issuance and token refresh
3. The manager-only user directory
"""

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_tracker.core.security import (create_refresh_token,
                                              decode_access_token,
                                              get_password_hash)
from attendance_tracker.models.user import User

API = "/api/v1/auth"


async def _create_login_user(db_session: AsyncSession, email="cookie@test.com", password="password123"):
    user = User(
        name="Cookie Tester",
        email=email,
        hashed_password=get_password_hash(password),
        employee_id="EMP900",
        role="employee",
        is_active=True,
    )
    db_session.add(user)
    await db_session.commit()
    await db_session.refresh(user)
    return user


@pytest.mark.asyncio
async def test_register(async_client: AsyncClient):
    resp = await async_client.post(
        f"{API}/register",
        json={
            "name": "Jane Smith",
            "email": "  Jane@Example.com ",
            "password": "secret123",
            "employee_id": "EMP002",
            "department": "Marketing",
        },
    )
    assert resp.status_code == 201
    data = resp.json()
    assert data["email"] == "jane@example.com"
    assert data["role"] == "employee"
    assert data["is_active"] is True
    assert "hashed_password" not in data


@pytest.mark.asyncio
async def test_register_duplicate_email(async_client: AsyncClient, employee):
    resp = await async_client.post(
        f"{API}/register",
        json={"name": "Copy", "email": employee.email, "password": "secret123"},
    )
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Email or employee ID already registered"


@pytest.mark.asyncio
async def test_register_cannot_create_manager(async_client: AsyncClient, manager_headers):
    body = {"name": "Eve", "email": "eve@example.com", "password": "secret123", "role": "manager"}
    resp = await async_client.post(f"{API}/register", json=body)
    assert resp.status_code == 403
    assert resp.json()["detail"] == "Only managers can create manager accounts"

    # Nothing was stored, so the address is still free
    users = (await async_client.get(f"{API}/users", headers=manager_headers)).json()
    assert "eve@example.com" not in [u["email"] for u in users]


@pytest.mark.asyncio
async def test_self_registered_employee_cannot_read_team(async_client: AsyncClient):
    body = {"name": "Mallory", "email": "mallory@example.com", "password": "secret123"}
    assert (await async_client.post(f"{API}/register", json=body)).status_code == 201

    login = await async_client.post(
        f"{API}/login", data={"username": body["email"], "password": body["password"]}
    )
    headers = {"Authorization": f"Bearer {login.json()['access_token']}"}
    resp = await async_client.get("/api/v1/attendance/all", headers=headers)
    assert resp.status_code == 403


@pytest.mark.asyncio
async def test_manager_creates_manager_account(async_client: AsyncClient, manager_headers, employee_headers):
    body = {"name": "Second Boss", "email": "boss2@example.com", "password": "secret123", "role": "manager"}

    resp = await async_client.post(f"{API}/users", json=body, headers=employee_headers)
    assert resp.status_code == 403

    resp = await async_client.post(f"{API}/users", json=body, headers=manager_headers)
    assert resp.status_code == 201
    assert resp.json()["role"] == "manager"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "override",
    [
        {"email": "not-an-email"},
        {"password": "123"},
        {"password": "x" * 73},
        {"role": "admin"},
        {"name": "   "},
    ],
)
async def test_register_validation(async_client: AsyncClient, override):
    body = {"name": "Valid", "email": "valid@example.com", "password": "secret123"}
    body.update(override)
    resp = await async_client.post(f"{API}/register", json=body)
    assert resp.status_code == 422


@pytest.mark.asyncio
async def test_login_sets_httponly_cookies(async_client: AsyncClient, db_session: AsyncSession):
    user = await _create_login_user(db_session)

    response = await async_client.post(
        f"{API}/login", data={"username": "Cookie@Test.com", "password": "password123"}
    )
    assert response.status_code == 200

    data = response.json()
    assert data["token_type"] == "bearer"
    payload = decode_access_token(data["access_token"])
    assert payload["sub"] == str(user.id)
    assert payload["role"] == "employee"

    assert "access_token" in response.cookies
    assert "refresh_token" in response.cookies
    set_cookie = response.headers.get("set-cookie")
    assert "HttpOnly" in set_cookie
    assert "SameSite=lax" in set_cookie


@pytest.mark.asyncio
async def test_login_wrong_password(async_client: AsyncClient, db_session: AsyncSession):
    await _create_login_user(db_session)
    resp = await async_client.post(
        f"{API}/login", data={"username": "cookie@test.com", "password": "wrong-password"}
    )
    assert resp.status_code == 401
    assert resp.json()["detail"] == "Incorrect email or password"


@pytest.mark.asyncio
async def test_me_with_bearer_token(async_client: AsyncClient, employee, employee_headers):
    resp = await async_client.get(f"{API}/me", headers=employee_headers)
    assert resp.status_code == 200
    assert resp.json()["id"] == employee.id
    assert resp.json()["name"] == "John Doe"


@pytest.mark.asyncio
async def test_refresh_with_body(async_client: AsyncClient, employee):
    resp = await async_client.post(
        f"{API}/refresh", json={"refresh_token": create_refresh_token(employee.id)}
    )
    assert resp.status_code == 200
    payload = decode_access_token(resp.json()["access_token"])
    assert payload["sub"] == str(employee.id)


@pytest.mark.asyncio
async def test_refresh_rejects_access_token(async_client: AsyncClient, employee_headers):
    access = employee_headers["Authorization"].removeprefix("Bearer ")
    resp = await async_client.post(f"{API}/refresh", json={"refresh_token": access})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_refresh_token_is_not_an_access_token(async_client: AsyncClient, employee):
    token = create_refresh_token(employee.id)
    resp = await async_client.get(f"{API}/me", headers={"Authorization": f"Bearer {token}"})
    assert resp.status_code == 401


@pytest.mark.asyncio
async def test_logout_clears_cookies(async_client: AsyncClient):
    resp = await async_client.post(f"{API}/logout")
    assert resp.status_code == 200
    set_cookie = resp.headers.get("set-cookie")
    assert "access_token" in set_cookie
    assert "refresh_token" in set_cookie


@pytest.mark.asyncio
async def test_users_directory_manager_only(
    async_client: AsyncClient, employee, manager, manager_headers, employee_headers, make_user
):
    await make_user(name="Gone", is_active=False)

    assert (await async_client.get(f"{API}/users", headers=employee_headers)).status_code == 403

    data = (await async_client.get(f"{API}/users", headers=manager_headers)).json()
    assert [u["name"] for u in data] == ["Admin Manager", "John Doe"]

    resp = await async_client.get(f"{API}/users", params={"role": "manager"}, headers=manager_headers)
    assert [u["id"] for u in resp.json()] == [manager.id]
