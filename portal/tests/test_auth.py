"""
portal/tests/test_auth.py
Login, token-protected endpoints and the password flows
"""
from sqlalchemy import select

from portal.orm import User
from portal.security import create_reset_token, verify_password
from portal.tests.conftest import bearer, login


class TestLogin:

    async def test_login_returns_user_and_token(self, client):
        response = await client.post("/api/auth/login", json={
            "username": "stud1", "password": "stud1", "role": "Student",
        })
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["token_type"] == "bearer"
        assert body["user"]["user_id"] == "stud1"
        assert body["user"]["department_name"] == "Computer Science"
        assert "password_hash" not in body["user"]

    async def test_seeded_passwords_match_usernames(self, db):
        users = (await db.execute(select(User))).scalars().all()
        assert len(users) == 7
        assert all(verify_password(u.username, u.password_hash) for u in users)

    async def test_wrong_password(self, client):
        response = await client.post("/api/auth/login", json={
            "username": "stud1", "password": "nope", "role": "Student",
        })
        assert response.status_code == 401
        body = response.json()
        assert body["code"] == "INVALID_CREDENTIALS"
        assert body["message"] == "Invalid username, password, or role."

    async def test_role_must_match(self, client):
        response = await client.post("/api/auth/login", json={
            "username": "teacher-1", "password": "teacher-1", "role": "Student",
        })
        assert response.status_code == 401

    async def test_inactive_account(self, client):
        response = await client.post("/api/auth/login", json={
            "username": "stud3", "password": "stud3", "role": "Student",
        })
        assert response.status_code == 403
        assert response.json()["code"] == "ACCOUNT_INACTIVE"

    async def test_login_is_audited(self, client):
        await login(client, "staff1", "Staff Head")
        logs = (await client.get("/api/audit-logs", params={"action_type": "USER_LOGIN"})).json()
        assert logs[0]["username"] == "staff1"


class TestCurrentUser:

    async def test_me_requires_token(self, client):
        response = await client.get("/api/auth/me")
        assert response.status_code == 401
        assert response.json()["success"] is False

    async def test_me_with_token(self, client):
        token = await login(client, "teacher-2", "Teacher")
        response = await client.get("/api/auth/me", headers=bearer(token))
        assert response.status_code == 200
        assert response.json()["first_name"] == "Solomon"

    async def test_garbage_token(self, client):
        response = await client.get("/api/auth/me", headers=bearer("not-a-jwt"))
        assert response.status_code == 401
        assert response.json()["code"] == "AUTH_INVALID"


class TestPasswords:

    async def test_change_password(self, client):
        response = await client.post("/api/auth/change-password", json={
            "user_id": "stud1", "current_password": "stud1", "new_password": "better-pass",
        })
        assert response.status_code == 200
        assert response.json()["message"] == "Password changed successfully."
        await login(client, "stud1", "Student", password="better-pass")

    async def test_change_password_wrong_current(self, client):
        response = await client.post("/api/auth/change-password", json={
            "user_id": "stud1", "current_password": "wrong", "new_password": "better-pass",
        })
        assert response.status_code == 403
        assert response.json()["message"] == "Incorrect current password."

    async def test_short_new_password(self, client):
        response = await client.post("/api/auth/change-password", json={
            "user_id": "stud1", "current_password": "stud1", "new_password": "abc",
        })
        assert response.status_code == 422

    async def test_forgot_password_does_not_leak(self, client):
        known = await client.post("/api/auth/forgot-password", json={"email": "s1@cotbe.edu"})
        unknown = await client.post("/api/auth/forgot-password", json={"email": "ghost@cotbe.edu"})
        assert known.status_code == unknown.status_code == 200
        assert known.json() == unknown.json()

    async def test_reset_password_with_token(self, client, db):
        user = (await db.execute(select(User).where(User.user_id == "stud2"))).scalar_one()
        token = create_reset_token(user)

        response = await client.post("/api/auth/reset-password", json={
            "token": token, "new_password": "fresh-pass",
        })
        assert response.status_code == 200
        await login(client, "stud2", "Student", password="fresh-pass")

        reused = await client.post("/api/auth/reset-password", json={
            "token": token, "new_password": "another-pass",
        })
        assert reused.status_code == 400
        assert reused.json()["code"] == "INVALID_RESET_TOKEN"

    async def test_reset_password_bad_token(self, client):
        response = await client.post("/api/auth/reset-password", json={
            "token": "stud2", "new_password": "fresh-pass",
        })
        assert response.status_code == 400
