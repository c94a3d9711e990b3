"""
Tests for authentication endpoints (signup, signin, signout, profile).

These tests verify:
  - Successful signup creates a user and returns a JWT
  - Duplicate email signup is rejected (409 Conflict)
  - Successful signin returns a working JWT
  - Wrong password is rejected (401 Unauthorized)
  - Non-existent email is rejected with the same error (anti-enumeration)
  - Short passwords and malformed emails are rejected (400)
  - Profile updates cannot modify email (security boundary)
"""

import pytest


SIGNUP = {
    "name": "Jane Doe",
    "email": "newuser@example.com",
    "password": "StrongPass99!",
}


# ---------------------------------------------------------------------------
# Signup Tests
# ---------------------------------------------------------------------------

class TestSignup:
    """Tests for POST /auth/signup."""

    async def test_signup_success(self, client):
        """A valid signup returns 201 with user_id, name, email and token."""
        response = await client.post("/auth/signup", json=SIGNUP)
        assert response.status_code == 201
        data = response.json()
        assert data["email"] == "newuser@example.com"
        assert data["name"] == "Jane Doe"
        assert data["token_type"] == "bearer"
        assert "token" in data
        assert "user_id" in data
        assert "password" not in data
        assert "hashed_password" not in data

    async def test_signup_with_phone(self, client):
        response = await client.post(
            "/auth/signup", json={**SIGNUP, "phone_number": "+1-555-123-4567"}
        )
        assert response.status_code == 201

    async def test_signup_duplicate_email(self, client):
        """Signing up with an already-registered email returns 409."""
        first = await client.post("/auth/signup", json=SIGNUP)
        assert first.status_code == 201

        response = await client.post("/auth/signup", json={**SIGNUP, "name": "Impostor"})
        assert response.status_code == 409
        assert response.json()["error_type"] == "conflict"

    async def test_signup_duplicate_email_case_insensitive(self, client):
        await client.post("/auth/signup", json=SIGNUP)
        response = await client.post(
            "/auth/signup", json={**SIGNUP, "email": "NewUser@example.com"}
        )
        assert response.status_code == 409

    async def test_signup_short_password(self, client):
        response = await client.post("/auth/signup", json={**SIGNUP, "password": "short"})
        assert response.status_code == 400
        assert response.json()["error_type"] == "validation_error"

    async def test_signup_invalid_email(self, client):
        response = await client.post("/auth/signup", json={**SIGNUP, "email": "not-an-email"})
        assert response.status_code == 400

    @pytest.mark.parametrize("missing", ["name", "email", "password"])
    async def test_signup_missing_fields(self, client, missing):
        body = dict(SIGNUP)
        del body[missing]
        response = await client.post("/auth/signup", json=body)
        assert response.status_code == 400


# ---------------------------------------------------------------------------
# Signin Tests
# ---------------------------------------------------------------------------

class TestSignin:
    """Tests for POST /auth/signin."""

    async def test_signin_success(self, client):
        await client.post("/auth/signup", json=SIGNUP)

        response = await client.post(
            "/auth/signin",
            json={"email": SIGNUP["email"], "password": SIGNUP["password"]},
        )
        assert response.status_code == 200
        data = response.json()
        assert data["token_type"] == "bearer"
        assert data["token"]

    async def test_signin_email_is_case_insensitive(self, client):
        await client.post("/auth/signup", json=SIGNUP)

        response = await client.post(
            "/auth/signin",
            json={"email": "NEWUSER@example.com", "password": SIGNUP["password"]},
        )
        assert response.status_code == 200

    async def test_signin_wrong_password(self, client):
        await client.post("/auth/signup", json=SIGNUP)

        response = await client.post(
            "/auth/signin",
            json={"email": SIGNUP["email"], "password": "WrongPass99!"},
        )
        assert response.status_code == 401
        assert response.json()["error_type"] == "invalid_credentials"

    async def test_signin_nonexistent_email(self, client):
        """Unknown emails get exactly the same response as wrong passwords."""
        await client.post("/auth/signup", json=SIGNUP)

        wrong_password = await client.post(
            "/auth/signin",
            json={"email": SIGNUP["email"], "password": "WrongPass99!"},
        )
        unknown_email = await client.post(
            "/auth/signin",
            json={"email": "nobody@example.com", "password": "WhateverPass1!"},
        )
        assert unknown_email.status_code == 401
        assert unknown_email.json() == wrong_password.json()

    async def test_signin_token_works_for_protected_endpoint(self, client):
        await client.post("/auth/signup", json=SIGNUP)
        signin = await client.post(
            "/auth/signin",
            json={"email": SIGNUP["email"], "password": SIGNUP["password"]},
        )
        token = signin.json()["token"]

        response = await client.get(
            "/auth/profile", headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 200
        assert response.json()["email"] == SIGNUP["email"]


# ---------------------------------------------------------------------------
# Token Handling
# ---------------------------------------------------------------------------

class TestTokenHandling:
    """Protected endpoints reject missing or bad tokens."""

    async def test_no_token_returns_401(self, client):
        response = await client.get("/accounts")
        assert response.status_code == 401

    async def test_invalid_token_returns_401(self, client):
        response = await client.get(
            "/accounts", headers={"Authorization": "Bearer not.a.real.token"}
        )
        assert response.status_code == 401

    async def test_malformed_auth_header_returns_401(self, client):
        response = await client.get(
            "/accounts", headers={"Authorization": "Token abc123"}
        )
        assert response.status_code == 401

    async def test_signout(self, authenticated_client):
        response = await authenticated_client.post("/auth/signout")
        assert response.status_code == 200
        assert "detail" in response.json()

    async def test_signout_requires_auth(self, client):
        response = await client.post("/auth/signout")
        assert response.status_code == 401


# ---------------------------------------------------------------------------
# Profile
# ---------------------------------------------------------------------------

class TestProfile:
    """Tests for GET/PATCH /auth/profile."""

    async def test_get_profile(self, authenticated_client):
        response = await authenticated_client.get("/auth/profile")
        assert response.status_code == 200
        data = response.json()
        assert data["email"] == "testuser@example.com"
        assert data["name"] == "Test User"
        assert "hashed_password" not in data

    async def test_cannot_change_email_via_profile_update(self, authenticated_client):
        """Email is the sign-in identifier and is silently not editable here."""
        response = await authenticated_client.patch(
            "/auth/profile", json={"email": "hijacked@example.com"}
        )
        assert response.status_code == 200
        assert response.json()["email"] == "testuser@example.com"

        profile = await authenticated_client.get("/auth/profile")
        assert profile.json()["email"] == "testuser@example.com"

    async def test_profile_update_only_changes_sent_fields(self, authenticated_client):
        response = await authenticated_client.patch(
            "/auth/profile", json={"bio": "Saving for a bike"}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["bio"] == "Saving for a bike"
        assert data["name"] == "Test User"

        response = await authenticated_client.patch(
            "/auth/profile", json={"name": "Tess User", "phone_number": "555-0100"}
        )
        data = response.json()
        assert data["name"] == "Tess User"
        assert data["phone_number"] == "555-0100"
        assert data["bio"] == "Saving for a bike"
