"""
Unit tests for password hashing and session tokens
"""
from datetime import timedelta

import pytest

from auth_utils import create_jwt, decode_jwt, hash_password, token_user_id, verify_password


def test_password_hash_roundtrip():
    hashed = hash_password("correct-horse-42")

    assert hashed != "correct-horse-42"
    assert verify_password("correct-horse-42", hashed)
    assert not verify_password("wrong-password", hashed)
    assert not verify_password("correct-horse-42", "")


def test_token_carries_user_id():
    token = create_jwt("user-123")

    assert token_user_id(token) == "user-123"
    assert decode_jwt(token)["iss"] == "gym-portal"


def test_expired_token_is_rejected():
    token = create_jwt("user-123", expires_in=timedelta(seconds=-5))
    assert decode_jwt(token) is None
    assert token_user_id(token) is None


def test_token_signed_with_another_secret_is_rejected(test_settings, monkeypatch):
    token = create_jwt("user-123")
    monkeypatch.setattr(test_settings, "jwt_secret_key", "another-secret")
    assert token_user_id(token) is None


def test_missing_secret_refuses_to_sign(test_settings, monkeypatch):
    monkeypatch.setattr(test_settings, "jwt_secret_key", None)
    with pytest.raises(ValueError):
        create_jwt("user-123")


async def test_cookie_authentication(client, test_db, store, make_user):
    user = await make_user(store)
    await test_db.commit()

    client.cookies.set("auth_token", create_jwt(user.id))
    response = await client.get("/api/auth/me")

    assert response.status_code == 200
    assert response.json()["data"]["user"]["username"] == user.username


async def test_token_of_deleted_user_is_rejected(client, test_db):
    response = await client.get("/api/auth/me", headers={"Authorization": f"Bearer {create_jwt('user-gone')}"})
    assert response.status_code == 401
    assert response.json()["ok"] is False
