"""
Tests for password hashing and the access/refresh token codec.
"""
from datetime import timedelta

import pytest
from jose import jwt

from medrecords.auth.exceptions import ConfigurationException, InvalidTokenException, TokenExpiredException
from medrecords.auth.models import UserRole
from medrecords.config import settings
from medrecords.core.security import (
    build_access_claims,
    get_subject_id,
    hash_password,
    hash_token,
    sign_access_token,
    sign_refresh_token,
    verify_access_token,
    verify_password,
    verify_refresh_token,
    verify_token_hash,
)


def test_password_hash_round_trip():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("other", hashed)


def test_verify_password_rejects_empty_values():
    assert not verify_password("", hash_password("s3cret"))
    assert not verify_password("s3cret", None)


def test_token_hash_is_salted_and_verifiable():
    first = hash_token("a.b.c")
    second = hash_token("a.b.c")
    assert first != second
    assert verify_token_hash("a.b.c", first)
    assert not verify_token_hash("a.b.d", first)


def test_token_hash_covers_whole_token():
    """Tokens sharing a long prefix must not verify against each other."""
    prefix = "x" * 100
    hashed = hash_token(prefix + "one")
    assert not verify_token_hash(prefix + "two", hashed)


def test_verify_token_hash_with_garbage_hash():
    assert not verify_token_hash("a.b.c", "not-a-hash")


def test_access_claims_for_patient_with_doctor(make_user):
    doctor = make_user(role=UserRole.DOCTOR)
    patient = make_user(first_name="Amina", last_name="Haddad", assigned_doctor_id=doctor.id)

    claims = build_access_claims(patient)
    assert claims == {
        "sub": str(patient.id),
        "role": "patient",
        "name": "Amina Haddad",
        "assignedDoctor": str(doctor.id),
    }


def test_access_token_carries_identity(make_user):
    user = make_user(role=UserRole.DOCTOR)
    payload = verify_access_token(sign_access_token(user))

    assert get_subject_id(payload) == user.id
    assert payload["role"] == "doctor"
    assert "assignedDoctor" not in payload
    assert payload["exp"] > payload["iat"]


def test_access_token_lifetime_follows_settings(make_user):
    payload = verify_access_token(sign_access_token(make_user()))
    assert payload["exp"] - payload["iat"] == pytest.approx(settings.access_token_expire_minutes * 60, abs=2)


def test_expired_access_token(make_user):
    token = sign_access_token(make_user(), expires_delta=timedelta(seconds=-10))
    with pytest.raises(TokenExpiredException) as exc_info:
        verify_access_token(token)
    assert exc_info.value.detail == "Token expired"


def test_access_token_with_wrong_secret_is_invalid(make_user):
    user = make_user()
    forged = jwt.encode({"sub": str(user.id), "role": "admin"}, "someone-else", algorithm="HS256")
    with pytest.raises(InvalidTokenException) as exc_info:
        verify_access_token(forged)
    assert exc_info.value.detail == "Invalid token"


def test_refresh_token_is_not_an_access_token(make_user):
    raw, _ = sign_refresh_token(make_user())
    with pytest.raises(InvalidTokenException):
        verify_access_token(raw)


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c"])
def test_malformed_tokens_are_invalid(token):
    with pytest.raises(InvalidTokenException):
        verify_access_token(token)


def test_token_without_subject_is_invalid():
    token = jwt.encode({"role": "patient"}, settings.jwt_secret, algorithm=settings.algorithm)
    with pytest.raises(InvalidTokenException):
        verify_access_token(token)


def test_refresh_token_and_hash(make_user):
    user = make_user()
    raw, hashed = sign_refresh_token(user)

    assert verify_token_hash(raw, hashed)
    payload = verify_refresh_token(raw)
    assert get_subject_id(payload) == user.id
    assert payload["role"] == "patient"


def test_refresh_tokens_signed_together_differ(make_user):
    user = make_user()
    first, _ = sign_refresh_token(user)
    second, _ = sign_refresh_token(user)
    assert first != second


def test_expired_refresh_token_can_skip_expiry_check(make_user):
    user = make_user()
    raw, _ = sign_refresh_token(user, expires_delta=timedelta(seconds=-10))

    with pytest.raises(TokenExpiredException):
        verify_refresh_token(raw)
    assert get_subject_id(verify_refresh_token(raw, verify_exp=False)) == user.id


def test_non_numeric_subject_is_invalid():
    with pytest.raises(InvalidTokenException):
        get_subject_id({"sub": "abc"})


def test_signing_without_secret_fails(make_user, monkeypatch):
    monkeypatch.setattr(settings, "jwt_secret", None)
    with pytest.raises(ConfigurationException):
        sign_access_token(make_user())
