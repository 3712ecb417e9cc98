"""
Tests for refresh token revocation.
"""
from datetime import timedelta

from medrecords.auth.ledger import RefreshTokenLedger
from medrecords.auth.models import RefreshToken
from medrecords.core.security import sign_refresh_token, utcnow

REVOKE_URL = "/api/v1/auth/revoke"
REFRESH_URL = "/api/v1/auth/refresh"


def test_revoke_then_refresh_fails(client, db, make_user, login, auth_headers):
    user = make_user()
    tokens = login(user.email)

    response = client.post(
        REVOKE_URL, json={"token": tokens["refreshToken"]}, headers=auth_headers(tokens["accessToken"])
    )
    assert response.status_code == 200, response.text
    assert response.json() == {"message": "Token revoked successfully"}
    assert db.query(RefreshToken).filter(RefreshToken.user_id == user.id).count() == 0

    refresh = client.post(REFRESH_URL, json={"token": tokens["refreshToken"]})
    assert refresh.status_code == 403


def test_revoke_is_idempotent(client, make_user, login, auth_headers):
    tokens = login(make_user().email)
    headers = auth_headers(tokens["accessToken"])
    body = {"token": tokens["refreshToken"]}

    assert client.post(REVOKE_URL, json=body, headers=headers).status_code == 200
    again = client.post(REVOKE_URL, json=body, headers=headers)
    assert again.status_code == 200
    assert again.json()["message"] == "Token revoked successfully"


def test_revoke_accepts_expired_refresh_token(client, db, make_user, auth_headers):
    user = make_user()
    raw, hashed = sign_refresh_token(user, expires_delta=timedelta(seconds=-10))
    RefreshTokenLedger(db).store(user.id, hashed, utcnow() - timedelta(seconds=10))

    response = client.post(REVOKE_URL, json={"token": raw}, headers=auth_headers(user))
    assert response.status_code == 200
    assert db.query(RefreshToken).count() == 0


def test_revoke_requires_access_token(client, make_user, login):
    tokens = login(make_user().email)
    response = client.post(REVOKE_URL, json={"token": tokens["refreshToken"]})
    assert response.status_code == 401
    assert response.json()["message"] == "No token provided"


def test_revoke_requires_refresh_token(client, make_user, auth_headers):
    response = client.post(REVOKE_URL, json={}, headers=auth_headers(make_user()))
    assert response.status_code == 400
    assert response.json()["message"] == "Refresh token is required"


def test_revoke_rejects_garbage_token(client, make_user, auth_headers):
    response = client.post(REVOKE_URL, json={"token": "junk"}, headers=auth_headers(make_user()))
    assert response.status_code == 403
    assert response.json()["message"] == "Invalid refresh token signature or format"


def test_revoke_someone_elses_token(client, db, make_user, login, auth_headers):
    victim = make_user()
    attacker = make_user()
    victim_tokens = login(victim.email)

    response = client.post(
        REVOKE_URL, json={"token": victim_tokens["refreshToken"]}, headers=auth_headers(attacker)
    )
    assert response.status_code == 403
    assert response.json()["message"] == "Token does not belong to the authenticated user"
    assert RefreshTokenLedger(db).find_by_user(victim.id) is not None


def test_revoke_leaves_other_rows(client, db, make_user, auth_headers):
    user = make_user()
    ledger = RefreshTokenLedger(db)
    kept_raw, kept_hash = sign_refresh_token(user)
    revoked_raw, revoked_hash = sign_refresh_token(user)
    expires = utcnow() + timedelta(days=1)
    ledger.store(user.id, kept_hash, expires)
    ledger.store(user.id, revoked_hash, expires)

    response = client.post(REVOKE_URL, json={"token": revoked_raw}, headers=auth_headers(user))
    assert response.status_code == 200
    rows = ledger.find_all_by_user(user.id)
    assert [row.token_hash for row in rows] == [kept_hash]
