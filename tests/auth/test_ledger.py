"""
Tests for the refresh token ledger.
"""
from datetime import timedelta
from unittest.mock import MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from medrecords.auth.exceptions import PersistenceException
from medrecords.auth.ledger import RefreshTokenLedger
from medrecords.auth.models import RefreshToken
from medrecords.core.security import utcnow


def test_store_and_find_latest(db, make_user):
    user = make_user()
    ledger = RefreshTokenLedger(db)
    expires = utcnow() + timedelta(days=1)

    ledger.store(user.id, "hash-1", expires)
    second = ledger.store(user.id, "hash-2", expires)

    found = ledger.find_by_user(user.id)
    assert found.id == second.id
    assert found.token_hash == "hash-2"
    assert len(ledger.find_all_by_user(user.id)) == 2


def test_find_by_user_without_rows(db, make_user):
    assert RefreshTokenLedger(db).find_by_user(make_user().id) is None


def test_delete_one(db, make_user):
    user = make_user()
    ledger = RefreshTokenLedger(db)
    record = ledger.store(user.id, "hash", utcnow() + timedelta(days=1))

    ledger.delete_one(record)
    assert ledger.find_by_user(user.id) is None


def test_delete_for_user_only_touches_that_user(db, make_user):
    alice, bob = make_user(), make_user()
    ledger = RefreshTokenLedger(db)
    expires = utcnow() + timedelta(days=1)
    ledger.store(alice.id, "a1", expires)
    ledger.store(alice.id, "a2", expires)
    ledger.store(bob.id, "b1", expires)

    assert ledger.delete_for_user(alice.id) == 2
    assert ledger.find_all_by_user(alice.id) == []
    assert ledger.find_by_user(bob.id).token_hash == "b1"


def test_delete_expired_sweeps_only_past_rows(db, make_user):
    user = make_user()
    ledger = RefreshTokenLedger(db)
    ledger.store(user.id, "old", utcnow() - timedelta(minutes=1))
    ledger.store(user.id, "live", utcnow() + timedelta(days=1))

    assert ledger.delete_expired() == 1
    remaining = db.query(RefreshToken).all()
    assert [row.token_hash for row in remaining] == ["live"]


def test_storage_errors_become_persistence_errors():
    session = MagicMock()
    session.commit.side_effect = OperationalError("INSERT", {}, Exception("disk full"))
    ledger = RefreshTokenLedger(session)

    with pytest.raises(PersistenceException) as exc_info:
        ledger.store(1, "hash", utcnow())
    assert exc_info.value.status_code == 500
    session.rollback.assert_called_once()
