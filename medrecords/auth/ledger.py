"""
Refresh token ledger - durable, hashed bookkeeping of issued refresh tokens.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.security import utcnow
from .exceptions import PersistenceException
from .models import RefreshToken

# Set up logging
logger = logging.getLogger(__name__)

class RefreshTokenLedger:
    """
    Storage for refresh token hashes.

    Only the session manager mutates the ledger. Storage errors roll the
    session back and surface as PersistenceException.
    """

    def __init__(self, db: Session):
        self.db = db

    def _fail(self, action: str, exc: SQLAlchemyError):
        self.db.rollback()
        logger.error(f"Refresh token ledger failed to {action}: {str(exc)}")
        raise PersistenceException() from exc

    def store(self, user_id: int, hashed_token: str, expires_at: datetime) -> RefreshToken:
        """Insert a new ledger row for an issued refresh token."""
        record = RefreshToken(token_hash=hashed_token, user_id=user_id, expires_at=expires_at)
        try:
            self.db.add(record)
            self.db.commit()
            self.db.refresh(record)
        except SQLAlchemyError as e:
            self._fail("store token", e)
        return record

    def find_by_user(self, user_id: int) -> Optional[RefreshToken]:
        """Most recently issued row for the user, if any."""
        try:
            return (
                self.db.query(RefreshToken)
                .filter(RefreshToken.user_id == user_id)
                .order_by(RefreshToken.id.desc())
                .first()
            )
        except SQLAlchemyError as e:
            self._fail("look up token", e)

    def find_all_by_user(self, user_id: int) -> List[RefreshToken]:
        try:
            return self.db.query(RefreshToken).filter(RefreshToken.user_id == user_id).all()
        except SQLAlchemyError as e:
            self._fail("list tokens", e)

    def delete_one(self, record: RefreshToken) -> None:
        try:
            self.db.delete(record)
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("delete token", e)

    def delete_for_user(self, user_id: int) -> int:
        """Remove every row owned by the user. Returns the number removed."""
        try:
            deleted = (
                self.db.query(RefreshToken)
                .filter(RefreshToken.user_id == user_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("clear user tokens", e)
        return deleted

    def delete_expired(self, now: Optional[datetime] = None) -> int:
        """
        Sweep rows whose expiry has passed. Returns the number removed.

        Cleanup only: the refresh flow checks each row's expiry itself.
        """
        cutoff = now or utcnow()
        try:
            deleted = (
                self.db.query(RefreshToken)
                .filter(RefreshToken.expires_at < cutoff)
                .delete(synchronize_session=False)
            )
            self.db.commit()
        except SQLAlchemyError as e:
            self._fail("sweep expired tokens", e)
        if deleted:
            logger.info(f"Swept {deleted} expired refresh token(s)")
        return deleted
