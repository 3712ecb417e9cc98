"""
Notification service: persist a notification, then push it to the recipient's room.
"""
import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..auth.exceptions import PersistenceException
from ..realtime.registry import ConnectionRegistry
from .models import Notification, NotificationType

# Set up logging
logger = logging.getLogger(__name__)

async def create_notification(
    db: Session,
    recipient_id: int,
    title: str,
    message: str,
    type: NotificationType = NotificationType.SYSTEM,
    sender_id: Optional[int] = None,
    reference_model: Optional[str] = None,
    reference_id: Optional[str] = None,
    registry: Optional[ConnectionRegistry] = None
) -> Notification:
    """
    Create a notification and emit it in realtime when a registry is given.

    The emit is fire-and-forget; an offline recipient still gets the stored row.

    Raises:
        PersistenceException: If the notification could not be stored
    """
    notification = Notification(
        recipient_id=recipient_id,
        sender_id=sender_id,
        type=type,
        title=title,
        message=message,
        reference_model=reference_model,
        reference_id=reference_id,
    )
    try:
        db.add(notification)
        db.commit()
        db.refresh(notification)
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to store notification for user {recipient_id}: {str(e)}")
        raise PersistenceException()

    if registry is not None:
        await registry.emit(recipient_id, "newNotification", notification.to_event())
    logger.info(f"Notification {notification.id} sent to {recipient_id}")
    return notification
