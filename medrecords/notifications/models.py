"""
Notification Model - Stores notifications delivered to users.
"""
from sqlalchemy import Column, Integer, String, Boolean, DateTime, Enum, ForeignKey
from sqlalchemy.sql import func
import enum
from ..database import Base

class NotificationType(str, enum.Enum):
    """
    Kinds of notification.

    - MESSAGE: Chat messages
    - LAB_RESULT: A new analysis result is ready
    - APPOINTMENT: An appointment was scheduled or changed
    - SYSTEM: System-wide notice
    - ALERT: Urgent medical alert
    """
    MESSAGE = "message"
    LAB_RESULT = "lab_result"
    APPOINTMENT = "appointment"
    SYSTEM = "system"
    ALERT = "alert"

class Notification(Base):
    """
    Notification Model

    Fields:
    - id: Primary key
    - recipient_id: User the notification is for
    - sender_id: User who triggered it (optional)
    - type: Notification kind
    - title / message: Display text
    - reference_model / reference_id: Related object, e.g. ("Analysis", 12)
    - read: Whether the recipient has seen it
    - created_at / updated_at: Row timestamps
    """
    __tablename__ = "notifications"

    id = Column(Integer, primary_key=True, index=True)
    recipient_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    type = Column(Enum(NotificationType), nullable=False, default=NotificationType.SYSTEM)
    title = Column(String, nullable=False)
    message = Column(String, nullable=False)
    reference_model = Column(String, nullable=True)
    reference_id = Column(String, nullable=True)
    read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    def to_event(self) -> dict:
        """Payload pushed with the newNotification event."""
        return {
            "id": self.id,
            "type": self.type.value if self.type else None,
            "title": self.title,
            "message": self.message,
            "sender": self.sender_id,
            "referenceModel": self.reference_model,
            "referenceId": self.reference_id,
            "read": self.read,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
        }

    def __repr__(self):
        return f"<Notification(id={self.id}, recipient_id={self.recipient_id}, type='{self.type}')>"
