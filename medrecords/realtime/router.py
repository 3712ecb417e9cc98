"""
Realtime websocket endpoint.

Frames are JSON objects of the form {"event": <name>, "data": <payload>}.
A socket must send `authenticate` with an access token before anything else;
it then joins the room of the token's user.
"""
import json
import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect
from sqlalchemy.orm import Session, sessionmaker

from ..auth.dependencies import decode_access_claims, ensure_role
from ..auth.exceptions import AuthException
from ..auth.models import User, UserRole
from ..auth.schemas import AccessTokenClaims
from ..database import get_session_factory
from ..exceptions import AppException
from ..notifications.models import NotificationType
from ..notifications.service import create_notification
from .registry import ConnectionRegistry, get_connection_registry

# Set up logging
logger = logging.getLogger(__name__)

router = APIRouter(tags=["Realtime"])

# Close code sent when socket authentication fails
WS_UNAUTHORIZED = 4401

# Roles allowed to announce analysis results
ANALYSIS_PUBLISHERS = {UserRole.DOCTOR, UserRole.LAB_TECHNICIAN, UserRole.ADMIN}

async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"event": "error", "data": {"message": message}})

async def _push_analysis_update(registry: ConnectionRegistry, claims: AccessTokenClaims, data: Dict[str, Any]) -> Optional[str]:
    ensure_role(claims, ANALYSIS_PUBLISHERS)
    analysis_id = data.get("analysisId")
    if not analysis_id:
        return "analysisId is required"

    update = {"analysisId": analysis_id, "status": "ready"}
    rooms = {str(data[key]) for key in ("patientId", "doctorId") if data.get(key)}
    for room in rooms:
        await registry.emit(room, "analysisUpdate", update)
    logger.info(
        f"Analysis {analysis_id} update pushed to patient {data.get('patientId')} and doctor {data.get('doctorId')}"
    )
    return None

async def _send_notification(
    db: Session, registry: ConnectionRegistry, claims: AccessTokenClaims, data: Dict[str, Any]
) -> Optional[str]:
    try:
        recipient_id = int(data.get("recipientId"))
    except (TypeError, ValueError):
        return "recipientId is required"
    if not data.get("title") or not data.get("message"):
        return "title and message are required"
    try:
        notification_type = NotificationType(data.get("type") or NotificationType.SYSTEM.value)
    except ValueError:
        return "Invalid notification type"
    if not db.query(User).filter(User.id == recipient_id).first():
        return "Recipient not found"

    await create_notification(
        db,
        recipient_id=recipient_id,
        title=data["title"],
        message=data["message"],
        type=notification_type,
        sender_id=claims.user_id,
        registry=registry,
    )
    return None

@router.websocket("/ws")
async def realtime_socket(
    websocket: WebSocket,
    registry: ConnectionRegistry = Depends(get_connection_registry),
    session_factory: sessionmaker = Depends(get_session_factory)
):
    """
    Realtime channel.

    Events accepted:
    - authenticate {token}: join the room of the access token's user
    - newAnalysisResult {analysisId, patientId, doctorId}: push analysisUpdate to both rooms
    - sendNotification {recipientId, title, message, type?}: store and push newNotification
    """
    await websocket.accept()
    claims: Optional[AccessTokenClaims] = None
    logger.info("Socket connected")
    try:
        while True:
            raw = await websocket.receive_text()
            try:
                frame = json.loads(raw)
            except ValueError:
                await _send_error(websocket, "Frames must be JSON")
                continue
            if not isinstance(frame, dict):
                await _send_error(websocket, "Frames must be JSON objects")
                continue

            event = frame.get("event")
            data = frame.get("data") if isinstance(frame.get("data"), dict) else {}

            if event == "authenticate":
                try:
                    claims = decode_access_claims(data.get("token"))
                except AuthException as e:
                    logger.warning(f"Socket authentication failed: {e.detail}")
                    await _send_error(websocket, e.detail)
                    await websocket.close(code=WS_UNAUTHORIZED)
                    return
                registry.add(claims.user_id, websocket)
                await websocket.send_json({"event": "authenticated", "data": {"userId": str(claims.user_id)}})
                logger.info(f"User {claims.user_id} authenticated on socket")
                continue

            if claims is None:
                await _send_error(websocket, "Not authenticated")
                continue

            try:
                if event == "newAnalysisResult":
                    problem = await _push_analysis_update(registry, claims, data)
                elif event == "sendNotification":
                    # Short-lived session; no connection is held while waiting for frames
                    with session_factory() as db:
                        problem = await _send_notification(db, registry, claims, data)
                else:
                    problem = f"Unknown event: {event}"
            except AppException as e:
                problem = e.detail

            if problem:
                await _send_error(websocket, problem)
    except WebSocketDisconnect:
        logger.info(f"Socket disconnected (user {claims.user_id if claims else 'anonymous'})")
    finally:
        registry.remove(websocket)
