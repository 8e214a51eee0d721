"""WebSocket endpoint streaming a user's notification feed."""

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from peertutor.errors import TransientBackendError

logger = logging.getLogger(__name__)

router = APIRouter()


@router.websocket("/ws/notifications/{user_id}")
async def notifications_websocket(websocket: WebSocket, user_id: str):
    """Push every new in-app notification for ``user_id`` as it is created.

    Protocol:
    - Server sends: {"type": "notification", "notification": {...}}
    - Client may send: {"type": "ping"}; server answers {"type": "pong"}
    - Frames that are not JSON objects are ignored
    """
    await websocket.accept()
    notifier = websocket.app.state.notification_service

    async def forward(message: dict) -> None:
        await websocket.send_text(
            json.dumps({"type": "notification", "notification": message}, ensure_ascii=False)
        )

    try:
        subscription = await notifier.subscribe(user_id, forward)
    except TransientBackendError as e:
        logger.warning("Notification feed unavailable for %s: %s", user_id, e.message)
        await websocket.close(code=status.WS_1011_INTERNAL_ERROR, reason=e.message)
        return

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                logger.info("Ignoring non-JSON frame from %s", user_id)
                continue
            if isinstance(data, dict) and data.get("type") == "ping":
                await websocket.send_text(json.dumps({"type": "pong"}))
    except WebSocketDisconnect:
        pass
    finally:
        await subscription.cancel()
