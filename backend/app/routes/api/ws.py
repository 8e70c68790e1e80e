"""WebSocket push channel.

握手协议:
    client -> {"event": "authenticate", "userId": "..."}
    server -> {"event": "authenticated", "userId": "..."}
    client -> {"event": "ping"}            server -> {"event": "pong"}

连接只能绑定到握手 Cookie 中的会话用户: 没有会话时拒绝，
userId 与会话用户不一致时拒绝（userId 可省略）。
"""

import json

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from app.core.deps import SESSION_USER_KEY, get_connection_manager
from domains.core.logging import get_logger

logger = get_logger(__name__)

router = APIRouter()


async def _send_error(websocket: WebSocket, message: str) -> None:
    await websocket.send_json({"event": "error", "error": message})


@router.websocket("/ws")
async def push_channel(websocket: WebSocket):
    """推送通道，每个已绑定用户的连接接收该用户全部视图推送"""
    await websocket.accept()

    manager = get_connection_manager()
    session_user = websocket.session.get(SESSION_USER_KEY) if "session" in websocket.scope else None
    bound_user = None

    try:
        while True:
            raw = await websocket.receive_text()
            try:
                message = json.loads(raw)
            except ValueError:
                await _send_error(websocket, "Invalid JSON")
                continue

            event = message.get("event") if isinstance(message, dict) else None

            if event == "authenticate":
                if not session_user:
                    logger.warning("push_auth_rejected", reason="no_session", requested=message.get("userId"))
                    await _send_error(websocket, "Authentication required")
                    continue

                requested = message.get("userId")
                if requested and requested != session_user:
                    logger.warning("push_auth_rejected", session_user=session_user, requested=requested)
                    await _send_error(websocket, "User does not match session")
                    continue

                manager.bind(session_user, websocket)
                bound_user = session_user
                await websocket.send_json({"event": "authenticated", "userId": session_user})

            elif event == "ping":
                await websocket.send_json({"event": "pong"})

            else:
                await _send_error(websocket, f"Unknown event: {event}")

    except WebSocketDisconnect:
        logger.debug("push_connection_closed", user_id=bound_user)
    finally:
        if bound_user:
            manager.unbind(bound_user, websocket)
