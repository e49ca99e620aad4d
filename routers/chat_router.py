"""chat_router: 실시간 채팅 라우터 모듈.

WebSocket 연결(/ws?userId=<id>)과 메시지 기록 조회 엔드포인트를 제공합니다.
"""

import logging

from fastapi import APIRouter, Depends, Request, WebSocket, status

from controllers import chat_controller
from dependencies.auth import get_current_user
from models import user_models
from models.user_models import User
from services.chat_service import chat_relay

logger = logging.getLogger(__name__)

chat_router = APIRouter(tags=["chat"])


async def _handshake_user(user_id: str | None) -> User | None:
    """연결 요청의 userId 쿼리 값으로 사용자를 찾습니다."""
    if not user_id:
        return None
    try:
        return await user_models.get_user_by_id(int(user_id))
    except ValueError:
        return None


@chat_router.websocket("/ws")
async def chat_socket(websocket: WebSocket) -> None:
    """개인 메시지 중계용 WebSocket 연결을 처리합니다.

    userId가 없거나 없는 사용자면 연결을 수락하지 않고 1008로 닫습니다.
    연결은 수락 전에 레지스트리에 등록되므로, 클라이언트가 연결된 시점에는
    이미 메시지를 받을 수 있습니다.
    """
    raw_user_id = websocket.query_params.get("userId")
    user = await _handshake_user(raw_user_id)
    if not user:
        logger.warning("채팅 연결 거부: userId=%s", raw_user_id)
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    socket_id = await chat_relay.connect(user.id, websocket)
    try:
        await websocket.accept()
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                break
            raw = message.get("text")
            if raw is None:
                logger.warning("바이너리 채팅 프레임 무시: user_id=%s", user.id)
                continue
            await chat_relay.handle_frame(user.id, raw)
    finally:
        await chat_relay.disconnect(socket_id)


@chat_router.get("/chat/messages/{other_user_id}", status_code=status.HTTP_200_OK)
async def get_conversation(
    other_user_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
) -> dict:
    """현재 사용자와 상대방 사이의 메시지 기록을 조회합니다.

    Args:
        other_user_id: 상대 사용자 ID.
        request: FastAPI Request 객체.
        current_user: 현재 인증된 사용자.

    Returns:
        메시지 목록이 포함된 응답.
    """
    return await chat_controller.get_conversation(other_user_id, current_user, request)
