"""chat_service: 실시간 개인 메시지 중계 서비스.

프로세스 안에서 연결 ID -> WebSocket 레지스트리를 유지하고, 수신자의 현재 연결 ID를
사용자 테이블에서 찾아 메시지를 전달합니다. 수신자가 접속 중이 아니면 메시지는 버려집니다.
"""

import json
import logging
import uuid

from fastapi import WebSocket, WebSocketDisconnect
from pydantic import ValidationError

from models import message_models, user_models
from schemas.chat_schemas import (
    PRIVATE_MESSAGE_RECEIVED,
    SEND_PRIVATE_MESSAGE,
    ClientEvent,
    PrivateMessage,
)

logger = logging.getLogger(__name__)


class ChatRelay:
    """실시간 연결 레지스트리와 메시지 중계.

    Attributes:
        connections: 연결 ID -> WebSocket.
    """

    def __init__(self) -> None:
        self.connections: dict[str, WebSocket] = {}

    @staticmethod
    def new_socket_id() -> str:
        return uuid.uuid4().hex

    async def connect(self, user_id: int, websocket: WebSocket) -> str:
        """연결을 레지스트리에 등록하고 사용자의 연결 ID를 기록합니다.

        사용자당 하나의 연결만 추적하므로 새 연결이 이전 연결 ID를 덮어씁니다.

        Returns:
            새 연결 ID.

        Raises:
            Exception: 연결 ID 기록에 실패한 경우. 레지스트리는 바뀌지 않습니다.
        """
        socket_id = self.new_socket_id()
        await user_models.set_socket(user_id, socket_id)
        self.connections[socket_id] = websocket
        logger.info("채팅 연결: user_id=%s socket_id=%s", user_id, socket_id)
        return socket_id

    async def disconnect(self, socket_id: str) -> int | None:
        """레지스트리에서 연결을 제거하고 사용자의 연결 정보를 지웁니다.

        Returns:
            연결이 해제된 사용자 ID. 같은 사용자가 이미 새 연결로 바꿨으면 None.
        """
        self.connections.pop(socket_id, None)
        user_id = await user_models.clear_socket(socket_id)
        logger.info("채팅 연결 종료: user_id=%s socket_id=%s", user_id, socket_id)
        return user_id

    async def send_private_message(self, message: PrivateMessage) -> bool:
        """수신자가 접속 중이면 메시지를 전달합니다.

        전달 여부와 관계없이 메시지 기록 저장을 시도하며, 저장 실패는 중계에 영향을 주지 않습니다.

        Returns:
            수신자 연결로 전송했으면 True, 수신자가 없어 버렸으면 False.
        """
        await self._save(message)

        try:
            receiver = await user_models.get_user_by_id(message.receiver)
        except Exception:
            logger.exception(
                "수신자 조회 실패로 메시지 폐기: sender=%s receiver=%s",
                message.sender,
                message.receiver,
            )
            return False

        websocket = (
            self.connections.get(receiver.socket_id)
            if receiver and receiver.socket_id
            else None
        )
        if websocket is None:
            logger.info(
                "수신자 미접속으로 메시지 폐기: sender=%s receiver=%s",
                message.sender,
                message.receiver,
            )
            return False

        try:
            await websocket.send_json(
                {
                    "event": PRIVATE_MESSAGE_RECEIVED,
                    "data": {"message": message.model_dump()},
                }
            )
        except (WebSocketDisconnect, RuntimeError) as e:
            # 수신자 연결이 방금 닫힌 경우
            logger.info("수신자 전송 실패로 메시지 폐기: receiver=%s error=%s", message.receiver, e)
            return False
        return True

    async def _save(self, message: PrivateMessage) -> None:
        try:
            await message_models.save_message(
                message.sender, message.receiver, message.text
            )
        except Exception:
            logger.exception(
                "메시지 기록 저장 실패: sender=%s receiver=%s",
                message.sender,
                message.receiver,
            )

    async def handle_frame(self, user_id: int, raw: str) -> None:
        """클라이언트가 보낸 텍스트 프레임 하나를 처리합니다.

        발신자는 연결 시 확인된 사용자 ID로 고정합니다. 형식이 잘못된 프레임과
        알 수 없는 이벤트는 로그만 남기고 무시하여 연결을 유지합니다.
        """
        try:
            event = ClientEvent.model_validate(json.loads(raw))
        except (json.JSONDecodeError, ValidationError) as e:
            logger.warning("잘못된 채팅 프레임 무시: user_id=%s error=%s", user_id, e)
            return

        if event.event != SEND_PRIVATE_MESSAGE:
            logger.warning(
                "알 수 없는 채팅 이벤트 무시: user_id=%s event=%s", user_id, event.event
            )
            return

        try:
            message = PrivateMessage.model_validate({**event.data, "sender": user_id})
        except ValidationError as e:
            logger.warning("잘못된 메시지 무시: user_id=%s error=%s", user_id, e)
            return

        await self.send_private_message(message)


chat_relay = ChatRelay()
