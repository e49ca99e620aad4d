# chat_schemas: 실시간 채팅 이벤트 Pydantic 모델

from typing import Any

from pydantic import BaseModel, Field

SEND_PRIVATE_MESSAGE = "send_private_message"
PRIVATE_MESSAGE_RECEIVED = "private_message_received"


# 클라이언트 -> 서버 이벤트 봉투: {"event": ..., "data": {...}}
class ClientEvent(BaseModel):
    event: str
    data: dict[str, Any] = Field(default_factory=dict)


# send_private_message 페이로드
class PrivateMessage(BaseModel):
    sender: int | None = None
    receiver: int
    text: str = Field(..., min_length=1, max_length=2000)
