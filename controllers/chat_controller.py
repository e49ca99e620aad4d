"""chat_controller: 채팅 기록 조회 컨트롤러 모듈."""

from fastapi import Request

from dependencies.request_context import get_request_timestamp
from models import message_models
from models.user_models import User
from schemas.common import create_response, serialize_message
from services.user_service import UserService


async def get_conversation(
    other_user_id: int, current_user: User, request: Request
) -> dict:
    """현재 사용자와 상대방 사이의 메시지 기록을 오래된 순서로 반환합니다.

    중계 시 저장에 실패한 메시지는 기록에 없을 수 있습니다.

    Raises:
        HTTPException 404: 상대 사용자가 없는 경우.
    """
    timestamp = get_request_timestamp(request)

    await UserService.get_user_by_id(other_user_id, timestamp)
    messages = await message_models.get_conversation(current_user.id, other_user_id)

    return create_response(
        "MESSAGES_RETRIEVED",
        "메시지 기록 조회에 성공했습니다.",
        data={"messages": [serialize_message(message) for message in messages]},
        timestamp=timestamp,
    )
