"""message_models: 1:1 채팅 메시지 기록 모듈.

중계된 메시지를 chat_message 테이블에 남기고, 두 사용자 간 대화 기록을 조회합니다.
"""

from dataclasses import dataclass
from datetime import datetime

from database.connection import get_connection


@dataclass(frozen=True)
class ChatMessage:
    """채팅 메시지 데이터 클래스."""

    id: int
    sender: int
    receiver: int
    text: str
    created_at: datetime | None = None


async def save_message(sender: int, receiver: int, text: str) -> int:
    """메시지를 기록하고 생성된 ID를 반환합니다."""
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO chat_message (sender_id, receiver_id, text)
                VALUES (%s, %s, %s)
                """,
                (sender, receiver, text),
            )
            return cur.lastrowid


async def get_conversation(
    user_id: int, other_user_id: int, limit: int = 200
) -> list[ChatMessage]:
    """두 사용자 간의 메시지를 기록된 순서대로 조회합니다.

    Args:
        user_id: 요청한 사용자 ID.
        other_user_id: 대화 상대 ID.
        limit: 최근 메시지 최대 개수.

    Returns:
        오래된 메시지부터 정렬된 목록.
    """
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                SELECT id, sender_id, receiver_id, text, created_at
                FROM chat_message
                WHERE (sender_id = %s AND receiver_id = %s)
                   OR (sender_id = %s AND receiver_id = %s)
                ORDER BY id DESC
                LIMIT %s
                """,
                (user_id, other_user_id, other_user_id, user_id, limit),
            )
            rows = await cur.fetchall()

    return [
        ChatMessage(
            id=row[0],
            sender=row[1],
            receiver=row[2],
            text=row[3],
            created_at=row[4],
        )
        for row in reversed(rows)
    ]
