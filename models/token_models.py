"""token_models: 사용자별 Refresh Token 집합 관리 모듈.

로그인 시 추가, 로그아웃 시 제거되는 사용자 토큰 집합을 refresh_token 테이블에 저장합니다.
원본 토큰 대신 SHA-256 해시만 저장합니다.
"""

import logging
from datetime import datetime, timezone

from database.connection import get_connection, transactional
from utils.jwt_utils import hash_refresh_token

logger = logging.getLogger("api")


async def add_refresh_token(
    user_id: int, raw_token: str, expires_at: datetime
) -> None:
    """사용자 토큰 집합에 Refresh Token을 추가합니다.

    Args:
        user_id: 사용자 ID.
        raw_token: 클라이언트에 전달된 원본 Refresh Token.
        expires_at: 만료 시간.
    """
    token_hash = hash_refresh_token(raw_token)
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                """
                INSERT INTO refresh_token (user_id, token_hash, expires_at)
                VALUES (%s, %s, %s)
                """,
                (user_id, token_hash, expires_at),
            )


async def has_refresh_token(user_id: int, raw_token: str) -> bool:
    """토큰이 사용자의 토큰 집합에 들어 있는지 확인합니다.

    만료된 행은 집합에 없는 것으로 취급하고 함께 삭제합니다.
    """
    token_hash = hash_refresh_token(raw_token)
    async with transactional() as cur:
        await cur.execute(
            """
            SELECT expires_at
            FROM refresh_token
            WHERE user_id = %s AND token_hash = %s
            """,
            (user_id, token_hash),
        )
        row = await cur.fetchone()
        if not row:
            return False

        expires_at = row[0]
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)

        if expires_at < datetime.now(timezone.utc):
            await cur.execute(
                "DELETE FROM refresh_token WHERE token_hash = %s",
                (token_hash,),
            )
            return False

        return True


async def remove_refresh_token(user_id: int, raw_token: str) -> bool:
    """사용자 토큰 집합에서 Refresh Token을 제거합니다 (로그아웃).

    집합에 없는 토큰을 제거하는 것은 오류가 아닙니다.

    Returns:
        실제로 삭제된 행이 있었는지 여부.
    """
    token_hash = hash_refresh_token(raw_token)
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "DELETE FROM refresh_token WHERE user_id = %s AND token_hash = %s",
                (user_id, token_hash),
            )
            return cur.rowcount > 0


async def rotate_refresh_token(
    user_id: int,
    old_raw_token: str,
    new_raw_token: str,
    new_expires_at: datetime,
) -> bool:
    """기존 Refresh Token을 삭제하고 새 토큰을 저장합니다 (원자적 토큰 회전).

    동시에 같은 토큰으로 두 번 갱신하면 한쪽만 성공합니다.

    Returns:
        회전 성공 여부. 기존 토큰이 이미 없으면 False.
    """
    old_hash = hash_refresh_token(old_raw_token)
    new_hash = hash_refresh_token(new_raw_token)
    async with transactional() as cur:
        await cur.execute(
            "DELETE FROM refresh_token WHERE user_id = %s AND token_hash = %s",
            (user_id, old_hash),
        )
        if cur.rowcount == 0:
            return False
        await cur.execute(
            """
            INSERT INTO refresh_token (user_id, token_hash, expires_at)
            VALUES (%s, %s, %s)
            """,
            (user_id, new_hash, new_expires_at),
        )
        return True


async def delete_user_refresh_tokens(user_id: int) -> int:
    """특정 사용자의 모든 Refresh Token을 삭제합니다 (토큰 재사용 감지 시).

    Returns:
        삭제된 토큰 수.
    """
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "DELETE FROM refresh_token WHERE user_id = %s",
                (user_id,),
            )
            return cur.rowcount


async def cleanup_expired_tokens() -> int:
    """만료된 Refresh Token을 일괄 삭제합니다.

    Returns:
        삭제된 토큰 수.
    """
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                "DELETE FROM refresh_token WHERE expires_at < %s",
                (datetime.now(timezone.utc),),
            )
            deleted = cur.rowcount
    logger.info("만료된 Refresh Token %d개 정리 완료", deleted)
    return deleted
