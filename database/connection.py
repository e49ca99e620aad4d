"""database.connection: MySQL 데이터베이스 연결 관리 모듈.

aiomysql 비동기 연결 풀을 생성하고, 연결/트랜잭션 컨텍스트 매니저를 제공합니다.
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

import aiomysql

from core.config import settings

logger = logging.getLogger("api")

_pool: aiomysql.Pool | None = None


async def init_db() -> None:
    """연결 풀을 생성합니다. 애플리케이션 시작 시 한 번 호출됩니다."""
    global _pool
    try:
        _pool = await aiomysql.create_pool(
            host=settings.DB_HOST,
            port=settings.DB_PORT,
            user=settings.DB_USER,
            password=settings.DB_PASSWORD,
            db=settings.DB_NAME,
            charset="utf8mb4",
            autocommit=True,
            minsize=1,
            maxsize=10,
            connect_timeout=5,
        )
        logger.info(
            "MySQL 연결 풀 초기화 완료: %s:%s/%s",
            settings.DB_HOST,
            settings.DB_PORT,
            settings.DB_NAME,
        )
    except Exception:
        logger.exception("MySQL 연결 풀 초기화 실패")
        raise


async def close_db() -> None:
    """연결 풀을 닫습니다. 애플리케이션 종료 시 호출됩니다."""
    global _pool
    if _pool:
        _pool.close()
        await _pool.wait_closed()
        _pool = None
        logger.info("MySQL 연결 풀 종료")


def get_pool() -> aiomysql.Pool:
    """현재 연결 풀을 반환합니다.

    Raises:
        RuntimeError: init_db()가 호출되지 않은 경우.
    """
    if _pool is None:
        raise RuntimeError("데이터베이스 연결 풀이 초기화되지 않았습니다.")
    return _pool


@asynccontextmanager
async def get_connection() -> AsyncGenerator[aiomysql.Connection, None]:
    """풀에서 연결 하나를 빌려 컨텍스트 동안 제공합니다.

    사용 예시:
        async with get_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT id FROM user")
    """
    pool = get_pool()
    async with pool.acquire() as conn:
        yield conn


@asynccontextmanager
async def transactional() -> AsyncGenerator[aiomysql.Cursor, None]:
    """하나의 트랜잭션 범위를 커서로 제공합니다.

    블록이 정상 종료되면 커밋하고, 예외가 발생하면 롤백 후 다시 던집니다.
    """
    pool = get_pool()
    async with pool.acquire() as conn:
        try:
            await conn.begin()
            async with conn.cursor() as cur:
                yield cur
            await conn.commit()
        except Exception:
            await conn.rollback()
            raise


async def test_connection() -> bool:
    """`SELECT 1`로 데이터베이스 연결 상태를 확인합니다."""
    try:
        async with get_connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute("SELECT 1")
                await cur.fetchone()
                return True
    except Exception:
        logger.exception("데이터베이스 연결 테스트 실패")
        return False
