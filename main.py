"""main: FastAPI 애플리케이션의 메인 진입점.

애플리케이션 설정, 미들웨어 구성, 라우터 등록, 정적 업로드 경로, 전역 예외 핸들러를 설정합니다.
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from pymysql.err import IntegrityError
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from core.config import settings
from database.connection import close_db, init_db, test_connection
from middleware import LoggingMiddleware, RateLimitMiddleware, TimingMiddleware
from middleware.exception_handler import (
    global_exception_handler,
    integrity_error_handler,
    request_validation_exception_handler,
)
from models.token_models import cleanup_expired_tokens
from models.user_models import reset_all_sockets
from routers import auth_router, chat_router, post_router, user_router


_TOKEN_CLEANUP_INTERVAL_HOURS = 1

logger = logging.getLogger("api")


async def _periodic_token_cleanup() -> None:
    """만료된 Refresh Token을 주기적으로 정리하는 백그라운드 작업."""
    while True:
        await asyncio.sleep(_TOKEN_CLEANUP_INTERVAL_HOURS * 3600)
        try:
            deleted = await cleanup_expired_tokens()
            logger.info("만료 Refresh Token 정리: %d건", deleted)
        except Exception:
            logger.exception("Refresh Token 정리 중 오류 발생")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """애플리케이션 생명주기 관리.

    시작 시 연결 풀을 초기화하고, 이전 프로세스가 남긴 연결 ID를 비우며,
    만료 토큰 정리 작업을 스케줄링합니다. 종료 시 작업과 연결 풀을 정리합니다.
    """
    await init_db()
    cleared = await reset_all_sockets()
    if cleared:
        logger.info("이전 실행의 연결 정보 정리: %d명", cleared)
    cleanup_task = asyncio.create_task(_periodic_token_cleanup())
    yield
    cleanup_task.cancel()
    await close_db()


app = FastAPI(
    title="StoicReads API",
    description="책 리뷰 소셜 독서 기록 백엔드 API 서버",
    version="1.0.0",
    lifespan=lifespan,
)

# 각 요청에 타임스탬프를 주입하여 request.state에서 접근 가능하게 함
app.add_middleware(TimingMiddleware)

app.add_middleware(LoggingMiddleware)

# 브루트포스 공격 방지를 위한 IP 기반 요청 속도 제한
app.add_middleware(RateLimitMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)

# 리버스 프록시 뒤에서 X-Forwarded-* 헤더를 신뢰할 호스트 (명시적 IP만 허용)
_proxy_trusted_hosts = list(settings.TRUSTED_PROXIES) if settings.TRUSTED_PROXIES else ["127.0.0.1", "::1"]
app.add_middleware(ProxyHeadersMiddleware, trusted_hosts=_proxy_trusted_hosts)

app.include_router(auth_router)
app.include_router(user_router)
app.include_router(post_router)
app.include_router(chat_router)

# 업로드 파일 서빙
os.makedirs(settings.UPLOAD_DIR, exist_ok=True)
app.mount("/uploads", StaticFiles(directory=settings.UPLOAD_DIR), name="uploads")


@app.get("/health", status_code=200)
async def health_check():
    """서버 상태 및 DB 연결 확인."""
    if await test_connection():
        return {"status": "ok", "database": "connected"}
    return {"status": "error", "database": "disconnected"}


app.add_exception_handler(Exception, global_exception_handler)
app.add_exception_handler(IntegrityError, integrity_error_handler)  # type: ignore[arg-type]
app.add_exception_handler(RequestValidationError, request_validation_exception_handler)  # type: ignore[arg-type]
