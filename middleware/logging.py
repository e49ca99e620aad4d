# logging: 요청/응답 로깅 미들웨어
# 모든 HTTP 요청의 메소드, 경로, 상태 코드, 처리 시간을 "api" 로거로 남긴다.

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# 로거 설정
logger = logging.getLogger("api")
logger.setLevel(logging.INFO)

# 콘솔 핸들러 추가 (없는 경우)
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logger.addHandler(handler)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    요청/응답 로깅 미들웨어

    5xx 응답은 WARNING, 그 외는 INFO로 남긴다. WebSocket 연결은 대상이 아니다.
    """

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()
        client = request.client.host if request.client else "-"

        logger.info("-> %s %s (%s)", request.method, request.url.path, client)

        response = await call_next(request)

        elapsed = time.perf_counter() - start_time
        level = logging.WARNING if response.status_code >= 500 else logging.INFO
        logger.log(
            level,
            "<- %s %s - Status: %d - Time: %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )

        return response
