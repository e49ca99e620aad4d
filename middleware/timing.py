# timing: 요청 타이밍 미들웨어
# 요청 시각을 request.state에 기록하고, 응답에 처리 시간 헤더를 붙입니다.

import time
from datetime import datetime, timezone

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request


class TimingMiddleware(BaseHTTPMiddleware):
    """
    요청 타이밍 미들웨어

    컨트롤러와 에러 응답은 request.state.request_time으로 같은 타임스탬프를 사용합니다.
    """

    async def dispatch(self, request: Request, call_next):
        request.state.request_time = datetime.now(timezone.utc)
        started = time.perf_counter()

        response = await call_next(request)

        response.headers["X-Process-Time"] = f"{(time.perf_counter() - started) * 1000:.1f}ms"
        return response
