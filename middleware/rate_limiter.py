"""rate_limiter: API 요청 속도 제한 미들웨어.

로그인/회원가입 브루트포스와 게시글 스팸을 막기 위한 IP 기반 슬라이딩 윈도우 제한을 제공합니다.
추적하는 IP 수가 상한을 넘으면 가장 오래 조용했던 IP부터 일괄 제거합니다.
"""

import asyncio
import ipaddress
import logging
import os
import time
from collections import defaultdict, deque

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from core.config import settings

logger = logging.getLogger(__name__)

# 제외 경로: 정적 업로드 파일, 헬스 체크
_EXEMPT_PREFIXES = ("/uploads", "/health")

# "METHOD 경로" 단위 제한 설정
RATE_LIMIT_CONFIG: dict[str, dict[str, int]] = {
    # 인증 - 엄격한 제한 (브루트포스 방지)
    "POST /auth/login": {"max_requests": 5, "window_seconds": 60},
    "POST /auth/google": {"max_requests": 10, "window_seconds": 60},
    "POST /auth/register": {"max_requests": 3, "window_seconds": 60},
    "POST /auth/refresh": {"max_requests": 20, "window_seconds": 60},
    # 게시글 작성/이미지 업로드 - 스팸 방지
    "POST /posts": {"max_requests": 10, "window_seconds": 60},
    "POST /posts/image": {"max_requests": 10, "window_seconds": 60},
}

# 설정되지 않은 엔드포인트
DEFAULT_RATE_LIMIT = {"max_requests": 100, "window_seconds": 60}

# IP를 알 수 없는 요청에 적용하는 상한
UNKNOWN_IP_MAX_REQUESTS = 10
_UNKNOWN_IPS = ("unknown", "0.0.0.0", "")


def is_valid_ip(ip_str: str) -> bool:
    """IPv4/IPv6 주소 형식인지 확인합니다."""
    try:
        ipaddress.ip_address(ip_str)
        return True
    except ValueError:
        return False


class RateLimiter:
    """메모리 기반 슬라이딩 윈도우 Rate Limiter.

    (IP, 제한 키)마다 윈도우 안의 요청 시각을 보관합니다. 단일 프로세스 안에서만 유효합니다.
    """

    def __init__(self, max_tracked_ips: int | None = None):
        """RateLimiter 초기화.

        Args:
            max_tracked_ips: 최대 추적 키 수 (기본: settings.RATE_LIMIT_MAX_IPS).
        """
        self._requests: dict[str, deque[float]] = defaultdict(deque)
        self._lock = asyncio.Lock()
        self.max_tracked_ips = (
            max_tracked_ips if max_tracked_ips is not None else settings.RATE_LIMIT_MAX_IPS
        )

    def _evict_idle(self) -> None:
        """가장 오래 요청이 없던 키 10%를 제거합니다."""
        eviction_count = max(1, self.max_tracked_ips // 10)
        idle_first = sorted(
            self._requests,
            key=lambda key: self._requests[key][-1] if self._requests[key] else 0.0,
        )
        for key in idle_first[:eviction_count]:
            del self._requests[key]
        logger.warning(
            "Rate Limiter 배치 제거: %d개 제거 (남은 키: %d개)",
            eviction_count,
            len(self._requests),
        )

    async def is_rate_limited(
        self, key: str, max_requests: int, window_seconds: int
    ) -> tuple[bool, int]:
        """요청이 속도 제한에 걸리는지 확인하고, 걸리지 않으면 기록합니다.

        Args:
            key: 제한 대상 키 (클라이언트 IP 또는 IP와 경로 조합).
            max_requests: 윈도우 내 최대 요청 수.
            window_seconds: 시간 윈도우 (초).

        Returns:
            (제한 여부, 남은 요청 수) 튜플.
        """
        async with self._lock:
            if key not in self._requests and len(self._requests) >= self.max_tracked_ips:
                self._evict_idle()

            now = time.monotonic()
            window = self._requests[key]
            while window and window[0] <= now - window_seconds:
                window.popleft()

            if key.partition("|")[0] in _UNKNOWN_IPS:
                max_requests = min(max_requests, UNKNOWN_IP_MAX_REQUESTS)

            if len(window) >= max_requests:
                return True, 0

            window.append(now)
            return False, max_requests - len(window)


# 전역 Rate Limiter 인스턴스
_rate_limiter = RateLimiter()


def get_client_ip(request: Request) -> str:
    """클라이언트 IP를 추출합니다.

    X-Forwarded-For가 있으면 오른쪽부터 신뢰된 프록시(settings.TRUSTED_PROXIES)를
    건너뛴 첫 주소를 사용합니다. 신뢰된 프록시가 설정되지 않았으면 가장 왼쪽 주소입니다.

    Returns:
        클라이언트 IP 주소. 추출 실패 시 "unknown".
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        ips = [ip.strip() for ip in forwarded.split(",") if is_valid_ip(ip.strip())]
        if ips:
            trusted = settings.TRUSTED_PROXIES
            if trusted:
                for ip in reversed(ips):
                    if ip not in trusted:
                        return ip
            return ips[0]
        logger.warning("X-Forwarded-For 헤더에 유효한 IP 없음: %s", forwarded)

    real_ip = (request.headers.get("X-Real-IP") or "").strip()
    if real_ip and is_valid_ip(real_ip):
        return real_ip

    if request.client and request.client.host:
        return request.client.host

    logger.warning("클라이언트 IP 추출 실패, 'unknown' 반환")
    return "unknown"


def _limit_for(request: Request) -> tuple[str, dict[str, int]]:
    """요청에 적용할 (제한 키 접미사, 설정)을 반환합니다.

    별도 설정이 있는 엔드포인트는 자기만의 윈도우를, 나머지는 IP당 공용 윈도우를 씁니다.
    """
    route_key = f"{request.method} {request.url.path.rstrip('/') or '/'}"
    config = RATE_LIMIT_CONFIG.get(route_key)
    if config is not None:
        return route_key, config
    return "*", DEFAULT_RATE_LIMIT


class RateLimitMiddleware(BaseHTTPMiddleware):
    """IP 기반 Rate Limiting 미들웨어.

    GET/OPTIONS 요청과 정적 파일, 헬스 체크는 제한하지 않습니다. TESTING=true이면 비활성화됩니다.
    """

    async def dispatch(self, request: Request, call_next):
        if os.environ.get("TESTING") == "true":
            return await call_next(request)

        if request.method in ("GET", "OPTIONS", "HEAD"):
            return await call_next(request)

        if request.url.path.startswith(_EXEMPT_PREFIXES):
            return await call_next(request)

        suffix, config = _limit_for(request)
        is_limited, remaining = await _rate_limiter.is_rate_limited(
            key=f"{get_client_ip(request)}|{suffix}",
            max_requests=config["max_requests"],
            window_seconds=config["window_seconds"],
        )

        if is_limited:
            return JSONResponse(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                content={
                    "detail": {
                        "error": "too_many_requests",
                        "message": "요청이 너무 많습니다. 잠시 후 다시 시도해주세요.",
                        "retry_after_seconds": config["window_seconds"],
                    }
                },
                headers={
                    "Retry-After": str(config["window_seconds"]),
                    "X-RateLimit-Limit": str(config["max_requests"]),
                    "X-RateLimit-Remaining": "0",
                },
            )

        response = await call_next(request)
        response.headers["X-RateLimit-Limit"] = str(config["max_requests"])
        response.headers["X-RateLimit-Remaining"] = str(remaining)
        return response
