"""middleware: 미들웨어 패키지.

요청 타이밍, 요청/응답 로깅, IP 기반 Rate Limiting 미들웨어를 제공합니다.
"""

from .timing import TimingMiddleware
from .logging import LoggingMiddleware
from .rate_limiter import RateLimitMiddleware

__all__ = [
    "TimingMiddleware",
    "LoggingMiddleware",
    "RateLimitMiddleware",
]
