# request_context: 요청 컨텍스트 의존성
# TimingMiddleware가 기록한 요청 시각을 응답/에러 타임스탬프로 제공합니다.

from datetime import datetime, timezone

from starlette.requests import HTTPConnection

from utils.formatters import format_datetime


def get_request_time(conn: HTTPConnection) -> datetime:
    """요청 시각을 반환합니다. 미들웨어를 거치지 않은 요청(WebSocket 등)은 현재 시각."""
    request_time = getattr(conn.state, "request_time", None)
    return request_time or datetime.now(timezone.utc)


def get_request_timestamp(conn: HTTPConnection) -> str:
    """요청 시각을 ISO 8601(UTC, 초 단위) 문자열로 반환합니다."""
    return format_datetime(get_request_time(conn)) or ""
