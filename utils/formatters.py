"""formatters: 응답용 날짜/시간 포맷팅 유틸리티 모듈.

API 응답의 모든 시각은 UTC 기준 ISO 8601 초 단위 문자열(예: 2024-01-01T12:00:00Z)입니다.
"""

from datetime import datetime, timezone

TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%SZ"


def utc_timestamp() -> str:
    """현재 UTC 시각을 응답용 문자열로 반환합니다."""
    return datetime.now(timezone.utc).strftime(TIMESTAMP_FORMAT)


def format_datetime(dt: datetime | str | None) -> str | None:
    """datetime 객체를 응답용 문자열로 변환합니다.

    MySQL DATETIME은 타임존 없이 UTC로 저장되므로 naive 값은 그대로 포맷하고,
    타임존이 있는 값은 UTC로 바꾼 뒤 포맷합니다.

    Args:
        dt: 변환할 datetime 객체 또는 문자열.

    Returns:
        포맷된 문자열. None이면 None, 이미 문자열이면 그대로 반환.
    """
    if not dt:
        return None
    if isinstance(dt, str):
        return dt
    if dt.tzinfo is not None:
        dt = dt.astimezone(timezone.utc)
    return dt.strftime(TIMESTAMP_FORMAT)
