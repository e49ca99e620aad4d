"""exceptions: API 에러 응답 생성 헬퍼 모듈.

자주 사용되는 HTTP 에러 응답을 표준화된 형식으로 생성합니다.
"""

from fastapi import HTTPException, status
from pydantic import ValidationError


def _detail(error_code: str, timestamp: str | None, message: str | None) -> dict:
    detail: dict = {"error": error_code}
    if timestamp:
        detail["timestamp"] = timestamp
    if message:
        detail["message"] = message
    return detail


def not_found_error(resource: str, timestamp: str) -> HTTPException:
    """리소스를 찾을 수 없을 때 404 에러를 생성합니다.

    Args:
        resource: 리소스 이름 (예: 'user', 'post', 'comment').
        timestamp: 요청 타임스탬프.

    Returns:
        HTTPException: 404 Not Found 예외.
    """
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=_detail(f"{resource}_not_found", timestamp, None),
    )


def unauthorized_error(
    error_code: str, timestamp: str | None = None, message: str | None = None
) -> HTTPException:
    """인증 실패 시 401 에러를 생성합니다.

    Args:
        error_code: 에러 코드 (예: 'token_invalid', 'token_expired').
        timestamp: 요청 타임스탬프 (선택).
        message: 사용자에게 표시할 메시지 (선택).

    Returns:
        HTTPException: 401 Unauthorized 예외.
    """
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=_detail(error_code, timestamp, message),
        headers={"WWW-Authenticate": "Bearer"},
    )


def forbidden_error(
    action: str, timestamp: str, message: str | None = None
) -> HTTPException:
    """권한이 없을 때 403 에러를 생성합니다.

    Args:
        action: 수행하려는 동작 (예: 'edit', 'delete').
        timestamp: 요청 타임스탬프.
        message: 사용자에게 표시할 메시지 (선택).

    Returns:
        HTTPException: 403 Forbidden 예외.
    """
    return HTTPException(
        status_code=status.HTTP_403_FORBIDDEN,
        detail=_detail(f"not_authorized_to_{action}", timestamp, message),
    )


def bad_request_error(
    error_code: str, timestamp: str, message: str | None = None
) -> HTTPException:
    """잘못된 요청에 대한 400 에러를 생성합니다.

    Args:
        error_code: 에러 코드 (예: 'missing_required_fields', 'invalid_rating').
        timestamp: 요청 타임스탬프.
        message: 사용자에게 표시할 메시지 (선택).

    Returns:
        HTTPException: 400 Bad Request 예외.
    """
    return HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=_detail(error_code, timestamp, message),
    )


def conflict_error(
    resource: str, timestamp: str, message: str | None = None
) -> HTTPException:
    """리소스 충돌 시 409 에러를 생성합니다.

    Args:
        resource: 충돌하는 리소스 (예: 'email', 'user_name').
        timestamp: 요청 타임스탬프.
        message: 사용자에게 표시할 메시지 (선택).

    Returns:
        HTTPException: 409 Conflict 예외.
    """
    return HTTPException(
        status_code=status.HTTP_409_CONFLICT,
        detail=_detail(f"{resource}_already_exists", timestamp, message),
    )


def validation_error(e: ValidationError, timestamp: str) -> HTTPException:
    """Pydantic 검증 실패를 400 에러로 변환합니다. 첫 번째 오류만 메시지에 담습니다.

    Args:
        e: Pydantic ValidationError.
        timestamp: 요청 타임스탬프.

    Returns:
        HTTPException: 400 Bad Request 예외 (error: validation_error).
    """
    first = e.errors()[0]
    field = ".".join(str(loc) for loc in first.get("loc", ()))
    message = first.get("msg", "")
    return bad_request_error(
        "validation_error", timestamp, f"{field}: {message}" if field else message
    )
