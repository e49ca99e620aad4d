"""exception_handler: 전역 예외 처리 핸들러 모듈.

처리되지 않은 예외, 중복 키 무결성 에러, 요청 검증 실패를 일관된 형식의 응답으로 변환합니다.
"""

import logging
import traceback
import uuid
from logging.handlers import RotatingFileHandler

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pymysql.err import IntegrityError

from core.config import settings
from dependencies.request_context import get_request_timestamp

logger = logging.getLogger("api")

# 에러 전용 파일 로거: 10MB 단위로 로테이션, 최대 5개 백업 파일
error_logger = logging.getLogger("api.error")
error_logger.setLevel(logging.ERROR)

if not error_logger.handlers:
    error_file_handler = RotatingFileHandler(
        "server_error.log",
        maxBytes=10 * 1024 * 1024,
        backupCount=5,
        encoding="utf-8",
    )
    error_file_handler.setFormatter(
        logging.Formatter("%(asctime)s - %(levelname)s - %(message)s")
    )
    error_logger.addHandler(error_file_handler)

_DUPLICATE_ENTRY = 1062


def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    tracking_id = str(uuid.uuid4())

    logger.error("[%s] Unhandled exception: %s", tracking_id, exc)
    error_logger.error(
        "[%s] %s %s\n%s",
        tracking_id,
        request.method,
        request.url.path,
        "".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )

    content = {
        "trackingID": tracking_id,
        "error": "Internal Server Error",
        "timestamp": get_request_timestamp(request),
    }
    # DEBUG 모드에서만 상세 정보 포함
    if settings.DEBUG:
        content["detail"] = str(exc)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=content,
    )


async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """전역 예외 처리 핸들러.

    처리되지 않은 모든 예외를 500 응답으로 바꾸고, 추적 ID와 함께 traceback을 파일에 남깁니다.
    DEBUG가 아니면 예외 메시지는 응답에 넣지 않습니다.

    Args:
        request: FastAPI Request 객체.
        exc: 발생한 예외.

    Returns:
        500 에러 JSON 응답.
    """
    return _internal_error(request, exc)


async def integrity_error_handler(request: Request, exc: IntegrityError) -> JSONResponse:
    """서비스 계층에서 잡지 못한 무결성 에러 처리 핸들러.

    확인과 삽입 사이의 경쟁으로 생긴 중복 키(1062)는 409로, 나머지는 500으로 응답합니다.
    """
    if exc.args and exc.args[0] == _DUPLICATE_ENTRY:
        logger.warning("중복 키 충돌: %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={
                "detail": {
                    "error": "conflict",
                    "message": "이미 존재하는 데이터입니다.",
                    "timestamp": get_request_timestamp(request),
                }
            },
        )
    return _internal_error(request, exc)


def _sanitize(value):
    if isinstance(value, bytes):
        return f"<binary data: {len(value)} bytes>"
    return value


async def request_validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """요청 데이터 유효성 검사 예외 처리 핸들러.

    에러 정보의 input/ctx에 업로드 파일 같은 바이너리가 섞여 있으면
    직렬화가 실패하므로 크기만 담은 문자열로 바꿉니다.

    Args:
        request: FastAPI Request 객체.
        exc: 발생한 Validation 예외.

    Returns:
        422 Unprocessable Entity 에러 JSON 응답.
    """
    sanitized_errors = []
    for error in exc.errors():
        error_copy = dict(error)
        if "input" in error_copy:
            error_copy["input"] = _sanitize(error_copy["input"])
        if isinstance(error_copy.get("ctx"), dict):
            error_copy["ctx"] = {k: _sanitize(v) for k, v in error_copy["ctx"].items()}
        sanitized_errors.append(error_copy)

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_CONTENT,
        content={
            "detail": jsonable_encoder(sanitized_errors),
            "timestamp": get_request_timestamp(request),
        },
    )
