"""auth: FastAPI 의존성 주입을 위한 인증 모듈.

`Authorization: Bearer <accessToken>` 헤더의 JWT로 사용자를 인증합니다.
Access Token은 상태 없이 서명과 만료만 검증합니다.
"""

from fastapi import Header, Request

from dependencies.request_context import get_request_timestamp
from models import user_models
from models.user_models import User
from utils.exceptions import unauthorized_error
from utils.jwt_utils import decode_access_token, extract_bearer_token


async def _user_from_token(token: str, request: Request) -> User:
    """Access Token을 검증하고 토큰 주인 사용자를 조회합니다.

    Raises:
        HTTPException 401: 토큰이 유효하지 않거나 사용자가 삭제된 경우.
    """
    payload = decode_access_token(token)

    user = await user_models.get_user_by_id(int(payload["sub"]))
    if not user:
        raise unauthorized_error("unauthorized", get_request_timestamp(request))
    return user


async def get_current_user(
    request: Request, authorization: str | None = Header(None)
) -> User:
    """Bearer 토큰에서 현재 사용자를 추출하고 검증합니다.

    Args:
        request: FastAPI Request 객체.
        authorization: Authorization 헤더 값.

    Returns:
        인증된 사용자 객체.

    Raises:
        HTTPException: 토큰이 없거나 유효하지 않으면 401.
    """
    token = extract_bearer_token(authorization)
    if not token:
        raise unauthorized_error("unauthorized", get_request_timestamp(request))
    return await _user_from_token(token, request)

