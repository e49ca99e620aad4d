"""auth_controller: 인증 관련 컨트롤러 모듈.

회원가입, 로그인(사용자명/이메일, Google), 로그아웃, 토큰 갱신,
토큰으로 현재 사용자 조회 기능을 제공합니다.
"""

import asyncio
import logging

from fastapi import HTTPException, Request, UploadFile, status
from pydantic import ValidationError

from dependencies.request_context import get_request_timestamp
from models import token_models, user_models
from models.user_models import User
from schemas.auth_schemas import GoogleLoginRequest, LoginRequest
from schemas.common import create_response, serialize_user
from schemas.user_schemas import CreateUserRequest
from services.user_service import UserService
from utils.exceptions import (
    bad_request_error,
    not_found_error,
    unauthorized_error,
    validation_error,
)
from utils.file_utils import (
    PROFILE_IMAGE_FOLDER,
    delete_upload_file,
    save_upload_file,
)
from utils.google_auth import GoogleAuthError, verify_google_credential
from utils.jwt_utils import (
    create_access_token,
    create_refresh_token,
    decode_access_token,
    decode_refresh_token,
    extract_bearer_token,
    refresh_token_expires_at,
)
from utils.password import DUMMY_PASSWORD_HASH, verify_password

logger = logging.getLogger(__name__)


def _login_failed() -> HTTPException:
    """로그인 실패 응답을 생성합니다.

    사용자 열거 방지: 없는 사용자와 틀린 비밀번호가 완전히 같은 본문을 받도록
    타임스탬프도 넣지 않습니다.
    """
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail={
            "error": "user_not_found",
            "message": "사용자명(이메일) 또는 비밀번호가 올바르지 않습니다.",
        },
    )


async def _issue_tokens(user: User) -> dict:
    """새 Access/Refresh Token 쌍을 발급하고 Refresh Token을 사용자 토큰 집합에 추가합니다."""
    access_token = create_access_token(user.id)
    refresh_token = create_refresh_token(user.id)
    await token_models.add_refresh_token(
        user.id, refresh_token, refresh_token_expires_at()
    )
    return {"accessToken": access_token, "refreshToken": refresh_token}


async def register(
    user_name: str | None,
    email: str | None,
    password: str | None,
    profile_image: UploadFile | None,
    request: Request,
) -> dict:
    """새로운 사용자를 생성합니다.

    Args:
        user_name: 사용자명.
        email: 이메일 주소.
        password: 평문 비밀번호.
        profile_image: 프로필 이미지 파일 (선택).
        request: FastAPI Request 객체.

    Returns:
        생성된 사용자 정보가 포함된 응답 딕셔너리.

    Raises:
        HTTPException: 필수 항목 누락/형식 오류 시 400, 이메일/사용자명 중복 시 409.
    """
    timestamp = get_request_timestamp(request)

    if not user_name or not email or not password:
        raise bad_request_error(
            "missing_required_fields",
            timestamp,
            "userName, email, password는 필수 항목입니다.",
        )

    try:
        user_data = CreateUserRequest(userName=user_name, email=email, password=password)
    except ValidationError as e:
        raise validation_error(e, timestamp)

    profile_image_url = None
    if profile_image and profile_image.filename:
        try:
            profile_image_url = await save_upload_file(
                profile_image, PROFILE_IMAGE_FOLDER
            )
        except HTTPException as e:
            if isinstance(e.detail, dict):
                e.detail["timestamp"] = timestamp
            raise e

    try:
        user = await UserService.create_user(user_data, profile_image_url, timestamp)
    except Exception:
        # 중복 가입이나 DB 오류 시 방금 저장한 이미지 정리
        if profile_image_url:
            delete_upload_file(profile_image_url)
        raise

    return create_response(
        "SIGNUP_SUCCESS",
        "사용자 생성에 성공했습니다.",
        data={"user": serialize_user(user)},
        timestamp=timestamp,
    )


async def login(credentials: LoginRequest, request: Request) -> dict:
    """사용자명 또는 이메일과 비밀번호로 로그인합니다.

    Args:
        credentials: 로그인 자격 증명.
        request: FastAPI Request 객체.

    Returns:
        accessToken, refreshToken과 사용자 정보가 포함된 응답 딕셔너리.

    Raises:
        HTTPException: 필수 항목 누락 시 400, 인증 실패 시 401.
    """
    timestamp = get_request_timestamp(request)

    identifier = credentials.identifier
    if not identifier or not credentials.password:
        raise bad_request_error(
            "missing_required_fields",
            timestamp,
            "userName(또는 email)과 password는 필수 항목입니다.",
        )

    user = await user_models.get_user_by_identifier(identifier)

    # 타이밍 공격 방지: 없는 사용자에 대해서도 bcrypt 비교를 수행
    password_valid = await asyncio.to_thread(
        verify_password,
        credentials.password,
        user.password if user else DUMMY_PASSWORD_HASH,
    )

    if not user or not password_valid:
        raise _login_failed()

    tokens = await _issue_tokens(user)
    logger.info("로그인: user_id=%s", user.id)

    return create_response(
        "LOGIN_SUCCESS",
        "로그인에 성공했습니다.",
        data={**tokens, "user": serialize_user(user)},
        timestamp=timestamp,
    )


async def google_login(payload: GoogleLoginRequest, request: Request) -> dict:
    """Google ID 토큰으로 로그인합니다. 처음 보는 이메일이면 사용자를 만듭니다.

    Raises:
        HTTPException 401: ID 토큰 검증에 실패한 경우 (일반 로그인 실패와 같은 본문).
    """
    timestamp = get_request_timestamp(request)

    try:
        identity = await verify_google_credential(payload.credential)
    except GoogleAuthError:
        raise _login_failed()

    user = await UserService.get_or_create_google_user(identity, timestamp)

    tokens = await _issue_tokens(user)
    logger.info("Google 로그인: user_id=%s", user.id)

    return create_response(
        "LOGIN_SUCCESS",
        "로그인에 성공했습니다.",
        data={**tokens, "user": serialize_user(user)},
        timestamp=timestamp,
    )


async def logout(authorization: str | None, request: Request) -> dict:
    """Refresh Token을 사용자 토큰 집합에서 제거하여 로그아웃합니다.

    이미 제거된 토큰으로 다시 호출해도 토큰 서명이 유효하면 성공합니다.

    Args:
        authorization: `Bearer <refreshToken>` 형식의 Authorization 헤더.
        request: FastAPI Request 객체.

    Returns:
        로그아웃 성공 응답 딕셔너리.

    Raises:
        HTTPException 401: 토큰이 없거나 서명 검증에 실패한 경우.
    """
    timestamp = get_request_timestamp(request)

    raw_refresh = extract_bearer_token(authorization)
    if not raw_refresh:
        raise unauthorized_error("token_invalid", timestamp)

    payload = decode_refresh_token(raw_refresh)
    await token_models.remove_refresh_token(int(payload["sub"]), raw_refresh)

    return create_response(
        "LOGOUT_SUCCESS", "로그아웃에 성공했습니다.", timestamp=timestamp
    )


async def refresh(authorization: str | None, request: Request) -> dict:
    """Refresh Token으로 새 토큰 쌍을 발급합니다 (토큰 회전).

    서명은 유효하지만 토큰 집합에 없는 토큰은 탈취된 토큰의 재사용으로 보고
    해당 사용자의 모든 Refresh Token을 폐기합니다.

    Raises:
        HTTPException 401: 토큰이 없거나, 유효하지 않거나, 이미 폐기된 경우.
    """
    timestamp = get_request_timestamp(request)

    raw_refresh = extract_bearer_token(authorization)
    if not raw_refresh:
        raise unauthorized_error("token_invalid", timestamp)

    payload = decode_refresh_token(raw_refresh)
    user_id = int(payload["sub"])

    if not await token_models.has_refresh_token(user_id, raw_refresh):
        revoked = await token_models.delete_user_refresh_tokens(user_id)
        logger.warning(
            "Refresh Token 재사용 감지: user_id=%s revoked=%s", user_id, revoked
        )
        raise unauthorized_error("token_revoked", timestamp)

    user = await user_models.get_user_by_id(user_id)
    if not user:
        raise unauthorized_error("unauthorized", timestamp)

    new_access = create_access_token(user.id)
    new_refresh = create_refresh_token(user.id)
    rotated = await token_models.rotate_refresh_token(
        user.id, raw_refresh, new_refresh, refresh_token_expires_at()
    )
    if not rotated:
        # 동시에 같은 토큰으로 갱신한 다른 요청이 먼저 회전함
        raise unauthorized_error("token_revoked", timestamp)

    return create_response(
        "TOKEN_REFRESHED",
        "토큰이 갱신되었습니다.",
        data={
            "accessToken": new_access,
            "refreshToken": new_refresh,
            "user": serialize_user(user),
        },
        timestamp=timestamp,
    )


async def get_user(authorization: str | None, request: Request) -> dict:
    """Access Token이 가리키는 사용자의 정보를 반환합니다.

    Raises:
        HTTPException: 토큰이 없거나 유효하지 않으면 401, 사용자가 삭제되었으면 404.
    """
    timestamp = get_request_timestamp(request)

    token = extract_bearer_token(authorization)
    if not token:
        raise unauthorized_error("unauthorized", timestamp)

    payload = decode_access_token(token)
    user = await user_models.get_user_by_id(int(payload["sub"]))
    if not user:
        raise not_found_error("user", timestamp)

    return create_response(
        "AUTH_SUCCESS",
        "현재 로그인 중인 상태입니다.",
        data={"user": serialize_user(user)},
        timestamp=timestamp,
    )
