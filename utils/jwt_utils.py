"""jwt_utils: JWT 생성 및 검증 유틸리티 모듈.

Access Token과 Refresh Token 모두 HS256 JWT로 발급합니다.
Refresh Token은 서명 검증 외에 사용자별 토큰 집합(refresh_token 테이블)으로 폐기 여부를 관리합니다.
"""

import hashlib
import secrets
from datetime import datetime, timedelta, timezone

import jwt

from core.config import settings
from utils.exceptions import unauthorized_error
from utils.formatters import utc_timestamp

_JWT_ALGORITHM = "HS256"

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


def _now_utc() -> datetime:
    return datetime.now(timezone.utc)


def create_access_token(user_id: int) -> str:
    """Access Token을 생성합니다 (설정된 만료 시간 적용).

    JWT는 암호화되지 않으므로, 식별에 필요한 최소 정보(sub)만 담습니다.
    """
    now = _now_utc()
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(
            (now + timedelta(minutes=settings.JWT_ACCESS_EXPIRE_MINUTES)).timestamp()
        ),
        "type": ACCESS_TOKEN_TYPE,
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=_JWT_ALGORITHM)


def refresh_token_expires_at() -> datetime:
    """지금 발급하는 Refresh Token의 만료 시각을 반환합니다."""
    return _now_utc() + timedelta(days=settings.JWT_REFRESH_EXPIRE_DAYS)


def create_refresh_token(user_id: int) -> str:
    """Refresh Token을 생성합니다.

    같은 초에 두 번 로그인해도 서로 다른 토큰이 되도록 무작위 jti를 넣습니다.
    """
    now = _now_utc()
    payload = {
        "sub": str(user_id),
        "iat": int(now.timestamp()),
        "exp": int(refresh_token_expires_at().timestamp()),
        "type": REFRESH_TOKEN_TYPE,
        "jti": secrets.token_hex(16),
    }
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=_JWT_ALGORITHM)


def hash_refresh_token(raw_token: str) -> str:
    """Refresh Token의 SHA-256 해시를 반환합니다 (DB 저장용)."""
    return hashlib.sha256(raw_token.encode()).hexdigest()


def _decode(token: str, expected_type: str) -> dict:
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[_JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        raise unauthorized_error("token_expired", utc_timestamp())
    except jwt.PyJWTError:
        raise unauthorized_error("token_invalid", utc_timestamp())

    if payload.get("type") != expected_type:
        raise unauthorized_error("token_invalid", utc_timestamp())

    # sub 클레임 존재 및 정수 변환 가능 여부 검증
    sub = payload.get("sub")
    if not sub:
        raise unauthorized_error("token_invalid", utc_timestamp())
    try:
        int(sub)
    except (ValueError, TypeError):
        raise unauthorized_error("token_invalid", utc_timestamp())

    return payload


def decode_access_token(token: str) -> dict:
    """Access Token을 디코딩하고 클레임을 반환합니다.

    Raises:
        HTTPException 401: 토큰이 만료되었거나 유효하지 않은 경우.
    """
    return _decode(token, ACCESS_TOKEN_TYPE)


def decode_refresh_token(token: str) -> dict:
    """Refresh Token의 서명과 만료를 검증하고 클레임을 반환합니다.

    Raises:
        HTTPException 401: 토큰이 만료되었거나 유효하지 않은 경우.
    """
    return _decode(token, REFRESH_TOKEN_TYPE)


def extract_bearer_token(authorization: str | None) -> str | None:
    """`Authorization: Bearer <token>` 헤더 값에서 토큰만 꺼냅니다."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()
