"""google_auth: Google Sign-In ID 토큰 검증 모듈.

프론트엔드의 Google 로그인 버튼이 넘겨준 credential(ID 토큰)을 google-auth로 검증합니다.
"""

import asyncio
import logging
from dataclasses import dataclass

from google.auth import exceptions as google_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token

from core.config import settings

logger = logging.getLogger(__name__)


class GoogleAuthError(Exception):
    """ID 토큰을 신뢰할 수 없을 때 발생합니다."""


@dataclass(frozen=True)
class GoogleIdentity:
    """검증된 Google 계정 정보."""

    email: str
    name: str | None = None
    picture: str | None = None


def _verify(credential: str, audience: str) -> dict:
    return id_token.verify_oauth2_token(credential, google_requests.Request(), audience)


async def verify_google_credential(credential: str) -> GoogleIdentity:
    """Google ID 토큰의 서명, 만료, audience를 검증합니다.

    Google 공개키 조회가 블로킹 HTTP 요청이므로 스레드에서 실행합니다.

    Raises:
        GoogleAuthError: 토큰이 유효하지 않거나 이메일이 확인되지 않은 경우.
    """
    # audience는 항상 검증. 설정이 없으면 Google 로그인 비활성화
    audience = settings.GOOGLE_CLIENT_ID
    if not audience:
        logger.warning("GOOGLE_CLIENT_ID 미설정으로 Google 로그인 거부")
        raise GoogleAuthError("google_login_not_configured")

    try:
        claims = await asyncio.to_thread(_verify, credential, audience)
    except (ValueError, google_exceptions.GoogleAuthError) as e:
        logger.warning("Google ID 토큰 검증 실패: %s", e)
        raise GoogleAuthError(str(e)) from e

    email = claims.get("email")
    if not email or not claims.get("email_verified", False):
        raise GoogleAuthError("email_not_verified")

    return GoogleIdentity(
        email=email,
        name=claims.get("name"),
        picture=claims.get("picture"),
    )
