"""user_service: 사용자 관련 비즈니스 로직을 처리하는 서비스."""

import asyncio
import logging
import re
import secrets
from typing import NoReturn

from fastapi import HTTPException, status
from pymysql.err import IntegrityError

from models import user_models
from models.user_models import User
from schemas.user_schemas import CreateUserRequest, UpdateUserRequest
from utils.exceptions import conflict_error, forbidden_error, not_found_error
from utils.google_auth import GoogleIdentity
from utils.password import generate_unusable_password, hash_password

logger = logging.getLogger(__name__)

_USER_NAME_MAX_BASE = 21  # 접미사 "_" + 8자를 붙여도 30자 이내
_USER_NAME_ATTEMPTS = 5


def _raise_integrity_error(e: IntegrityError, timestamp: str) -> NoReturn:
    """중복 키(1062) 에러는 409로 변환하고, 그 외 무결성 에러는 그대로 전파합니다."""
    if e.args and e.args[0] == 1062:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail={
                "error": "conflict",
                "message": "이미 존재하는 이메일 또는 사용자명입니다.",
                "timestamp": timestamp,
            },
        )
    logger.exception(f"Unhandled IntegrityError: {e}")
    raise e


def _user_name_base(identity: GoogleIdentity) -> str:
    """Google 표시 이름(없으면 이메일 앞부분)에서 사용자명 후보를 만듭니다."""
    source = identity.name or identity.email.partition("@")[0]
    base = re.sub(r"[^A-Za-z0-9_.]", "", source.replace(" ", "_"))
    base = base[:_USER_NAME_MAX_BASE]
    if len(base) < 3:
        base = f"reader{base}"
    return base


class UserService:
    """사용자 관리 서비스."""

    @staticmethod
    async def get_user_by_id(user_id: int, timestamp: str) -> User:
        """ID로 사용자 조회 및 존재 확인."""
        user = await user_models.get_user_by_id(user_id)
        if not user:
            raise not_found_error("user", timestamp)
        return user

    @staticmethod
    async def _check_conflicts(
        user_name: str, email: str, timestamp: str, user_id: int | None = None
    ) -> None:
        """이메일, 사용자명 순서로 다른 사용자와의 중복을 확인합니다."""
        existing = await user_models.get_user_by_email(email)
        if existing and existing.id != user_id:
            raise conflict_error("email", timestamp)

        existing = await user_models.get_user_by_user_name(user_name)
        if existing and existing.id != user_id:
            raise conflict_error("user_name", timestamp)

    @staticmethod
    async def create_user(
        user_data: CreateUserRequest, profile_image_url: str | None, timestamp: str
    ) -> User:
        """사용자 생성 (회원가입).

        Raises:
            HTTPException 409: 이메일/사용자명이 이미 사용 중인 경우.
        """
        # 1. 중복 확인 (이메일 먼저)
        await UserService._check_conflicts(
            user_data.userName, user_data.email, timestamp
        )

        # 2. 비밀번호 해싱
        hashed_password = await asyncio.to_thread(hash_password, user_data.password)

        # 3. 사용자 생성. 확인과 삽입 사이에 다른 요청이 끼어들면 UNIQUE 제약이 막아줌
        try:
            user = await user_models.add_user(
                user_name=user_data.userName,
                email=user_data.email,
                password=hashed_password,
                profile_image_url=profile_image_url,
            )
        except IntegrityError as e:
            _raise_integrity_error(e, timestamp)

        logger.info("사용자 생성: id=%s user_name=%s", user.id, user.user_name)
        return user

    @staticmethod
    async def update_user(
        user_id: int,
        update_data: UpdateUserRequest,
        profile_image_url: str | None,
        current_user: User,
        timestamp: str,
    ) -> User:
        """사용자 정보 수정 (본인만 가능).

        프로필 이미지는 새 파일이 주어진 경우에만 바뀝니다.

        Raises:
            HTTPException: 본인이 아니면 403, 없으면 404, 중복이면 409.
        """
        # 1. 존재 및 권한 확인
        if current_user.id != user_id:
            await UserService.get_user_by_id(user_id, timestamp)
            raise forbidden_error(
                "edit", timestamp, "본인 정보만 수정할 수 있습니다."
            )

        # 2. 중복 확인
        await UserService._check_conflicts(
            update_data.userName, update_data.email, timestamp, user_id=user_id
        )

        # 3. 비밀번호 재해싱 후 수정
        hashed_password = await asyncio.to_thread(
            hash_password, update_data.password
        )
        try:
            updated_user = await user_models.update_user(
                user_id,
                user_name=update_data.userName,
                email=update_data.email,
                password=hashed_password,
                profile_image_url=profile_image_url,
            )
        except IntegrityError as e:
            _raise_integrity_error(e, timestamp)

        if not updated_user:
            raise not_found_error("user", timestamp)
        return updated_user

    @staticmethod
    async def delete_user(user_id: int, current_user: User, timestamp: str) -> None:
        """사용자 삭제 (본인만 가능).

        Raises:
            HTTPException: 본인이 아니면 403, 없으면 404.
        """
        if current_user.id != user_id:
            await UserService.get_user_by_id(user_id, timestamp)
            raise forbidden_error(
                "delete", timestamp, "본인 계정만 삭제할 수 있습니다."
            )

        if not await user_models.delete_user(user_id):
            raise not_found_error("user", timestamp)

        logger.info("사용자 삭제: id=%s", user_id)

    @staticmethod
    async def _available_user_name(base: str) -> str:
        """base가 사용 중이면 짧은 무작위 접미사를 붙여 빈 사용자명을 찾습니다."""
        if not await user_models.get_user_by_user_name(base):
            return base
        for _ in range(_USER_NAME_ATTEMPTS):
            candidate = f"{base}_{secrets.token_hex(2)}"
            if not await user_models.get_user_by_user_name(candidate):
                return candidate
        return f"{base}_{secrets.token_hex(4)}"

    @staticmethod
    async def get_or_create_google_user(
        identity: GoogleIdentity, timestamp: str
    ) -> User:
        """검증된 Google 계정의 이메일로 사용자를 찾고, 없으면 새로 만듭니다.

        새 사용자는 비밀번호 로그인이 불가능한 무작위 비밀번호를 가집니다.
        """
        user = await user_models.get_user_by_email(identity.email)
        if user:
            return user

        user_name = await UserService._available_user_name(_user_name_base(identity))
        hashed_password = await asyncio.to_thread(
            hash_password, generate_unusable_password()
        )

        try:
            user = await user_models.add_user(
                user_name=user_name,
                email=identity.email,
                password=hashed_password,
                profile_image_url=identity.picture,
            )
        except IntegrityError as e:
            # 같은 이메일로 동시에 처음 로그인한 경우 먼저 만들어진 사용자를 사용
            existing = await user_models.get_user_by_email(identity.email)
            if existing:
                return existing
            _raise_integrity_error(e, timestamp)

        logger.info("Google 사용자 생성: id=%s user_name=%s", user.id, user.user_name)
        return user
