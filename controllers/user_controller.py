"""user_controller: 사용자 관련 컨트롤러 모듈.

사용자 조회, 수정, 삭제, 온라인 사용자 목록 기능을 제공합니다.
"""

from fastapi import HTTPException, Request, UploadFile
from pydantic import ValidationError

from dependencies.request_context import get_request_timestamp
from models import user_models
from models.user_models import User
from schemas.common import create_response, serialize_online_user, serialize_user
from schemas.user_schemas import UpdateUserRequest
from services.user_service import UserService
from utils.exceptions import bad_request_error, validation_error
from utils.file_utils import (
    PROFILE_IMAGE_FOLDER,
    delete_upload_file,
    save_upload_file,
)


async def get_users(request: Request) -> dict:
    """전체 사용자 목록을 조회합니다."""
    timestamp = get_request_timestamp(request)

    users = await user_models.get_all_users()

    return create_response(
        "QUERY_SUCCESS",
        "사용자 목록 조회에 성공했습니다.",
        data={"users": [serialize_user(user) for user in users]},
        timestamp=timestamp,
    )


async def get_user(user_id: int, request: Request) -> dict:
    """사용자 ID를 사용하여 사용자를 조회합니다.

    Args:
        user_id: 조회할 사용자 ID.
        request: FastAPI Request 객체.

    Returns:
        사용자 정보가 포함된 응답 딕셔너리.

    Raises:
        HTTPException: 잘못된 ID면 400, 사용자가 없으면 404.
    """
    timestamp = get_request_timestamp(request)

    if user_id < 1:
        raise bad_request_error("invalid_user_id", timestamp)

    user = await UserService.get_user_by_id(user_id, timestamp)

    return create_response(
        "QUERY_SUCCESS",
        "사용자 조회에 성공했습니다.",
        data={"user": serialize_user(user)},
        timestamp=timestamp,
    )


async def get_online_users(current_user: User, request: Request) -> dict:
    """요청자를 제외한 온라인 사용자 목록을 조회합니다.

    Args:
        current_user: 현재 인증된 사용자 객체.
        request: FastAPI Request 객체.

    Returns:
        온라인 사용자 목록이 포함된 응답 딕셔너리.
    """
    timestamp = get_request_timestamp(request)

    users = await user_models.get_online_users(excluding_user_id=current_user.id)

    return create_response(
        "QUERY_SUCCESS",
        "온라인 사용자 조회에 성공했습니다.",
        data={"users": [serialize_online_user(user) for user in users]},
        timestamp=timestamp,
    )


async def update_user(
    user_id: int,
    user_name: str | None,
    email: str | None,
    password: str | None,
    profile_image: UploadFile | None,
    current_user: User,
    request: Request,
) -> dict:
    """사용자 정보를 통째로 수정합니다.

    userName, email, password는 모두 다시 받아야 하며, 프로필 이미지는 새 파일이 있을 때만 바뀝니다.

    Raises:
        HTTPException: 필수 항목 누락/형식 오류 시 400, 본인이 아니면 403,
            없으면 404, 중복이면 409.
    """
    timestamp = get_request_timestamp(request)

    if not user_name or not email or not password:
        raise bad_request_error(
            "missing_required_fields",
            timestamp,
            "userName, email, password는 필수 항목입니다.",
        )

    try:
        update_data = UpdateUserRequest(
            userName=user_name, email=email, password=password
        )
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
        updated_user = await UserService.update_user(
            user_id, update_data, profile_image_url, current_user, timestamp
        )
    except Exception:
        # 권한/중복 오류나 DB 오류 시 방금 저장한 이미지 정리
        if profile_image_url:
            delete_upload_file(profile_image_url)
        raise

    return create_response(
        "UPDATE_SUCCESS",
        "사용자 정보 수정에 성공했습니다.",
        data={"user": serialize_user(updated_user)},
        timestamp=timestamp,
    )


async def delete_user(user_id: int, current_user: User, request: Request) -> dict:
    """사용자를 삭제합니다. 본인 계정만 삭제할 수 있습니다.

    Raises:
        HTTPException: 본인이 아니면 403, 없으면 404.
    """
    timestamp = get_request_timestamp(request)

    await UserService.delete_user(user_id, current_user, timestamp)

    return create_response(
        "DELETE_SUCCESS", "사용자 삭제에 성공했습니다.", timestamp=timestamp
    )
