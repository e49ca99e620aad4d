"""user_router: 사용자 조회 관련 라우터 모듈.

사용자 목록, 온라인 사용자 목록, 단일 사용자 조회 엔드포인트를 제공합니다.
"""

from fastapi import APIRouter, Depends, Request, status

from controllers import user_controller
from dependencies.auth import get_current_user
from models.user_models import User


user_router = APIRouter(prefix="/users", tags=["users"])


@user_router.get("", status_code=status.HTTP_200_OK)
async def get_users(request: Request) -> dict:
    """전체 사용자 목록을 조회합니다."""
    return await user_controller.get_users(request)


# 정적 경로를 동적 경로보다 먼저 등록 (FastAPI 라우트 순서)
@user_router.get("/online", status_code=status.HTTP_200_OK)
async def get_online_users(
    request: Request, current_user: User = Depends(get_current_user)
) -> dict:
    """요청자를 제외한 온라인 사용자 목록을 조회합니다.

    Args:
        request: FastAPI Request 객체.
        current_user: 현재 인증된 사용자.

    Returns:
        온라인 사용자 목록이 포함된 응답.
    """
    return await user_controller.get_online_users(current_user, request)


@user_router.get("/{user_id}", status_code=status.HTTP_200_OK)
async def get_user(user_id: int, request: Request) -> dict:
    """사용자 ID로 사용자를 조회합니다."""
    return await user_controller.get_user(user_id, request)
