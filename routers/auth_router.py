"""auth_router: 인증 관련 라우터 모듈.

회원가입, 로그인, Google 로그인, 로그아웃, 토큰 갱신, 토큰 사용자 조회와
본인 계정 수정/삭제 엔드포인트를 제공합니다.
"""

from fastapi import APIRouter, Depends, File, Form, Header, Request, UploadFile, status

from controllers import auth_controller, user_controller
from dependencies.auth import get_current_user
from models.user_models import User
from schemas.auth_schemas import GoogleLoginRequest, LoginRequest


auth_router = APIRouter(prefix="/auth", tags=["auth"])


@auth_router.post("/register", status_code=status.HTTP_201_CREATED)
async def register(
    request: Request,
    userName: str | None = Form(None),
    email: str | None = Form(None),
    password: str | None = Form(None),
    profileImage: UploadFile | None = File(None),
) -> dict:
    """회원가입을 처리합니다 (multipart/form-data).

    Args:
        request: FastAPI Request 객체.
        userName: 사용자명.
        email: 이메일 주소.
        password: 비밀번호.
        profileImage: 프로필 이미지 파일 (선택).

    Returns:
        생성된 사용자 정보가 포함된 응답.
    """
    return await auth_controller.register(
        userName, email, password, profileImage, request
    )


@auth_router.post("/login", status_code=status.HTTP_200_OK)
async def login(credentials: LoginRequest, request: Request) -> dict:
    """사용자명 또는 이메일과 비밀번호로 로그인합니다.

    Returns:
        accessToken, refreshToken과 사용자 정보가 포함된 응답.
    """
    return await auth_controller.login(credentials, request)


@auth_router.post("/google", status_code=status.HTTP_200_OK)
async def google_login(payload: GoogleLoginRequest, request: Request) -> dict:
    """Google ID 토큰으로 로그인합니다."""
    return await auth_controller.google_login(payload, request)


@auth_router.post("/logout", status_code=status.HTTP_200_OK)
async def logout(
    request: Request, authorization: str | None = Header(None)
) -> dict:
    """로그아웃합니다. `Authorization: Bearer <refreshToken>`이 필요합니다."""
    return await auth_controller.logout(authorization, request)


@auth_router.post("/refresh", status_code=status.HTTP_200_OK)
async def refresh(
    request: Request, authorization: str | None = Header(None)
) -> dict:
    """Refresh Token으로 새 토큰 쌍을 발급합니다."""
    return await auth_controller.refresh(authorization, request)


@auth_router.get("/user", status_code=status.HTTP_200_OK)
async def get_user(
    request: Request, authorization: str | None = Header(None)
) -> dict:
    """Access Token이 가리키는 사용자 정보를 조회합니다.

    토큰 발급 이후 삭제된 사용자는 404를 받습니다.
    """
    return await auth_controller.get_user(authorization, request)


@auth_router.put("/user/{user_id}", status_code=status.HTTP_200_OK)
async def update_user(
    user_id: int,
    request: Request,
    userName: str | None = Form(None),
    email: str | None = Form(None),
    password: str | None = Form(None),
    profileImage: UploadFile | None = File(None),
    current_user: User = Depends(get_current_user),
) -> dict:
    """본인 계정 정보를 수정합니다 (multipart/form-data).

    Args:
        user_id: 수정할 사용자 ID.
        request: FastAPI Request 객체.
        userName: 새 사용자명.
        email: 새 이메일.
        password: 새 비밀번호.
        profileImage: 새 프로필 이미지 (선택, 없으면 기존 이미지 유지).
        current_user: 현재 인증된 사용자.

    Returns:
        수정된 사용자 정보가 포함된 응답.
    """
    return await user_controller.update_user(
        user_id, userName, email, password, profileImage, current_user, request
    )


@auth_router.delete("/user/{user_id}", status_code=status.HTTP_200_OK)
async def delete_user(
    user_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
) -> dict:
    """본인 계정을 삭제합니다."""
    return await user_controller.delete_user(user_id, current_user, request)
