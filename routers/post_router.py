"""post_router: 게시글(책 리뷰)과 댓글 관련 라우터 모듈.

게시글 CRUD, 이미지 업로드, 댓글 추가/삭제 엔드포인트를 제공합니다.
"""

from fastapi import (
    APIRouter,
    Depends,
    File,
    Form,
    Query,
    Request,
    UploadFile,
    status,
)

from controllers import post_controller
from dependencies.auth import get_current_user
from models.user_models import User
from schemas.comment_schemas import CreateCommentRequest
from schemas.post_schemas import UpdatePostRequest


post_router = APIRouter(prefix="/posts", tags=["posts"])
"""게시글 관련 라우터 인스턴스."""


# ============ 게시글 라우터 ============


@post_router.get("", status_code=status.HTTP_200_OK)
async def get_posts(
    request: Request,
    offset: int = Query(0, ge=0, description="시작 위치 (0부터 시작)"),
    limit: int = Query(50, ge=1, le=100, description="조회할 게시글 수"),
) -> dict:
    """게시글 목록을 최신순으로 조회합니다.

    Args:
        request: FastAPI Request 객체.
        offset: 시작 위치.
        limit: 조회할 게시글 수 (1~100).

    Returns:
        게시글 목록과 페이지네이션 정보가 포함된 응답.
    """
    return await post_controller.get_posts(offset, limit, request)


@post_router.post("", status_code=status.HTTP_201_CREATED)
async def create_post(
    request: Request,
    title: str | None = Form(None),
    bookTitle: str | None = Form(None),
    bookAuthors: str | None = Form(None),
    bookImage: str | None = Form(None),
    rating: str | None = Form(None),
    description: str | None = Form(None),
    image: UploadFile | None = File(None),
    current_user: User = Depends(get_current_user),
) -> dict:
    """새 게시글을 생성합니다 (multipart/form-data).

    Returns:
        생성된 게시글이 포함된 응답.
    """
    return await post_controller.create_post(
        title,
        bookTitle,
        bookAuthors,
        bookImage,
        rating,
        description,
        image,
        current_user,
        request,
    )


# 정적 경로를 동적 경로보다 먼저 등록 (FastAPI 라우트 순서)
@post_router.post("/image", status_code=status.HTTP_201_CREATED)
async def upload_image(
    request: Request,
    file: UploadFile = File(...),
    current_user: User = Depends(get_current_user),
) -> dict:
    """게시글 이미지를 업로드합니다.

    Args:
        request: FastAPI Request 객체.
        file: 업로드할 이미지 파일.
        current_user: 현재 인증된 사용자.

    Returns:
        업로드된 이미지 URL이 포함된 응답.
    """
    return await post_controller.upload_image(file, request)


@post_router.get("/user/{user_name}", status_code=status.HTTP_200_OK)
async def get_posts_by_user(
    user_name: str,
    request: Request,
    offset: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=100),
) -> dict:
    """특정 사용자가 작성한 게시글 목록을 조회합니다."""
    return await post_controller.get_posts(
        offset, limit, request, user_name=user_name
    )


@post_router.get("/{post_id}", status_code=status.HTTP_200_OK)
async def get_post(post_id: int, request: Request) -> dict:
    """게시글 하나를 댓글과 함께 조회합니다."""
    return await post_controller.get_post(post_id, request)


@post_router.put("/{post_id}", status_code=status.HTTP_200_OK)
async def update_post(
    post_id: int,
    post_data: UpdatePostRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
) -> dict:
    """게시글 전체를 교체합니다.

    작성자가 아닌 사용자는 댓글 목록만 바꿀 수 있습니다.

    Args:
        post_id: 교체할 게시글 ID.
        post_data: 새 게시글 내용 (댓글 목록 포함).
        request: FastAPI Request 객체.
        current_user: 현재 인증된 사용자.

    Returns:
        교체된 게시글이 포함된 응답.
    """
    return await post_controller.update_post(post_id, post_data, current_user, request)


@post_router.delete("/{post_id}", status_code=status.HTTP_200_OK)
async def delete_post(
    post_id: int,
    request: Request,
    current_user: User = Depends(get_current_user),
) -> dict:
    """게시글을 삭제합니다. 작성자만 가능합니다."""
    return await post_controller.delete_post(post_id, current_user, request)


# ============ 댓글 라우터 ============


@post_router.post("/{post_id}/comments", status_code=status.HTTP_201_CREATED)
async def create_comment(
    post_id: int,
    comment_data: CreateCommentRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
) -> dict:
    """게시글에 댓글을 추가합니다."""
    return await post_controller.create_comment(
        post_id, comment_data, current_user, request
    )


@post_router.delete("/{post_id}/comments/{index}", status_code=status.HTTP_200_OK)
async def delete_comment(
    post_id: int,
    index: int,
    request: Request,
    current_user: User = Depends(get_current_user),
) -> dict:
    """index 위치의 댓글을 삭제합니다.

    Args:
        post_id: 게시글 ID.
        index: 댓글 목록에서의 위치 (0부터 시작).
        request: FastAPI Request 객체.
        current_user: 현재 인증된 사용자.

    Returns:
        댓글이 삭제된 게시글이 포함된 응답.
    """
    return await post_controller.delete_comment(post_id, index, current_user, request)
