"""post_controller: 게시글(책 리뷰)과 댓글 관련 컨트롤러 모듈.

게시글 CRUD, 이미지 업로드, 댓글 추가/삭제 기능을 제공합니다.
"""

from fastapi import HTTPException, Request, UploadFile
from pydantic import ValidationError

from dependencies.request_context import get_request_timestamp
from models.user_models import User
from schemas.comment_schemas import CreateCommentRequest
from schemas.common import create_response, serialize_post
from schemas.post_schemas import CreatePostRequest, UpdatePostRequest
from services.post_service import PostService
from utils.exceptions import bad_request_error, validation_error
from utils.file_utils import POST_IMAGE_FOLDER, delete_upload_file, save_upload_file


async def _save_post_image(file: UploadFile, timestamp: str) -> str:
    try:
        return await save_upload_file(file, POST_IMAGE_FOLDER)
    except HTTPException as e:
        if isinstance(e.detail, dict):
            e.detail["timestamp"] = timestamp
        raise e


def _parse_rating(rating: str, timestamp: str) -> int:
    """폼 문자열로 받은 평점을 정수로 변환합니다.

    Raises:
        HTTPException 400: 정수가 아닌 경우.
    """
    try:
        return int(rating.strip())
    except ValueError:
        raise bad_request_error(
            "invalid_rating", timestamp, "평점은 1~5 사이의 정수여야 합니다."
        )


# ============ 게시글 관련 핸들러 ============


async def get_posts(
    offset: int,
    limit: int,
    request: Request,
    user_name: str | None = None,
) -> dict:
    """게시글 목록을 최신순으로 조회합니다.

    Args:
        offset: 시작 위치 (0부터 시작).
        limit: 조회할 게시글 수 (1~100).
        request: FastAPI Request 객체.
        user_name: 작성자 사용자명으로 필터링 (선택).

    Returns:
        게시글 목록과 페이지네이션 정보가 포함된 응답 딕셔너리.
    """
    timestamp = get_request_timestamp(request)

    posts, total_count, has_more = await PostService.get_posts(
        offset, limit, user_name=user_name
    )

    return create_response(
        "POSTS_RETRIEVED",
        "게시글 목록 조회에 성공했습니다.",
        data={
            "posts": [serialize_post(post) for post in posts],
            "pagination": {
                "offset": offset,
                "limit": limit,
                "total_count": total_count,
                "has_more": has_more,
            },
        },
        timestamp=timestamp,
    )


async def get_post(post_id: int, request: Request) -> dict:
    """게시글 하나를 댓글과 함께 조회합니다.

    Raises:
        HTTPException 404: 게시글이 없거나 삭제된 경우.
    """
    timestamp = get_request_timestamp(request)

    post = await PostService.get_post(post_id, timestamp)

    return create_response(
        "POST_RETRIEVED",
        "게시글 조회에 성공했습니다.",
        data={"post": serialize_post(post)},
        timestamp=timestamp,
    )


async def create_post(
    title: str | None,
    book_title: str | None,
    book_authors: str | None,
    book_image: str | None,
    rating: str | None,
    description: str | None,
    image: UploadFile | None,
    current_user: User,
    request: Request,
) -> dict:
    """새 게시글을 생성합니다. 작성자는 현재 사용자입니다.

    Args:
        title: 게시글 제목.
        book_title: 책 제목.
        book_authors: 책 저자.
        book_image: 책 표지 이미지 URL.
        rating: 평점 (1~5, 폼 문자열).
        description: 리뷰 본문.
        image: 첨부 이미지 파일 (선택).
        current_user: 현재 인증된 사용자 객체.
        request: FastAPI Request 객체.

    Returns:
        생성된 게시글이 포함된 응답 딕셔너리.

    Raises:
        HTTPException: 필수 항목 누락, 평점 범위 오류, 이미지 오류 시 400.
    """
    timestamp = get_request_timestamp(request)

    if not title or not book_title or not rating or not description:
        raise bad_request_error(
            "missing_required_fields",
            timestamp,
            "title, bookTitle, rating, description은 필수 항목입니다.",
        )

    try:
        post_data = CreatePostRequest(
            title=title,
            book={
                "title": book_title,
                "authors": book_authors or "",
                "image": book_image or None,
            },
            review={
                "rating": _parse_rating(rating, timestamp),
                "description": description,
            },
        )
    except ValidationError as e:
        raise validation_error(e, timestamp)

    image_url = None
    if image and image.filename:
        image_url = await _save_post_image(image, timestamp)

    try:
        post = await PostService.create_post(current_user, post_data, image_url)
    except Exception:
        if image_url:
            delete_upload_file(image_url)
        raise

    return create_response(
        "POST_CREATED",
        "게시글이 생성되었습니다.",
        data={"post": serialize_post(post)},
        timestamp=timestamp,
    )


async def update_post(
    post_id: int,
    post_data: UpdatePostRequest,
    current_user: User,
    request: Request,
) -> dict:
    """게시글 전체를 교체합니다 (댓글 목록 포함).

    Raises:
        HTTPException: 없으면 404, 작성자가 아닌데 댓글 외 항목을 바꾸면 403.
    """
    timestamp = get_request_timestamp(request)

    post = await PostService.replace_post(post_id, post_data, current_user, timestamp)

    return create_response(
        "POST_UPDATED",
        "게시글이 수정되었습니다.",
        data={"post": serialize_post(post)},
        timestamp=timestamp,
    )


async def delete_post(post_id: int, current_user: User, request: Request) -> dict:
    """게시글을 삭제합니다.

    Raises:
        HTTPException: 없으면 404, 작성자가 아니면 403.
    """
    timestamp = get_request_timestamp(request)

    await PostService.delete_post(post_id, current_user, timestamp)

    return create_response(
        "POST_DELETED", "게시글이 삭제되었습니다.", timestamp=timestamp
    )


async def upload_image(file: UploadFile, request: Request) -> dict:
    """게시글 이미지를 업로드하고 URL을 반환합니다.

    반환된 URL은 게시글 교체 요청의 image_url에 사용합니다.

    Raises:
        HTTPException: 잘못된 파일 형식이거나 크기를 초과하면 400.
    """
    timestamp = get_request_timestamp(request)

    url = await _save_post_image(file, timestamp)

    return create_response(
        "IMAGE_UPLOADED",
        "이미지가 업로드되었습니다.",
        data={"url": url},
        timestamp=timestamp,
    )


# ============ 댓글 관련 핸들러 ============


async def create_comment(
    post_id: int,
    comment_data: CreateCommentRequest,
    current_user: User,
    request: Request,
) -> dict:
    """게시글 댓글 목록 끝에 댓글을 추가합니다.

    Raises:
        HTTPException 404: 게시글이 없거나 삭제된 경우.
    """
    timestamp = get_request_timestamp(request)

    post = await PostService.add_comment(
        post_id, comment_data.content, current_user, timestamp
    )

    return create_response(
        "COMMENT_CREATED",
        "댓글이 작성되었습니다.",
        data={"post": serialize_post(post)},
        timestamp=timestamp,
    )


async def delete_comment(
    post_id: int,
    index: int,
    current_user: User,
    request: Request,
) -> dict:
    """index 위치의 댓글을 삭제합니다.

    Raises:
        HTTPException: 게시글이나 댓글이 없으면 404, 권한이 없으면 403.
    """
    timestamp = get_request_timestamp(request)

    post = await PostService.delete_comment(post_id, index, current_user, timestamp)

    return create_response(
        "COMMENT_DELETED",
        "댓글이 삭제되었습니다.",
        data={"post": serialize_post(post)},
        timestamp=timestamp,
    )
