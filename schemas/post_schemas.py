"""post_schemas: 게시글(책 리뷰) 관련 Pydantic 모델 모듈.

게시글 생성, 전체 교체 요청 스키마를 정의합니다.
"""

from pydantic import BaseModel, Field, field_validator

from models.post_models import MAX_RATING, MIN_RATING
from schemas.comment_schemas import CommentItem
from utils.file_utils import UPLOAD_URL_PREFIX


def _validate_not_blank(v: str, message: str) -> str:
    v = v.strip()
    if not v:
        raise ValueError(message)
    return v


class BookInfo(BaseModel):
    """리뷰 대상 책 정보.

    Attributes:
        title: 책 제목.
        authors: 저자 (쉼표로 구분된 문자열).
        image: 표지 이미지 URL.
    """

    title: str = Field(..., min_length=1, max_length=300)
    authors: str = Field("", max_length=500)
    image: str | None = Field(None, max_length=1000)

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _validate_not_blank(v, "책 제목은 비어 있을 수 없습니다.")


class ReviewInfo(BaseModel):
    """리뷰 내용.

    Attributes:
        rating: 평점 (1~5).
        description: 리뷰 본문.
    """

    rating: int = Field(..., ge=MIN_RATING, le=MAX_RATING)
    description: str = Field(..., min_length=1, max_length=10000)

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str) -> str:
        return _validate_not_blank(v, "리뷰 내용은 비어 있을 수 없습니다.")


class CreatePostRequest(BaseModel):
    """게시글 생성 요청 모델.

    multipart 폼 필드(title, bookTitle, bookAuthors, bookImage, rating, description)에서 만들어집니다.
    """

    title: str = Field(..., min_length=1, max_length=200)
    book: BookInfo
    review: ReviewInfo

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        return _validate_not_blank(v, "제목은 비어 있을 수 없습니다.")


class UpdatePostRequest(CreatePostRequest):
    """게시글 전체 교체 요청 모델.

    댓글 목록도 통째로 교체됩니다. 댓글 추가/삭제는 받아온 목록을 수정해서 다시 보내는 방식입니다.

    Attributes:
        image_url: 첨부 이미지 경로 (POST /posts/image 응답값).
        comments: 새 댓글 목록 (작성 순서).
    """

    image_url: str | None = Field(None, max_length=500)
    comments: list[CommentItem] = Field(default_factory=list)

    @field_validator("image_url")
    @classmethod
    def validate_image_url(cls, v: str | None) -> str | None:
        """이미지 경로 형식을 검증합니다.

        서버에 업로드된 이미지(/uploads/...)만 참조할 수 있습니다.

        Raises:
            ValueError: 업로드 경로가 아니거나 허용되지 않은 이미지 형식인 경우.
        """
        if v is None:
            return None
        if not v.startswith(f"{UPLOAD_URL_PREFIX}/") or ".." in v:
            raise ValueError("이미지는 POST /posts/image로 업로드한 경로만 사용할 수 있습니다.")
        allowed_extensions = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
        if not any(v.lower().endswith(ext) for ext in allowed_extensions):
            raise ValueError(
                "이미지는 .jpg, .jpeg, .png, .gif, .webp 형식만 허용됩니다."
            )
        return v
