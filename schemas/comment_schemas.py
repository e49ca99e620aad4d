"""comment_schemas: 댓글 관련 Pydantic 모델 모듈.

게시글 전체 교체 시의 댓글 항목과, 댓글 추가 요청 스키마를 정의합니다.
"""

from pydantic import BaseModel, Field, field_validator


def _validate_comment_content(v: str) -> str:
    """댓글 내용을 검증하고 정규화합니다.

    Raises:
        ValueError: 공백을 제거한 내용이 비어 있는 경우.
    """
    v = v.strip()
    if len(v) < 1:
        raise ValueError("댓글 내용은 최소 1자 이상이어야 합니다.")
    return v


class CommentItem(BaseModel):
    """댓글 목록의 한 항목.

    Attributes:
        username: 작성자 사용자명.
        content: 댓글 내용 (1~1000자).
    """

    username: str = Field(..., min_length=1, max_length=30)
    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _validate_comment_content(v)


class CreateCommentRequest(BaseModel):
    """댓글 추가 요청 모델. 작성자는 인증된 사용자로 정해집니다."""

    content: str = Field(..., min_length=1, max_length=1000)

    @field_validator("content")
    @classmethod
    def validate_content(cls, v: str) -> str:
        return _validate_comment_content(v)
