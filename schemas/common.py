"""common: 공통 응답 유틸리티 모듈.

API 응답 생성 및 도메인 객체를 응답용 딕셔너리로 바꾸는 함수를 정의합니다.
"""

from typing import Any

from utils.formatters import format_datetime, utc_timestamp


def create_response(
    code: str,
    message: str,
    data: dict[str, Any] | None = None,
    timestamp: str | None = None,
) -> dict[str, Any]:
    """표준 API 응답 딕셔너리를 생성합니다.

    Args:
        code: 응답 코드 (예: "LOGIN_SUCCESS", "POST_CREATED").
        message: 사용자에게 표시할 메시지.
        data: 응답 데이터 (기본값: 빈 딕셔너리).
        timestamp: 타임스탬프 (기본값: 현재 시간).

    Returns:
        표준 형식의 응답 딕셔너리.
    """
    return {
        "code": code,
        "message": message,
        "data": data if data is not None else {},
        "errors": [],
        "timestamp": timestamp or utc_timestamp(),
    }


def serialize_user(user) -> dict[str, Any]:
    """User 객체를 API 응답용 딕셔너리로 변환합니다.

    비밀번호 해시와 Refresh Token 집합은 포함하지 않습니다.
    """
    return {
        "user_id": user.id,
        "userName": user.user_name,
        "email": user.email,
        "profileImage": user.profileImage,
        "createdAt": format_datetime(user.created_at),
    }


def serialize_online_user(user) -> dict[str, Any]:
    """온라인 사용자 목록 항목을 생성합니다."""
    return {
        "user_id": user.id,
        "userName": user.user_name,
        "socketId": user.socket_id,
        "profileImage": user.profileImage,
    }


def serialize_post(post) -> dict[str, Any]:
    """Post 객체를 API 응답용 딕셔너리로 변환합니다."""
    return {
        "post_id": post.id,
        "userName": post.user_name,
        "title": post.title,
        "book": {
            "title": post.book_title,
            "authors": post.book_authors,
            "image": post.book_image,
        },
        "review": {
            "rating": post.rating,
            "description": post.description,
        },
        "image_url": post.image_url,
        "comments": [
            {"username": comment.username, "content": comment.content}
            for comment in post.comments
        ],
        "created_at": format_datetime(post.created_at),
        "updated_at": format_datetime(post.updated_at),
    }


def serialize_message(message) -> dict[str, Any]:
    """ChatMessage 객체를 응답용 딕셔너리로 변환합니다."""
    return {
        "message_id": message.id,
        "sender": message.sender,
        "receiver": message.receiver,
        "text": message.text,
        "created_at": format_datetime(message.created_at),
    }
