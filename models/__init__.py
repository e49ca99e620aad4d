"""models: 데이터 클래스 및 데이터 관리 함수 패키지.

사용자, Refresh Token, 게시글/댓글, 채팅 메시지 데이터 모델과 MySQL 데이터베이스 관리 함수를 제공합니다.
"""

from .user_models import (
    User,
    get_user_by_id,
    get_user_by_email,
    get_user_by_user_name,
    get_user_by_identifier,
    get_all_users,
    add_user,
    update_user,
    delete_user,
    set_socket,
    clear_socket,
    get_online_users,
    reset_all_sockets,
)

from .token_models import (
    add_refresh_token,
    has_refresh_token,
    remove_refresh_token,
    rotate_refresh_token,
    delete_user_refresh_tokens,
    cleanup_expired_tokens,
)

from .post_models import (
    Post,
    Comment,
    get_post_by_id,
    get_total_posts_count,
    get_posts,
    create_post,
    replace_post,
    delete_post,
    append_comment,
    remove_comment_at,
)

from .message_models import (
    ChatMessage,
    save_message,
    get_conversation,
)

__all__ = [
    # 사용자 모델
    "User",
    "get_user_by_id",
    "get_user_by_email",
    "get_user_by_user_name",
    "get_user_by_identifier",
    "get_all_users",
    "add_user",
    "update_user",
    "delete_user",
    # 실시간 연결
    "set_socket",
    "clear_socket",
    "get_online_users",
    "reset_all_sockets",
    # 리프레시 토큰 모델
    "add_refresh_token",
    "has_refresh_token",
    "remove_refresh_token",
    "rotate_refresh_token",
    "delete_user_refresh_tokens",
    "cleanup_expired_tokens",
    # 게시글 모델
    "Post",
    "Comment",
    "get_post_by_id",
    "get_total_posts_count",
    "get_posts",
    "create_post",
    "replace_post",
    "delete_post",
    "append_comment",
    "remove_comment_at",
    # 채팅 메시지 모델
    "ChatMessage",
    "save_message",
    "get_conversation",
]
