"""controllers: 요청 핸들러 패키지.

인증, 사용자, 게시글, 채팅 관련 컨트롤러 모듈을 제공합니다.
"""

from . import auth_controller
from . import user_controller
from . import post_controller
from . import chat_controller

__all__ = [
    "auth_controller",
    "user_controller",
    "post_controller",
    "chat_controller",
]
