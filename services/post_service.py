"""post_service: 게시글과 댓글 관련 비즈니스 로직을 처리하는 서비스."""

import logging

from models import post_models
from models.post_models import Comment, Post
from models.user_models import User
from schemas.post_schemas import CreatePostRequest, UpdatePostRequest
from utils.exceptions import forbidden_error, not_found_error

logger = logging.getLogger(__name__)


def _content_fields(
    title: str,
    book_title: str,
    book_authors: str,
    book_image: str | None,
    rating: int,
    description: str,
    image_url: str | None,
) -> tuple:
    return (title, book_title, book_authors, book_image, rating, description, image_url)


def _is_author(post: Post, user: User) -> bool:
    """게시글 작성자인지 사용자 ID로 확인합니다. 탈퇴한 작성자의 글은 누구의 글도 아닙니다."""
    return post.author_id is not None and post.author_id == user.id


class PostService:
    """게시글 관리 서비스."""

    @staticmethod
    async def get_posts(
        offset: int, limit: int, user_name: str | None = None
    ) -> tuple[list[Post], int, bool]:
        """게시글 목록과 전체 개수, 다음 페이지 존재 여부를 반환합니다."""
        posts = await post_models.get_posts(offset, limit, user_name=user_name)
        total_count = await post_models.get_total_posts_count(user_name=user_name)
        has_more = offset + limit < total_count
        return posts, total_count, has_more

    @staticmethod
    async def get_post(post_id: int, timestamp: str) -> Post:
        """게시글 조회 및 존재 확인."""
        post = await post_models.get_post_by_id(post_id)
        if not post:
            raise not_found_error("post", timestamp)
        return post

    @staticmethod
    async def create_post(
        current_user: User, post_data: CreatePostRequest, image_url: str | None
    ) -> Post:
        """게시글 생성. 작성자는 요청한 사용자입니다."""
        post = await post_models.create_post(
            author_id=current_user.id,
            user_name=current_user.user_name,
            title=post_data.title,
            book_title=post_data.book.title,
            book_authors=post_data.book.authors,
            book_image=post_data.book.image,
            rating=post_data.review.rating,
            description=post_data.review.description,
            image_url=image_url,
        )
        logger.info("게시글 생성: id=%s user_name=%s", post.id, post.user_name)
        return post

    @staticmethod
    async def replace_post(
        post_id: int,
        post_data: UpdatePostRequest,
        current_user: User,
        timestamp: str,
    ) -> Post:
        """게시글 전체 교체.

        작성자가 아닌 사용자는 댓글 목록만 바꿀 수 있습니다.
        댓글 목록은 통째로 교체되므로 동시에 교체하면 나중 요청이 이깁니다.

        Raises:
            HTTPException: 없으면 404, 작성자가 아닌데 본문을 바꾸면 403.
        """
        # 1. 존재 확인
        post = await post_models.get_post_by_id(post_id)
        if not post:
            raise not_found_error("post", timestamp)

        # 2. 권한 확인
        current = _content_fields(
            post.title,
            post.book_title,
            post.book_authors,
            post.book_image,
            post.rating,
            post.description,
            post.image_url,
        )
        requested = _content_fields(
            post_data.title,
            post_data.book.title,
            post_data.book.authors,
            post_data.book.image,
            post_data.review.rating,
            post_data.review.description,
            post_data.image_url,
        )
        if not _is_author(post, current_user) and current != requested:
            raise forbidden_error(
                "edit", timestamp, "게시글 작성자만 수정할 수 있습니다."
            )

        # 3. DB 교체
        updated_post = await post_models.replace_post(
            post_id,
            title=post_data.title,
            book_title=post_data.book.title,
            book_authors=post_data.book.authors,
            book_image=post_data.book.image,
            rating=post_data.review.rating,
            description=post_data.review.description,
            image_url=post_data.image_url,
            comments=[
                Comment(username=c.username, content=c.content)
                for c in post_data.comments
            ],
        )
        if not updated_post:
            raise not_found_error("post", timestamp)
        return updated_post

    @staticmethod
    async def delete_post(post_id: int, current_user: User, timestamp: str) -> None:
        """게시글 삭제. 작성자만 가능합니다."""
        # 1. 존재 확인
        post = await post_models.get_post_by_id(post_id)
        if not post:
            raise not_found_error("post", timestamp)

        # 2. 권한 확인
        if not _is_author(post, current_user):
            raise forbidden_error(
                "delete", timestamp, "게시글 작성자만 삭제할 수 있습니다."
            )

        # 3. DB 삭제. 그 사이 다른 요청이 먼저 삭제했으면 404
        if not await post_models.delete_post(post_id):
            raise not_found_error("post", timestamp)

        logger.info("게시글 삭제: id=%s", post_id)

    @staticmethod
    async def add_comment(
        post_id: int, content: str, current_user: User, timestamp: str
    ) -> Post:
        """게시글에 댓글을 추가합니다. 작성자는 요청한 사용자입니다."""
        post = await post_models.append_comment(
            post_id, Comment(username=current_user.user_name, content=content)
        )
        if not post:
            raise not_found_error("post", timestamp)
        return post

    @staticmethod
    async def delete_comment(
        post_id: int, index: int, current_user: User, timestamp: str
    ) -> Post:
        """index 위치의 댓글을 삭제합니다.

        댓글 작성자 또는 게시글 작성자만 삭제할 수 있습니다.

        Raises:
            HTTPException: 게시글이나 댓글이 없으면 404, 권한이 없으면 403.
        """
        post = await post_models.get_post_by_id(post_id)
        if not post:
            raise not_found_error("post", timestamp)

        if not 0 <= index < len(post.comments):
            raise not_found_error("comment", timestamp)

        comment = post.comments[index]
        is_comment_author = comment.username == current_user.user_name
        if not is_comment_author and not _is_author(post, current_user):
            raise forbidden_error(
                "delete", timestamp, "댓글 작성자만 삭제할 수 있습니다."
            )

        # 확인 이후 목록이 바뀌었으면 다른 댓글을 지우지 않도록 expected로 재확인
        updated_post = await post_models.remove_comment_at(
            post_id, index, expected=comment
        )
        if not updated_post:
            raise not_found_error("comment", timestamp)
        return updated_post
