"""test_models: 모델 함수의 SQL을 실제 MySQL에서 검증합니다.

DB_* 환경 변수로 지정한 MySQL에 연결할 수 없으면 건너뜁니다.
"""

from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from fastapi import HTTPException
from pymysql.err import IntegrityError

from models import message_models, post_models, token_models, user_models
from models.post_models import Comment
from services.post_service import PostService

HASHED = "$2b$12$hashedpassword"


@pytest_asyncio.fixture
async def marcus(db):
    return await user_models.add_user("marcus", "marcus@example.com", HASHED)


@pytest_asyncio.fixture
async def epictetus(db):
    return await user_models.add_user("epictetus", "epictetus@example.com", HASHED)


@pytest_asyncio.fixture
async def post(marcus):
    return await post_models.create_post(
        author_id=marcus.id,
        user_name=marcus.user_name,
        title="On anger",
        book_title="De Ira",
        book_authors="Seneca",
        book_image=None,
        rating=4,
        description="Anger is a brief madness.",
    )


def _contents(post) -> list[str]:
    return [c.content for c in post.comments]


class TestPostComments:
    """post_comment의 position 순서 검증."""

    @pytest.mark.asyncio
    async def test_created_post_has_no_comments(self, post, marcus):
        fetched = await post_models.get_post_by_id(post.id)

        assert fetched.comments == []
        assert fetched.author_id == marcus.id
        assert fetched.rating == 4

    @pytest.mark.asyncio
    async def test_append_keeps_insertion_order(self, post):
        for text in ("first", "second", "third"):
            await post_models.append_comment(post.id, Comment("epictetus", text))

        fetched = await post_models.get_post_by_id(post.id)

        assert _contents(fetched) == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_remove_then_append(self, post):
        """중간 댓글을 지워도 순서가 유지되고, 이후 추가된 댓글은 끝에 붙습니다."""
        for text in ("a", "b", "c"):
            await post_models.append_comment(post.id, Comment("epictetus", text))

        removed = await post_models.remove_comment_at(post.id, 1)
        assert _contents(removed) == ["a", "c"]

        await post_models.append_comment(post.id, Comment("marcus", "d"))

        fetched = await post_models.get_post_by_id(post.id)
        assert _contents(fetched) == ["a", "c", "d"]

    @pytest.mark.asyncio
    async def test_remove_skips_when_comment_changed(self, post):
        await post_models.append_comment(post.id, Comment("epictetus", "a"))

        result = await post_models.remove_comment_at(
            post.id, 0, expected=Comment("epictetus", "something else")
        )

        assert result is None
        assert _contents(await post_models.get_post_by_id(post.id)) == ["a"]

    @pytest.mark.asyncio
    async def test_remove_out_of_range(self, post):
        assert await post_models.remove_comment_at(post.id, 0) is None

    @pytest.mark.asyncio
    async def test_replace_post_replaces_comment_list(self, post):
        await post_models.append_comment(post.id, Comment("epictetus", "old"))

        replaced = await post_models.replace_post(
            post.id,
            title=post.title,
            book_title=post.book_title,
            book_authors=post.book_authors,
            book_image=post.book_image,
            rating=5,
            description=post.description,
            image_url="/uploads/posts/cover.jpg",
            comments=[Comment("zeno", "x"), Comment("marcus", "y")],
        )

        assert replaced.rating == 5
        assert [(c.username, c.content) for c in replaced.comments] == [
            ("zeno", "x"),
            ("marcus", "y"),
        ]

    @pytest.mark.asyncio
    async def test_deleted_post_hidden(self, post):
        assert await post_models.delete_post(post.id) is True

        assert await post_models.get_post_by_id(post.id) is None
        assert await post_models.append_comment(post.id, Comment("zeno", "x")) is None
        assert await post_models.delete_post(post.id) is False

    @pytest.mark.asyncio
    async def test_posts_newest_first(self, post, marcus):
        newer = await post_models.create_post(
            author_id=marcus.id,
            user_name=marcus.user_name,
            title="On providence",
            book_title="De Providentia",
            book_authors="Seneca",
            book_image=None,
            rating=5,
            description="Fire tests gold.",
        )

        posts = await post_models.get_posts(0, 10, user_name="marcus")

        assert [p.id for p in posts] == [newer.id, post.id]
        assert await post_models.get_total_posts_count(user_name="marcus") == 2
        assert await post_models.get_total_posts_count(user_name="nobody") == 0


class TestRefreshTokenSet:
    """사용자별 Refresh Token 집합 검증."""

    @staticmethod
    def _expires(days: int = 7) -> datetime:
        return datetime.now(timezone.utc) + timedelta(days=days)

    @pytest.mark.asyncio
    async def test_logout_removes_token(self, marcus):
        await token_models.add_refresh_token(marcus.id, "token-a", self._expires())
        assert await token_models.has_refresh_token(marcus.id, "token-a")

        assert await token_models.remove_refresh_token(marcus.id, "token-a") is True

        assert not await token_models.has_refresh_token(marcus.id, "token-a")
        # 이미 없는 토큰 제거는 오류가 아님
        assert await token_models.remove_refresh_token(marcus.id, "token-a") is False

    @pytest.mark.asyncio
    async def test_remove_keeps_other_tokens(self, marcus):
        await token_models.add_refresh_token(marcus.id, "laptop", self._expires())
        await token_models.add_refresh_token(marcus.id, "phone", self._expires())

        await token_models.remove_refresh_token(marcus.id, "laptop")

        assert await token_models.has_refresh_token(marcus.id, "phone")

    @pytest.mark.asyncio
    async def test_token_belongs_to_one_user(self, marcus, epictetus):
        await token_models.add_refresh_token(marcus.id, "token-a", self._expires())

        assert not await token_models.has_refresh_token(epictetus.id, "token-a")
        assert await token_models.remove_refresh_token(epictetus.id, "token-a") is False

    @pytest.mark.asyncio
    async def test_rotate_once(self, marcus):
        await token_models.add_refresh_token(marcus.id, "old", self._expires())

        assert await token_models.rotate_refresh_token(marcus.id, "old", "new", self._expires())
        assert not await token_models.has_refresh_token(marcus.id, "old")
        assert await token_models.has_refresh_token(marcus.id, "new")

        assert not await token_models.rotate_refresh_token(
            marcus.id, "old", "newer", self._expires()
        )

    @pytest.mark.asyncio
    async def test_expired_token_not_in_set(self, marcus):
        await token_models.add_refresh_token(marcus.id, "stale", self._expires(days=-1))

        assert not await token_models.has_refresh_token(marcus.id, "stale")
        assert await token_models.cleanup_expired_tokens() == 0

    @pytest.mark.asyncio
    async def test_cleanup_and_revoke_all(self, marcus):
        await token_models.add_refresh_token(marcus.id, "stale", self._expires(days=-1))
        await token_models.add_refresh_token(marcus.id, "a", self._expires())
        await token_models.add_refresh_token(marcus.id, "b", self._expires())

        assert await token_models.cleanup_expired_tokens() == 1
        assert await token_models.delete_user_refresh_tokens(marcus.id) == 2

    @pytest.mark.asyncio
    async def test_deleting_user_drops_tokens(self, marcus):
        await token_models.add_refresh_token(marcus.id, "token-a", self._expires())

        assert await user_models.delete_user(marcus.id)

        assert await token_models.delete_user_refresh_tokens(marcus.id) == 0


class TestPresence:
    """socket_id 기록과 해제 검증."""

    @pytest.mark.asyncio
    async def test_newer_socket_overwrites(self, marcus):
        assert await user_models.set_socket(marcus.id, "sock-a")
        assert await user_models.set_socket(marcus.id, "sock-b")

        # 이전 연결이 끊겨도 새 연결은 유지
        assert await user_models.clear_socket("sock-a") is None
        assert (await user_models.get_user_by_id(marcus.id)).socket_id == "sock-b"

        assert await user_models.clear_socket("sock-b") == marcus.id
        assert (await user_models.get_user_by_id(marcus.id)).socket_id is None

    @pytest.mark.asyncio
    async def test_set_same_socket_twice(self, marcus):
        assert await user_models.set_socket(marcus.id, "sock-a")
        assert await user_models.set_socket(marcus.id, "sock-a")

    @pytest.mark.asyncio
    async def test_set_socket_unknown_user(self, db):
        assert await user_models.set_socket(404, "sock-x") is False

    @pytest.mark.asyncio
    async def test_online_users_exclude_caller(self, marcus, epictetus):
        await user_models.set_socket(marcus.id, "sock-m")
        await user_models.set_socket(epictetus.id, "sock-e")

        online = await user_models.get_online_users(excluding_user_id=marcus.id)

        assert [u.id for u in online] == [epictetus.id]

    @pytest.mark.asyncio
    async def test_reset_all_sockets(self, marcus, epictetus):
        await user_models.set_socket(marcus.id, "sock-m")
        await user_models.set_socket(epictetus.id, "sock-e")

        assert await user_models.reset_all_sockets() == 2
        assert await user_models.get_online_users() == []


class TestRename:
    """사용자명 변경 시 게시글/댓글 작성자 정보 검증."""

    @pytest.mark.asyncio
    async def test_rename_moves_posts_and_comments(self, marcus, post):
        await post_models.append_comment(post.id, Comment("marcus", "note to self"))

        renamed = await user_models.update_user(marcus.id, user_name="aurelius")

        assert renamed.user_name == "aurelius"
        fetched = await post_models.get_post_by_id(post.id)
        assert fetched.user_name == "aurelius"
        assert fetched.comments == [Comment("aurelius", "note to self")]
        assert [p.id for p in await post_models.get_posts(user_name="aurelius")] == [post.id]
        assert await post_models.get_posts(user_name="marcus") == []

    @pytest.mark.asyncio
    async def test_new_owner_of_old_name_cannot_delete(self, marcus, post):
        await user_models.update_user(marcus.id, user_name="aurelius")
        newcomer = await user_models.add_user("marcus", "newcomer@example.com", HASHED)

        with pytest.raises(HTTPException) as exc_info:
            await PostService.delete_post(post.id, newcomer, "ts")

        assert exc_info.value.status_code == 403
        assert await post_models.get_post_by_id(post.id) is not None

    @pytest.mark.asyncio
    async def test_deleted_author_leaves_read_only_post(self, marcus, post):
        await user_models.delete_user(marcus.id)
        newcomer = await user_models.add_user("marcus", "newcomer@example.com", HASHED)

        fetched = await post_models.get_post_by_id(post.id)
        assert fetched.author_id is None

        with pytest.raises(HTTPException) as exc_info:
            await PostService.delete_post(post.id, newcomer, "ts")
        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_duplicate_rename_rejected(self, marcus, epictetus):
        with pytest.raises(IntegrityError):
            await user_models.update_user(marcus.id, user_name="epictetus")

        assert (await user_models.get_user_by_id(marcus.id)).user_name == "marcus"


class TestMessages:
    """chat_message 기록 검증."""

    @pytest.mark.asyncio
    async def test_conversation_in_order(self, marcus, epictetus):
        await message_models.save_message(marcus.id, epictetus.id, "a")
        await message_models.save_message(epictetus.id, marcus.id, "b")
        await message_models.save_message(marcus.id, 999, "elsewhere")
        await message_models.save_message(marcus.id, epictetus.id, "c")

        history = await message_models.get_conversation(marcus.id, epictetus.id)

        assert [m.text for m in history] == ["a", "b", "c"]

        latest = await message_models.get_conversation(epictetus.id, marcus.id, limit=2)

        assert [m.text for m in latest] == ["b", "c"]
