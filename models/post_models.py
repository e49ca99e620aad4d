"""post_models: 게시글(책 리뷰)과 댓글 관련 데이터 모델 및 함수 모듈.

게시글은 책 정보와 리뷰(평점, 설명), 순서가 보존되는 댓글 목록을 가집니다.
댓글은 post_comment 테이블에 position 순서로 저장됩니다.
"""

from dataclasses import dataclass, field
from datetime import datetime

from database.connection import get_connection, transactional


MIN_RATING = 1
MAX_RATING = 5

POST_SELECT_FIELDS = """
    id, user_name, title, book_title, book_authors, book_image,
    rating, description, image_url, created_at, updated_at, deleted_at, author_id
"""


@dataclass(frozen=True)
class Comment:
    """댓글 데이터 클래스.

    Attributes:
        username: 작성자 사용자명.
        content: 내용.
    """

    username: str
    content: str


@dataclass
class Post:
    """게시글 데이터 클래스.

    Attributes:
        id: 게시글 고유 식별자.
        user_name: 작성자 사용자명.
        title: 게시글 제목.
        book_title: 책 제목.
        book_authors: 책 저자 (쉼표로 구분).
        book_image: 책 표지 이미지 URL.
        rating: 평점 (1~5).
        description: 리뷰 본문.
        image_url: 첨부 이미지 경로.
        author_id: 작성자 사용자 ID. 작성자가 탈퇴하면 None.
        comments: 댓글 목록 (작성 순서).
        created_at: 생성 시간.
        updated_at: 수정 시간.
        deleted_at: 삭제 시간.
    """

    id: int
    user_name: str
    title: str
    book_title: str
    book_authors: str
    book_image: str | None
    rating: int
    description: str
    image_url: str | None = None
    author_id: int | None = None
    comments: list[Comment] = field(default_factory=list)
    created_at: datetime | None = None
    updated_at: datetime | None = None
    deleted_at: datetime | None = None

    @property
    def is_deleted(self) -> bool:
        """게시글이 삭제되었는지 확인합니다."""
        return self.deleted_at is not None


def _row_to_post(row: tuple, comments: list[Comment] | None = None) -> Post:
    """데이터베이스 행을 Post 객체로 변환합니다."""
    return Post(
        id=row[0],
        user_name=row[1],
        title=row[2],
        book_title=row[3],
        book_authors=row[4],
        book_image=row[5],
        rating=row[6],
        description=row[7],
        image_url=row[8],
        created_at=row[9],
        updated_at=row[10],
        deleted_at=row[11],
        author_id=row[12],
        comments=list(comments) if comments else [],
    )


# ============ 댓글 헬퍼 ============


async def _fetch_comments(cur, post_ids: list[int]) -> dict[int, list[Comment]]:
    """여러 게시글의 댓글을 한 번에 조회합니다 (N+1 방지)."""
    if not post_ids:
        return {}
    placeholders = ", ".join(["%s"] * len(post_ids))
    await cur.execute(
        f"""
        SELECT post_id, username, content
        FROM post_comment
        WHERE post_id IN ({placeholders})
        ORDER BY post_id ASC, position ASC
        """,
        post_ids,
    )
    rows = await cur.fetchall()
    result: dict[int, list[Comment]] = {post_id: [] for post_id in post_ids}
    for post_id, username, content in rows:
        result[post_id].append(Comment(username=username, content=content))
    return result


async def _write_comments(cur, post_id: int, comments: list[Comment]) -> None:
    """게시글의 댓글 목록 전체를 주어진 목록으로 교체합니다."""
    await cur.execute("DELETE FROM post_comment WHERE post_id = %s", (post_id,))
    if comments:
        await cur.executemany(
            """
            INSERT INTO post_comment (post_id, position, username, content)
            VALUES (%s, %s, %s, %s)
            """,
            [
                (post_id, position, comment.username, comment.content)
                for position, comment in enumerate(comments)
            ],
        )


async def _select_post(cur, post_id: int, *, for_update: bool = False) -> Post | None:
    lock = " FOR UPDATE" if for_update else ""
    await cur.execute(
        f"""
        SELECT {POST_SELECT_FIELDS}
        FROM post
        WHERE id = %s AND deleted_at IS NULL{lock}
        """,
        (post_id,),
    )
    row = await cur.fetchone()
    if not row:
        return None
    comments = await _fetch_comments(cur, [post_id])
    return _row_to_post(row, comments[post_id])


# ============ 게시글 관련 함수 ============


async def get_post_by_id(post_id: int) -> Post | None:
    """ID로 게시글을 댓글과 함께 조회합니다.

    Args:
        post_id: 조회할 게시글 ID.

    Returns:
        게시글 객체, 없거나 삭제된 경우 None.
    """
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            return await _select_post(cur, post_id)


async def get_total_posts_count(user_name: str | None = None) -> int:
    """삭제되지 않은 게시글의 총 개수를 반환합니다.

    Args:
        user_name: 작성자 사용자명으로 필터링. None이면 전체.
    """
    where = "deleted_at IS NULL"
    params: list = []
    if user_name is not None:
        where += " AND user_name = %s"
        params.append(user_name)

    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(f"SELECT COUNT(*) FROM post WHERE {where}", params)
            row = await cur.fetchone()
            return row[0] if row else 0


async def get_posts(
    offset: int = 0,
    limit: int = 50,
    user_name: str | None = None,
) -> list[Post]:
    """게시글 목록을 최신순으로 댓글과 함께 조회합니다.

    Args:
        offset: 시작 위치.
        limit: 조회할 개수.
        user_name: 작성자 사용자명으로 필터링. None이면 전체.

    Returns:
        게시글 목록.
    """
    where = "deleted_at IS NULL"
    params: list = []
    if user_name is not None:
        where += " AND user_name = %s"
        params.append(user_name)
    params.extend([limit, offset])

    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"""
                SELECT {POST_SELECT_FIELDS}
                FROM post
                WHERE {where}
                ORDER BY created_at DESC, id DESC
                LIMIT %s OFFSET %s
                """,
                params,
            )
            rows = await cur.fetchall()
            comments = await _fetch_comments(cur, [row[0] for row in rows])
            return [_row_to_post(row, comments.get(row[0])) for row in rows]


async def create_post(
    author_id: int,
    user_name: str,
    title: str,
    book_title: str,
    book_authors: str,
    book_image: str | None,
    rating: int,
    description: str,
    image_url: str | None = None,
) -> Post:
    """새 게시글을 생성합니다. 댓글 목록은 비어 있습니다.

    Returns:
        생성된 게시글 객체.
    """
    async with transactional() as cur:
        await cur.execute(
            """
            INSERT INTO post (author_id, user_name, title, book_title, book_authors,
                              book_image, rating, description, image_url)
            VALUES (%s, %s, %s, %s, %s, %s, %s, %s, %s)
            """,
            (
                author_id,
                user_name,
                title,
                book_title,
                book_authors,
                book_image,
                rating,
                description,
                image_url,
            ),
        )
        post_id = cur.lastrowid

        post = await _select_post(cur, post_id)
        if post is None:
            raise RuntimeError(f"Post 생성 직후 조회 실패: post_id={post_id}")
        return post


async def replace_post(
    post_id: int,
    title: str,
    book_title: str,
    book_authors: str,
    book_image: str | None,
    rating: int,
    description: str,
    image_url: str | None,
    comments: list[Comment],
) -> Post | None:
    """게시글 전체를 교체합니다 (댓글 목록 포함).

    동시에 두 요청이 댓글 목록을 교체하면 나중에 커밋된 쪽이 이깁니다.

    Returns:
        교체된 게시글 객체, 없거나 삭제된 경우 None.
    """
    async with transactional() as cur:
        if await _select_post(cur, post_id, for_update=True) is None:
            return None

        await cur.execute(
            """
            UPDATE post
            SET title = %s, book_title = %s, book_authors = %s, book_image = %s,
                rating = %s, description = %s, image_url = %s
            WHERE id = %s
            """,
            (
                title,
                book_title,
                book_authors,
                book_image,
                rating,
                description,
                image_url,
                post_id,
            ),
        )
        await _write_comments(cur, post_id, comments)

        return await _select_post(cur, post_id)


async def delete_post(post_id: int) -> bool:
    """게시글을 삭제합니다.

    소프트 삭제를 수행하여 deleted_at을 현재 시간으로 설정합니다.

    Returns:
        삭제 성공 여부. 없거나 이미 삭제된 경우 False.
    """
    async with transactional() as cur:
        await cur.execute(
            """
            UPDATE post
            SET deleted_at = NOW()
            WHERE id = %s AND deleted_at IS NULL
            """,
            (post_id,),
        )
        return cur.rowcount > 0


async def append_comment(post_id: int, comment: Comment) -> Post | None:
    """게시글 댓글 목록 끝에 댓글을 추가합니다.

    게시글 행을 잠그고 처리하므로 동시에 추가된 댓글이 유실되지 않습니다.

    Returns:
        갱신된 게시글 객체, 없거나 삭제된 경우 None.
    """
    async with transactional() as cur:
        post = await _select_post(cur, post_id, for_update=True)
        if post is None:
            return None

        await cur.execute(
            """
            INSERT INTO post_comment (post_id, position, username, content)
            VALUES (%s, %s, %s, %s)
            """,
            (post_id, len(post.comments), comment.username, comment.content),
        )
        post.comments.append(comment)
        return post


async def remove_comment_at(
    post_id: int, index: int, expected: Comment | None = None
) -> Post | None:
    """게시글 댓글 목록에서 index 위치의 댓글을 삭제합니다.

    나머지 댓글의 순서는 유지됩니다. expected가 주어지면 잠금 이후에도
    해당 위치의 댓글이 expected와 같을 때만 삭제합니다.

    Returns:
        갱신된 게시글 객체. 게시글이 없거나, index가 범위를 벗어나거나,
        해당 위치의 댓글이 expected와 다르면 None.
    """
    async with transactional() as cur:
        post = await _select_post(cur, post_id, for_update=True)
        if post is None or not 0 <= index < len(post.comments):
            return None
        if expected is not None and post.comments[index] != expected:
            return None

        del post.comments[index]
        await _write_comments(cur, post_id, post.comments)
        return post
