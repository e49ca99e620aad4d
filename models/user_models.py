"""user_models: 사용자 관련 데이터 모델 및 함수 모듈.

사용자 데이터 클래스와, 사용자 조회/생성/수정/삭제 및 실시간 연결(socket_id) 관리 함수를 제공합니다.
"""

from dataclasses import dataclass
from datetime import datetime

from core.config import settings
from database.connection import get_connection, transactional


# SQL Injection 방지: 허용된 컬럼명 whitelist
ALLOWED_USER_COLUMNS = {"user_name", "email", "password", "profile_img"}


@dataclass(frozen=True)
class User:
    """사용자 데이터 클래스.

    Attributes:
        id: 사용자 고유 식별자.
        user_name: 사용자명 (고유).
        email: 이메일 주소 (고유).
        password: bcrypt 해시.
        profile_image_url: 프로필 이미지 경로.
        socket_id: 현재 연결된 실시간 연결 ID (미접속 시 None).
        created_at: 생성 시간.
        updated_at: 수정 시간.
    """

    id: int
    user_name: str
    email: str
    password: str
    profile_image_url: str | None = None
    socket_id: str | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def is_online(self) -> bool:
        """실시간 연결이 열려 있는지 확인합니다."""
        return self.socket_id is not None

    @property
    def profileImage(self) -> str:
        """프로필 이미지 경로를 반환합니다. 없으면 기본 이미지."""
        return self.profile_image_url or settings.DEFAULT_PROFILE_IMAGE


USER_SELECT_FIELDS = (
    "id, user_name, email, password, profile_img, socket_id, created_at, updated_at"
)


def _row_to_user(row: tuple) -> User:
    """데이터베이스 행을 User 객체로 변환합니다.

    Args:
        row: (id, user_name, email, password, profile_img, socket_id, created_at, updated_at)
    """
    return User(
        id=row[0],
        user_name=row[1],
        email=row[2],
        password=row[3],
        profile_image_url=row[4],
        socket_id=row[5],
        created_at=row[6],
        updated_at=row[7],
    )


async def _fetch_one_user(where: str, params: tuple) -> User | None:
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {USER_SELECT_FIELDS} FROM user WHERE {where}",
                params,
            )
            row = await cur.fetchone()
            return _row_to_user(row) if row else None


async def get_user_by_id(user_id: int) -> User | None:
    """ID로 사용자를 조회합니다.

    Args:
        user_id: 조회할 사용자의 ID.

    Returns:
        사용자 객체, 없으면 None.
    """
    return await _fetch_one_user("id = %s", (user_id,))


async def get_user_by_email(email: str) -> User | None:
    """이메일로 사용자를 조회합니다."""
    return await _fetch_one_user("email = %s", (email,))


async def get_user_by_user_name(user_name: str) -> User | None:
    """사용자명으로 사용자를 조회합니다."""
    return await _fetch_one_user("user_name = %s", (user_name,))


async def get_user_by_identifier(identifier: str) -> User | None:
    """사용자명 또는 이메일로 사용자를 조회합니다 (로그인용).

    Args:
        identifier: 사용자명 또는 이메일.

    Returns:
        사용자 객체, 없으면 None.
    """
    return await _fetch_one_user(
        "user_name = %s OR email = %s LIMIT 1", (identifier, identifier)
    )


async def get_all_users() -> list[User]:
    """전체 사용자 목록을 가입순으로 조회합니다."""
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(f"SELECT {USER_SELECT_FIELDS} FROM user ORDER BY id ASC")
            rows = await cur.fetchall()
            return [_row_to_user(row) for row in rows]


async def add_user(
    user_name: str,
    email: str,
    password: str,
    profile_image_url: str | None = None,
) -> User:
    """새 사용자를 추가합니다.

    Args:
        user_name: 사용자명.
        email: 이메일 주소.
        password: 해싱된 비밀번호.
        profile_image_url: 프로필 이미지 경로.

    Returns:
        생성된 사용자 객체.

    Raises:
        pymysql.err.IntegrityError: 사용자명/이메일이 중복된 경우 (1062).
    """
    async with transactional() as cur:
        await cur.execute(
            """
            INSERT INTO user (user_name, email, password, profile_img)
            VALUES (%s, %s, %s, %s)
            """,
            (user_name, email, password, profile_image_url),
        )
        user_id = cur.lastrowid

        await cur.execute(
            f"SELECT {USER_SELECT_FIELDS} FROM user WHERE id = %s",
            (user_id,),
        )
        row = await cur.fetchone()
        if not row:
            raise RuntimeError(f"User 생성 직후 조회 실패: user_id={user_id}")
        return _row_to_user(row)


async def update_user(
    user_id: int,
    user_name: str | None = None,
    email: str | None = None,
    password: str | None = None,
    profile_image_url: str | None = None,
) -> User | None:
    """사용자 정보를 업데이트합니다.

    None이 아닌 필드만 갱신합니다. 사용자명이 바뀌면 작성한 게시글과 댓글의
    사용자명도 함께 바뀝니다.

    Returns:
        업데이트된 사용자 객체, 사용자가 없으면 None.

    Raises:
        pymysql.err.IntegrityError: 사용자명/이메일이 다른 사용자와 중복된 경우.
    """
    candidates = {
        "user_name": user_name,
        "email": email,
        "password": password,
        "profile_img": profile_image_url,
    }
    changes = {column: value for column, value in candidates.items() if value is not None}

    if not changes:
        return await get_user_by_id(user_id)

    # SQL Injection 방지: 컬럼명 검증
    for column in changes:
        if column not in ALLOWED_USER_COLUMNS:
            raise ValueError(f"Invalid column name: {column}")

    set_clause = ", ".join(f"{column} = %s" for column in changes)

    async with transactional() as cur:
        await cur.execute(
            "SELECT user_name FROM user WHERE id = %s FOR UPDATE",
            (user_id,),
        )
        current = await cur.fetchone()
        if not current:
            return None

        await cur.execute(
            f"UPDATE user SET {set_clause} WHERE id = %s",
            (*changes.values(), user_id),
        )

        # 작성한 게시글과 댓글의 사용자명도 같은 트랜잭션에서 변경
        if user_name is not None and user_name != current[0]:
            await cur.execute(
                "UPDATE post SET user_name = %s WHERE author_id = %s",
                (user_name, user_id),
            )
            await cur.execute(
                "UPDATE post_comment SET username = %s WHERE username = %s",
                (user_name, current[0]),
            )

        await cur.execute(
            f"SELECT {USER_SELECT_FIELDS} FROM user WHERE id = %s",
            (user_id,),
        )
        row = await cur.fetchone()
        return _row_to_user(row) if row else None


async def delete_user(user_id: int) -> bool:
    """사용자를 삭제합니다.

    refresh_token 행은 외래키 CASCADE로 함께 삭제됩니다.
    작성한 게시글은 남고 author_id만 NULL이 되어 더 이상 누구도 수정할 수 없습니다.

    Returns:
        삭제 성공 여부.
    """
    async with transactional() as cur:
        await cur.execute("DELETE FROM user WHERE id = %s", (user_id,))
        return cur.rowcount > 0


# ============ 실시간 연결 (presence) ============


async def set_socket(user_id: int, socket_id: str) -> bool:
    """사용자의 현재 실시간 연결 ID를 기록합니다.

    사용자당 하나의 연결만 추적하므로 이전 값은 덮어씁니다.

    Returns:
        사용자가 존재하여 기록되었으면 True.
    """
    async with transactional() as cur:
        await cur.execute(
            "UPDATE user SET socket_id = %s WHERE id = %s",
            (socket_id, user_id),
        )
        if cur.rowcount > 0:
            return True
        # 같은 값으로 갱신하면 rowcount가 0이므로 존재 여부를 따로 확인
        await cur.execute("SELECT 1 FROM user WHERE id = %s", (user_id,))
        return await cur.fetchone() is not None


async def clear_socket(socket_id: str) -> int | None:
    """연결 ID로 사용자를 찾아 연결 정보를 지웁니다.

    연결 종료 이벤트에는 연결 ID만 있으므로 사용자 ID가 아닌 연결 ID로 검색합니다.

    Returns:
        연결이 해제된 사용자 ID, 해당 연결을 가진 사용자가 없으면 None.
    """
    async with transactional() as cur:
        await cur.execute(
            "SELECT id FROM user WHERE socket_id = %s FOR UPDATE",
            (socket_id,),
        )
        row = await cur.fetchone()
        if not row:
            return None
        await cur.execute(
            "UPDATE user SET socket_id = NULL WHERE id = %s",
            (row[0],),
        )
        return row[0]


async def get_online_users(excluding_user_id: int | None = None) -> list[User]:
    """실시간 연결이 열린 사용자 목록을 조회합니다.

    Args:
        excluding_user_id: 결과에서 제외할 사용자 ID (요청자 본인).

    Returns:
        온라인 사용자 목록.
    """
    where = "socket_id IS NOT NULL"
    params: list = []
    if excluding_user_id is not None:
        where += " AND id <> %s"
        params.append(excluding_user_id)

    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute(
                f"SELECT {USER_SELECT_FIELDS} FROM user WHERE {where} ORDER BY user_name ASC",
                params,
            )
            rows = await cur.fetchall()
            return [_row_to_user(row) for row in rows]


async def reset_all_sockets() -> int:
    """모든 사용자의 연결 정보를 지웁니다.

    서버가 재시작되면 이전 프로세스의 연결은 모두 끊긴 상태이므로 시작 시 호출합니다.

    Returns:
        정리된 사용자 수.
    """
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute("UPDATE user SET socket_id = NULL WHERE socket_id IS NOT NULL")
            return cur.rowcount
