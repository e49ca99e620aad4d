import os
import sys
import tempfile

# 앱 import 전에 필요한 설정 주입 (DB 연결은 테스트에서 만들지 않음)
os.environ["TESTING"] = "true"
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-stoicreads-0123456789")
os.environ.setdefault("DB_HOST", "127.0.0.1")
os.environ.setdefault("DB_PORT", "3306")
os.environ.setdefault("DB_USER", "test")
os.environ.setdefault("DB_PASSWORD", "test")
os.environ.setdefault("DB_NAME", "stoicreads_test")
os.environ.setdefault("UPLOAD_DIR", tempfile.mkdtemp(prefix="stoicreads-uploads-"))

sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from datetime import datetime  # noqa: E402
from unittest.mock import MagicMock  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from faker import Faker  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from database.connection import close_db, get_connection, init_db  # noqa: E402
from main import app  # noqa: E402
from models.post_models import Comment, Post  # noqa: E402
from models.user_models import User  # noqa: E402
from utils.jwt_utils import create_access_token  # noqa: E402

SCHEMA_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "database", "schema.sql"
)
TABLES = ("chat_message", "post_comment", "post", "refresh_token", "user")

_db_unavailable: str | None = None


async def apply_schema() -> None:
    """schema.sql의 CREATE TABLE 문을 실행합니다."""
    with open(SCHEMA_PATH, encoding="utf-8") as f:
        statements = [s.strip() for s in f.read().split(";") if s.strip()]
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            for statement in statements:
                await cur.execute(statement)


async def clear_all_data() -> None:
    """테스트용 헬퍼: 모든 데이터를 삭제합니다."""
    async with get_connection() as conn:
        async with conn.cursor() as cur:
            await cur.execute("SET FOREIGN_KEY_CHECKS = 0")
            for table in TABLES:
                await cur.execute(f"TRUNCATE TABLE {table}")
            await cur.execute("SET FOREIGN_KEY_CHECKS = 1")


@pytest_asyncio.fixture(scope="function")
async def db():
    """실제 MySQL을 쓰는 모델 테스트용. 테스트마다 데이터를 비우고 연결을 닫습니다.

    DB_* 환경 변수의 MySQL에 연결할 수 없으면 테스트를 건너뜁니다.
    """
    global _db_unavailable
    if _db_unavailable:
        pytest.skip(_db_unavailable)
    try:
        await init_db()
    except Exception as e:
        _db_unavailable = f"MySQL 연결 불가: {e}"
        pytest.skip(_db_unavailable)

    try:
        await apply_schema()
        await clear_all_data()
        yield
    finally:
        await close_db()


@pytest_asyncio.fixture
async def client():
    """API 테스트를 위한 Async Client (lifespan 미실행, DB 없음)"""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def fake():
    return Faker()


@pytest.fixture
def mock_request():
    """타임스탬프가 고정된 Mock Request 객체."""
    request = MagicMock()
    request.state.request_time = datetime(2026, 2, 4, 12, 0, 0)
    return request


@pytest.fixture
def make_user(fake):
    """User 객체 팩토리."""

    def _make(user_id: int = 1, **overrides) -> User:
        fields = {
            "id": user_id,
            "user_name": f"{fake.lexify(text='reader?????').lower()}{user_id}",
            "email": f"user{user_id}_{fake.lexify(text='????').lower()}@example.com",
            "password": "$2b$12$hashedpassword",
            "profile_image_url": None,
            "socket_id": None,
            "created_at": datetime(2026, 1, 1, 9, 0, 0),
        }
        fields.update(overrides)
        return User(**fields)

    return _make


@pytest.fixture
def make_post(fake):
    """Post 객체 팩토리."""

    def _make(post_id: int = 1, user_name: str = "author", **overrides) -> Post:
        fields = {
            "id": post_id,
            "user_name": user_name,
            "title": fake.sentence(nb_words=4),
            "book_title": "Meditations",
            "book_authors": "Marcus Aurelius",
            "book_image": "https://books.example.com/meditations.jpg",
            "rating": 5,
            "description": fake.paragraph(),
            "image_url": None,
            "author_id": None,
            "comments": [],
            "created_at": datetime(2026, 1, 2, 9, 0, 0),
        }
        fields.update(overrides)
        return Post(**fields)

    return _make


@pytest.fixture
def comment():
    def _make(username: str, content: str = "좋은 리뷰네요") -> Comment:
        return Comment(username=username, content=content)

    return _make


@pytest.fixture
def auth_headers():
    """user_id로 발급한 Access Token Authorization 헤더 팩토리."""

    def _headers(user_id: int) -> dict:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _headers
