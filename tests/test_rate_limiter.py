"""test_rate_limiter: Rate Limiter 미들웨어 단위 테스트."""

import pytest
from middleware.rate_limiter import (
    DEFAULT_RATE_LIMIT,
    RATE_LIMIT_CONFIG,
    RateLimiter,
    get_client_ip,
)
from unittest.mock import AsyncMock, MagicMock, patch


class TestRateLimiter:
    """RateLimiter 클래스 단위 테스트."""

    @pytest.fixture
    def rate_limiter(self):
        """새로운 RateLimiter 인스턴스 생성."""
        return RateLimiter(max_tracked_ips=100)

    @pytest.mark.asyncio
    async def test_first_request_allowed(self, rate_limiter):
        """첫 번째 요청은 허용되어야 합니다."""
        is_limited, remaining = await rate_limiter.is_rate_limited(
            key="192.168.1.1|POST /auth/login", max_requests=5, window_seconds=60
        )

        assert is_limited is False
        assert remaining == 4

    @pytest.mark.asyncio
    async def test_exceeds_limit(self, rate_limiter):
        """제한 초과 시 차단되어야 합니다."""
        key = "192.168.1.3|POST /auth/login"
        max_requests = 2

        for i in range(max_requests):
            is_limited, remaining = await rate_limiter.is_rate_limited(
                key=key, max_requests=max_requests, window_seconds=60
            )
            assert is_limited is False
            assert remaining == max_requests - i - 1

        is_limited, remaining = await rate_limiter.is_rate_limited(
            key=key, max_requests=max_requests, window_seconds=60
        )

        assert is_limited is True
        assert remaining == 0

    @pytest.mark.asyncio
    async def test_different_keys_independent(self, rate_limiter):
        """다른 IP나 다른 엔드포인트는 독립적으로 제한되어야 합니다."""
        for _ in range(2):
            await rate_limiter.is_rate_limited(
                key="10.0.0.1|POST /auth/login", max_requests=2, window_seconds=60
            )

        other_ip = await rate_limiter.is_rate_limited(
            key="10.0.0.2|POST /auth/login", max_requests=2, window_seconds=60
        )
        other_route = await rate_limiter.is_rate_limited(
            key="10.0.0.1|POST /posts", max_requests=2, window_seconds=60
        )

        assert other_ip == (False, 1)
        assert other_route == (False, 1)

    @pytest.mark.asyncio
    async def test_window_expires(self, rate_limiter):
        """윈도우가 지나면 다시 허용되어야 합니다."""
        key = "10.0.0.5|*"
        with patch("middleware.rate_limiter.time.monotonic", return_value=1000.0):
            await rate_limiter.is_rate_limited(key=key, max_requests=1, window_seconds=60)
            assert (
                await rate_limiter.is_rate_limited(key=key, max_requests=1, window_seconds=60)
            )[0] is True

        with patch("middleware.rate_limiter.time.monotonic", return_value=1061.0):
            is_limited, _ = await rate_limiter.is_rate_limited(
                key=key, max_requests=1, window_seconds=60
            )

        assert is_limited is False

    @pytest.mark.asyncio
    async def test_unknown_ip_stricter_limit(self, rate_limiter):
        """IP를 알 수 없는 요청은 더 낮은 상한을 적용받습니다."""
        results = [
            await rate_limiter.is_rate_limited(
                key="unknown|*", max_requests=100, window_seconds=60
            )
            for _ in range(11)
        ]

        assert [limited for limited, _ in results[:10]] == [False] * 10
        assert results[10] == (True, 0)

    @pytest.mark.asyncio
    async def test_evicts_idle_keys(self):
        """추적 키 수가 상한에 도달하면 오래된 키를 제거합니다."""
        limiter = RateLimiter(max_tracked_ips=10)
        for i in range(10):
            await limiter.is_rate_limited(key=f"10.0.1.{i}|*", max_requests=5, window_seconds=60)

        await limiter.is_rate_limited(key="10.0.2.1|*", max_requests=5, window_seconds=60)

        assert len(limiter._requests) == 10
        assert "10.0.1.0|*" not in limiter._requests
        assert "10.0.2.1|*" in limiter._requests


class TestGetClientIp:
    """get_client_ip 함수 테스트."""

    def test_direct_client_ip(self):
        """직접 연결된 클라이언트 IP 추출."""
        mock_request = MagicMock()
        mock_request.headers.get.return_value = None
        mock_request.client.host = "192.168.1.100"

        ip = get_client_ip(mock_request)
        assert ip == "192.168.1.100"

    def test_forwarded_ip(self):
        """X-Forwarded-For 헤더에서 IP 추출."""
        mock_request = MagicMock()
        mock_request.headers.get.return_value = (
            "203.0.113.50, 70.41.3.18, 150.172.238.178"
        )

        ip = get_client_ip(mock_request)
        assert ip == "203.0.113.50"

    def test_forwarded_skips_trusted_proxies(self, monkeypatch):
        """신뢰된 프록시가 설정되면 오른쪽부터 프록시가 아닌 첫 주소를 사용합니다."""
        monkeypatch.setattr(
            "middleware.rate_limiter.settings.TRUSTED_PROXIES", {"150.172.238.178"}
        )
        mock_request = MagicMock()
        mock_request.headers.get.return_value = (
            "203.0.113.50, 70.41.3.18, 150.172.238.178"
        )

        assert get_client_ip(mock_request) == "70.41.3.18"

    def test_invalid_forwarded_falls_back(self):
        """X-Forwarded-For에 유효한 IP가 없으면 연결 주소를 사용합니다."""
        mock_request = MagicMock()
        mock_request.headers.get.side_effect = lambda name: (
            "garbage, also-garbage" if name == "X-Forwarded-For" else None
        )
        mock_request.client.host = "10.1.1.1"

        assert get_client_ip(mock_request) == "10.1.1.1"

    def test_no_client(self):
        """클라이언트 정보 없을 때 unknown 반환."""
        mock_request = MagicMock()
        mock_request.headers.get.return_value = None
        mock_request.client = None

        ip = get_client_ip(mock_request)
        assert ip == "unknown"


class TestRateLimitConfig:
    """Rate Limit 설정 테스트."""

    def test_auth_endpoints_strict_limits(self):
        """인증 엔드포인트는 기본값보다 엄격한 제한이 있어야 합니다."""
        for route in ("POST /auth/login", "POST /auth/register"):
            assert route in RATE_LIMIT_CONFIG
            assert (
                RATE_LIMIT_CONFIG[route]["max_requests"]
                < DEFAULT_RATE_LIMIT["max_requests"]
            )

    def test_login_limit(self):
        assert RATE_LIMIT_CONFIG["POST /auth/login"]["max_requests"] <= 5


class TestRateLimitMiddleware:
    """미들웨어 통합 테스트 (TESTING 해제)."""

    @pytest.mark.asyncio
    @patch("controllers.auth_controller.verify_password", return_value=False)
    @patch(
        "models.user_models.get_user_by_identifier",
        new_callable=AsyncMock,
        return_value=None,
    )
    async def test_login_brute_force_blocked(
        self, mock_get_user, mock_verify, client, monkeypatch
    ):
        monkeypatch.setenv("TESTING", "false")
        monkeypatch.setattr("middleware.rate_limiter._rate_limiter", RateLimiter())
        limit = RATE_LIMIT_CONFIG["POST /auth/login"]["max_requests"]

        statuses = []
        for _ in range(limit + 1):
            res = await client.post(
                "/auth/login", json={"userName": "ghost", "password": "guess-guess"}
            )
            statuses.append(res.status_code)

        assert statuses[:limit] == [401] * limit
        assert statuses[limit] == 429
        assert res.headers["Retry-After"] == "60"
        assert res.json()["detail"]["error"] == "too_many_requests"

    @pytest.mark.asyncio
    @patch("models.post_models.get_posts", new_callable=AsyncMock, return_value=[])
    @patch("models.post_models.get_total_posts_count", new_callable=AsyncMock, return_value=0)
    async def test_get_requests_not_limited(self, mock_count, mock_posts, client, monkeypatch):
        monkeypatch.setenv("TESTING", "false")
        monkeypatch.setattr("middleware.rate_limiter._rate_limiter", RateLimiter())

        for _ in range(3):
            res = await client.get("/posts")
            assert res.status_code == 200
            assert "X-RateLimit-Limit" not in res.headers
