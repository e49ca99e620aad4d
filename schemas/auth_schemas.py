# auth_schemas: 인증 관련 Pydantic 모델

from pydantic import BaseModel


# 로그인 요청: 사용자명 또는 이메일 중 하나를 식별자로 사용
class LoginRequest(BaseModel):
    userName: str | None = None
    email: str | None = None
    password: str | None = None

    @property
    def identifier(self) -> str | None:
        return (self.userName or "").strip() or (self.email or "").strip() or None


# Google 로그인 요청 (Google Sign-In이 발급한 ID 토큰)
class GoogleLoginRequest(BaseModel):
    credential: str
