"""user_schemas: 사용자 관련 Pydantic 모델 모듈.

회원가입과 사용자 정보 수정 요청 스키마를 정의합니다.
"""

import re

from pydantic import BaseModel, EmailStr, Field, field_validator

USER_NAME_PATTERN = re.compile(r"^[A-Za-z0-9_.]{3,30}$")
_USER_NAME_ERROR = (
    "사용자명은 3자 이상 30자 이하의 영문, 숫자, 밑줄(_), 마침표(.)로 구성하여야 합니다."
)

PASSWORD_MIN_LENGTH = 6
# bcrypt는 72바이트까지만 사용함
PASSWORD_MAX_LENGTH = 72


def _validate_user_name(v: str) -> str:
    v = v.strip()
    if not USER_NAME_PATTERN.match(v):
        raise ValueError(_USER_NAME_ERROR)
    return v


def _validate_password(v: str) -> str:
    """비밀번호 길이를 바이트 기준으로 검증합니다.

    Raises:
        ValueError: 72바이트를 초과하는 경우.
    """
    if len(v.encode("utf-8")) > PASSWORD_MAX_LENGTH:
        raise ValueError(f"비밀번호는 {PASSWORD_MAX_LENGTH}바이트를 초과할 수 없습니다.")
    return v


class CreateUserRequest(BaseModel):
    """회원가입 요청 모델.

    Attributes:
        userName: 사용자명 (3~30자, 영문/숫자/_/.).
        email: 이메일 주소.
        password: 비밀번호 (6자 이상).
    """

    userName: str
    email: EmailStr
    password: str = Field(..., min_length=PASSWORD_MIN_LENGTH)

    @field_validator("userName")
    @classmethod
    def validate_user_name(cls, v: str) -> str:
        return _validate_user_name(v)

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        return _validate_password(v)


class UpdateUserRequest(CreateUserRequest):
    """사용자 정보 수정 요청 모델.

    회원가입과 같은 필드를 모두 다시 받아 통째로 교체합니다.
    """
