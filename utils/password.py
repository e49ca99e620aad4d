"""password: 비밀번호 해싱 및 검증 유틸리티 모듈.

bcrypt로 솔트가 포함된 단방향 해시를 만들고 검증합니다.
"""

import secrets

import bcrypt

# 존재하지 않는 사용자에 대해서도 bcrypt 비교를 수행하기 위한 더미 해시
DUMMY_PASSWORD_HASH = "$2b$12$EixZaYVK1fsbw1ZfbX3OXePaWxwKc.60VF.wdz.xGto8.H82o.f2y"


def hash_password(password: str) -> str:
    """비밀번호를 bcrypt로 해싱합니다.

    Args:
        password: 평문 비밀번호.

    Returns:
        해싱된 비밀번호 문자열.
    """
    hashed = bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt())
    return hashed.decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """평문 비밀번호가 저장된 해시와 일치하는지 확인합니다.

    해시 형식이 잘못된 경우에도 예외 대신 False를 반환합니다.
    """
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"), hashed_password.encode("utf-8")
        )
    except ValueError:
        return False


def generate_unusable_password() -> str:
    """외부 로그인(Google) 계정용 무작위 비밀번호를 생성합니다.

    생성된 값은 어디에도 노출되지 않으므로 해당 계정은 비밀번호 로그인이 불가능합니다.
    """
    return secrets.token_urlsafe(32)
