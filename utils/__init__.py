"""utils: 유틸리티 함수들을 모아놓은 패키지.

Modules:
    password: 비밀번호 해싱 및 검증
    jwt_utils: Access/Refresh Token 발급 및 검증
    google_auth: Google ID 토큰 검증
    file_utils: 이미지 업로드 저장
    formatters: 날짜/시간 포맷팅
    exceptions: HTTP 에러 헬퍼
"""
