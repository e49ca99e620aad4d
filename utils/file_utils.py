"""file_utils: 업로드 이미지 저장 모듈.

multipart로 전달된 이미지를 UPLOAD_DIR 아래에 저장하고, `/uploads/...` 정적 경로를 반환합니다.
"""

import os
import uuid

from fastapi import HTTPException, UploadFile, status

from core.config import settings

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}
MAX_IMAGE_SIZE = 5 * 1024 * 1024
UPLOAD_URL_PREFIX = "/uploads"
PROFILE_IMAGE_FOLDER = "profiles"
POST_IMAGE_FOLDER = "posts"

# 지원하는 이미지 포맷의 매직 넘버 (파일 시그니처)
MAGIC_NUMBERS = (
    b"\xFF\xD8\xFF",  # jpg, jpeg
    b"\x89\x50\x4E\x47\x0D\x0A\x1A\x0A",  # png
    b"\x47\x49\x46\x38\x37\x61",  # gif87a
    b"\x47\x49\x46\x38\x39\x61",  # gif89a
    b"\x52\x49\x46\x46",  # webp (RIFF 헤더)
)


def has_image_signature(chunk: bytes) -> bool:
    """첫 청크가 허용된 이미지 포맷의 시그니처로 시작하는지 확인합니다."""
    return any(chunk.startswith(signature) for signature in MAGIC_NUMBERS)


async def save_upload_file(file: UploadFile, folder: str = "") -> str:
    """이미지 파일을 저장하고 정적 URL을 반환합니다.

    확장자와 실제 파일 헤더(매직 넘버)를 모두 검증하며, 64KB 청크 단위로 기록합니다.

    Args:
        file: 업로드된 파일 객체.
        folder: UPLOAD_DIR 아래 하위 폴더 (예: 'posts', 'profiles').

    Returns:
        저장된 파일의 URL (예: /uploads/posts/3f2a...c1.jpg).

    Raises:
        HTTPException: 파일 형식이 잘못되었거나 크기가 너무 클 경우 400.
    """
    filename = file.filename or ""
    ext = os.path.splitext(filename)[1].lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={
                "error": "invalid_file_type",
                "message": f"허용된 이미지 형식: {', '.join(sorted(ALLOWED_IMAGE_EXTENSIONS))}",
            },
        )

    unique_filename = f"{uuid.uuid4().hex}{ext}"
    directory = os.path.join(settings.UPLOAD_DIR, folder) if folder else settings.UPLOAD_DIR
    os.makedirs(directory, exist_ok=True)
    file_path = os.path.join(directory, unique_filename)

    total_size = 0
    chunk_size = 1024 * 64
    first_chunk = True

    try:
        with open(file_path, "wb") as f:
            while chunk := await file.read(chunk_size):
                total_size += len(chunk)

                if total_size > MAX_IMAGE_SIZE:
                    raise HTTPException(
                        status_code=status.HTTP_400_BAD_REQUEST,
                        detail={
                            "error": "file_too_large",
                            "message": f"파일 크기는 {MAX_IMAGE_SIZE // (1024 * 1024)}MB를 초과할 수 없습니다.",
                        },
                    )

                # 확장자 위변조 방지
                if first_chunk:
                    if not has_image_signature(chunk):
                        raise HTTPException(
                            status_code=status.HTTP_400_BAD_REQUEST,
                            detail={
                                "error": "invalid_file_content",
                                "message": "파일의 내용이 유효한 이미지 형식이 아닙니다.",
                            },
                        )
                    first_chunk = False

                f.write(chunk)
    except Exception as e:
        if os.path.exists(file_path):
            os.remove(file_path)
        if isinstance(e, HTTPException):
            raise e
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={"error": "file_save_error", "message": "파일 저장 중 오류가 발생했습니다."},
        )

    if first_chunk:
        # 빈 파일
        os.remove(file_path)
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail={"error": "invalid_file_content", "message": "빈 파일은 업로드할 수 없습니다."},
        )

    parts = [UPLOAD_URL_PREFIX, folder, unique_filename] if folder else [UPLOAD_URL_PREFIX, unique_filename]
    return "/".join(parts)


def delete_upload_file(url_path: str) -> bool:
    """save_upload_file이 반환한 URL 경로의 파일을 삭제합니다.

    Args:
        url_path: /uploads/posts/uuid.jpg 형태의 URL 경로.

    Returns:
        삭제했으면 True, 업로드 경로가 아니거나 파일이 없으면 False.
    """
    prefix = f"{UPLOAD_URL_PREFIX}/"
    if not url_path.startswith(prefix):
        return False

    upload_dir = os.path.realpath(settings.UPLOAD_DIR)
    file_path = os.path.realpath(os.path.join(upload_dir, url_path[len(prefix):]))

    # Path Traversal 방지: UPLOAD_DIR 밖의 경로는 거부
    if os.path.commonpath([upload_dir, file_path]) != upload_dir:
        return False

    if os.path.isfile(file_path):
        os.remove(file_path)
        return True
    return False
