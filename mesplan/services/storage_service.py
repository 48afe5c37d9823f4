"""스토리지 서비스 — 아바타와 품질 인증서 문서 저장.

Storage Service — Keeps operator avatars and generated quality
certificate documents in S3, or under a local uploads directory when no
AWS credentials are configured (development and tests).

Avatars are uploaded by the client to ``temp/avatars/<user>/...`` and
promoted to ``avatars/<user>/...`` by finalize_upload() once the profile
references them. Certificates are written server-side straight to
``certificates/<serial>.html``.
"""

import shutil
import uuid
from pathlib import Path
from uuid import UUID

from mesplan.config import settings
from mesplan.utils.exceptions import BadRequestError

_PROJECT_ROOT: Path = Path(__file__).resolve().parent.parent.parent

TEMP_PREFIX: str = "temp/"

# 허용 아바타 형식 — Accepted avatar content types and their extension
AVATAR_TYPES: dict[str, str] = {
    "image/png": "png",
    "image/jpeg": "jpg",
    "image/webp": "webp",
}


class StorageService:
    """파일 저장 서비스 — S3, 또는 AWS 설정이 없으면 로컬 디렉토리."""

    def __init__(self) -> None:
        self._s3 = None

    @property
    def is_local(self) -> bool:
        return not (settings.AWS_ACCESS_KEY_ID and settings.AWS_S3_BUCKET)

    @property
    def uploads_dir(self) -> Path:
        return Path(settings.LOCAL_UPLOADS_DIR) if settings.LOCAL_UPLOADS_DIR else _PROJECT_ROOT / "uploads"

    @property
    def s3(self):
        """지연 생성 boto3 클라이언트 — Created on first S3 use only."""
        if self._s3 is None:
            import boto3
            from botocore.config import Config as BotoConfig

            self._s3 = boto3.client(
                "s3",
                region_name=settings.AWS_S3_REGION,
                aws_access_key_id=settings.AWS_ACCESS_KEY_ID,
                aws_secret_access_key=settings.AWS_SECRET_ACCESS_KEY,
                config=BotoConfig(signature_version="s3v4"),
            )
        return self._s3

    def public_url(self, key: str) -> str:
        if self.is_local:
            return f"{settings.PUBLIC_BASE_URL.rstrip('/')}/uploads/{key}"
        return f"https://{settings.AWS_S3_BUCKET}.s3.{settings.AWS_S3_REGION}.amazonaws.com/{key}"

    def key_of(self, file_url: str) -> str | None:
        """공개 URL → 저장 키 — None for URLs outside this storage."""
        base: str = self.public_url("")
        return file_url[len(base):] if file_url.startswith(base) else None

    def _local_path(self, key: str) -> Path:
        """키의 로컬 경로 — Rejects keys that escape the uploads directory."""
        root: Path = self.uploads_dir.resolve()
        path: Path = (root / key).resolve()
        if root not in path.parents:
            raise BadRequestError("Invalid storage key")
        return path

    # --- 아바타 (Avatars) ---

    def avatar_upload_urls(
        self,
        user_id: UUID,
        content_type: str,
        expires: int = 3600,
    ) -> dict[str, str]:
        """아바타 업로드용 URL 쌍을 발급합니다.

        Issue an upload URL and the temporary file URL for one avatar.
        In S3 mode the upload URL is a presigned PUT; locally it points at
        the app's own upload endpoint.

        Raises:
            BadRequestError: 이미지가 아닌 형식 (Content type not in AVATAR_TYPES)
        """
        ext: str | None = AVATAR_TYPES.get(content_type)
        if ext is None:
            raise BadRequestError(f"Unsupported avatar type: {content_type}")
        key: str = f"{TEMP_PREFIX}avatars/{user_id}/{uuid.uuid4().hex}.{ext}"

        if self.is_local:
            upload_url = f"{settings.PUBLIC_BASE_URL.rstrip('/')}/api/v1/app/profile/upload/{key}"
        else:
            upload_url = self.s3.generate_presigned_url(
                "put_object",
                Params={"Bucket": settings.AWS_S3_BUCKET, "Key": key, "ContentType": content_type},
                ExpiresIn=expires,
            )
        return {"upload_url": upload_url, "file_url": self.public_url(key)}

    def receive_local_upload(self, key: str, data: bytes) -> None:
        """로컬 모드 업로드 수신 — Only temp/ keys accept client bytes."""
        if not key.startswith(TEMP_PREFIX):
            raise BadRequestError("Uploads must target a temp/ key")
        self._write_local(key, data)

    def finalize_upload(self, file_url: str) -> str:
        """temp 파일을 최종 위치로 옮기고 최종 URL을 반환합니다.

        URLs that are not temp uploads of this storage are returned as-is,
        so re-saving a profile with an already final avatar is a no-op.

        Raises:
            BadRequestError: temp 파일 없음 (The temp upload does not exist)
        """
        key: str | None = self.key_of(file_url)
        if key is None or not key.startswith(TEMP_PREFIX):
            return file_url
        final_key: str = key[len(TEMP_PREFIX):]

        if self.is_local:
            src: Path = self._local_path(key)
            if not src.is_file():
                raise BadRequestError("Upload not found")
            dst: Path = self._local_path(final_key)
            dst.parent.mkdir(parents=True, exist_ok=True)
            shutil.move(str(src), str(dst))
        else:
            bucket: str = settings.AWS_S3_BUCKET
            self.s3.copy_object(Bucket=bucket, Key=final_key, CopySource={"Bucket": bucket, "Key": key})
            self.s3.delete_object(Bucket=bucket, Key=key)
        return self.public_url(final_key)

    # --- 문서 (Generated documents) ---

    def put_document(self, key: str, data: bytes, content_type: str) -> str:
        """생성된 문서(인증서 등)를 저장하고 공개 URL을 반환합니다."""
        if self.is_local:
            self._write_local(key, data)
        else:
            self.s3.put_object(Bucket=settings.AWS_S3_BUCKET, Key=key, Body=data, ContentType=content_type)
        return self.public_url(key)

    def _write_local(self, key: str, data: bytes) -> None:
        path: Path = self._local_path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)


storage_service: StorageService = StorageService()
