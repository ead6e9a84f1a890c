"""
utils/storage.py
Blob storage for issue attachments (local filesystem or S3-compatible bucket).
"""
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO

from flask import current_app


class StorageError(RuntimeError):
    """Raised when a blob cannot be written, read or removed."""


class Storage:
    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        raise NotImplementedError

    def open(self, key: str) -> BinaryIO:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


def _normalize_key(key: str) -> str:
    safe_key = (key or "").replace("\\", "/").lstrip("/")
    parts = [part for part in safe_key.split("/") if part not in ("", ".")]
    if not parts or ".." in parts:
        raise StorageError("Invalid storage path.")
    return "/".join(parts)


@dataclass(frozen=True)
class LocalStorage(Storage):
    root: Path

    def _path(self, key: str) -> Path:
        return self.root / _normalize_key(key)

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        p = self._path(key)
        if p.exists():
            raise StorageError("A file already exists at that path.")
        p.parent.mkdir(parents=True, exist_ok=True)
        p.write_bytes(data)

    def open(self, key: str) -> BinaryIO:
        p = self._path(key)
        if not p.exists():
            raise StorageError("File not found.")
        return p.open("rb")

    def remove(self, key: str) -> None:
        p = self._path(key)
        try:
            p.unlink()
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(f"Unable to remove file: {exc.strerror or exc}") from exc


@dataclass(frozen=True)
class S3Storage(Storage):
    endpoint: str
    region: str
    bucket: str
    access_key_id: str
    secret_access_key: str

    def _client(self):
        import boto3

        return boto3.client(
            "s3",
            endpoint_url=f"https://{self.endpoint}" if self.endpoint else None,
            region_name=self.region or None,
            aws_access_key_id=self.access_key_id or None,
            aws_secret_access_key=self.secret_access_key or None,
        )

    def put_bytes(self, key: str, data: bytes, *, content_type: str | None = None) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        extra: dict[str, object] = {}
        if content_type:
            extra["ContentType"] = content_type
        try:
            self._client().put_object(Bucket=self.bucket, Key=_normalize_key(key), Body=data, **extra)
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Unable to upload file: {exc}") from exc

    def open(self, key: str) -> BinaryIO:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            obj = self._client().get_object(Bucket=self.bucket, Key=_normalize_key(key))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError("File not found.") from exc
        return obj["Body"]  # type: ignore[return-value]

    def remove(self, key: str) -> None:
        from botocore.exceptions import BotoCoreError, ClientError

        try:
            self._client().delete_object(Bucket=self.bucket, Key=_normalize_key(key))
        except (BotoCoreError, ClientError) as exc:
            raise StorageError(f"Unable to remove file: {exc}") from exc


def storage_from_config(config) -> Storage:
    backend = (config.get("STORAGE_BACKEND") or "local").strip().lower()
    if backend == "s3":
        return S3Storage(
            endpoint=(config.get("S3_ENDPOINT") or "").strip(),
            region=(config.get("S3_REGION") or "").strip(),
            bucket=(config.get("S3_BUCKET") or "").strip(),
            access_key_id=(config.get("S3_ACCESS_KEY_ID") or "").strip(),
            secret_access_key=(config.get("S3_SECRET_ACCESS_KEY") or "").strip(),
        )
    return LocalStorage(root=Path(config.get("STORAGE_ROOT") or "storage"))


def get_storage() -> Storage:
    """Return the storage backend configured for the current app."""
    return storage_from_config(current_app.config)
