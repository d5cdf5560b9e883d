"""Upload collaborator: pushes binary files to Cloudinary and returns public URLs."""

from __future__ import annotations

import asyncio
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

import httpx
import structlog

from scijournal.settings import Settings

from .errors import UploadError

logger = structlog.get_logger(__name__)

MB = 1024 * 1024


@dataclass(slots=True)
class LocalFile:
    """A file picked by the user, held either in memory or on disk."""

    name: str
    size: int
    content_type: str = "application/octet-stream"
    content: bytes | None = None
    path: Path | None = None

    @classmethod
    def from_path(cls, path: Path) -> "LocalFile":
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            size=path.stat().st_size,
            content_type=content_type or "application/octet-stream",
            path=path,
        )

    @classmethod
    def from_bytes(cls, name: str, content: bytes, content_type: str | None = None) -> "LocalFile":
        guessed, _ = mimetypes.guess_type(name)
        return cls(
            name=name,
            size=len(content),
            content_type=content_type or guessed or "application/octet-stream",
            content=content,
        )

    @property
    def extension(self) -> str:
        return Path(self.name).suffix.lower()

    @property
    def is_image(self) -> bool:
        return self.content_type.startswith("image/")

    async def read_bytes(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.path is None:
            raise UploadError(f"No content available for {self.name}")
        return await asyncio.to_thread(self.path.read_bytes)


@dataclass(slots=True)
class UploadedImage:
    secure_url: str
    delete_token: str | None = None


@dataclass(slots=True)
class UploadedFile:
    file_url: str
    file_name: str
    delete_token: str | None = None


class Uploader(Protocol):
    """Protocol for components that store files remotely."""

    async def upload_thumbnail(self, file: LocalFile) -> UploadedImage:
        ...

    async def upload_avatar(self, file: LocalFile) -> UploadedImage:
        ...

    async def upload_article_file(self, file: LocalFile) -> UploadedFile:
        ...

    async def discard(self, delete_token: str) -> bool:
        ...


class CloudinaryUploader:
    """Unsigned uploads through Cloudinary upload presets."""

    name = "cloudinary"
    BASE_URL = "https://api.cloudinary.com/v1_1"

    def __init__(self, client: httpx.AsyncClient, settings: Settings) -> None:
        self._client = client
        self._settings = settings

    async def upload_thumbnail(self, file: LocalFile) -> UploadedImage:
        payload = await self._upload(file, self._settings.cloudinary_thumbnail_preset, "image")
        return UploadedImage(secure_url=payload["secure_url"], delete_token=payload.get("delete_token"))

    async def upload_avatar(self, file: LocalFile) -> UploadedImage:
        payload = await self._upload(file, self._settings.cloudinary_avatar_preset, "image")
        return UploadedImage(secure_url=payload["secure_url"], delete_token=payload.get("delete_token"))

    async def upload_article_file(self, file: LocalFile) -> UploadedFile:
        resource_type = "image" if file.is_image else "raw"
        payload = await self._upload(file, self._settings.cloudinary_file_preset, resource_type)
        return UploadedFile(
            file_url=payload["secure_url"],
            file_name=file.name,
            delete_token=payload.get("delete_token"),
        )

    async def discard(self, delete_token: str) -> bool:
        """Best-effort removal of an uploaded blob; never raises."""
        url = f"{self.BASE_URL}/{self._settings.cloudinary_cloud_name}/delete_by_token"
        try:
            response = await self._client.post(url, data={"token": delete_token}, timeout=30)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            logger.warning("upload.discard_failed", error=str(exc))
            return False
        logger.info("upload.discarded")
        return True

    async def _upload(self, file: LocalFile, preset: str | None, resource_type: str) -> dict:
        cloud_name = self._settings.cloudinary_cloud_name
        if not cloud_name or not preset:
            raise UploadError("Cloudinary is not configured for this upload")
        url = f"{self.BASE_URL}/{cloud_name}/{resource_type}/upload"
        content = await file.read_bytes()
        logger.info("upload.attempt", file=file.name, size=file.size, resource_type=resource_type)
        try:
            response = await self._client.post(
                url,
                data={"upload_preset": preset},
                files={"file": (file.name, content, file.content_type)},
                timeout=self._settings.request_timeout,
            )
            payload = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error("upload.failed", file=file.name, error=str(exc))
            raise UploadError(f"Failed to upload {file.name}") from exc
        if not isinstance(payload, dict) or not payload.get("secure_url"):
            logger.error("upload.missing_url", file=file.name, status=response.status_code)
            raise UploadError("Failed to get secure URL from Cloudinary")
        return payload
