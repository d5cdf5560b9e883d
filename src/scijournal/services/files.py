"""Article file records: manuscripts, thumbnails and supplementary material."""

from __future__ import annotations

from typing import Any

import structlog

from scijournal.models import ArticleFile

from .http import ApiClient
from .notifications import Notifier
from .results import Result
from .state import OperationState, ResourceStore
from .uploads import LocalFile, UploadedFile, Uploader

logger = structlog.get_logger(__name__)


class FileStore(ResourceStore[ArticleFile]):
    """Keeps the files of the article being worked on.

    Within one (article, category) pair only one file is active: activating
    or registering an active file switches its siblings off locally.
    """

    model = ArticleFile
    log_namespace = "file"

    def __init__(
        self,
        api: ApiClient,
        notifier: Notifier,
        uploader: Uploader,
        state: OperationState | None = None,
    ) -> None:
        super().__init__(api, notifier, state)
        self._uploader = uploader

    @property
    def files(self) -> list[ArticleFile]:
        return self.items

    def active_files(self, article_id: str, file_category: str) -> list[ArticleFile]:
        return [
            item
            for item in self.items
            if item.article_id == article_id and item.file_category == file_category and item.is_active
        ]

    async def list_for_article(
        self,
        article_id: str,
        *,
        round: int | None = None,
        file_category: str | None = None,
    ) -> Result[list[ArticleFile]]:
        async def effect() -> list[ArticleFile]:
            response = await self._api.get(
                f"/article-files/{article_id}",
                {"round": round, "fileCategory": file_category},
            )
            self.items = self._parse_many(response.data)
            return self.items

        return await self._run("files", effect, failure_message="Failed to load article files")

    async def register(
        self,
        article_id: str,
        file_category: str,
        uploaded: UploadedFile,
        file: LocalFile,
        round: int = 1,
    ) -> Result[ArticleFile]:
        """Record an already uploaded blob as a file of the article."""

        async def effect() -> ArticleFile:
            return await self._register(article_id, file_category, uploaded, file, round)

        return await self._run(
            "registerFile", effect, failure_message="Failed to register article file"
        )

    async def upload(
        self,
        article_id: str,
        file_category: str,
        file: LocalFile,
        round: int = 1,
    ) -> Result[ArticleFile]:
        """Upload to remote storage, then register the file record."""

        async def effect() -> ArticleFile:
            uploaded = await self._uploader.upload_article_file(file)
            return await self._register(article_id, file_category, uploaded, file, round)

        return await self._run(
            "uploadFile",
            effect,
            failure_message="Failed to upload file",
            success_message="File uploaded successfully",
        )

    async def delete(self, file_id: str) -> Result[None]:
        async def effect() -> None:
            await self._api.delete(f"/article-files/{file_id}")
            self._drop(file_id)

        return await self._run(
            "deleteFile",
            effect,
            failure_message="Failed to delete file",
            success_message="File deleted successfully",
        )

    async def set_active(self, file_id: str, is_active: bool) -> Result[ArticleFile]:
        async def effect() -> ArticleFile:
            response = await self._api.put(f"/article-files/{file_id}/status", {"isActive": is_active})
            record = self._parse(response.data)
            self._replace(record)
            if record.is_active:
                self._deactivate_siblings(record)
            return record

        return await self._run(
            "updateFile",
            effect,
            failure_message="Failed to update file status",
            success_message=f"File {'activated' if is_active else 'deactivated'} successfully",
        )

    async def _register(
        self,
        article_id: str,
        file_category: str,
        uploaded: UploadedFile,
        file: LocalFile,
        round: int,
    ) -> ArticleFile:
        payload: dict[str, Any] = {
            "articleId": article_id,
            "fileCategory": file_category,
            "round": round,
            "fileName": uploaded.file_name,
            "originalName": file.name,
            "fileType": file.content_type,
            "fileSize": file.size,
            "fileUrl": uploaded.file_url,
        }
        response = await self._api.post(f"/article-files/{article_id}/upload", payload)
        record = self._parse(response.data)
        self.items = [*self.items, record]
        if record.is_active:
            self._deactivate_siblings(record)
        logger.info("file.registered", article_id=article_id, category=file_category, file_id=record.id)
        return record

    def _deactivate_siblings(self, active: ArticleFile) -> None:
        self.items = [
            item.model_copy(update={"is_active": False})
            if item.id != active.id
            and item.article_id == active.article_id
            and item.file_category == active.file_category
            and item.is_active
            else item
            for item in self.items
        ]
