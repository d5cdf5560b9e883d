from __future__ import annotations

import inspect
import json
from typing import Any, Callable

import httpx
import pytest

from scijournal.services.articles import ArticleStore, CachePolicy
from scijournal.services.errors import UploadError
from scijournal.services.files import FileStore
from scijournal.services.http import ApiClient
from scijournal.services.notifications import RecordingNotifier
from scijournal.services.storage import MemoryStorage
from scijournal.services.uploads import LocalFile, UploadedFile, UploadedImage
from scijournal.settings import Settings

BASE_URL = "http://testserver/api"


class FakeJournalApi:
    """In-process stand-in for the journal backend, driven by httpx.MockTransport."""

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], Callable[[httpx.Request], Any]] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, payload: Any = None, *, status: int = 200, handler=None) -> None:
        if handler is not None:
            self.routes[(method, path)] = handler
        else:
            self.routes[(method, path)] = lambda request: httpx.Response(status, json=payload)

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [
            request
            for request in self.requests
            if request.method == method and _relative(request) == path
        ]

    @staticmethod
    def body(request: httpx.Request) -> Any:
        return json.loads(request.content) if request.content else None

    async def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        route = self.routes.get((request.method, _relative(request)))
        if route is None:
            return httpx.Response(404, json={"success": False, "message": "not found"})
        result = route(request)
        if inspect.isawaitable(result):
            result = await result
        if isinstance(result, httpx.Response):
            return result
        return httpx.Response(200, json=result)


def _relative(request: httpx.Request) -> str:
    path = request.url.path
    return path[len("/api"):] if path.startswith("/api") else path


def envelope(data: Any, **extra: Any) -> dict[str, Any]:
    return {"success": True, "data": data, **extra}


def article_payload(article_id: str, title: str = "Untitled", status: str = "submitted", **extra: Any) -> dict:
    payload = {
        "_id": article_id,
        "title": title,
        "abstract": "",
        "keywords": [],
        "status": status,
        "statusHistory": [],
    }
    payload.update(extra)
    return payload


class StubUploader:
    """Upload collaborator that never leaves the process."""

    def __init__(self, *, fail_thumbnail: bool = False, fail_file: bool = False) -> None:
        self.fail_thumbnail = fail_thumbnail
        self.fail_file = fail_file
        self.uploaded: list[str] = []
        self.discarded: list[str] = []

    async def upload_thumbnail(self, file: LocalFile) -> UploadedImage:
        if self.fail_thumbnail:
            raise UploadError("Failed to get secure URL from Cloudinary")
        self.uploaded.append(file.name)
        return UploadedImage(secure_url=f"https://cdn.test/{file.name}", delete_token=f"tok-{file.name}")

    async def upload_avatar(self, file: LocalFile) -> UploadedImage:
        return await self.upload_thumbnail(file)

    async def upload_article_file(self, file: LocalFile) -> UploadedFile:
        if self.fail_file:
            raise UploadError("Failed to get secure URL from Cloudinary")
        self.uploaded.append(file.name)
        return UploadedFile(
            file_url=f"https://cdn.test/raw/{file.name}",
            file_name=file.name,
            delete_token=f"tok-{file.name}",
        )

    async def discard(self, delete_token: str) -> bool:
        self.discarded.append(delete_token)
        return True


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(data_dir=tmp_path)


@pytest.fixture
def backend() -> FakeJournalApi:
    return FakeJournalApi()


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage({"token": "secret"})


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def redirects() -> list[str]:
    return []


@pytest.fixture
def api(settings, storage, backend, redirects) -> ApiClient:
    client = httpx.AsyncClient(base_url=BASE_URL, transport=httpx.MockTransport(backend))
    return ApiClient(settings, storage, client=client, on_unauthorized=redirects.append)


@pytest.fixture
def uploader() -> StubUploader:
    return StubUploader()


@pytest.fixture
def article_store(api, notifier) -> ArticleStore:
    return ArticleStore(api, notifier, cache_policy=CachePolicy.RECONCILE)


@pytest.fixture
def file_store(api, notifier, uploader) -> FileStore:
    return FileStore(api, notifier, uploader)


def pdf(name: str = "paper.pdf", size: int = 1024) -> LocalFile:
    return LocalFile(name=name, size=size, content_type="application/pdf", content=b"%PDF-1.4")


def png(name: str = "cover.png", size: int = 1024) -> LocalFile:
    return LocalFile(name=name, size=size, content_type="image/png", content=b"\x89PNG")
