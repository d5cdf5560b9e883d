import httpx
import pytest

from scijournal.services.errors import UploadError
from scijournal.services.uploads import CloudinaryUploader, LocalFile
from scijournal.settings import Settings


def _settings(tmp_path) -> Settings:
    return Settings(
        data_dir=tmp_path,
        cloudinary_cloud_name="demo",
        cloudinary_thumbnail_preset="thumbs",
        cloudinary_file_preset="files",
    )


@pytest.mark.asyncio
async def test_documents_go_to_raw_upload(tmp_path) -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"secure_url": "https://res.test/raw/paper.pdf", "delete_token": "dt"})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        uploader = CloudinaryUploader(client, _settings(tmp_path))
        uploaded = await uploader.upload_article_file(
            LocalFile.from_bytes("paper.pdf", b"%PDF-1.4")
        )

    assert seen[0].url.path == "/v1_1/demo/raw/upload"
    assert b"files" in seen[0].content
    assert uploaded.file_url == "https://res.test/raw/paper.pdf"
    assert uploaded.delete_token == "dt"


@pytest.mark.asyncio
async def test_missing_secure_url_is_an_upload_error(tmp_path) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(200, json={"error": "bad preset"}))

    async with httpx.AsyncClient(transport=transport) as client:
        uploader = CloudinaryUploader(client, _settings(tmp_path))
        with pytest.raises(UploadError, match="secure URL"):
            await uploader.upload_thumbnail(LocalFile.from_bytes("cover.png", b"\x89PNG"))


@pytest.mark.asyncio
async def test_unconfigured_uploader_refuses(tmp_path) -> None:
    async with httpx.AsyncClient(transport=httpx.MockTransport(lambda request: httpx.Response(500))) as client:
        uploader = CloudinaryUploader(client, Settings(data_dir=tmp_path))
        with pytest.raises(UploadError):
            await uploader.upload_thumbnail(LocalFile.from_bytes("cover.png", b"\x89PNG"))


@pytest.mark.asyncio
async def test_discard_never_raises(tmp_path) -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(500))

    async with httpx.AsyncClient(transport=transport) as client:
        uploader = CloudinaryUploader(client, _settings(tmp_path))
        assert await uploader.discard("dt") is False
