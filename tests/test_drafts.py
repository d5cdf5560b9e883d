import asyncio
import json

import pytest
from structlog.testing import capture_logs

from scijournal.services.storage import MemoryStorage
from scijournal.workflow.drafts import DraftKeeper, draft_key
from scijournal.workflow.forms import AuthorInput, SubmissionForm

from conftest import pdf


def _filled_form() -> SubmissionForm:
    return SubmissionForm(
        title="IoT Sensor Networks",
        abstract="Low power mesh routing.",
        keywords="iot, sensors",
        article_language="en",
        field="F1",
        authors=[AuthorInput(full_name="Nguyen Van A", email="a@uni.vn")],
        manuscript=pdf(),
    )


@pytest.mark.asyncio
async def test_save_then_restore_round_trips_text_fields() -> None:
    storage = MemoryStorage()
    original = _filled_form()
    await DraftKeeper(storage, original).save()

    restored = DraftKeeper(storage)
    assert await restored.restore()

    form = restored.form
    assert (form.title, form.abstract, form.keywords, form.article_language) == (
        original.title,
        original.abstract,
        original.keywords,
        original.article_language,
    )
    assert form.authors == original.authors
    assert form.manuscript is None
    assert restored.last_saved_at is not None


@pytest.mark.asyncio
async def test_storage_layout_uses_snapshot_and_timestamp_keys() -> None:
    storage = MemoryStorage()
    keeper = DraftKeeper(storage, _filled_form())

    saved_at = await keeper.save()

    assert storage.items["article-draft:new:saved-at"] == saved_at
    snapshot = json.loads(storage.items["article-draft:new"])
    assert snapshot["title"] == "IoT Sensor Networks"
    assert snapshot["authors"][0]["fullName"] == "Nguyen Van A"
    assert "manuscript" not in snapshot


@pytest.mark.asyncio
async def test_drafts_are_keyed_per_article_and_session() -> None:
    storage = MemoryStorage()
    first = DraftKeeper(storage, SubmissionForm(title="One"), session_id="tab-1")
    second = DraftKeeper(storage, SubmissionForm(title="Two"), session_id="tab-2")
    edit = DraftKeeper(storage, SubmissionForm(title="Three"), article_id="a1")

    await first.save()
    await second.save()
    await edit.save()

    assert draft_key(session_id="tab-1") != draft_key(session_id="tab-2")
    again = DraftKeeper(storage, session_id="tab-1")
    await again.restore()
    assert again.form.title == "One"
    assert "article-draft:a1" in storage.items


@pytest.mark.asyncio
async def test_clear_removes_snapshot_and_resets_form() -> None:
    storage = MemoryStorage()
    keeper = DraftKeeper(storage, _filled_form())
    await keeper.save()

    await keeper.clear()

    assert storage.items == {}
    assert keeper.form.is_empty()
    assert keeper.form.manuscript is None
    assert keeper.last_saved_at is None


@pytest.mark.asyncio
async def test_autosave_only_writes_non_empty_forms() -> None:
    storage = MemoryStorage()
    form = SubmissionForm()

    async with DraftKeeper(storage, form, interval=0.01) as keeper:
        await asyncio.sleep(0.05)
        assert storage.items == {}
        form.title = "Working title"
        await asyncio.sleep(0.05)
        assert keeper.running

    assert not keeper.running
    assert json.loads(storage.items["article-draft:new"])["title"] == "Working title"


@pytest.mark.asyncio
async def test_start_restores_existing_draft() -> None:
    storage = MemoryStorage()
    await DraftKeeper(storage, _filled_form()).save()
    keeper = DraftKeeper(storage, interval=60)

    restored = await keeper.start()
    await keeper.stop()

    assert restored
    assert keeper.form.title == "IoT Sensor Networks"


@pytest.mark.asyncio
async def test_unreadable_snapshot_is_ignored() -> None:
    storage = MemoryStorage({"article-draft:new": "{not json"})
    keeper = DraftKeeper(storage)

    assert not await keeper.restore()
    assert keeper.form.is_empty()


def test_session_ids_are_kept_verbatim() -> None:
    assert draft_key(session_id="tab_1") != draft_key(session_id="Tab 1")
    assert draft_key(session_id="Tab 1") == "article-draft:new:Tab 1"


class FullDiskStorage(MemoryStorage):
    async def set_item(self, key: str, value: str) -> None:
        raise RuntimeError("disk full")


@pytest.mark.asyncio
async def test_autosave_survives_storage_errors() -> None:
    keeper = DraftKeeper(FullDiskStorage(), _filled_form(), interval=0.01)

    with capture_logs() as logs:
        await keeper.start()
        await asyncio.sleep(0.05)
        assert keeper.running
        await keeper.stop()

    assert not keeper.running
    assert any(entry["event"] == "draft.autosave_failed" for entry in logs)
