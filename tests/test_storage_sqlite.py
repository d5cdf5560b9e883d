from pathlib import Path

import pytest

from scijournal.services.storage import LocalStorage
from scijournal.settings import Settings
from scijournal.workflow.drafts import DraftKeeper
from scijournal.workflow.forms import SubmissionForm


@pytest.mark.asyncio
async def test_items_persist_across_instances(tmp_path: Path) -> None:
    settings = Settings(data_dir=tmp_path)
    storage = LocalStorage(settings)

    await storage.set_item("token", "abc")
    await storage.set_item("token", "def")

    reopened = LocalStorage(settings)
    assert await reopened.get_item("token") == "def"
    assert settings.db_path.exists()

    await reopened.remove_item("token")
    await reopened.remove_item("token")
    assert await storage.get_item("token") is None


@pytest.mark.asyncio
async def test_drafts_survive_a_restart(tmp_path: Path) -> None:
    settings = Settings(data_dir=tmp_path)
    await DraftKeeper(LocalStorage(settings), SubmissionForm(title="Saved"), article_id="a1").save()

    keeper = DraftKeeper(LocalStorage(settings), article_id="a1")

    assert await keeper.restore()
    assert keeper.form.title == "Saved"
    assert await LocalStorage(settings).keys("article-draft:") == [
        "article-draft:a1",
        "article-draft:a1:saved-at",
    ]
