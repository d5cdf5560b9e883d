"""Local draft persistence for in-progress submissions.

A draft is a pure-data snapshot of the submission form written to local
storage, so an unfinished submission survives a restart without the backend.
Staged files are never part of a snapshot and must be attached again after a
restore.
"""

from __future__ import annotations

import asyncio
import contextlib
from datetime import datetime

import structlog
from pydantic import Field
from pydantic import ValidationError as PydanticValidationError

from scijournal.models import WireModel
from scijournal.services.storage import KeyValueStorage

from .forms import AuthorInput, SubmissionForm

logger = structlog.get_logger(__name__)

DRAFT_PREFIX = "article-draft"
SAVED_AT_FORMAT = "%Y-%m-%d %H:%M:%S"


def draft_key(article_id: str | None = None, session_id: str | None = None) -> str:
    """Storage key for a draft: per article, or per new-submission session."""
    if article_id:
        return f"{DRAFT_PREFIX}:{article_id}"
    if session_id:
        return f"{DRAFT_PREFIX}:new:{session_id}"
    return f"{DRAFT_PREFIX}:new"


class DraftSnapshot(WireModel):
    title_prefix: str = ""
    title: str = ""
    subtitle: str = ""
    abstract: str = ""
    keywords: str = ""
    article_language: str = "vi"
    field: str = ""
    secondary_fields: list[str] = Field(default_factory=list)
    authors: list[AuthorInput] = Field(default_factory=list)
    submitter_note: str = ""

    @classmethod
    def from_form(cls, form: SubmissionForm) -> "DraftSnapshot":
        return cls(
            title_prefix=form.title_prefix,
            title=form.title,
            subtitle=form.subtitle,
            abstract=form.abstract,
            keywords=form.keywords,
            article_language=form.article_language,
            field=form.field,
            secondary_fields=list(form.secondary_fields),
            authors=[author.model_copy() for author in form.authors],
            submitter_note=form.submitter_note,
        )

    def apply_to(self, form: SubmissionForm) -> None:
        """Overwrite the textual form fields; staged files are left alone."""
        form.title_prefix = self.title_prefix
        form.title = self.title
        form.subtitle = self.subtitle
        form.abstract = self.abstract
        form.keywords = self.keywords
        form.article_language = self.article_language
        form.field = self.field
        form.secondary_fields = list(self.secondary_fields)
        form.authors = [author.model_copy() for author in self.authors]
        form.submitter_note = self.submitter_note


class DraftKeeper:
    """Saves, restores and clears one draft, with an optional autosave task.

    Use as an async context manager to restore on entry and stop the
    autosave timer on exit.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        form: SubmissionForm | None = None,
        *,
        article_id: str | None = None,
        session_id: str | None = None,
        interval: float = 30.0,
    ) -> None:
        self._storage = storage
        self.form = form or SubmissionForm()
        self.key = draft_key(article_id, session_id)
        self.saved_at_key = f"{self.key}:saved-at"
        self.interval = interval
        self.last_saved_at: str | None = None
        self._task: asyncio.Task | None = None

    async def __aenter__(self) -> "DraftKeeper":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.stop()
        return False

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def save(self) -> str:
        snapshot = DraftSnapshot.from_form(self.form)
        saved_at = datetime.now().strftime(SAVED_AT_FORMAT)
        await self._storage.set_item(self.key, snapshot.model_dump_json(by_alias=True))
        await self._storage.set_item(self.saved_at_key, saved_at)
        self.last_saved_at = saved_at
        logger.debug("draft.saved", key=self.key)
        return saved_at

    async def restore(self) -> bool:
        raw = await self._storage.get_item(self.key)
        if not raw:
            return False
        try:
            snapshot = DraftSnapshot.model_validate_json(raw)
        except PydanticValidationError as exc:
            logger.warning("draft.unreadable", key=self.key, error=str(exc))
            return False
        snapshot.apply_to(self.form)
        self.last_saved_at = await self._storage.get_item(self.saved_at_key)
        logger.info("draft.restored", key=self.key)
        return True

    async def clear(self) -> None:
        """Drop the stored draft and reset the form."""
        await self._storage.remove_item(self.key)
        await self._storage.remove_item(self.saved_at_key)
        self.form.reset()
        self.last_saved_at = None
        logger.info("draft.cleared", key=self.key)

    async def start(self) -> bool:
        """Restore any stored draft, then begin autosaving."""
        restored = await self.restore()
        if not self.running:
            self._task = asyncio.create_task(self._autosave())
        return restored

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None

    async def _autosave(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if self.form.is_empty():
                continue
            try:
                await self.save()
            except Exception as exc:
                logger.warning("draft.autosave_failed", key=self.key, error=str(exc))
