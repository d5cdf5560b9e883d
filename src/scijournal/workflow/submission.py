"""Three-stage article submission wizard.

The wizard walks one shared :class:`SubmissionForm` through the ``basic``,
``authors`` and ``files`` stages. Submitting a new article runs as a small
saga: uploads first, then the article record, then the manuscript file
record. A failed step discards what earlier steps uploaded, and once the
article exists a retry resumes at the file registration instead of creating
a second article.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

import structlog

from scijournal.models import Article, ArticleStatus
from scijournal.services.articles import ArticleStore
from scijournal.services.authors import AuthorStore
from scijournal.services.errors import UploadError
from scijournal.services.files import FileStore
from scijournal.services.notifications import Notifier
from scijournal.services.uploads import MB, LocalFile, UploadedFile, Uploader
from scijournal.settings import DEFAULT_ATTACHMENT_EXTENSIONS
from scijournal.utils import is_valid_email, split_keywords

from .drafts import DraftKeeper
from .forms import AuthorInput, SubmissionForm

logger = structlog.get_logger(__name__)

THUMBNAIL_MAX_BYTES = 2 * MB
DOCUMENT_MAX_BYTES = 10 * MB
MANUSCRIPT_EXTENSIONS = (".pdf", ".doc", ".docx")


class WizardStage(str, Enum):
    BASIC = "basic"
    AUTHORS = "authors"
    FILES = "files"

    @property
    def position(self) -> int:
        return STAGE_ORDER.index(self)


STAGE_ORDER = (WizardStage.BASIC, WizardStage.AUTHORS, WizardStage.FILES)

# Which stage shows each error key.
FIELD_STAGES: dict[str, WizardStage] = {
    "title": WizardStage.BASIC,
    "abstract": WizardStage.BASIC,
    "keywords": WizardStage.BASIC,
    "field": WizardStage.BASIC,
    "authors": WizardStage.AUTHORS,
    "authorName": WizardStage.AUTHORS,
    "authorEmail": WizardStage.AUTHORS,
    "thumbnail": WizardStage.FILES,
    "manuscript": WizardStage.FILES,
    "attachments": WizardStage.FILES,
}


@dataclass(slots=True)
class SubmissionOutcome:
    ok: bool
    article_id: str | None = None
    failed_step: str | None = None
    message: str | None = None
    warnings: list[str] = field(default_factory=list)


@dataclass(slots=True)
class _PendingRegistration:
    """Progress of a create saga that stopped after the article existed."""

    article_id: str
    manuscript: LocalFile
    uploaded: UploadedFile


class SubmissionWorkflow:
    """Controller for the create and edit forms.

    Pass ``article`` to edit an existing article; otherwise a new one is
    created. ``drafts``, when given, shares its form with the wizard and is
    cleared once a new submission is fully registered.
    """

    def __init__(
        self,
        articles: ArticleStore,
        files: FileStore,
        uploader: Uploader,
        notifier: Notifier,
        *,
        authors: AuthorStore | None = None,
        drafts: DraftKeeper | None = None,
        article: Article | None = None,
        attachment_extensions: tuple[str, ...] = DEFAULT_ATTACHMENT_EXTENSIONS,
    ) -> None:
        self._articles = articles
        self._files = files
        self._uploader = uploader
        self._notifier = notifier
        self._authors = authors
        self._drafts = drafts
        self.article_id = article.id if article else None
        self._editing = article is not None
        self.form = drafts.form if drafts is not None else SubmissionForm()
        if article is not None and self.form.is_empty():
            _copy_form(SubmissionForm.from_article(article), self.form)
        self.attachment_extensions = tuple(ext.lower() for ext in attachment_extensions)
        self.stage = WizardStage.BASIC
        self.form_errors: dict[str, str] = {}
        self.in_flight = False
        self._pending: _PendingRegistration | None = None

    @property
    def editing(self) -> bool:
        return self._editing

    # Navigation -----------------------------------------------------------

    def next(self) -> WizardStage:
        index = min(self.stage.position + 1, len(STAGE_ORDER) - 1)
        self.stage = STAGE_ORDER[index]
        return self.stage

    def back(self) -> WizardStage:
        index = max(self.stage.position - 1, 0)
        self.stage = STAGE_ORDER[index]
        return self.stage

    def go_to(self, stage: WizardStage | str) -> WizardStage:
        self.stage = WizardStage(stage)
        return self.stage

    # Basic stage ----------------------------------------------------------

    def set_primary_field(self, field_id: str) -> None:
        self.form.field = field_id
        self.form.secondary_fields = [item for item in self.form.secondary_fields if item != field_id]
        self.form_errors.pop("field", None)

    def add_secondary_field(self, field_id: str) -> bool:
        if field_id == self.form.field or field_id in self.form.secondary_fields:
            return False
        self.form.secondary_fields.append(field_id)
        return True

    def remove_secondary_field(self, field_id: str) -> None:
        self.form.secondary_fields = [item for item in self.form.secondary_fields if item != field_id]

    # Authors stage --------------------------------------------------------

    async def add_author(self, author: AuthorInput) -> bool:
        """Validate and append an author. Never moves the wizard."""
        errors: dict[str, str] = {}
        if not author.full_name.strip():
            errors["authorName"] = "Author name is required"
        if not author.email.strip():
            errors["authorEmail"] = "Author email is required"
        elif not is_valid_email(author.email):
            errors["authorEmail"] = "Invalid email address"
        if errors:
            self.form_errors.update(errors)
            return False

        if self._authors is not None:
            has_account = await self._authors.check_email_exists(author.email.strip())
            author = author.model_copy(update={"has_account": has_account})
        self.form.authors.append(author)
        self.form_errors.pop("authorName", None)
        self.form_errors.pop("authorEmail", None)
        self.form_errors.pop("authors", None)
        return True

    def remove_author(self, index: int) -> None:
        if 0 <= index < len(self.form.authors):
            del self.form.authors[index]

    # Files stage ----------------------------------------------------------

    def select_thumbnail(self, file: LocalFile) -> bool:
        if not file.is_image:
            return self._reject("thumbnail", "Please choose an image file")
        if file.size > THUMBNAIL_MAX_BYTES:
            return self._reject("thumbnail", "Image size must not exceed 2MB")
        self.form.thumbnail = file
        self.form_errors.pop("thumbnail", None)
        return True

    def select_manuscript(self, file: LocalFile) -> bool:
        if file.extension not in MANUSCRIPT_EXTENSIONS:
            return self._reject("manuscript", "Only PDF or DOC/DOCX files are accepted")
        if file.size > DOCUMENT_MAX_BYTES:
            return self._reject("manuscript", "File size must not exceed 10MB")
        self.form.manuscript = file
        self.form_errors.pop("manuscript", None)
        return True

    def add_attachment(self, file: LocalFile) -> bool:
        if file.extension not in self.attachment_extensions:
            return self._reject("attachments", f"File type {file.extension or '(none)'} is not allowed")
        if file.size > DOCUMENT_MAX_BYTES:
            return self._reject("attachments", f"{file.name} exceeds the 10MB limit")
        self.form.attachments.append(file)
        self.form_errors.pop("attachments", None)
        return True

    def remove_attachment(self, index: int) -> None:
        if 0 <= index < len(self.form.attachments):
            del self.form.attachments[index]

    def _reject(self, key: str, message: str) -> bool:
        self.form_errors[key] = message
        logger.info("submission.file_rejected", field=key, reason=message)
        return False

    # Validation -----------------------------------------------------------

    def validate(self) -> bool:
        """Check the whole form; on failure jump to the first invalid stage."""
        errors: dict[str, str] = {}
        if not self.form.title.strip():
            errors["title"] = "Title is required"
        if not self.form.abstract.strip():
            errors["abstract"] = "Abstract is required"
        if not split_keywords(self.form.keywords):
            errors["keywords"] = "Keywords are required"
        if not self.form.field:
            errors["field"] = "Primary field is required"
        if not self.form.authors:
            errors["authors"] = "At least one author is required"
        if not self.editing and self.form.manuscript is None:
            errors["manuscript"] = "Manuscript is required"

        self.form_errors = errors
        if errors:
            self.stage = FIELD_STAGES.get(self.first_error_field, self.stage)
            return False
        return True

    @property
    def first_error_field(self) -> str | None:
        return next((key for key, value in self.form_errors.items() if value), None)

    # Submission -----------------------------------------------------------

    async def submit(self) -> SubmissionOutcome:
        if self.in_flight:
            logger.warning("submission.already_in_flight", article_id=self.article_id)
            return SubmissionOutcome(ok=False, failed_step="in_flight", message="A submission is already in progress")
        if self._pending is None and not self.validate():
            return SubmissionOutcome(ok=False, failed_step="validation", message=self.form_errors[self.first_error_field])

        self.in_flight = True
        try:
            if self.editing:
                return await self._submit_edit()
            return await self._submit_create()
        finally:
            self.in_flight = False

    async def _submit_create(self) -> SubmissionOutcome:
        if self._pending is None:
            outcome = await self._create_article()
            if outcome is not None:
                return outcome
        return await self._register_manuscript()

    async def _create_article(self) -> SubmissionOutcome | None:
        """Upload, then create. Returns an outcome only when the saga stops."""
        thumbnail_url = ""
        thumbnail_token: str | None = None
        if self.form.thumbnail is not None:
            try:
                image = await self._uploader.upload_thumbnail(self.form.thumbnail)
            except UploadError as exc:
                return self._upload_failed("thumbnail", "Failed to upload thumbnail", exc)
            thumbnail_url = image.secure_url
            thumbnail_token = image.delete_token

        manuscript = self.form.manuscript
        try:
            uploaded = await self._uploader.upload_article_file(manuscript)
        except UploadError as exc:
            await self._discard(thumbnail_token)
            return self._upload_failed("manuscript", "Failed to upload manuscript", exc)

        payload = self.form.to_payload()
        payload["thumbnail"] = thumbnail_url
        payload["status"] = ArticleStatus.SUBMITTED.value
        result = await self._articles.create(payload)
        if not result.ok:
            await self._discard(thumbnail_token, uploaded.delete_token)
            return SubmissionOutcome(ok=False, failed_step="create", message=result.message)

        self.article_id = result.value
        self._pending = _PendingRegistration(article_id=result.value, manuscript=manuscript, uploaded=uploaded)
        return None

    async def _register_manuscript(self) -> SubmissionOutcome:
        pending = self._pending
        result = await self._files.register(
            pending.article_id, "manuscript", pending.uploaded, pending.manuscript, round=1
        )
        if not result.ok:
            logger.warning("submission.registration_pending", article_id=pending.article_id)
            return SubmissionOutcome(
                ok=False, article_id=pending.article_id, failed_step="register", message=result.message
            )

        self._pending = None
        if self._drafts is not None:
            await self._drafts.clear()
        else:
            self.form.reset()
        self.stage = WizardStage.BASIC
        self._notifier.success("Article submitted successfully")
        logger.info("submission.completed", article_id=pending.article_id)
        return SubmissionOutcome(ok=True, article_id=pending.article_id)

    async def _submit_edit(self) -> SubmissionOutcome:
        article_id = self.article_id
        result = await self._articles.update(article_id, self.form.to_payload())
        if not result.ok:
            return SubmissionOutcome(ok=False, article_id=article_id, failed_step="update", message=result.message)

        warnings: list[str] = []
        if self.form.thumbnail is not None:
            try:
                image = await self._uploader.upload_thumbnail(self.form.thumbnail)
            except UploadError as exc:
                logger.warning("submission.thumbnail_failed", article_id=article_id, error=exc.message)
                self._notifier.error("Failed to upload thumbnail")
                warnings.append("thumbnail")
            else:
                thumbnail = await self._articles.set_thumbnail(article_id, image.secure_url)
                if thumbnail.ok:
                    self.form.thumbnail = None
                else:
                    warnings.append("thumbnail")

        remaining: list[LocalFile] = []
        for attachment in self.form.attachments:
            uploaded = await self._files.upload(article_id, "main", attachment, round=1)
            if not uploaded.ok:
                remaining.append(attachment)
                warnings.append(attachment.name)
        self.form.attachments = remaining

        if self._drafts is not None:
            # Keep whatever failed staged, and its text, for another try.
            if warnings:
                await self._drafts.save()
            else:
                await self._drafts.clear()
        return SubmissionOutcome(ok=True, article_id=article_id, warnings=warnings)

    def _upload_failed(self, step: str, message: str, exc: UploadError) -> SubmissionOutcome:
        logger.error("submission.upload_failed", step=step, error=exc.message)
        self._notifier.error(message)
        return SubmissionOutcome(ok=False, failed_step=step, message=message)

    async def _discard(self, *tokens: str | None) -> None:
        for token in tokens:
            if token:
                await self._uploader.discard(token)


def _copy_form(source: SubmissionForm, target: SubmissionForm) -> None:
    for name in SubmissionForm.__slots__:
        setattr(target, name, getattr(source, name))
