"""Article lifecycle store: the client's source of truth for articles."""

from __future__ import annotations

import itertools
import math
from dataclasses import dataclass
from enum import Enum
from typing import Any

import structlog

from scijournal.models import Article, ArticleStatus, Pagination

from .http import ApiClient
from .notifications import Notifier
from .results import Result
from .state import OperationState, ResourceStore

logger = structlog.get_logger(__name__)

# Next states a UI should offer. The store itself accepts any status; the
# backend decides what is legal.
ALLOWED_TRANSITIONS: dict[ArticleStatus, tuple[ArticleStatus, ...]] = {
    ArticleStatus.DRAFT: (ArticleStatus.SUBMITTED,),
    ArticleStatus.SUBMITTED: (ArticleStatus.UNDER_REVIEW,),
    ArticleStatus.UNDER_REVIEW: (
        ArticleStatus.ACCEPTED,
        ArticleStatus.REJECTED,
        ArticleStatus.REVISION_REQUESTED,
    ),
    ArticleStatus.REVISION_REQUESTED: (ArticleStatus.SUBMITTED,),
    ArticleStatus.ACCEPTED: (ArticleStatus.PUBLISHED,),
    ArticleStatus.REJECTED: (),
    ArticleStatus.PUBLISHED: (),
}


def next_statuses(status: ArticleStatus) -> tuple[ArticleStatus, ...]:
    return ALLOWED_TRANSITIONS.get(ArticleStatus(status), ())


class CachePolicy(str, Enum):
    """How the collection is brought back in line after a mutation.

    Both policies edit the local collection and its pagination counters;
    ``REFETCH`` additionally re-runs the last listing query.
    """

    REFETCH = "refetch"
    RECONCILE = "reconcile"


@dataclass(slots=True)
class ArticleQuery:
    page: int = 1
    limit: int = 10
    status: ArticleStatus | None = None
    field: str | None = None
    submitter_id: str | None = None
    editor_id: str | None = None
    search: str | None = None

    def to_params(self) -> dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "status": ArticleStatus(self.status).value if self.status else None,
            "field": self.field,
            "submitterId": self.submitter_id,
            "editorId": self.editor_id,
            "search": self.search,
        }


@dataclass(slots=True)
class PublishDetails:
    doi: str | None = None
    issue_id: str | None = None
    page_start: int | None = None
    page_end: int | None = None

    def to_payload(self) -> dict[str, Any]:
        payload = {
            "doi": self.doi,
            "issueId": self.issue_id,
            "pageStart": self.page_start,
            "pageEnd": self.page_end,
        }
        return {key: value for key, value in payload.items() if value is not None}


class ArticleStore(ResourceStore[Article]):
    """Holds the article collection, the open article, and pagination.

    Each operation returns a :class:`~scijournal.services.results.Result`
    and records its loading flag and error message under a fixed key
    (``articles``, ``article``, ``createArticle``, ...).
    """

    model = Article
    log_namespace = "article"

    def __init__(
        self,
        api: ApiClient,
        notifier: Notifier,
        state: OperationState | None = None,
        *,
        cache_policy: CachePolicy = CachePolicy.REFETCH,
    ) -> None:
        super().__init__(api, notifier, state)
        self.cache_policy = cache_policy
        self.pagination = Pagination()
        self.stats: dict[str, int] = {}
        self._last_query: ArticleQuery | None = None
        self._tokens = itertools.count(1)
        self._latest_token = 0

    @property
    def articles(self) -> list[Article]:
        return self.items

    @property
    def article(self) -> Article | None:
        return self.current

    async def list(self, query: ArticleQuery | None = None) -> Result[list[Article]]:
        """Replace the collection and pagination with one page from the server."""
        query = query or ArticleQuery()

        async def effect() -> list[Article]:
            response = await self._api.get("/articles", query.to_params())
            articles = self._parse_many(response.data)
            self.items = articles
            self.pagination = response.pagination or Pagination()
            self._last_query = query
            return articles

        return await self._run("articles", effect, failure_message="Failed to load articles")

    async def get_by_id(self, article_id: str) -> Result[Article]:
        """Load one article into the open slot.

        Only the most recently issued request may fill the slot or touch the
        ``article`` loading and error state; an older response that arrives
        late is returned to its caller but discarded.
        """
        token = next(self._tokens)
        self._latest_token = token

        async def effect() -> Article:
            response = await self._api.get(f"/articles/{article_id}")
            article = self._parse(response.data)
            if token != self._latest_token:
                logger.info("article.stale_response", article_id=article_id, token=token)
                return article
            self.current = article
            return article

        return await self._run(
            "article",
            effect,
            failure_message="Failed to load article details",
            is_current=lambda: token == self._latest_token,
        )

    async def fetch_stats(self) -> Result[dict[str, int]]:
        async def effect() -> dict[str, int]:
            response = await self._api.get("/articles/stats")
            self.stats = dict(response.data or {})
            return self.stats

        return await self._run(
            "articleStats", effect, failure_message="Failed to load article statistics"
        )

    async def create(self, data: dict[str, Any]) -> Result[str]:
        """Create an article; the result carries the backend-assigned id."""

        async def effect() -> str:
            response = await self._api.post("/articles", data)
            article = self._parse(response.data)
            self.items = [article, *self.items]
            self._shift_total(1)
            logger.info("article.created", article_id=article.id, status=article.status.value)
            return article.id

        result = await self._run(
            "createArticle",
            effect,
            failure_message="Failed to create article",
            success_message="Article created successfully",
        )
        await self._after_mutation(result.ok)
        return result

    async def update(self, article_id: str, data: dict[str, Any]) -> Result[Article]:
        async def effect() -> Article:
            response = await self._api.put(f"/articles/{article_id}/update", data)
            article = self._parse(response.data)
            self._replace(article)
            return article

        result = await self._run(
            "updateArticle",
            effect,
            failure_message="Failed to update article",
            success_message="Article updated successfully",
        )
        await self._after_mutation(result.ok)
        return result

    async def delete(self, article_id: str) -> Result[None]:
        """Remove an article for good; there is no undo."""

        async def effect() -> None:
            await self._api.delete(f"/articles/{article_id}")
            known = self.find(article_id) is not None
            self._drop(article_id)
            if known:
                self._shift_total(-1)
            logger.info("article.deleted", article_id=article_id)

        result = await self._run(
            "deleteArticle",
            effect,
            failure_message="Failed to delete article",
            success_message="Article deleted successfully",
        )
        await self._after_mutation(result.ok)
        return result

    async def change_status(
        self, article_id: str, status: ArticleStatus | str, reason: str = ""
    ) -> Result[Article]:
        """Request a status transition; the backend appends the history entry."""
        status = ArticleStatus(status)
        previous = self.find(article_id) or (
            self.current if self.current and self.current.id == article_id else None
        )

        async def effect() -> Article:
            response = await self._api.patch(
                f"/articles/{article_id}/status", {"status": status.value, "reason": reason}
            )
            article = self._parse(response.data)
            if previous is not None and not history_extends(previous, article):
                logger.warning(
                    "article.history_rewritten",
                    article_id=article_id,
                    before=len(previous.status_history),
                    after=len(article.status_history),
                )
            self._replace(article)
            return article

        result = await self._run(
            "changeStatus",
            effect,
            failure_message="Failed to change article status",
            success_message=f"Article status changed to {status.value}",
        )
        await self._after_mutation(result.ok)
        return result

    async def publish(self, article_id: str, details: PublishDetails) -> Result[Article]:
        # Page order is left to the backend.
        async def effect() -> Article:
            response = await self._api.put(f"/articles/{article_id}/publish", details.to_payload())
            article = self._parse(response.data)
            self._replace(article)
            return article

        result = await self._run(
            "publishArticle",
            effect,
            failure_message="Failed to publish article",
            success_message="Article published successfully",
        )
        await self._after_mutation(result.ok)
        return result

    async def assign_editor(self, article_id: str, editor_id: str) -> Result[Article]:
        async def effect() -> Article:
            response = await self._api.put(
                f"/articles/{article_id}/assign-editor", {"editorId": editor_id}
            )
            article = self._parse(response.data)
            self._replace(article)
            return article

        result = await self._run(
            "assignEditor",
            effect,
            failure_message="Failed to assign editor",
            success_message="Editor assigned successfully",
        )
        await self._after_mutation(result.ok)
        return result

    async def set_thumbnail(self, article_id: str, thumbnail_url: str) -> Result[Article | None]:
        async def effect() -> Article | None:
            response = await self._api.put(
                f"/articles/{article_id}/thumbnail", {"thumbnail": thumbnail_url}
            )
            if not isinstance(response.data, dict):
                return None
            article = self._parse(response.data)
            self._replace(article)
            return article

        return await self._run(
            "uploadThumbnail", effect, failure_message="Failed to upload thumbnail"
        )

    def reset_article(self) -> None:
        self.current = None

    # Internal helpers -----------------------------------------------------

    def _shift_total(self, delta: int) -> None:
        total = max(self.pagination.total + delta, 0)
        limit = self.pagination.limit or 1
        self.pagination = self.pagination.model_copy(
            update={"total": total, "pages": math.ceil(total / limit)}
        )

    async def _after_mutation(self, succeeded: bool) -> None:
        if not succeeded or self.cache_policy is not CachePolicy.REFETCH:
            return
        await self.list(self._last_query)


def history_extends(before: Article, after: Article) -> bool:
    """True when `after`'s status history keeps every entry of `before` in order."""
    old = before.status_history
    new = after.status_history
    return len(new) >= len(old) and new[: len(old)] == old
