"""Article author records and the email lookup that derives `hasAccount`."""

from __future__ import annotations

from typing import Any

import structlog

from scijournal.models import ArticleAuthor

from .errors import ClientError
from .results import Result
from .state import ResourceStore

logger = structlog.get_logger(__name__)


class AuthorStore(ResourceStore[ArticleAuthor]):
    model = ArticleAuthor
    log_namespace = "author"

    @property
    def authors(self) -> list[ArticleAuthor]:
        return self.items

    async def list_for_article(self, article_id: str) -> Result[list[ArticleAuthor]]:
        async def effect() -> list[ArticleAuthor]:
            response = await self._api.get(f"/article-authors/{article_id}/authors")
            self.items = self._parse_many(response.data)
            return self.items

        return await self._run("authors", effect, failure_message="Failed to load article authors")

    async def list_all(
        self,
        *,
        has_account: bool | None = None,
        is_corresponding: bool | None = None,
    ) -> Result[list[ArticleAuthor]]:
        async def effect() -> list[ArticleAuthor]:
            response = await self._api.get(
                "/article-authors",
                {"hasAccount": has_account, "isCorresponding": is_corresponding},
            )
            self.items = self._parse_many(response.data)
            return self.items

        return await self._run("authors", effect, failure_message="Failed to load authors")

    async def get(self, author_id: str) -> Result[ArticleAuthor]:
        async def effect() -> ArticleAuthor:
            response = await self._api.get(f"/article-authors/{author_id}")
            self.current = self._parse(response.data)
            return self.current

        return await self._run("author", effect, failure_message="Failed to load author details")

    async def create(self, data: ArticleAuthor | dict[str, Any]) -> Result[ArticleAuthor]:
        payload = data.to_payload(exclude={"has_account"}) if isinstance(data, ArticleAuthor) else data

        async def effect() -> ArticleAuthor:
            response = await self._api.post("/article-authors", payload)
            author = self._parse(response.data)
            self.items = [*self.items, author]
            return author

        return await self._run(
            "createAuthor",
            effect,
            failure_message="Failed to create author",
            success_message="Author created successfully",
        )

    async def update(self, author_id: str, data: dict[str, Any]) -> Result[ArticleAuthor]:
        # hasAccount is derived server-side from the email; never sent.
        payload = {key: value for key, value in data.items() if key != "hasAccount"}

        async def effect() -> ArticleAuthor:
            response = await self._api.put(f"/article-authors/{author_id}", payload)
            author = self._parse(response.data)
            self._replace(author)
            return author

        return await self._run(
            "updateAuthor",
            effect,
            failure_message="Failed to update author",
            success_message="Author updated successfully",
        )

    async def delete(self, author_id: str) -> Result[None]:
        async def effect() -> None:
            await self._api.delete(f"/article-authors/{author_id}")
            self._drop(author_id)

        return await self._run(
            "deleteAuthor",
            effect,
            failure_message="Failed to delete author",
            success_message="Author deleted successfully",
        )

    async def check_email_exists(self, email: str) -> bool:
        """Ask the user directory whether an account uses this email.

        Lookup failures count as "no account".
        """
        try:
            response = await self._api.post("/auth/check-email", {"email": email})
        except ClientError as exc:
            logger.info("author.email_lookup_failed", error=str(exc))
            return False
        extra = response.model_extra or {}
        return bool(extra.get("exists", response.data))
