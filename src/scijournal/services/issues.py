"""Journal issues and the articles bound into them."""

from __future__ import annotations

from typing import Any

from scijournal.models import Issue

from .errors import ValidationError
from .results import Result
from .state import ResourceStore


class IssueStore(ResourceStore[Issue]):
    model = Issue
    log_namespace = "issue"

    @property
    def issues(self) -> list[Issue]:
        return self.items

    async def list(self, *, is_published: bool | None = None) -> Result[list[Issue]]:
        async def effect() -> list[Issue]:
            response = await self._api.get("/issues", {"isPublished": is_published})
            self.items = self._parse_many(response.data)
            return self.items

        return await self._run("issues", effect, failure_message="Failed to load issues")

    async def get(self, issue_id: str) -> Result[Issue]:
        async def effect() -> Issue:
            response = await self._api.get(f"/issues/{issue_id}")
            self.current = self._parse(response.data)
            return self.current

        return await self._run("issue", effect, failure_message="Failed to load issue details")

    async def create(self, data: dict[str, Any]) -> Result[Issue]:
        async def effect() -> Issue:
            response = await self._api.post("/issues", data)
            issue = self._parse(response.data)
            self.items = [issue, *self.items]
            return issue

        return await self._run(
            "createIssue",
            effect,
            failure_message="Failed to create issue",
            success_message="Issue created successfully",
        )

    async def update(self, issue_id: str, data: dict[str, Any]) -> Result[Issue]:
        return await self._mutate(
            "updateIssue",
            self._api.put,
            f"/issues/{issue_id}",
            data,
            failure_message="Failed to update issue",
            success_message="Issue updated successfully",
        )

    async def delete(self, issue_id: str) -> Result[None]:
        async def effect() -> None:
            await self._api.delete(f"/issues/{issue_id}")
            self._drop(issue_id)

        return await self._run(
            "deleteIssue",
            effect,
            failure_message="Failed to delete issue",
            success_message="Issue deleted successfully",
        )

    async def publish(self, issue_id: str) -> Result[Issue]:
        """Publish an issue. Publishing twice is refused before any request."""
        known = self.find(issue_id) or (
            self.current if self.current and self.current.id == issue_id else None
        )

        async def effect() -> Issue:
            if known is not None and known.is_published:
                raise ValidationError("Issue is already published", errors={"isPublished": "true"})
            response = await self._api.put(f"/issues/{issue_id}/publish", {})
            issue = self._parse(response.data)
            self._replace(issue)
            return issue

        return await self._run(
            "publishIssue",
            effect,
            failure_message="Failed to publish issue",
            success_message="Issue published successfully",
        )

    async def add_article(self, issue_id: str, article_id: str) -> Result[Issue]:
        return await self._mutate(
            "addArticleToIssue",
            self._api.put,
            f"/issues/{issue_id}/add-article",
            {"articleId": article_id},
            failure_message="Failed to add article to issue",
            success_message="Article added to issue",
        )

    async def remove_article(self, issue_id: str, article_id: str) -> Result[Issue]:
        return await self._mutate(
            "removeArticleFromIssue",
            self._api.put,
            f"/issues/{issue_id}/remove-article",
            {"articleId": article_id},
            failure_message="Failed to remove article from issue",
            success_message="Article removed from issue",
        )

    async def _mutate(self, key, method, path, payload, *, failure_message, success_message):
        async def effect() -> Issue:
            response = await method(path, payload)
            issue = self._parse(response.data)
            self._replace(issue)
            return issue

        return await self._run(
            key, effect, failure_message=failure_message, success_message=success_message
        )
