"""Editorial discussion threads attached to an article."""

from __future__ import annotations

from typing import Any

from scijournal.models import Discussion

from .results import Result
from .state import ResourceStore


class DiscussionStore(ResourceStore[Discussion]):
    model = Discussion
    log_namespace = "discussion"

    @property
    def discussions(self) -> list[Discussion]:
        return self.items

    async def list_for_article(self, article_id: str) -> Result[list[Discussion]]:
        async def effect() -> list[Discussion]:
            response = await self._api.get(f"/discussions/article/{article_id}")
            self.items = self._parse_many(response.data)
            return self.items

        return await self._run("discussions", effect, failure_message="Failed to load discussions")

    async def get(self, discussion_id: str) -> Result[Discussion]:
        async def effect() -> Discussion:
            response = await self._api.get(f"/discussions/{discussion_id}")
            self.current = self._parse(response.data)
            return self.current

        return await self._run(
            "discussion", effect, failure_message="Failed to load discussion details"
        )

    async def create(self, data: dict[str, Any]) -> Result[str | None]:
        async def effect() -> str | None:
            response = await self._api.post("/discussions", data)
            discussion = self._parse(response.data)
            self.items = [*self.items, discussion]
            return discussion.id

        return await self._run(
            "createDiscussion",
            effect,
            failure_message="Failed to create discussion",
            success_message="Discussion created successfully",
        )

    async def update(self, discussion_id: str, data: dict[str, Any]) -> Result[Discussion]:
        return await self._apply(
            "updateDiscussion",
            self._api.put(f"/discussions/{discussion_id}", data),
            failure_message="Failed to update discussion",
            success_message="Discussion updated successfully",
        )

    async def delete(self, discussion_id: str) -> Result[None]:
        async def effect() -> None:
            await self._api.delete(f"/discussions/{discussion_id}")
            self._drop(discussion_id)

        return await self._run(
            "deleteDiscussion",
            effect,
            failure_message="Failed to delete discussion",
            success_message="Discussion deleted successfully",
        )

    async def add_message(
        self, discussion_id: str, content: str, attachments: list[str] | None = None
    ) -> Result[Discussion]:
        return await self._apply(
            "addMessage",
            self._api.post(
                f"/discussions/{discussion_id}/messages",
                {"content": content, "attachments": attachments or []},
            ),
            failure_message="Failed to send message",
        )

    async def mark_read(self, discussion_id: str) -> Result[Discussion]:
        return await self._apply(
            "markAsRead",
            self._api.put(f"/discussions/{discussion_id}/mark-read", {}),
            failure_message="Failed to mark discussion as read",
        )

    async def add_participant(self, discussion_id: str, user_id: str) -> Result[Discussion]:
        return await self._apply(
            "addParticipant",
            self._api.put(f"/discussions/{discussion_id}/participants", {"userId": user_id}),
            failure_message="Failed to add participant",
            success_message="Participant added successfully",
        )

    async def remove_participant(self, discussion_id: str, user_id: str) -> Result[Discussion]:
        return await self._apply(
            "removeParticipant",
            self._api.delete(f"/discussions/{discussion_id}/participants/{user_id}"),
            failure_message="Failed to remove participant",
            success_message="Participant removed successfully",
        )

    def reset_discussion(self) -> None:
        self.current = None

    async def _apply(self, key, request, *, failure_message, success_message=None):
        # `request` is an unawaited coroutine; it only runs inside _run.
        async def effect() -> Discussion:
            response = await request
            discussion = self._parse(response.data)
            self._replace(discussion)
            return discussion

        return await self._run(
            key, effect, failure_message=failure_message, success_message=success_message
        )
