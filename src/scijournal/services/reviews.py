"""Peer review invitations and their outcomes."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any

from scijournal.models import Review

from .results import Result
from .state import ResourceStore


@dataclass(slots=True)
class ReviewerInvite:
    reviewer_id: str
    response_deadline: datetime
    review_deadline: datetime

    def to_payload(self) -> dict[str, str]:
        return {
            "reviewerId": self.reviewer_id,
            "responseDeadline": self.response_deadline.isoformat(),
            "reviewDeadline": self.review_deadline.isoformat(),
        }


class ReviewStore(ResourceStore[Review]):
    model = Review
    log_namespace = "review"

    @property
    def reviews(self) -> list[Review]:
        return self.items

    async def list(
        self,
        *,
        article_id: str | None = None,
        reviewer_id: str | None = None,
        status: str | None = None,
        round: int | None = None,
    ) -> Result[list[Review]]:
        params = {"articleId": article_id, "reviewerId": reviewer_id, "status": status, "round": round}

        async def effect() -> list[Review]:
            response = await self._api.get("/reviews", params)
            self.items = self._parse_many(response.data)
            return self.items

        return await self._run("reviews", effect, failure_message="Failed to load reviews")

    async def get(self, review_id: str) -> Result[Review]:
        async def effect() -> Review:
            response = await self._api.get(f"/reviews/{review_id}")
            self.current = self._parse(response.data)
            return self.current

        return await self._run("review", effect, failure_message="Failed to load review details")

    async def create(self, data: dict[str, Any]) -> Result[str | None]:
        async def effect() -> str | None:
            response = await self._api.post("/reviews", data)
            review = self._parse(response.data)
            self.items = [*self.items, review]
            return review.id

        return await self._run(
            "createReview",
            effect,
            failure_message="Failed to send review invitation",
            success_message="Review invitation sent successfully",
        )

    async def create_many(self, article_id: str, reviewers: list[ReviewerInvite]) -> Result[list[Review]]:
        async def effect() -> list[Review]:
            response = await self._api.post(
                "/reviews/multiple",
                {"articleId": article_id, "reviewers": [item.to_payload() for item in reviewers]},
            )
            created = self._parse_many(response.data)
            self.items = [*self.items, *created]
            return created

        return await self._run(
            "createMultipleReviews",
            effect,
            failure_message="Failed to send review invitations",
            success_message=lambda created: f"{len(created)} review invitations sent successfully",
        )

    async def update(self, review_id: str, data: dict[str, Any]) -> Result[Review]:
        return await self._transition(
            "updateReview",
            f"/reviews/{review_id}",
            data,
            failure_message="Failed to update review",
            success_message="Review updated successfully",
        )

    async def delete(self, review_id: str) -> Result[None]:
        async def effect() -> None:
            await self._api.delete(f"/reviews/{review_id}")
            self._drop(review_id)

        return await self._run(
            "deleteReview",
            effect,
            failure_message="Failed to delete review",
            success_message="Review deleted successfully",
        )

    async def accept(self, review_id: str) -> Result[Review]:
        return await self._transition(
            "acceptReview",
            f"/reviews/{review_id}/accept",
            {},
            failure_message="Failed to accept review invitation",
            success_message="Review invitation accepted",
        )

    async def decline(self, review_id: str, reason: str) -> Result[Review]:
        return await self._transition(
            "declineReview",
            f"/reviews/{review_id}/decline",
            {"declineReason": reason},
            failure_message="Failed to decline review invitation",
            success_message="Review invitation declined",
        )

    async def complete(
        self,
        review_id: str,
        recommendation: str,
        comments_for_author: str | None = None,
        comments_for_editor: str | None = None,
    ) -> Result[Review]:
        payload = {
            "recommendation": recommendation,
            "commentsForAuthor": comments_for_author,
            "commentsForEditor": comments_for_editor,
        }
        return await self._transition(
            "completeReview",
            f"/reviews/{review_id}/complete",
            {key: value for key, value in payload.items() if value is not None},
            failure_message="Failed to submit review",
            success_message="Review submitted successfully",
        )

    async def send_reminder(self, review_id: str) -> Result[None]:
        async def effect() -> None:
            await self._api.post(f"/reviews/{review_id}/reminder", {})

        return await self._run(
            "sendReminder",
            effect,
            failure_message="Failed to send reminder",
            success_message="Reminder sent successfully",
        )

    def reset_review(self) -> None:
        self.current = None

    async def _transition(self, key, path, payload, *, failure_message, success_message):
        async def effect() -> Review:
            response = await self._api.put(path, payload)
            review = self._parse(response.data)
            self._replace(review)
            return review

        return await self._run(
            key, effect, failure_message=failure_message, success_message=success_message
        )
