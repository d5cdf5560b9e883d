"""Classification taxonomy (research fields)."""

from __future__ import annotations

from typing import Any

from scijournal.models import ResearchField

from .errors import ValidationError
from .results import Result
from .state import ResourceStore


class FieldStore(ResourceStore[ResearchField]):
    """Fields form a tree; a node's level always follows from its parent."""

    model = ResearchField
    log_namespace = "field"

    @property
    def fields(self) -> list[ResearchField]:
        return self.items

    async def list(
        self,
        *,
        is_active: bool | None = None,
        level: int | None = None,
        parent: str | None = None,
    ) -> Result[list[ResearchField]]:
        async def effect() -> list[ResearchField]:
            response = await self._api.get(
                "/fields", {"isActive": is_active, "level": level, "parent": parent}
            )
            self.items = self._parse_many(response.data)
            return self.items

        return await self._run("fields", effect, failure_message="Failed to load fields")

    async def get(self, field_id: str) -> Result[ResearchField]:
        async def effect() -> ResearchField:
            response = await self._api.get(f"/fields/{field_id}")
            self.current = self._parse(response.data)
            return self.current

        return await self._run("field", effect, failure_message="Failed to load field details")

    async def create(self, data: dict[str, Any]) -> Result[str | None]:
        async def effect() -> str | None:
            payload = await self._with_level(None, data)
            response = await self._api.post("/fields", payload)
            created = self._parse(response.data)
            self.items = [*self.items, created]
            return created.id

        return await self._run(
            "createField",
            effect,
            failure_message="Failed to create field",
            success_message="Field created successfully",
        )

    async def update(self, field_id: str, data: dict[str, Any]) -> Result[ResearchField]:
        async def effect() -> ResearchField:
            payload = await self._with_level(field_id, data)
            response = await self._api.put(f"/fields/{field_id}", payload)
            updated = self._parse(response.data)
            self._replace(updated)
            return updated

        return await self._run(
            "updateField",
            effect,
            failure_message="Failed to update field",
            success_message="Field updated successfully",
        )

    async def delete(self, field_id: str) -> Result[None]:
        async def effect() -> None:
            await self._api.delete(f"/fields/{field_id}")
            self._drop(field_id)

        return await self._run(
            "deleteField",
            effect,
            failure_message="Failed to delete field",
            success_message="Field deleted successfully",
        )

    async def toggle_status(self, field_id: str) -> Result[ResearchField]:
        async def effect() -> ResearchField:
            response = await self._api.patch(f"/fields/{field_id}/toggle-status", {})
            toggled = self._parse(response.data)
            self._replace(toggled)
            return toggled

        return await self._run(
            "toggleFieldStatus",
            effect,
            failure_message="Failed to toggle field status",
            success_message=lambda item: f"Field {'activated' if item.is_active else 'deactivated'} successfully",
        )

    async def _with_level(self, field_id: str | None, data: dict[str, Any]) -> dict[str, Any]:
        """Copy `data` with `level` derived from the parent, ignoring any given level."""
        payload = {key: value for key, value in data.items() if key != "level"}
        parent_id = payload.get("parent") or None
        if parent_id is None:
            if "parent" in data or field_id is None:
                payload["level"] = 1
            return payload
        if field_id is not None and parent_id == field_id:
            raise ValidationError("A field cannot be its own parent", errors={"parent": "invalid"})
        parent = self.find(parent_id)
        if parent is None:
            response = await self._api.get(f"/fields/{parent_id}")
            parent = self._parse(response.data)
        payload["level"] = parent.level + 1
        return payload
