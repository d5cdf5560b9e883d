"""Shared operation bookkeeping for the stores.

Every store operation runs the same four steps through :meth:`Store._run`:
mark the operation as loading and clear its error, await the effect, record
either the result or a fixed per-operation message, and finally drop the
loading flag. Transport details never reach the caller; they are logged and
kept on the returned :class:`~scijournal.services.results.Failure`.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, TypeVar

import structlog
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .errors import ClientError
from .http import ApiClient
from .notifications import Notifier
from .results import Failure, Result, Success

logger = structlog.get_logger(__name__)

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)


@dataclass(slots=True)
class OperationState:
    """Operation-keyed loading flags and error messages read by every UI."""

    loading: dict[str, bool] = field(default_factory=dict)
    errors: dict[str, str | None] = field(default_factory=dict)

    def start(self, key: str) -> None:
        self.loading[key] = True
        self.errors[key] = None

    def fail(self, key: str, message: str) -> None:
        self.errors[key] = message

    def finish(self, key: str) -> None:
        self.loading[key] = False

    def is_loading(self, key: str) -> bool:
        return self.loading.get(key, False)

    def any_loading(self, *keys: str) -> bool:
        return any(self.is_loading(key) for key in keys)

    def error(self, key: str) -> str | None:
        return self.errors.get(key)

    def clear_error(self, key: str) -> None:
        self.errors[key] = None

    def clear_all_errors(self) -> None:
        self.errors.clear()


class Store:
    """Base for the stores: collaborators are injected, nothing is global."""

    # Prefix for this store's log events, e.g. ``article.operation_failed``.
    log_namespace = "store"

    def __init__(
        self,
        api: ApiClient,
        notifier: Notifier,
        state: OperationState | None = None,
    ) -> None:
        self._api = api
        self._notifier = notifier
        self.state = state or OperationState()

    @property
    def loading(self) -> dict[str, bool]:
        return self.state.loading

    @property
    def errors(self) -> dict[str, str | None]:
        return self.state.errors

    async def _run(
        self,
        key: str,
        effect: Callable[[], Awaitable[T]],
        *,
        failure_message: str,
        success_message: str | Callable[[T], str] | None = None,
        is_current: Callable[[], bool] | None = None,
    ) -> Result[T]:
        """Run one operation under ``key``.

        When ``is_current`` is given and returns False once the effect is
        done, the call has been superseded by a newer one: its outcome is
        returned but the shared loading and error state belongs to the
        newer call, so it is left alone and nothing is notified.
        """
        self.state.start(key)
        try:
            value = await effect()
        except (ClientError, PydanticValidationError) as exc:
            if is_current is not None and not is_current():
                logger.info(f"{self.log_namespace}.stale_failure", operation=key, error=str(exc))
                return Failure(failure_message, exc)
            logger.error(f"{self.log_namespace}.operation_failed", operation=key, error=str(exc))
            self.state.fail(key, failure_message)
            self._notifier.error(failure_message)
            return Failure(failure_message, exc)
        finally:
            if is_current is None or is_current():
                self.state.finish(key)

        if success_message is not None:
            message = success_message(value) if callable(success_message) else success_message
            self._notifier.success(message)
        return Success(value)


class ResourceStore(Store, Generic[M]):
    """A store holding one collection of records plus one open record."""

    model: type[M]

    def __init__(
        self,
        api: ApiClient,
        notifier: Notifier,
        state: OperationState | None = None,
    ) -> None:
        super().__init__(api, notifier, state)
        self.items: list[M] = []
        self.current: M | None = None

    def _parse(self, data) -> M:
        return self.model.model_validate(data)

    def _parse_many(self, data) -> list[M]:
        if not isinstance(data, list):
            return []
        return [self.model.model_validate(item) for item in data]

    def _replace(self, record: M) -> None:
        record_id = getattr(record, "id", None)
        self.items = [record if getattr(item, "id", None) == record_id else item for item in self.items]
        if self.current is not None and getattr(self.current, "id", None) == record_id:
            self.current = record

    def _drop(self, record_id: str) -> None:
        self.items = [item for item in self.items if getattr(item, "id", None) != record_id]
        if self.current is not None and getattr(self.current, "id", None) == record_id:
            self.current = None

    def find(self, record_id: str) -> M | None:
        return next((item for item in self.items if getattr(item, "id", None) == record_id), None)
