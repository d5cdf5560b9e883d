"""Authenticated REST client for the journal backend."""

from __future__ import annotations

from typing import Any, Callable

import httpx
import structlog

from scijournal.models import ApiResponse
from scijournal.settings import Settings

from .errors import ApiError, AuthenticationError, NotFoundError, TransportError
from .storage import TOKEN_KEY, KeyValueStorage

logger = structlog.get_logger(__name__)

LOGIN_PATH = "/login"


class ApiClient:
    """Thin wrapper over `httpx.AsyncClient` that speaks the backend envelope.

    Every request carries the bearer token found in local storage. Responses
    are normalized into :class:`ApiResponse`; anything else becomes a
    :class:`~scijournal.services.errors.ClientError`. There is no retry: a
    failed call is reported once and the caller decides what to do.

    A 401 evicts the stored token and hands ``/login`` to ``on_unauthorized``
    before raising :class:`AuthenticationError`.
    """

    def __init__(
        self,
        settings: Settings,
        storage: KeyValueStorage,
        *,
        client: httpx.AsyncClient | None = None,
        on_unauthorized: Callable[[str], None] | None = None,
    ) -> None:
        self._settings = settings
        self._storage = storage
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
        )
        self._on_unauthorized = on_unauthorized

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> bool:
        await self.aclose()
        return False

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def set_token(self, token: str) -> None:
        await self._storage.set_item(TOKEN_KEY, token)

    async def clear_token(self) -> None:
        await self._storage.remove_item(TOKEN_KEY)

    async def get(self, path: str, params: dict[str, Any] | None = None) -> ApiResponse:
        return await self._request("GET", path, params=params)

    async def post(self, path: str, data: Any = None) -> ApiResponse:
        return await self._request("POST", path, json=data)

    async def put(self, path: str, data: Any = None) -> ApiResponse:
        return await self._request("PUT", path, json=data)

    async def patch(self, path: str, data: Any = None) -> ApiResponse:
        return await self._request("PATCH", path, json=data)

    async def delete(self, path: str) -> ApiResponse:
        return await self._request("DELETE", path)

    async def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> ApiResponse:
        headers: dict[str, str] = {}
        token = await self._storage.get_item(TOKEN_KEY)
        if token:
            headers["Authorization"] = f"Bearer {token}"
        query = {key: value for key, value in (params or {}).items() if value is not None}

        try:
            response = await self._client.request(
                method,
                path,
                params=query or None,
                json=json,
                headers=headers,
                timeout=self._settings.request_timeout,
            )
        except httpx.TimeoutException as exc:
            logger.warning("api.timeout", method=method, path=path, error=str(exc))
            raise TransportError(f"Request timed out: {method} {path}") from exc
        except httpx.HTTPError as exc:
            logger.warning("api.transport_error", method=method, path=path, error=str(exc))
            raise TransportError(f"Request failed: {method} {path}") from exc

        return await self._handle_response(response)

    async def _handle_response(self, response: httpx.Response) -> ApiResponse:
        """Map HTTP errors to exceptions and unwrap the envelope."""
        status_code = response.status_code
        body = _json_or_none(response)

        if status_code == 401:
            logger.info("api.unauthorized", url=str(response.url))
            await self._storage.remove_item(TOKEN_KEY)
            if self._on_unauthorized is not None:
                self._on_unauthorized(LOGIN_PATH)
            raise AuthenticationError()
        if status_code == 404:
            raise NotFoundError(f"Resource not found: {response.url}")
        if not response.is_success:
            if status_code >= 500:
                logger.error("api.server_error", status=status_code, url=str(response.url))
            raise ApiError(
                f"API error {status_code}: {response.url}",
                status_code=status_code,
                server_message=body.get("message") if isinstance(body, dict) else None,
            )

        if not isinstance(body, dict):
            return ApiResponse(data=body)
        envelope = ApiResponse.model_validate(body)
        if not envelope.success:
            raise ApiError(
                f"Request was rejected: {response.url}",
                status_code=status_code,
                server_message=envelope.message,
            )
        return envelope


def _json_or_none(response: httpx.Response) -> Any:
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return None
