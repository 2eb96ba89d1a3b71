"""HTTP adapter – HttpxHttpClient."""
from __future__ import annotations

import dataclasses
from typing import Any, Iterable

import httpx

from flcm_rollout.kernel.errors import (
    ExternalServiceError,
    SerializationError,
    TimeoutError as AppTimeoutError,
)


@dataclasses.dataclass(frozen=True)
class JsonDocument:
    payload: Any
    etag: str | None = None


class HttpxHttpClient:
    """Async httpx wrapper that maps transport failures onto kernel errors.

    * timeouts raise :class:`~flcm_rollout.kernel.errors.TimeoutError`
    * non-2xx answers and connection failures raise
      :class:`~flcm_rollout.kernel.errors.ExternalServiceError`
      unless the status is listed in ``allow_status``
    """

    def __init__(self, base_url: str = "", timeout: float = 10.0, **kwargs: Any) -> None:
        self._client = httpx.AsyncClient(base_url=base_url, timeout=timeout, **kwargs)

    async def __aenter__(self) -> "HttpxHttpClient":
        await self._client.__aenter__()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self._client.__aexit__(*args)

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, url: str, *, allow_status: Iterable[int] = (), **kwargs: Any) -> httpx.Response:
        return await self._request("GET", url, allow_status=allow_status, **kwargs)

    async def get_json(
        self, url: str, *, etag: str | None = None, headers: dict[str, str] | None = None
    ) -> JsonDocument | None:
        """Conditional GET of a JSON document.

        Sends ``If-None-Match: <etag>`` when *etag* is given and returns
        ``None`` on ``304 Not Modified``.  A body that is not JSON raises
        :class:`~flcm_rollout.kernel.errors.SerializationError`.
        """
        sent = {"Accept": "application/json", **(headers or {})}
        if etag:
            sent["If-None-Match"] = etag
        response = await self.get(url, allow_status=(304,), headers=sent)
        if response.status_code == 304:
            return None
        try:
            payload = response.json()
        except ValueError as exc:
            raise SerializationError("Invalid JSON response", payload_type="json", cause=exc) from exc
        return JsonDocument(payload, response.headers.get("etag"))

    async def _request(
        self, method: str, url: str, *, allow_status: Iterable[int] = (), **kwargs: Any
    ) -> httpx.Response:
        try:
            response = await self._client.request(method, url, **kwargs)
            if response.status_code not in set(allow_status):
                response.raise_for_status()
            return response
        except httpx.TimeoutException as exc:
            raise AppTimeoutError(f"HTTP request timed out: {method} {url}") from exc
        except httpx.HTTPStatusError as exc:
            raise ExternalServiceError(
                service=url,
                message=f"HTTP {exc.response.status_code} from {method} {url}",
                status_code=exc.response.status_code,
            ) from exc
        except httpx.HTTPError as exc:
            raise ExternalServiceError(service=url, message=str(exc)) from exc


HttpClient = HttpxHttpClient

__all__ = ["HttpClient", "HttpxHttpClient", "JsonDocument"]
