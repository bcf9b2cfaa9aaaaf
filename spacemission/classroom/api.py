"""
ApiClient - Async HTTP access to the mission backend.

Every call returns an ApiResult instead of raising, so callers only ever
inspect result values. The backend wraps payloads as
{"success": bool, "data": ..., "message": str}.
"""

import logging
from dataclasses import dataclass
from typing import Any, Generic, Optional, TypeVar

import httpx

from spacemission.utils import Settings


logger = logging.getLogger(__name__)

T = TypeVar("T")

CONNECTION_ERROR_MESSAGE = "Could not connect to the server"


@dataclass
class ApiResult(Generic[T]):
    """Outcome of a call across the API boundary."""
    success: bool
    data: Optional[T] = None
    message: str = ""
    status_code: Optional[int] = None

    @classmethod
    def ok(cls, data: T, message: str = "") -> "ApiResult[T]":
        return cls(success=True, data=data, message=message)

    @classmethod
    def fail(cls, message: str, status_code: Optional[int] = None) -> "ApiResult[T]":
        return cls(success=False, data=None, message=message, status_code=status_code)


def _error_message(response: httpx.Response, default: str) -> str:
    """Prefer the backend's own message, then its error field."""
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict):
        return body.get("message") or body.get("error") or default
    return default


def unwrap(body: Any) -> Any:
    """Strip the {success, data} envelope when present."""
    if isinstance(body, dict) and "data" in body:
        return body["data"]
    return body


class ApiClient:
    """
    Thin wrapper over httpx.AsyncClient.

    Attaches the bearer token when one is configured. Use as an async
    context manager or call aclose() when done.
    """

    def __init__(
        self,
        base_url: str = "http://localhost:5000",
        timeout: float = 10.0,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        headers = {"Content-Type": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            headers=headers,
            transport=transport,
        )

    @classmethod
    def from_settings(cls, settings: Settings, **kwargs) -> "ApiClient":
        return cls(
            base_url=settings.api_base_url,
            timeout=settings.request_timeout,
            token=settings.api_token,
            **kwargs,
        )

    async def __aenter__(self) -> "ApiClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    async def get(self, path: str, params: Optional[dict] = None,
                  default_error: str = "Request failed") -> ApiResult[Any]:
        return await self._request("GET", path, default_error, params=params)

    async def post(self, path: str, json: Optional[dict] = None,
                   default_error: str = "Request failed") -> ApiResult[Any]:
        return await self._request("POST", path, default_error, json=json)

    async def _request(self, method: str, path: str, default_error: str, **kwargs) -> ApiResult[Any]:
        try:
            response = await self._client.request(method, path, **kwargs)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            message = _error_message(e.response, default_error)
            logger.warning(f"{method} {path} failed with {status}: {message}")
            return ApiResult.fail(message, status_code=status)
        except httpx.RequestError as e:
            logger.warning(f"{method} {path} failed: {e}")
            return ApiResult.fail(CONNECTION_ERROR_MESSAGE)
        except ValueError:
            logger.warning(f"{method} {path} returned a non-JSON body")
            return ApiResult.fail(default_error, status_code=response.status_code)

        if isinstance(body, dict) and body.get("success") is False:
            message = body.get("message") or body.get("error") or default_error
            return ApiResult.fail(message, status_code=response.status_code)

        return ApiResult.ok(body)
