"""
HTTP client for the AI collaborators (context actions, fact-check).
"""

from typing import Any, Dict, Optional

import httpx
import structlog

from core.config import AI_BASE_URL, AI_REQUEST_TIMEOUT_SEC
from core.exceptions import NetworkError
from utils.retry import get_ai_retry_decorator

logger = structlog.get_logger(__name__)


def error_message(response: httpx.Response, fallback: Optional[str] = None) -> str:
    """Server-provided error text, or a fallback when the body has none."""
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict):
        error = body.get("error") or body.get("message") or body.get("detail")
        if isinstance(error, dict):
            error = error.get("message")
        if isinstance(error, str) and error:
            return error
    return fallback or f"Request failed with status {response.status_code}"


class AIServiceClient:
    """Thin async JSON client over ``httpx.AsyncClient``."""

    def __init__(
        self,
        base_url: str = AI_BASE_URL,
        *,
        timeout: float = AI_REQUEST_TIMEOUT_SEC,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        headers: Optional[Dict[str, str]] = None,
    ):
        self.base_url = base_url
        self._client = httpx.AsyncClient(
            base_url=base_url,
            timeout=timeout,
            transport=transport,
            headers=headers,
        )

    async def __aenter__(self) -> "AIServiceClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._client.aclose()

    @get_ai_retry_decorator()
    async def _post(self, path: str, payload: Dict[str, Any]) -> httpx.Response:
        return await self._client.post(path, json=payload)

    async def post_json(
        self,
        path: str,
        payload: Dict[str, Any],
        *,
        fallback_message: Optional[str] = None,
    ) -> Dict[str, Any]:
        try:
            response = await self._post(path, payload)
        except httpx.HTTPError as exc:
            logger.warning("AI request failed", path=path, error=str(exc))
            raise NetworkError(fallback_message or f"Request to {path} failed: {exc}") from exc

        if response.is_error:
            message = error_message(response, fallback_message)
            logger.warning("AI request rejected", path=path, status=response.status_code, error=message)
            raise NetworkError(message, response.status_code)

        try:
            data = response.json()
        except ValueError as exc:
            raise NetworkError(f"Invalid JSON from {path}", response.status_code) from exc
        if not isinstance(data, dict):
            raise NetworkError(f"Unexpected response shape from {path}", response.status_code)
        return data
