# src/stack_track/fetch/stackexchange.py

from __future__ import annotations

import logging
from typing import Any

import httpx

from ..core.errors import FetchError
from ..core.models import Tag
from ..core.ports import RawQuestionItem

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.stackexchange.com/2.2"
UNANSWERED_PATH = "/questions/unanswered"


def _make_timeout(timeout_s: float) -> httpx.Timeout:
    # Connect fast, allow the API a little longer to answer.
    return httpx.Timeout(timeout_s, connect=min(5.0, timeout_s))


class StackExchangeFetcher:
    """
    Fetch unanswered questions for one tag from the Stack Exchange API.

    The returned items are the raw API objects; parsing happens in the cache.
    Errors of any kind are raised as FetchError.
    """

    def __init__(
            self,
            base_url: str = DEFAULT_BASE_URL,
            *,
            api_key: str | None = None,
            timeout_seconds: float = 20.0,
            client: httpx.AsyncClient | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=_make_timeout(float(timeout_seconds)))

    def build_params(self, tag: Tag, quantity: int) -> dict[str, Any]:
        params: dict[str, Any] = {
            "site": tag.get_network().root,
            "tagged": tag.name,
            "pagesize": int(quantity),
        }
        if self._api_key:
            params["key"] = self._api_key
        return params

    async def fetch(self, tag: Tag, quantity: int) -> list[RawQuestionItem]:
        try:
            params = self.build_params(tag, quantity)
        except KeyError as e:
            raise FetchError(str(e)) from e

        url = f"{self._base_url}{UNANSWERED_PATH}"
        try:
            resp = await self._client.get(url, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise FetchError(f"HTTP {e.response.status_code} for tag={tag}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"request failed for tag={tag}: {e}") from e
        except ValueError as e:
            raise FetchError(f"invalid JSON for tag={tag}") from e

        if not isinstance(data, dict):
            raise FetchError(f"unexpected response shape for tag={tag}")
        if "error_id" in data:
            raise FetchError(
                f"API error {data.get('error_id')} ({data.get('error_name')}) for tag={tag}: "
                f"{data.get('error_message')}"
            )

        items = data.get("items")
        if not isinstance(items, list):
            raise FetchError(f"response has no items list for tag={tag}")

        quota = data.get("quota_remaining")
        logger.debug("Fetched %d items tag=%s quota_remaining=%s", len(items), tag, quota)
        return items

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()
