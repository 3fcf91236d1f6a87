import logging
from typing import Any

import requests

from ..errors import UpstreamError

logger = logging.getLogger(__name__)

YOUTUBE_SEARCH_LIST = "https://www.googleapis.com/youtube/v3/search"
YOUTUBE_CHANNELS_LIST = "https://www.googleapis.com/youtube/v3/channels"

SEARCH_TIMEOUT_SECONDS = 15
CHANNEL_TIMEOUT_SECONDS = 10


def _upstream_message(response: requests.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return "YouTube API error"
    error = payload.get("error") if isinstance(payload, dict) else None
    if isinstance(error, dict) and error.get("message"):
        return str(error["message"])
    if isinstance(error, str) and error:
        return error
    return "YouTube API error"


class YouTubeClient:
    def __init__(self, api_key: str):
        self.api_key = api_key

    def _get(self, url: str, params: dict[str, Any], timeout: int) -> dict[str, Any]:
        merged = params.copy()
        merged["key"] = self.api_key
        try:
            response = requests.get(url, params=merged, timeout=timeout)
        except requests.RequestException as exc:
            logger.error("YouTube request to %s failed: %s", url, exc)
            raise UpstreamError(
                "YouTube is temporarily unavailable. Please try again.",
                status_code=502,
                detail=str(exc),
            ) from exc

        if response.status_code == 200:
            return response.json()

        message = _upstream_message(response)
        logger.error("YouTube %s returned %s: %s", url, response.status_code, message)
        raise UpstreamError(message, status_code=response.status_code)

    def search_channels(self, query: str, max_results: int) -> dict[str, Any]:
        return self._get(
            YOUTUBE_SEARCH_LIST,
            {"part": "snippet", "type": "channel", "q": query, "maxResults": max_results},
            timeout=SEARCH_TIMEOUT_SECONDS,
        )

    def get_channel(self, channel_id: str) -> dict[str, Any] | None:
        payload = self._get(
            YOUTUBE_CHANNELS_LIST,
            {"part": "snippet,statistics,brandingSettings", "id": channel_id},
            timeout=CHANNEL_TIMEOUT_SECONDS,
        )
        items = payload.get("items") or []
        return items[0] if items else None
