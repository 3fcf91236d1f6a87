"""
Endpoint operations shared by the Lambda handlers and the FastAPI app.

Each function takes already-extracted raw parameters plus its collaborators,
returns the success body, and raises ``ApiError`` subclasses otherwise.
"""
import logging
from typing import Any

from ..config import Settings
from ..errors import NotFoundError, StorageError, UpstreamError, ValidationError
from ..models import RatingRecord
from .aggregation import (
    DEFAULT_MIN_RATINGS,
    DEFAULT_TOP_LIMIT,
    average_score,
    normalize_recent_limit,
    rank_top_creators,
    sort_recent,
    summarize_creators,
)
from .ratings_store import RatingsStore
from .search_enricher import enrich_with_ratings
from .youtube import YouTubeClient

logger = logging.getLogger(__name__)

DEFAULT_SEARCH_RESULTS = 5
MAX_SEARCH_RESULTS = 50
DEFAULT_PROFILE_LIMIT = 20
MAX_PAGE_LIMIT = 100
RECENT_SCAN_LIMIT = 100


def parse_int_param(raw: Any, default: int, minimum: int = 1, maximum: int | None = None) -> int:
    """Lenient integer parsing: unparsable or non-positive values fall back to the default."""
    try:
        value = int(raw)
    except (TypeError, ValueError):
        return default
    if value < minimum:
        return default
    if maximum is not None:
        value = min(value, maximum)
    return value


def require_param(value: Any, name: str, label: str) -> str:
    text = value.strip() if isinstance(value, str) else ""
    if not text:
        raise ValidationError(f"{label} ({name}) is required")
    return text


def comment_entry(record: RatingRecord) -> dict[str, Any]:
    return {"comment": record.comment, "score": record.score, "submittedAt": record.submitted_at}


def search_creators(
    settings: Settings,
    store: RatingsStore,
    query: Any,
    max_results: Any = None,
    youtube: YouTubeClient | None = None,
) -> dict[str, Any]:
    q = require_param(query, "q", "Search query")
    limit = parse_int_param(max_results, DEFAULT_SEARCH_RESULTS, maximum=MAX_SEARCH_RESULTS)
    youtube = youtube or YouTubeClient(settings.require_youtube_api_key())

    logger.info("Searching YouTube channels: q=%r maxResults=%s", q, limit)
    payload = youtube.search_channels(q, limit)
    items = payload.get("items") or []
    enriched = enrich_with_ratings(store, items) if items else []
    return {**payload, "items": enriched}


def get_channel_ratings(store: RatingsStore, channel_id: Any) -> dict[str, Any]:
    channel_id = require_param(channel_id, "channelId", "Channel ID")
    try:
        records = store.query_all_by_creator(channel_id)
    except StorageError as exc:
        logger.error("Failed to query ratings for %s: %s", channel_id, exc.detail)
        raise StorageError("query", message="Failed to retrieve ratings", detail=exc.detail) from exc

    if not records:
        raise NotFoundError("No ratings found for this channel", channelId=channel_id)

    return {
        "channelId": channel_id,
        "averageScore": average_score(r.score for r in records),
        "ratingCount": len(records),
        "comments": [comment_entry(r) for r in records],
    }


def fetch_channel_info(settings: Settings, channel_id: str, youtube: YouTubeClient | None = None) -> dict[str, Any]:
    """Channel details, or a status object when YouTube cannot provide them."""
    if youtube is None:
        if not settings.youtube_api_key:
            logger.warning("YOUTUBE_API_KEY missing; profile for %s served without channel details", channel_id)
            return {
                "id": channel_id,
                "status": "error",
                "message": "Channel details unavailable",
                "errorCode": "UNCONFIGURED",
            }
        youtube = YouTubeClient(settings.youtube_api_key)
    try:
        channel = youtube.get_channel(channel_id)
    except UpstreamError as exc:
        return {
            "id": channel_id,
            "status": "error",
            "message": exc.message,
            "errorCode": exc.status_code,
        }
    if channel is None:
        return {"id": channel_id, "status": "not_found", "message": "Channel not found"}
    return channel


def get_creator_profile(
    settings: Settings,
    store: RatingsStore,
    channel_id: Any,
    limit: Any = None,
    cursor: str | None = None,
    youtube: YouTubeClient | None = None,
) -> dict[str, Any]:
    channel_id = require_param(channel_id, "channelId", "Channel ID")
    page_size = parse_int_param(limit, DEFAULT_PROFILE_LIMIT, maximum=MAX_PAGE_LIMIT)

    channel_info = fetch_channel_info(settings, channel_id, youtube=youtube)
    try:
        page = store.query_by_creator(channel_id, limit=page_size, cursor=cursor or None)
    except StorageError as exc:
        logger.error("Failed to query profile ratings for %s: %s", channel_id, exc.detail)
        raise StorageError("query", message="Error processing request", detail=exc.detail) from exc

    if page.records:
        ratings: dict[str, Any] = {
            "channelId": channel_id,
            "averageScore": average_score(r.score for r in page.records),
            "ratingCount": len(page.records),
            "comments": [comment_entry(r) for r in page.records],
        }
        if page.next_cursor:
            ratings["nextCursor"] = page.next_cursor
    else:
        ratings = {
            "channelId": channel_id,
            "averageScore": None,
            "ratingCount": 0,
            "comments": [],
            "message": "No ratings found for this channel",
        }
    return {"channelInfo": channel_info, "ratings": ratings}


def get_top_creators(
    store: RatingsStore,
    limit: Any = None,
    cursor: str | None = None,
    min_ratings: Any = None,
) -> dict[str, Any]:
    size = parse_int_param(limit, DEFAULT_TOP_LIMIT, maximum=MAX_PAGE_LIMIT)
    threshold = parse_int_param(min_ratings, DEFAULT_MIN_RATINGS)

    try:
        page = store.scan_page(cursor=cursor or None)
    except StorageError as exc:
        logger.error("Failed to scan ratings for top creators: %s", exc.detail)
        raise StorageError("scan", message="Failed to retrieve top creators", detail=exc.detail) from exc

    summaries = summarize_creators(page.records)
    ranked, total = rank_top_creators(summaries, min_ratings=threshold, limit=size)
    logger.info(
        "Top creators: %s channels on page, %s with at least %s ratings",
        len(summaries),
        total,
        threshold,
    )
    response: dict[str, Any] = {
        "creators": [summary.to_dict() for summary in ranked],
        "total": total,
        "count": len(ranked),
        "minRatings": threshold,
    }
    if page.next_cursor:
        response["nextCursor"] = page.next_cursor
    return response


def get_recent_ratings(store: RatingsStore, limit: Any = None) -> dict[str, Any]:
    count = normalize_recent_limit(limit)
    try:
        page = store.scan_page(limit=RECENT_SCAN_LIMIT)
    except StorageError as exc:
        logger.error("Failed to scan recent ratings: %s", exc.detail)
        raise StorageError("scan", message="Failed to retrieve recent ratings", detail=exc.detail) from exc

    if not page.records:
        raise NotFoundError("No ratings found")

    recent = sort_recent(page.records, count)
    return {
        "count": len(recent),
        "ratings": [
            {
                "channelId": r.channel_id,
                "channelTitle": r.channel_title,
                "score": r.score,
                "comment": r.comment,
                "submittedAt": r.submitted_at,
                "thumbnailUrl": r.thumbnail_url or "",
            }
            for r in recent
        ],
    }

