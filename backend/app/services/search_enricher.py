import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Any

from ..errors import StorageError
from .aggregation import summarize_creator
from .ratings_store import RatingsStore

logger = logging.getLogger(__name__)

MAX_LOOKUP_WORKERS = 8


def result_channel_id(item: dict[str, Any]) -> str | None:
    ident = item.get("id")
    if isinstance(ident, dict) and ident.get("channelId"):
        return ident["channelId"]
    snippet = item.get("snippet") or {}
    return snippet.get("channelId") or None


def lookup_rating_summary(store: RatingsStore, channel_id: str) -> dict[str, Any] | None:
    try:
        records = store.query_all_by_creator(channel_id)
    except StorageError as exc:
        logger.warning("Ratings lookup failed for %s: %s", channel_id, exc.detail)
        return None
    summary = summarize_creator(records)
    if summary is None:
        return None
    return {"averageScore": summary.average_score, "ratingCount": summary.rating_count}


def enrich_with_ratings(
    store: RatingsStore,
    items: list[dict[str, Any]],
    max_workers: int = MAX_LOOKUP_WORKERS,
) -> list[dict[str, Any]]:
    """Attach ``ratings`` to each search result whose channel has been rated."""
    channel_ids = list(dict.fromkeys(cid for cid in map(result_channel_id, items) if cid))
    if not channel_ids:
        return list(items)

    with ThreadPoolExecutor(max_workers=max(1, min(max_workers, len(channel_ids)))) as pool:
        summaries = dict(zip(channel_ids, pool.map(lambda cid: lookup_rating_summary(store, cid), channel_ids)))

    enriched = []
    for item in items:
        summary = summaries.get(result_channel_id(item))
        if summary:
            enriched.append({**item, "ratings": summary})
        else:
            enriched.append(item)
    return enriched
