from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Iterable

from ..models import RatingRecord


DEFAULT_MIN_RATINGS = 1
DEFAULT_TOP_LIMIT = 10
DEFAULT_RECENT_LIMIT = 3
MAX_RECENT_LIMIT = 100
EPOCH_TIMESTAMP = "1970-01-01T00:00:00.000Z"

BACKFILL_FIELDS = ("channel_title", "thumbnail_url", "description", "profile_picture")


@dataclass
class CreatorSummary:
    channel_id: str
    channel_title: str = ""
    thumbnail_url: str = ""
    description: str = ""
    profile_picture: dict[str, str] = field(default_factory=dict)
    scores: list[int] = field(default_factory=list)

    @property
    def rating_count(self) -> int:
        return len(self.scores)

    @property
    def average_score(self) -> float | None:
        return average_score(self.scores)

    def to_dict(self) -> dict[str, Any]:
        return {
            "channelId": self.channel_id,
            "channelTitle": self.channel_title,
            "thumbnailUrl": self.thumbnail_url,
            "description": self.description,
            "profilePicture": self.profile_picture,
            "averageScore": self.average_score,
            "ratingCount": self.rating_count,
        }


def average_score(scores: Iterable[int]) -> float | None:
    """Exact mean, rounded half away from zero to one decimal place."""
    values = list(scores)
    if not values:
        return None
    mean = Decimal(sum(values)) / Decimal(len(values))
    return float(mean.quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def summarize_creators(records: Iterable[RatingRecord]) -> list[CreatorSummary]:
    """
    Group records by channel in first-seen order.

    Descriptive fields are back-filled independently: each one comes from the
    first record that has it set, so a summary can mix fields from several
    records.
    """
    grouped: dict[str, CreatorSummary] = {}
    for record in records:
        summary = grouped.get(record.channel_id)
        if summary is None:
            summary = CreatorSummary(channel_id=record.channel_id)
            grouped[record.channel_id] = summary
        summary.scores.append(record.score)
        for name in BACKFILL_FIELDS:
            if not getattr(summary, name) and getattr(record, name):
                setattr(summary, name, getattr(record, name))
    return list(grouped.values())


def summarize_creator(records: Iterable[RatingRecord]) -> CreatorSummary | None:
    summaries = summarize_creators(records)
    return summaries[0] if summaries else None


def rank_top_creators(
    summaries: list[CreatorSummary],
    min_ratings: int = DEFAULT_MIN_RATINGS,
    limit: int = DEFAULT_TOP_LIMIT,
) -> tuple[list[CreatorSummary], int]:
    """
    Rank by average score, highest first. Returns (top ``limit``, number that
    met ``min_ratings``). Only as global as the records that were summarized.
    """
    eligible = [s for s in summaries if s.rating_count >= min_ratings]
    ranked = sorted(eligible, key=lambda s: s.average_score or 0.0, reverse=True)
    return ranked[:limit], len(eligible)


def parse_iso8601_datetime(value: str):
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def sort_recent(records: list[RatingRecord], limit: int = DEFAULT_RECENT_LIMIT) -> list[RatingRecord]:
    stamps = [record.submitted_at or EPOCH_TIMESTAMP for record in records]
    parsed = [parse_iso8601_datetime(stamp) for stamp in stamps]
    if all(value is not None for value in parsed):
        keys = parsed
    else:
        keys = stamps
    order = sorted(range(len(records)), key=lambda i: keys[i], reverse=True)
    return [records[i] for i in order[:limit]]


def normalize_recent_limit(raw: Any) -> int:
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        return DEFAULT_RECENT_LIMIT
    if limit < 1 or limit > MAX_RECENT_LIMIT:
        return DEFAULT_RECENT_LIMIT
    return limit
