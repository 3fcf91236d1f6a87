"""
Rating submission: validation, abuse checks and the single insert.

The duplicate-email and per-IP checks are check-then-act against the table.
Two concurrent submissions can both pass before either write lands; that
window is accepted. Both checks degrade open when the store fails.
"""
import logging
from datetime import datetime, timezone
from numbers import Integral
from typing import Any, Callable

from ..errors import ConflictError, RateLimitedError, StorageError, ValidationError
from ..models import UNKNOWN_IP, RatingRecord, normalize_profile_picture
from .email_domains import DomainVerdict, classify_email_domain, email_domain, is_valid_email_shape
from .ratings_store import RatingsStore

logger = logging.getLogger(__name__)

MIN_SCORE = 1
MAX_SCORE = 5
MAX_RATINGS_PER_IP = 2

DOMAIN_REJECTIONS = {
    DomainVerdict.DISPOSABLE: "Please use a real email address",
    DomainVerdict.BLOCKED: "Disposable email addresses are not allowed",
    DomainVerdict.SUSPICIOUS: "Disposable email addresses are not allowed",
    DomainVerdict.UNRECOGNIZED: "Email domain not recognized",
}


def utc_timestamp(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    return now.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def parse_score(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (Integral, float)):
        raise ValidationError("Rating must be an integer between 1 and 5")
    if isinstance(value, float) and not value.is_integer():
        raise ValidationError("Rating must be an integer between 1 and 5")
    score = int(value)
    if score < MIN_SCORE or score > MAX_SCORE:
        raise ValidationError("Rating must be an integer between 1 and 5")
    return score


def check_email(email: str) -> str:
    if not is_valid_email_shape(email):
        raise ValidationError("Invalid email address")
    verdict = classify_email_domain(email_domain(email))
    if verdict is not DomainVerdict.ALLOWED:
        raise ValidationError(DOMAIN_REJECTIONS[verdict])
    return email


def _optional_str(payload: dict[str, Any], key: str) -> str:
    value = payload.get(key)
    return value.strip() if isinstance(value, str) else ""


def ensure_not_already_rated(store: RatingsStore, channel_id: str, email: str) -> None:
    try:
        existing = store.query_all_by_creator(channel_id, filters={"email": email})
    except StorageError as exc:
        logger.warning("Duplicate-rating check failed for %s: %s", channel_id, exc.detail)
        return
    if existing:
        raise ConflictError(
            "You have already rated this channel",
            reason="Each email can only submit one rating per channel",
        )


def ensure_ip_under_limit(store: RatingsStore, channel_id: str, source_ip: str) -> None:
    try:
        existing = store.query_all_by_creator(channel_id, filters={"ip": source_ip})
    except StorageError as exc:
        logger.warning("Rate-limit check failed for %s from %s: %s", channel_id, source_ip, exc.detail)
        return
    if len(existing) >= MAX_RATINGS_PER_IP:
        raise RateLimitedError(
            "Rating limit reached for this channel",
            reason=f"At most {MAX_RATINGS_PER_IP} ratings per channel are accepted from one network",
        )


def build_record(
    payload: Any,
    source_ip: str | None = None,
    now: Callable[[], datetime] | None = None,
) -> RatingRecord:
    """Validate the request body alone. Nothing here reads the table."""
    if not isinstance(payload, dict):
        raise ValidationError("Invalid request body")

    channel_id = payload.get("channelId")
    if not isinstance(channel_id, str) or not channel_id.strip():
        raise ValidationError("Channel ID is required")
    channel_id = channel_id.strip()

    score = parse_score(payload["rating"] if "rating" in payload else payload.get("score"))

    raw_email = payload.get("email")
    if raw_email not in (None, "") and not isinstance(raw_email, str):
        raise ValidationError("Invalid email address")
    email = _optional_str(payload, "email")
    if email:
        check_email(email)

    return RatingRecord(
        channel_id=channel_id,
        submitted_at=utc_timestamp(now() if now else None),
        score=score,
        comment=_optional_str(payload, "comment"),
        email=email,
        ip=(source_ip or "").strip() or UNKNOWN_IP,
        channel_title=_optional_str(payload, "channelTitle"),
        thumbnail_url=_optional_str(payload, "thumbnailUrl") or None,
        description=_optional_str(payload, "description") or None,
        profile_picture=normalize_profile_picture(payload.get("profilePicture")),
    )


def check_limits(store: RatingsStore, record: RatingRecord) -> None:
    if record.email:
        ensure_not_already_rated(store, record.channel_id, record.email)
    if record.ip != UNKNOWN_IP:
        ensure_ip_under_limit(store, record.channel_id, record.ip)


def validate_submission(
    payload: Any,
    store: RatingsStore,
    source_ip: str | None = None,
    now: Callable[[], datetime] | None = None,
) -> RatingRecord:
    record = build_record(payload, source_ip=source_ip, now=now)
    check_limits(store, record)
    return record


def save_rating(store: RatingsStore, record: RatingRecord) -> dict[str, Any]:
    """Run the abuse checks for an already-built record, then write it."""
    check_limits(store, record)
    try:
        store.put(record)
    except StorageError as exc:
        logger.error("Failed to save rating for %s: %s", record.channel_id, exc.detail)
        raise StorageError("put", message="Failed to save rating", detail=exc.detail) from exc
    logger.info("Stored rating for %s at %s", record.channel_id, record.submitted_at)
    return {
        "message": "Rating submitted successfully",
        "submittedAt": record.submitted_at,
        "channelId": record.channel_id,
    }


def submit_rating(
    payload: Any,
    store: RatingsStore,
    source_ip: str | None = None,
    now: Callable[[], datetime] | None = None,
) -> dict[str, Any]:
    return save_rating(store, build_record(payload, source_ip=source_ip, now=now))
