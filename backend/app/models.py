from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field


UNKNOWN_IP = "unknown"


def normalize_profile_picture(value: Any) -> dict[str, str] | None:
    """
    Reduce a picture to ``{size: url}``.

    Accepts a bare URL, a flat ``{size: url}`` map, or the YouTube
    ``snippet.thumbnails`` shape where each size is ``{"url": ..., "width": ...}``.
    """
    if isinstance(value, str):
        return {"default": value} if value else None
    if not isinstance(value, dict):
        return None
    urls = {}
    for size, entry in value.items():
        if isinstance(entry, dict):
            entry = entry.get("url")
        if isinstance(entry, str) and entry:
            urls[str(size)] = entry
    return urls or None


class RatingRecord(BaseModel):
    """One stored rating. Aliases are the attribute names used in the table."""

    model_config = ConfigDict(populate_by_name=True)

    channel_id: str = Field(alias="channelId")
    submitted_at: str = Field(default="", alias="timestamp")
    score: int = Field(default=0, alias="rating")
    comment: str = ""
    email: str = ""
    ip: str = UNKNOWN_IP
    channel_title: str = Field(default="", alias="channelTitle")
    thumbnail_url: str | None = Field(default=None, alias="thumbnailUrl")
    description: str | None = None
    profile_picture: dict[str, str] | None = Field(default=None, alias="profilePicture")

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> "RatingRecord":
        """Raises ValueError for items that cannot be counted as a rating."""
        data = dict(item)
        rating = data.get("rating")
        if isinstance(rating, Decimal) and rating == rating.to_integral_value():
            data["rating"] = int(rating)
        elif isinstance(rating, bool) or not isinstance(rating, int):
            raise ValueError(f"rating is not an integer: {rating!r}")
        for key in ("comment", "email", "channelTitle"):
            if data.get(key) is None:
                data.pop(key, None)
        picture = normalize_profile_picture(data.pop("profilePicture", None))
        if picture:
            data["profilePicture"] = picture
        return cls.model_validate(data)

    def to_item(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
