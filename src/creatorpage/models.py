"""
Pydantic models defining the landing page content.

Python attributes are snake_case; the wire format (local cache and
remote store) uses camelCase keys plus ``_lastUpdated`` so payloads
written by earlier clients keep loading.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

LAST_UPDATED_KEY = "_lastUpdated"


class WireModel(BaseModel):
    """Base for every persisted record: camelCase aliases, unknown keys dropped."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )

    def to_wire(self) -> dict[str, Any]:
        """Dump to the JSON-ready dict stored locally and remotely."""
        return self.model_dump(by_alias=True, mode="json")


class RecordKind(str, Enum):
    """Singleton records of AppData."""

    PROFILE = "profile"
    CONTENT = "content"
    STATS = "stats"


class CollectionKind(str, Enum):
    """Ordered collections of AppData."""

    SCHEDULE = "schedule"
    RANK = "rank"
    MODERATORS = "moderators"
    GALLERY = "gallery"

    @property
    def is_ranked(self) -> bool:
        """Whether items carry a contiguous ``rank`` display order."""
        return self in (CollectionKind.RANK, CollectionKind.MODERATORS)


class Profile(WireModel):
    """Who the page belongs to and where to find them."""

    name: str = ""
    tagline: str = ""
    avatar: str = ""
    youtube_url: str = ""
    tiktok_url: str = ""
    discord_url: str = ""
    store_url: str = ""
    second_store_url: str = ""
    support_url: str = ""


class Content(WireModel):
    """Featured embeds."""

    youtube_id: str = ""
    tiktok_url: str = ""


class Stats(WireModel):
    """Audience counters shown on the page."""

    subscribers: int = Field(default=0, ge=0)
    followers: int = Field(default=0, ge=0)
    total_views: int = Field(default=0, ge=0)


class ScheduleItem(WireModel):
    """One weekly stream slot."""

    id: str
    day: str = ""
    activity: str = ""
    time: str = ""
    badge: str = ""


class RankItem(WireModel):
    """A leaderboard or moderator entry.

    ``rank`` is the display position (1..N), ``points`` the score.
    """

    id: str
    rank: int = Field(default=1, ge=1)
    name: str = ""
    youtube_handle: Optional[str] = None
    points: int = 0
    avatar: str = ""


class GalleryItem(WireModel):
    """One gallery image."""

    id: str
    src: str = ""


RECORD_MODELS: dict[RecordKind, type[WireModel]] = {
    RecordKind.PROFILE: Profile,
    RecordKind.CONTENT: Content,
    RecordKind.STATS: Stats,
}

ITEM_MODELS: dict[CollectionKind, type[WireModel]] = {
    CollectionKind.SCHEDULE: ScheduleItem,
    CollectionKind.RANK: RankItem,
    CollectionKind.MODERATORS: RankItem,
    CollectionKind.GALLERY: GalleryItem,
}


class AppData(WireModel):
    """The complete persisted content of the page."""

    profile: Profile = Field(default_factory=Profile)
    content: Content = Field(default_factory=Content)
    stats: Stats = Field(default_factory=Stats)
    schedule: list[ScheduleItem] = Field(default_factory=list)
    rank: list[RankItem] = Field(default_factory=list)
    moderators: list[RankItem] = Field(default_factory=list)
    gallery: list[GalleryItem] = Field(default_factory=list)
    last_updated: int = Field(default=0, ge=0, alias=LAST_UPDATED_KEY)

    def editable_fields(self) -> dict[str, Any]:
        """Top-level fields pushed by a partial remote write, in wire form."""
        wire = self.to_wire()
        wire.pop(LAST_UPDATED_KEY, None)
        return wire

    def record(self, kind: RecordKind) -> WireModel:
        return getattr(self, kind.value)

    def collection(self, kind: CollectionKind) -> list:
        return getattr(self, kind.value)
