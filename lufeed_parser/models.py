"""
Lufeed Parser Data Models
=========================

Pydantic models for the entities returned to callers and the intermediate
records produced while scraping pages.
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field


# Placeholder assets substituted when no image or icon could be resolved
DEFAULT_ITEM_IMAGE_URL = "https://s3.eu-central-1.amazonaws.com/lufeed/feeds/lufeed-bg.png"
DEFAULT_SOURCE_IMAGE_URL = "https://s3.eu-central-1.amazonaws.com/lufeed/sources/covers/lufeed-bg.png"
DEFAULT_SOURCE_ICON_URL = "https://s3.eu-central-1.amazonaws.com/lufeed/sources/icons/lf-icon.png"

UNKNOWN_SOURCE_NAME = "Unknown Title"


class Source(BaseModel):
    """A feed's origin site, described by feed fields and home page metadata."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, description="Source identity")
    name: str = Field(default="", description="Display name")
    description: str = Field(default="", description="Site description")
    feed_url: str = Field(..., description="Feed URL as requested")
    home_url: str = Field(default="", description="Feed link without query string")
    image_url: str = Field(default="", description="Absolute cover image URL")
    icon_url: str = Field(default="", description="Absolute icon URL")
    html: Optional[str] = Field(default=None, description="Main content text, only when requested")
    user_id: str = Field(default="", description="Caller correlation: user")
    request_id: str = Field(default="", description="Caller correlation: request")

    def __str__(self) -> str:
        return f"Source({self.name}:{self.feed_url})"


class FeedItem(BaseModel):
    """One syndicated entry enriched with page metadata."""
    id: uuid.UUID = Field(default_factory=uuid.uuid4, description="Item identity")
    title: str = Field(default="", description="Entry title")
    description: str = Field(default="", description="Page or entry description")
    url: str = Field(..., description="Entry link without query string")
    image_url: str = Field(default="", description="Absolute cover image URL")
    html: Optional[str] = Field(default=None, description="Main content text, only when requested")
    published_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    feed_id: str = Field(default="", description="Caller correlation: feed")
    feed_name: str = Field(default="", description="Caller correlation: feed name")
    user_id: str = Field(default="", description="Caller correlation: user")

    def to_cache(self) -> str:
        """Serialize for the item cache."""
        return self.model_dump_json()

    @classmethod
    def from_cache(cls, payload) -> "FeedItem":
        """Rebuild an item from a cached payload (str or bytes)."""
        return cls.model_validate_json(payload)

    def __str__(self) -> str:
        return f"FeedItem({self.title[:50]}...)"


@dataclass
class WebsiteInformation:
    """Metadata extracted from one fetched page."""
    image: str = ""
    description: str = ""
    icon: str = ""
    title: str = ""
    html: str = ""

    def backfill(self, other: "WebsiteInformation", icon: bool = True) -> None:
        """Fill still-empty fields from another page's information."""
        if not self.image:
            self.image = other.image
        if icon and not self.icon:
            self.icon = other.icon
        if not self.description:
            self.description = other.description
        if not self.title:
            self.title = other.title


@dataclass
class IconCandidate:
    """Scored icon link; href is always absolute."""
    href: str
    size: int
    score: int

    def outranks(self, other: Optional["IconCandidate"]) -> bool:
        if other is None:
            return True
        return self.score > other.score or (self.score == other.score and self.size > other.size)
