"""Shared data structures used across modules."""
from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class Tags(BaseModel):
    """Metadata gathered from a document preamble.

    Field names double as the serialization keys, so renaming one is a
    breaking change for anything consuming the JSON output.
    """

    model_config = ConfigDict(extra="forbid")

    title: str = ""
    description: str = ""
    author: str = ""
    og_title: str = ""
    og_description: str = ""
    og_image: str = ""
    og_site_name: str = ""
    og_publisher: str = ""
    og_author: str = ""
    twitter_card: str = ""
    twitter_title: str = ""
    twitter_description: str = ""
    twitter_image: str = ""
    twitter_player: str = ""
    twitter_player_width: str = ""
    twitter_player_height: str = ""

    def is_empty(self) -> bool:
        return not any(self.model_dump().values())

    def to_json(self, indent: int | None = None) -> str:
        return self.model_dump_json(indent=indent)
