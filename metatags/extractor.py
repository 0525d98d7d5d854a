"""Extract title, description, Open Graph and Twitter Card tags from HTML.

Extraction walks the token stream of the document preamble only: it stops at
the first ``<body>`` tag or at the end of input, whichever comes first, and
never raises for malformed markup or a failing stream.
"""
from __future__ import annotations

import logging
import os
from contextlib import closing
from typing import Dict, Optional, Tuple

from .schemas import Tags
from .tokenizer import CHUNK_SIZE, ENCODING, EOF, Source, Token, TokenType, tokenize

logger = logging.getLogger(__name__)

TAG_BODY = "body"
TAG_META = "meta"
TAG_TITLE = "title"

ATTR_CONTENT = "content"
ATTR_NAME = "name"
ATTR_PROPERTY = "property"

# Zero disables the cap.
MAX_FIELD_LENGTH: Optional[int] = int(os.getenv("METATAGS_MAX_FIELD_LENGTH", "4096") or 0) or None

# identifier -> (field, field filled only while still empty)
META_FIELDS: Dict[str, Tuple[str, Optional[str]]] = {
    "description": ("description", None),
    "author": ("author", None),
    "og:title": ("og_title", "title"),
    "og:description": ("og_description", "description"),
    "og:image": ("og_image", None),
    "og:site_name": ("og_site_name", None),
    "og:publisher": ("og_publisher", None),
    "og:author": ("og_author", "author"),
    "twitter:title": ("twitter_title", "title"),
    "twitter:description": ("twitter_description", "description"),
    "twitter:image": ("twitter_image", "og_image"),
    "twitter:card": ("twitter_card", None),
    "twitter:player": ("twitter_player", None),
    "twitter:player:width": ("twitter_player_width", None),
    "twitter:player:height": ("twitter_player_height", None),
}


def truncate_field(value: str, max_length: Optional[int]) -> str:
    """Cap ``value`` at ``max_length`` UTF-8 bytes without splitting a character."""

    if max_length is None:
        return value
    encoded = value.encode("utf-8", errors="surrogatepass")
    if len(encoded) <= max_length:
        return value
    if max_length <= 0:
        return ""
    # errors="ignore" drops the partial character left at the cut.
    return encoded[:max_length].decode("utf-8", errors="ignore")


def extract_meta_property(token: Token, prop: str) -> Tuple[str, bool]:
    """Return the ``content`` value of a meta token and whether it names ``prop``.

    The two lookups are independent folds over the attribute list: the last
    ``content`` attribute wins, and any ``property``/``name`` attribute equal to
    ``prop`` sets the match, wherever either appears in the tag.
    """

    content = ""
    ok = False
    for key, value in token.attrs:
        if key in (ATTR_PROPERTY, ATTR_NAME) and value == prop:
            ok = True
        if key == ATTR_CONTENT:
            content = value
    return content, ok


def _apply_meta(tags: Tags, token: Token, max_length: Optional[int]) -> None:
    for prop, (target, fallback) in META_FIELDS.items():
        value, ok = extract_meta_property(token, prop)
        if not ok:
            continue
        value = truncate_field(value, max_length)
        setattr(tags, target, value)
        if fallback and not getattr(tags, fallback):
            setattr(tags, fallback, value)


def extract(
    source: Source,
    *,
    max_field_length: Optional[int] = MAX_FIELD_LENGTH,
    chunk_size: int = CHUNK_SIZE,
    encoding: str = ENCODING,
) -> Tags:
    """Extract metadata tags from an HTML stream.

    Always returns a ``Tags`` record; fields with no matching source are left
    empty. ``max_field_length`` caps every stored value in bytes, ``None``
    leaves values uncapped.
    """

    tags = Tags()
    title_pending = False

    with closing(tokenize(source, chunk_size=chunk_size, encoding=encoding)) as tokens:
        for token in tokens:
            if token.type is TokenType.ERROR:
                if token.data != EOF:
                    logger.debug("Extraction ended on tokenizer error: %s", token.data)
                return tags

            if token.type in (TokenType.START_TAG, TokenType.SELF_CLOSING_TAG):
                if token.data == TAG_BODY:
                    return tags
                if token.data == TAG_TITLE:
                    title_pending = True
                elif token.data == TAG_META:
                    _apply_meta(tags, token, max_field_length)
            elif token.type is TokenType.TEXT and title_pending:
                tags.title = truncate_field(token.data, max_field_length)
                title_pending = False

    return tags
