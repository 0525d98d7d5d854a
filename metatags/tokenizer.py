"""Streaming HTML tokenizer built on the standard library parser.

``tokenize`` turns a readable source into a flat sequence of ``Token`` events
without ever building a tree. Input is pulled lazily, one read at a time, so a
consumer that stops iterating also stops reading. Every failure (undecodable
bytes, a stream raising mid-read, the parser choking) is reported in-band as a
trailing ``ERROR`` token; the same token with ``data == "EOF"`` marks a clean
end of input.
"""
from __future__ import annotations

import codecs
import inspect
import logging
import os
from collections import deque
from dataclasses import dataclass, field
from enum import Enum
from html import unescape
from html.parser import HTMLParser
from typing import Iterable, Iterator, List, Tuple, Union

logger = logging.getLogger(__name__)

CHUNK_SIZE = int(os.getenv("METATAGS_CHUNK_SIZE", "4096") or 0) or 4096
ENCODING = os.getenv("METATAGS_ENCODING", "utf-8") or "utf-8"

EOF = "EOF"

Chunk = Union[bytes, bytearray, memoryview, str]
Source = Union[Chunk, Iterable[Chunk]]

# Newer parsers decode character references inside escapable raw text.
_ESCAPABLE_CDATA = "escapable" in inspect.signature(HTMLParser.set_cdata_mode).parameters


class TokenType(str, Enum):
    START_TAG = "start_tag"
    END_TAG = "end_tag"
    SELF_CLOSING_TAG = "self_closing_tag"
    TEXT = "text"
    COMMENT = "comment"
    DOCTYPE = "doctype"
    ERROR = "error"


@dataclass(slots=True)
class Token:
    """One lexical event.

    ``data`` is the lowercased tag name for tag tokens, the text payload for
    text, comment and doctype tokens, and the failure reason for ``ERROR``.
    """

    type: TokenType
    data: str = ""
    attrs: List[Tuple[str, str]] = field(default_factory=list)


class _TokenCollector(HTMLParser):
    """Queues parser callbacks as tokens, merging adjacent text runs."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.tokens: deque[Token] = deque()
        self._text: list[str] = []

    def _push(self, token: Token) -> None:
        self._flush_text()
        self.tokens.append(token)

    def _flush_text(self) -> None:
        if self._text:
            self.tokens.append(Token(TokenType.TEXT, "".join(self._text)))
            self._text.clear()

    @staticmethod
    def _attrs(attrs: list[tuple[str, str | None]]) -> list[tuple[str, str]]:
        return [(key, value if value is not None else "") for key, value in attrs]

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._push(Token(TokenType.START_TAG, tag, self._attrs(attrs)))
        if tag == "title":
            # Title content is text up to the matching end tag, with
            # character references decoded.
            if _ESCAPABLE_CDATA:
                self.set_cdata_mode(tag, escapable=True)
            else:
                self.set_cdata_mode(tag)

    def handle_startendtag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        self._push(Token(TokenType.SELF_CLOSING_TAG, tag, self._attrs(attrs)))

    def handle_endtag(self, tag: str) -> None:
        self._push(Token(TokenType.END_TAG, tag))

    def handle_data(self, data: str) -> None:
        if self.cdata_elem == "title" and not _ESCAPABLE_CDATA:
            data = unescape(data)
        self._text.append(data)

    def handle_comment(self, data: str) -> None:
        self._push(Token(TokenType.COMMENT, data))

    def handle_decl(self, decl: str) -> None:
        self._push(Token(TokenType.DOCTYPE, decl))

    def handle_pi(self, data: str) -> None:
        self._push(Token(TokenType.COMMENT, data))

    def unknown_decl(self, data: str) -> None:
        self._push(Token(TokenType.COMMENT, data))

    def drain(self, final: bool = False) -> Iterator[Token]:
        """Yield queued tokens; a trailing text run is held back unless ``final``."""

        if final:
            self._flush_text()
        while self.tokens:
            yield self.tokens.popleft()


def _iter_chunks(source: Source, chunk_size: int) -> Iterator[Chunk]:
    if isinstance(source, (str, bytes, bytearray, memoryview)):
        yield source
        return

    read = getattr(source, "read", None)
    if read is None:
        yield from source
        return

    while True:
        chunk = read(chunk_size)
        if not chunk:
            return
        yield chunk


def _decode(decoder, parser: _TokenCollector, data: bytes, encoding: str, final: bool = False) -> str:
    """Decode one chunk; on an invalid sequence feed the valid prefix, then re-raise."""

    try:
        return decoder.decode(data, final=final)
    except UnicodeDecodeError as exc:
        # exc.object includes bytes the decoder buffered from earlier chunks.
        parser.feed(exc.object[: exc.start].decode(encoding, errors="ignore"))
        raise


def tokenize(
    source: Source,
    *,
    chunk_size: int = CHUNK_SIZE,
    encoding: str = ENCODING,
) -> Iterator[Token]:
    """Yield tokens from ``source`` until input ends or fails.

    ``source`` may be a binary or text file-like object, a ``bytes``/``str``
    payload, or any iterable of such chunks. Bytes are decoded incrementally
    with ``encoding``; an invalid sequence ends the stream with an ``ERROR``
    token rather than being replaced, after the text preceding it.
    """

    parser = _TokenCollector()
    decoder = codecs.getincrementaldecoder(encoding)(errors="strict")
    try:
        for chunk in _iter_chunks(source, chunk_size):
            if not isinstance(chunk, str):
                chunk = _decode(decoder, parser, bytes(chunk), encoding)
            if chunk:
                parser.feed(chunk)
                yield from parser.drain()
        tail = _decode(decoder, parser, b"", encoding, final=True)
        if tail:
            parser.feed(tail)
        parser.close()
    except Exception as exc:
        logger.debug("Tokenizer stopped early: %s", exc)
        yield from parser.drain(final=True)
        yield Token(TokenType.ERROR, str(exc) or exc.__class__.__name__)
        return

    yield from parser.drain(final=True)
    yield Token(TokenType.ERROR, EOF)
