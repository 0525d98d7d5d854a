"""Fetch a page over HTTP and extract its metadata tags."""
from __future__ import annotations

import codecs
import logging
import os
from typing import Iterable, Iterator, Optional

import requests
from tenacity import retry, retry_if_exception_type, stop_after_attempt, wait_exponential

from .extractor import MAX_FIELD_LENGTH, extract
from .schemas import Tags
from .tokenizer import CHUNK_SIZE, ENCODING

logger = logging.getLogger(__name__)

USER_AGENT = os.getenv("METATAGS_USER_AGENT", "MetaTagsBot/1.0")
REQUEST_TIMEOUT = float(os.getenv("METATAGS_REQUEST_TIMEOUT", "5") or 5)
MAX_BYTES = int(os.getenv("METATAGS_MAX_BYTES", str(1024 * 1024)) or 0) or 1024 * 1024
FETCH_ATTEMPTS = int(os.getenv("METATAGS_FETCH_ATTEMPTS", "3") or 0) or 3
RETRY_BACKOFF = float(os.getenv("METATAGS_RETRY_BACKOFF", "0.5") or 0)


def limit_bytes(chunks: Iterable[bytes], max_bytes: int) -> Iterator[bytes]:
    """Pass chunks through until ``max_bytes`` have been yielded in total."""

    remaining = max_bytes
    for chunk in chunks:
        if remaining <= 0:
            return
        if len(chunk) > remaining:
            chunk = chunk[:remaining]
        remaining -= len(chunk)
        yield chunk


def _response_encoding(response: requests.Response) -> str:
    """Use the declared charset when there is a usable one, else the default."""

    content_type = response.headers.get("Content-Type", "")
    if "charset=" not in content_type.lower() or not response.encoding:
        return ENCODING
    try:
        codecs.lookup(response.encoding)
    except LookupError:
        logger.debug("Unknown charset %r; falling back to %s", response.encoding, ENCODING)
        return ENCODING
    return response.encoding


def _fetch_retry():
    return retry(
        reraise=True,
        stop=stop_after_attempt(FETCH_ATTEMPTS),
        wait=wait_exponential(multiplier=RETRY_BACKOFF, max=8),
        retry=retry_if_exception_type((requests.ConnectionError, requests.Timeout)),
    )


def _open(http, url: str) -> requests.Response:
    return http.get(
        url,
        headers={"User-Agent": USER_AGENT},
        timeout=REQUEST_TIMEOUT,
        allow_redirects=True,
        stream=True,
    )


def fetch_tags(
    url: str,
    *,
    session: Optional[requests.Session] = None,
    max_field_length: Optional[int] = MAX_FIELD_LENGTH,
) -> Optional[Tags]:
    """Fetch ``url`` and extract tags from the streamed response body.

    Only as much of the body as extraction needs is read, and never more than
    ``MAX_BYTES``. Returns ``None`` when the page could not be fetched.
    """

    http = session or requests
    try:
        response = _fetch_retry()(_open)(http, url)
    except requests.RequestException as exc:
        logger.warning("Failed to fetch %s: %s", url, exc)
        return None

    try:
        if response.status_code != 200:
            logger.info("Skipping %s due to status %s", url, response.status_code)
            return None
        chunks = limit_bytes(response.iter_content(chunk_size=CHUNK_SIZE), MAX_BYTES)
        tags = extract(chunks, max_field_length=max_field_length, encoding=_response_encoding(response))
    finally:
        response.close()

    logger.debug("Extracted tags from %s", url)
    return tags
