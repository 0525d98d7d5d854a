"""FastAPI application exposing metadata extraction over HTTP."""
from __future__ import annotations

import logging
import os
from typing import Optional
from urllib.parse import urlparse

from fastapi import FastAPI, HTTPException, Query, Request

from .extractor import MAX_FIELD_LENGTH, extract
from .logging_setup import configure_logging
from .schemas import Tags
from .scrape import fetch_tags

LOG_FILE_PATH = configure_logging(
    os.getenv("LOG_LEVEL"),
    log_to_file=os.getenv("APP_LOG_TO_FILE", "1") not in {"0", "false", "no"},
)
logger = logging.getLogger(__name__)
logger.info("Logging configured. File output: %s", LOG_FILE_PATH)

app = FastAPI(title="Meta Tag Extractor")


def _field_cap(max_field_length: Optional[int]) -> Optional[int]:
    if max_field_length is None:
        return MAX_FIELD_LENGTH
    return max_field_length or None


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.get("/tags", response_model=Tags)
def tags_for_url(
    url: str = Query(..., description="Absolute http(s) URL of the page"),
    max_field_length: Optional[int] = Query(None, ge=0, description="Byte cap per field, 0 for none"),
) -> Tags:
    parsed = urlparse(url)
    if parsed.scheme not in {"http", "https"} or not parsed.netloc:
        raise HTTPException(status_code=400, detail="url must be an absolute http(s) URL")

    logger.info("Extracting tags from %s", url)
    tags = fetch_tags(url, max_field_length=_field_cap(max_field_length))
    if tags is None:
        raise HTTPException(status_code=502, detail=f"Could not fetch {url}")
    if tags.is_empty():
        logger.info("No metadata found at %s", url)
    return tags


@app.post("/extract", response_model=Tags)
async def extract_from_body(
    request: Request,
    max_field_length: Optional[int] = Query(None, ge=0, description="Byte cap per field, 0 for none"),
) -> Tags:
    body = await request.body()
    logger.debug("Extracting tags from %d byte request body", len(body))
    tags = extract(body, max_field_length=_field_cap(max_field_length))
    if tags.is_empty():
        logger.info("No metadata found in request body")
    return tags
