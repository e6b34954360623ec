"""Source acquisition for PDF uploads, web pages, and YouTube transcripts.

Each source kind is a small frozen dataclass. `acquire` turns one into raw
content: PDF bytes, page HTML, or transcript text. Nothing here parses the
content; that is the job of `sourcewriter.pipeline`.
"""

from dataclasses import dataclass
import logging
import re
from typing import Optional, Union

import requests

from sourcewriter.errors import (
    SourceFetchError,
    TranscriptUnavailableError,
    ValidationError,
)


logger = logging.getLogger(__name__)

BROWSER_HEADERS = {"User-Agent": "Mozilla/5.0"}
TRANSCRIPT_PROXY_URL = "https://r.jina.ai/http://youtube.com/watch?v={video_id}"
VIDEO_ID_PATTERN = re.compile(r"(?:v=|/)([0-9A-Za-z_-]{11})")


@dataclass(frozen=True)
class PdfSource:
    data: bytes
    filename: Optional[str] = None


@dataclass(frozen=True)
class WebsiteSource:
    url: str


@dataclass(frozen=True)
class YouTubeSource:
    url: str


SourceDescriptor = Union[PdfSource, WebsiteSource, YouTubeSource]


def is_valid_source_url(kind: str, url: str) -> bool:
    """Cheap sanity check applied before a URL is accepted as a source."""
    if not url:
        return False
    if kind == "youtube":
        return "youtube.com" in url or "youtu.be" in url
    return url.startswith("http")


def fetch_html(url: str, timeout: Optional[float] = None) -> str:
    """Fetch a page once with a browser-like User-Agent and return its HTML."""
    try:
        resp = requests.get(url, headers=BROWSER_HEADERS, timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        raise SourceFetchError(f"Failed to fetch {url}: {exc}") from exc
    return resp.text


def extract_video_id(url_or_id: str) -> str:
    """Pull the 11-character id out of a watch/short URL, else return input as-is."""
    match = VIDEO_ID_PATTERN.search(url_or_id)
    return match.group(1) if match else url_or_id


def fetch_transcript(video_id: str, timeout: Optional[float] = None) -> str:
    """Ask the transcript proxy for a video's text.

    There is a single strategy. Any failure, including an empty body, is
    reported as `TranscriptUnavailableError` so callers can tell the user to
    paste the transcript themselves.
    """
    try:
        resp = requests.get(TRANSCRIPT_PROXY_URL.format(video_id=video_id), timeout=timeout)
        resp.raise_for_status()
    except requests.RequestException as exc:
        logger.warning("YouTube transcript fetch failed for %s: %s", video_id, exc)
        raise TranscriptUnavailableError() from exc

    transcript = resp.text or ""
    if not transcript.strip():
        logger.warning("YouTube transcript proxy returned an empty body for %s", video_id)
        raise TranscriptUnavailableError()
    return transcript


def acquire(source: SourceDescriptor, timeout: Optional[float] = None) -> Union[bytes, str]:
    """Return raw content for a source descriptor."""
    if isinstance(source, PdfSource):
        if not source.data:
            raise ValidationError("pdf file missing")
        return source.data
    if isinstance(source, WebsiteSource):
        if not source.url:
            raise ValidationError("url required")
        return fetch_html(source.url, timeout=timeout)
    if isinstance(source, YouTubeSource):
        if not source.url:
            raise ValidationError("videoUrl required")
        return fetch_transcript(extract_video_id(source.url), timeout=timeout)
    raise TypeError(f"Unsupported source descriptor: {type(source).__name__}")
