"""Text normalization pipeline for extracted sources.

This module flattens raw PDF pages and raw HTML into bounded plain text and
ties acquisition and normalization together in `extract_text`.
"""

import io
import logging
from typing import Iterable, Iterator, Optional

from bs4 import BeautifulSoup
from pypdf import PdfReader
from pypdf.errors import PyPdfError

from sourcewriter.errors import NoExtractableTextError
from sourcewriter.sources import PdfSource, SourceDescriptor, WebsiteSource, acquire


logger = logging.getLogger(__name__)

PDF_TEXT_CAP = 100_000
WEBSITE_TEXT_CAP = 200_000
PAGE_SEPARATOR = "\n\n"


def truncate(text: str, cap: int) -> str:
    """Silently cut `text` to at most `cap` characters."""
    return text if len(text) <= cap else text[:cap]


def normalize_pdf_pages(pages: Iterable[str], cap: int = PDF_TEXT_CAP) -> str:
    """Join page texts in order, each followed by a blank line.

    Pages stop being read once the running length passes `cap`; the result is
    then truncated to `cap`.
    """
    text = ""
    for page_text in pages:
        text += (page_text or "") + PAGE_SEPARATOR
        if len(text) > cap:
            break
    return truncate(text, cap)


def pdf_page_texts(data: bytes) -> Iterator[str]:
    """Yield the text of each PDF page, decoded lazily with pypdf."""
    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            # Documents with an empty user password still open.
            reader.decrypt("")
        for page in reader.pages:
            # Collapse layout line breaks so each page reads as one run of text.
            yield " ".join((page.extract_text() or "").split())
    except PyPdfError as exc:
        raise NoExtractableTextError(f"Could not read text from PDF: {exc}") from exc


def normalize_pdf(data: bytes, cap: int = PDF_TEXT_CAP) -> str:
    return normalize_pdf_pages(pdf_page_texts(data), cap=cap)


def normalize_html(html: str, cap: int = WEBSITE_TEXT_CAP) -> str:
    """Return paragraph text, or the visible page text when there are no paragraphs."""
    soup = BeautifulSoup(html or "", "html.parser")

    paragraphs = [p.get_text() for p in soup.find_all("p")]
    text = PAGE_SEPARATOR.join(part for part in paragraphs if part.strip())

    if not text.strip():
        for bad in soup(["script", "style", "noscript"]):
            bad.extract()
        container = soup.body or soup
        text = container.get_text().strip()

    return truncate(text, cap)


def extract_text(source: SourceDescriptor, timeout: Optional[float] = None) -> str:
    """Acquire and normalize a source; blank output is an error, not a result."""
    raw = acquire(source, timeout=timeout)

    if isinstance(source, PdfSource):
        text = normalize_pdf(raw)
        kind = "pdf"
    elif isinstance(source, WebsiteSource):
        text = normalize_html(raw)
        kind = "website"
    else:
        # Transcripts arrive as plain text already.
        text = truncate(raw, WEBSITE_TEXT_CAP)
        kind = "youtube"

    if not text.strip():
        raise NoExtractableTextError(f"No extractable text found in {kind} source.")

    logger.info("Extracted %d characters from %s source", len(text), kind)
    return text
