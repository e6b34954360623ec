"""Interpretation of generated text as structured article data."""

from dataclasses import dataclass
import json
import logging
from typing import Union

from pydantic import ValidationError as SchemaValidationError

from sourcewriter.errors import ResponseFormatError
from sourcewriter.schemas import ArticleResult


logger = logging.getLogger(__name__)

ARTICLE_FIELDS = ("title", "subheadings", "article")


@dataclass(frozen=True)
class Structured:
    result: ArticleResult


@dataclass(frozen=True)
class Unstructured:
    raw: str


Interpretation = Union[Structured, Unstructured]


def parse_article(generated: str) -> ArticleResult:
    """Parse JSON starting at the first `{`; raise `ResponseFormatError` otherwise."""
    start = generated.find("{")
    if start == -1:
        raise ResponseFormatError("No JSON object in generated text.")

    try:
        parsed = json.loads(generated[start:])
    except (json.JSONDecodeError, RecursionError) as exc:
        raise ResponseFormatError(f"Generated text is not valid JSON: {exc}") from exc

    if not isinstance(parsed, dict) or not any(key in parsed for key in ARTICLE_FIELDS):
        raise ResponseFormatError("Generated JSON has no article fields.")

    try:
        return ArticleResult.model_validate(parsed)
    except SchemaValidationError as exc:
        raise ResponseFormatError(f"Generated JSON has the wrong shape: {exc}") from exc


def interpret(generated: str) -> Interpretation:
    """Return the parsed article, or the generated text untouched if it won't parse."""
    try:
        return Structured(parse_article(generated or ""))
    except ResponseFormatError as exc:
        logger.info("Falling back to raw generated text: %s", exc.message)
        return Unstructured(generated)
