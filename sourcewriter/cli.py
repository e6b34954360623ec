"""Command-line runner: extract a source, generate an article, print Markdown."""

import argparse
from dataclasses import dataclass
from pathlib import Path
import sys
from typing import List, Optional

from sourcewriter.config import get_settings
from sourcewriter.errors import SourceWriterError
from sourcewriter.generator import get_generator
from sourcewriter.interpreter import Structured, interpret
from sourcewriter.logging_config import configure_logging
from sourcewriter.pipeline import extract_text
from sourcewriter.presenter import render_markdown
from sourcewriter.prompting import build_generation_prompt
from sourcewriter.schemas import ArticleResult, GenerationOptions
from sourcewriter.sources import (
    PdfSource,
    SourceDescriptor,
    WebsiteSource,
    YouTubeSource,
    is_valid_source_url,
)


@dataclass
class RunConfig:
    pdf: Optional[str]
    url: Optional[str]
    youtube: Optional[str]
    tone: str
    length: str
    language: str
    guidance: Optional[str]
    output: Optional[str]


def parse_args(argv: Optional[List[str]] = None) -> RunConfig:
    """Parse and validate CLI arguments."""
    parser = argparse.ArgumentParser(
        description="Turn a PDF, a web article, or a YouTube video into a generated article."
    )

    source_group = parser.add_argument_group("Source")
    exclusive = source_group.add_mutually_exclusive_group(required=True)
    exclusive.add_argument("--pdf", type=str, help="Path to a local PDF file.")
    exclusive.add_argument("--url", type=str, help="Web article URL.")
    exclusive.add_argument("--youtube", type=str, help="YouTube video URL.")

    options_group = parser.add_argument_group("Article")
    options_group.add_argument(
        "--tone",
        type=str,
        default="Neutral",
        choices=["Neutral", "Formal", "Casual", "Educational", "Marketing"],
    )
    options_group.add_argument(
        "--length", type=str, default="medium", choices=["short", "medium", "long"]
    )
    options_group.add_argument(
        "--language", type=str, default="English", choices=["English", "Sinhala", "Tamil"]
    )
    options_group.add_argument("--guidance", type=str, default=None)

    parser.add_argument("--output", type=str, default=None, help="Write Markdown here.")

    args = parser.parse_args(argv)

    if args.url and not is_valid_source_url("website", args.url):
        parser.error("--url must start with http")
    if args.youtube and not is_valid_source_url("youtube", args.youtube):
        parser.error("--youtube must be a youtube.com or youtu.be URL")
    if args.pdf and not Path(args.pdf).is_file():
        parser.error(f"--pdf file not found: {args.pdf}")

    return RunConfig(**vars(args))


def build_source(config: RunConfig) -> SourceDescriptor:
    if config.pdf:
        path = Path(config.pdf)
        return PdfSource(data=path.read_bytes(), filename=path.name)
    if config.url:
        return WebsiteSource(url=config.url)
    return YouTubeSource(url=config.youtube)


def run(config: RunConfig) -> str:
    """Run the full pipeline and return the rendered Markdown."""
    settings = get_settings()
    options = GenerationOptions(
        tone=config.tone,
        length=config.length,
        language=config.language,
        userGuidance=config.guidance,
    )

    text = extract_text(build_source(config), timeout=settings.fetch_timeout)
    prompt = build_generation_prompt(text, options)
    generated = get_generator(settings).generate(prompt, options)

    interpretation = interpret(generated)
    if isinstance(interpretation, Structured):
        return render_markdown(interpretation.result)
    return render_markdown(ArticleResult(raw=interpretation.raw))


def main(argv: Optional[List[str]] = None) -> int:
    config = parse_args(argv)
    configure_logging(get_settings().log_level)

    try:
        markdown = run(config)
    except SourceWriterError as exc:
        print(f"Error: {exc.message}", file=sys.stderr)
        return 1

    if config.output:
        Path(config.output).write_text(markdown + "\n", encoding="utf-8")
        print(f"Article written to {config.output}")
    else:
        print(markdown)
    return 0


if __name__ == "__main__":
    sys.exit(main())
