"""Markdown rendering of generated articles for export."""

from sourcewriter.schemas import ArticleResult


def render_markdown(result: ArticleResult) -> str:
    """Render a result as Markdown; a result without body text renders empty."""
    if result.raw is not None and not result.article:
        return result.raw.strip()

    parts = []
    if result.title:
        parts.append(f"# {result.title.strip()}")
    if result.subheadings:
        parts.append("\n".join(f"- {heading.strip()}" for heading in result.subheadings))
    if result.article:
        parts.append(result.article.strip())
    return "\n\n".join(parts)
