"""Prompt construction for article generation from extracted source text."""

from sourcewriter.schemas import GenerationOptions


SOURCE_PROMPT_CAP = 30_000


def build_generation_prompt(text: str, options: GenerationOptions) -> str:
    """
    Build the instruction block sent to the model:
    - a title of at most 10 words
    - two or three subheadings
    - an article of the requested word count, language, and tone
    The reply is requested as JSON so the interpreter can pick it apart.
    """
    guidance = options.user_guidance or "None"
    # Only the head of very long sources fits into the model context.
    source = (text or "")[:SOURCE_PROMPT_CAP]

    return f"""
You are an assistant that must generate three things from the provided source text (which is a transcript of an interview or a web article).
1) A short, catchy title (max 10 words).
2) Two to three subheadings suitable for the article.
3) A {options.word_target}-word well-structured article in {options.language} with the requested tone: {options.tone}.
User guidance: {guidance}
Source:
\"\"\"{source}\"\"\"
Format your response as JSON with fields: title, subheadings (array), article.
""".strip()
