"""Source extraction, prompting, and article generation."""

from .generator import InferenceClient, TemplateGenerator, get_generator
from .interpreter import Structured, Unstructured, interpret
from .pipeline import extract_text, normalize_html, normalize_pdf
from .prompting import build_generation_prompt
from .schemas import ArticleResult, GenerateRequest, GenerateResponse, GenerationOptions

__all__ = [
    "ArticleResult",
    "GenerateRequest",
    "GenerateResponse",
    "GenerationOptions",
    "InferenceClient",
    "Structured",
    "TemplateGenerator",
    "Unstructured",
    "build_generation_prompt",
    "extract_text",
    "get_generator",
    "interpret",
    "normalize_html",
    "normalize_pdf",
]
