"""Pydantic schemas for the extraction and generation API."""

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


Tone = Literal["Neutral", "Formal", "Casual", "Educational", "Marketing"]
ArticleLength = Literal["short", "medium", "long"]
Language = Literal["English", "Sinhala", "Tamil"]

WORD_TARGETS = {"short": 100, "medium": 300, "long": 500}


class GenerationOptions(BaseModel):
    """User-chosen article settings; every field has a default."""

    model_config = ConfigDict(populate_by_name=True)

    tone: Tone = Field(default="Neutral", description="Writing tone.")
    length: ArticleLength = Field(
        default="medium", description="short (100) | medium (300) | long (500) words"
    )
    language: Language = Field(default="English", description="Output language.")
    user_guidance: Optional[str] = Field(
        default=None,
        alias="userGuidance",
        description="Optional free-text guidance passed to the model verbatim.",
    )

    @property
    def word_target(self) -> int:
        return WORD_TARGETS[self.length]


class WebsiteExtractRequest(BaseModel):
    url: Optional[str] = None


class YouTubeExtractRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    video_url: Optional[str] = Field(default=None, alias="videoUrl")


class ExtractResponse(BaseModel):
    text: str


class GenerateRequest(BaseModel):
    """Inbound payload: normalized source text plus generation options."""

    text: Optional[str] = None
    options: GenerationOptions = Field(default_factory=GenerationOptions)


class ArticleResult(BaseModel):
    """Article fields parsed from model output, or the raw text it fell back to."""

    title: Optional[str] = None
    subheadings: List[str] = Field(default_factory=list)
    article: Optional[str] = None
    raw: Optional[str] = None

    @field_validator("subheadings", mode="before")
    @classmethod
    def _null_subheadings(cls, value):
        return [] if value is None else value

    @property
    def is_empty(self) -> bool:
        return not self.article and not self.raw


class GenerateResponse(BaseModel):
    """Either `result` (structured) or `raw` (fallback) is set, never both."""

    ok: bool = True
    result: Optional[ArticleResult] = None
    raw: Optional[str] = None
