from pydantic import BaseModel, Field
from typing import List, Literal


class SeoCheck(BaseModel):
    """One scored check of an SEO or readability analysis."""
    text: str = Field(..., description="What was checked and the outcome")
    status: Literal["good", "warning", "bad"]
    score: int = Field(..., ge=0, description="Points awarded by this check")


class SeoReport(BaseModel):
    """Scored checks and the resulting 0-100 score."""
    score: int = Field(..., description="Final score")
    checks: List[SeoCheck] = Field(default_factory=list)


class AnalyzeContentRequest(BaseModel):
    """Content to analyze, as produced by the rich-text editor."""
    content: str = Field(..., description="HTML body")
    keyword: str = Field(default="", description="Focus keyword")
    title: str = Field(default="", description="SEO title")
    description: str = Field(default="", description="Meta description")


class AnalyzeContentResponse(BaseModel):
    """SEO and readability reports for one piece of content."""
    seo: SeoReport
    readability: SeoReport
