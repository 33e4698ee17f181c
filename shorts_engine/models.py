"""
Content package models.

A ContentPackage is produced wholesale by an external text generator and
consumed field by field by the downstream steps. Validation is
all-or-nothing: a package missing any field is rejected as a whole.
"""

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_NICHE = "Motivation / Self-Improvement"
DEFAULT_TONE = "Inspiring, confident, modern"
DEFAULT_THEME = "Discipline, Focus, Success mindset"


class GeneratorConfig(BaseModel):
    """Topic configuration handed to the package generator."""
    niche: str = DEFAULT_NICHE
    tone: str = DEFAULT_TONE
    theme: str = DEFAULT_THEME


class PackageMetadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    estimated_duration_seconds: float
    category: str
    posting_time_suggestion: str


class ContentPackage(BaseModel):
    """Everything needed to produce and publish one short."""
    model_config = ConfigDict(frozen=True)

    idea: str
    # Accepted from generators that still emit it; never read. The spoken text is `voiceover`.
    script: Optional[str] = None
    voiceover: str = Field(..., min_length=1)
    stock_video_keywords: List[str]
    subtitles: List[str]
    title: str = Field(..., min_length=1)
    description: str
    hashtags: List[str]
    metadata: PackageMetadata
