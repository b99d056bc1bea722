"""Pydantic schemas for content files, tool arguments and HTTP requests."""

from __future__ import annotations

from typing import Any, Dict, List, Literal

from pydantic import BaseModel, ConfigDict, Field, RootModel

__all__ = [
    "AdaptVarkArgs",
    "CallToolRequest",
    "ChapterContent",
    "ContentSection",
    "FullChapterContent",
    "GenerateCurriculumArgs",
    "VarkScoreRequest",
]

Difficulty = Literal["beginner", "intermediate", "advanced"]


class ContentSection(BaseModel):
    model_config = ConfigDict(extra="allow")

    title: str
    content: str


class ChapterContent(BaseModel):
    model_config = ConfigDict(extra="allow")

    sections: List[ContentSection]


class FullChapterContent(RootModel[Dict[int, ChapterContent]]):
    """Full chapter text keyed by chapter id; JSON string keys are coerced to ints."""

    def to_plain(self) -> Dict[int, Dict[str, Any]]:
        return {chapter_id: chapter.model_dump() for chapter_id, chapter in self.root.items()}


class GenerateCurriculumArgs(BaseModel):
    """Arguments accepted by the ``generate_curriculum`` tool."""

    model_config = ConfigDict(extra="forbid")

    topic: str = Field(
        min_length=1,
        description='The topic to generate curriculum for (e.g., "Introduction to Machine Learning")',
    )
    chapters: int = Field(default=10, ge=1, description="Number of chapters to generate (default: 10)")
    difficulty: Difficulty = Field(
        default="intermediate",
        description="Difficulty level (default: intermediate)",
    )
    duration: int = Field(default=45, ge=1, description="Average chapter duration in minutes (default: 45)")
    outputDir: str = Field(default="./generated", description="Output directory (default: ./generated)")
    dryRun: bool = Field(default=False, description="If true, only estimate cost without generating")


class AdaptVarkArgs(BaseModel):
    """Arguments accepted by the ``adapt_vark`` tool."""

    model_config = ConfigDict(extra="forbid")

    inputFile: str = Field(min_length=1, description="Path to a curriculum.json or fullChapters JSON file")
    outputFile: str = Field(
        default="./generated/adaptive-fullChapters.json",
        description="Output file path (default: ./generated/adaptive-fullChapters.json)",
    )
    chapter: int | None = Field(
        default=None,
        description="Adapt only this chapter ID (optional, default: all chapters)",
    )
    dryRun: bool = Field(default=False, description="If true, only estimate cost without generating")


class CallToolRequest(BaseModel):
    name: str
    arguments: Dict[str, Any] = Field(default_factory=dict)


class VarkScoreRequest(BaseModel):
    """Questionnaire answers keyed by question id; values are style labels."""

    answers: Dict[str, str] = Field(default_factory=dict)
