"""Prompt templates for two-phase curriculum generation.

Phase one asks for chapter metadata only (titles, section briefs, exercises,
quizzes). Phase two asks for the full section text of one chapter at a time.
"""

from __future__ import annotations

from typing import Any, Mapping

DEFAULT_AUDIENCE = "Professionals building practical skills"

OUTLINE_SYSTEM_PROMPT = (
    "You are an expert curriculum designer. Generate a curriculum outline with "
    "chapter metadata. Output valid JSON only."
)

CONTENT_SYSTEM_PROMPT = (
    "You are an expert educational content writer. Generate detailed section content "
    "for a chapter. Each section should be 200-400 words with practical examples. "
    "Use markdown formatting. Output valid JSON only."
)

ICON_CHOICES = (
    "fa-compass",
    "fa-tools",
    "fa-comments",
    "fa-chess",
    "fa-microscope",
    "fa-cogs",
    "fa-check-circle",
    "fa-brain",
    "fa-flag-checkered",
)

COLOR_CHOICES = (
    "from-navy-700 to-navy-500",
    "from-blue-600 to-blue-400",
    "from-green-600 to-green-400",
    "from-purple-600 to-purple-400",
    "from-teal-600 to-teal-400",
)

OUTLINE_EXERCISE_TYPES = ("practical", "assessment", "writing", "analysis", "design")

_OUTLINE_TEMPLATE = """Create a curriculum OUTLINE for: "{topic}"

Target Audience: {audience}
Number of Chapters: {chapters}
Difficulty: {difficulty}
Duration: {duration} min/chapter

Generate chapter metadata ONLY (no full content). For each chapter provide:
- id, number (zero-padded), title, subtitle
- icon (FontAwesome), color (Tailwind gradient)
- duration, keyTakeaways (4 items), overview
- sections (4-5 objects with title and brief 1-sentence content description)
- exercises (1-2 with type, title, description, points 100-200)
- quiz (3-4 questions with question, 4 options, correct 0-3, explanation)
- reflection

ICONS: {icons}
COLORS: {colors}
EXERCISE TYPES: {exercise_types}

JSON structure:
{{
  "chaptersData": [
    {{
      "id": 1, "number": "01", "title": "...", "subtitle": "...",
      "icon": "fa-compass", "color": "from-navy-700 to-navy-500",
      "duration": "{duration} min",
      "keyTakeaways": ["...", "...", "...", "..."],
      "overview": "...",
      "sections": [{{"title": "...", "content": "Brief description"}}],
      "exercises": [{{"type": "practical", "title": "...", "description": "...", "points": 100}}],
      "quiz": [{{"question": "?", "options": ["A","B","C","D"], "correct": 0, "explanation": "..."}}],
      "reflection": "?"
    }}
  ]
}}"""

_CONTENT_TEMPLATE = """Generate full content for Chapter {chapter_id}: "{title}"

Chapter overview: {overview}

Generate detailed content for these {section_count} sections:
{section_lines}

REQUIREMENTS:
- Each section: 200-400 words (concise but complete)
- Use markdown: ###, **, *, -, tables, emoji callouts (🎓 💡 ⚠️ ✅ 🔧 💎)
- Include practical examples
- Build on previous sections

JSON structure:
{{
  "sections": [
    {{"title": "Exact title from above", "content": "Full markdown content..."}},
    ...
  ]
}}"""


def build_outline_prompt(
    topic: str,
    chapters: int = 10,
    difficulty: str = "intermediate",
    duration: int = 45,
    audience: str = DEFAULT_AUDIENCE,
) -> str:
    """Return the phase-one user prompt requesting ``chaptersData`` only."""

    return _OUTLINE_TEMPLATE.format(
        topic=topic,
        audience=audience,
        chapters=chapters,
        difficulty=difficulty,
        duration=duration,
        icons=", ".join(ICON_CHOICES),
        colors=", ".join(COLOR_CHOICES),
        exercise_types=", ".join(OUTLINE_EXERCISE_TYPES),
    )


def build_content_prompt(chapter: Mapping[str, Any]) -> str:
    """Return the phase-two user prompt for one chapter's metadata."""

    sections = chapter.get("sections") or []
    lines = []
    for index, section in enumerate(sections, start=1):
        title = section.get("title", "") if isinstance(section, Mapping) else ""
        brief = section.get("content", "") if isinstance(section, Mapping) else ""
        lines.append(f'{index}. "{title}" - {brief}')

    return _CONTENT_TEMPLATE.format(
        chapter_id=chapter.get("id"),
        title=chapter.get("title", ""),
        overview=chapter.get("overview", ""),
        section_count=len(sections),
        section_lines="\n".join(lines),
    )


__all__ = [
    "CONTENT_SYSTEM_PROMPT",
    "DEFAULT_AUDIENCE",
    "OUTLINE_SYSTEM_PROMPT",
    "build_content_prompt",
    "build_outline_prompt",
]
