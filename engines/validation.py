"""Shape checks for AI-generated curricula and VARK adaptations.

Validators never raise on bad content: they return ``{"valid", "errors",
"warnings"}`` where errors block acceptance and warnings are advisory only.
"""

import re
from typing import Any, Dict, List, Mapping, Optional, Sequence

from engines.vark import VARK_STYLES

VALID_EXERCISE_TYPES = (
    "assessment",
    "writing",
    "practical",
    "roleplay",
    "template",
    "analysis",
    "design",
    "timed",
    "presentation",
    "strategy",
)

REQUIRED_CHAPTER_FIELDS = (
    "id",
    "number",
    "title",
    "subtitle",
    "icon",
    "color",
    "duration",
    "keyTakeaways",
    "overview",
    "sections",
    "exercises",
    "quiz",
    "reflection",
)

ADAPTIVE_STYLES = ("default",) + VARK_STYLES

VALID_ICON_PREFIXES = ("fa-",)
_NUMBER_PATTERN = re.compile(r"\d{2}", re.ASCII)
_COLOR_PATTERNS = (re.compile(r"from-\w+-\d+ to-\w+-\d+", re.ASCII),)
_DURATION_PATTERN = re.compile(r"\d+ min", re.ASCII)

MIN_SECTION_WORDS = 300
MAX_SECTION_WORDS = 2000
MIN_ADAPTED_CHARS = 500


def _result(errors: List[str], warnings: List[str]) -> Dict[str, Any]:
    return {"valid": not errors, "errors": errors, "warnings": warnings}


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _get(obj: Any, key: str) -> Any:
    return obj.get(key) if isinstance(obj, Mapping) else None


def _content_entry(full_content: Mapping[Any, Any], chapter_id: Any) -> Any:
    # JSON object keys are strings while chapter ids are numbers.
    if isinstance(chapter_id, (int, str)) and chapter_id in full_content:
        return full_content[chapter_id]
    return full_content.get(str(chapter_id))


def validate_curriculum(curriculum: Any) -> Dict[str, Any]:
    """Validate a ``{chaptersData, fullChapterContent}`` pair."""

    errors: List[str] = []
    warnings: List[str] = []

    chapters = _get(curriculum, "chaptersData")
    full_content = _get(curriculum, "fullChapterContent")

    if not isinstance(chapters, list):
        errors.append("Missing or invalid chaptersData array")
    if not isinstance(full_content, Mapping):
        errors.append("Missing or invalid fullChapterContent object")
    if errors:
        return _result(errors, warnings)

    for position, chapter in enumerate(chapters, start=1):
        if not isinstance(chapter, Mapping):
            errors.append(f"Chapter at position {position}: chapter must be an object")
            continue

        chapter_id = chapter.get("id")
        prefix = f"Chapter {chapter_id}: "
        chapter_report = _validate_chapter(chapter)
        errors.extend(prefix + message for message in chapter_report["errors"])
        warnings.extend(prefix + message for message in chapter_report["warnings"])

        entry = _content_entry(full_content, chapter_id)
        if entry is None:
            errors.append(f"{prefix}Missing fullChapterContent entry")
            continue

        sections_meta = chapter.get("sections")
        content_report = _validate_full_content(
            entry, sections_meta if isinstance(sections_meta, list) else []
        )
        errors.extend(prefix + message for message in content_report["errors"])
        warnings.extend(prefix + message for message in content_report["warnings"])

    ids = [_get(chapter, "id") for chapter in chapters]
    for index, chapter_id in enumerate(ids, start=1):
        if isinstance(chapter_id, bool) or chapter_id != index:
            errors.append(f"Chapter IDs not sequential: expected {index}, got {chapter_id}")

    return _result(errors, warnings)


def _validate_chapter(chapter: Mapping[str, Any]) -> Dict[str, List[str]]:
    errors: List[str] = []
    warnings: List[str] = []

    for field in REQUIRED_CHAPTER_FIELDS:
        if chapter.get(field) is None:
            errors.append(f"Missing required field: {field}")

    if not _is_number(chapter.get("id")):
        errors.append("id must be a number")

    number = chapter.get("number")
    if not isinstance(number, str):
        errors.append("number must be a string")
    elif not _NUMBER_PATTERN.fullmatch(number):
        warnings.append(f'number should be zero-padded (e.g., "01"), got "{number}"')

    icon = chapter.get("icon")
    if isinstance(icon, str) and icon and not icon.startswith(VALID_ICON_PREFIXES):
        warnings.append(f'icon should be FontAwesome class (fa-*), got "{icon}"')

    color = chapter.get("color")
    if isinstance(color, str) and color and not any(p.fullmatch(color) for p in _COLOR_PATTERNS):
        warnings.append(f'color should be Tailwind gradient, got "{color}"')

    duration = chapter.get("duration")
    if isinstance(duration, str) and duration and not _DURATION_PATTERN.fullmatch(duration):
        warnings.append(f'duration should be "XX min" format, got "{duration}"')

    takeaways = chapter.get("keyTakeaways")
    if isinstance(takeaways, list):
        if len(takeaways) < 3:
            warnings.append("keyTakeaways should have at least 3 items")
        if len(takeaways) > 5:
            warnings.append("keyTakeaways should have at most 5 items")

    sections = chapter.get("sections")
    if isinstance(sections, list):
        if len(sections) < 4:
            warnings.append("Should have at least 4 sections")
        if len(sections) > 7:
            warnings.append("Should have at most 7 sections")
        for index, section in enumerate(sections, start=1):
            if not _get(section, "title"):
                errors.append(f"Section {index}: missing title")

    exercises = chapter.get("exercises")
    if isinstance(exercises, list):
        for index, exercise in enumerate(exercises, start=1):
            exercise_type = _get(exercise, "type")
            if exercise_type not in VALID_EXERCISE_TYPES:
                warnings.append(f'Exercise {index}: type "{exercise_type}" not in standard types')
            # Non-numeric points share the warning path with out-of-range values.
            points = _get(exercise, "points")
            if not _is_number(points) or points < 100 or points > 250:
                warnings.append(f"Exercise {index}: points should be 100-250, got {points}")

    quiz = chapter.get("quiz")
    if isinstance(quiz, list):
        if len(quiz) < 3:
            warnings.append("Quiz should have at least 3 questions")
        if len(quiz) > 5:
            warnings.append("Quiz should have at most 5 questions")
        for index, question in enumerate(quiz, start=1):
            if not _get(question, "question"):
                errors.append(f"Quiz {index}: missing question")
            options = _get(question, "options")
            if not isinstance(options, list) or len(options) != 4:
                errors.append(f"Quiz {index}: must have exactly 4 options")
            correct = _get(question, "correct")
            if not _is_number(correct) or correct < 0 or correct > 3:
                errors.append(f"Quiz {index}: correct must be 0-3")

    return {"errors": errors, "warnings": warnings}


def _validate_full_content(
    full_content: Any,
    sections_meta: Sequence[Any],
) -> Dict[str, List[str]]:
    errors: List[str] = []
    warnings: List[str] = []

    sections = _get(full_content, "sections")
    if not isinstance(sections, list):
        errors.append("fullChapterContent missing sections array")
        return {"errors": errors, "warnings": warnings}

    if len(sections) != len(sections_meta):
        errors.append(
            f"Section count mismatch: metadata has {len(sections_meta)}, "
            f"content has {len(sections)}"
        )

    for index, section in enumerate(sections, start=1):
        title = _get(section, "title")
        content = _get(section, "content")
        if not title:
            errors.append(f"Section {index}: missing title")
        if not content:
            errors.append(f"Section {index}: missing content")
            continue

        meta = sections_meta[index - 1] if index <= len(sections_meta) else None
        if meta is not None:
            meta_title = _get(meta, "title")
            if title != meta_title:
                warnings.append(
                    f"Section {index}: title mismatch - "
                    f'metadata: "{meta_title}", content: "{title}"'
                )

        word_count = len(str(content).split())
        if word_count < MIN_SECTION_WORDS:
            warnings.append(f"Section {index}: content seems short ({word_count} words)")
        if word_count > MAX_SECTION_WORDS:
            warnings.append(f"Section {index}: content seems long ({word_count} words)")

    return {"errors": errors, "warnings": warnings}


def validate_adaptive_content(adaptive_content: Any) -> Dict[str, Any]:
    """Validate ``{chapter id: {default, visual, auditory, readWrite, kinesthetic}}``."""

    errors: List[str] = []
    warnings: List[str] = []

    if not isinstance(adaptive_content, Mapping):
        return _result(["Adaptive content must be an object keyed by chapter id"], warnings)

    for chapter_id, chapter in adaptive_content.items():
        if not isinstance(chapter, Mapping):
            errors.append(f"Chapter {chapter_id}: invalid chapter structure")
            continue
        for style in ADAPTIVE_STYLES:
            block = chapter.get(style)
            if block is None:
                if style == "default":
                    errors.append(f"Chapter {chapter_id}: missing default content")
                else:
                    warnings.append(f"Chapter {chapter_id}: missing {style} variant")
                continue
            if not isinstance(_get(block, "sections"), list):
                errors.append(f"Chapter {chapter_id} {style}: invalid sections structure")

    return _result(errors, warnings)


def validate_adaptation(
    adapted: Any,
    expected_title: str,
    styles: Optional[Sequence[str]] = None,
) -> Dict[str, Any]:
    """Check one section's 4-in-1 adaptation reply."""

    errors: List[str] = []
    for style in styles or VARK_STYLES:
        variant = _get(adapted, style)
        if not variant:
            errors.append(f"Missing {style} variant")
            continue
        title = _get(variant, "title")
        content = _get(variant, "content")
        if not title or not content:
            errors.append(f"{style} variant missing title or content")
            continue
        if title != expected_title:
            errors.append(f'{style} title mismatch: expected "{expected_title}", got "{title}"')
        if len(str(content)) < MIN_ADAPTED_CHARS:
            errors.append(f"{style} content too short ({len(str(content))} chars)")

    return {"valid": not errors, "errors": errors}


__all__ = [
    "ADAPTIVE_STYLES",
    "VALID_EXERCISE_TYPES",
    "validate_adaptation",
    "validate_adaptive_content",
    "validate_curriculum",
]
