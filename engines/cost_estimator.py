"""Token and cost estimates used for dry runs before any API call is made."""

from __future__ import annotations

import math
from typing import Any, Dict

CHARS_PER_TOKEN = 4

# Claude Sonnet list prices per 1000 tokens.
INPUT_COST_PER_1K = 0.003
OUTPUT_COST_PER_1K = 0.015

# Curriculum generation heuristics (outline + per-chapter content).
CURRICULUM_SYSTEM_TOKENS = 500
CURRICULUM_PROMPT_TOKENS = 200
CHAPTER_METADATA_TOKENS = 800
SECTION_CONTENT_TOKENS = 1500
SECTIONS_PER_CHAPTER = 5

# VARK adaptation heuristics (one 4-in-1 request per section).
ADAPTATION_SYSTEM_TOKENS = 400
ADAPTATION_TEMPLATE_TOKENS = 400
ADAPTATION_VARIANTS = 4
DEFAULT_SECTION_LENGTH = 4000


def estimate_tokens(text: str) -> int:
    """Approximate the token count of ``text`` (4 characters per token)."""

    return math.ceil(len(text or "") / CHARS_PER_TOKEN)


def _token_counts(input_tokens: float, output_tokens: float) -> Dict[str, int]:
    input_tokens = int(round(input_tokens))
    output_tokens = int(round(output_tokens))
    return {
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
    }


def estimate_cost(
    input_tokens: int,
    output_tokens: int,
    *,
    input_rate: float = INPUT_COST_PER_1K,
    output_rate: float = OUTPUT_COST_PER_1K,
) -> Dict[str, Any]:
    """Convert token counts into a dollar estimate."""

    input_cost = (input_tokens / 1000) * input_rate
    output_cost = (output_tokens / 1000) * output_rate
    return {
        "input_tokens": input_tokens,
        "output_tokens": output_tokens,
        "total_tokens": input_tokens + output_tokens,
        "input_cost": round(input_cost, 4),
        "output_cost": round(output_cost, 4),
        "total_cost": round(input_cost + output_cost, 4),
    }


def estimate_curriculum_tokens(chapters: int) -> Dict[str, int]:
    input_tokens = CURRICULUM_SYSTEM_TOKENS + CURRICULUM_PROMPT_TOKENS
    output_tokens = chapters * (
        CHAPTER_METADATA_TOKENS + SECTIONS_PER_CHAPTER * SECTION_CONTENT_TOKENS
    )
    return _token_counts(input_tokens, output_tokens)


def estimate_adaptation_tokens(
    section_count: int,
    avg_section_length: float = DEFAULT_SECTION_LENGTH,
) -> Dict[str, int]:
    """Estimate a VARK adaptation run from section count and average length in characters."""

    content_tokens = avg_section_length / CHARS_PER_TOKEN
    per_section_input = ADAPTATION_TEMPLATE_TOKENS + content_tokens
    per_section_output = content_tokens * ADAPTATION_VARIANTS
    return _token_counts(
        ADAPTATION_SYSTEM_TOKENS + section_count * per_section_input,
        section_count * per_section_output,
    )


def estimate_curriculum_cost(chapters: int, sections_per_chapter: int = SECTIONS_PER_CHAPTER) -> Dict[str, Any]:
    """Cost of a two-phase generation run with an outline/content breakdown."""

    outline_input = CURRICULUM_SYSTEM_TOKENS + 300
    outline_output = chapters * 400
    content_input = (CURRICULUM_SYSTEM_TOKENS + CURRICULUM_PROMPT_TOKENS) * chapters
    content_output = sections_per_chapter * 600 * chapters

    estimate = estimate_cost(outline_input + content_input, outline_output + content_output)
    estimate["breakdown"] = {
        "outline": estimate_cost(outline_input, outline_output),
        "content": estimate_cost(content_input, content_output),
    }
    estimate["chapters"] = chapters
    estimate["sections_per_chapter"] = sections_per_chapter
    return estimate


def estimate_vark_cost(chapters: int, sections_per_chapter: int = SECTIONS_PER_CHAPTER) -> Dict[str, Any]:
    total_sections = chapters * sections_per_chapter
    return estimate_cost(total_sections * 500, total_sections * 2000)
