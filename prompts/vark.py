"""Prompt templates for VARK content adaptation."""

from __future__ import annotations

from typing import Optional, Sequence

from engines.vark import VARK_STYLES

SYSTEM_PROMPT = """You are an expert educational content adapter specializing in VARK learning styles. You transform educational content into four variants optimized for different learning preferences.

VARK Learning Styles:
- Visual (V): Learns through seeing - diagrams, charts, spatial layouts, color coding
- Auditory (A): Learns through hearing - stories, discussions, verbal explanations
- Read/Write (R): Learns through text - lists, definitions, written explanations
- Kinesthetic (K): Learns through doing - examples, hands-on practice, real-world application

Your adaptations must:
1. Preserve all original concepts and accuracy
2. Match the learning style characteristics authentically
3. Use markdown formatting compatible with the renderer
4. Include style-specific content markers
5. Maintain roughly equal length (±20%) across variants

Output valid JSON only - no markdown code fences, no explanation text."""

STYLE_REQUIREMENTS = {
    "visual": (
        "VISUAL (V)",
        [
            "Add ASCII diagrams, flowcharts, or spatial representations",
            "Use tables to organize comparisons",
            "Include visual metaphors and color/emoji markers",
            "Structure content with clear visual hierarchy",
            "Prefix key sections with ### 📊 or ### 🎨",
        ],
        "Full visual-adapted content with diagrams and tables...",
    ),
    "auditory": (
        "AUDITORY (A)",
        [
            "Rewrite in conversational, story-driven tone",
            "Add discussion prompts and questions",
            'Include "imagine..." and "picture this..." scenarios',
            'Add verbal explanation scripts ("Try saying this aloud...")',
            "Prefix key sections with ### 🎙️ or ### 💭",
        ],
        "Full auditory-adapted content with stories and discussions...",
    ),
    "readWrite": (
        "READ/WRITE (R)",
        [
            "Expand with detailed definitions and terminology",
            "Structure as numbered/bulleted lists with sub-points",
            "Add note-taking templates and summary frameworks",
            'Include "Key Terms:" and "Summary:" sections',
            "Prefix key sections with ### 📝 or ### 📋",
        ],
        "Full read/write-adapted content with lists and definitions...",
    ),
    "kinesthetic": (
        "KINESTHETIC (K)",
        [
            "Add hands-on exercises with immediate application",
            'Include "try this now" activities with specific steps',
            "Add time-boxed practice exercises (⏱️ 2 minutes)",
            "Include real-world application challenges",
            "Prefix key sections with ### 🔧 or ### 🎯",
        ],
        "Full kinesthetic-adapted content with exercises and activities...",
    ),
}


def build_adaptation_prompt(
    section_title: str,
    original_content: str,
    styles: Optional[Sequence[str]] = None,
) -> str:
    """Ask for every requested variant of one section in a single JSON reply.

    ``styles`` defaults to all four VARK styles; unknown names are skipped.
    """

    selected = [style for style in VARK_STYLES if style in (styles or VARK_STYLES)]
    count_word = "ALL FOUR" if len(selected) == len(VARK_STYLES) else f"{len(selected)}"

    requirement_blocks = []
    output_entries = []
    for style in selected:
        heading, bullets, placeholder = STYLE_REQUIREMENTS[style]
        requirement_blocks.append(
            f"**{heading}**:\n" + "\n".join(f"- {bullet}" for bullet in bullets)
        )
        output_entries.append(
            f'  "{style}": {{\n'
            f'    "title": "{section_title}",\n'
            f'    "content": "{placeholder}"\n'
            "  }"
        )

    return (
        f"Transform the following educational content into {count_word} VARK learning style variants.\n\n"
        "ORIGINAL CONTENT:\n"
        f"Title: {section_title}\n"
        f"{original_content}\n\n"
        "TRANSFORMATION REQUIREMENTS:\n\n"
        + "\n\n".join(requirement_blocks)
        + "\n\nRULES:\n"
        f'1. Keep section title exactly: "{section_title}"\n'
        "2. Maintain all core concepts and factual accuracy\n"
        "3. Each variant should be roughly same length (±20%)\n"
        "4. Use markdown formatting compatible with renderer\n"
        "5. Include style-specific content markers and emojis\n\n"
        "OUTPUT FORMAT (JSON only, no code fences):\n"
        "{\n" + ",\n".join(output_entries) + "\n}"
    )


__all__ = ["STYLE_REQUIREMENTS", "SYSTEM_PROMPT", "build_adaptation_prompt"]
