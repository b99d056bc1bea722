"""Tool definitions and handlers for the ``generate_curriculum`` / ``adapt_vark`` tools.

Handlers always return ``{"content": [{"type": "text", "text": ...}], "isError": bool}``;
failures are reported in the payload instead of being raised.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from engines.content_io import load_content_file, write_adaptive_content, write_curriculum
from engines.cost_estimator import estimate_cost, estimate_curriculum_tokens
from engines.curriculum_generator import CurriculumGenerator, GenerationOptions
from engines.llm_client import ClientConfig, LLMClient
from engines.llm_errors import InvalidCredentialError
from engines.vark_adapter import VarkAdapter, plan_adaptation
from schemas import AdaptVarkArgs, GenerateCurriculumArgs

logger = logging.getLogger(__name__)

MAX_LISTED_ISSUES = 5

TOOLS: List[Dict[str, Any]] = [
    {
        "name": "generate_curriculum",
        "description": (
            "Generate a complete learning curriculum from a topic description.\n\n"
            "Writes curriculum.json (chaptersData + fullChapterContent) and metadata.json.\n"
            "Each chapter carries a title, subtitle, icon, colour, key takeaways, overview, "
            "section content, exercises, a 4-option quiz and a reflection prompt.\n\n"
            "Cost: ~$0.50-1.50 per curriculum (user's API key)"
        ),
        "inputSchema": GenerateCurriculumArgs.model_json_schema(),
    },
    {
        "name": "adapt_vark",
        "description": (
            "Transform curriculum content into 4 VARK learning style variants.\n\n"
            "- Visual: diagrams, tables, flowcharts, spatial layouts\n"
            "- Auditory: conversational tone, stories, discussion prompts\n"
            "- Read/Write: definitions, lists, note templates, summaries\n"
            "- Kinesthetic: hands-on exercises, step-by-step activities\n\n"
            "Uses one 4-in-1 request per section.\n"
            "Cost: ~$1.50-3.00 per curriculum (user's API key)"
        ),
        "inputSchema": AdaptVarkArgs.model_json_schema(),
    },
]

TOOL_NAMES = tuple(tool["name"] for tool in TOOLS)


def _text_result(text: str, *, is_error: bool = False) -> Dict[str, Any]:
    return {"content": [{"type": "text", "text": text}], "isError": is_error}


def _issue_list(title: str, items: List[str], limit: Optional[int] = MAX_LISTED_ISSUES) -> str:
    if not items:
        return ""
    shown = items if limit is None else items[:limit]
    lines = [f"**{title} ({len(items)}):**"]
    lines.extend(f"- {item}" for item in shown)
    if len(items) > len(shown):
        lines.append(f"- ... and {len(items) - len(shown)} more")
    return "\n".join(lines)


def _default_client() -> LLMClient:
    config = ClientConfig.from_env()
    if not config.api_key:
        raise InvalidCredentialError(
            "ANTHROPIC_API_KEY not set.\n\nPlease set your API key in the environment."
        )
    return LLMClient(config)


async def handle_generate_curriculum(
    args: GenerateCurriculumArgs,
    *,
    client: Any = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> Dict[str, Any]:
    tokens = estimate_curriculum_tokens(args.chapters)
    cost = estimate_cost(tokens["input_tokens"], tokens["output_tokens"])

    if args.dryRun:
        return _text_result(
            "**Curriculum Cost Estimation**\n\n"
            f"**Topic:** {args.topic}\n"
            f"**Chapters:** {args.chapters}\n"
            f"**Difficulty:** {args.difficulty}\n\n"
            "**Token Estimates:**\n"
            f"- Input: ~{tokens['input_tokens']:,} tokens\n"
            f"- Output: ~{tokens['output_tokens']:,} tokens\n"
            f"- Total: ~{tokens['total_tokens']:,} tokens\n\n"
            f"**Estimated Cost:** ${cost['total_cost']:.2f}\n\n"
            "Note: two-phase generation (outline + content per chapter)."
        )

    generator = CurriculumGenerator(client or _default_client())
    options = GenerationOptions(
        topic=args.topic,
        chapters=args.chapters,
        difficulty=args.difficulty,
        duration=args.duration,
    )
    result = await generator.generate(options, cancel_event=cancel_event)
    paths = write_curriculum(args.outputDir, result.curriculum, result.metadata())

    chapters = result.chapters_data
    status = "Cancelled" if result.cancelled else "Complete"
    parts = [
        f"**Curriculum Generation {status}**",
        f"**Generation Time:** {result.elapsed:.1f}s",
        f"**Output:**\n- `{paths['curriculum']}`\n- `{paths['metadata']}`",
        "**Summary:**\n"
        f"- Chapters: {len(chapters)}\n"
        f"- Sections: {sum(len(ch.get('sections') or []) for ch in chapters)}\n"
        f"- Exercises: {sum(len(ch.get('exercises') or []) for ch in chapters)}\n"
        f"- Quiz questions: {sum(len(ch.get('quiz') or []) for ch in chapters)}\n"
        f"- Content: {result.success_count} succeeded, {result.error_count} failed",
        _issue_list("Failed chapters", result.failed_units, limit=None),
        _issue_list("Validation errors", result.validation["errors"]),
        _issue_list("Warnings", result.validation["warnings"]),
    ]
    if not result.validation["valid"]:
        parts.append("Curriculum has validation errors but was saved anyway.")
    return _text_result("\n\n".join(part for part in parts if part))


async def handle_adapt_vark(
    args: AdaptVarkArgs,
    *,
    client: Any = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> Dict[str, Any]:
    full_content = load_content_file(args.inputFile)
    plan = plan_adaptation(full_content, args.chapter)

    if args.dryRun:
        tokens_cost = plan.estimate()
        return _text_result(
            "**VARK Adaptation Cost Estimation**\n\n"
            f"**Input:** {args.inputFile}\n"
            f"**Chapters to process:** {len(plan.chapter_ids)}\n"
            f"**Total sections:** {plan.section_count}\n"
            f"**Average section length:** {round(plan.avg_section_length)} chars\n\n"
            "**Token Estimates:**\n"
            f"- Input: ~{tokens_cost['input_tokens']:,} tokens\n"
            f"- Output: ~{tokens_cost['output_tokens']:,} tokens (4 variants per section)\n"
            f"- Total: ~{tokens_cost['total_tokens']:,} tokens\n\n"
            f"**Estimated Cost:** ${tokens_cost['total_cost']:.2f}\n\n"
            "Note: using 4-in-1 prompts for cost optimization."
        )

    adapter = VarkAdapter(client or _default_client())
    result = await adapter.adapt(full_content, chapter=args.chapter, cancel_event=cancel_event)
    paths = write_adaptive_content(args.outputFile, result.adaptive_content, result.log(args.inputFile))

    failed = set(result.failed_units)
    status = "Cancelled" if result.cancelled else "Complete"
    parts = [
        f"**VARK Adaptation {status}**",
        f"**Adaptation Time:** {result.elapsed:.1f}s",
        f"**Output:** `{paths['content']}`",
        "**Summary:**\n"
        f"- Chapters adapted: {len(result.chapters_processed)}\n"
        f"- Sections adapted: {result.sections_processed}\n"
        f"- Variants per section: {len(result.styles) + 1} (default + {len(result.styles)} VARK styles)",
        _issue_list("Failed sections", result.failed_units, limit=None),
        _issue_list("Section issues", [issue for issue in result.errors if issue not in failed]),
        _issue_list("Validation errors", result.validation["errors"]),
        _issue_list("Warnings", result.validation["warnings"]),
    ]
    return _text_result("\n\n".join(part for part in parts if part))


_HANDLERS = {
    "generate_curriculum": (GenerateCurriculumArgs, handle_generate_curriculum),
    "adapt_vark": (AdaptVarkArgs, handle_adapt_vark),
}


async def call_tool(
    name: str,
    arguments: Optional[Dict[str, Any]] = None,
    *,
    client: Any = None,
    cancel_event: Optional[asyncio.Event] = None,
) -> Dict[str, Any]:
    """Dispatch a tool call by name and wrap any failure as an ``isError`` result."""

    entry = _HANDLERS.get(name)
    if entry is None:
        return _text_result(
            f"Unknown tool: {name}. Available tools: {', '.join(TOOL_NAMES)}",
            is_error=True,
        )

    model, handler = entry
    try:
        args = model.model_validate(arguments or {})
    except ValidationError as exc:
        return _text_result(f"Invalid arguments for {name}: {exc}", is_error=True)

    try:
        return await handler(args, client=client, cancel_event=cancel_event)
    except (RuntimeError, ValueError, OSError) as exc:
        logger.error("Tool %s failed: %s", name, exc)
        return _text_result(f"Error executing {name}: {exc}", is_error=True)


__all__ = [
    "TOOLS",
    "TOOL_NAMES",
    "call_tool",
    "handle_adapt_vark",
    "handle_generate_curriculum",
]
