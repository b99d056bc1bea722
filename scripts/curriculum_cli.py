"""Generate curricula and VARK adaptations from the command line."""
from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Optional, Sequence

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from engines.content_io import load_content_file, write_adaptive_content, write_curriculum
from engines.cost_estimator import estimate_cost, estimate_curriculum_tokens
from engines.curriculum_generator import CurriculumGenerator, GenerationOptions
from engines.llm_client import ClientConfig, LLMClient, RetryEvent
from engines.progress import ProgressEvent
from engines.vark_adapter import VarkAdapter, normalize_styles, plan_adaptation

DEFAULT_OUTPUT_DIR = "./generated"
DEFAULT_ADAPTIVE_OUTPUT = "./generated/adaptive-fullChapters.json"
MAX_LISTED_ISSUES = 10


def _build_client() -> LLMClient:
    return LLMClient(ClientConfig.from_env())


def _print_progress(event: ProgressEvent) -> None:
    if event.phase == "outline":
        if event.status == "started":
            print("Phase 1/2: Generating curriculum outline...")
        elif event.status == "succeeded":
            print(f"Phase 1/2: Outline complete ({event.total} chapters)")
            print("\nPhase 2/2: Generating chapter content...")
        elif event.status == "failed":
            print(f"Phase 1/2: Outline generation failed ({event.message})")
    elif event.phase == "content" and event.status in {"succeeded", "failed"}:
        marker = "ok" if event.status == "succeeded" else "FAILED"
        label = f"Chapter {event.chapter_id}/{event.total}: " if event.chapter_id is not None else ""
        print(f"  {label}{event.message} [{marker}]")
    elif event.phase == "adapt" and event.status in {"succeeded", "failed"}:
        marker = "ok" if event.status == "succeeded" else "FAILED"
        print(f"  Ch{event.chapter_id} Section {event.section}/{event.total}: {event.message[:40]} [{marker}]")
    elif event.status == "cancelled":
        print("Cancelled; keeping the content produced so far.")


def _print_retry(event: RetryEvent) -> None:
    print(
        f"  Retry {event.attempt}/{event.max_retries} in {event.delay:g}s: {event.error.message}",
        file=sys.stderr,
    )


def _print_issues(title: str, items: List[str], limit: Optional[int] = MAX_LISTED_ISSUES) -> None:
    if not items:
        return
    shown = items if limit is None else items[:limit]
    print(f"\n{title} ({len(items)}):")
    for item in shown:
        print(f"   - {item}")
    if len(items) > len(shown):
        print(f"   ... and {len(items) - len(shown)} more")


def _print_estimate(tokens: dict, note: str) -> None:
    cost = estimate_cost(tokens["input_tokens"], tokens["output_tokens"])
    print("\nDry Run - Cost Estimation")
    print("----------------------------")
    print(f"Input tokens: ~{tokens['input_tokens']:,}")
    print(f"Output tokens: ~{tokens['output_tokens']:,}")
    print(f"Total tokens: ~{tokens['total_tokens']:,}")
    print(f"\nEstimated cost: ${cost['total_cost']:.2f}")
    print(f"\nNote: {note}")


def run_generate(args: argparse.Namespace) -> int:
    print("Adaptive Learning Curriculum Generator")
    print("======================================\n")
    print(f"Topic: {args.topic}")
    print(f"Chapters: {args.chapters}")
    print(f"Difficulty: {args.difficulty}")
    print(f"Duration: {args.duration} min/chapter")
    print(f"Output: {args.output}")

    if args.dry_run:
        _print_estimate(
            estimate_curriculum_tokens(args.chapters),
            "Using two-phase generation (outline + content per chapter).",
        )
        return 0

    generator = CurriculumGenerator(_build_client(), on_progress=_print_progress, on_retry=_print_retry)
    options = GenerationOptions(
        topic=args.topic,
        chapters=args.chapters,
        difficulty=args.difficulty,
        duration=args.duration,
    )
    result = asyncio.run(generator.generate(options))
    print(
        f"\nGeneration complete in {result.elapsed:.1f}s "
        f"({result.success_count} success, {result.error_count} failed)"
    )
    _print_issues("Failed chapters", result.failed_units, limit=None)

    validation = result.validation
    _print_issues("Validation errors", validation["errors"], limit=5)
    _print_issues("Validation warnings", validation["warnings"], limit=5)
    if not validation["valid"]:
        print("\nCurriculum has validation errors but will be saved anyway.")
    else:
        print("Validation passed")

    paths = write_curriculum(args.output, result.curriculum, result.metadata())
    print("\nOutput files:")
    for path in paths.values():
        print(f"   {path}")

    chapters = result.chapters_data
    print("\nCurriculum generation complete!")
    print(f"Chapters generated: {len(chapters)}")
    print(f"Total sections: {sum(len(ch.get('sections') or []) for ch in chapters)}")
    print(f"Total exercises: {sum(len(ch.get('exercises') or []) for ch in chapters)}")
    print(f"Total quiz questions: {sum(len(ch.get('quiz') or []) for ch in chapters)}")
    print(f"\nNext step: adaptive-learning adapt-vark {paths['curriculum']}")
    return 0


def _parse_styles(raw: Optional[str]) -> List[str]:
    if not raw:
        return normalize_styles(None)
    return normalize_styles([part.strip() for part in raw.split(",") if part.strip()])


def run_adapt(args: argparse.Namespace) -> int:
    styles = _parse_styles(args.styles)
    full_content = load_content_file(args.input_file)
    plan = plan_adaptation(full_content, args.chapter)

    print("VARK Content Adapter")
    print("====================\n")
    print(f"Input: {args.input_file}")
    print(f"Output: {args.output}")
    print(f"Styles: {', '.join(styles)}")
    print(f"Chapters: {', '.join(str(cid) for cid in plan.chapter_ids)}")
    print(f"Sections: {plan.section_count} (avg {round(plan.avg_section_length)} chars)")

    if args.dry_run:
        tokens = plan.estimate()
        _print_estimate(tokens, "Using 4-in-1 prompts for cost optimization.")
        return 0

    adapter = VarkAdapter(_build_client(), on_progress=_print_progress, on_retry=_print_retry)
    result = asyncio.run(adapter.adapt(full_content, chapter=args.chapter, styles=styles))
    print(f"\nAdaptation complete in {result.elapsed:.1f}s ({result.sections_processed} sections)")

    failed = set(result.failed_units)
    _print_issues("Failed sections", result.failed_units, limit=None)
    _print_issues("Section issues", [issue for issue in result.errors if issue not in failed])
    _print_issues("Validation warnings", result.validation["warnings"], limit=5)
    _print_issues("Validation errors", result.validation["errors"])

    paths = write_adaptive_content(args.output, result.adaptive_content, result.log(args.input_file))
    print(f"\nOutput: {paths['content']}")
    print(f"Log: {paths['log']}")
    return 0


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="adaptive-learning", description=__doc__)
    subparsers = parser.add_subparsers(dest="command", required=True)

    generate = subparsers.add_parser("generate-curriculum", help="Generate a curriculum from a topic")
    generate.add_argument("topic", help="Topic to generate the curriculum for")
    generate.add_argument("-c", "--chapters", type=int, default=10, help="Number of chapters (default: 10)")
    generate.add_argument(
        "-d",
        "--difficulty",
        choices=("beginner", "intermediate", "advanced"),
        default="intermediate",
        help="Difficulty level (default: intermediate)",
    )
    generate.add_argument("--duration", type=int, default=45, help="Minutes per chapter (default: 45)")
    generate.add_argument("-o", "--output", default=DEFAULT_OUTPUT_DIR, help="Output directory")
    generate.add_argument("--dry-run", action="store_true", help="Only estimate the cost")
    generate.set_defaults(handler=run_generate)

    adapt = subparsers.add_parser("adapt-vark", help="Adapt chapter content into VARK variants")
    adapt.add_argument("input_file", help="curriculum.json or a fullChapterContent JSON file")
    adapt.add_argument("-o", "--output", default=DEFAULT_ADAPTIVE_OUTPUT, help="Output file")
    adapt.add_argument(
        "--styles",
        default="all",
        help="Comma-separated styles: visual,auditory,readWrite,kinesthetic (default: all)",
    )
    adapt.add_argument("-c", "--chapter", type=int, default=None, help="Adapt only this chapter id")
    adapt.add_argument("--dry-run", action="store_true", help="Only estimate the cost")
    adapt.set_defaults(handler=run_adapt)

    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, os.getenv("LOG_LEVEL", "WARNING").upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    handler: Any = args.handler
    try:
        return handler(args)
    except KeyboardInterrupt:
        print("\nInterrupted", file=sys.stderr)
        return 130
    except (RuntimeError, ValueError, OSError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
