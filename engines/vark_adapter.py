"""Section-by-section VARK adaptation using one 4-in-1 request per section."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Dict, List, Mapping, Optional, Sequence

from engines.content_io import ContentFileError
from engines.cost_estimator import estimate_adaptation_tokens, estimate_cost
from engines.llm_client import RetryCallback
from engines.llm_errors import LLMClientError, RequestCancelledError
from engines.progress import ProgressCallback, ProgressEvent, json_log
from engines.validation import validate_adaptation, validate_adaptive_content
from engines.vark import VARK_STYLES
from prompts.vark import SYSTEM_PROMPT, build_adaptation_prompt

logger = logging.getLogger(__name__)

ADAPTATION_MAX_TOKENS = 16000


@dataclass(frozen=True)
class AdaptationPlan:
    """Chapters and section statistics for a run, used for dry-run estimates."""

    chapter_ids: List[int]
    section_count: int
    total_chars: int

    @property
    def avg_section_length(self) -> float:
        return self.total_chars / self.section_count if self.section_count else 0.0

    def estimate(self) -> Dict[str, Any]:
        tokens = estimate_adaptation_tokens(self.section_count, self.avg_section_length)
        return estimate_cost(tokens["input_tokens"], tokens["output_tokens"])


def normalize_styles(styles: Optional[Sequence[str]]) -> List[str]:
    """Return the requested styles in canonical order; ``None``/``all`` selects every style."""

    if not styles or "all" in styles:
        return list(VARK_STYLES)
    unknown = [style for style in styles if style not in VARK_STYLES]
    if unknown:
        raise ValueError(
            f"Unknown VARK style(s): {', '.join(unknown)}. Valid styles: {', '.join(VARK_STYLES)}"
        )
    return [style for style in VARK_STYLES if style in styles]


def plan_adaptation(
    full_chapter_content: Mapping[int, Mapping[str, Any]],
    chapter: Optional[int] = None,
) -> AdaptationPlan:
    """Select the chapters to process; an unknown ``chapter`` raises :class:`ContentFileError`."""

    chapter_ids = [chapter] if chapter is not None else list(full_chapter_content)
    section_count = 0
    total_chars = 0
    for chapter_id in chapter_ids:
        entry = full_chapter_content.get(chapter_id)
        if entry is None:
            raise ContentFileError(f"Chapter {chapter_id} not found in input file")
        for section in entry.get("sections") or []:
            section_count += 1
            total_chars += len(section.get("content") or "")
    return AdaptationPlan(chapter_ids, section_count, total_chars)


@dataclass
class AdaptationResult:
    adaptive_content: Dict[int, Dict[str, Any]]
    chapters_processed: List[int]
    sections_processed: int
    styles: List[str]
    errors: List[str] = field(default_factory=list)
    failed_units: List[str] = field(default_factory=list)
    validation: Dict[str, Any] = field(default_factory=dict)
    cancelled: bool = False
    elapsed: float = 0.0
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def log(self, input_file: str) -> Dict[str, Any]:
        """Payload for ``adaptation-log.json``."""

        return {
            "generatedAt": self.generated_at.isoformat(),
            "inputFile": input_file,
            "chaptersProcessed": self.chapters_processed,
            "sectionsProcessed": self.sections_processed,
            "styles": self.styles,
            "errors": self.errors,
            "failedUnits": self.failed_units,
            "generationTime": f"{self.elapsed:.1f}s",
            "cancelled": self.cancelled,
        }


class VarkAdapter:
    """Adapt every section of the selected chapters into the requested VARK variants."""

    def __init__(
        self,
        client: Any,
        *,
        on_progress: Optional[ProgressCallback] = None,
        on_retry: Optional[RetryCallback] = None,
    ) -> None:
        self.client = client
        self.on_progress = on_progress
        self.on_retry = on_retry

    def _emit(self, event: ProgressEvent) -> None:
        if self.on_progress is not None:
            self.on_progress(event)

    async def adapt_section(
        self,
        section: Mapping[str, Any],
        styles: Sequence[str],
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        prompt = build_adaptation_prompt(section.get("title", ""), section.get("content", ""), styles)
        return await self.client.send_message_for_json(
            SYSTEM_PROMPT,
            prompt,
            ADAPTATION_MAX_TOKENS,
            cancel_event=cancel_event,
            on_retry=self.on_retry,
        )

    async def adapt(
        self,
        full_chapter_content: Mapping[int, Mapping[str, Any]],
        *,
        chapter: Optional[int] = None,
        styles: Optional[Sequence[str]] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> AdaptationResult:
        selected = normalize_styles(styles)
        plan = plan_adaptation(full_chapter_content, chapter)
        start = perf_counter()

        adaptive: Dict[int, Dict[str, Any]] = {}
        chapters_processed: List[int] = []
        errors: List[str] = []
        failed_units: List[str] = []
        sections_processed = 0
        cancelled = False

        for chapter_id in plan.chapter_ids:
            if cancelled:
                break
            sections = list(full_chapter_content[chapter_id].get("sections") or [])
            entry: Dict[str, Any] = {"default": {"sections": sections}}
            for style in selected:
                entry[style] = {"sections": []}
            adaptive[chapter_id] = entry
            chapters_processed.append(chapter_id)

            for index, section in enumerate(sections, start=1):
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break

                unit = f"Ch{chapter_id} S{index}"
                title = section.get("title", "")
                original = section.get("content", "")
                self._emit(
                    ProgressEvent(
                        "adapt",
                        "started",
                        chapter_id=chapter_id,
                        section=index,
                        total=len(sections),
                        message=title,
                    )
                )
                try:
                    adapted = await self.adapt_section(section, selected, cancel_event=cancel_event)
                except RequestCancelledError:
                    cancelled = True
                    break
                except LLMClientError as exc:
                    logger.warning("Adaptation failed for %s (%s): %s", unit, title, exc.message)
                    errors.append(f"{unit}: {exc.message}")
                    failed_units.append(f"{unit}: {exc.message}")
                    adapted = {}
                    self._emit(
                        ProgressEvent(
                            "adapt",
                            "failed",
                            chapter_id=chapter_id,
                            section=index,
                            total=len(sections),
                            message=exc.message,
                        )
                    )
                else:
                    report = validate_adaptation(adapted, title, selected)
                    errors.extend(f"{unit}: {message}" for message in report["errors"])
                    self._emit(
                        ProgressEvent(
                            "adapt",
                            "succeeded",
                            chapter_id=chapter_id,
                            section=index,
                            total=len(sections),
                            message=title,
                        )
                    )
                sections_processed += 1

                for style in selected:
                    variant = adapted.get(style) if isinstance(adapted, Mapping) else None
                    content = variant.get("content") if isinstance(variant, Mapping) else None
                    entry[style]["sections"].append(
                        {"title": title, "content": content if content else original}
                    )

        if cancelled:
            logger.info("VARK adaptation cancelled after %d section(s)", sections_processed)
            self._emit(ProgressEvent("adapt", "cancelled"))

        elapsed = perf_counter() - start
        validation = validate_adaptive_content(adaptive)
        result = AdaptationResult(
            adaptive_content=adaptive,
            chapters_processed=chapters_processed,
            sections_processed=sections_processed,
            styles=selected,
            errors=errors,
            failed_units=failed_units,
            validation=validation,
            cancelled=cancelled,
            elapsed=elapsed,
        )
        json_log(
            logger,
            "vark_adaptation_complete",
            {
                "chapters": chapters_processed,
                "sections": sections_processed,
                "styles": selected,
                "issues": len(errors),
                "failed_sections": len(failed_units),
                "cancelled": cancelled,
                "valid": validation["valid"],
                "elapsed_s": round(elapsed, 3),
            },
        )
        self._emit(
            ProgressEvent(
                "complete",
                "cancelled" if cancelled else "succeeded",
                total=plan.section_count,
                message=f"{sections_processed} sections adapted, {len(failed_units)} failed",
            )
        )
        return result


__all__ = [
    "AdaptationPlan",
    "AdaptationResult",
    "VarkAdapter",
    "normalize_styles",
    "plan_adaptation",
]
