"""Two-phase curriculum generation: an outline request, then one request per chapter."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from time import perf_counter
from typing import Any, Dict, List, Mapping, Optional

from engines.cost_estimator import estimate_curriculum_tokens
from engines.llm_client import RetryCallback
from engines.llm_errors import LLMClientError, ParseError, RequestCancelledError
from engines.progress import ProgressCallback, ProgressEvent, json_log
from engines.validation import validate_curriculum
from prompts.curriculum import (
    CONTENT_SYSTEM_PROMPT,
    DEFAULT_AUDIENCE,
    OUTLINE_SYSTEM_PROMPT,
    build_content_prompt,
    build_outline_prompt,
)

logger = logging.getLogger(__name__)

OUTLINE_MAX_TOKENS = 8192
CONTENT_MAX_TOKENS = 8192
PLACEHOLDER_NOTE = "*Content generation failed. Please regenerate this chapter.*"


class CurriculumGenerationError(RuntimeError):
    """Raised when the outline phase cannot produce any chapters."""


@dataclass(frozen=True)
class GenerationOptions:
    topic: str
    chapters: int = 10
    difficulty: str = "intermediate"
    duration: int = 45
    audience: str = DEFAULT_AUDIENCE


@dataclass
class GenerationResult:
    """Outcome of one run; ``curriculum`` is written even when validation fails."""

    options: GenerationOptions
    chapters_data: List[Dict[str, Any]]
    full_chapter_content: Dict[int, Dict[str, Any]]
    validation: Dict[str, Any]
    success_count: int = 0
    error_count: int = 0
    failed_units: List[str] = field(default_factory=list)
    cancelled: bool = False
    elapsed: float = 0.0
    generated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def curriculum(self) -> Dict[str, Any]:
        return {
            "chaptersData": self.chapters_data,
            "fullChapterContent": {str(key): value for key, value in self.full_chapter_content.items()},
        }

    def metadata(self) -> Dict[str, Any]:
        estimate = estimate_curriculum_tokens(self.options.chapters)
        return {
            "topic": self.options.topic,
            "chapters": self.options.chapters,
            "difficulty": self.options.difficulty,
            "duration": self.options.duration,
            "generatedAt": self.generated_at.isoformat(),
            "estimatedTokens": {
                "inputTokens": estimate["input_tokens"],
                "outputTokens": estimate["output_tokens"],
                "totalTokens": estimate["total_tokens"],
            },
            "generationTime": f"{self.elapsed:.1f}s",
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "failedUnits": list(self.failed_units),
            "cancelled": self.cancelled,
        }


def placeholder_sections(chapter: Mapping[str, Any]) -> List[Dict[str, str]]:
    """Stand-in content for a chapter whose content request failed."""

    sections = []
    for section in chapter.get("sections") or []:
        if not isinstance(section, Mapping):
            continue
        title = str(section.get("title", ""))
        brief = str(section.get("content", ""))
        sections.append({"title": title, "content": f"# {title}\n\n{brief}\n\n{PLACEHOLDER_NOTE}"})
    return sections


class CurriculumGenerator:
    """Drive an outline request followed by one content request per chapter.

    ``client`` only needs an async ``send_message_for_json``; tests pass a fake.
    """

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

    async def _request(
        self,
        system_prompt: str,
        user_prompt: str,
        max_tokens: int,
        cancel_event: Optional[asyncio.Event],
    ) -> Any:
        return await self.client.send_message_for_json(
            system_prompt,
            user_prompt,
            max_tokens,
            cancel_event=cancel_event,
            on_retry=self.on_retry,
        )

    async def generate_outline(
        self,
        options: GenerationOptions,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> List[Dict[str, Any]]:
        """Return ``chaptersData`` or raise :class:`CurriculumGenerationError`."""

        self._emit(ProgressEvent("outline", "started", message=f"Generating outline for {options.topic}"))
        prompt = build_outline_prompt(
            options.topic,
            chapters=options.chapters,
            difficulty=options.difficulty,
            duration=options.duration,
            audience=options.audience,
        )
        try:
            outline = await self._request(OUTLINE_SYSTEM_PROMPT, prompt, OUTLINE_MAX_TOKENS, cancel_event)
            chapters = outline.get("chaptersData") if isinstance(outline, dict) else None
            if not isinstance(chapters, list) or not chapters:
                raise CurriculumGenerationError("No chapters generated in outline")
        except RequestCancelledError:
            self._emit(ProgressEvent("outline", "cancelled"))
            raise
        except (LLMClientError, CurriculumGenerationError) as exc:
            self._emit(ProgressEvent("outline", "failed", message=str(exc)))
            logger.error("Outline generation failed for %r: %s", options.topic, exc)
            raise CurriculumGenerationError(f"Failed to generate outline: {exc}") from exc

        self._emit(
            ProgressEvent("outline", "succeeded", total=len(chapters), message=f"{len(chapters)} chapters")
        )
        return chapters

    async def generate(
        self,
        options: GenerationOptions,
        *,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> GenerationResult:
        start = perf_counter()
        chapters = await self.generate_outline(options, cancel_event=cancel_event)
        total = len(chapters)

        processed: List[Dict[str, Any]] = []
        full_content: Dict[int, Dict[str, Any]] = {}
        failed_units: List[str] = []
        success_count = 0
        cancelled = False

        for position, chapter in enumerate(chapters, start=1):
            if cancel_event is not None and cancel_event.is_set():
                cancelled = True
                break

            if not isinstance(chapter, Mapping):
                message = f"Outline entry {position}: not a chapter object"
                logger.warning("Skipping outline entry %d: %r", position, chapter)
                failed_units.append(message)
                self._emit(ProgressEvent("content", "failed", total=total, message=message))
                continue

            chapter_map = chapter
            chapter_id = chapter_map.get("id")
            title = chapter_map.get("title", "")

            self._emit(ProgressEvent("content", "started", chapter_id=chapter_id, total=total, message=title))
            try:
                reply = await self._request(
                    CONTENT_SYSTEM_PROMPT,
                    build_content_prompt(chapter_map),
                    CONTENT_MAX_TOKENS,
                    cancel_event,
                )
                sections = reply.get("sections") if isinstance(reply, dict) else None
                if not isinstance(sections, list):
                    raise ParseError("Invalid sections structure")
            except RequestCancelledError:
                cancelled = True
                break
            except LLMClientError as exc:
                logger.warning("Content generation failed for chapter %s (%s): %s", chapter_id, title, exc.message)
                failed_units.append(f"Chapter {chapter_id}: {exc.message}")
                full_content[chapter_id] = {"sections": placeholder_sections(chapter_map)}
                self._emit(
                    ProgressEvent("content", "failed", chapter_id=chapter_id, total=total, message=exc.message)
                )
            else:
                full_content[chapter_id] = {"sections": sections}
                success_count += 1
                self._emit(ProgressEvent("content", "succeeded", chapter_id=chapter_id, total=total, message=title))
            processed.append(chapter)

        if cancelled:
            logger.info("Curriculum generation cancelled after %d of %d chapters", len(processed), total)
            self._emit(ProgressEvent("content", "cancelled", total=total))

        elapsed = perf_counter() - start
        validation = validate_curriculum({"chaptersData": processed, "fullChapterContent": full_content})
        result = GenerationResult(
            options=options,
            chapters_data=processed,
            full_chapter_content=full_content,
            validation=validation,
            success_count=success_count,
            error_count=len(failed_units),
            failed_units=failed_units,
            cancelled=cancelled,
            elapsed=elapsed,
        )

        json_log(
            logger,
            "curriculum_generation_complete",
            {
                "topic": options.topic,
                "chapters": len(processed),
                "success_count": result.success_count,
                "error_count": result.error_count,
                "cancelled": cancelled,
                "valid": validation["valid"],
                "validation_errors": len(validation["errors"]),
                "validation_warnings": len(validation["warnings"]),
                "elapsed_s": round(elapsed, 3),
            },
        )
        self._emit(
            ProgressEvent(
                "complete",
                "cancelled" if cancelled else "succeeded",
                total=total,
                message=f"{result.success_count} succeeded, {result.error_count} failed",
            )
        )
        return result


__all__ = [
    "CurriculumGenerationError",
    "CurriculumGenerator",
    "GenerationOptions",
    "GenerationResult",
    "placeholder_sections",
]
