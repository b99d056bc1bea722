"""VARK learning-style scoring."""

from __future__ import annotations

import math
from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

# Enumeration order is significant: ties resolve to the earlier style.
VARK_STYLES = ("visual", "auditory", "readWrite", "kinesthetic")


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def calculate_vark_scores(answers: Mapping[Any, Any]) -> Dict[str, Any]:
    """Reduce ``{question index: style}`` answers into counts, percentages and a primary style.

    Labels outside the four VARK styles are ignored. With no recognised
    answers every percentage is 0 and the primary style defaults to
    ``"visual"``.
    """

    scores: Dict[str, int] = {style: 0 for style in VARK_STYLES}
    for style in (answers or {}).values():
        if isinstance(style, str) and style in scores:
            scores[style] += 1

    total = sum(scores.values())
    percentages = {
        style: _round_half_up(scores[style] / total * 100) if total > 0 else 0
        for style in VARK_STYLES
    }

    primary_style = VARK_STYLES[0]
    for style in VARK_STYLES:
        if scores[style] > scores[primary_style]:
            primary_style = style

    return {
        "scores": scores,
        "percentages": percentages,
        "primary_style": primary_style,
    }


def build_vark_preference(
    result: Mapping[str, Any],
    *,
    completed_at: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Shape a scoring result into the record kept by the preference store."""

    timestamp = completed_at or datetime.now(timezone.utc)
    return {
        "primaryStyle": result["primary_style"],
        "scores": dict(result["scores"]),
        "percentages": dict(result["percentages"]),
        "assessmentCompleted": True,
        "completedAt": timestamp.isoformat(),
    }


__all__ = ["VARK_STYLES", "build_vark_preference", "calculate_vark_scores"]
