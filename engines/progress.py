"""Progress events and structured run logs shared by the content pipelines."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional


@dataclass(frozen=True)
class ProgressEvent:
    """One step of a pipeline run.

    ``phase`` is ``outline``, ``content``, ``adapt`` or ``complete``;
    ``status`` is ``started``, ``succeeded``, ``failed`` or ``cancelled``.
    """

    phase: str
    status: str
    chapter_id: Optional[int] = None
    section: Optional[int] = None
    total: Optional[int] = None
    message: str = ""


ProgressCallback = Callable[[ProgressEvent], None]


def json_log(logger: logging.Logger, event: str, payload: Dict[str, Any]) -> None:
    """Emit ``{"event": ..., **payload}`` as one JSON line at INFO."""

    record = {"event": event, **payload}
    try:
        message = json.dumps(record, ensure_ascii=False, sort_keys=True)
    except (TypeError, ValueError):
        fallback = {
            "event": event,
            "error": "serialization_failed",
            "payload_repr": repr(payload),
        }
        message = json.dumps(fallback, ensure_ascii=False, sort_keys=True)
    logger.info(message)


__all__ = ["ProgressCallback", "ProgressEvent", "json_log"]
