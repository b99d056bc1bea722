"""Read chapter content files and write generated artefacts as JSON."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Dict, Mapping

from pydantic import ValidationError

from schemas import FullChapterContent

logger = logging.getLogger(__name__)

CURRICULUM_FILENAME = "curriculum.json"
METADATA_FILENAME = "metadata.json"
ADAPTATION_LOG_FILENAME = "adaptation-log.json"


class ContentFileError(ValueError):
    """Raised when a content file is missing, unreadable or malformed."""


def load_content_file(path: str | Path, key: str = "fullChapterContent") -> Dict[int, Dict[str, Any]]:
    """Load ``{chapter id: {sections: [...]}}`` from a JSON file.

    The file may hold the mapping directly or wrap it under ``key`` (as
    ``curriculum.json`` does). Only JSON is read; nothing is executed.
    """

    file_path = Path(path)
    if not file_path.is_file():
        raise ContentFileError(f"File not found: {path}")

    try:
        raw = json.loads(file_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        raise ContentFileError(f"Failed to read {path}: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise ContentFileError(f"Failed to parse JSON file {path}: {exc}") from exc

    if isinstance(raw, dict) and key and raw.get(key):
        raw = raw[key]

    try:
        content = FullChapterContent.model_validate(raw)
    except ValidationError as exc:
        raise ContentFileError(
            f"Invalid chapter content in {path}: {exc.error_count()} validation error(s)\n{exc}"
        ) from exc

    if not content.root:
        raise ContentFileError(f"No chapters found in {path}")

    logger.info("Loaded %d chapter(s) from %s", len(content.root), file_path)
    return content.to_plain()


def _write_json(path: Path, payload: Any) -> None:
    path.write_text(json.dumps(payload, indent=2, ensure_ascii=False) + "\n", encoding="utf-8")


def write_curriculum(
    output_dir: str | Path,
    curriculum: Mapping[str, Any],
    metadata: Mapping[str, Any],
) -> Dict[str, Path]:
    """Write ``curriculum.json`` and ``metadata.json`` into ``output_dir``."""

    directory = Path(output_dir)
    directory.mkdir(parents=True, exist_ok=True)

    curriculum_path = directory / CURRICULUM_FILENAME
    metadata_path = directory / METADATA_FILENAME
    _write_json(curriculum_path, dict(curriculum))
    _write_json(metadata_path, dict(metadata))
    logger.info("Wrote curriculum to %s", directory)
    return {"curriculum": curriculum_path, "metadata": metadata_path}


def write_adaptive_content(
    output_file: str | Path,
    adaptive: Mapping[Any, Any],
    log: Mapping[str, Any],
) -> Dict[str, Path]:
    """Write the adaptive content file and ``adaptation-log.json`` beside it."""

    output_path = Path(output_file)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    log_path = output_path.parent / ADAPTATION_LOG_FILENAME

    _write_json(output_path, {str(key): value for key, value in adaptive.items()})
    _write_json(log_path, dict(log))
    logger.info("Wrote adaptive content to %s", output_path)
    return {"content": output_path, "log": log_path}


__all__ = [
    "ContentFileError",
    "load_content_file",
    "write_adaptive_content",
    "write_curriculum",
]
