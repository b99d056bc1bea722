"""VARK questionnaire loader."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from engines.vark import VARK_STYLES


class VarkQuestionsConfigError(ValueError):
    """Raised when ``vark_questions.json`` contains invalid data."""


@dataclass(frozen=True)
class VarkQuestion:
    """One questionnaire item; every option maps to exactly one style."""

    id: int
    question: str
    options: Dict[str, str]

    def as_dict(self) -> Dict[str, object]:
        return {"id": self.id, "question": self.question, "options": dict(self.options)}


@dataclass(frozen=True)
class VarkStyle:
    id: str
    name: str
    icon: str
    description: str
    tips: Tuple[str, ...] = field(default_factory=tuple)

    def as_dict(self) -> Dict[str, object]:
        return {
            "id": self.id,
            "name": self.name,
            "icon": self.icon,
            "description": self.description,
            "tips": list(self.tips),
        }


class VarkQuestionnaire:
    """Load the VARK questions and style descriptions from ``vark_questions.json``."""

    def __init__(self, path: str | Path | None = None) -> None:
        base_path = Path(__file__).resolve().parent
        self.path = Path(path) if path is not None else base_path / "vark_questions.json"
        self._questions: List[VarkQuestion] = []
        self._styles: Dict[str, VarkStyle] = {}
        self.reload()

    # ------------------------------------------------------------------
    def reload(self) -> None:
        """Reload the questionnaire from disk and validate the structure."""

        if not self.path.exists():
            raise FileNotFoundError(f"VARK questions file not found: {self.path}")

        with self.path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)

        if not isinstance(raw, dict):
            raise VarkQuestionsConfigError("VARK questions file must contain a JSON object")

        questions = self._parse_questions(raw.get("questions"))
        styles = self._parse_styles(raw.get("styles"))

        self._questions = questions
        self._styles = styles

    @staticmethod
    def _parse_questions(raw: object) -> List[VarkQuestion]:
        if not isinstance(raw, list) or not raw:
            raise VarkQuestionsConfigError("'questions' must be a non-empty JSON list")

        questions: List[VarkQuestion] = []
        seen: set[int] = set()
        for idx, entry in enumerate(raw, start=1):
            if not isinstance(entry, dict):
                raise VarkQuestionsConfigError(f"Question #{idx} must be a JSON object")
            try:
                question_id = int(entry["id"])
            except (KeyError, TypeError, ValueError) as exc:
                raise VarkQuestionsConfigError(f"Question #{idx} is missing a numeric 'id'") from exc
            if question_id in seen:
                raise VarkQuestionsConfigError(f"Duplicate question id detected: {question_id}")
            seen.add(question_id)

            text = str(entry.get("question", "")).strip()
            if not text:
                raise VarkQuestionsConfigError(f"Question {question_id} is missing its text")

            options = entry.get("options")
            if not isinstance(options, dict) or set(options) != set(VARK_STYLES):
                raise VarkQuestionsConfigError(
                    f"Question {question_id} must offer exactly one option per style: "
                    f"{', '.join(VARK_STYLES)}"
                )
            ordered = {style: str(options[style]).strip() for style in VARK_STYLES}
            questions.append(VarkQuestion(question_id, text, ordered))
        return questions

    @staticmethod
    def _parse_styles(raw: object) -> Dict[str, VarkStyle]:
        if not isinstance(raw, dict):
            raise VarkQuestionsConfigError("'styles' must be a JSON object")
        missing = [style for style in VARK_STYLES if style not in raw]
        if missing:
            raise VarkQuestionsConfigError(f"Missing style descriptions: {', '.join(missing)}")

        styles: Dict[str, VarkStyle] = {}
        for style in VARK_STYLES:
            entry = raw[style]
            if not isinstance(entry, dict):
                raise VarkQuestionsConfigError(f"Style {style} must be a JSON object")
            tips = entry.get("tips") or []
            styles[style] = VarkStyle(
                id=style,
                name=str(entry.get("name") or style),
                icon=str(entry.get("icon", "")),
                description=str(entry.get("description", "")).strip(),
                tips=tuple(str(tip) for tip in tips),
            )
        return styles

    # ------------------------------------------------------------------
    @property
    def questions(self) -> List[VarkQuestion]:
        """Return a shallow copy of the questions in file order."""

        return list(self._questions)

    def get(self, question_id: int) -> Optional[VarkQuestion]:
        for question in self._questions:
            if question.id == question_id:
                return question
        return None

    def style(self, style_id: str) -> Optional[VarkStyle]:
        return self._styles.get(style_id)

    def style_name(self, style_id: str) -> str:
        """Return the display name for ``style_id`` or the id itself when unknown."""

        style = self._styles.get(style_id)
        return style.name if style else style_id

    def as_payload(self) -> Dict[str, object]:
        """Return the questionnaire in the shape served by the HTTP API."""

        return {
            "questions": [question.as_dict() for question in self._questions],
            "styles": {key: style.as_dict() for key, style in self._styles.items()},
        }

    # ------------------------------------------------------------------
    def __iter__(self) -> Iterable[VarkQuestion]:
        return iter(self._questions)

    def __len__(self) -> int:
        return len(self._questions)


VARK_QUESTIONNAIRE = VarkQuestionnaire()
"""Singleton questionnaire used by the HTTP API."""
