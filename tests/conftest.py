import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


@pytest.fixture
def anyio_backend():
    """Force anyio to use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture
def clean_env(monkeypatch):
    for var in (
        "ANTHROPIC_API_KEY",
        "ANTHROPIC_MODEL",
        "ANTHROPIC_API_URL",
        "ANTHROPIC_MAX_TOKENS",
        "LLM_TIMEOUT",
    ):
        monkeypatch.delenv(var, raising=False)
    return monkeypatch


def _make_chapter(chapter_id: int, *, sections: int = 4) -> dict:
    """Chapter metadata that passes every structural check."""
    return {
        "id": chapter_id,
        "number": f"{chapter_id:02d}",
        "title": f"Chapter {chapter_id}",
        "subtitle": "Tagline",
        "icon": "fa-compass",
        "color": "from-navy-700 to-navy-500",
        "duration": "45 min",
        "keyTakeaways": ["One", "Two", "Three", "Four"],
        "overview": "Overview text.",
        "sections": [
            {"title": f"Section {chapter_id}.{index}", "content": "Brief description"}
            for index in range(1, sections + 1)
        ],
        "exercises": [
            {"type": "practical", "title": "Try it", "description": "Do the thing", "points": 150}
        ],
        "quiz": [
            {
                "question": f"Question {index}?",
                "options": ["A", "B", "C", "D"],
                "correct": 0,
                "explanation": "Because.",
            }
            for index in range(1, 4)
        ],
        "reflection": "What did you learn?",
    }


def _make_content(chapter: dict, *, words: int = 350) -> dict:
    body = " ".join(["word"] * words)
    return {"sections": [{"title": section["title"], "content": body} for section in chapter["sections"]]}


@pytest.fixture
def valid_curriculum() -> dict:
    chapters = [_make_chapter(1), _make_chapter(2)]
    return {
        "chaptersData": chapters,
        "fullChapterContent": {chapter["id"]: _make_content(chapter) for chapter in chapters},
    }


@pytest.fixture
def make_chapter():
    return _make_chapter


@pytest.fixture
def make_content():
    return _make_content


class ScriptedClient:
    """Stand-in for ``LLMClient`` that answers from a callable or a queue of replies."""

    def __init__(self, replies):
        self._replies = replies if callable(replies) else list(replies)
        self.calls = []

    async def send_message_for_json(
        self,
        system_prompt,
        user_prompt,
        max_tokens=None,
        *,
        cancel_event=None,
        on_retry=None,
    ):
        self.calls.append(
            {"system": system_prompt, "user": user_prompt, "max_tokens": max_tokens}
        )
        if callable(self._replies):
            reply = self._replies(system_prompt, user_prompt)
        else:
            reply = self._replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


@pytest.fixture
def scripted_client():
    return ScriptedClient
