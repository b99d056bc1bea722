from engines.vark import VARK_STYLES
from prompts.curriculum import build_content_prompt, build_outline_prompt
from prompts.vark import build_adaptation_prompt


def test_outline_prompt_carries_options(make_chapter):
    prompt = build_outline_prompt("Negotiation", chapters=6, difficulty="advanced", duration=30)

    assert 'Create a curriculum OUTLINE for: "Negotiation"' in prompt
    assert "Number of Chapters: 6" in prompt
    assert "Difficulty: advanced" in prompt
    assert '"duration": "30 min"' in prompt
    assert "Target Audience: Professionals building practical skills" in prompt


def test_content_prompt_lists_sections_in_order(make_chapter):
    chapter = make_chapter(3, sections=2)

    prompt = build_content_prompt(chapter)

    assert prompt.startswith('Generate full content for Chapter 3: "Chapter 3"')
    assert "these 2 sections:" in prompt
    assert '1. "Section 3.1" - Brief description\n2. "Section 3.2" - Brief description' in prompt


def test_adaptation_prompt_requests_all_styles_by_default():
    prompt = build_adaptation_prompt("Intro", "Original text")

    assert "into ALL FOUR VARK learning style variants" in prompt
    assert 'Keep section title exactly: "Intro"' in prompt
    for style in VARK_STYLES:
        assert f'"{style}": {{' in prompt


def test_adaptation_prompt_limits_output_to_requested_styles():
    prompt = build_adaptation_prompt("Intro", "Original text", ["auditory"])

    assert "**AUDITORY (A)**" in prompt
    assert "**VISUAL (V)**" not in prompt
    assert '"visual": {' not in prompt
