import pytest

from engines.json_extraction import PREVIEW_LENGTH, parse_json_reply, strip_code_fences
from engines.llm_errors import ErrorType, ParseError


@pytest.mark.parametrize(
    "raw",
    [
        '{"a": 1}',
        '  {"a": 1}\n',
        '```json\n{"a": 1}\n```',
        '```\n{"a": 1}\n```',
    ],
)
def test_parse_json_reply_accepts_bare_and_fenced_payloads(raw):
    assert parse_json_reply(raw) == {"a": 1}


def test_strip_code_fences_leaves_inner_text_untouched():
    assert strip_code_fences("```json\n[1, 2]\n```") == "[1, 2]"
    assert strip_code_fences("plain") == "plain"


def test_invalid_json_raises_parse_error_with_preview():
    raw = "Sure! Here is your curriculum: " + "x" * 500

    with pytest.raises(ParseError) as excinfo:
        parse_json_reply(raw)

    error = excinfo.value
    assert error.error_type is ErrorType.PARSE_ERROR
    assert error.preview == raw[:PREVIEW_LENGTH]
    assert "Failed to parse JSON response" in error.message
