import json

import pytest

from engines.content_io import (
    ContentFileError,
    load_content_file,
    write_adaptive_content,
    write_curriculum,
)


def test_load_reads_full_chapter_content_from_curriculum_file(tmp_path, valid_curriculum):
    path = tmp_path / "curriculum.json"
    payload = {
        "chaptersData": valid_curriculum["chaptersData"],
        "fullChapterContent": {str(k): v for k, v in valid_curriculum["fullChapterContent"].items()},
    }
    path.write_text(json.dumps(payload), encoding="utf-8")

    content = load_content_file(path)

    assert list(content) == [1, 2]
    assert content[1]["sections"][0]["title"] == "Section 1.1"


def test_load_accepts_bare_mapping(tmp_path):
    path = tmp_path / "fullChapters.json"
    path.write_text(json.dumps({"3": {"sections": [{"title": "T", "content": "C"}]}}), encoding="utf-8")

    assert load_content_file(path) == {3: {"sections": [{"title": "T", "content": "C"}]}}


@pytest.mark.parametrize(
    "text, message",
    [
        ("{not json", "Failed to parse JSON file"),
        (json.dumps({"1": {"sections": [{"title": "T"}]}}), "Invalid chapter content"),
        (json.dumps({"one": {"sections": []}}), "Invalid chapter content"),
        (json.dumps({}), "No chapters found"),
    ],
)
def test_load_rejects_malformed_files(tmp_path, text, message):
    path = tmp_path / "bad.json"
    path.write_text(text, encoding="utf-8")

    with pytest.raises(ContentFileError, match=message):
        load_content_file(path)


def test_load_missing_file(tmp_path):
    with pytest.raises(ContentFileError, match="File not found"):
        load_content_file(tmp_path / "missing.json")


def test_write_curriculum_creates_directory_and_files(tmp_path):
    out_dir = tmp_path / "nested" / "generated"

    paths = write_curriculum(out_dir, {"chaptersData": [], "fullChapterContent": {}}, {"topic": "X"})

    assert paths["curriculum"] == out_dir / "curriculum.json"
    assert json.loads(paths["metadata"].read_text(encoding="utf-8")) == {"topic": "X"}


def test_write_adaptive_content_writes_log_next_to_output(tmp_path):
    output = tmp_path / "out" / "adaptive.json"

    paths = write_adaptive_content(output, {1: {"default": {"sections": []}}}, {"errors": []})

    assert json.loads(output.read_text(encoding="utf-8")) == {"1": {"default": {"sections": []}}}
    assert paths["log"] == tmp_path / "out" / "adaptation-log.json"
    assert json.loads(paths["log"].read_text(encoding="utf-8")) == {"errors": []}
