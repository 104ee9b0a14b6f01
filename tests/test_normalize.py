from __future__ import annotations

import pytest

from transcript.errors import InvalidVariantError, ShapeMismatchError, TypeMismatchError, UnexpectedFieldError
from transcript.models import FileInfo, HiddenMessageInfo, HiddenSegment, ImageInfo, SearchResult, TextSegment
from transcript.normalize import (
    MISSING,
    normalize_files,
    normalize_hidden_messages,
    normalize_images,
    normalize_search_queries,
    normalize_search_results,
    normalize_segments,
)

ALL_NORMALIZERS = [
    normalize_images,
    normalize_files,
    normalize_hidden_messages,
    normalize_segments,
    normalize_search_queries,
    normalize_search_results,
]


@pytest.mark.parametrize("normalizer", ALL_NORMALIZERS)
def test_missing_or_empty_array_is_omitted(normalizer) -> None:
    assert normalizer(MISSING, "Input.field") is None
    assert normalizer([], "Input.field") is None
    assert normalizer((), "Input.field") is None


@pytest.mark.parametrize("normalizer", ALL_NORMALIZERS)
def test_explicit_none_is_rejected(normalizer) -> None:
    with pytest.raises(ShapeMismatchError, match=r"\[AIExport\] Expected array for Input.field"):
        normalizer(None, "Input.field")


@pytest.mark.parametrize("value", ["abc", {"filename": "a.png"}, 3])
def test_non_array_is_rejected(value: object) -> None:
    with pytest.raises(ShapeMismatchError):
        normalize_images(value, "Input.images")


def test_images_are_copied_with_defaults() -> None:
    raw = [{"filename": "a.png"}, {"filename": "b.png", "original_name": "Beach.png"}]
    images = normalize_images(raw, "Input.images")

    assert images == (
        ImageInfo(filename="a.png", original_name=None),
        ImageInfo(filename="b.png", original_name="Beach.png"),
    )
    raw[0]["filename"] = "changed.png"
    assert images[0].filename == "a.png"


def test_normalizing_normalized_output_is_identical() -> None:
    images = normalize_images([{"filename": "a.png", "original_name": "A"}], "Input.images")
    files = normalize_files([{"filename": "doc_v2_x.pdf"}], "Input.files")
    hidden = normalize_hidden_messages(
        [{"category": "Thinking", "content": "hmm", "depth": 2}], "Input.hidden_messages"
    )

    assert normalize_images(images, "Input.images") == images
    assert normalize_files(files, "Input.files") == files
    assert normalize_hidden_messages(hidden, "Input.hidden_messages") == hidden


def test_element_must_be_object() -> None:
    with pytest.raises(ShapeMismatchError, match=r"Expected object for Input.files\[1\]"):
        normalize_files([{"filename": "a.txt"}, "b.txt"], "Input.files")


def test_element_keys_are_closed() -> None:
    with pytest.raises(UnexpectedFieldError, match=r'Invalid field "url" in Input.images\[0\]'):
        normalize_images([{"filename": "a.png", "url": "https://x"}], "Input.images")


def test_element_field_types_are_checked() -> None:
    with pytest.raises(TypeMismatchError, match=r"Expected string for Input.files\[0\].filename"):
        normalize_files([{"filename": 7}], "Input.files")
    with pytest.raises(TypeMismatchError, match=r"Expected number\|null for Input.hidden\[0\].depth"):
        normalize_hidden_messages([{"category": "c", "content": "x", "depth": "2"}], "Input.hidden")
    with pytest.raises(TypeMismatchError):
        normalize_hidden_messages([{"category": "c", "content": "x", "depth": True}], "Input.hidden")


def test_hidden_messages_default_optional_fields() -> None:
    hidden = normalize_hidden_messages([{"category": "Tool", "content": "ran"}], "Input.hidden")
    assert hidden == (HiddenMessageInfo(category="Tool", content="ran", title=None, depth=None),)


def test_segments_switch_on_type() -> None:
    segments = normalize_segments(
        [
            {"type": "text", "content": "Hello"},
            {"type": "hidden", "category": "Thinking", "content": "why", "depth": 2},
        ],
        "Input.segments",
    )
    assert segments == (
        TextSegment(content="Hello"),
        HiddenSegment(category="Thinking", content="why", title=None, depth=2),
    )
    assert normalize_segments(segments, "Input.segments") == segments


def test_segment_with_unknown_type_names_index() -> None:
    with pytest.raises(InvalidVariantError, match=r"Invalid segment type at Input.segments\[1\]: code"):
        normalize_segments(
            [{"type": "text", "content": "a"}, {"type": "code", "content": "b"}],
            "Input.segments",
        )


def test_hidden_segment_requires_category() -> None:
    with pytest.raises(TypeMismatchError, match=r"Input.segments\[0\].category"):
        normalize_segments([{"type": "hidden", "content": "b"}], "Input.segments")


def test_search_queries_and_results() -> None:
    queries = ["weather", "seoul"]
    assert normalize_search_queries(queries, "Input.q") == ("weather", "seoul")
    with pytest.raises(TypeMismatchError, match=r"Input.q\[1\]"):
        normalize_search_queries(["ok", 3], "Input.q")

    results = normalize_search_results(
        [{"url": "https://a.example", "title": "A"}], "Input.results"
    )
    assert results == (SearchResult(url="https://a.example", title="A", domain=None),)


def test_file_records_are_accepted() -> None:
    files = normalize_files([FileInfo(filename="a.txt")], "Input.files")
    assert files == (FileInfo(filename="a.txt", original_name=None),)
