from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields, is_dataclass
from typing import Any

from transcript.errors import InvalidVariantError, ShapeMismatchError
from transcript.models import (
    FileInfo,
    HiddenMessageInfo,
    HiddenSegment,
    ImageInfo,
    SearchResult,
    Segment,
    TextSegment,
)
from transcript.schema import (
    FILE_INFO_KEYS,
    HIDDEN_MESSAGE_INFO_KEYS,
    IMAGE_INFO_KEYS,
    SEARCH_RESULT_KEYS,
    SEGMENT_KEYS,
    assert_allowed_keys,
    assert_mapping,
    assert_number_or_none,
    assert_string,
    assert_string_or_none,
    is_array,
)


class _Missing:
    def __repr__(self) -> str:
        return "MISSING"


# Stands for a key that was not supplied at all; None means an explicit null.
MISSING: Any = _Missing()


def _array_items(value: Any, context: str) -> list[Any] | None:
    if value is None:
        raise ShapeMismatchError(f"Expected array for {context}")
    if value is MISSING:
        return None
    if not is_array(value):
        raise ShapeMismatchError(f"Expected array for {context}")
    if not value:
        return None
    return list(value)


def _as_payload(item: Any, context: str) -> Mapping[str, Any]:
    # Already-normalized records are accepted so normalization is idempotent.
    if is_dataclass(item) and not isinstance(item, type):
        return {f.name: getattr(item, f.name) for f in fields(item)}
    assert_mapping(item, context)
    return item


def _attachment_payload(item: Any, allowed: frozenset[str], ctx: str) -> tuple[str, str | None]:
    payload = _as_payload(item, ctx)
    assert_allowed_keys(payload, allowed, ctx)
    assert_string(payload.get("filename"), f"{ctx}.filename")
    original_name = payload.get("original_name")
    assert_string_or_none(original_name, f"{ctx}.original_name")
    return payload["filename"], original_name


def normalize_images(images: Any, context: str) -> tuple[ImageInfo, ...] | None:
    items = _array_items(images, context)
    if items is None:
        return None
    normalized = []
    for index, item in enumerate(items):
        filename, original_name = _attachment_payload(item, IMAGE_INFO_KEYS, f"{context}[{index}]")
        normalized.append(ImageInfo(filename=filename, original_name=original_name))
    return tuple(normalized)


def normalize_files(files: Any, context: str) -> tuple[FileInfo, ...] | None:
    items = _array_items(files, context)
    if items is None:
        return None
    normalized = []
    for index, item in enumerate(items):
        filename, original_name = _attachment_payload(item, FILE_INFO_KEYS, f"{context}[{index}]")
        normalized.append(FileInfo(filename=filename, original_name=original_name))
    return tuple(normalized)


def _hidden_fields(payload: Mapping[str, Any], ctx: str) -> dict[str, Any]:
    assert_string(payload.get("category"), f"{ctx}.category")
    assert_string_or_none(payload.get("title"), f"{ctx}.title")
    assert_number_or_none(payload.get("depth"), f"{ctx}.depth")
    assert_string(payload.get("content"), f"{ctx}.content")
    return {
        "category": payload["category"],
        "title": payload.get("title"),
        "depth": payload.get("depth"),
        "content": payload["content"],
    }


def normalize_hidden_messages(messages: Any, context: str) -> tuple[HiddenMessageInfo, ...] | None:
    items = _array_items(messages, context)
    if items is None:
        return None
    normalized = []
    for index, item in enumerate(items):
        ctx = f"{context}[{index}]"
        payload = _as_payload(item, ctx)
        assert_allowed_keys(payload, HIDDEN_MESSAGE_INFO_KEYS, ctx)
        normalized.append(HiddenMessageInfo(**_hidden_fields(payload, ctx)))
    return tuple(normalized)


def normalize_segments(segments: Any, context: str) -> tuple[Segment, ...] | None:
    """Validate an ordered list of text/hidden segments.

    ``type == "text"`` needs ``content``; ``type == "hidden"`` needs
    ``category`` and ``content`` with optional ``title``/``depth``. Any
    other type aborts with the offending index.
    """
    items = _array_items(segments, context)
    if items is None:
        return None
    normalized: list[Segment] = []
    for index, item in enumerate(items):
        ctx = f"{context}[{index}]"
        payload = _as_payload(item, ctx)
        assert_allowed_keys(payload, SEGMENT_KEYS, ctx)

        segment_type = payload.get("type")
        if segment_type == "text":
            assert_string(payload.get("content"), f"{ctx}.content")
            normalized.append(TextSegment(content=payload["content"]))
        elif segment_type == "hidden":
            normalized.append(HiddenSegment(**_hidden_fields(payload, ctx)))
        else:
            raise InvalidVariantError(f"Invalid segment type at {ctx}: {segment_type}")
    return tuple(normalized)


def normalize_search_queries(queries: Any, context: str) -> tuple[str, ...] | None:
    items = _array_items(queries, context)
    if items is None:
        return None
    for index, query in enumerate(items):
        assert_string(query, f"{context}[{index}]")
    return tuple(items)


def normalize_search_results(results: Any, context: str) -> tuple[SearchResult, ...] | None:
    items = _array_items(results, context)
    if items is None:
        return None
    normalized = []
    for index, item in enumerate(items):
        ctx = f"{context}[{index}]"
        payload = _as_payload(item, ctx)
        assert_allowed_keys(payload, SEARCH_RESULT_KEYS, ctx)
        assert_string(payload.get("url"), f"{ctx}.url")
        assert_string(payload.get("title"), f"{ctx}.title")
        assert_string_or_none(payload.get("domain"), f"{ctx}.domain")
        normalized.append(
            SearchResult(url=payload["url"], title=payload["title"], domain=payload.get("domain"))
        )
    return tuple(normalized)
