from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from transcript.models import AssistantMessage, HiddenMessage, UserMessage
from transcript.normalize import (
    MISSING,
    normalize_files,
    normalize_hidden_messages,
    normalize_images,
    normalize_search_queries,
    normalize_search_results,
    normalize_segments,
)
from transcript.schema import (
    ASSISTANT_MESSAGE_KEYS,
    HIDDEN_MESSAGE_KEYS,
    USER_MESSAGE_KEYS,
    assert_allowed_keys,
    assert_mapping,
    assert_number_or_none,
    assert_string,
    assert_string_or_none,
)


def _base_fields(payload: Mapping[str, Any], context: str) -> dict[str, Any]:
    assert_string(payload.get("content"), f"{context}.content")
    assert_number_or_none(payload.get("timestamp"), f"{context}.timestamp")
    assert_string_or_none(payload.get("image_title"), f"{context}.image_title")
    return {
        "content": payload["content"],
        "timestamp": payload.get("timestamp"),
        "images": normalize_images(payload.get("images", MISSING), f"{context}.images"),
        "files": normalize_files(payload.get("files", MISSING), f"{context}.files"),
        "image_title": payload.get("image_title"),
        "search_queries": normalize_search_queries(
            payload.get("search_queries", MISSING), f"{context}.search_queries"
        ),
        "search_results": normalize_search_results(
            payload.get("search_results", MISSING), f"{context}.search_results"
        ),
    }


def create_user_message(payload: Mapping[str, Any]) -> UserMessage:
    context = "UserMessageInput"
    assert_mapping(payload, context)
    assert_allowed_keys(payload, USER_MESSAGE_KEYS, context)
    return UserMessage(**_base_fields(payload, context))


def create_assistant_message(payload: Mapping[str, Any]) -> AssistantMessage:
    context = "AssistantMessageInput"
    assert_mapping(payload, context)
    assert_allowed_keys(payload, ASSISTANT_MESSAGE_KEYS, context)
    assert_string_or_none(payload.get("model"), f"{context}.model")
    base = _base_fields(payload, context)
    # Both are kept; the renderer decides which one wins.
    hidden_messages = normalize_hidden_messages(
        payload.get("hidden_messages", MISSING), f"{context}.hidden_messages"
    )
    segments = normalize_segments(payload.get("segments", MISSING), f"{context}.segments")
    return AssistantMessage(
        **base,
        model=payload.get("model"),
        hidden_messages=hidden_messages,
        segments=segments,
    )


def create_hidden_message(payload: Mapping[str, Any]) -> HiddenMessage:
    context = "HiddenMessageInput"
    assert_mapping(payload, context)
    assert_allowed_keys(payload, HIDDEN_MESSAGE_KEYS, context)
    assert_string(payload.get("category"), f"{context}.category")
    assert_string_or_none(payload.get("title"), f"{context}.title")
    assert_number_or_none(payload.get("depth"), f"{context}.depth")
    assert_string(payload.get("content"), f"{context}.content")
    return HiddenMessage(
        category=payload["category"],
        title=payload.get("title"),
        depth=payload.get("depth"),
        content=payload["content"],
    )
