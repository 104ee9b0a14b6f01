from __future__ import annotations

from typing import Any

from transcript.errors import InvalidVariantError, SchemaError, ShapeMismatchError
from transcript.models import (
    AssistantMessage,
    Conversation,
    FileInfo,
    HiddenMessage,
    HiddenMessageInfo,
    HiddenSegment,
    ImageInfo,
    SearchResult,
    TextSegment,
    UserMessage,
)
from transcript.normalize import (
    normalize_files,
    normalize_hidden_messages,
    normalize_images,
    normalize_search_queries,
    normalize_search_results,
    normalize_segments,
)
from transcript.schema import assert_number_or_none, assert_string, assert_string_or_none, is_array

_MESSAGE_TYPES = {
    "user": UserMessage,
    "assistant": AssistantMessage,
    "hidden": HiddenMessage,
}


def _assert_records(items: Any, record_types: tuple[type, ...], normalizer: Any, context: str) -> None:
    # None on a built message means the field was omitted.
    if items is None:
        return
    normalizer(items, context)
    for index, item in enumerate(items):
        if not isinstance(item, record_types):
            raise InvalidVariantError(f"Invalid record type at {context}[{index}]: {type(item).__name__}")


def _assert_hidden(message: HiddenMessage, index: int) -> None:
    context = f"HiddenMessage[{index}]"
    assert_string(message.category, f"{context}.category")
    assert_string_or_none(message.title, f"{context}.title")
    assert_number_or_none(message.depth, f"{context}.depth")
    assert_string(message.content, f"{context}.content")


def _assert_turn(message: UserMessage | AssistantMessage, index: int) -> None:
    context = f"Message[{index}]"
    assert_string(message.content, f"{context}.content")
    assert_number_or_none(message.timestamp, f"{context}.timestamp")
    assert_string_or_none(message.image_title, f"{context}.image_title")
    _assert_records(message.images, (ImageInfo,), normalize_images, f"{context}.images")
    _assert_records(message.files, (FileInfo,), normalize_files, f"{context}.files")
    _assert_records(message.search_queries, (str,), normalize_search_queries, f"{context}.search_queries")
    _assert_records(message.search_results, (SearchResult,), normalize_search_results, f"{context}.search_results")


def assert_valid_message(message: Any, index: int) -> None:
    """Re-run the construction checks against an already built message.

    Dispatch is on the ``kind`` discriminant and the value must also be the
    matching record type, so exactly three variants are accepted. Nested
    arrays must hold the matching records too; plain mappings are rejected.
    """
    kind = getattr(message, "kind", None)
    expected_type = _MESSAGE_TYPES.get(kind) if isinstance(kind, str) else None
    # Records are slotted, so the exact type also fixes the field set.
    if expected_type is None or type(message) is not expected_type:
        raise InvalidVariantError(f"Invalid message type at index {index}")

    if kind == "hidden":
        _assert_hidden(message, index)
        return

    if kind == "assistant":
        context = f"AssistantMessage[{index}]"
        assert_string_or_none(message.model, f"{context}.model")
        _assert_records(
            message.hidden_messages, (HiddenMessageInfo,), normalize_hidden_messages, f"{context}.hidden_messages"
        )
        _assert_records(message.segments, (TextSegment, HiddenSegment), normalize_segments, f"{context}.segments")

    _assert_turn(message, index)


def assert_valid_conversation(conversation: Any) -> None:
    if not isinstance(conversation, Conversation):
        raise SchemaError("Invalid conversation")
    assert_string(conversation.title, "Conversation.title")
    assert_string(conversation.service, "Conversation.service")
    assert_string(conversation.basename, "Conversation.basename")
    assert_string(conversation.exported_at, "Conversation.exported_at")
    assert_string_or_none(conversation.created_at, "Conversation.created_at")
    if not is_array(conversation.messages):
        raise ShapeMismatchError("Invalid messages array")
    for index, message in enumerate(conversation.messages):
        assert_valid_message(message, index)
