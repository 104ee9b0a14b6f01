from __future__ import annotations

import pytest

from transcript.errors import InvalidVariantError, SchemaError, ShapeMismatchError, TypeMismatchError
from transcript.markdown import to_markdown
from transcript.messages import create_assistant_message, create_hidden_message, create_user_message
from transcript.models import AssistantMessage, Conversation, FileInfo, ImageInfo, TextSegment, UserMessage
from transcript.validation import assert_valid_conversation, assert_valid_message


def _conversation(messages: tuple = ()) -> Conversation:
    return Conversation(
        title="T",
        service="claude",
        created_at=None,
        exported_at="2025-01-01T00:00:00.000Z",
        basename="claude_abc_T",
        messages=messages,
    )


def test_valid_messages_pass() -> None:
    assert_valid_message(create_user_message({"content": "hi"}), 0)
    assert_valid_message(
        create_assistant_message(
            {
                "content": "hi",
                "hidden_messages": [{"category": "c", "content": "x"}],
                "segments": [{"type": "hidden", "category": "c", "content": "x"}],
            }
        ),
        1,
    )
    assert_valid_message(create_hidden_message({"category": "c", "content": "x"}), 2)


@pytest.mark.parametrize("value", [None, {"kind": "user", "content": "hi"}, "hi", 3])
def test_non_message_values_are_rejected(value: object) -> None:
    with pytest.raises(InvalidVariantError, match=r"Invalid message type at index 4"):
        assert_valid_message(value, 4)


def test_tampered_message_is_caught() -> None:
    message = create_user_message({"content": "hi"})
    object.__setattr__(message, "content", 5)
    with pytest.raises(TypeMismatchError, match=r"Expected string for Message\[2\].content"):
        assert_valid_message(message, 2)


def test_tampered_segment_is_caught() -> None:
    message = create_assistant_message({"content": "", "segments": [{"type": "text", "content": "a"}]})
    object.__setattr__(message, "segments", None)
    assert_valid_message(message, 0)

    object.__setattr__(message, "segments", [{"type": "image"}])
    with pytest.raises(InvalidVariantError, match=r"AssistantMessage\[0\].segments\[0\]"):
        assert_valid_message(message, 0)


def test_conversation_top_level_fields() -> None:
    assert_valid_conversation(_conversation((create_user_message({"content": "hi"}),)))

    with pytest.raises(SchemaError, match=r"\[AIExport\] Invalid conversation"):
        assert_valid_conversation({"title": "T"})

    broken = _conversation()
    object.__setattr__(broken, "exported_at", None)
    with pytest.raises(TypeMismatchError, match="Conversation.exported_at"):
        assert_valid_conversation(broken)


def test_conversation_messages_must_be_array() -> None:
    broken = _conversation()
    object.__setattr__(broken, "messages", "hello")
    with pytest.raises(ShapeMismatchError, match="Invalid messages array"):
        assert_valid_conversation(broken)


def test_conversation_reports_message_index() -> None:
    conversation = _conversation((create_user_message({"content": "hi"}), "not a message"))
    with pytest.raises(InvalidVariantError, match="index 1"):
        assert_valid_conversation(conversation)


@pytest.mark.parametrize(
    ("message", "context"),
    [
        (AssistantMessage(content="", segments=({"type": "text", "content": "A"},)), r"AssistantMessage\[0\].segments\[0\]"),
        (UserMessage(content="", images=({"filename": "a.png"},)), r"Message\[0\].images\[0\]"),
        (UserMessage(content="", images=(FileInfo(filename="a.png"),)), r"Message\[0\].images\[0\]"),
        (AssistantMessage(content="", files=(ImageInfo(filename="a.txt"),)), r"Message\[0\].files\[0\]"),
        (
            AssistantMessage(content="", segments=(TextSegment(content="ok"), {"type": "text", "content": "B"})),
            r"AssistantMessage\[0\].segments\[1\]",
        ),
    ],
)
def test_nested_mappings_are_rejected_on_built_messages(message: object, context: str) -> None:
    conversation = _conversation((message,))
    with pytest.raises(InvalidVariantError, match=rf"Invalid record type at {context}"):
        assert_valid_conversation(conversation)
    with pytest.raises(InvalidVariantError):
        to_markdown(conversation)


def test_hand_built_records_pass() -> None:
    message = AssistantMessage(
        content="x",
        images=(ImageInfo(filename="a.png"),),
        files=(FileInfo(filename="b.md"),),
        search_queries=("q",),
        segments=(TextSegment(content="A"),),
    )
    assert_valid_conversation(_conversation((message,)))
