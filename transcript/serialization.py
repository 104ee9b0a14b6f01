from __future__ import annotations

from collections.abc import Mapping
from dataclasses import fields
import json
import logging
from pathlib import Path
from typing import Any

from transcript.errors import InvalidVariantError, ShapeMismatchError
from transcript.messages import create_assistant_message, create_hidden_message, create_user_message
from transcript.models import Conversation, Message
from transcript.schema import (
    CONVERSATION_KEYS,
    assert_allowed_keys,
    assert_mapping,
    assert_string,
    assert_string_or_none,
    is_array,
)
from transcript.validation import assert_valid_conversation

logger = logging.getLogger(__name__)

_ARRAY_FIELDS = frozenset(
    {"images", "files", "search_queries", "search_results", "hidden_messages", "segments"}
)

_MESSAGE_FACTORIES = {
    "user": create_user_message,
    "assistant": create_assistant_message,
    "hidden": create_hidden_message,
}


def _record_to_dict(record: Any) -> dict[str, Any]:
    return {f.name: getattr(record, f.name) for f in fields(record)}


def _message_to_dict(message: Message) -> dict[str, Any]:
    payload: dict[str, Any] = {}
    for f in fields(message):
        value = getattr(message, f.name)
        if f.name in _ARRAY_FIELDS:
            if value is None:
                continue
            if f.name == "search_queries":
                payload[f.name] = list(value)
            else:
                payload[f.name] = [_record_to_dict(item) for item in value]
            continue
        payload[f.name] = value
    return payload


def conversation_to_dict(conversation: Conversation) -> dict[str, Any]:
    assert_valid_conversation(conversation)
    return {
        "title": conversation.title,
        "service": conversation.service,
        "created_at": conversation.created_at,
        "exported_at": conversation.exported_at,
        "basename": conversation.basename,
        "messages": [_message_to_dict(message) for message in conversation.messages],
    }


def conversation_from_dict(data: Mapping[str, Any]) -> Conversation:
    """Rebuild a Conversation from its JSON form.

    Each message is replayed through its constructor and the finished
    document is validated again. ``exported_at`` is kept from the document.
    """
    context = "Conversation"
    assert_mapping(data, context)
    assert_allowed_keys(data, CONVERSATION_KEYS, context)
    for key in ("title", "service", "basename", "exported_at"):
        assert_string(data.get(key), f"{context}.{key}")
    assert_string_or_none(data.get("created_at"), f"{context}.created_at")

    raw_messages = data.get("messages")
    if not is_array(raw_messages):
        raise ShapeMismatchError("Invalid messages array")

    messages: list[Message] = []
    for index, item in enumerate(raw_messages):
        assert_mapping(item, f"{context}.messages[{index}]")
        kind = item.get("kind")
        factory = _MESSAGE_FACTORIES.get(kind) if isinstance(kind, str) else None
        if factory is None:
            raise InvalidVariantError(f"Invalid message type at index {index}")
        messages.append(factory({key: value for key, value in item.items() if key != "kind"}))

    conversation = Conversation(
        title=data["title"],
        service=data["service"],
        created_at=data.get("created_at"),
        exported_at=data["exported_at"],
        basename=data["basename"],
        messages=tuple(messages),
    )
    assert_valid_conversation(conversation)
    return conversation


def load_conversation(path: str | Path) -> Conversation:
    file_path = Path(path)
    data = json.loads(file_path.read_text(encoding="utf-8"))
    conversation = conversation_from_dict(data)
    logger.info("Loaded %d messages from %s", len(conversation.messages), file_path.name)
    return conversation


def dump_conversation(conversation: Conversation, path: str | Path) -> Path:
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    payload = conversation_to_dict(conversation)
    file_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    return file_path
