from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Any

from transcript.errors import ShapeMismatchError, TypeMismatchError, UnexpectedFieldError

# Whitelists for the canonical format. Vendor adapters may not add fields.
USER_MESSAGE_KEYS = frozenset(
    {
        "content",
        "timestamp",
        "images",
        "files",
        "image_title",
        "search_queries",
        "search_results",
    }
)
ASSISTANT_MESSAGE_KEYS = USER_MESSAGE_KEYS | {"model", "hidden_messages", "segments"}
HIDDEN_MESSAGE_KEYS = frozenset({"category", "title", "depth", "content"})
CONVERSATION_INIT_KEYS = frozenset({"title", "service", "created_at", "basename"})
CONVERSATION_KEYS = frozenset({"title", "service", "created_at", "exported_at", "basename", "messages"})
IMAGE_INFO_KEYS = frozenset({"filename", "original_name"})
FILE_INFO_KEYS = frozenset({"filename", "original_name"})
HIDDEN_MESSAGE_INFO_KEYS = frozenset({"category", "title", "depth", "content"})
SEARCH_RESULT_KEYS = frozenset({"url", "title", "domain"})
SEGMENT_KEYS = frozenset({"type", "content", "category", "title", "depth"})


def assert_allowed_keys(value: Mapping[str, Any] | Iterable[str], allowed: frozenset[str], context: str) -> None:
    for key in value:
        if key not in allowed:
            raise UnexpectedFieldError(f'Invalid field "{key}" in {context}')


def assert_string(value: Any, context: str) -> None:
    if not isinstance(value, str):
        raise TypeMismatchError(f"Expected string for {context}")


def assert_string_or_none(value: Any, context: str) -> None:
    if value is not None and not isinstance(value, str):
        raise TypeMismatchError(f"Expected string|null for {context}")


def is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def assert_number_or_none(value: Any, context: str) -> None:
    if value is not None and not is_number(value):
        raise TypeMismatchError(f"Expected number|null for {context}")


def assert_mapping(value: Any, context: str) -> None:
    if not isinstance(value, Mapping):
        raise ShapeMismatchError(f"Expected object for {context}")


def is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))
