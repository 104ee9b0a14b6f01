from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime, timezone
import logging
from typing import Any

from transcript.errors import BuilderClosedError
from transcript.messages import create_assistant_message, create_hidden_message, create_user_message
from transcript.models import Conversation, Message
from transcript.schema import (
    CONVERSATION_INIT_KEYS,
    assert_allowed_keys,
    assert_mapping,
    assert_string,
    assert_string_or_none,
)
from transcript.validation import assert_valid_conversation

logger = logging.getLogger(__name__)


def _utc_now_iso() -> str:
    # Matches JavaScript's Date.toISOString(): millisecond precision, Z suffix.
    now = datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"


class ConversationBuilder:
    """Sole sanctioned way to assemble a Conversation.

    Every ``add_*`` call validates its input and appends an immutable
    message. ``build()`` stamps ``exported_at`` and validates the whole
    document. Once built, the builder rejects further messages; start a new
    builder for a new document.
    """

    def __init__(self, init: Mapping[str, Any]) -> None:
        context = "ConversationInit"
        assert_mapping(init, context)
        assert_allowed_keys(init, CONVERSATION_INIT_KEYS, context)
        assert_string(init.get("title"), f"{context}.title")
        assert_string(init.get("service"), f"{context}.service")
        assert_string(init.get("basename"), f"{context}.basename")
        assert_string_or_none(init.get("created_at"), f"{context}.created_at")

        self.title: str = init["title"]
        self.service: str = init["service"]
        self.basename: str = init["basename"]
        self.created_at: str | None = init.get("created_at")
        self._messages: list[Message] = []
        self._built = False

    @property
    def message_count(self) -> int:
        return len(self._messages)

    def add_user_message(self, payload: Mapping[str, Any]) -> None:
        self._ensure_open()
        self._append(create_user_message(payload))

    def add_assistant_message(self, payload: Mapping[str, Any]) -> None:
        self._ensure_open()
        self._append(create_assistant_message(payload))

    def add_hidden_message(self, payload: Mapping[str, Any]) -> None:
        self._ensure_open()
        self._append(create_hidden_message(payload))

    def build(self) -> Conversation:
        conversation = Conversation(
            title=self.title,
            service=self.service,
            created_at=self.created_at,
            exported_at=_utc_now_iso(),
            basename=self.basename,
            messages=tuple(self._messages),
        )
        assert_valid_conversation(conversation)
        self._built = True
        logger.debug("Built %s conversation with %d messages", self.service, len(conversation.messages))
        return conversation

    def _ensure_open(self) -> None:
        if self._built:
            raise BuilderClosedError("Conversation already built; start a new builder")

    def _append(self, message: Message) -> None:
        self._messages.append(message)
        logger.debug("Added %s message #%d", message.kind, len(self._messages))


def create_conversation_builder(init: Mapping[str, Any]) -> ConversationBuilder:
    return ConversationBuilder(init)
