from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any, Literal, Union

Number = Union[int, float]


@dataclass(frozen=True, slots=True)
class ImageInfo:
    filename: str
    original_name: str | None = None


@dataclass(frozen=True, slots=True)
class FileInfo:
    filename: str
    original_name: str | None = None


@dataclass(frozen=True, slots=True)
class SearchResult:
    url: str
    title: str
    domain: str | None = None


@dataclass(frozen=True, slots=True)
class HiddenMessageInfo:
    category: str
    content: str
    title: str | None = None
    depth: Number | None = None


@dataclass(frozen=True, slots=True)
class TextSegment:
    content: str
    type: Literal["text"] = field(default="text", init=False)


@dataclass(frozen=True, slots=True)
class HiddenSegment:
    category: str
    content: str
    title: str | None = None
    depth: Number | None = None
    type: Literal["hidden"] = field(default="hidden", init=False)


Segment = Union[TextSegment, HiddenSegment]


@dataclass(frozen=True, slots=True)
class UserMessage:
    content: str
    timestamp: Number | None = None
    images: tuple[ImageInfo, ...] | None = None
    files: tuple[FileInfo, ...] | None = None
    image_title: str | None = None
    search_queries: tuple[str, ...] | None = None
    search_results: tuple[SearchResult, ...] | None = None
    kind: Literal["user"] = field(default="user", init=False)


@dataclass(frozen=True, slots=True)
class AssistantMessage:
    content: str
    timestamp: Number | None = None
    images: tuple[ImageInfo, ...] | None = None
    files: tuple[FileInfo, ...] | None = None
    image_title: str | None = None
    search_queries: tuple[str, ...] | None = None
    search_results: tuple[SearchResult, ...] | None = None
    model: str | None = None
    hidden_messages: tuple[HiddenMessageInfo, ...] | None = None
    # Takes priority over content + hidden_messages when rendering.
    segments: tuple[Segment, ...] | None = None
    kind: Literal["assistant"] = field(default="assistant", init=False)


@dataclass(frozen=True, slots=True)
class HiddenMessage:
    category: str
    content: str
    title: str | None = None
    depth: Number | None = None
    kind: Literal["hidden"] = field(default="hidden", init=False)


Message = Union[UserMessage, AssistantMessage, HiddenMessage]


@dataclass(frozen=True, slots=True)
class Conversation:
    title: str
    service: str
    created_at: str | None
    exported_at: str
    basename: str
    messages: tuple[Message, ...] = ()


@dataclass(frozen=True, slots=True)
class ExportOptions:
    show_timestamp: bool = False
    show_hidden_messages: bool = False
    hidden_message_depth: Number = 1
    show_model_name: bool = False

    @classmethod
    def from_mapping(cls, options: Mapping[str, Any]) -> ExportOptions:
        # Unknown keys are ignored; render options are not a closed set.
        known = {f.name for f in fields(cls)}
        return cls(**{key: value for key, value in options.items() if key in known})
