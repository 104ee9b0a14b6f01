from __future__ import annotations

from collections.abc import Mapping
import logging
import math
import re
from typing import Any

from transcript.formatting import format_timestamp
from transcript.models import (
    AssistantMessage,
    Conversation,
    ExportOptions,
    FileInfo,
    HiddenMessage,
    Message,
    SearchResult,
    UserMessage,
)
from transcript.schema import is_number
from transcript.validation import assert_valid_conversation

logger = logging.getLogger(__name__)

UNTITLED = "untitled"
SERVICE_LABELS = {"chatgpt": "ChatGPT"}
IMAGE_WIDTH = 360

_VERSION_RE = re.compile(r"_v(\d+)_")
# A single newline followed by a GFM table header and its separator row.
_TABLE_RE = re.compile(r"([^\n])\n(\|[^\n]+\|\n\|[-:| ]+\|)")


def resolve_hidden_message_depth(value: Any, fallback: int) -> int:
    if is_number(value) and math.isfinite(value):
        return max(1, math.floor(value))
    return fallback


def render_hidden_message(category: str | None, title: str | None, content: str, depth: int) -> str:
    """Quote a hidden annotation at the given blockquote depth.

    The header is ``**category** title`` at depth 1 and
    ``*category* · title`` deeper down. Returns an empty string when there
    is neither a header nor any content.
    """
    quote_prefix = ">" * depth
    line_prefix = f"{quote_prefix} "
    has_header = bool(category or title)

    header_parts: list[str] = []
    if category:
        emphasis = "**" if depth == 1 else "*"
        header_parts.append(f"{emphasis}{category}{emphasis}")
    if title:
        if depth >= 2 and category:
            header_parts.append(f"· {title}")
        else:
            header_parts.append(title)

    normalized = content.replace("\r\n", "\n")
    lines = normalized.split("\n") if normalized else []

    md = ""
    if has_header:
        md += f"{line_prefix}{' '.join(header_parts)}\n"
    if lines:
        if has_header:
            md += f"{quote_prefix}\n"
        for line in lines:
            md += f"{line_prefix}{line}\n"
    if not md:
        return ""
    return md + "\n"


def render_header(message: Message, show_timestamp: bool, show_model_name: bool) -> str:
    if isinstance(message, HiddenMessage):
        return ""

    is_user = isinstance(message, UserMessage)
    icon = "🧑" if is_user else "🤖"
    label = "User" if is_user else "Assistant"

    header = f"{icon} **{label}**"
    if show_timestamp and message.timestamp:
        header += f" · {format_timestamp(message.timestamp)}"
    if show_model_name and isinstance(message, AssistantMessage) and message.model:
        header += f" · *{message.model}*"
    return header + "\n\n"


def _service_label(service: str) -> str:
    if not service:
        return ""
    name = SERVICE_LABELS.get(service, service[:1].upper() + service[1:])
    return f"**{name}**"


def _render_meta(conversation: Conversation, options: ExportOptions) -> str:
    service_label = _service_label(conversation.service)

    parts: list[str] = []
    if options.show_timestamp and conversation.created_at:
        parts.append(f"Created: {format_timestamp(conversation.created_at)}")
    if options.show_timestamp:
        parts.append(f"Exported: {format_timestamp(conversation.exported_at)}")
    if options.show_hidden_messages:
        parts.append("Includes hidden messages")

    if not service_label and not parts:
        return ""
    if not parts:
        return service_label + "\n\n"
    if service_label:
        return f"{service_label} *| {' | '.join(parts)}*\n\n"
    return f"*{' | '.join(parts)}*\n\n"


def _render_sources(results: tuple[SearchResult, ...], depth: int) -> str:
    lines = []
    for result in results:
        if result.url and result.title:
            line = f"- [{result.title}]({result.url})"
            if result.domain:
                line += f" · {result.domain}"
            lines.append(line)
    if not lines:
        return ""
    return render_hidden_message("Sources", None, "\n".join(lines), depth)


def _attachment_path(basename: str, filename: str) -> str:
    return f"{basename}/{filename}" if basename else filename


def _file_display_name(file: FileInfo) -> str:
    display_name = file.original_name or file.filename
    match = _VERSION_RE.search(file.filename)
    if match and file.original_name:
        display_name = f"{file.original_name} (v{match.group(1)})"
    return display_name


def _render_assistant_body(message: AssistantMessage, options: ExportOptions, default_depth: int) -> str:
    md = ""
    if message.segments:
        for segment in message.segments:
            if segment.type == "text":
                if segment.content:
                    md += segment.content + "\n\n"
            elif options.show_hidden_messages:
                depth = resolve_hidden_message_depth(segment.depth, default_depth)
                md += render_hidden_message(segment.category, segment.title, segment.content, depth)
        return md

    if options.show_hidden_messages and message.hidden_messages:
        for hidden in message.hidden_messages:
            depth = resolve_hidden_message_depth(hidden.depth, default_depth)
            md += render_hidden_message(hidden.category, hidden.title, hidden.content, depth)
    if message.content:
        md += message.content + "\n"
    return md


def _render_turn(
    message: UserMessage | AssistantMessage,
    basename: str,
    options: ExportOptions,
    default_depth: int,
) -> str:
    md = ""
    # The only place a separator is emitted.
    if isinstance(message, UserMessage):
        md += "---\n\n"

    md += render_header(message, options.show_timestamp, options.show_model_name)

    if options.show_hidden_messages and message.search_queries:
        md += render_hidden_message("Search", None, ", ".join(message.search_queries), default_depth)
    if options.show_hidden_messages and message.search_results:
        md += _render_sources(message.search_results, default_depth)

    if message.image_title:
        md += f"🖼️ *Image: {message.image_title}*\n\n"

    for image in message.images or ():
        path = _attachment_path(basename, image.filename)
        md += f'<img src="{path}" alt="image" width="{IMAGE_WIDTH}" />\n\n'

    for file in message.files or ():
        path = _attachment_path(basename, file.filename)
        md += f"📄 [{_file_display_name(file)}]({path})\n\n"

    if isinstance(message, AssistantMessage):
        md += _render_assistant_body(message, options, default_depth)
    elif message.content:
        md += message.content + "\n"

    return md + "\n"


def _coerce_options(options: ExportOptions | Mapping[str, Any] | None) -> ExportOptions:
    if options is None:
        return ExportOptions()
    if isinstance(options, ExportOptions):
        return options
    return ExportOptions.from_mapping(options)


def fix_table_spacing(md: str) -> str:
    return _TABLE_RE.sub(r"\1\n\n\2", md)


def to_markdown(conversation: Conversation, options: ExportOptions | Mapping[str, Any] | None = None) -> str:
    """Render a validated conversation as markdown.

    The conversation is validated again here so that documents which never
    went through a builder (for example ones loaded from JSON) are checked
    before anything is emitted.
    """
    opts = _coerce_options(options)
    default_depth = resolve_hidden_message_depth(opts.hidden_message_depth, 1)
    assert_valid_conversation(conversation)

    md = f"# {conversation.title or UNTITLED}\n\n"
    md += _render_meta(conversation, opts)

    for message in conversation.messages:
        if isinstance(message, HiddenMessage):
            if not opts.show_hidden_messages:
                continue
            depth = resolve_hidden_message_depth(message.depth, default_depth)
            md += render_hidden_message(message.category, message.title, message.content, depth)
            md += "\n"
            continue
        md += _render_turn(message, conversation.basename, opts, default_depth)

    logger.debug("Rendered %d messages for %s", len(conversation.messages), conversation.basename)
    return fix_table_spacing(md)
