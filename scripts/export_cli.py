from __future__ import annotations

from collections import Counter
import logging
import sys
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from config.settings import ensure_directories, get_settings
from transcript.errors import SchemaError
from transcript.filenames import generate_filename
from transcript.markdown import to_markdown
from transcript.models import Conversation, ExportOptions
from transcript.serialization import load_conversation

app = typer.Typer(help="Render exported AI chat transcripts as markdown.")
console = Console()
logger = logging.getLogger(__name__)


def _configure_logging(log_level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        force=True,
    )


def _fail(input_path: Path, exc: SchemaError) -> typer.Exit:
    logger.error("Export failed for %s: %s", input_path.name, exc)
    console.print(f"[bold red]Export failed:[/bold red] {escape(str(exc))}", highlight=False)
    return typer.Exit(code=1)


def _load_or_exit(input_path: Path) -> Conversation:
    try:
        return load_conversation(input_path)
    except SchemaError as exc:
        raise _fail(input_path, exc) from exc


def _render_summary(conversation: Conversation) -> None:
    kinds = Counter(message.kind for message in conversation.messages)
    images = sum(len(getattr(message, "images", None) or ()) for message in conversation.messages)
    files = sum(len(getattr(message, "files", None) or ()) for message in conversation.messages)

    table = Table(title=conversation.title or "untitled")
    table.add_column("Metric")
    table.add_column("Value", justify="right")
    table.add_row("Service", conversation.service)
    table.add_row("Created", conversation.created_at or "-")
    table.add_row("Exported", conversation.exported_at)
    table.add_row("User Messages", str(kinds.get("user", 0)))
    table.add_row("Assistant Messages", str(kinds.get("assistant", 0)))
    table.add_row("Hidden Messages", str(kinds.get("hidden", 0)))
    table.add_row("Images", str(images))
    table.add_row("Files", str(files))
    console.print(table)


@app.command("render")
def render(
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Conversation JSON file."),
    output: Optional[Path] = typer.Option(None, help="Markdown file to write."),
    stdout: bool = typer.Option(False, "--stdout", help="Print markdown instead of writing a file."),
    show_timestamp: Optional[bool] = typer.Option(None, help="Show created/exported and message times."),
    show_hidden: Optional[bool] = typer.Option(None, help="Include hidden messages as block quotes."),
    hidden_depth: Optional[int] = typer.Option(None, min=1, help="Default block quote depth for hidden messages."),
    show_model: Optional[bool] = typer.Option(None, help="Append the model name to assistant headers."),
    log_level: str = typer.Option("WARNING", help="Logging level (DEBUG, INFO, WARNING)."),
) -> None:
    _configure_logging(log_level)
    settings = get_settings()
    defaults = settings.export_options()
    options = ExportOptions(
        show_timestamp=defaults.show_timestamp if show_timestamp is None else show_timestamp,
        show_hidden_messages=defaults.show_hidden_messages if show_hidden is None else show_hidden,
        hidden_message_depth=defaults.hidden_message_depth if hidden_depth is None else hidden_depth,
        show_model_name=defaults.show_model_name if show_model is None else show_model,
    )

    conversation = _load_or_exit(input_path)
    try:
        markdown = to_markdown(conversation, options)
    except SchemaError as exc:
        raise _fail(input_path, exc) from exc

    if stdout:
        typer.echo(markdown, nl=False)
        return

    if output is None:
        ensure_directories(settings)
        output = settings.output_dir / generate_filename(conversation.title, conversation.service)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(markdown, encoding="utf-8")
    logger.info("Wrote %s", output)
    console.print(f"[green]Saved[/green] {output}")


@app.command("inspect")
def inspect(
    input_path: Path = typer.Argument(..., exists=True, dir_okay=False, help="Conversation JSON file."),
    log_level: str = typer.Option("WARNING", help="Logging level (DEBUG, INFO, WARNING)."),
) -> None:
    _configure_logging(log_level)
    _render_summary(_load_or_exit(input_path))


if __name__ == "__main__":
    app()
