"""CLI for inspecting and feeding a persisted agent history.

Developer CLI that runs the same HistoryWindow code path an agent uses,
against the store configured in settings (JSON file or Redis).
"""

import asyncio
import json

import typer
from loguru import logger
from rich.console import Console
from rich.json import JSON
from rich.markup import escape
from rich.panel import Panel

from agent_history.config.settings import Settings
from agent_history.core.errors import HistoryError
from agent_history.core.history_window import HistoryWindow, create_history_window
from agent_history.core.history_metrics import log_history_counters_snapshot
from agent_history.core.logger import configure_logging
from agent_history.core.message import Message

console = Console()

app = typer.Typer(
    name="agent-history",
    help="Inspect and append to a compacting agent conversation history",
    add_completion=False,
)


def _build_window(db_path: str | None, debug: bool) -> HistoryWindow:
    overrides = {"HISTORY_DB_PATH": db_path} if db_path else {}
    cli_settings = Settings(**overrides)
    configure_logging(cli_settings, debug)
    if db_path and cli_settings.history_backend != "json":
        console.print(
            f"[red]Error:[/red] --db only applies to the json backend (HISTORY_BACKEND={escape(cli_settings.history_backend)})",
            style="bold red",
        )
        raise typer.Exit(1)
    return create_history_window(cli_settings)


def _print_messages(messages: list[Message], pretty: bool) -> None:
    payload = json.dumps([m.to_payload() for m in messages], ensure_ascii=False)
    if pretty:
        console.print(JSON(payload))
    else:
        console.print(payload, soft_wrap=True, markup=False, highlight=False)


@app.command()
def window(
    db_path: str | None = typer.Option(None, "--db", help="History JSON file (overrides HISTORY_DB_PATH; json backend only)"),
    pretty: bool = typer.Option(True, "--pretty/--no-pretty", help="Pretty print JSON output"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Print the recent message window sent to the agent."""
    history = _build_window(db_path, debug)
    try:
        messages = asyncio.run(history.get_recent_window())
    except HistoryError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", style="bold red")
        raise typer.Exit(1) from e
    _print_messages(messages, pretty)


@app.command()
def summary(
    db_path: str | None = typer.Option(None, "--db", help="History JSON file (overrides HISTORY_DB_PATH; json backend only)"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Print the rolling summary of compacted history."""
    history = _build_window(db_path, debug)
    try:
        text = asyncio.run(history.get_summary())
    except HistoryError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}", style="bold red")
        raise typer.Exit(1) from e
    if not text:
        console.print("[yellow]No summary yet.[/yellow]")
        return
    console.print(Panel(escape(text), title="Summary"))


@app.command()
def append(
    content: str = typer.Argument(..., help="Message content"),
    role: str = typer.Option("user", "--role", "-r", help="Message role: user, assistant, system, tool"),
    tool_call_id: str | None = typer.Option(None, "--tool-call-id", help="Tool-call id (tool messages)"),
    db_path: str | None = typer.Option(None, "--db", help="History JSON file (overrides HISTORY_DB_PATH; json backend only)"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
) -> None:
    """Append one message, compacting history if needed."""
    history = _build_window(db_path, debug)
    try:
        message = Message(role=role.strip().lower(), content=content, tool_call_id=tool_call_id)
    except ValueError as e:
        console.print(f"[red]Error:[/red] invalid message: {escape(str(e))}", style="bold red")
        raise typer.Exit(1) from e

    try:
        if message.role == "tool" and tool_call_id:
            asyncio.run(history.record_tool_response(tool_call_id, content))
        else:
            asyncio.run(history.append_messages([message]))
    except HistoryError as e:
        logger.error(f"Append failed: {e}")
        console.print(f"[red]Error:[/red] {escape(str(e))}", style="bold red")
        raise typer.Exit(1) from e
    console.print(f"[green]Appended {message.role} message[/green]")
    log_history_counters_snapshot()


if __name__ == "__main__":
    app()
