"""CLI commands for intex."""

import asyncio
import sys
from pathlib import Path

import typer
from loguru import logger
from prompt_toolkit import PromptSession
from prompt_toolkit.formatted_text import HTML
from prompt_toolkit.history import FileHistory
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from intex import __logo__, __version__

app = typer.Typer(
    name="intex",
    help=f"{__logo__} intex - intent + context orchestration for function-calling LLMs",
    no_args_is_help=True,
)

console = Console()
EXIT_COMMANDS = {"exit", "quit", "/exit", "/quit", ":q"}


def version_callback(value: bool):
    if value:
        console.print(f"{__logo__} intex v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        None, "--version", "-v", callback=version_callback, is_eager=True
    ),
):
    """intex - intent + context orchestration for function-calling LLMs."""


@app.command()
def version():
    """Show the installed version."""
    console.print(f"{__logo__} intex v{__version__}")


# ============================================================================
# Chat
# ============================================================================


def _make_framework(config_path: Path | None, offline: bool, strategy: str | None, logs: bool, persist: bool = False):
    from intex.config.loader import load_config
    from intex.config.schema import StorageExtensionConfig
    from intex.core.framework import IntentFramework
    from intex.logging import setup_logging
    from intex.extensions.jsonl_storage import JsonlStorageExtension
    from intex.extensions.storage import InMemoryStorageExtension
    from intex.providers.mock_provider import MockProvider
    from intex.cli.demo import build_demo_contracts, offline_responder
    from intex.settings import get_settings

    config = load_config(config_path)
    if strategy:
        config.intent_detection.strategy = strategy
    config.logging.enabled = logs
    config.context_retention.enabled = True

    if offline:
        provider = MockProvider(responder=offline_responder, default_model="offline")
    else:
        if not config.completion_provider.api_key:
            console.print("[red]Error: No API key configured.[/red]")
            console.print("Set INTEX_API_KEY, add completionProvider.apiKey to the config file, or use --offline")
            raise typer.Exit(1)
        provider = None

    if persist:
        storage = JsonlStorageExtension(get_settings().data_dir / "conversations")
    else:
        storage = InMemoryStorageExtension()
    config.storage_extension = StorageExtensionConfig(instance=storage)
    framework = IntentFramework(config, provider=provider)
    if logs:
        # Only intex records reach the terminal.
        logger.remove()
        setup_logging(config.logging, sink=sys.stderr)
    framework.register_contracts(build_demo_contracts())
    return framework


def _print_response(response, render_markdown: bool) -> None:
    meta = response.metadata
    console.print()
    console.print(f"[cyan]{__logo__} intex[/cyan]")
    console.print(Markdown(response.response) if render_markdown else response.response)
    detected = response.execution_context.detected_intent
    intent = f"{detected.intent.id} ({meta.confidence:.2f})" if detected else "none"
    console.print(
        f"[dim]intent: {intent} · functions: {meta.functions_executed} · "
        f"{meta.total_execution_time}ms[/dim]"
    )
    console.print()


@app.command()
def chat(
    message: str = typer.Option(None, "--message", "-m", help="Send one message and exit"),
    conversation_id: str = typer.Option("cli:default", "--conversation", "-c", help="Conversation ID"),
    offline: bool = typer.Option(False, "--offline", help="Use the built-in offline provider (no API calls)"),
    strategy: str = typer.Option(None, "--strategy", "-s", help="Detection strategy: pattern | llm | hybrid"),
    config_path: Path = typer.Option(None, "--config", help="Path to a JSON config file"),
    markdown: bool = typer.Option(True, "--markdown/--no-markdown", help="Render responses as Markdown"),
    logs: bool = typer.Option(False, "--logs/--no-logs", help="Show intex runtime logs"),
    persist: bool = typer.Option(False, "--persist/--no-persist", help="Keep transcripts as JSONL files under the data dir"),
):
    """Chat with the demo weather + calculator contracts."""
    framework = _make_framework(config_path, offline, strategy, logs, persist)

    if message:
        async def run_once():
            async with framework:
                with console.status("[dim]thinking...[/dim]", spinner="dots"):
                    response = await framework.process(message, conversation_id)
            _print_response(response, markdown)

        asyncio.run(run_once())
        return

    history_file = Path.home() / ".intex" / "history" / "cli_history"
    history_file.parent.mkdir(parents=True, exist_ok=True)
    session = PromptSession(history=FileHistory(str(history_file)), multiline=False)
    mode = "offline" if offline else "online"
    console.print(f"{__logo__} Interactive mode, {mode} (type [bold]exit[/bold] or [bold]Ctrl+C[/bold] to quit)\n")

    async def run_interactive():
        async with framework:
            while True:
                try:
                    with patch_stdout():
                        user_input = await session.prompt_async(HTML("<b fg='ansiblue'>You:</b> "))
                except (KeyboardInterrupt, EOFError):
                    console.print("\nGoodbye!")
                    break

                command = user_input.strip()
                if not command:
                    continue
                if command.lower() in EXIT_COMMANDS:
                    console.print("\nGoodbye!")
                    break
                if command == "/clear":
                    await framework.clear_conversation_history(conversation_id)
                    console.print("[dim]Conversation cleared.[/dim]")
                    continue

                with console.status("[dim]thinking...[/dim]", spinner="dots"):
                    response = await framework.process(command, conversation_id)
                _print_response(response, markdown)

    asyncio.run(run_interactive())


# ============================================================================
# Config
# ============================================================================


@app.command()
def validate(
    config_path: Path = typer.Option(None, "--config", help="Path to a JSON config file"),
):
    """Load configuration and show the resolved settings."""
    from intex.config.loader import get_config_path, load_config
    from intex.utils.validation import validate_contract
    from intex.cli.demo import build_demo_contracts

    path = config_path or get_config_path()
    config = load_config(path)

    console.print(f"{__logo__} intex configuration\n")
    console.print(f"Config: {path} {'[green]✓[/green]' if path.exists() else '[dim]not found, using defaults[/dim]'}")

    provider = config.completion_provider
    detection = config.intent_detection
    table = Table(show_header=True, header_style="bold")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("completionProvider.apiKey", "[green]✓ set[/green]" if provider.api_key else "[dim]not set[/dim]")
    table.add_row("completionProvider.apiBase", provider.api_base or "[dim]default[/dim]")
    table.add_row("completionProvider.model", provider.model or "[dim]gpt-4 (default)[/dim]")
    table.add_row(
        "completionProvider.temperature",
        str(provider.temperature) if provider.temperature is not None else "[dim]0.7 (default)[/dim]",
    )
    table.add_row("completionProvider.maxTokens", str(provider.max_tokens or "[dim]unset[/dim]"))
    table.add_row("intentDetection.strategy", detection.strategy)
    table.add_row(
        "intentDetection.confidenceThreshold",
        str(detection.confidence_threshold) if detection.confidence_threshold is not None else "[dim]per-strategy default[/dim]",
    )
    table.add_row("logging", f"{'enabled' if config.logging.enabled else 'disabled'} ({config.logging.level})")
    table.add_row(
        "contextRetention",
        f"{'enabled' if config.context_retention.enabled else 'disabled'} (max {config.context_retention.max_contexts})",
    )
    console.print(table)

    problems = {c.intent.id: validate_contract(c) for c in build_demo_contracts()}
    for intent_id, errors in problems.items():
        status = "[green]✓[/green]" if not errors else f"[red]✗ {'; '.join(errors)}[/red]"
        console.print(f"Demo contract {intent_id}: {status}")
    if any(problems.values()):
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
