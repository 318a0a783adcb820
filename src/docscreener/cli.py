"""Command line interface for DocScreener."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.table import Table

from docscreener.client.openai_api import SummarizationClient, SummarizationError
from docscreener.config import AppConfig, ConfigError, default_settings_path
from docscreener.ingestion.loader import load_documents
from docscreener.models import OutcomeStatus
from docscreener.pipeline.orchestrator import PipelineOrchestrator
from docscreener.utils.text import parse_keywords
from docscreener.web.app import create_app
from docscreener.workspace import Workspace


console = Console()
app = typer.Typer(help="DocScreener - keyword-segmented document summaries")

STATUS_STYLES: Dict[OutcomeStatus, str] = {
    OutcomeStatus.SUMMARIZED: "green",
    OutcomeStatus.FAILED: "red",
    OutcomeStatus.SKIPPED: "yellow",
    OutcomeStatus.REJECTED: "yellow",
    OutcomeStatus.CANCELLED: "yellow",
}


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="[%(levelname)s] %(message)s")


def _load_config(settings: Optional[Path]) -> AppConfig:
    try:
        return AppConfig.load(settings)
    except ConfigError as exc:
        raise typer.BadParameter(str(exc)) from exc


def _mask(secret: str) -> str:
    if not secret:
        return "(not set)"
    return f"{secret[:3]}...{secret[-4:]}" if len(secret) > 8 else "***"


def _print_progress(key: str, entry: Optional[Dict[int, bool]]) -> None:
    if entry is None:
        return
    done = sum(1 for finished in entry.values() if finished)
    console.print(f"[dim]{key}[/dim] {done}/{len(entry)} segments")


@app.command()
def summarize(
    inputs: List[Path] = typer.Argument(
        ..., help="PDF or text files, or folders containing them.", resolve_path=True
    ),
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model identifier"),
    keywords: Optional[str] = typer.Option(
        None, "--keywords", "-k", help="Comma-separated keyphrases marking segment ends"
    ),
    prompt: Optional[str] = typer.Option(None, "--prompt", "-p", help="Assistant prompt text"),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", help="Tokens per summary"),
    include_prompt: Optional[bool] = typer.Option(
        None, "--include-prompt/--no-include-prompt", help="Start each summary with the prompt"
    ),
    api_key: Optional[str] = typer.Option(None, "--api-key", envvar="OPENAI_API_KEY"),
    settings: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON path"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Verbose logging"),
) -> None:
    """Summarize every document found under the given paths."""
    _setup_logging(verbose)
    config = _load_config(settings)
    if model is not None:
        config.model_id = model
    if keywords is not None:
        config.keywords = parse_keywords(keywords)
    if prompt is not None:
        config.assistant_prompt = prompt
    if max_tokens is not None:
        if max_tokens < 1:
            raise typer.BadParameter("--max-tokens must be positive")
        config.max_tokens = max_tokens
    if include_prompt is not None:
        config.include_prompt_in_output = include_prompt
    if api_key:
        config.api_key = api_key

    if not config.model_id:
        raise typer.BadParameter("No model selected. Pass --model or run 'configure'.")
    if not config.api_key:
        raise typer.BadParameter("No API key. Pass --api-key or set OPENAI_API_KEY.")

    report = load_documents(inputs)
    console.print(
        f"{report.success_count} files were read successfully. "
        f"{report.failed_count} failed to be read."
    )
    if not report.documents:
        console.print("[yellow]No documents to summarize.[/yellow]")
        return

    workspace = Workspace()
    workspace.add(report.documents)
    client = SummarizationClient(config.api_key, api_base=config.api_base, timeout=config.timeout)
    orchestrator = PipelineOrchestrator(
        client, tracker=workspace.tracker, on_outcome=workspace.record
    )
    unsubscribe = workspace.tracker.subscribe(_print_progress)
    try:
        outcomes = asyncio.run(orchestrator.run(workspace.documents(), config))
    finally:
        unsubscribe()

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Document")
    table.add_column("Status")
    table.add_column("Output")

    for key in sorted(outcomes):
        outcome = outcomes[key]
        style = STATUS_STYLES[outcome.status]
        detail = str(outcome.output_path) if outcome.output_path else (
            outcome.persist_error or outcome.error or ""
        )
        table.add_row(key, f"[{style}]{outcome.status.value}[/{style}]", detail)

    console.print(table)
    if any(outcome.status is OutcomeStatus.FAILED for outcome in outcomes.values()):
        raise typer.Exit(code=1)


@app.command()
def models(
    api_key: Optional[str] = typer.Option(None, "--api-key", envvar="OPENAI_API_KEY"),
    settings: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON path"),
) -> None:
    """List the model identifiers offered by the service."""
    config = _load_config(settings)
    client = SummarizationClient(
        api_key or config.api_key, api_base=config.api_base, timeout=config.timeout
    )
    try:
        available = client.list_models()
    except SummarizationError as exc:
        console.print(f"[red]Failed to fetch models: {exc}[/red]")
        raise typer.Exit(code=1)

    if not available:
        console.print("[yellow]No models available.[/yellow]")
        return
    for model_id in available:
        marker = "*" if model_id == config.model_id else " "
        console.print(f"{marker} {model_id}")


@app.command()
def configure(
    model: Optional[str] = typer.Option(None, "--model", "-m", help="Model identifier"),
    keywords: Optional[str] = typer.Option(None, "--keywords", "-k", help="Comma-separated keyphrases"),
    prompt: Optional[str] = typer.Option(None, "--prompt", "-p", help="Assistant prompt text"),
    max_tokens: Optional[int] = typer.Option(None, "--max-tokens", help="Tokens per summary"),
    include_prompt: Optional[bool] = typer.Option(
        None, "--include-prompt/--no-include-prompt", help="Start each summary with the prompt"
    ),
    api_key: Optional[str] = typer.Option(None, "--api-key", help="API key to store"),
    settings: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON path"),
) -> None:
    """Update the stored settings and show the result."""
    config = _load_config(settings)
    changed = False
    if model is not None:
        config.model_id, changed = model, True
    if keywords is not None:
        config.keywords, changed = parse_keywords(keywords), True
    if prompt is not None:
        config.assistant_prompt, changed = prompt, True
    if max_tokens is not None:
        if max_tokens < 1:
            raise typer.BadParameter("--max-tokens must be positive")
        config.max_tokens, changed = max_tokens, True
    if include_prompt is not None:
        config.include_prompt_in_output, changed = include_prompt, True
    if api_key is not None:
        config.api_key, changed = api_key, True

    if changed:
        saved = config.save(settings)
        console.print(f"Settings saved to [bold]{saved}[/bold]")

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Setting")
    table.add_column("Value")
    table.add_row("API key", _mask(config.api_key))
    table.add_row("Model", config.model_id or "(not set)")
    table.add_row("Tokens", str(config.max_tokens))
    table.add_row("Asst. prompt", config.assistant_prompt)
    table.add_row("Keyphrases", config.keyword_text)
    table.add_row("Prompt in summary", "yes" if config.include_prompt_in_output else "no")
    table.add_row("Settings file", str(settings or default_settings_path()))
    console.print(table)


@app.command()
def web(
    host: str = typer.Option("127.0.0.1", help="Host interface"),
    port: int = typer.Option(8000, help="Server port"),
    settings: Optional[Path] = typer.Option(None, "--settings", help="Settings JSON path"),
) -> None:
    """Start the web API."""
    try:
        import uvicorn
    except ImportError as exc:  # pragma: no cover - defensive
        raise typer.BadParameter(
            "uvicorn is not installed. Install the web extras with \"python -m pip install '.[web]'\""
        ) from exc

    console.print(f"Starting web API on http://{host}:{port}")
    uvicorn.run(
        create_app(settings_path=settings),
        host=host,
        port=port,
        reload=False,
        log_level="info",
    )
