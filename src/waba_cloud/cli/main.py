"""
WhatsApp CLI

Command-line interface for the WhatsApp Cloud API client.

Commands:
- send-text: Send a text message
- send-template: Send an approved template
- broadcast-template: Send a template to many recipients
- list-templates: List the account's message templates
- media-url: Show the download URL of a media file
- check-signature: Validate a stored webhook body against its signature

Configuration comes from WABA_* environment variables.
"""

import asyncio
import json
import os
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any, Optional, TypeVar

import typer
from rich import print as rprint
from rich.console import Console
from rich.table import Table

from waba_cloud.client import WhatsAppClient, first_message_id
from waba_cloud.config import WhatsAppConfig
from waba_cloud.errors import ConfigurationError, WhatsAppError
from waba_cloud.logging_config import setup_logging
from waba_cloud.webhook import validate_signature

app = typer.Typer(
    name="waba",
    help="WhatsApp Cloud API CLI",
)

console = Console()

T = TypeVar("T")


@app.callback()
def main(
    log_level: str = typer.Option("WARNING", envvar="WABA_LOG_LEVEL", help="Log level"),
):
    """WhatsApp Cloud API CLI."""
    try:
        setup_logging(log_level)
    except ValueError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)


def get_client() -> WhatsAppClient:
    """Build a client from the environment."""
    try:
        return WhatsAppClient(WhatsAppConfig.from_env())
    except ConfigurationError as e:
        rprint(f"[red]{e}[/red]")
        raise typer.Exit(1)


def run_with_client(call: Callable[[WhatsAppClient], Awaitable[T]]) -> T:
    """Run one async client call, reporting API errors."""
    client = get_client()

    async def _run() -> T:
        async with client:
            return await call(client)

    try:
        return asyncio.run(_run())
    except WhatsAppError as e:
        rprint(f"[red]WhatsApp API error {e.title} (HTTP {e.http_status}): {e.message}[/red]")
        raise typer.Exit(1)


def _print_message_id(response: Any) -> None:
    message_id = first_message_id(response)
    rprint(f"[green]Sent[/green] message_id={message_id}")


@app.command()
def send_text(
    to: str = typer.Argument(..., help="Recipient phone number"),
    body: str = typer.Argument(..., help="Message text"),
    preview_url: bool = typer.Option(False, help="Render URL previews"),
):
    """Send a text message (requires an open 24h window)."""
    response = run_with_client(lambda wa: wa.send_text(to, body, preview_url=preview_url))
    _print_message_id(response)


@app.command()
def send_template(
    to: str = typer.Argument(..., help="Recipient phone number"),
    name: str = typer.Argument(..., help="Approved template name"),
    language: str = typer.Option("en_US", help="Template language code"),
):
    """Send an approved template message."""
    response = run_with_client(lambda wa: wa.send_template(to, name, language))
    _print_message_id(response)


@app.command()
def broadcast_template(
    name: str = typer.Argument(..., help="Approved template name"),
    recipients: list[str] = typer.Argument(..., help="Recipient phone numbers"),
    language: str = typer.Option("en_US", help="Template language code"),
    batch_size: int = typer.Option(50, min=1, help="Concurrent sends per batch"),
    delay: float = typer.Option(0.1, min=0.0, help="Seconds between batches"),
):
    """Send a template to many recipients and report per-recipient results."""
    result = run_with_client(
        lambda wa: wa.broadcast_template(
            recipients,
            name,
            language,
            batch_size=batch_size,
            delay=delay,
        )
    )

    table = Table(title=f"Broadcast: {name}")
    table.add_column("Recipient")
    table.add_column("Result")
    table.add_column("Detail")

    for success in result.succeeded:
        message_id = first_message_id(success.result) or ""
        table.add_row(success.to, "[green]sent[/green]", message_id)

    for failure in result.failed:
        table.add_row(failure.to, "[red]failed[/red]", str(failure.error))

    console.print(table)
    rprint(f"{len(result.succeeded)} sent, {len(result.failed)} failed")

    if result.failed:
        raise typer.Exit(1)


@app.command()
def list_templates(
    status: Optional[str] = typer.Option(None, help="Filter by status (APPROVED, PENDING...)"),
    category: Optional[str] = typer.Option(None, help="Filter by category"),
):
    """List message templates of the business account."""
    response = run_with_client(lambda wa: wa.templates.list(status=status, category=category))

    templates = response.get("data", [])
    if not templates:
        rprint("[yellow]No templates found[/yellow]")
        return

    table = Table(title="Message Templates")
    table.add_column("Name")
    table.add_column("Language")
    table.add_column("Category")
    table.add_column("Status")

    for template in templates:
        table.add_row(
            template.get("name", ""),
            template.get("language", ""),
            template.get("category", ""),
            template.get("status", ""),
        )

    console.print(table)


@app.command()
def media_url(
    media_id: str = typer.Argument(..., help="Media ID from a message or upload"),
):
    """Show the download URL and metadata of a media file."""
    response = run_with_client(lambda wa: wa.get_media_url(media_id))
    console.print_json(json.dumps(response))


@app.command()
def check_signature(
    body_file: Path = typer.Argument(..., exists=True, dir_okay=False, help="Raw webhook body"),
    signature: str = typer.Argument(..., help="X-Hub-Signature-256 header value"),
):
    """Validate a stored webhook body with WABA_APP_SECRET."""
    app_secret = os.getenv("WABA_APP_SECRET", "")
    if not app_secret:
        rprint("[red]WABA_APP_SECRET is not set[/red]")
        raise typer.Exit(1)

    if validate_signature(body_file.read_bytes(), signature, app_secret):
        rprint("[green]Signature is valid[/green]")
    else:
        rprint("[red]Signature is invalid[/red]")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
