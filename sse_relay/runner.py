"""
CLI entrypoint for the SSE relay.
"""
import asyncio
from typing import Optional

import httpx
import typer
from rich.console import Console
from rich.markup import escape

from sse_relay.client.chat_client import ChatClient
from sse_relay.shared.config import settings
from sse_relay.shared.logging import configure_logging

app = typer.Typer(help="SSE Relay: direct messages between anonymous sessions")
console = Console()

def _base_url(url: str | None) -> str:
    return url or f"http://127.0.0.1:{settings.PORT}"

STATUS_LABELS = {
    200: "[green]delivered[/]",
    404: "[yellow]not found[/] (sender or recipient is not connected)",
    500: "[red]delivery failed[/] (recipient busy or gone)",
    503: "[red]server not ready[/]",
}

@app.command()
def server(
    host: str = typer.Option(settings.HOST, help="Bind address"),
    port: int = typer.Option(settings.PORT, help="Bind port"),
):
    """Start the FastAPI relay server using Uvicorn."""
    import uvicorn
    typer.echo(f"Starting server on {host}:{port}...")
    uvicorn.run("sse_relay.server.main:app", host=host, port=port, log_level=settings.LOG_LEVEL.lower())

@app.command()
def start(url: Optional[str] = typer.Option(None, help="Server base URL")):
    """Request a fresh session id."""
    async def _start() -> int:
        async with ChatClient(_base_url(url)) as client:
            return await client.start()

    session_id = asyncio.run(_start())
    console.print(f"session id: [bold cyan]{session_id}[/]")

@app.command()
def listen(
    session_id: Optional[int] = typer.Option(None, help="Session id to listen as (default: issue a new one)"),
    duration: Optional[float] = typer.Option(None, help="Stop after this many seconds"),
    url: Optional[str] = typer.Option(None, help="Server base URL"),
):
    """Open the session's SSE stream and print every message that arrives."""
    configure_logging(settings.LOG_LEVEL)

    async def _listen() -> None:
        async with ChatClient(_base_url(url), session_id=session_id) as client:
            if client.session_id is None:
                await client.start()
            console.print(f"listening as session [bold cyan]{client.session_id}[/] (Ctrl+C to stop)")

            async def on_message(data: str) -> None:
                console.print(f"[dim]{escape(data)}[/]")

            client.on_message_callback = on_message
            await client.run(duration)

    try:
        asyncio.run(_listen())
    except KeyboardInterrupt:
        pass

@app.command()
def send(
    session_id: int = typer.Option(..., help="Sender session id (must be connected)"),
    to: int = typer.Option(..., help="Recipient session id"),
    message: str = typer.Option(..., help="Message body"),
    url: Optional[str] = typer.Option(None, help="Server base URL"),
):
    """Send one message to another session."""
    async def _send() -> int:
        async with ChatClient(_base_url(url), session_id=session_id) as client:
            return await client.send(to, message)

    status = asyncio.run(_send())
    console.print(STATUS_LABELS.get(status, f"unexpected status {status}"))
    if status != 200:
        raise typer.Exit(1)

@app.command()
def stats(url: Optional[str] = typer.Option(None, help="Server base URL")):
    """Query the server for live relay stats."""
    resp = httpx.get(f"{_base_url(url)}/stats")
    console.print_json(data=resp.json())

if __name__ == "__main__":
    app()
