from __future__ import annotations
import asyncio
import typer
from rich import print
from rich.table import Table
from storybot.channels.manager import ChannelManager, UnknownChannel
from storybot.config import load_settings

app = typer.Typer(help="storybot - conversational bot engine driven by provider webhooks.")

def _channels() -> ChannelManager:
    return ChannelManager(load_settings().channels)

@app.command()
def channels():
    """List configured channels."""
    t = Table(title="Channels")
    t.add_column("name"); t.add_column("driver"); t.add_column("parameters")
    for c in _channels().all():
        t.add_row(c.name, c.driver, ", ".join(sorted(c.parameters)))
    print(t)

@app.command()
def install_webhook(channel: str, url: str):
    """Register URL as the provider callback for CHANNEL."""
    manager = _channels()
    try:
        ch = manager.get(channel)
    except UnknownChannel:
        print(f"[red]unknown channel:[/red] {channel}")
        raise typer.Exit(code=1)

    async def _run():
        driver = manager.create_driver(ch)
        driver.fill(ch.parameters)
        try:
            await driver.install_webhook(url)
        finally:
            await driver.aclose()
    asyncio.run(_run())
    print(f"[green]webhook installed[/green] {ch.name} -> {url}")

@app.command()
def serve():
    """Run the webhook server."""
    from storybot.__main__ import run_server
    run_server()

def main():
    """Entry point for the CLI."""
    app()
