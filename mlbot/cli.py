"""mlbot CLI - serve the bot and manage its database."""

import asyncio

import typer
from rich.console import Console

from .config import settings

app = typer.Typer(
    name="mlbot",
    help="Mercado Livre question auto-responder",
    no_args_is_help=True,
)
console = Console()


@app.command("serve")
def serve(
    port: int = typer.Option(settings.port, "--port", "-p", help="Port to run on"),
    host: str = typer.Option(settings.host, "--host", help="Host to bind to"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
):
    """Run the webhook/OAuth HTTP server."""
    import uvicorn

    console.print(f"[bold cyan]Starting mlbot at http://{host}:{port}[/bold cyan]")
    uvicorn.run("mlbot.app:app", host=host, port=port, reload=reload)


@app.command("init-db")
def init_db():
    """Create the shops, tokens and answers tables."""
    from .database import create_tables, engine

    async def _init() -> None:
        await create_tables()
        await engine.dispose()

    asyncio.run(_init())
    console.print("[green]Tables created.[/green]")


if __name__ == "__main__":
    app()
