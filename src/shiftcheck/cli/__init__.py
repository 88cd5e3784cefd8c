"""CLI commands using Typer."""

import typer
from rich.console import Console
from rich.table import Table

from shiftcheck.cli.tokens import app as tokens_app

console = Console()
app = typer.Typer(name="shiftcheck", help="ShiftCheck CLI")

# Register sub-apps
app.add_typer(tokens_app, name="tokens")


@app.command()
def version():
    """Show version information."""
    from shiftcheck import __version__

    typer.echo(f"ShiftCheck v{__version__}")


@app.command()
def serve(
    host: str = typer.Option("0.0.0.0", help="Host to bind to"),
    port: int = typer.Option(8000, help="Port to bind to"),
    reload: bool = typer.Option(False, help="Enable auto-reload"),
):
    """Run the API server."""
    import uvicorn

    from shiftcheck.logging import get_uvicorn_log_config, setup_logging

    setup_logging()
    uvicorn.run(
        "shiftcheck.main:app",
        host=host,
        port=port,
        reload=reload,
        log_config=get_uvicorn_log_config(),
    )


@app.command()
def check():
    """Run pre-launch configuration checks."""
    from shiftcheck.config import settings
    from shiftcheck.services.prelaunch import critical_failures, run_prelaunch_checks

    results = run_prelaunch_checks(settings)

    table = Table(title=f"Pre-launch checks ({settings.environment})")
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Status", no_wrap=True)
    table.add_column("Details", style="dim")

    for result in results:
        if result.passed:
            status = "[green]PASS[/green]"
        elif result.critical:
            status = "[red]FAIL[/red]"
        else:
            status = "[yellow]WARN[/yellow]"
        table.add_row(result.name, status, result.message)

    console.print(table)

    failures = critical_failures(results)
    if failures:
        console.print(f"[red]{len(failures)} critical check(s) failed[/red]")
        raise typer.Exit(1)
    console.print("[green]Ready for launch[/green]")


if __name__ == "__main__":
    app()
