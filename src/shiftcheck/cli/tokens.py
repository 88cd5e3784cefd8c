"""Verification token CLI commands."""

from datetime import UTC, datetime

import typer
from rich.console import Console
from rich.table import Table

from shiftcheck.config import settings
from shiftcheck.services.verification import (
    MalformedTokenError,
    TokenConfig,
    TokenError,
    TokenIssuer,
    TokenVerifier,
    build_verification_link,
    current_time_ms,
)

console = Console()
app = typer.Typer(help="Verification token commands")


def _load_config(ttl_hours: int | None = None) -> TokenConfig:
    ttl_ms = ttl_hours * 60 * 60 * 1000 if ttl_hours is not None else settings.token_ttl_ms
    try:
        return TokenConfig(
            secret=settings.signing_secret.encode("utf-8"),
            ttl_ms=ttl_ms,
            check_signature_first=settings.verification_check_signature_first,
        )
    except ValueError as e:
        console.print("[red]Set VERIFICATION_SECRET (or STRIPE_WEBHOOK_SECRET) first[/red]")
        raise typer.Exit(1) from e


def _format_ms(value: int) -> str:
    try:
        return datetime.fromtimestamp(value / 1000, tz=UTC).isoformat()
    except (OverflowError, OSError, ValueError):
        return "out of range"


@app.command("issue")
def issue_token(
    email: str = typer.Argument(..., help="Email address to issue a token for"),
    ttl_hours: int | None = typer.Option(None, "--ttl-hours", help="Override token lifetime"),
):
    """Issue a verification token and print its link."""
    issuer = TokenIssuer(_load_config(ttl_hours))

    try:
        token = issuer.issue(email)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    typer.echo(token)
    console.print(f"[dim]{build_verification_link(settings.app_url, token)}[/dim]")


@app.command("verify")
def verify_token(token: str = typer.Argument(..., help="Token to verify")):
    """Verify a token and print the email it was issued for."""
    verifier = TokenVerifier(_load_config())

    try:
        email = verifier.verify(token)
    except TokenError as e:
        console.print(f"[red]{e} ({e.code})[/red]")
        raise typer.Exit(1) from e

    typer.echo(email)


@app.command("inspect")
def inspect_token(token: str = typer.Argument(..., help="Token to inspect")):
    """Show the fields of a token without verifying it."""
    verifier = TokenVerifier(_load_config())

    try:
        decoded = verifier.inspect(token)
    except MalformedTokenError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1) from e

    now = current_time_ms()
    table = Table(title="Token")
    table.add_column("Field", style="cyan")
    table.add_column("Value", style="green")
    table.add_row("Email", decoded.email)
    table.add_row("Expiry", f"{decoded.expiry_ms} ({_format_ms(decoded.expiry_ms)})")
    table.add_row("Expired", "[red]Yes[/red]" if decoded.is_expired(now) else "No")
    table.add_row("Signature", decoded.signature)

    console.print(table)
