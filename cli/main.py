"""
Tessera - Main CLI Application

Command-line tools for inspecting the service container and event
dispatcher, converting registry files, and working with the security
helpers.
"""
import re
from pathlib import Path
from typing import List, Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from core import TesseraError, classify_error, regex
from core.bootstrap import create_container
from di.container import Container, ServiceProvider
from events.dispatcher import Dispatcher, format_callable
from observability import get_logger, setup_observability
from registry import Registry, available_formats
from security.crypt import Crypt, Key, get_cipher
from security.passwords import BCryptHandler, get_password_handler

# Initialize app
app = typer.Typer(
    name="tessera",
    help="Tessera - application framework tooling",
    add_completion=False
)

console = Console()


@app.callback()
def configure(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log debug output to stderr"),
    json_logs: bool = typer.Option(False, "--json-logs", help="Render logs as JSON"),
    trace: bool = typer.Option(False, "--trace", help="Print OpenTelemetry spans to stdout")
):
    """Tessera command line tools."""
    setup_observability(
        service_name="tessera-cli",
        enabled=trace,
        log_level="DEBUG" if verbose else "WARNING",
        json_logs=json_logs,
        console_export=trace,
    )


def _fail(error: Exception) -> None:
    """Report an error and exit with status 1."""
    error = classify_error(error)
    get_logger("tessera.cli").debug("Command failed", error=error.to_dict())

    console.print(f"[red]Error:[/red] {error.message}")
    for suggestion in error.suggestions:
        console.print(f"  [dim]- {suggestion}[/dim]")
    raise typer.Exit(code=1)


def _build_container(providers: List[str]) -> Container:
    container = create_container()

    for path in providers:
        provider = container.build_object(path)
        if not isinstance(provider, ServiceProvider):
            raise TesseraError(
                f"'{path}' is not an importable service provider class.",
                suggestions=["Pass the dotted path of a ServiceProvider subclass"],
            )
        container.register_service_provider(provider)

    return container


def _key_name(key) -> str:
    if isinstance(key, type):
        return f"{key.__module__}.{key.__qualname__}"
    return str(key)


# ----------------------------------------------------------------------
# Container and events
# ----------------------------------------------------------------------


@app.command("debug-events")
def debug_events(
    event: Optional[str] = typer.Argument(None, help="Only show listeners of this event"),
    providers: List[str] = typer.Option([], "--provider", "-p", help="Service provider to register (dotted path)")
):
    """Display the registered event listeners."""
    try:
        container = _build_container(providers)
        dispatcher: Dispatcher = container.get("dispatcher")
    except TesseraError as e:
        _fail(e)

    app_name = container.get("config").app_name

    if event:
        console.print(Panel.fit(
            f"[bold blue]{app_name} registered listeners for event \"{event}\"[/bold blue]",
            border_style="blue"
        ))

        if not dispatcher.count_listeners(event):
            console.print(f"[yellow][WARNING] The event \"{event}\" does not have any registered listeners.[/yellow]")
            return

        _render_listeners(dispatcher, event)
        return

    console.print(Panel.fit(
        f"[bold blue]{app_name} registered listeners grouped by event[/bold blue]",
        border_style="blue"
    ))

    listeners = dispatcher.get_listeners()
    if not listeners:
        console.print("[dim]// There are no registered listeners.[/dim]")
        return

    for name in sorted(listeners):
        console.print(f"[bold]\"{name}\" event[/bold]")
        _render_listeners(dispatcher, name)


def _render_listeners(dispatcher: Dispatcher, event: str) -> None:
    table = Table()
    table.add_column("Order", style="cyan")
    table.add_column("Callable", style="green")
    table.add_column("Priority")

    for order, listener in enumerate(dispatcher.get_listeners(event), start=1):
        table.add_row(
            f"#{order}",
            format_callable(listener),
            str(dispatcher.get_listener_priority(event, listener)),
        )

    console.print(table)


@app.command("debug-container")
def debug_container(
    providers: List[str] = typer.Option([], "--provider", "-p", help="Service provider to register (dotted path)")
):
    """Display the services registered with the container."""
    try:
        container = _build_container(providers)
    except TesseraError as e:
        _fail(e)

    table = Table(title="Registered Services")
    table.add_column("Key", style="cyan")
    table.add_column("Shared")
    table.add_column("Protected")
    table.add_column("Alias Of", style="yellow")

    for key in container.get_keys():
        target = container.resolve_alias(key)
        table.add_row(
            _key_name(key),
            "yes" if container.is_shared(key) else "no",
            "yes" if container.is_protected(key) else "no",
            _key_name(target) if target != key else "",
        )

    console.print(table)


# ----------------------------------------------------------------------
# Registry
# ----------------------------------------------------------------------


@app.command("registry-convert")
def registry_convert(
    input_file: Path = typer.Argument(..., help="Registry file to convert"),
    source: str = typer.Option("json", "--from", "-f", help="Format of the input file"),
    target: str = typer.Option("yaml", "--to", "-t", help="Format to convert to"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write to this file instead of stdout")
):
    """Convert a registry file between formats."""
    try:
        registry = Registry().load_file(input_file, source)
        converted = registry.to_string(target)
        if output is not None:
            output.write_text(converted, encoding="utf-8")
    except (TesseraError, OSError) as e:
        _fail(e)

    if output is None:
        console.print(converted, markup=False, highlight=False, soft_wrap=True)
    else:
        console.print(f"[green]Converted {input_file} ({source}) to {output} ({target})[/green]")


@app.command("registry-formats")
def registry_formats():
    """List the registry formats."""
    for name in available_formats():
        console.print(name)


# ----------------------------------------------------------------------
# Security
# ----------------------------------------------------------------------


@app.command("crypt-keygen")
def crypt_keygen(
    cipher: str = typer.Option("fernet", "--cipher", "-c", help="Cipher to generate a key for")
):
    """Generate a key for a cipher."""
    try:
        key = get_cipher(cipher).generate_key()
    except TesseraError as e:
        _fail(e)

    console.print(key.private, markup=False, highlight=False, soft_wrap=True)


@app.command("crypt-encrypt")
def crypt_encrypt(
    text: str = typer.Argument(..., help="Text to encrypt"),
    key: str = typer.Option(..., "--key", "-k", help="Key created by crypt-keygen"),
    cipher: str = typer.Option("fernet", "--cipher", "-c", help="Cipher to use")
):
    """Encrypt text with a key."""
    try:
        crypt = _crypt(cipher, key)
        token = crypt.encrypt(text)
    except TesseraError as e:
        _fail(e)

    console.print(token, markup=False, highlight=False, soft_wrap=True)


@app.command("crypt-decrypt")
def crypt_decrypt(
    token: str = typer.Argument(..., help="Token produced by crypt-encrypt"),
    key: str = typer.Option(..., "--key", "-k", help="Key the token was encrypted with"),
    cipher: str = typer.Option("fernet", "--cipher", "-c", help="Cipher to use")
):
    """Decrypt a token with a key."""
    try:
        crypt = _crypt(cipher, key)
        text = crypt.decrypt(token)
    except TesseraError as e:
        _fail(e)

    console.print(text, markup=False, highlight=False, soft_wrap=True)


def _crypt(cipher_name: str, private: str) -> Crypt:
    cipher = get_cipher(cipher_name)
    return Crypt(cipher, Key(cipher.key_type, private))


@app.command("hash-password")
def hash_password(
    password: str = typer.Argument(..., help="Plaintext password"),
    handler: str = typer.Option("bcrypt", "--handler", help="Password handler"),
    rounds: Optional[int] = typer.Option(None, "--rounds", "-r", help="bcrypt work factor")
):
    """Hash a password."""
    try:
        password_handler = get_password_handler(handler)
        if rounds is not None and isinstance(password_handler, BCryptHandler):
            password_handler = BCryptHandler(rounds=rounds)
        hashed = password_handler.hash_password(password)
    except (TesseraError, ValueError) as e:
        _fail(e)

    console.print(hashed, markup=False, highlight=False, soft_wrap=True)


@app.command("verify-password")
def verify_password(
    password: str = typer.Argument(..., help="Plaintext password"),
    hashed: str = typer.Argument(..., help="Stored hash"),
    handler: str = typer.Option("bcrypt", "--handler", help="Password handler")
):
    """Check a password against a hash."""
    try:
        valid = get_password_handler(handler).validate_password(password, hashed)
    except TesseraError as e:
        _fail(e)

    if not valid:
        console.print("[red]Password does not match[/red]")
        raise typer.Exit(code=1)

    console.print("[green]Password matches[/green]")


# ----------------------------------------------------------------------
# Regex
# ----------------------------------------------------------------------


@app.command("regex-match")
def regex_match(
    pattern: str = typer.Argument(..., help="Pattern with named capture groups"),
    subject: str = typer.Argument(..., help="Text to match against")
):
    """Show the named captures of a pattern match."""
    try:
        captures = regex.match(pattern, subject)
    except re.error as e:
        _fail(e)

    if not captures:
        console.print("[yellow]No named captures matched[/yellow]")
        raise typer.Exit(code=1)

    table = Table()
    table.add_column("Name", style="cyan")
    table.add_column("Value", style="green")

    for name, value in captures.items():
        table.add_row(name, value)

    console.print(table)


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
