"""
amazee-ai-configure CLI

Command-line wizard that connects a project to the amazee.ai provider.
"""

import socket
from pathlib import Path
from typing import NoReturn, Optional
from urllib.parse import urlparse

import typer
from pydantic import EmailStr, TypeAdapter, ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm
from rich.table import Table

from amazee_ai_configure import __version__
from amazee_ai_configure.config import Settings, get_env_value, read_project_env
from amazee_ai_configure.core.client import AmazeeAiClient
from amazee_ai_configure.core.configuration import (
    ALL_KEYS,
    LLM_API_URL,
    LLM_KEY,
    SENSITIVE_KEYS,
    AmazeeAiConfiguration,
    is_production_environment,
)
from amazee_ai_configure.core.session import ApiSession
from amazee_ai_configure.errors import AmazeeAiError
from amazee_ai_configure.logging import get_logger, setup_logging
from amazee_ai_configure.storage.env_file import EnvFileWriter
from amazee_ai_configure.storage.secrets import SecretsWriter

app = typer.Typer(
    name="amazee-ai-configure",
    help="Configure the amazee.ai provider via email-based authentication",
    add_completion=False,
)
console = Console()
logger = get_logger("cli")

_EMAIL = TypeAdapter(EmailStr)


def default_private_key_name() -> str:
    return socket.gethostname() or "amazee_ai"


def mask_secret(value: str, visible: int = 20) -> str:
    """Show only the first characters of a secret."""
    return value[:visible] + "..."


def is_valid_email(email: str) -> bool:
    try:
        _EMAIL.validate_python(email)
    except ValidationError:
        return False
    return True


def create_client(settings: Settings) -> AmazeeAiClient:
    """Create the API client for a run."""
    return AmazeeAiClient(timeout=settings.api.timeout)


def _fail(message: str, error: Optional[Exception] = None) -> NoReturn:
    """Log and report a failed step, then exit with status 1."""
    if error is not None:
        logger.error(f"{message}: {error}")
        console.print(f"[red]✗[/red] {message}: {error}")
    else:
        logger.error(message)
        console.print(f"[red]✗[/red] {message}")
    raise typer.Exit(1)


def _section(title: str) -> None:
    console.print(f"\n[bold cyan]{title}[/bold cyan]")


@app.command()
def configure(
    email: str = typer.Argument(..., help="The email address to use for authentication"),
    test_api_host: Optional[str] = typer.Argument(
        None,
        help="Test API hostname. To be used in test mode, for development purpose only.",
    ),
    private_key_name: Optional[str] = typer.Option(
        None, "--private-key-name", "-k", help="Private key name (defaults to hostname)"
    ),
    test_mode: bool = typer.Option(False, "--test-mode", "-t", help="Enable test mode."),
    project_dir: Path = typer.Option(
        Path("."), "--project-dir", "-d", help="Project directory holding .env.local",
        exists=True, file_okay=False, dir_okay=True,
    ),
    debug: bool = typer.Option(False, "--debug", help="Print debug logs to the console"),
):
    """Configure the amazee.ai provider via email-based authentication."""
    settings = Settings.load(project_dir)
    setup_logging(level=settings.log_level, debug_mode=debug)

    key_name = private_key_name or default_private_key_name()

    console.print(Panel("amazee.ai Provider Configuration", border_style="cyan"))

    host = settings.api.host
    if test_mode:
        if not test_api_host or not test_api_host.strip():
            _fail("Test API hostname cannot be empty when using the test mode.")
        host = test_api_host.strip()
        console.print(f"[yellow]Test mode:[/yellow] using API host {host}")
    elif test_api_host:
        console.print("[yellow]Ignoring test API hostname outside of test mode.[/yellow]")

    client = create_client(settings)
    env_writer = EnvFileWriter(project_dir, settings.env_file)
    configuration = AmazeeAiConfiguration(
        client=client,
        env_writer=env_writer,
        secrets_writer=SecretsWriter(settings.secrets.command, cwd=project_dir),
        session=ApiSession(host=host),
        console=console,
        project_dir=project_dir,
    )
    use_secrets = configuration.use_secrets()

    with client:
        if configuration.is_configured():
            console.print("[yellow]An existing amazee.ai configuration was detected.[/yellow]")
            if not Confirm.ask(
                "Do you want to overwrite the existing configuration?", default=False, console=console
            ):
                console.print("No changes were made.")
                return

        if not is_valid_email(email):
            _fail("Invalid email address provided.")

        # Step 1: Request verification code
        _section("1. Email Verification")
        console.print(f"Sending verification code to [green]{email}[/green]...")
        try:
            configuration.request_verification_code(email)
        except AmazeeAiError as e:
            _fail("Failed to send verification code", e)
        console.print("[green]✓[/green] Verification code sent! Check your inbox.")

        # Step 2: Prompt for the code and authenticate
        _section("2. Enter Verification Code")
        try:
            code = configuration.prompt_verification_code()
        except AmazeeAiError as e:
            _fail("Failed to validate code", e)

        console.print("Validating code...")
        try:
            configuration.authenticate(email, code)
        except AmazeeAiError as e:
            _fail("Authentication failed", e)
        console.print("[green]✓[/green] Authentication successful!")

        # Step 3: Team
        _section("3. Fetching Account Info")
        try:
            team_id = configuration.fetch_team_id()
        except AmazeeAiError as e:
            _fail("Failed to fetch team ID", e)
        console.print(f"Team ID: [green]{team_id}[/green]")

        # Step 4: Existing or new key
        _section("4. API Key Configuration")
        try:
            key = configuration.resolve_private_key(key_name, team_id)
        except AmazeeAiError as e:
            _fail("Failed to configure API key", e)

    # Step 5: Persist
    _section("5. Saving Configuration")
    try:
        configuration.persist_configuration(key, use_secrets)
    except AmazeeAiError as e:
        _fail("Failed to save configuration", e)

    if use_secrets:
        console.print(f"[green]✓[/green] Sensitive values saved as secrets, the rest to {settings.env_file}")
    else:
        console.print(f"[green]✓[/green] Configuration saved to {settings.env_file}")

    table = Table(title="Configuration Complete", show_header=False)
    table.add_column("Setting", style="cyan")
    table.add_column("Value")
    table.add_row("LLM API URL", key.litellm_api_url)
    table.add_row("LLM Key", mask_secret(key.litellm_token))
    table.add_row("VectorDB Host", key.database_host or "N/A")
    console.print(table)

    console.print("\n[green]amazee.ai provider has been configured successfully![/green]")
    if use_secrets:
        console.print("[dim]The credentials are stored as secrets.[/dim]")
    else:
        console.print(f"[dim]The credentials are stored in {settings.env_file}.[/dim]")
        console.print("[dim]For production deployments, consider storing these values as secrets:[/dim]")
        for secret_key in SENSITIVE_KEYS:
            console.print(f"[dim]  php bin/console secrets:set {secret_key}[/dim]")


@app.command()
def status(
    project_dir: Path = typer.Option(
        Path("."), "--project-dir", "-d", help="Project directory holding .env.local",
        exists=True, file_okay=False, dir_okay=True,
    ),
):
    """Show which amazee.ai settings the project currently has."""
    env = read_project_env(project_dir)

    table = Table(title="amazee.ai Configuration Status")
    table.add_column("Setting", style="cyan")
    table.add_column("Status", style="green")
    table.add_column("Value", style="dim")

    for name in ALL_KEYS:
        value = (env.get(name) or "").strip()
        if not value:
            table.add_row(name, "○ Not set", "")
        elif name in SENSITIVE_KEYS:
            table.add_row(name, "✓ Set", mask_secret(value, visible=6))
        else:
            table.add_row(name, "✓ Set", value)

    table.add_row(
        "Storage",
        "Secrets" if is_production_environment(project_dir) else "Env file",
        "",
    )

    console.print(table)


@app.command()
def models(
    project_dir: Path = typer.Option(
        Path("."), "--project-dir", "-d", help="Project directory holding .env.local",
        exists=True, file_okay=False, dir_okay=True,
    ),
):
    """List the models available to the configured private AI key."""
    settings = Settings.load(project_dir)
    setup_logging(level=settings.log_level)

    api_url = get_env_value(LLM_API_URL, project_dir)
    api_key = get_env_value(LLM_KEY, project_dir)
    if not api_url or not api_key:
        console.print(f"[red]✗[/red] {LLM_API_URL} and {LLM_KEY} must be set.")
        console.print("[dim]Run `amazee-ai-configure configure <email>` first.[/dim]")
        raise typer.Exit(1)

    host = urlparse(api_url).netloc or api_url
    session = ApiSession(host=host, token=api_key)

    try:
        with create_client(settings) as client:
            available = client.get_models(session)
    except AmazeeAiError as e:
        _fail("Could not list models", e)

    table = Table(title="Available amazee.ai Models")
    table.add_column("Name", style="cyan")
    table.add_column("Chat")
    table.add_column("Embeddings")
    table.add_column("Image input")
    table.add_column("Moderation")

    def mark(flag: bool) -> str:
        return "✓" if flag else ""

    for model in available.values():
        table.add_row(
            model.name,
            mark(model.supports_chat),
            mark(model.supports_embeddings),
            mark(model.supports_image_input),
            mark(model.supports_moderation),
        )

    console.print(table)
    console.print(f"\n[dim]{len(available)} model(s) at {host}[/dim]\n")


@app.command()
def version():
    """Show version information."""
    console.print(f"amazee-ai-configure v{__version__}")


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
