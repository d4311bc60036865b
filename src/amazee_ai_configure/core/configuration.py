"""
amazee.ai Configuration Workflow

Sequences the API calls and the two sinks behind `amazee-ai-configure
configure`: request a code, prompt for it, authenticate, fetch the team,
resolve or create the private AI key, and persist the credentials.
"""

import logging
import re
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.prompt import Prompt

from amazee_ai_configure.config import get_env_value
from amazee_ai_configure.core.client import AmazeeAiClient
from amazee_ai_configure.core.interfaces import EnvWriter
from amazee_ai_configure.core.resources import VDB_PORT_DEFAULT, PrivateAiKey
from amazee_ai_configure.core.session import ApiSession
from amazee_ai_configure.errors import AmazeeAiApiError, VerificationCodeError

logger = logging.getLogger(__name__)

VERIFICATION_CODE_PATTERN = re.compile(r"^[A-Z0-9]{8}$")
MAX_CODE_ATTEMPTS = 3
PRODUCTION_ENVIRONMENTS = ("prod", "production")

LLM_KEY = "AMAZEEAI_LLM_KEY"
LLM_API_URL = "AMAZEEAI_LLM_API_URL"
VDB_HOST = "AMAZEEAI_VDB_HOST"
VDB_PORT = "AMAZEEAI_VDB_PORT"
VDB_NAME = "AMAZEEAI_VDB_NAME"
VDB_USER = "AMAZEEAI_VDB_USER"
VDB_PASSWORD = "AMAZEEAI_VDB_PASSWORD"

# Stored as secrets in production; everything else stays in the env file
SENSITIVE_KEYS = (LLM_KEY, VDB_PASSWORD)
ALL_KEYS = (LLM_KEY, LLM_API_URL, VDB_HOST, VDB_PORT, VDB_NAME, VDB_USER, VDB_PASSWORD)


def build_env_vars(key: PrivateAiKey) -> dict[str, str]:
    """Map a private AI key to the AMAZEEAI_* variables."""
    env_vars = {
        LLM_KEY: key.litellm_token,
        LLM_API_URL: key.litellm_api_url,
    }

    if key.has_vector_db:
        env_vars[VDB_HOST] = key.database_host or ""
        env_vars[VDB_PORT] = str(key.database_port or VDB_PORT_DEFAULT)
        env_vars[VDB_NAME] = key.database_name or ""
        env_vars[VDB_USER] = key.database_username or ""
        env_vars[VDB_PASSWORD] = key.database_password or ""

    return env_vars


def is_production_environment(project_dir: Optional[Path] = None) -> bool:
    """Whether APP_ENV (default dev) names a production environment."""
    environment = get_env_value("APP_ENV", project_dir) or "dev"
    return environment in PRODUCTION_ENVIRONMENTS


def split_sensitive(env_vars: dict[str, str]) -> tuple[dict[str, str], dict[str, str]]:
    """Split variables into (secrets, plain) for secrets mode.

    The LLM key is always a secret; an empty DB password is dropped.
    """
    secrets = {LLM_KEY: env_vars.get(LLM_KEY, "")}
    if env_vars.get(VDB_PASSWORD):
        secrets[VDB_PASSWORD] = env_vars[VDB_PASSWORD]

    plain = {k: v for k, v in env_vars.items() if k not in SENSITIVE_KEYS}
    return secrets, plain


class AmazeeAiConfiguration:
    """
    Configuration steps for the amazee.ai provider.

    Owns the API session for the run: authenticate() adds the token and
    fetch_team_id() adds the team, so later steps run authenticated.
    """

    def __init__(
        self,
        client: AmazeeAiClient,
        env_writer: EnvWriter,
        secrets_writer: EnvWriter,
        session: Optional[ApiSession] = None,
        console: Optional[Console] = None,
        project_dir: Optional[Path] = None,
    ):
        self.client = client
        self.env_writer = env_writer
        self.secrets_writer = secrets_writer
        self.session = session or ApiSession()
        self.console = console or Console()
        self.project_dir = project_dir

    def is_configured(self) -> bool:
        """Whether both the LLM API URL and the vector DB host are already set."""
        return bool(
            get_env_value(LLM_API_URL, self.project_dir)
            and get_env_value(VDB_HOST, self.project_dir)
        )

    def use_secrets(self) -> bool:
        """Production environments (APP_ENV=prod|production) store secrets."""
        return is_production_environment(self.project_dir)

    def request_verification_code(self, email: str) -> None:
        self.client.request_code(self.session, email)

    def prompt_verification_code(self) -> str:
        """Ask for the emailed code, allowing MAX_CODE_ATTEMPTS tries."""
        for _ in range(MAX_CODE_ATTEMPTS):
            answer = Prompt.ask(
                "Enter the verification code from your email",
                console=self.console,
            ).strip()
            if VERIFICATION_CODE_PATTERN.fullmatch(answer):
                return answer
            self.console.print("[red]Please enter a valid verification code (8 characters).[/red]")

        self.console.print("[red]Too many invalid attempts.[/red]")
        raise VerificationCodeError("Too many invalid attempts.")

    def authenticate(self, email: str, code: str) -> str:
        """Exchange the code for an access token and keep it in the session."""
        token = self.client.validate_code(self.session, email, code)
        if token is None:
            raise AmazeeAiApiError("Invalid or expired verification code.")

        self.session = self.session.with_token(token)
        return token

    def fetch_team_id(self) -> int:
        team_id = self.client.fetch_team_id(self.session)
        if team_id is None:
            raise AmazeeAiApiError("Failed to fetch team ID.")

        self.session = self.session.with_team(team_id)
        return team_id

    def prompt_region(self, regions: dict[str, str]) -> str:
        """Let the user pick one of the regions; returns the region ID."""
        region_ids = list(regions)

        self.console.print("Select a region for your AI infrastructure:")
        for index, region_id in enumerate(region_ids):
            self.console.print(f"  [cyan]{index}[/cyan] {regions[region_id]}")

        answer = Prompt.ask(
            "Region",
            choices=[str(i) for i in range(len(region_ids))],
            default="0",
            console=self.console,
        )
        return region_ids[int(answer)]

    def resolve_private_key(self, private_key_name: str, team_id: int) -> PrivateAiKey:
        """Reuse the team's key with this name, or create one in a chosen region."""
        existing = next(
            (key for key in self.client.get_private_api_keys(self.session) if key.name == private_key_name),
            None,
        )
        if existing is not None:
            self.console.print(f"[yellow]![/yellow] Found existing API key for '{private_key_name}'")
            return existing

        self.console.print("No existing key found. Creating a new one...")

        regions = self.client.get_regions(self.session)
        if not regions:
            raise AmazeeAiApiError("No regions available. Please contact amazee.ai support.")

        region_id = self.prompt_region(regions)
        self.console.print(f"Creating API key in region: [green]{regions[region_id]}[/green]...")

        key = self.client.create_private_ai_key(self.session, region_id, private_key_name, team_id)
        self.console.print("[green]✓[/green] API key created successfully!")
        return key

    def persist_configuration(self, key: PrivateAiKey, use_secrets: bool) -> None:
        """Write the credentials to the env file, and to secrets in production."""
        env_vars = build_env_vars(key)

        if use_secrets:
            secret_vars, env_vars = split_sensitive(env_vars)
            self.secrets_writer.write(secret_vars)

        self.env_writer.write(env_vars)
