"""
Secrets Writer

Hands sensitive values to an external secrets command, one invocation
per variable. The default command targets Symfony secrets:

    php bin/console secrets:set AMAZEEAI_LLM_KEY --no-interaction

The value is passed on stdin so it never shows up in the process list.
"""

import logging
import shlex
import subprocess
from collections.abc import Mapping
from pathlib import Path
from typing import Optional

from amazee_ai_configure.config import DEFAULT_SECRETS_COMMAND
from amazee_ai_configure.core.interfaces import EnvWriter
from amazee_ai_configure.errors import SecretsCommandError

logger = logging.getLogger(__name__)

KEY_PLACEHOLDER = "{key}"


def build_secret_command(template: str, key: str) -> list[str]:
    """Split the command template and substitute the variable name.

    The key is appended as the last argument when the template has no
    {key} placeholder.
    """
    try:
        args = shlex.split(template)
    except ValueError as e:
        raise SecretsCommandError(f"Invalid secrets command: {e}", key=key) from e
    if not args:
        raise SecretsCommandError("Secrets command is empty", key=key)

    if any(KEY_PLACEHOLDER in arg for arg in args):
        return [arg.replace(KEY_PLACEHOLDER, key) for arg in args]
    return [*args, key]


class SecretsWriter(EnvWriter):
    """Stores variables through an external secrets command."""

    def __init__(
        self,
        command: str = DEFAULT_SECRETS_COMMAND,
        cwd: Optional[Path] = None,
    ):
        self.command = command
        self.cwd = cwd

    def write(self, variables: Mapping[str, str]) -> None:
        for key, value in variables.items():
            args = build_secret_command(self.command, key)
            logger.info(f"Storing secret {key} via {args[0]}")

            try:
                result = subprocess.run(
                    args,
                    input=value + "\n",
                    capture_output=True,
                    text=True,
                    cwd=self.cwd,
                )
            except OSError as e:
                raise SecretsCommandError(
                    f"Could not run secrets command for {key}: {e}",
                    key=key,
                ) from e

            if result.returncode != 0:
                stderr = (result.stderr or "").strip()
                logger.error(f"Secrets command failed for {key} (rc={result.returncode}): {stderr}")
                raise SecretsCommandError(
                    f"Secrets command failed for {key} (exit code {result.returncode}): {stderr}",
                    key=key,
                    returncode=result.returncode,
                    stderr=stderr,
                )
