"""
Env File Writer

Merges variables into a dotenv-style file such as .env.local.

Variables whose name starts with the managed prefix (AMAZEEAI_) are kept
together in a delimited block that this tool owns:

    ###> amazee.ai ###
    AMAZEEAI_LLM_KEY=...
    ###< amazee.ai ###

Every other variable is updated in place when it already exists, or
appended. Comments, blank lines and unrelated keys are left untouched.
"""

import logging
import re
from collections.abc import Mapping
from pathlib import Path

from amazee_ai_configure.core.interfaces import EnvWriter
from amazee_ai_configure.errors import EnvFileError

logger = logging.getLogger(__name__)

MANAGED_PREFIX = "AMAZEEAI_"
BLOCK_START = "###> amazee.ai ###"
BLOCK_END = "###< amazee.ai ###"

_NEEDS_QUOTING = re.compile(r"[\s#$=]")
_ESCAPE = re.compile(r"([\\\"'])")


def is_managed_key(key: str, prefix: str = MANAGED_PREFIX) -> bool:
    """Whether a variable belongs inside the managed block."""
    return key.startswith(prefix)


def format_env_line(key: str, value: str) -> str:
    """Format a key/value pair as a KEY=VALUE line, quoting when needed."""
    if _NEEDS_QUOTING.search(value):
        value = '"' + _ESCAPE.sub(r"\\\1", value) + '"'
    return f"{key}={value}"


def build_managed_block(variables: Mapping[str, str]) -> str:
    """Render the managed block for the given variables (no trailing newline)."""
    lines = [BLOCK_START]
    lines.extend(format_env_line(key, value) for key, value in variables.items())
    lines.append(BLOCK_END)
    return "\n".join(lines)


def find_managed_block(content: str) -> tuple[int, int] | None:
    """Return the (start, end) span of the first complete managed block, end exclusive.

    The block closes at the first end marker that has a start marker before
    it and opens at the nearest such start marker. A start marker without a
    matching end marker is treated as ordinary text.
    """
    end = content.find(BLOCK_END)
    while end != -1:
        start = content.rfind(BLOCK_START, 0, end)
        if start != -1:
            return start, end + len(BLOCK_END)
        end = content.find(BLOCK_END, end + len(BLOCK_END))
    return None


def _block_line_range(content: str) -> range:
    """Line indexes covered by the managed block, empty when there is none."""
    span = find_managed_block(content)
    if span is None:
        return range(0)
    start, end = span
    return range(content.count("\n", 0, start), content.count("\n", 0, end) + 1)


def _index_assignments(content: str) -> dict[str, int]:
    """Map each assigned key outside the managed block to its line index."""
    indexes: dict[str, int] = {}
    in_block = _block_line_range(content)

    for index, raw in enumerate(content.split("\n")):
        line = raw.strip()
        if index in in_block or not line or line.startswith("#") or "=" not in line:
            continue
        key = line.split("=", 1)[0].strip()
        indexes[key] = index

    return indexes


def _upsert_block(content: str, variables: Mapping[str, str]) -> str:
    if not variables:
        return content

    block = build_managed_block(variables)

    if content and not content.endswith("\n"):
        content += "\n"

    span = find_managed_block(content)
    if span is not None:
        start, end = span
        return content[:start] + block + content[end:]

    if content:
        return content + "\n" + block
    return block


def merge_env_content(
    existing: str,
    variables: Mapping[str, str],
    managed_prefix: str = MANAGED_PREFIX,
) -> str:
    """
    Merge variables into existing env file content.

    Args:
        existing: Current file content ("" for a new file)
        variables: Variables to write
        managed_prefix: Prefix of the variables kept in the managed block

    Returns:
        The new file content, ending with exactly one newline
    """
    managed: dict[str, str] = {}
    unmanaged: dict[str, str] = {}
    for key, value in variables.items():
        if is_managed_key(key, managed_prefix):
            managed[key] = value
        else:
            unmanaged[key] = value

    lines = existing.split("\n") if existing else []
    indexes = _index_assignments(existing)

    new_lines = []
    for key, value in unmanaged.items():
        formatted = format_env_line(key, value)
        if key in indexes:
            lines[indexes[key]] = formatted
        else:
            new_lines.append(formatted)

    content = "\n".join(lines)
    if new_lines:
        if content and not content.endswith("\n"):
            content += "\n"
        content += "\n".join(new_lines)

    content = _upsert_block(content, managed)

    if not content.strip("\n"):
        return ""
    return content.rstrip("\n") + "\n"


def upsert_env_file(
    path: Path,
    variables: Mapping[str, str],
    managed_prefix: str = MANAGED_PREFIX,
) -> None:
    """Read, merge and rewrite an env file in one pass."""
    path = Path(path)
    existing = ""

    if path.exists():
        try:
            existing = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise EnvFileError(f"Unable to read existing {path.name} file: {e}") from e

    content = merge_env_content(existing, variables, managed_prefix)

    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        raise EnvFileError(f"Unable to write to {path.name} file: {e}") from e


class EnvFileWriter(EnvWriter):
    """Writes variables into <project_dir>/.env.local."""

    def __init__(
        self,
        project_dir: Path,
        filename: str = ".env.local",
        managed_prefix: str = MANAGED_PREFIX,
    ):
        self.project_dir = Path(project_dir)
        self.filename = filename
        self.managed_prefix = managed_prefix

    @property
    def path(self) -> Path:
        return self.project_dir / self.filename

    def write(self, variables: Mapping[str, str]) -> None:
        upsert_env_file(self.path, variables, self.managed_prefix)
        logger.info(f"Updated {self.filename} with {len(variables)} variable(s)")
