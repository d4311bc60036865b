"""Core interfaces for pluggable configuration sinks."""

from abc import ABC, abstractmethod
from collections.abc import Mapping


class EnvWriter(ABC):
    """Abstract sink for environment variables."""

    @abstractmethod
    def write(self, variables: Mapping[str, str]) -> None:
        """Write or update the given variables.

        Raises:
            AmazeeAiError: a subclass describing why the write failed
        """
