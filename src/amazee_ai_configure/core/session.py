"""
API session state.

The client never stores the host, token or team itself. Callers hold an
ApiSession and pass it to every request, so it is always visible which
calls run authenticated.
"""

from dataclasses import dataclass, replace
from typing import Optional

from amazee_ai_configure.config import DEFAULT_API_HOST


@dataclass(frozen=True)
class ApiSession:
    """Immutable host/token/team triple for amazee.ai API calls."""

    host: str = DEFAULT_API_HOST
    token: str = ""
    team_id: Optional[int] = None

    @property
    def authenticated(self) -> bool:
        return bool(self.token)

    def with_token(self, token: str) -> "ApiSession":
        return replace(self, token=token)

    def with_team(self, team_id: int) -> "ApiSession":
        return replace(self, team_id=team_id)

    def with_host(self, host: str) -> "ApiSession":
        return replace(self, host=host)
