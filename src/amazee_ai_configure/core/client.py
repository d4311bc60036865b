"""
amazee.ai API Client

Thin request/response mapping over the amazee.ai REST API. Every call
takes an ApiSession carrying the host, bearer token and team, and maps
one domain operation to one HTTP request.
"""

import logging
from typing import Any, Optional

import httpx

from amazee_ai_configure.core.resources import Model, PrivateAiKey
from amazee_ai_configure.core.session import ApiSession
from amazee_ai_configure.errors import AmazeeAiApiError

logger = logging.getLogger(__name__)

DEMO_LLM_API_URL = "https://demo.litellm.ai"
INVALID_CODE_STATUSES = (401, 403)


def _wrap(message: str, error: AmazeeAiApiError) -> AmazeeAiApiError:
    """Re-raise an API error under a more specific message, keeping its status."""
    return AmazeeAiApiError(
        f"{message}: {error}",
        http_status_code=error.http_status_code,
        response_body=error.response_body,
    )


class AmazeeAiClient:
    """
    Client for amazee.ai API interactions.

    Usage:
        with AmazeeAiClient() as client:
            session = ApiSession()
            client.request_code(session, "user@example.com")
            token = client.validate_code(session, "user@example.com", "ABCD1234")
    """

    def __init__(
        self,
        http_client: Optional[httpx.Client] = None,
        timeout: float = 30.0,
    ):
        self._http = http_client or httpx.Client(timeout=httpx.Timeout(timeout))

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "AmazeeAiClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    # ── Authentication ─────────────────────────────────────────────

    def login(self, session: ApiSession, username: str, password: str) -> str:
        """Log in with username and password.

        Returns:
            The access token, or an empty string on failure
        """
        try:
            data = self._request(session, "POST", "/auth/login", {
                "username": username,
                "password": password,
            })
        except AmazeeAiApiError as e:
            logger.error(f"Failed to login to amazee.ai: {e}")
            return ""

        token = data.get("access_token") if isinstance(data, dict) else None
        if not token:
            logger.error("Login returned success with empty access token.")
            return ""
        return token

    def logout(self, session: ApiSession) -> bool:
        """Log out of the API. Returns whether the call succeeded."""
        try:
            self._request(session, "POST", "/auth/logout")
            return True
        except AmazeeAiApiError as e:
            logger.error(f"Failed to log out of amazee.ai: {e}")
            return False

    def request_code(self, session: ApiSession, email: str) -> None:
        """Ask the API to email a verification code to the given address."""
        try:
            self._request(session, "POST", "/auth/validate-email", {"email": email})
        except AmazeeAiApiError as e:
            logger.error(f"Failed to request validation code: {e}")
            raise _wrap("Failed to request validation code", e) from e

    def validate_code(self, session: ApiSession, email: str, code: str) -> Optional[str]:
        """
        Exchange an email verification code for an access token.

        Returns:
            The access token, or None if the code was rejected (401/403)

        Raises:
            AmazeeAiApiError: for any other failure
        """
        try:
            data = self._request(session, "POST", "/auth/sign-in", {
                "username": email,
                "verification_code": code,
            })
        except AmazeeAiApiError as e:
            if e.http_status_code in INVALID_CODE_STATUSES:
                logger.info(f"Invalid verification code for email: {email}")
                return None
            logger.error(f"Failed to validate code: {e}")
            raise _wrap("Failed to validate verification code", e) from e

        if not isinstance(data, dict):
            return None
        return data.get("access_token") or None

    def register(self, session: ApiSession, email: str, password: str) -> str:
        """Register a new account and log in.

        Returns:
            The access token, or an empty string on failure
        """
        try:
            self._request(session, "POST", "/auth/register", {
                "email": email,
                "password": password,
            })
        except AmazeeAiApiError as e:
            logger.error(f"Failed to register with amazee.ai: {e}")
            return ""

        return self.login(session, email, password)

    def fetch_team_id(self, session: ApiSession) -> Optional[int]:
        """Check the session is authorized and return the user's team ID.

        Returns:
            The team ID, or None if unauthorized or the user has no team
        """
        try:
            data = self._request(session, "GET", "/auth/me")
        except AmazeeAiApiError as e:
            logger.debug(f"Authorization check failed: {e}")
            return None

        if not isinstance(data, dict) or data.get("team_id") is None:
            return None

        try:
            return int(data["team_id"])
        except (TypeError, ValueError):
            logger.error(f"Unexpected team_id in /auth/me response: {data['team_id']!r}")
            return None

    # ── Provisioning ───────────────────────────────────────────────

    def get_regions(self, session: ApiSession) -> dict[str, str]:
        """Return active regions as {region_id: region_name}."""
        try:
            data = self._request(session, "GET", "/regions")
        except AmazeeAiApiError as e:
            logger.error(f"Failed to get regions: {e}")
            raise _wrap("Failed to retrieve available regions", e) from e

        regions: dict[str, str] = {}
        if isinstance(data, list):
            for region in data:
                if isinstance(region, dict) and region.get("is_active") and "id" in region:
                    regions[str(region["id"])] = str(region.get("name") or region["id"])
        return regions

    def create_private_ai_key(
        self,
        session: ApiSession,
        region_id: str,
        name: str,
        team_id: Optional[int] = None,
    ) -> PrivateAiKey:
        """
        Create a private AI key in a region.

        Args:
            session: Authenticated session
            region_id: Region to provision the key in
            name: Name for the key
            team_id: Team to own the key; fetched from /auth/me when omitted
        """
        if team_id is None:
            logger.info("No team_id provided, fetching from /auth/me")
            team_id = self.fetch_team_id(session)
            if team_id is None:
                raise AmazeeAiApiError("Unable to determine team_id - not authorized")

        try:
            data = self._request(session, "POST", "/private-ai-keys", {
                "region_id": region_id,
                "name": name,
                "team_id": team_id,
            })
        except AmazeeAiApiError as e:
            logger.error(f"Failed to create private AI key: {e}")
            raise _wrap("Failed to create private AI key", e) from e

        return PrivateAiKey.from_response(data if isinstance(data, dict) else {})

    def get_private_api_keys(self, session: ApiSession) -> list[PrivateAiKey]:
        """List the private AI keys visible to the session, without demo keys."""
        try:
            data = self._request(session, "GET", "/private-ai-keys")
        except AmazeeAiApiError as e:
            logger.error(f"Failed to get private API keys: {e}")
            raise _wrap("Failed to retrieve private API keys", e) from e

        if not isinstance(data, list):
            return []

        return [
            PrivateAiKey.from_response(item)
            for item in data
            if isinstance(item, dict) and item.get("litellm_api_url") != DEMO_LLM_API_URL
        ]

    def get_private_api_key(self, session: ApiSession, api_key: str) -> Optional[PrivateAiKey]:
        """Find a private AI key by its LiteLLM token."""
        try:
            keys = self.get_private_api_keys(session)
        except AmazeeAiApiError as e:
            logger.error(f"Failed to get private API key: {e}")
            return None

        for key in keys:
            if key.litellm_token == api_key:
                return key
        return None

    def get_models(self, session: ApiSession) -> dict[str, Model]:
        """Return the models available to the session as {name: Model}.

        The session host must point at the LLM gateway and the token must
        be the private AI key.
        """
        try:
            data = self._request(session, "GET", "/model/info")
        except AmazeeAiApiError as e:
            logger.error(f"Failed to get models: {e}")
            raise _wrap("Failed to retrieve available models", e) from e

        models: dict[str, Model] = {}
        entries = data.get("data") if isinstance(data, dict) else None
        if isinstance(entries, list):
            for entry in entries:
                if isinstance(entry, dict) and entry.get("model_name"):
                    model = Model.from_response(entry)
                    models[model.name] = model
        return models

    # ── Transport ──────────────────────────────────────────────────

    def _request(
        self,
        session: ApiSession,
        method: str,
        endpoint: str,
        body: Optional[dict[str, Any]] = None,
    ) -> Any:
        """
        Send one request and decode the JSON response.

        Returns:
            The decoded JSON body, or None for an empty body

        Raises:
            ValueError: if the session has no host
            AmazeeAiApiError: on transport failure, non-2xx status or invalid JSON
        """
        if not session.host:
            raise ValueError("API host is not configured")

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if session.token:
            headers["Authorization"] = f"Bearer {session.token}"

        url = f"https://{session.host}{endpoint}"

        try:
            response = self._http.request(method, url, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Network error during API request: {e}")
            raise AmazeeAiApiError(f"Network error: {e}") from e

        if response.is_error:
            raise AmazeeAiApiError(
                f"HTTP {response.status_code} returned for {method} {endpoint}",
                http_status_code=response.status_code,
                response_body=response.text,
            )

        if not response.content:
            return None

        try:
            return response.json()
        except ValueError as e:
            raise AmazeeAiApiError(
                f"Invalid JSON returned for {method} {endpoint}",
                http_status_code=response.status_code,
                response_body=response.text,
            ) from e
