"""
Shared test fixtures for amazee-ai-configure.

Provides an isolated environment, a temporary project directory and a
fake amazee.ai API served through httpx.MockTransport.
"""

import os
import pytest
from pathlib import Path
from typing import Any, Optional

import httpx

from amazee_ai_configure.core.client import AmazeeAiClient


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Strip amazee settings from the environment and isolate the data dir."""
    for key in list(os.environ):
        if key.startswith(("AMAZEEAI_", "AMAZEE_API_", "AMAZEE_SECRETS_", "AMAZEE_CONFIGURE_")) or key == "APP_ENV":
            monkeypatch.delenv(key, raising=False)

    data_dir = tmp_path / "amazee_data"
    monkeypatch.setenv("AMAZEE_CONFIGURE_DATA", str(data_dir))
    return data_dir


@pytest.fixture
def project_dir(tmp_path: Path) -> Path:
    """Provide an empty project directory."""
    path = tmp_path / "project"
    path.mkdir()
    return path


class MockApi:
    """Routes requests by (method, path) to canned JSON responses."""

    TEST_EMAIL = "dev@amazee.io"
    VALID_CODE = "ABCD1234"
    VALID_ACCESS_TOKEN = "eyJ0eXAiOiJKV1QiLCJhbGciOiJIUzI1NiJ9.mock_token_payload"
    TEST_TEAM_ID = 42
    TEST_REGION_ID = "eu-west-1"
    TEST_LITELLM_TOKEN = "sk-amazee-test-token-12345"
    TEST_LITELLM_API_URL = "https://eu-west-1.litellm.amazee.ai"

    REGIONS = [
        {"id": "eu-west-1", "name": "Europe (Ireland)", "is_active": True},
        {"id": "us-east-1", "name": "US East (N. Virginia)", "is_active": True},
        {"id": "ap-southeast-1", "name": "Asia Pacific (Singapore)", "is_active": False},
    ]

    PRIVATE_KEYS = [
        {
            "id": 1,
            "name": "production-key",
            "region": "eu-west-1",
            "litellm_token": TEST_LITELLM_TOKEN,
            "litellm_api_url": TEST_LITELLM_API_URL,
            "database_host": "db.eu-west-1.amazee.ai",
            "database_port": 5432,
            "database_name": "vectordb_prod",
            "database_username": "ai_user",
            "database_password": "secure_password_123",
        },
        {
            "id": 2,
            "name": "demo-key",
            "region": "demo",
            "litellm_token": "demo-token",
            "litellm_api_url": "https://demo.litellm.ai",
        },
    ]

    CREATED_KEY = {
        "id": 3,
        "name": "new-key",
        "region": "us-east-1",
        "litellm_token": "sk-amazee-created-token-67890",
        "litellm_api_url": "https://us-east-1.litellm.amazee.ai",
        "database_host": "db.us-east-1.amazee.ai",
        "database_port": 5432,
        "database_name": "vectordb_new",
        "database_username": "ai_user",
        "database_password": "created_password",
    }

    MODELS = {
        "data": [
            {
                "model_name": "gpt-4",
                "model_info": {
                    "mode": "chat",
                    "supports_image_input": True,
                    "supported_openai_params": ["temperature", "max_tokens"],
                },
            },
            {
                "model_name": "text-embedding-ada-002",
                "model_info": {"mode": "embedding"},
            },
            {
                "model_name": "video-generator",
                "model_info": {
                    "mode": "generation",
                    "supports_image_input": True,
                    "supports_audio_input": True,
                    "supports_video_output": True,
                },
            },
        ]
    }

    def __init__(self):
        self.routes: dict[tuple[str, str], tuple[int, Any, Optional[Exception]]] = {}
        self.requests: list[httpx.Request] = []

    def add(
        self,
        method: str,
        path: str,
        status: int = 200,
        json: Any = None,
        error: Optional[Exception] = None,
    ) -> "MockApi":
        self.routes[(method, path)] = (status, json, error)
        return self

    def happy_path(self, keys: Optional[list] = None) -> "MockApi":
        """Register successful responses for the whole configure flow."""
        self.add("POST", "/auth/validate-email", json={"message": "Verification code sent"})
        self.add("POST", "/auth/sign-in", json={"access_token": self.VALID_ACCESS_TOKEN, "token_type": "bearer"})
        self.add("GET", "/auth/me", json={"id": 1, "email": self.TEST_EMAIL, "team_id": self.TEST_TEAM_ID})
        self.add("GET", "/regions", json=self.REGIONS)
        self.add("GET", "/private-ai-keys", json=self.PRIVATE_KEYS if keys is None else keys)
        self.add("POST", "/private-ai-keys", status=201, json=self.CREATED_KEY)
        return self

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        status, body, error = self.routes.get(
            (request.method, request.url.path),
            (404, {"detail": "Not Found"}, None),
        )
        if error is not None:
            raise error
        return httpx.Response(status, json=body)

    def client(self) -> AmazeeAiClient:
        transport = httpx.MockTransport(self.handler)
        return AmazeeAiClient(http_client=httpx.Client(transport=transport))

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]


@pytest.fixture
def mock_api() -> MockApi:
    """Provide an empty fake API; register routes per test."""
    return MockApi()
