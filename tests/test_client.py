"""
Tests for the amazee.ai API client against a fake transport.
"""

import json

import httpx
import pytest

from amazee_ai_configure.core.client import AmazeeAiClient
from amazee_ai_configure.core.session import ApiSession
from amazee_ai_configure.errors import AmazeeAiApiError


@pytest.fixture
def session():
    return ApiSession(host="api.amazee.ai")


@pytest.fixture
def authed(mock_api):
    return ApiSession(host="api.amazee.ai", token=mock_api.VALID_ACCESS_TOKEN, team_id=mock_api.TEST_TEAM_ID)


class TestTransport:
    def test_url_built_from_session_host(self, mock_api):
        mock_api.add("GET", "/regions", json=[])
        with mock_api.client() as client:
            client.get_regions(ApiSession(host="test.api.local"))

        request = mock_api.requests[0]
        assert str(request.url) == "https://test.api.local/regions"

    def test_json_headers(self, mock_api, session):
        mock_api.add("GET", "/regions", json=[])
        with mock_api.client() as client:
            client.get_regions(session)

        request = mock_api.requests[0]
        assert request.headers["Content-Type"] == "application/json"
        assert request.headers["Accept"] == "application/json"
        assert "Authorization" not in request.headers

    def test_bearer_token_sent(self, mock_api, authed):
        mock_api.add("GET", "/regions", json=[])
        with mock_api.client() as client:
            client.get_regions(authed)

        assert mock_api.requests[0].headers["Authorization"] == f"Bearer {mock_api.VALID_ACCESS_TOKEN}"

    def test_empty_host_rejected(self, mock_api):
        with mock_api.client() as client:
            with pytest.raises(ValueError):
                client.get_regions(ApiSession(host=""))
        assert mock_api.requests == []

    def test_network_error_wrapped(self, mock_api, session):
        mock_api.add("GET", "/regions", error=httpx.ConnectError("connection refused"))
        with mock_api.client() as client:
            with pytest.raises(AmazeeAiApiError, match="Network error") as exc_info:
                client.get_regions(session)
        assert exc_info.value.http_status_code is None

    def test_invalid_json_raises(self, session):
        def handler(request):
            return httpx.Response(200, content=b"<html>oops</html>")

        client = AmazeeAiClient(http_client=httpx.Client(transport=httpx.MockTransport(handler)))
        with client:
            with pytest.raises(AmazeeAiApiError):
                client.get_regions(session)


class TestAuthentication:
    def test_request_code_posts_email(self, mock_api, session):
        mock_api.add("POST", "/auth/validate-email", json={"message": "sent"})
        with mock_api.client() as client:
            client.request_code(session, mock_api.TEST_EMAIL)

        request = mock_api.calls("POST", "/auth/validate-email")[0]
        assert json.loads(request.content) == {"email": mock_api.TEST_EMAIL}

    def test_request_code_failure_raises(self, mock_api, session):
        mock_api.add("POST", "/auth/validate-email", status=500, json={"detail": "boom"})
        with mock_api.client() as client:
            with pytest.raises(AmazeeAiApiError, match="Failed to request validation code") as exc_info:
                client.request_code(session, mock_api.TEST_EMAIL)
        assert exc_info.value.http_status_code == 500

    def test_validate_code_returns_token(self, mock_api, session):
        mock_api.add("POST", "/auth/sign-in", json={"access_token": "tok", "token_type": "bearer"})
        with mock_api.client() as client:
            token = client.validate_code(session, mock_api.TEST_EMAIL, mock_api.VALID_CODE)

        assert token == "tok"
        body = json.loads(mock_api.calls("POST", "/auth/sign-in")[0].content)
        assert body == {"username": mock_api.TEST_EMAIL, "verification_code": mock_api.VALID_CODE}

    @pytest.mark.parametrize("status", [401, 403])
    def test_validate_code_rejected_returns_none(self, mock_api, session, status):
        mock_api.add("POST", "/auth/sign-in", status=status, json={"detail": "Invalid code"})
        with mock_api.client() as client:
            assert client.validate_code(session, mock_api.TEST_EMAIL, "WRONG123") is None

    def test_validate_code_server_error_raises_with_status(self, mock_api, session):
        mock_api.add("POST", "/auth/sign-in", status=500, json={"detail": "Internal error"})
        with mock_api.client() as client:
            with pytest.raises(AmazeeAiApiError) as exc_info:
                client.validate_code(session, mock_api.TEST_EMAIL, mock_api.VALID_CODE)
        assert exc_info.value.http_status_code == 500

    def test_validate_code_without_token_returns_none(self, mock_api, session):
        mock_api.add("POST", "/auth/sign-in", json={"token_type": "bearer"})
        with mock_api.client() as client:
            assert client.validate_code(session, mock_api.TEST_EMAIL, mock_api.VALID_CODE) is None

    def test_login(self, mock_api, session):
        mock_api.add("POST", "/auth/login", json={"access_token": "tok"})
        with mock_api.client() as client:
            assert client.login(session, "user", "pass") == "tok"

    def test_login_failure_returns_empty(self, mock_api, session):
        mock_api.add("POST", "/auth/login", status=401, json={"detail": "bad"})
        with mock_api.client() as client:
            assert client.login(session, "user", "wrong") == ""

    def test_register_then_login(self, mock_api, session):
        mock_api.add("POST", "/auth/register", status=201, json={"id": 7})
        mock_api.add("POST", "/auth/login", json={"access_token": "tok"})
        with mock_api.client() as client:
            assert client.register(session, "new@amazee.io", "pw") == "tok"

        assert mock_api.calls("POST", "/auth/register")
        assert json.loads(mock_api.calls("POST", "/auth/login")[0].content)["username"] == "new@amazee.io"

    def test_register_failure_skips_login(self, mock_api, session):
        mock_api.add("POST", "/auth/register", status=400, json={"detail": "exists"})
        with mock_api.client() as client:
            assert client.register(session, "new@amazee.io", "pw") == ""
        assert mock_api.calls("POST", "/auth/login") == []

    def test_logout(self, mock_api, authed):
        mock_api.add("POST", "/auth/logout", json={"message": "ok"})
        with mock_api.client() as client:
            assert client.logout(authed) is True

    def test_logout_failure(self, mock_api, authed):
        mock_api.add("POST", "/auth/logout", status=500)
        with mock_api.client() as client:
            assert client.logout(authed) is False

    def test_fetch_team_id(self, mock_api, authed):
        mock_api.add("GET", "/auth/me", json={"id": 1, "team_id": 42})
        with mock_api.client() as client:
            assert client.fetch_team_id(authed) == 42

    def test_fetch_team_id_unauthorized(self, mock_api, session):
        mock_api.add("GET", "/auth/me", status=401, json={"detail": "Not authenticated"})
        with mock_api.client() as client:
            assert client.fetch_team_id(session) is None

    def test_fetch_team_id_without_team(self, mock_api, authed):
        mock_api.add("GET", "/auth/me", json={"id": 1, "team_id": None})
        with mock_api.client() as client:
            assert client.fetch_team_id(authed) is None

    @pytest.mark.parametrize("team_id", ["not-a-number", {"id": 42}])
    def test_fetch_team_id_malformed(self, mock_api, authed, team_id):
        mock_api.add("GET", "/auth/me", json={"id": 1, "team_id": team_id})
        with mock_api.client() as client:
            assert client.fetch_team_id(authed) is None


class TestProvisioning:
    def test_regions_exclude_inactive(self, mock_api, authed):
        mock_api.add("GET", "/regions", json=mock_api.REGIONS)
        with mock_api.client() as client:
            regions = client.get_regions(authed)

        assert regions == {
            "eu-west-1": "Europe (Ireland)",
            "us-east-1": "US East (N. Virginia)",
        }
        assert "ap-southeast-1" not in regions

    def test_regions_failure_raises(self, mock_api, authed):
        mock_api.add("GET", "/regions", status=503)
        with mock_api.client() as client:
            with pytest.raises(AmazeeAiApiError, match="Failed to retrieve available regions"):
                client.get_regions(authed)

    def test_private_keys_exclude_demo(self, mock_api, authed):
        mock_api.add("GET", "/private-ai-keys", json=mock_api.PRIVATE_KEYS)
        with mock_api.client() as client:
            keys = client.get_private_api_keys(authed)

        assert [k.name for k in keys] == ["production-key"]
        assert keys[0].litellm_token == mock_api.TEST_LITELLM_TOKEN
        assert keys[0].database_port == 5432

    def test_private_keys_non_list_response(self, mock_api, authed):
        mock_api.add("GET", "/private-ai-keys", json={"detail": "unexpected"})
        with mock_api.client() as client:
            assert client.get_private_api_keys(authed) == []

    def test_private_keys_keep_session_host(self, mock_api):
        mock_api.add("GET", "/private-ai-keys", json=[])
        with mock_api.client() as client:
            client.get_private_api_keys(ApiSession(host="test.api.local", token="tok"))
        assert mock_api.requests[0].url.host == "test.api.local"

    def test_get_private_api_key_by_token(self, mock_api, authed):
        mock_api.add("GET", "/private-ai-keys", json=mock_api.PRIVATE_KEYS)
        with mock_api.client() as client:
            key = client.get_private_api_key(authed, mock_api.TEST_LITELLM_TOKEN)
            missing = client.get_private_api_key(authed, "sk-unknown")

        assert key.name == "production-key"
        assert missing is None

    def test_get_private_api_key_error_returns_none(self, mock_api, authed):
        mock_api.add("GET", "/private-ai-keys", status=500)
        with mock_api.client() as client:
            assert client.get_private_api_key(authed, "sk-anything") is None

    def test_create_private_ai_key(self, mock_api, authed):
        mock_api.add("POST", "/private-ai-keys", status=201, json=mock_api.CREATED_KEY)
        with mock_api.client() as client:
            key = client.create_private_ai_key(authed, "us-east-1", "new-key", 42)

        body = json.loads(mock_api.calls("POST", "/private-ai-keys")[0].content)
        assert body == {"region_id": "us-east-1", "name": "new-key", "team_id": 42}
        assert key.litellm_token == "sk-amazee-created-token-67890"
        assert key.has_vector_db

    def test_create_private_ai_key_fetches_team(self, mock_api, authed):
        mock_api.add("GET", "/auth/me", json={"team_id": 99})
        mock_api.add("POST", "/private-ai-keys", status=201, json=mock_api.CREATED_KEY)
        with mock_api.client() as client:
            client.create_private_ai_key(authed, "us-east-1", "new-key")

        body = json.loads(mock_api.calls("POST", "/private-ai-keys")[0].content)
        assert body["team_id"] == 99

    def test_create_private_ai_key_without_team_raises(self, mock_api, authed):
        mock_api.add("GET", "/auth/me", status=401)
        with mock_api.client() as client:
            with pytest.raises(AmazeeAiApiError, match="Unable to determine team_id"):
                client.create_private_ai_key(authed, "us-east-1", "new-key")
        assert mock_api.calls("POST", "/private-ai-keys") == []

    def test_create_private_ai_key_failure_raises(self, mock_api, authed):
        mock_api.add("POST", "/private-ai-keys", status=422, json={"detail": "bad region"})
        with mock_api.client() as client:
            with pytest.raises(AmazeeAiApiError, match="Failed to create private AI key") as exc_info:
                client.create_private_ai_key(authed, "nowhere", "new-key", 42)
        assert exc_info.value.http_status_code == 422


class TestModels:
    def test_get_models(self, mock_api):
        mock_api.add("GET", "/model/info", json=mock_api.MODELS)
        gateway = ApiSession(host="eu-west-1.litellm.amazee.ai", token=mock_api.TEST_LITELLM_TOKEN)
        with mock_api.client() as client:
            models = client.get_models(gateway)

        assert set(models) == {"gpt-4", "text-embedding-ada-002", "video-generator"}
        assert models["gpt-4"].supports_chat
        assert models["gpt-4"].supported_openai_params == ["temperature", "max_tokens"]
        assert models["text-embedding-ada-002"].supports_embeddings
        assert models["video-generator"].supports_image_and_audio_to_video
        assert mock_api.requests[0].url.host == "eu-west-1.litellm.amazee.ai"

    def test_get_models_failure_raises(self, mock_api):
        mock_api.add("GET", "/model/info", status=401)
        with mock_api.client() as client:
            with pytest.raises(AmazeeAiApiError, match="Failed to retrieve available models"):
                client.get_models(ApiSession(host="gw", token="bad"))
