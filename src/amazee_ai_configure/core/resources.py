"""
amazee.ai API resources

Typed views of the JSON objects returned by the amazee.ai API:
- PrivateAiKey: a provisioned LLM key with optional vector database access
- Model: a model exposed by the LLM gateway and the features it supports
"""

from dataclasses import dataclass, field
from typing import Any, Optional

VDB_PORT_DEFAULT = 5432  # Postgres


@dataclass
class PrivateAiKey:
    """A private AI key and the credentials that come with it."""

    name: str = ""
    litellm_token: str = ""
    litellm_api_url: str = ""
    database_host: Optional[str] = None
    database_port: Optional[int] = None
    database_name: Optional[str] = None
    database_username: Optional[str] = None
    database_password: Optional[str] = None
    region: Optional[str] = None
    id: Optional[int] = None

    @property
    def has_vector_db(self) -> bool:
        return bool(self.database_host)

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "PrivateAiKey":
        """Build a key from an API response object, tolerating missing fields."""
        database_host = data.get("database_host") or None
        database_port = data.get("database_port")
        if database_port is None and database_host:
            database_port = VDB_PORT_DEFAULT

        return cls(
            name=data.get("name") or "",
            litellm_token=data.get("litellm_token") or "",
            litellm_api_url=data.get("litellm_api_url") or "",
            database_host=database_host,
            database_port=int(database_port) if database_port is not None else None,
            database_name=data.get("database_name"),
            database_username=data.get("database_username"),
            database_password=data.get("database_password"),
            region=data.get("region"),
            id=data.get("id"),
        )


@dataclass
class Model:
    """A model offered by the LLM gateway."""

    name: str
    supports_image_input: bool = False
    supports_image_output: bool = False
    supports_audio_input: bool = False
    supports_audio_output: bool = False
    supports_video_output: bool = False
    supports_embeddings: bool = False
    supports_chat: bool = False
    supports_moderation: bool = False
    supported_openai_params: list[str] = field(default_factory=list)

    @property
    def supports_image_and_audio_to_video(self) -> bool:
        return self.supports_image_input and self.supports_audio_input and self.supports_video_output

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "Model":
        """Build a model from one entry of GET /model/info."""
        info = data.get("model_info") or {}
        mode = info.get("mode")

        return cls(
            name=data["model_name"],
            supports_image_input=bool(info.get("supports_image_input")),
            supports_image_output=bool(info.get("supports_image_output")),
            supports_audio_input=bool(info.get("supports_audio_input")),
            supports_audio_output=bool(info.get("supports_audio_output")),
            supports_video_output=bool(info.get("supports_video_output")),
            supports_embeddings=mode == "embedding",
            supports_chat=mode == "chat",
            supports_moderation=bool(info.get("supports_moderation")),
            supported_openai_params=list(info.get("supported_openai_params") or []),
        )
