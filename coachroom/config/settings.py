"""
Application settings and configuration management.

Uses pydantic-settings for environment variable loading.
"""

from functools import lru_cache

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "CoachRoom"
    app_version: str = "0.1.0"
    debug: bool = False
    host: str = "0.0.0.0"
    port: int = 8000

    # Gemini
    gemini_api_key: str = ""
    gemini_text_model: str = "gemini-3-flash-preview"
    gemini_live_model: str = "gemini-2.5-flash-native-audio-preview-09-2025"
    gemini_live_voice: str = "Orus"

    # Live session credentials
    live_token_url: str = ""  # Trusted backend issuing short-lived tokens
    live_use_ephemeral_tokens: bool = False

    # Live audio
    live_input_sample_rate: int = 16000
    live_output_sample_rate: int = 24000
    live_volume_sample_every: int = 5

    # Session storage
    session_backend: str = "firestore"  # Options: firestore, memory
    firebase_project_id: str = ""
    firebase_credentials_path: str = ""

    # Neo4j skill graph
    neo4j_uri: str = ""
    neo4j_username: str = ""
    neo4j_password: str = ""
    neo4j_database: str = "neo4j"

    # Langfuse tracing
    langfuse_enabled: bool = False
    langfuse_public_key: str = ""
    langfuse_secret_key: str = ""
    langfuse_base_url: str = "https://cloud.langfuse.com"

    # Debrief
    debrief_read_attempts: int = 3
    debrief_read_delay_seconds: float = 1.0

    # Auth - accept X-User-Id instead of a Firebase ID token (development only)
    allow_header_user_id: bool = False

    # CORS - stored as comma-separated string in env
    cors_origins_str: str = Field(
        default="http://localhost:3000,http://localhost:8000",
        validation_alias="cors_origins"
    )

    @computed_field
    @property
    def cors_origins(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.cors_origins_str.split(",") if origin.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
