from typing import List

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field

class Settings(BaseSettings):
	gemini_api_key: str | None = Field(default=None, validation_alias="GEMINI_API_KEY")
	# Provider can be "vertex" (Vertex AI Express) or "ai_studio" (Generative Language API)
	gemini_provider: str = Field(default="ai_studio", validation_alias="GEMINI_PROVIDER")
	gemini_model: str = Field(default="gemini-2.5-flash", validation_alias="GEMINI_MODEL")
	# Vertex configuration
	vertex_region: str = Field(default="us-central1", validation_alias="GEMINI_VERTEX_REGION")
	vertex_project: str | None = Field(default=None, validation_alias="GEMINI_VERTEX_PROJECT")

	# OpenRouter fallback configuration (optional)
	openrouter_api_key: str | None = Field(default=None, validation_alias="OPENROUTER_API_KEY")
	openrouter_model: str = Field(default="openai/gpt-4o-mini", validation_alias="OPENROUTER_MODEL")
	openrouter_base_url: str = Field(default="https://openrouter.ai/api/v1/chat/completions", validation_alias="OPENROUTER_BASE_URL")
	openrouter_referer: str = Field(default="https://localhost", validation_alias="OPENROUTER_HTTP_REFERER")
	openrouter_title: str = Field(default="Knowledge Assessor", validation_alias="OPENROUTER_TITLE")

	# Timeouts: per upstream HTTP call, and for a whole /assess pipeline run
	request_timeout_seconds: float = Field(default=30.0, validation_alias="REQUEST_TIMEOUT_SECONDS")
	pipeline_timeout_seconds: float = Field(default=120.0, validation_alias="PIPELINE_TIMEOUT_SECONDS")

	# Speech-to-Text
	audio_min_bytes: int = Field(default=1000, validation_alias="AUDIO_MIN_BYTES")
	speech_language_code: str = Field(default="en-US", validation_alias="SPEECH_LANGUAGE_CODE")
	speech_alternative_languages: List[str] = Field(
		default_factory=lambda: ["hi-IN", "ar-SA", "es-ES", "fr-FR"],
		validation_alias="SPEECH_ALTERNATIVE_LANGUAGES",
	)

	# Session language preference
	session_cookie_name: str = Field(default="assessor_session", validation_alias="SESSION_COOKIE_NAME")
	session_retention_days: int = Field(default=7, validation_alias="SESSION_RETENTION_DAYS")

	# Database
	database_url: str | None = Field(default=None, validation_alias="DATABASE_URL")

	log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")

	# pydantic-settings v2 style config
	model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
