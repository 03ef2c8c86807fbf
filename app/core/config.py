from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field


class Settings(BaseSettings):
	model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

	APP_NAME: str = Field(default="VidGen API")
	DEBUG: bool = Field(default=False)
	API_PREFIX: str = Field(default="/api")

	# Database
	DATABASE_URL: str = Field(default="")

	# Auth / JWT
	JWT_SECRET: str = Field(default="dev-change-me")
	JWT_ALGORITHM: str = Field(default="HS256")
	ACCESS_TOKEN_EXPIRES_MINUTES: int = Field(default=60 * 24)

	# Rendered artifacts are addressed under this base (no real upload happens)
	CDN_BASE_URL: str = Field(default="https://cdn.example")

	# Text backends (OpenAI-compatible chat APIs)
	DEEPSEEK_API_KEY: str = Field(default="")
	DEEPSEEK_BASE_URL: str = Field(default="https://api.deepseek.com/v1")
	DEEPSEEK_MODEL: str = Field(default="deepseek-chat")
	XAI_API_KEY: str = Field(default="")
	XAI_BASE_URL: str = Field(default="https://api.x.ai/v1")
	GROK_MODEL: str = Field(default="grok-2-1212")
	GROK_VISION_MODEL: str = Field(default="grok-2-vision-1212")
	GROK_ENABLED: bool = Field(default=True)

	# Image backend
	HUGGINGFACE_API_KEY: str = Field(default="")
	HUGGINGFACE_API_URL: str = Field(default="https://api-inference.huggingface.co/models")
	HUGGINGFACE_IMAGE_MODEL: str = Field(default="stabilityai/stable-diffusion-xl-base-1.0")

	# Renderer completion note
	GEMINI_API_KEY: str = Field(default="")
	GEMINI_API_URL: str = Field(default="https://generativelanguage.googleapis.com/v1beta/models/gemini-pro:generateContent")

	# Pipeline tuning
	TEXT_BACKEND_TIMEOUT_SECONDS: float = Field(default=30.0)
	IMAGE_BACKEND_TIMEOUT_SECONDS: float = Field(default=60.0)
	EXTERNAL_RETRY_BACKOFF_SECONDS: float = Field(default=1.0)
	IMAGE_SYNTHESIS_CONCURRENCY: int = Field(default=4, ge=1, le=10)
	RENDER_SIMULATION_DELAY_SECONDS: float = Field(default=3.0)
	STATUS_POLL_INTERVAL_SECONDS: float = Field(default=5.0)

	# Azure Monitor / Application Insights
	AZURE_MONITOR_CONN_STR: str = Field(default="")
	ENABLE_APP_INSIGHTS: bool = Field(default=True)
	SAMPLING_RATIO: float = Field(default=1.0)


settings = Settings()
