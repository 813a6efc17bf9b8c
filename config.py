"""Credence configuration — loaded from environment / .env file."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # --- LLM provider --------------------------------------------------
    llm_provider: str = "openai"  # "openai" | "azure" | "local"

    # OpenAI
    openai_api_key: str = ""
    openai_model: str = "gpt-4o-mini"

    # Azure OpenAI
    azure_openai_endpoint: str = ""
    azure_openai_api_key: str = ""
    azure_openai_deployment: str = ""

    # Local / Ollama
    local_llm_base_url: str = "http://localhost:11434/v1"
    local_llm_model: str = "llama3"

    # --- External signal adapters --------------------------------------
    news_api_key: str = ""
    news_api_url: str = "https://newsapi.org/v2/everything"
    google_fact_check_api_key: str = ""
    fact_check_api_url: str = "https://factchecktools.googleapis.com/v1alpha1/claims:search"
    adapter_timeout: float = 20.0  # seconds, per adapter
    llm_max_attempts: int = 1  # adapters are best-effort, at-most-once by default

    # --- Local toxicity model ------------------------------------------
    toxicity_model: str = "martin-ha/toxic-comment-model"
    load_toxicity_model: bool = True

    # --- Server ---------------------------------------------------------
    host: str = "0.0.0.0"
    port: int = 8000
    log_level: str = "info"

    # --- Integration ------------------------------------------------------
    internal_token: str = ""  # shared secret between the frontend gateway and this service
    allowed_origins: str = "*"  # comma-separated origins, e.g. "http://localhost:5173,https://app.example.com"

    # --- Pipeline -------------------------------------------------------
    analysis_temperature: float = 0.3
    max_content_length: int = 50_000


settings = Settings()
