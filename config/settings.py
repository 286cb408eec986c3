from __future__ import annotations

import os
from functools import lru_cache
from typing import List, Optional

from dotenv import load_dotenv


load_dotenv()


REQUIRED_ENV_VARS = (
    "AZURE_OPENAI_ENDPOINT",
    "AZURE_OPENAI_API_KEY",
    "AZURE_OPENAI_DEPLOYMENT",
    "AZURE_OPENAI_API_VERSION",
    "PORT",
)

DEFAULT_ALLOWED_ORIGINS = "http://localhost:8000,http://127.0.0.1:8000"


class ConfigMissing(RuntimeError):
    """Raised at startup when required environment variables are absent."""

    def __init__(self, missing: List[str]):
        self.missing = list(missing)
        super().__init__(
            "The following required environment variables are missing: "
            + ", ".join(self.missing)
        )


def _split_csv(value: Optional[str]) -> List[str]:
    return [item.strip() for item in (value or "").split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables.

    Keep all credentials and config centralized here. Construction fails with
    ConfigMissing when a required variable is unset or empty.
    """

    def __init__(self) -> None:
        missing = [name for name in REQUIRED_ENV_VARS if not os.getenv(name)]
        if missing:
            raise ConfigMissing(missing)

        self.app_env: str = os.getenv("APP_ENV", "development")
        self.azure_endpoint: str = os.environ["AZURE_OPENAI_ENDPOINT"].rstrip("/")
        self.azure_api_key: str = os.environ["AZURE_OPENAI_API_KEY"]
        self.azure_deployment: str = os.environ["AZURE_OPENAI_DEPLOYMENT"]
        self.azure_api_version: str = os.environ["AZURE_OPENAI_API_VERSION"]
        self.port: int = int(os.environ["PORT"])

        self.allowed_origins: List[str] = _split_csv(
            os.getenv("ALLOWED_ORIGINS", DEFAULT_ALLOWED_ORIGINS)
        )
        self.handbook_pdf_path: str = os.getenv(
            "HANDBOOK_PDF_PATH", "data/employee_handbook.pdf"
        )
        self.chunk_size: int = int(os.getenv("CHUNK_SIZE", "800"))
        self.retrieval_top_k: int = int(os.getenv("RETRIEVAL_TOP_K", "3"))
        self.company_name: str = os.getenv("COMPANY_NAME", "Contoso Electronics")

        self.temperature: float = float(os.getenv("MODEL_TEMPERATURE", "0.9"))
        self.max_tokens: int = int(os.getenv("MODEL_MAX_TOKENS", "4096"))
        self.completions_temperature: float = float(
            os.getenv("COMPLETIONS_TEMPERATURE", "0.7")
        )
        self.completions_max_tokens: int = int(
            os.getenv("COMPLETIONS_MAX_TOKENS", "1024")
        )
        self.model_timeout: float = float(os.getenv("MODEL_TIMEOUT_SECONDS", "60"))
        self.stream_chunk_delay: float = float(os.getenv("STREAM_CHUNK_DELAY", "0.05"))

        self.max_sessions: int = int(os.getenv("MAX_SESSIONS", "100"))
        self.session_ttl_hours: int = int(os.getenv("SESSION_TTL_HOURS", "24"))

    def completions_url(self) -> str:
        return (
            f"{self.azure_endpoint}/openai/deployments/{self.azure_deployment}"
            f"/chat/completions?api-version={self.azure_api_version}"
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
