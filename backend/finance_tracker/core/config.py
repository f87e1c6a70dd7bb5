from functools import lru_cache
import json
from typing import Annotated

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

# CSV-or-JSON values are parsed by the validators below, not by the env source.
CsvList = Annotated[list[str], NoDecode]


DEFAULT_RECEIPT_TYPES = [
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/gif",
]


def _parse_models_value(value) -> dict[str, list[str]]:
    if not value:
        return {}
    if isinstance(value, dict):
        return {str(k).lower(): [str(m).strip() for m in v if str(m).strip()] for k, v in value.items()}
    if isinstance(value, str):
        try:
            parsed = json.loads(value)
        except ValueError:
            return {}
        if isinstance(parsed, dict):
            return _parse_models_value(parsed)
    return {}


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        validate_by_name=True,
        populate_by_name=True,
    )
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: str = ""
    supabase_jwt_secret: str = ""
    supabase_jwt_audience: str = "authenticated"
    database_url: str = ""

    docs_enabled: bool = Field(default=True)
    openapi_enabled: bool = Field(default=True)
    expose_error_details: bool = False

    security_headers_enabled: bool = Field(
        default=True,
        validation_alias=AliasChoices("SECURITY_HEADERS_ENABLED", "SECURE_HEADERS_ENABLED"),
    )

    enable_receipt_ocr: bool = True
    receipt_max_bytes: int = 10 * 1024 * 1024
    receipt_allowed_types: CsvList = Field(default_factory=lambda: list(DEFAULT_RECEIPT_TYPES))
    receipt_storage_bucket: str = "receipts"

    rate_limit_upload_enabled: bool = True
    rate_limit_upload_per_min: int = 20

    vision_provider: str = "google"
    google_vision_api_key: str = Field(
        default="",
        validation_alias=AliasChoices("GOOGLE_VISION_API_KEY", "GOOGLE_API_KEY"),
    )
    vision_timeout_seconds: float = 15.0

    gemini_api_key: str = ""
    ai_receipt_provider: str = "gemini"
    ai_receipt_model: str = "gemini-2.5-flash"
    ai_allowed_providers: CsvList = Field(default_factory=lambda: ["gemini", "mock"])
    ai_allowed_models: Annotated[dict[str, list[str]], NoDecode] = Field(
        default_factory=lambda: {
            "gemini": ["gemini-2.5-flash", "gemini-2.5-pro", "gemini-2.0-flash"],
        }
    )
    ai_temperature: float = 0.1
    ai_max_tokens: int = 1024
    ai_timeout_seconds: float = 20.0

    default_category_color: str = "#6366f1"
    default_category_icon: str = "📁"

    cors_allow_origins: CsvList = Field(default_factory=list)
    cors_allow_methods: CsvList = Field(default_factory=lambda: [
        "GET",
        "POST",
        "PUT",
        "DELETE",
        "OPTIONS",
    ])
    cors_allow_headers: CsvList = Field(default_factory=lambda: [
        "Authorization",
        "Content-Type",
        "Accept",
    ])

    @field_validator(
        "cors_allow_origins",
        "cors_allow_methods",
        "cors_allow_headers",
        "receipt_allowed_types",
        "ai_allowed_providers",
        mode="before",
    )
    @classmethod
    def _split_csv(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            raw = value.strip()
            if raw == "":
                return []
            if raw.startswith("["):
                try:
                    parsed = json.loads(raw)
                except ValueError:
                    parsed = None
                if isinstance(parsed, list):
                    return [str(item).strip() for item in parsed if str(item).strip()]
            return [item.strip() for item in raw.split(",") if item.strip()]
        return value

    @field_validator("ai_allowed_providers", mode="after")
    @classmethod
    def _lower_providers(cls, value: list[str]) -> list[str]:
        return [item.lower() for item in value]

    @field_validator("ai_allowed_models", mode="before")
    @classmethod
    def _parse_models(cls, value):
        return _parse_models_value(value)


@lru_cache
def get_settings() -> Settings:
    return Settings()
