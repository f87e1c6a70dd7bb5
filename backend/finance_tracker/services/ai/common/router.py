"""AI Router: resolves provider + model for a scope from settings."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from finance_tracker.core.config import get_settings

from .providers import BaseProvider, get_provider

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ResolvedConfig:
    """Final provider + generation parameters for one call."""

    provider: BaseProvider
    model: str
    temperature: float
    max_tokens: int
    timeout_seconds: float


def resolve(scope: str) -> ResolvedConfig:
    """Resolve provider + model for *scope*.

    ``receipt_extract`` reads ``AI_RECEIPT_PROVIDER`` / ``AI_RECEIPT_MODEL``;
    any other scope gets the mock provider. A model outside the provider's
    allowlist is replaced by the first allowed model.
    """
    settings = get_settings()

    provider_name = ""
    model = ""
    if scope == "receipt_extract":
        provider_name = (settings.ai_receipt_provider or "").lower().strip()
        model = (settings.ai_receipt_model or "").strip()

    if not provider_name:
        provider_name = "mock"

    allowed_models = settings.ai_allowed_models.get(provider_name, [])
    if allowed_models and model and model not in allowed_models:
        logger.warning(
            "Model %r not in allowlist for %r - using first allowed: %r",
            model,
            provider_name,
            allowed_models[0],
        )
        model = allowed_models[0]

    if allowed_models and not model:
        model = allowed_models[0]

    return ResolvedConfig(
        provider=get_provider(provider_name),
        model=model,
        temperature=settings.ai_temperature,
        max_tokens=settings.ai_max_tokens,
        timeout_seconds=settings.ai_timeout_seconds,
    )
