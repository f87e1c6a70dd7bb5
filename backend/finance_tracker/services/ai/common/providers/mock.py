"""Mock provider: deterministic completions for tests and unconfigured installs."""

from __future__ import annotations

import time

from .base import BaseProvider, ProviderResult

# An empty array sends receipt extraction down its regex fallback.
DEFAULT_MOCK_RESPONSE = "[]"


class MockProvider(BaseProvider):
    name = "mock"

    def __init__(self, response_text: str = DEFAULT_MOCK_RESPONSE) -> None:
        self.response_text = response_text
        self.prompts: list[str] = []

    async def generate(
        self,
        prompt: str,
        *,
        model: str = "",
        temperature: float = 0.1,
        max_tokens: int = 1024,
        timeout_seconds: float = 20.0,
    ) -> ProviderResult:
        t0 = time.monotonic()
        self.prompts.append(prompt)
        text = self.response_text
        elapsed = (time.monotonic() - t0) * 1000
        return ProviderResult(
            raw_text=text,
            model=model or "mock-v1",
            provider=self.name,
            prompt_tokens=len(prompt.split()),
            completion_tokens=len(text.split()),
            latency_ms=round(elapsed, 2),
        )
