"""OpenRouter LLM client factory and the Generator adapter built on it."""
from __future__ import annotations

from typing import Any

from openai import AsyncOpenAI

from brevity.config import settings
from brevity.models.capabilities import LLMResponse

ROLE_MODEL_FIELDS = {
    "planner": "planner_model",
    "synthesizer": "synthesizer_model",
    "finalizer": "finalizer_model",
    "extractor": "extractor_model",
    "navigator": "navigator_model",
}


def get_client() -> AsyncOpenAI:
    """Get OpenRouter client via OpenAI-compatible SDK."""
    base_url = settings.openrouter_base_url.strip() or "https://openrouter.ai/api/v1"
    return AsyncOpenAI(
        api_key=settings.openrouter_api_key,
        base_url=base_url,
    )


def get_model() -> str:
    """Get the active OpenRouter model id."""
    if settings.openrouter_model:
        return settings.openrouter_model
    return settings.default_model


def model_for_role(role: str) -> str:
    """Per-role override, else the active model."""
    field_name = ROLE_MODEL_FIELDS.get(role)
    override = getattr(settings, field_name, "") if field_name else ""
    override = override.strip() if isinstance(override, str) else ""
    return override or get_model()


_client: AsyncOpenAI | None = None


def client() -> AsyncOpenAI:
    """Get or create the LLM client."""
    global _client
    if _client is None:
        _client = get_client()
    return _client


class OpenRouterGenerator:
    """Generator backed by an OpenAI-compatible chat completions endpoint."""

    def __init__(self, model: str | None = None, *, max_tokens: int | None = None, openai_client: Any = None):
        self.model = model or get_model()
        self.max_tokens = max_tokens or int(settings.llm_max_tokens)
        self._client = openai_client

    @staticmethod
    def _temperature_for_model(model: str) -> int:
        # Some OpenAI GPT-5-compatible gateways reject temperature=0.
        lowered = (model or "").lower()
        if "gpt-5" in lowered:
            return 1
        return 0

    @staticmethod
    def _reasoning(message: Any) -> str:
        for attr in ("reasoning", "reasoning_content"):
            value = getattr(message, attr, None)
            if isinstance(value, str) and value.strip():
                return value
        return ""

    @staticmethod
    def _cost(usage: Any) -> float:
        if usage is None:
            return 0.0
        reported = getattr(usage, "cost", None)
        if isinstance(reported, (int, float)):
            return float(reported)
        input_tokens = getattr(usage, "prompt_tokens", 0) or 0
        output_tokens = getattr(usage, "completion_tokens", 0) or 0
        return (
            input_tokens * float(settings.llm_input_cost_per_mtok)
            + output_tokens * float(settings.llm_output_cost_per_mtok)
        ) / 1_000_000

    async def generate(self, system_prompt: str, user_prompt: str) -> LLMResponse:
        active_client = self._client or client()
        response = await active_client.chat.completions.create(
            model=self.model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
            max_tokens=self.max_tokens,
            temperature=self._temperature_for_model(self.model),
            extra_body={"usage": {"include": True}},
        )
        if not response.choices:
            return LLMResponse(text="", cost=self._cost(getattr(response, "usage", None)))
        message = response.choices[0].message
        return LLMResponse(
            text=getattr(message, "content", None) or "",
            reasoning=self._reasoning(message),
            cost=self._cost(getattr(response, "usage", None)),
        )
