"""LLM registry for the map API, served through OpenRouter.

All models are reached through OpenRouter's OpenAI-compatible API. Each map
task maps to a model chosen for its latency and output-size needs.
"""

from __future__ import annotations

from dataclasses import dataclass

from langchain_openai import ChatOpenAI

from mindmapper.config import Settings
from mindmapper.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class ModelSpec:
    slug: str
    temperature: float
    purpose: str
    max_tokens: int | None = None


MODEL_CONFIG: dict[str, ModelSpec] = {
    "map_generator": ModelSpec(
        slug="openai/gpt-4o",
        temperature=0.2,
        purpose="Turn free-form notes into a node/edge mind map",
        max_tokens=1024,
    ),
    "child_suggester": ModelSpec(
        slug="openai/gpt-4.1-mini",
        temperature=0.5,
        purpose="Suggest child topics for a single node",
        max_tokens=512,
    ),
    "insight_analyst": ModelSpec(
        slug="anthropic/claude-sonnet-4.6",
        temperature=0.4,
        purpose="High-level insight and blind spots for a whole map",
    ),
    "cluster_analyst": ModelSpec(
        slug="openai/gpt-4.1",
        temperature=0.2,
        purpose="Group map nodes into non-overlapping semantic clusters",
    ),
}

FALLBACK_CHAINS: dict[str, list[str]] = {
    "openai/gpt-4o": ["openai/gpt-4.1", "anthropic/claude-sonnet-4.6"],
    "openai/gpt-4.1": ["openai/gpt-4o", "google/gemini-2.5-flash"],
    "openai/gpt-4.1-mini": ["google/gemini-2.5-flash"],
    "anthropic/claude-sonnet-4.6": ["openai/gpt-4.1"],
}


class LLMRegistry:
    """Builds one chat model per task and resolves fallback chains."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings
        self._models: dict[str, ChatOpenAI] = {}
        self._slug_cache: dict[str, ChatOpenAI] = {}
        self._call_stats: dict[str, dict] = {}

        for task_name, spec in MODEL_CONFIG.items():
            self._models[task_name] = self._build_model(spec)
            self._call_stats[task_name] = {"calls": 0, "tokens": 0}

    def _build_model(self, spec: ModelSpec) -> ChatOpenAI:
        cache_key = f"{spec.slug}:{spec.temperature}:{spec.max_tokens}"
        if cache_key in self._slug_cache:
            return self._slug_cache[cache_key]

        kwargs: dict = {
            "model": spec.slug,
            "openai_api_key": self._settings.OPENROUTER_API_KEY,
            "openai_api_base": self._settings.OPENROUTER_BASE_URL,
            "temperature": spec.temperature,
            "default_headers": {"X-Title": "Mindmapper"},
        }
        if spec.max_tokens is not None:
            kwargs["max_tokens"] = spec.max_tokens

        model = ChatOpenAI(**kwargs)
        self._slug_cache[cache_key] = model
        return model

    def get_model(self, task: str) -> ChatOpenAI:
        if task not in self._models:
            raise KeyError(f"No model registered for task '{task}'")
        return self._models[task]

    def get_fallback_chain(self, task: str) -> list[ChatOpenAI]:
        """Return all fallback models for a task, in order."""
        spec = MODEL_CONFIG.get(task)
        if spec is None:
            return []
        return [
            self._build_model(
                ModelSpec(
                    slug=slug,
                    temperature=spec.temperature,
                    max_tokens=spec.max_tokens,
                    purpose=f"Fallback for {task}",
                )
            )
            for slug in FALLBACK_CHAINS.get(spec.slug, [])
        ]

    def record_usage(self, task: str, tokens: int) -> None:
        if task in self._call_stats:
            self._call_stats[task]["calls"] += 1
            self._call_stats[task]["tokens"] += tokens

    @property
    def stats(self) -> dict[str, dict]:
        return dict(self._call_stats)
