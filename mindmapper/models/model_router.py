"""Model router with fallback chains and LangSmith tracing."""

from __future__ import annotations

import time

from langchain_core.messages import HumanMessage, SystemMessage
from langsmith import traceable

from mindmapper.models.llm_registry import LLMRegistry
from mindmapper.utils.exceptions import LLMError
from mindmapper.utils.logging import get_logger

logger = get_logger(__name__)


def _text_of(result: object) -> str:
    content = getattr(result, "content", result)
    if isinstance(content, list):
        # Some providers return typed content blocks.
        return "".join(
            block.get("text", "") for block in content if isinstance(block, dict) and block.get("type") == "text"
        )
    return content if isinstance(content, str) else str(content)


class ModelRouter:
    """Sends a system + user prompt to a task's model, falling back on failure."""

    def __init__(self, registry: LLMRegistry) -> None:
        self._registry = registry

    @traceable(run_type="chain", name="mindmap_model_invoke")
    async def complete(self, task: str, system_prompt: str, user_prompt: str) -> str:
        """Return the text of the first model in the task's chain that answers.

        Raises:
            LLMError: every model in the chain failed.
        """
        primary = self._registry.get_model(task)
        fallbacks = self._registry.get_fallback_chain(task)
        all_models = [("primary", primary), *((f"fallback-{i}", fb) for i, fb in enumerate(fallbacks))]
        messages = [SystemMessage(content=system_prompt), HumanMessage(content=user_prompt)]

        last_error: Exception | None = None
        for label, model in all_models:
            try:
                start = time.monotonic()
                result = await model.ainvoke(messages)
                elapsed_ms = int((time.monotonic() - start) * 1000)
            except Exception as exc:
                last_error = exc
                logger.error(
                    "model_invoke_failed",
                    task=task,
                    label=label,
                    model=getattr(model, "model_name", "unknown"),
                    error=str(exc),
                )
                continue

            usage = getattr(result, "usage_metadata", None) or {}
            tokens = usage.get("total_tokens", 0) if isinstance(usage, dict) else 0
            self._registry.record_usage(task, tokens)

            log = logger.warning if label != "primary" else logger.debug
            log(
                "model_fallback_used" if label != "primary" else "model_invoked",
                task=task,
                label=label,
                model=getattr(model, "model_name", "unknown"),
                tokens=tokens,
                elapsed_ms=elapsed_ms,
            )
            return _text_of(result)

        raise LLMError(f"All models failed for task '{task}': {last_error}") from last_error
