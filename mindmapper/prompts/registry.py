"""Prompt registry for mind map prompt templates with detail-level instructions.

Templates live as .md files in the templates/ subdirectory and use
string.Template ($variable) substitution so they can carry literal JSON
braces in their response-format sections.
"""

from __future__ import annotations

import string
from pathlib import Path

from mindmapper.prompts.detail import detail_instruction

_TEMPLATES_DIR = Path(__file__).parent / "templates"

SYSTEM_TASK = "system"


class PromptRegistry:
    """Loads templates on first use and fills in the detail instruction."""

    def __init__(self, templates_dir: Path = _TEMPLATES_DIR) -> None:
        self._templates_dir = templates_dir
        self._cache: dict[str, string.Template] = {}

    def _load(self, task: str) -> string.Template:
        if task not in self._cache:
            path = self._templates_dir / f"{task}.md"
            if not path.exists():
                raise KeyError(f"No prompt template found for task '{task}' at {path}")
            self._cache[task] = string.Template(path.read_text(encoding="utf-8"))
        return self._cache[task]

    def system_prompt(self) -> str:
        return self._load(SYSTEM_TASK).template.strip()

    def get_prompt(self, task: str, detail_level: int | None = None, **kwargs: object) -> str:
        """Return the prompt for ``task`` with ``$detail_instruction`` resolved from the level."""
        return self._load(task).substitute(kwargs, detail_instruction=detail_instruction(detail_level))
