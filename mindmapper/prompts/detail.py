"""Detail level (1-5) handling shared by the client and the prompt builders."""

from __future__ import annotations

MIN_DETAIL_LEVEL = 1
MAX_DETAIL_LEVEL = 5

DETAIL_INSTRUCTIONS: dict[int, str] = {
    1: "Be extremely brief. Use one-word or short-phrase labels.",
    2: "Be brief. Use short phrases or words per label.",
    3: "Give a brief sentence for each node or concept.",
    4: "Provide a full sentence for each node or concept.",
    5: (
        "Be highly detailed and reflective. Give in-depth insight, multiple examples, "
        "related subtopics, and optional philosophical or abstract reasoning."
    ),
}


def clamp_detail_level(level: int | None, default: int = 3) -> int:
    if level is None:
        level = default
    return max(MIN_DETAIL_LEVEL, min(MAX_DETAIL_LEVEL, int(level)))


def detail_instruction(level: int | None) -> str:
    return DETAIL_INSTRUCTIONS[clamp_detail_level(level)]
