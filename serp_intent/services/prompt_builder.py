from __future__ import annotations

from dataclasses import dataclass

from serp_intent.services.prompt_store import render_prompt


@dataclass(frozen=True, slots=True)
class Prompt:
    system_instruction: str
    user_message: str

    def to_messages(self) -> list[dict[str, str]]:
        return [
            {"role": "system", "content": self.system_instruction},
            {"role": "user", "content": self.user_message},
        ]


def build_prompt(keyword: str, search_context: str, *, system_prompt: str | None = None) -> Prompt:
    """Render the five-section intent report prompt for ``keyword``."""
    return Prompt(
        system_instruction=system_prompt or render_prompt("intent.system"),
        user_message=render_prompt(
            "intent.user",
            keyword=keyword,
            search_context=search_context,
        ).strip(),
    )
