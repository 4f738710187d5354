"""LLM client wrapper around litellm.

Lets a model answer the same single-choice questions a user would answer
at the terminal, e.g. which semantic hint fits a field.
"""

import re

from litellm import completion

DEFAULT_MODEL = "claude-sonnet-4-20250514"

CHOICE_SYSTEM_PROMPT = """You help configure an API benchmark from an OpenAPI document.
You are given a question and a numbered list of options.
Answer with the number of the single best option and nothing else."""


class LlmClient:
    """Wrapper for LLM API calls via litellm."""

    def __init__(self, model: str | None = None):
        self.model = model or DEFAULT_MODEL

    def call(self, system: str, user: str) -> str:
        """Send a system+user message to the LLM and return the response text."""
        response = completion(
            model=self.model,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        return response.choices[0].message.content or ""

    def choose(self, question: str, options: list[str]) -> int | None:
        """Ask the model to pick one option. Returns a 0-based index or None."""
        numbered = "\n".join(f"{i}. {option}" for i, option in enumerate(options, start=1))
        answer = self.call(system=CHOICE_SYSTEM_PROMPT, user=f"{question}\n\n{numbered}")
        match = re.search(r"\d+", answer)
        if not match:
            return None
        index = int(match.group()) - 1
        return index if 0 <= index < len(options) else None
