"""Single-choice selection shared by hint enrichment and the scenario builder.

Three implementations: a terminal prompt, a replay of recorded answers for
deterministic runs, and an LLM that answers on the user's behalf.
"""

import click

from slsbench.llm import LlmClient


class SelectionError(Exception):
    """Raised when no option could be selected."""


class Selector:
    """Picks one of ``options``; returns ``(index, option)``."""

    def select(self, label: str, options: list[str]) -> tuple[int, str]:
        raise NotImplementedError


class PromptSelector(Selector):
    """Numbered menu on the terminal."""

    def select(self, label: str, options: list[str]) -> tuple[int, str]:
        if not options:
            raise SelectionError(f"nothing to choose for '{label}'")
        click.echo(label)
        for i, option in enumerate(options, start=1):
            click.echo(f"  {i}) {option}")
        try:
            choice = click.prompt("Choice", type=click.IntRange(1, len(options)))
        except click.Abort as e:
            raise SelectionError(f"prompt aborted: {label}") from e
        return choice - 1, options[choice - 1]


class ScriptedSelector(Selector):
    """Replays a recorded sequence of indices, one per call."""

    def __init__(self, indices: list[int]):
        self._indices = list(indices)
        self._position = 0
        self.calls: list[tuple[str, list[str]]] = []

    @property
    def exhausted(self) -> bool:
        return self._position >= len(self._indices)

    def select(self, label: str, options: list[str]) -> tuple[int, str]:
        self.calls.append((label, list(options)))
        if self.exhausted:
            raise SelectionError(f"no recorded answer left for '{label}'")
        index = self._indices[self._position]
        self._position += 1
        if not 0 <= index < len(options):
            raise SelectionError(f"recorded answer {index} out of range for '{label}' ({len(options)} options)")
        return index, options[index]


class LlmSelector(Selector):
    """Lets a language model choose."""

    def __init__(self, client: LlmClient | None = None, model: str | None = None):
        self.client = client or LlmClient(model=model)

    def select(self, label: str, options: list[str]) -> tuple[int, str]:
        if not options:
            raise SelectionError(f"nothing to choose for '{label}'")
        try:
            index = self.client.choose(label, options)
        except Exception as e:
            raise SelectionError(f"model call failed for '{label}': {e}") from e
        if index is None:
            raise SelectionError(f"model gave no usable answer for '{label}'")
        return index, options[index]
