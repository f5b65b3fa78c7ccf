"""
Recovery protocol — what to do when a commit can't be measured.

In the interactive variant every per-commit failure (checkout failed,
measurement command failed, output that is not a number) is put in
front of the operator, who picks one of three decisions:

    r  retry   re-run checkout + measurement for the same commit now
    b  broken  mark the commit permanently broken, never retried again
    s  skip    leave it pending, move on, reconsider on a future run

Anything else re-prompts, forever. Reading the answer sits behind the
``Prompter`` protocol so the loop can be driven by a list of canned
answers in tests.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol

import click

logger = logging.getLogger(__name__)

PROMPT = "(r)etry, permanently mark (b)roken, or (s)kip for now: "
NO_OUTPUT = "[measurement command had no output]"


class Decision(StrEnum):
    """Operator decision for a failed commit."""

    RETRY = "r"
    BROKEN = "b"
    SKIP = "s"


@dataclass(frozen=True)
class FailureContext:
    """Everything the operator sees about one failed attempt."""

    commit_id: str
    description: str
    stage: str               # "checkout" | "measure" | "parse"
    error: str
    output: str = ""         # captured stdout of the measurement command
    stderr: str = ""
    attempt: int = 1


class Prompter(Protocol):
    """Reads one line of operator input."""

    def ask(self, message: str) -> str: ...


class ClickPrompter:
    """Prompter backed by ``click.prompt``.

    End of input raises ``click.Abort``, which ends the run the same
    way an interrupt would. With ``err=True`` the prompt goes to stderr,
    keeping stdout clean for JSON output.
    """

    def __init__(self, err: bool = False):
        self._err = err

    def ask(self, message: str) -> str:
        return click.prompt(
            message, default="", show_default=False, prompt_suffix="", err=self._err
        )


def parse_choice(raw: str) -> Decision | None:
    """Map an answer to a Decision, or None if it isn't one of r/b/s."""
    answer = raw.strip().lower()
    if len(answer) != 1:
        return None
    try:
        return Decision(answer)
    except ValueError:
        return None


def describe_failure(context: FailureContext) -> list[str]:
    """Lines shown to the operator before the prompt."""
    lines = [f"git-metrics: {context.commit_id} {context.stage} failed: {context.error}"]
    if context.stage in ("measure", "parse"):
        lines.append(context.output if context.output else NO_OUTPUT)
        if context.stderr:
            lines.append(context.stderr)
    return lines


class RecoveryProtocol:
    """Blocking decision function ``(FailureContext) -> Decision``."""

    def __init__(
        self,
        prompter: Prompter | None = None,
        echo: Callable[[str], None] = click.echo,
    ):
        self._prompter = prompter or ClickPrompter()
        self._echo = echo

    def __call__(self, context: FailureContext) -> Decision:
        self._echo("")
        for line in describe_failure(context):
            self._echo(line)

        while True:
            decision = parse_choice(self._prompter.ask(PROMPT))
            if decision is not None:
                logger.info("Operator chose %s for %s", decision.name, context.commit_id)
                return decision
