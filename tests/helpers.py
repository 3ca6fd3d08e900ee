"""Test doubles shared by the plugmate tests."""

import json
from pathlib import Path
from typing import List, Optional

from plugmate.commands.executor import CommandResult
from plugmate.llm.client import AskOptions, AskResult


class FakeClient:
    """LLM client stand-in returning canned replies and counting calls.

    The last reply is repeated once the list is exhausted.
    """

    def __init__(self, replies: List[str], provider: str = "fake", model: str = "fake-model"):
        self.replies = list(replies)
        self.provider = provider
        self.model = model
        self.prompts: List[str] = []

    @property
    def call_count(self) -> int:
        return len(self.prompts)

    def ask(self, prompt: str, options: Optional[AskOptions] = None) -> AskResult:
        self.prompts.append(prompt)
        text = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        return AskResult(text=text, provider=self.provider, model=self.model)


class FakeExecutor:
    """Command executor stand-in recording argument vectors and bridge scripts."""

    def __init__(self, exit_code: int = 0, output: str = "ok"):
        self.exit_code = exit_code
        self.output = output
        self.calls: List[List[str]] = []
        self.scripts: List[str] = []

    def run(self, argv):
        argv = list(argv)
        self.calls.append(argv)
        last = Path(argv[-1])
        if last.name.startswith("dm-plugin-") and last.suffix == ".ps1":
            self.scripts.append(last.read_text(encoding="utf-8"))
        return CommandResult(argv, self.exit_code, stdout=self.output, combined=self.output)


class FakeBridge:
    """Execution bridge stand-in."""

    def __init__(self, output: str = "done", error: Optional[Exception] = None):
        self.output = output
        self.error = error
        self.calls = []

    def invoke(self, name, args):
        self.calls.append((name, list(args)))
        if self.error is not None:
            raise self.error
        return self.output


def decision(**fields) -> str:
    """JSON text of a planner decision."""
    return json.dumps(fields)


def scripted_input(*answers: str):
    """An ``input`` replacement returning ``answers`` in order, then EOF."""
    queue = list(answers)
    prompts = []

    def _input(prompt: str = "") -> str:
        prompts.append(prompt)
        if not queue:
            raise EOFError
        return queue.pop(0)

    _input.prompts = prompts
    return _input
