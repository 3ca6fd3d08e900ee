"""Output writers for the session loop: coloured terminal text or one JSON object."""

import json
import sys
from dataclasses import asdict, dataclass, field
from typing import List, Optional, TextIO

from ..constants import (
    CLR_BOLD_CYAN, CLR_BOLD_YELLOW, CLR_DIM, CLR_RED, CLR_RESET, CLR_YELLOW,
)

STATUS_PENDING = "pending"
STATUS_OK = "ok"
STATUS_ERROR = "error"
STATUS_CANCELED = "canceled"

MAX_STEPS_MESSAGE = "Reached max agent steps; stopping."
LOOP_MESSAGE = "Agent repeated the same action; stopping to avoid loop."


@dataclass
class StepRecord:
    step: int
    action: str
    target: str = ""
    args: str = ""
    reason: str = ""
    risk: str = ""
    risk_reason: str = ""
    status: str = STATUS_PENDING


@dataclass
class SessionOutcome:
    provider: str = ""
    model: str = ""
    action: str = "answer"
    answer: str = ""
    steps: List[StepRecord] = field(default_factory=list)
    error: str = ""

    def to_dict(self) -> dict:
        data = asdict(self)
        return {key: value for key, value in data.items() if value or key in ("action", "steps")}


class OutputWriter:
    """Interface shared by the terminal and JSON writers."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream or sys.stdout
        self.outcome = SessionOutcome()

    def provider_info(self, provider: str, model: str) -> None:
        self.outcome.provider = provider
        self.outcome.model = model

    def step_info(self, step: int, max_steps: int, summary: str, reason: str,
                  risk: str, risk_reason: str) -> None:
        pass

    def add_step(self, record: StepRecord) -> None:
        self.outcome.steps.append(record)

    def answer(self, text: str) -> None:
        self.outcome.action = "answer"
        self.outcome.answer = text

    def partial_answer(self, text: str) -> None:
        if text.strip():
            self.outcome.answer = text

    def error(self, message: str, answer: str = "", hint: str = "") -> None:
        self.outcome.action = "error"
        self.outcome.error = message
        if answer.strip():
            self.outcome.answer = answer.strip()

    def canceled(self, answer: str = "") -> None:
        self.outcome.action = "answer"
        self.outcome.answer = answer.strip()

    def max_steps_reached(self, answer: str = "") -> None:
        self.outcome.action = "answer"
        self.partial_answer(answer)
        if not self.outcome.answer.strip():
            self.outcome.answer = MAX_STEPS_MESSAGE

    def loop_detected(self, answer: str = "") -> None:
        self.outcome.action = "answer"
        self.outcome.answer = answer.strip() or LOOP_MESSAGE

    def finalize(self) -> None:
        pass

    def _print(self, text: str = "") -> None:
        print(text, file=self.stream)


class TTYWriter(OutputWriter):
    """Human readable, coloured output printed as the session progresses."""

    def provider_info(self, provider: str, model: str) -> None:
        super().provider_info(provider, model)
        self._print(f"{CLR_DIM}[{provider} | {model}]{CLR_RESET}")

    def step_info(self, step, max_steps, summary, reason, risk, risk_reason) -> None:
        if reason.strip():
            self._print(f"Reason: {reason}")
        self._print(f"{CLR_BOLD_CYAN}Plan step {step}/{max_steps}:{CLR_RESET} {summary}")
        self._print(f"{CLR_YELLOW}Risk:{CLR_RESET} {risk.upper()} ({risk_reason})")

    def answer(self, text: str) -> None:
        super().answer(text)
        self._print(text)

    def partial_answer(self, text: str) -> None:
        super().partial_answer(text)
        if text.strip():
            self._print(text)

    def error(self, message: str, answer: str = "", hint: str = "") -> None:
        super().error(message, answer, hint)
        self._print(f"{CLR_RED}Error:{CLR_RESET} {message}")
        if hint:
            self._print(f"{CLR_YELLOW}{hint}{CLR_RESET}")
        if answer.strip():
            self._print(answer)

    def canceled(self, answer: str = "") -> None:
        super().canceled(answer)
        self._print(f"{CLR_BOLD_YELLOW}Canceled.{CLR_RESET}")
        if answer.strip():
            self._print(answer)

    def max_steps_reached(self, answer: str = "") -> None:
        super().max_steps_reached(answer)
        self._print(f"{CLR_BOLD_YELLOW}{MAX_STEPS_MESSAGE}{CLR_RESET}")

    def loop_detected(self, answer: str = "") -> None:
        super().loop_detected(answer)
        self._print(f"{CLR_BOLD_YELLOW}{LOOP_MESSAGE}{CLR_RESET}")
        if answer.strip():
            self._print(answer)


class JSONWriter(OutputWriter):
    """Collects the session and prints a single JSON object at the end."""

    def __init__(self, stream: Optional[TextIO] = None):
        super().__init__(stream)
        self._emitted = False

    def finalize(self) -> None:
        if self._emitted:
            return
        self._emitted = True
        self._print(json.dumps(self.outcome.to_dict(), indent=2, ensure_ascii=False))


def create_output_writer(json_output: bool = False, stream: Optional[TextIO] = None) -> OutputWriter:
    """Create the writer for the requested output mode."""
    return JSONWriter(stream) if json_output else TTYWriter(stream)
