"""Confirmation gate in front of side-effecting actions."""

from typing import Callable

from ..config.manager import normalize_risk_policy
from ..constants import (
    CLR_BOLD_RED, CLR_BOLD_YELLOW, CLR_RESET, CLR_YELLOW, RISK_HIGH,
)
from ..utils.logging import logger

HIGH_RISK_PROMPT = "Confirm HIGH risk action? [y/N]: "
AGENT_ACTION_PROMPT = "Confirm agent action? [Y/n]: "


class ConfirmationGate:
    """Decides when to ask the user before running an action, and asks.

    Policies:
        strict: always confirm.
        normal: confirm when ``confirm_tools`` is set or the risk is high.
        off: confirm only when ``confirm_tools`` is set.
    """

    def __init__(self, policy: str = "normal", confirm_tools: bool = False,
                 input_func: Callable[[str], str] = input):
        self.policy = normalize_risk_policy(policy)
        self.confirm_tools = confirm_tools
        self.input_func = input_func

    def should_confirm(self, risk: str) -> bool:
        if self.policy == "strict":
            return True
        if self.policy == "off":
            return self.confirm_tools
        return self.confirm_tools or risk == RISK_HIGH

    def confirm_action(self, risk: str) -> bool:
        """Prompt for confirmation.

        High risk needs an explicit yes; anything else proceeds unless the
        answer is no. End of input counts as a refusal.
        """
        if risk == RISK_HIGH:
            answer = self._read(f"{CLR_BOLD_RED}{HIGH_RISK_PROMPT}{CLR_RESET}")
            approved = answer in ("y", "yes")
        else:
            answer = self._read(f"{CLR_YELLOW}{AGENT_ACTION_PROMPT}{CLR_RESET}")
            approved = answer is not None and answer not in ("n", "no")
        logger.debug(f"Confirmation for {risk} risk action: {'approved' if approved else 'declined'}")
        return bool(approved)

    def ask_continue(self, prompt: str) -> bool:
        """Yes/no question defaulting to yes (used for tool paging)."""
        answer = self._read(f"{CLR_BOLD_YELLOW}{prompt}{CLR_RESET}")
        return answer is not None and answer in ("", "y", "yes")

    def _read(self, prompt: str):
        try:
            return self.input_func(prompt).strip().lower()
        except EOFError:
            print()
            return None


def create_confirmation_gate(policy: str = "normal", confirm_tools: bool = False,
                             input_func: Callable[[str], str] = input) -> ConfirmationGate:
    """Create a confirmation gate instance."""
    return ConfirmationGate(policy, confirm_tools, input_func)
