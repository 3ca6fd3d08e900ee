"""Command execution and confirmation for plugmate."""

from .executor import CommandExecutor, CommandResult, create_command_executor
from .permissions import ConfirmationGate, create_confirmation_gate

__all__ = [
    "CommandExecutor",
    "CommandResult",
    "create_command_executor",
    "ConfirmationGate",
    "create_confirmation_gate",
]
