"""LLM integration for plugmate."""

from .client import AskOptions, AskResult, LLMClient, SessionProvider, create_llm_client
from .decision import Action, BuilderResult, DecisionResult
from .payload import PromptBuilder, create_prompt_builder
from .parsers import extract_json_object, parse_builder_json, parse_decision_json, sanitize_args
from .retry import RetryConfig, request_with_retry

__all__ = [
    "AskOptions",
    "AskResult",
    "LLMClient",
    "SessionProvider",
    "create_llm_client",
    "Action",
    "BuilderResult",
    "DecisionResult",
    "PromptBuilder",
    "create_prompt_builder",
    "extract_json_object",
    "parse_builder_json",
    "parse_decision_json",
    "sanitize_args",
    "RetryConfig",
    "request_with_retry",
]
