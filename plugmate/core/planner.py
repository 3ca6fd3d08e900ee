"""Planner: asks the LLM for the next action and normalizes the answer."""

import dataclasses
from typing import Optional, Sequence, Tuple

from ..errors import MalformedResponseError
from ..llm.client import AskOptions, LLMClient
from ..llm.decision import Action, DecisionResult
from ..llm.parsers import parse_decision_json
from ..llm.payload import PromptBuilder, create_prompt_builder
from ..utils.logging import logger
from .decision_cache import DecisionCache, decision_cache_key


class Planner:
    """Builds the decision prompt, calls the model and parses the decision."""

    def __init__(self, client: LLMClient, prompt_builder: Optional[PromptBuilder] = None,
                 cache: Optional[DecisionCache] = None):
        self.client = client
        self.prompt_builder = prompt_builder or create_prompt_builder()
        self.cache = cache

    def decide(self, prompt: str, plugin_catalog: str, tool_catalog: str,
               options: Optional[AskOptions] = None, env_context: str = "",
               tool_rules: Sequence[str] = ()) -> DecisionResult:
        """Ask the model for one decision.

        An unparseable reply gets exactly one repair round-trip. If that fails
        too, the original text becomes a plain answer.

        Args:
            prompt: User request, already wrapped with session history
            plugin_catalog: Rendered plugin catalog
            tool_catalog: Rendered tool catalog
            options: Provider/model/base URL overrides
            env_context: Rendered environment description
            tool_rules: Extra tool argument rules for the prompt

        Returns:
            A normalized DecisionResult tagged with the answering provider/model

        Raises:
            ProviderUnavailableError: The provider could not be reached
            ProviderError: The provider returned an error
        """
        decision_prompt = self.prompt_builder.decision_prompt(
            prompt, plugin_catalog, tool_catalog, tool_rules, env_context
        )
        logger.debug(f"Decision prompt:\n{decision_prompt}")
        result = self.client.ask(decision_prompt, options)
        logger.debug(f"Planner raw response:\n{result.text}")

        try:
            decision = parse_decision_json(result.text)
        except MalformedResponseError as e:
            logger.planner(f"Response was not valid JSON ({e}); asking the model to repair it")
            decision = self._repair(result.text, options)

        decision.provider = result.provider
        decision.model = result.model
        return decision

    def _repair(self, raw_text: str, options: Optional[AskOptions]) -> DecisionResult:
        fallback = DecisionResult(action=Action.ANSWER, answer=raw_text.strip())
        repaired = self.client.ask(self.prompt_builder.repair_prompt(raw_text), options)
        try:
            return parse_decision_json(repaired.text)
        except MalformedResponseError as e:
            logger.warning(f"Repair failed ({e}); treating the response as a plain answer")
            return fallback

    def decide_with_cache(self, prompt: str, plugin_catalog: str, tool_catalog: str,
                          options: Optional[AskOptions] = None, env_context: str = "",
                          tool_rules: Sequence[str] = ()) -> Tuple[DecisionResult, bool]:
        """``decide`` behind the decision cache; returns ``(decision, was_cached)``."""
        if self.cache is None:
            return self.decide(prompt, plugin_catalog, tool_catalog, options, env_context, tool_rules), False

        key = decision_cache_key(prompt, plugin_catalog, tool_catalog, options, env_context)
        cached = self.cache.get(key)
        if cached is not None:
            logger.debug("Decision served from cache")
            return dataclasses.replace(cached), True

        decision = self.decide(prompt, plugin_catalog, tool_catalog, options, env_context, tool_rules)
        self.cache.set(key, decision)
        return decision, False


def create_planner(client: LLMClient, cache: Optional[DecisionCache] = None) -> Planner:
    """Create a planner over ``client``."""
    return Planner(client, create_prompt_builder(), cache)
