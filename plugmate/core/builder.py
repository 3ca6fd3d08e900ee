"""Builder agent: asks the LLM for a new plugin function and writes it."""

from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from ..llm.client import AskOptions, LLMClient
from ..llm.decision import BuilderResult
from ..llm.parsers import parse_builder_json
from ..llm.payload import PromptBuilder, create_prompt_builder
from ..plugins.catalog import PluginCatalog, PluginInfo
from ..plugins.writer import ToolkitWriter, create_toolkit_writer, list_toolkit_summaries
from ..utils.logging import logger


@dataclass
class BuiltFunction:
    """A function that was generated and written into a toolkit file."""
    result: BuilderResult
    path: Path
    info: PluginInfo

    @property
    def name(self) -> str:
        return self.result.function_name

    def mandatory_parameters(self):
        return [p.name for p in self.info.parameter_details if p.mandatory and not p.is_switch]


class BuilderAgent:
    """Generates PowerShell functions that follow the toolkit conventions."""

    def __init__(self, client: LLMClient, catalog: PluginCatalog,
                 writer: Optional[ToolkitWriter] = None,
                 prompt_builder: Optional[PromptBuilder] = None):
        self.client = client
        self.catalog = catalog
        self.writer = writer or create_toolkit_writer(catalog)
        self.prompt_builder = prompt_builder or create_prompt_builder()

    def generate(self, function_description: str, user_request: str,
                 options: Optional[AskOptions] = None) -> BuilderResult:
        """Ask the model for the function code.

        Raises:
            ProviderUnavailableError: The provider could not be reached
            ProviderError: The provider returned an error
            MalformedResponseError: The reply is not usable builder JSON
        """
        toolkits = list_toolkit_summaries(self.catalog)
        prompt = self.prompt_builder.builder_prompt(function_description, user_request, toolkits)
        logger.builder(f"Generating function for: {function_description}")
        logger.debug(f"Builder prompt:\n{prompt}")
        reply = self.client.ask(prompt, options)
        logger.debug(f"Builder raw response:\n{reply.text}")
        result = parse_builder_json(reply.text)
        if result.explanation:
            logger.builder(result.explanation)
        return result

    def build(self, function_description: str, user_request: str,
              options: Optional[AskOptions] = None) -> BuiltFunction:
        """Generate, validate and write a new function, then load its catalog info.

        Raises:
            ValidationFailedError: The code failed the syntax check or could not be written
        """
        result = self.generate(function_description, user_request, options)
        path = self.writer.write(
            result.function_name,
            result.function_code,
            result.target_file,
            result.is_new_toolkit,
            result.new_prefix,
        )
        info = self.catalog.get_info(result.function_name)
        return BuiltFunction(result=result, path=path, info=info)


def create_builder_agent(client: LLMClient, catalog: PluginCatalog) -> BuilderAgent:
    """Create a builder agent writing into ``catalog``'s plugin directory."""
    return BuilderAgent(client, catalog)
