"""Main application class for plugmate."""

import json
import signal
import sys
from pathlib import Path
from typing import Callable, List, Optional

from ..commands.permissions import create_confirmation_gate
from ..config.manager import create_config_manager
from ..constants import CLR_BOLD_CYAN, CLR_BOLD_YELLOW, CLR_DIM, CLR_RESET, MAX_PREVIOUS_PROMPTS
from ..errors import PluginNotFoundError, PlugmateError, error_output, missing_path_hint
from ..llm.client import AskOptions, LLMClient, create_llm_client
from ..plugins.bridge import create_execution_bridge
from ..plugins.catalog import create_plugin_catalog
from ..utils.helpers import check_dependencies, format_environment_context, get_environment_context
from ..utils.logging import logger
from .builder import create_builder_agent
from .decision_cache import create_decision_cache
from .output import create_output_writer
from .planner import create_planner
from .session import AskSession

EXIT_COMMANDS = ("/exit", "exit", "quit")


class PlugMate:
    """Wires configuration, catalog, planner and session together."""

    def __init__(self, config_path: Optional[str] = None, debug: bool = False,
                 client: Optional[LLMClient] = None,
                 input_func: Callable[[str], str] = input, model: Optional[str] = None,
                 base_url: Optional[str] = None, **overrides):
        """Initialize the plugmate application.

        Args:
            config_path: Explicit configuration file (``--config``)
            debug: Enable debug logging
            client: LLM client to use instead of one built from the configuration
            input_func: Line reader for confirmations and interactive mode
            model: Model override for every request
            base_url: Provider base URL override for every request
            **overrides: Configuration overrides from the command line (None is ignored)

        Raises:
            ConfigError: The configuration file or an override is invalid
        """
        logger.set_debug(debug)

        self.config_manager = create_config_manager(Path(config_path) if config_path else None)
        self.config = self.config_manager.apply_overrides(**overrides)

        if not debug and self.config.get("enable_debug", False):
            logger.set_debug(True)

        check_dependencies()

        self.input_func = input_func
        self.model_override = (model or "").strip()
        self.base_url_override = (base_url or "").strip()
        self.catalog = create_plugin_catalog(self.config_manager.base_dir)
        self.bridge = create_execution_bridge(self.catalog)
        self.client = client or create_llm_client(self.config_manager)
        self.planner = create_planner(self.client, create_decision_cache(self.config["decision_cache_ttl"]))
        self.builder = create_builder_agent(self.client, self.catalog)
        self.env_context = format_environment_context(get_environment_context())

        logger.debug("Application initialization complete")

    def ask_options(self) -> AskOptions:
        """Provider options from the (possibly overridden) configuration."""
        provider = self.config["provider"]
        section = self.config.get(provider, {}) if provider in ("ollama", "openai") else {}
        return AskOptions(
            provider=provider,
            model=self.model_override or section.get("model", ""),
            base_url=self.base_url_override or section.get("base_url", ""),
        )

    def create_session(self, json_output: bool = False, options: Optional[AskOptions] = None) -> AskSession:
        gate = create_confirmation_gate(
            self.config["risk_policy"], self.config["confirm_tools"], self.input_func
        )
        return AskSession(
            self.catalog,
            self.bridge,
            self.planner,
            gate,
            builder=self.builder,
            writer=create_output_writer(json_output),
            options=options or self.ask_options(),
            max_steps=self.config["max_steps"],
            env_context=self.env_context,
            base_dir=str(Path.cwd()),
        )

    def run_once(self, prompt: str, json_output: bool = False,
                 previous_prompts: Optional[List[str]] = None,
                 options: Optional[AskOptions] = None) -> int:
        """Handle one request and return the exit code."""
        if json_output:
            logger.set_quiet(True)
        try:
            return self.create_session(json_output, options).run(prompt, previous_prompts or [])
        except KeyboardInterrupt:
            logger.system("Request interrupted by user")
            return 130
        finally:
            logger.set_quiet(False)

    def run_interactive_mode(self) -> int:
        """Read prompts until an exit command or end of input.

        The provider is resolved once; the last few prompts are passed along
        as context for the next one.
        """
        try:
            session_provider = self.client.resolve_session_provider(self.ask_options())
        except PlugmateError as e:
            logger.error(str(e))
            return 1

        label = f"ask({session_provider.provider},{session_provider.model})> "
        print("Ask mode. Type your question.")
        print("Exit commands: /exit, exit, quit")
        previous: List[str] = []
        while True:
            try:
                line = self.input_func(f"{CLR_BOLD_YELLOW}{label}{CLR_RESET}")
            except EOFError:
                print()
                return 0
            except KeyboardInterrupt:
                print()
                logger.system("Use '/exit', 'exit' or 'quit' to stop")
                continue

            prompt = line.strip()
            if not prompt:
                continue
            if prompt.lower() in EXIT_COMMANDS:
                return 0

            self.run_once(prompt, previous_prompts=previous, options=session_provider.options)
            previous.append(prompt)
            previous = previous[-MAX_PREVIOUS_PROMPTS:]

    def list_plugins(self, json_output: bool = False) -> int:
        entries = self.catalog.list_entries(include_functions=True)
        if json_output:
            print(json.dumps([{"name": e.name, "kind": e.kind, "path": e.path} for e in entries], indent=2))
            return 0
        if not entries:
            print(f"No plugins found in {self.catalog.plugins_dir}")
            return 0
        for entry in entries:
            print(f"{CLR_BOLD_CYAN}{entry.name}{CLR_RESET} {CLR_DIM}({entry.kind}){CLR_RESET}  {entry.path}")
        return 0

    def plugin_info(self, name: str, json_output: bool = False) -> int:
        try:
            info = self.catalog.get_info(name)
        except PluginNotFoundError as e:
            logger.error(str(e))
            if e.hint():
                logger.system(e.hint())
            return 1

        if json_output:
            print(json.dumps(info.to_dict(), indent=2))
            return 0

        print(f"{CLR_BOLD_CYAN}{info.name}{CLR_RESET} ({info.kind})")
        print(f"Path: {info.path}")
        if len(info.sources) > 1:
            print("Sources:")
            for source in info.sources:
                print(f"  {source}")
        print(f"Runner: {info.runner}")
        if info.synopsis:
            print(f"Synopsis: {info.synopsis}")
        if info.description:
            print(f"Description: {info.description}")
        if info.parameter_details:
            print("Parameters:")
            for detail in info.parameter_details:
                flags = []
                if detail.mandatory:
                    flags.append("mandatory")
                if detail.is_switch:
                    flags.append("switch")
                if detail.type:
                    flags.append(detail.type)
                if detail.allowed_values:
                    flags.append("values: " + "|".join(detail.allowed_values))
                if detail.default:
                    flags.append(f"default: {detail.default}")
                suffix = f" ({', '.join(flags)})" if flags else ""
                print(f"  -{detail.name}{suffix}")
        if info.parameters:
            print("Parameter help:")
            for line in info.parameters:
                print(f"  {line}")
        if info.examples:
            print("Examples:")
            for example in info.examples:
                print(f"  {example}")
        return 0

    def run_plugin_direct(self, name: str, args: List[str]) -> int:
        """Invoke a plugin through the bridge without the planner."""
        try:
            self.bridge.invoke(name, args)
        except PluginNotFoundError as e:
            logger.error(str(e))
            if e.hint():
                logger.system(e.hint())
            return 1
        except PlugmateError as e:
            logger.error(str(e))
            path = missing_path_hint(e)
            if path:
                logger.warning(f"Missing required path: {path}")
            elif error_output(e):
                logger.debug(error_output(e))
            return 1
        return 0

    def print_config_summary(self) -> None:
        logger.system("Configuration Summary:")
        for line in self.config_manager.summary().splitlines():
            logger.system(f"  {line}")


def install_signal_handlers() -> None:
    """Exit quietly on SIGTERM (and SIGHUP where it exists)."""
    def signal_handler(sig, frame):
        logger.system(f"Received signal {sig}, shutting down gracefully...")
        sys.exit(0)

    signal.signal(signal.SIGTERM, signal_handler)
    if hasattr(signal, 'SIGHUP'):
        signal.signal(signal.SIGHUP, signal_handler)


def create_application(config_path: Optional[str] = None, debug: bool = False, **kwargs) -> PlugMate:
    """Create and initialize a PlugMate application instance.

    Args:
        config_path: Explicit configuration file path
        debug: Enable debug logging
        **kwargs: Passed to ``PlugMate`` (model, base_url and configuration overrides)

    Returns:
        Initialized PlugMate instance
    """
    return PlugMate(config_path, debug, **kwargs)
