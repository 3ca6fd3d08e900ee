"""Command-line interface for plugmate."""

import argparse
import sys
from typing import List, Optional

from colorama import init as colorama_init

from .config.manager import write_config_template
from .core.application import create_application, install_signal_handlers
from .errors import ConfigError
from .utils.logging import logger
from . import __version__


def create_parser() -> argparse.ArgumentParser:
    """Create the command-line argument parser."""
    parser = argparse.ArgumentParser(
        prog="plugmate",
        description="plugmate: LLM planner for local PowerShell plugins and file tools.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  plugmate "list the sheets in report.xlsx"      # One request
  plugmate --json "show recent files"            # Machine-readable result
  plugmate --risk-policy strict "clean empty folders in downloads"
  plugmate --list-plugins
  plugmate --run excel_sheets -Path report.xlsx  # Run a plugin directly
  plugmate                                       # Interactive mode

Risk policies:
  strict - confirm every action
  normal - confirm high risk actions (and everything with --confirm-tools)
  off    - confirm only with --confirm-tools
        """
    )

    parser.add_argument(
        'prompt',
        nargs='*',
        help="Request for the assistant. If empty, enters interactive mode."
    )

    parser.add_argument('--version', action='version', version=f'plugmate {__version__}')
    parser.add_argument('--json', action='store_true', help="Print a single JSON result object")
    parser.add_argument('--provider', choices=["auto", "ollama", "openai"], help="LLM provider")
    parser.add_argument('--model', help="Model name override")
    parser.add_argument('--base-url', help="Provider base URL override")
    parser.add_argument('--risk-policy', help="Confirmation policy: strict, normal or off")
    parser.add_argument(
        '--confirm-tools',
        action='store_true',
        default=None,
        help="Ask before every plugin or tool action"
    )
    parser.add_argument('--max-steps', type=int, help="Planning steps per request")
    parser.add_argument('--config', type=str, help="Configuration file path")
    parser.add_argument('--debug', action='store_true', help="Enable debug logging output")
    parser.add_argument('--init-config', action='store_true', help="Write a commented config template and exit")
    parser.add_argument('--config-summary', action='store_true', help="Show configuration summary and exit")
    parser.add_argument('--list-plugins', action='store_true', help="List cataloged plugins and exit")
    parser.add_argument('--plugin-info', metavar='NAME', help="Show help for one plugin and exit")
    parser.add_argument(
        '--run',
        nargs=argparse.REMAINDER,
        metavar='NAME [ARGS...]',
        help="Run a plugin directly with the given arguments"
    )

    return parser


def main(args: Optional[List[str]] = None) -> None:
    """Main entry point for the CLI."""
    # Initialize colorama for cross-platform colored output
    colorama_init(autoreset=True)

    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if parsed_args.init_config:
        written = write_config_template(parsed_args.config)
        sys.exit(0 if written else 1)

    if parsed_args.run is not None and not parsed_args.run:
        parser.error("--run requires a plugin name")

    try:
        app = create_application(
            config_path=parsed_args.config,
            debug=parsed_args.debug,
            model=parsed_args.model,
            base_url=parsed_args.base_url,
            provider=parsed_args.provider,
            risk_policy=parsed_args.risk_policy,
            confirm_tools=parsed_args.confirm_tools,
            max_steps=parsed_args.max_steps,
        )
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        sys.exit(1)

    install_signal_handlers()

    if parsed_args.config_summary:
        app.print_config_summary()
        return
    if parsed_args.list_plugins:
        sys.exit(app.list_plugins(parsed_args.json))
    if parsed_args.plugin_info:
        sys.exit(app.plugin_info(parsed_args.plugin_info, parsed_args.json))
    if parsed_args.run:
        sys.exit(app.run_plugin_direct(parsed_args.run[0], parsed_args.run[1:]))

    if parsed_args.prompt:
        sys.exit(app.run_once(" ".join(parsed_args.prompt), json_output=parsed_args.json))

    try:
        code = app.run_interactive_mode()
    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        code = 1
    logger.system("plugmate session ended.")
    sys.exit(code)


if __name__ == "__main__":
    main()
