"""Execution bridge: runs scripts and PowerShell plugin functions by name."""

import os
import tempfile
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from ..commands.executor import CommandExecutor, CommandResult, create_command_executor
from ..errors import ExecutionFailedError, PluginNotFoundError
from ..utils.logging import logger
from .catalog import (
    PluginCatalog,
    collect_functions,
    find_script,
    sources_for_function,
    suggest_names,
)
from .runners import powershell_binary, script_command


@dataclass(frozen=True)
class NamedArg:
    name: str
    value: str = ""
    is_switch: bool = False


def looks_like_named_token(token: str) -> bool:
    """True for ``-Name`` shaped tokens; ``-``, ``-1`` and ``-.5`` are values."""
    token = token.strip()
    if not token.startswith("-") or token == "-":
        return False
    return not (token[1].isdigit() or token[1] == ".")


def split_named_args(args: Sequence[str]) -> Tuple[List[NamedArg], List[str]]:
    """Split an argument vector into named bindings and positional values.

    ``-Key value`` binds ``value`` to ``Key`` unless ``value`` itself looks
    like a name, in which case ``-Key`` is a switch. Positional order is kept.
    """
    named: List[NamedArg] = []
    positional: List[str] = []
    index = 0
    while index < len(args):
        current = args[index].strip()
        name = current.lstrip("-")
        if not looks_like_named_token(current) or not name:
            positional.append(args[index])
        elif index + 1 < len(args) and not looks_like_named_token(args[index + 1]):
            named.append(NamedArg(name, args[index + 1]))
            index += 1
        else:
            named.append(NamedArg(name, is_switch=True))
        index += 1
    return named, positional


def quote_ps_arg(value: str) -> str:
    """Single-quote a value for PowerShell."""
    return "'" + value.replace("'", "''") + "'"


def build_function_script(source_paths: Sequence[str], function_name: str, args: Sequence[str]) -> str:
    """PowerShell that dot-sources ``source_paths`` and calls ``function_name``.

    Named arguments are splatted from a hashtable and the rest positionally.
    The script throws if no source actually defined the function.
    """
    named, positional = split_named_args(args)
    lines = [
        "Set-StrictMode -Version Latest",
        "$ErrorActionPreference='Stop'",
        "$dmProfilePaths=@(" + ",".join(quote_ps_arg(p) for p in source_paths) + ")",
        "$dmNamedArgs=@{}",
        "$dmPositionalArgs=@()",
    ]
    for arg in named:
        value = "$true" if arg.is_switch else quote_ps_arg(arg.value)
        lines.append(f"$dmNamedArgs[{quote_ps_arg(arg.name)}]={value}")
    for value in positional:
        lines.append(f"$dmPositionalArgs+={quote_ps_arg(value)}")
    lines.extend([
        "foreach($dmProfilePath in $dmProfilePaths){ if(Test-Path -LiteralPath $dmProfilePath){ . $dmProfilePath } }",
        f"if(-not(Get-Command -Name {quote_ps_arg(function_name)} -CommandType Function -ErrorAction SilentlyContinue)){{",
        f"  throw \"Function '{function_name}' was not loaded from plugin sources.\"",
        "}",
        f"& {quote_ps_arg(function_name)} @dmNamedArgs @dmPositionalArgs",
    ])
    return "\n".join(lines) + "\n"


class ExecutionBridge:
    """Invokes catalog entries as subprocesses and reports their output."""

    def __init__(self, catalog: PluginCatalog, executor: Optional[CommandExecutor] = None):
        self.catalog = catalog
        self.executor = executor or create_command_executor()

    def invoke(self, name: str, args: Sequence[str]) -> str:
        """Run the plugin called ``name`` with ``args``.

        Scripts win over functions of the same name.

        Args:
            name: Script or function name
            args: Argument vector; named/positional split applies to functions

        Returns:
            Combined stdout/stderr of the plugin

        Raises:
            PluginNotFoundError: Nothing is called ``name``
            InterpreterNotFoundError: The needed interpreter is not installed
            ExecutionFailedError: The plugin exited with a non-zero code
        """
        plugins_dir = self.catalog.plugins_dir
        script = find_script(plugins_dir, name)
        if script:
            return self.run_script(script, args)

        functions, load_files = collect_functions(plugins_dir)
        if name not in functions:
            raise PluginNotFoundError(name, suggest_names(name, self.catalog.names()))
        sources = sources_for_function(load_files, name) or [functions[name]]
        return self.run_function(sources, name, args)

    def run_script(self, path: str, args: Sequence[str]) -> str:
        logger.plugin(f"Running script {os.path.basename(path)}")
        argv = script_command(path) + list(args)
        return self._finish(self._run(argv), f"plugin {os.path.basename(path)}")

    def run_function(self, source_paths: Sequence[str], function_name: str, args: Sequence[str]) -> str:
        """Run a PowerShell function through a temporary bridge script.

        Only the sources declaring the function are dot-sourced. The temporary
        file is always removed.
        """
        binary = powershell_binary()
        body = build_function_script(source_paths, function_name, args)
        logger.plugin(f"Running function {function_name}")
        logger.debug(f"Bridge script:\n{body}")

        fd, tmp_path = tempfile.mkstemp(prefix="dm-plugin-", suffix=".ps1")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(body)
            result = self._run([binary, "-NoProfile", "-NonInteractive", "-File", tmp_path])
        finally:
            try:
                os.remove(tmp_path)
            except FileNotFoundError:
                pass
        return self._finish(result, f"function {function_name}")

    def _run(self, argv: List[str]) -> CommandResult:
        try:
            return self.executor.run(argv)
        except OSError as e:
            raise ExecutionFailedError(f"could not start {argv[0]}: {e}") from e

    @staticmethod
    def _finish(result: CommandResult, label: str) -> str:
        if not result.success:
            raise ExecutionFailedError(
                f"{label} failed with exit code {result.exit_code}",
                output=result.output,
                exit_code=result.exit_code,
            )
        return result.output


def create_execution_bridge(catalog: PluginCatalog, executor: Optional[CommandExecutor] = None) -> ExecutionBridge:
    """Create an execution bridge over ``catalog``."""
    return ExecutionBridge(catalog, executor)
