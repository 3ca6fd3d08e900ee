"""Plugin catalog, metadata parsing and the execution bridge for plugmate."""

from .parser import ParameterDetail, FunctionHelp, parse_function_help, parse_param_block
from .catalog import (
    CatalogEntry,
    FunctionFile,
    PluginInfo,
    PluginCatalog,
    create_plugin_catalog,
    invalidate_cache,
)
from .bridge import ExecutionBridge, create_execution_bridge, split_named_args
from .render import render_catalog
from .writer import ToolkitSummary, ToolkitWriter, create_toolkit_writer, list_toolkit_summaries

__all__ = [
    "ParameterDetail",
    "FunctionHelp",
    "parse_function_help",
    "parse_param_block",
    "CatalogEntry",
    "FunctionFile",
    "PluginInfo",
    "PluginCatalog",
    "create_plugin_catalog",
    "invalidate_cache",
    "ExecutionBridge",
    "create_execution_bridge",
    "split_named_args",
    "render_catalog",
    "ToolkitSummary",
    "ToolkitWriter",
    "create_toolkit_writer",
    "list_toolkit_summaries",
]
