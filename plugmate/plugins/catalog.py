"""Plugin discovery, metadata lookup and the process-wide catalog cache."""

import difflib
import os
import stat
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..constants import PLUGINS_SUBDIR
from ..errors import PluginNotFoundError
from ..utils.logging import logger
from .parser import (
    ParameterDetail,
    parse_function_help,
    parse_param_block,
    read_function_names,
)
from .runners import (
    FUNCTION_BRIDGE_RUNNER,
    function_source_score,
    is_function_source,
    is_supported_script,
    runner_for_path,
    script_name,
    script_score,
)

KIND_SCRIPT = "script"
KIND_FUNCTION = "function"


@dataclass(frozen=True)
class CatalogEntry:
    """One invocable name: a standalone script or a declared function."""
    name: str
    kind: str
    path: str


@dataclass(frozen=True)
class FunctionFile:
    """A source file and the public functions it declares."""
    path: str
    functions: Tuple[str, ...]


@dataclass
class PluginInfo:
    """Everything known about a plugin, as shown by ``--plugin-info``."""
    name: str
    kind: str
    path: str
    sources: List[str] = field(default_factory=list)
    runner: str = ""
    synopsis: str = ""
    description: str = ""
    parameters: List[str] = field(default_factory=list)
    parameter_details: List[ParameterDetail] = field(default_factory=list)
    examples: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "kind": self.kind,
            "path": self.path,
            "sources": list(self.sources),
            "runner": self.runner,
            "synopsis": self.synopsis,
            "description": self.description,
            "parameters": list(self.parameters),
            "parameter_details": [d.to_dict() for d in self.parameter_details],
            "examples": list(self.examples),
        }


# Cache records: key -> (stamps, value). A record is served only while every
# stamped path still has the same (mtime_ns, size); anything else rebuilds it.
Stamp = Optional[Tuple[int, int]]
_cache: Dict[Tuple[Any, ...], Tuple[Dict[str, Stamp], Any]] = {}
_cache_lock = threading.Lock()


def invalidate_cache() -> None:
    """Drop every cached catalog listing and plugin info."""
    with _cache_lock:
        _cache.clear()
    logger.debug("Plugin catalog cache invalidated")


def _stamp(path: str) -> Stamp:
    """(mtime_ns, size) of a file; directories use their entry count as size."""
    try:
        st = os.stat(path)
        if stat.S_ISDIR(st.st_mode):
            return (st.st_mtime_ns, len(os.listdir(path)))
    except OSError:
        return None
    return (st.st_mtime_ns, st.st_size)


def _snapshot(plugins_dir: str) -> Dict[str, Stamp]:
    """Stamp the plugins directory, every subdirectory and every file in it."""
    stamps: Dict[str, Stamp] = {plugins_dir: _stamp(plugins_dir)}
    if stamps[plugins_dir] is None:
        return stamps
    for root, dirs, files in os.walk(plugins_dir):
        for name in dirs + files:
            path = os.path.join(root, name)
            stamps[path] = _stamp(path)
    return stamps


def _is_fresh(stamps: Dict[str, Stamp]) -> bool:
    return all(_stamp(path) == stamp for path, stamp in stamps.items())


def _cached(key: Tuple[Any, ...], plugins_dir: str, build: Callable[[], Any]) -> Any:
    with _cache_lock:
        record = _cache.get(key)
    if record is not None and _is_fresh(record[0]):
        logger.debug(f"Catalog cache hit: {key[0]}")
        return record[1]

    stamps = _snapshot(plugins_dir)
    value = build()
    with _cache_lock:
        _cache[key] = (stamps, value)
    logger.debug(f"Catalog cache rebuilt: {key[0]}")
    return value


def _read_text(path: str) -> str:
    return Path(path).read_text(encoding="utf-8", errors="replace")


def _read_function_names(path: str) -> List[str]:
    try:
        return read_function_names(_read_text(path))
    except FileNotFoundError:
        return []


def _list_scripts(plugins_dir: str) -> Dict[str, str]:
    """Best script path per plugin name among the top-level files."""
    best: Dict[str, str] = {}
    try:
        entries = sorted(os.scandir(plugins_dir), key=lambda e: e.name.lower())
    except FileNotFoundError:
        return best
    for entry in entries:
        if not entry.is_file() or not is_supported_script(entry.name):
            continue
        name = script_name(entry.name)
        current = best.get(name)
        if current is None or script_score(entry.path) < script_score(current):
            best[name] = entry.path
    return best


def list_function_source_files(plugins_dir: str) -> List[str]:
    """Every function source under ``plugins_dir``, preferred file types first."""
    files: List[str] = []
    if not os.path.isdir(plugins_dir):
        return files

    def fail(error: OSError) -> None:
        raise error

    for root, _dirs, names in os.walk(plugins_dir, onerror=fail):
        for name in names:
            if is_function_source(name):
                files.append(os.path.join(root, name))
    files.sort(key=lambda p: (function_source_score(p), p.lower()))
    return files


def collect_functions(plugins_dir: str) -> Tuple[Dict[str, str], List[str]]:
    """Map each public function to the first file declaring it.

    Returns:
        (name -> path, all function source files in load order)
    """
    files = list_function_source_files(plugins_dir)
    functions: Dict[str, str] = {}
    for path in files:
        for name in _read_function_names(path):
            functions.setdefault(name, path)
    return functions, files


def sources_for_function(load_files: List[str], function_name: str) -> List[str]:
    """Every file in ``load_files`` that declares ``function_name``."""
    return [path for path in load_files if function_name in _read_function_names(path)]


def find_script(plugins_dir: str, name: str) -> Optional[str]:
    """Path of the preferred top-level script called ``name``."""
    return _list_scripts(plugins_dir).get(name)


def suggest_names(name: str, candidates: List[str], limit: int = 3) -> List[str]:
    """Close matches for a mistyped plugin name."""
    lowered = {c.lower(): c for c in candidates}
    matches = difflib.get_close_matches(name.lower(), list(lowered), n=limit, cutoff=0.6)
    if not matches:
        matches = [c for c in lowered if name.lower() in c][:limit]
    return [lowered[m] for m in matches]


class PluginCatalog:
    """Catalog of the plugins under ``<base_dir>/plugins``.

    All lookups go through the process-wide stamp cache, so repeated calls are
    cheap until something under the plugins directory changes.
    """

    def __init__(self, base_dir):
        self.base_dir = Path(base_dir).expanduser()
        self.plugins_dir = str(self.base_dir / PLUGINS_SUBDIR)

    def list_entries(self, include_functions: bool = True) -> List[CatalogEntry]:
        """List scripts (and optionally functions), sorted by name then kind.

        A script and a function with the same name yield only the script.
        """
        key = ("entries", self.plugins_dir, include_functions)
        return list(_cached(key, self.plugins_dir, lambda: self._build_entries(include_functions)))

    def _build_entries(self, include_functions: bool) -> Tuple[CatalogEntry, ...]:
        scripts = _list_scripts(self.plugins_dir)
        entries = [CatalogEntry(name, KIND_SCRIPT, path) for name, path in scripts.items()]
        if include_functions:
            functions, _files = collect_functions(self.plugins_dir)
            entries.extend(
                CatalogEntry(name, KIND_FUNCTION, path)
                for name, path in functions.items()
                if name not in scripts
            )
        entries.sort(key=lambda e: (e.name, e.kind))
        return tuple(entries)

    def list_function_files(self) -> List[FunctionFile]:
        """Function source files that declare at least one public function."""
        key = ("function_files", self.plugins_dir)
        return list(_cached(key, self.plugins_dir, self._build_function_files))

    def _build_function_files(self) -> Tuple[FunctionFile, ...]:
        out = []
        for path in list_function_source_files(self.plugins_dir):
            names = _read_function_names(path)
            if names:
                out.append(FunctionFile(path, tuple(sorted(names))))
        return tuple(out)

    def get_info(self, name: str) -> PluginInfo:
        """Look up a plugin by name, scripts first.

        Raises:
            PluginNotFoundError: Nothing is called ``name``
        """
        key = ("info", self.plugins_dir, name)
        return _cached(key, self.plugins_dir, lambda: self._build_info(name))

    def _build_info(self, name: str) -> PluginInfo:
        script = find_script(self.plugins_dir, name)
        if script:
            return PluginInfo(
                name=name,
                kind=KIND_SCRIPT,
                path=script,
                sources=[script],
                runner=runner_for_path(script),
            )

        functions, load_files = collect_functions(self.plugins_dir)
        path = functions.get(name)
        if path is None:
            raise PluginNotFoundError(name, suggest_names(name, [e.name for e in self.list_entries()]))

        text = _read_text(path)
        help_info = parse_function_help(text, name)
        return PluginInfo(
            name=name,
            kind=KIND_FUNCTION,
            path=path,
            sources=sources_for_function(load_files, name) or [path],
            runner=FUNCTION_BRIDGE_RUNNER,
            synopsis=help_info.synopsis,
            description=help_info.description,
            parameters=help_info.parameters,
            parameter_details=parse_param_block(text, name),
            examples=help_info.examples,
        )

    def names(self) -> List[str]:
        return [e.name for e in self.list_entries()]

    def invalidate(self) -> None:
        invalidate_cache()


def create_plugin_catalog(base_dir) -> PluginCatalog:
    """Create a catalog rooted at ``base_dir``."""
    return PluginCatalog(base_dir)
