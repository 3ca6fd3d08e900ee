"""File-system tools: search, recent, rename, clean and backup."""

import datetime
import os
import zipfile
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple

DEFAULT_PAGE_SIZE = 10

_SHORTCUT_DIRS = {
    "downloads": "Downloads",
    "desktop": "Desktop",
    "documents": "Documents",
}


@dataclass
class FileItem:
    path: Path
    size: int
    modified: float

    def describe(self) -> str:
        stamp = datetime.datetime.fromtimestamp(self.modified).strftime("%Y-%m-%d %H:%M")
        return f"{stamp} | {format_size(self.size)} | {self.path}"


def format_size(size: int) -> str:
    value = float(size)
    for unit in ("B", "KB", "MB", "GB"):
        if value < 1024 or unit == "GB":
            return f"{value:.0f} {unit}" if unit == "B" else f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} GB"


def is_truthy(value: Optional[str]) -> bool:
    return (value or "").strip().lower() in ("1", "true", "yes", "y")


def resolve_path(raw: Optional[str], fallback: Optional[Path] = None) -> Path:
    """Resolve a user supplied path; ``downloads``/``desktop``/``documents`` map into home."""
    text = (raw or "").strip().strip("\"'")
    if not text:
        return (fallback or Path.cwd()).resolve()
    shortcut = text.replace("\\", "/").lower()
    if shortcut.startswith("~/"):
        shortcut = shortcut[2:]
    if shortcut in _SHORTCUT_DIRS:
        return Path.home() / _SHORTCUT_DIRS[shortcut]
    return Path(text).expanduser().resolve()


def require_dir(path: Path, label: str) -> None:
    """Raise ValueError when ``path`` is not an existing directory."""
    if not path.exists():
        raise ValueError(f"{label} not found: {path}")
    if not path.is_dir():
        raise ValueError(f"{label} is not a directory: {path}")


def parse_page(params: Dict[str, str]) -> Tuple[int, int]:
    """``(offset, limit)`` from tool params; bad values fall back to defaults."""
    limit, offset = DEFAULT_PAGE_SIZE, 0
    try:
        limit = max(1, int(params.get("limit", DEFAULT_PAGE_SIZE)))
    except (TypeError, ValueError):
        pass
    try:
        offset = max(0, int(params.get("offset", 0)))
    except (TypeError, ValueError):
        pass
    return offset, limit


def walk_files(base: Path) -> List[FileItem]:
    items = []
    for root, _dirs, files in os.walk(base):
        for name in files:
            path = Path(root) / name
            try:
                st = path.stat()
            except OSError:
                continue
            items.append(FileItem(path, st.st_size, st.st_mtime))
    return items


def search_files(base: Path, name: str = "", ext: str = "", sort_by: str = "name") -> List[FileItem]:
    """Files under ``base`` whose name contains ``name`` and ends with ``ext``."""
    require_dir(base, "base path")
    name = name.lower()
    ext = ext.lower().strip()
    if ext and not ext.startswith("."):
        ext = "." + ext

    results = [
        item for item in walk_files(base)
        if (not name or name in item.path.name.lower())
        and (not ext or item.path.suffix.lower() == ext)
    ]
    if sort_by == "size":
        results.sort(key=lambda i: (-i.size, str(i.path).lower()))
    elif sort_by in ("date", "time", "modified", "recent"):
        results.sort(key=lambda i: (-i.modified, str(i.path).lower()))
    else:
        results.sort(key=lambda i: str(i.path).lower())
    return results


def recent_files(base: Path) -> List[FileItem]:
    """Files under ``base``, newest first."""
    require_dir(base, "base path")
    return sorted(walk_files(base), key=lambda i: (-i.modified, str(i.path).lower()))


def page_lines(items: List[FileItem], offset: int, limit: int) -> Tuple[List[str], int]:
    """Render one page of results; returns the lines and how many items were shown."""
    if not items:
        return ["No files found."], 0
    if offset >= len(items):
        return ["No more files."], 0
    shown = items[offset:offset + limit]
    end = offset + len(shown)
    lines = [f"Showing {offset + 1}-{end} of {len(items)} results"]
    lines.extend(f"{offset + i + 1:2d}) {item.describe()}" for i, item in enumerate(shown))
    if end < len(items):
        lines.append(f"... and {len(items) - end} more")
    return lines, len(shown)


def build_rename_plan(base: Path, old: str, new: str, name_part: str = "",
                      case_sensitive: bool = False) -> List[Tuple[Path, Path]]:
    """Pairs of (old path, new path) replacing ``old`` with ``new`` in file names."""
    require_dir(base, "base path")
    if not old:
        raise ValueError("replace-from is required")
    plan = []
    for item in sorted(walk_files(base), key=lambda i: str(i.path).lower()):
        file_name = item.path.name
        if name_part and name_part.lower() not in file_name.lower():
            continue
        if case_sensitive:
            renamed = file_name.replace(old, new)
        else:
            renamed = _replace_insensitive(file_name, old, new)
        if renamed and renamed != file_name:
            plan.append((item.path, item.path.with_name(renamed)))
    return plan


def _replace_insensitive(text: str, old: str, new: str) -> str:
    lowered, needle = text.lower(), old.lower()
    out, start = [], 0
    index = lowered.find(needle)
    while index != -1:
        out.append(text[start:index])
        out.append(new)
        start = index + len(old)
        index = lowered.find(needle, start)
    out.append(text[start:])
    return "".join(out)


def apply_rename_plan(plan: List[Tuple[Path, Path]]) -> None:
    """Rename every pair, refusing to overwrite an existing file.

    A plan that maps two files to the same name is rejected before anything
    is renamed.
    """
    seen = set()
    for old, new in plan:
        if new in seen:
            raise FileExistsError(f"more than one file would be renamed to: {new}")
        seen.add(new)
        if new.exists():
            raise FileExistsError(f"target already exists: {new}")
    for old, new in plan:
        if new.exists():
            raise FileExistsError(f"target already exists: {new}")
        old.rename(new)


def find_empty_dirs(base: Path) -> List[Path]:
    """Empty directories below ``base``, deepest first."""
    require_dir(base, "base path")
    dirs = []
    for root, subdirs, files in os.walk(base):
        path = Path(root)
        if path != base and not subdirs and not files:
            dirs.append(path)
    dirs.sort(key=lambda p: len(str(p)), reverse=True)
    return dirs


def zip_directory(source: Path, output_dir: Path) -> Path:
    """Write ``<name>-<timestamp>.zip`` of ``source`` into ``output_dir``."""
    require_dir(source, "source")
    output_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.datetime.now().strftime("%Y%m%d-%H%M%S")
    archive = output_dir / f"{source.name or 'backup'}-{stamp}.zip"
    with zipfile.ZipFile(archive, "w", zipfile.ZIP_DEFLATED) as zf:
        for item in walk_files(source):
            if item.path == archive:
                continue
            zf.write(item.path, item.path.relative_to(source).as_posix())
    return archive
