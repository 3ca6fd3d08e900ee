"""System snapshot tool."""

import datetime
import os
import platform
import shutil
import socket
from pathlib import Path
from typing import List


def _format_bytes(size: int) -> str:
    value = float(size)
    for unit in ("B", "KiB", "MiB", "GiB", "TiB"):
        if value < 1024 or unit == "TiB":
            return f"{value:.1f} {unit}"
        value /= 1024
    return f"{value:.1f} TiB"


def _local_addresses() -> List[str]:
    try:
        infos = socket.getaddrinfo(socket.gethostname(), None)
    except OSError:
        return []
    addresses = sorted({info[4][0] for info in infos})
    return [addr for addr in addresses if not addr.startswith("127.") and addr != "::1"]


def _kv(label: str, value: str) -> str:
    return f"  {label:<12} {value or '-'}"


def collect_snapshot() -> List[str]:
    """Lines describing host, OS, CPU, load, disk and network addresses."""
    lines = ["System Snapshot"]
    lines.append(_kv("Generated", datetime.datetime.now().isoformat(timespec="seconds")))
    lines.append(_kv("Host", platform.node()))
    lines.append(_kv("OS", f"{platform.system()}/{platform.machine()}"))
    lines.append(_kv("Release", platform.release()))
    lines.append(_kv("Python", platform.python_version()))
    lines.append(_kv("CPU", str(os.cpu_count() or 0)))
    if hasattr(os, "getloadavg"):
        try:
            load = os.getloadavg()
            lines.append(_kv("Load", " ".join(f"{value:.2f}" for value in load)))
        except OSError:
            pass

    lines.append("Disks")
    anchor = Path.cwd().anchor or "/"
    try:
        usage = shutil.disk_usage(anchor)
        pct = (usage.used / usage.total * 100) if usage.total else 0.0
        lines.append(
            f"  {anchor:<12} {_format_bytes(usage.used)} used / "
            f"{_format_bytes(usage.total)} total ({pct:.1f}%)"
        )
    except OSError:
        lines.append("  - none")

    lines.append("Interfaces")
    addresses = _local_addresses()
    if addresses:
        lines.extend(f"  {addr}" for addr in addresses)
    else:
        lines.append("  - none")
    return lines
