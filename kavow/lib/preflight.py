"""System gates checked before anything is installed.

Each guard raises SetupAbort (or SetupPaused) with a remediation; passing
guards return None.
"""

from __future__ import annotations

import logging
import os
import platform
import shutil
from pathlib import Path
from typing import Callable, Sequence

from ..errors import SetupAbort, SetupPaused
from .command import Runner, run_cmd

logger = logging.getLogger(__name__)

SUPPORTED_ARCHES = ("x86_64", "arm64")
MIN_MACOS = (10, 15)


def guard_macos(system: str | None = None) -> None:
    system = system or platform.system()
    if system != "Darwin":
        raise SetupAbort(f"This script is designed for macOS only. Current OS: {system}")


def guard_macos_version(version: str | None = None) -> None:
    version = version or platform.mac_ver()[0]
    parts = [int(p) for p in version.split(".")[:2] if p.isdigit()]
    major_minor = tuple(parts + [0] * (2 - len(parts)))
    if major_minor < MIN_MACOS:
        raise SetupAbort(f"macOS 10.15 (Catalina) or later is required. You have {version or 'unknown'}")


def guard_not_root(euid: int | None = None) -> None:
    euid = os.geteuid() if euid is None else euid
    if euid == 0:
        raise SetupAbort("This script should not be run as root. Please run as a regular user.")


def guard_architecture(machine: str | None = None) -> None:
    machine = machine or platform.machine()
    if machine not in SUPPORTED_ARCHES:
        raise SetupAbort(f"Unsupported architecture: {machine}. This script supports x86_64 and arm64 only.")


def guard_xcode_tools(runner: Runner = run_cmd) -> None:
    if runner(["xcode-select", "-p"], check=False).ok:
        return
    logger.warning("Xcode Command Line Tools not found; starting their installer")
    if runner(["xcode-select", "--install"], check=False).ok:
        raise SetupPaused(
            "Xcode Command Line Tools installation started.",
            remediation="Complete the Xcode Command Line Tools installation and re-run kavow.",
        )
    raise SetupAbort(
        "Failed to start Xcode Command Line Tools installation",
        remediation="xcode-select --install",
    )


def is_url_reachable(url: str, *, timeout: int = 10, runner: Runner = run_cmd) -> bool:
    """Best-effort reachability check, bounded per URL."""

    r = runner(["curl", "-s", "--max-time", str(timeout), "--head", url], check=False)
    return r.ok


def guard_internet_connection(urls: Sequence[str], *, timeout: int = 10, runner: Runner = run_cmd) -> None:
    for url in urls:
        if not is_url_reachable(url, timeout=timeout, runner=runner):
            raise SetupAbort(f"Cannot reach {url}. Please check your internet connection.")


def guard_homebrew_conflicts(installations: Sequence[str], confirm: Callable[[str], bool]) -> None:
    if len(installations) <= 1:
        return
    logger.warning("Multiple Homebrew installations detected: %s", ", ".join(installations))
    if not confirm("Multiple Homebrew installations detected:\n  " + "\n  ".join(installations) + "\nContinue anyway?"):
        raise SetupAbort("Please resolve Homebrew installation conflicts before continuing")


def guard_disk_space(required_gb: int, path: Path | None = None) -> None:
    usage = shutil.disk_usage(str(path or Path.home()))
    available_gb = usage.free // (1024 ** 3)
    if available_gb < required_gb:
        raise SetupAbort(f"Insufficient disk space. Required: {required_gb}GB, Available: {available_gb}GB")
