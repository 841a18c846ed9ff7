"""Host platform detection for quickvm."""

from __future__ import annotations

import platform
import shutil
from typing import Callable, List, Optional

from quickvm.constants import (
    ARCH_ALIASES,
    INSTALL_HINTS,
    OS_FAMILIES,
    QEMU_IMG,
    SUPPORTED_ARCHES,
)
from quickvm.exceptions import HostError
from quickvm.models import HostProfile
from quickvm.utils import log


def normalize_arch(raw: str) -> str:
    """Map ``uname -m`` spellings onto ``x86_64`` or ``aarch64``."""
    arch = ARCH_ALIASES.get(raw.strip().lower())
    if arch is None:
        raise HostError(f"Unsupported CPU architecture: {raw}")
    return arch


def os_family(system: str) -> str:
    return OS_FAMILIES.get(system, "other")


def detect_host(system: Optional[str] = None, machine: Optional[str] = None) -> HostProfile:
    """Inspect the running host once and pick the emulator binary for it."""
    if system is None:
        system = platform.system()
    if machine is None:
        machine = platform.machine()
    arch = normalize_arch(machine)
    profile = SUPPORTED_ARCHES[arch]
    host = HostProfile(
        system=system,
        os_family=os_family(system),
        arch=arch,
        emulator=profile["emulator"],
        machine=profile["machine"],
    )
    log("INFO", f"Host OS: {host.system}")
    log("INFO", f"Host arch: {host.arch}")
    return host


def install_hint(host: HostProfile, binary: str) -> str:
    return INSTALL_HINTS.get(host.os_family, {}).get(binary, "")


def find_missing_binaries(host: HostProfile, which: Callable[[str], Optional[str]] = shutil.which) -> List[str]:
    """Return the required binaries that are not on PATH."""
    return [binary for binary in (host.emulator, QEMU_IMG) if not which(binary)]


def require_binaries(host: HostProfile, which: Callable[[str], Optional[str]] = shutil.which) -> None:
    missing = find_missing_binaries(host, which)
    if not missing:
        return
    binary = missing[0]
    hint = install_hint(host, binary)
    message = f"Missing {binary}."
    if hint:
        message = f"Missing {binary}. {hint}"
    raise HostError(message)
