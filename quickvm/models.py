"""Data models for quickvm."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import NamedTuple, Optional

from quickvm.constants import (
    DEFAULT_CPUS,
    DEFAULT_DISK_GB,
    DEFAULT_RAM_MB,
    DEFAULT_SSH_PORT,
)


class Clause(NamedTuple):
    flag: str
    value: Optional[str] = None


@dataclass(frozen=True)
class VMConfig:
    iso_path: Path
    vm_name: str
    disk_gb: int = DEFAULT_DISK_GB
    ram_mb: int = DEFAULT_RAM_MB
    cpus: int = DEFAULT_CPUS
    ssh_port: int = DEFAULT_SSH_PORT
    autoinstall_iso: Optional[Path] = None
    efi_path: Optional[Path] = None
    no_accel: bool = False
    headless: bool = False
    dry_run: bool = False
    show_config: bool = False


@dataclass(frozen=True)
class StartConfig:
    disk_path: Path
    vm_name: str
    memory_mb: int = DEFAULT_RAM_MB
    cpus: int = DEFAULT_CPUS
    ssh_port: int = DEFAULT_SSH_PORT
    efi_path: Optional[Path] = None
    no_accel: bool = False
    headless: bool = False
    dry_run: bool = False
    show_config: bool = False


@dataclass(frozen=True)
class HostProfile:
    system: str
    os_family: str  # "linux", "darwin", "other"
    arch: str  # "x86_64", "aarch64"
    emulator: str
    machine: str


@dataclass(frozen=True)
class AccelChoice:
    accelerator: str  # "kvm", "hvf", "tcg"
    hardware: bool
    reason: str


@dataclass(frozen=True)
class DiskImage:
    path: Path
    format: str
    created: bool = False
