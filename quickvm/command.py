"""QEMU command composition and launch for quickvm."""

from __future__ import annotations

import shlex
import signal
import subprocess
from pathlib import Path
from typing import Dict, List, Optional, Tuple

from quickvm.constants import GUEST_SSH_PORT
from quickvm.exceptions import HostError
from quickvm.models import AccelChoice, Clause, DiskImage, HostProfile, StartConfig, VMConfig
from quickvm.utils import log

Clauses = Tuple[Clause, ...]


class Invocation:
    """Emulator binary plus named clause sections, kept apart until serialized."""

    def __init__(self, binary: str) -> None:
        self.binary = binary
        self._sections: Dict[str, Clauses] = {}

    def add(self, name: str, *clauses: Clause) -> "Invocation":
        if name in self._sections:
            raise ValueError(f"Section '{name}' already added")
        self._sections[name] = tuple(clauses)
        return self

    def section(self, name: str) -> Clauses:
        return self._sections[name]

    @property
    def section_names(self) -> List[str]:
        return list(self._sections)

    def argv(self) -> List[str]:
        args = [self.binary]
        for clauses in self._sections.values():
            for clause in clauses:
                args.append(clause.flag)
                if clause.value is not None:
                    args.append(clause.value)
        return args

    def __str__(self) -> str:
        return shlex.join(self.argv())


def accel_clauses(accel: AccelChoice) -> Clauses:
    return (Clause("-accel", accel.accelerator),)


def machine_clauses(host: HostProfile) -> Clauses:
    return (Clause("-machine", host.machine),)


def cpu_clauses(cpu_model: str) -> Clauses:
    return (Clause("-cpu", cpu_model),)


def memory_clauses(memory_mb: int) -> Clauses:
    return (Clause("-m", str(memory_mb)),)


def smp_clauses(cpus: int) -> Clauses:
    return (Clause("-smp", str(cpus)),)


def _drive_file(path: Path) -> str:
    # QEMU option values escape a literal comma as ",,".
    return str(path).replace(",", ",,")


def firmware_clauses(firmware: Path) -> Clauses:
    return (Clause("-drive", f"if=pflash,format=raw,readonly=on,file={_drive_file(firmware)}"),)


def disk_clauses(disk: DiskImage) -> Clauses:
    return (Clause("-drive", f"file={_drive_file(disk.path)},if=virtio,format={disk.format}"),)


def cdrom_clauses(iso: Path) -> Clauses:
    return (Clause("-cdrom", str(iso)), Clause("-boot", "d"))


def seed_clauses(seed_iso: Path) -> Clauses:
    return (Clause("-drive", f"file={_drive_file(seed_iso)},media=cdrom,readonly=on"),)


def network_clauses(ssh_port: int) -> Clauses:
    return (
        Clause("-netdev", f"user,id=n1,hostfwd=tcp::{ssh_port}-:{GUEST_SSH_PORT}"),
        Clause("-device", "virtio-net-pci,netdev=n1"),
    )


def rng_clauses() -> Clauses:
    return (Clause("-device", "virtio-rng-pci"),)


def display_clauses(headless: bool) -> Clauses:
    # -nographic puts the serial console on stdio.
    if headless:
        return (Clause("-nographic"),)
    return (Clause("-display", "default"),)


def _compose_machine(
    host: HostProfile,
    accel: AccelChoice,
    cpu_model: str,
    memory_mb: int,
    cpus: int,
    firmware: Optional[Path],
    disk: DiskImage,
) -> Invocation:
    invocation = Invocation(host.emulator)
    invocation.add("accel", *accel_clauses(accel))
    invocation.add("machine", *machine_clauses(host))
    invocation.add("cpu", *cpu_clauses(cpu_model))
    invocation.add("memory", *memory_clauses(memory_mb))
    invocation.add("smp", *smp_clauses(cpus))
    if firmware is not None:
        invocation.add("firmware", *firmware_clauses(firmware))
    invocation.add("disk", *disk_clauses(disk))
    return invocation


def compose_create(
    cfg: VMConfig,
    host: HostProfile,
    accel: AccelChoice,
    cpu_model: str,
    firmware: Optional[Path],
    disk: DiskImage,
) -> Invocation:
    """Build the installer boot command: disk plus installer (and seed) CD-ROMs."""
    invocation = _compose_machine(host, accel, cpu_model, cfg.ram_mb, cfg.cpus, firmware, disk)
    invocation.add("cdrom", *cdrom_clauses(cfg.iso_path))
    if cfg.autoinstall_iso is not None:
        log("INFO", f"Attaching autoinstall/seed ISO: {cfg.autoinstall_iso}")
        invocation.add("seed", *seed_clauses(cfg.autoinstall_iso))
    invocation.add("network", *network_clauses(cfg.ssh_port))
    invocation.add("rng", *rng_clauses())
    if cfg.headless:
        log("INFO", "Headless mode enabled (--headless)")
    invocation.add("display", *display_clauses(cfg.headless))
    return invocation


def compose_start(
    cfg: StartConfig,
    host: HostProfile,
    accel: AccelChoice,
    cpu_model: str,
    firmware: Optional[Path],
    disk: DiskImage,
) -> Invocation:
    """Build the command that boots an already installed disk."""
    invocation = _compose_machine(host, accel, cpu_model, cfg.memory_mb, cfg.cpus, firmware, disk)
    invocation.add("network", *network_clauses(cfg.ssh_port))
    invocation.add("rng", *rng_clauses())
    invocation.add("display", *display_clauses(cfg.headless))
    return invocation


def launch(invocation: Invocation) -> int:
    """Run the emulator in the foreground and return its exit status.

    A child killed by signal N is reported as 128 + N, the way a shell reports it.
    """
    log("INFO", f"Launching: {invocation}")
    try:
        proc = subprocess.Popen(invocation.argv())
    except FileNotFoundError as exc:
        raise HostError(f"Missing {invocation.binary}: {exc}") from exc

    def _terminate_emulator(signum, frame):
        proc.terminate()

    prev_sigterm = signal.signal(signal.SIGTERM, _terminate_emulator)
    try:
        retcode = proc.wait()
    except KeyboardInterrupt:
        proc.send_signal(signal.SIGINT)
        retcode = proc.wait()
    finally:
        signal.signal(signal.SIGTERM, prev_sigterm)
    if retcode < 0:
        return 128 - retcode
    return retcode
