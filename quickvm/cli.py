"""CLI entry points for quickvm."""

from __future__ import annotations

import argparse
import dataclasses
import traceback
from pathlib import Path
from typing import Dict, List, Optional, Union

try:
    import yaml  # type: ignore
except ImportError as exc:  # pragma: no cover
    raise SystemExit("PyYAML is required but not installed") from exc

from quickvm.accel import select_accelerator, select_cpu_model
from quickvm.command import Invocation, compose_create, compose_start, launch
from quickvm.config import (
    CREATE_EPILOG,
    ArgumentParser,
    add_create_arguments,
    add_start_arguments,
    parse_create_args,
    parse_start_args,
    resolve_create,
    resolve_start,
)
from quickvm.constants import DEFAULT_DISK_FORMAT, IMAGES_DIR
from quickvm.disk import disk_path_for, ensure_disk, open_existing_disk
from quickvm.exceptions import LauncherError
from quickvm.firmware import resolve_firmware
from quickvm.host import detect_host, find_missing_binaries, install_hint, require_binaries
from quickvm.models import AccelChoice, DiskImage, HostProfile, StartConfig, VMConfig
from quickvm.utils import log


def _plain(value):
    if isinstance(value, Path):
        return str(value)
    return value


def show_config(
    cfg: Union[VMConfig, StartConfig],
    host: HostProfile,
    accel: AccelChoice,
    cpu_model: str,
    firmware: Optional[Path],
) -> None:
    """Print the resolved configuration and host decisions as YAML."""
    data: Dict[str, object] = {
        "vm": {field.name: _plain(getattr(cfg, field.name)) for field in dataclasses.fields(cfg)},
        "host": dataclasses.asdict(host),
        "accelerator": accel.accelerator,
        "cpu_model": cpu_model,
        "firmware": _plain(firmware),
    }
    print(yaml.safe_dump(data, sort_keys=False, default_flow_style=False), end="", flush=True)


def print_startup_banner(vm_name: str, host: HostProfile, accel: AccelChoice, memory_mb: int, cpus: int, ssh_port: int) -> None:
    """Print a visually distinct access-info banner before the VM starts."""
    lines: List[str] = [
        f"  VM: {vm_name}",
        f"  Arch: {host.arch} | Accel: {accel.accelerator} | Memory: {memory_mb} MiB | CPUs: {cpus}",
        f"  SSH (if enabled in guest): ssh -p {ssh_port} <user>@localhost",
    ]
    max_len = max(len(line) for line in lines)
    border_len = max_len + 2
    banner_colour = "\033[0;36m"
    reset = "\033[0m"
    print(f"{banner_colour}{'=' * border_len}{reset}", flush=True)
    for line in lines:
        print(f"{banner_colour}{line}{reset}", flush=True)
    print(f"{banner_colour}{'=' * border_len}{reset}", flush=True)


def _check_binaries(host: HostProfile, dry_run: bool) -> None:
    if not dry_run:
        require_binaries(host)
        return
    for binary in find_missing_binaries(host):
        log("WARN", f"Missing {binary}. {install_hint(host, binary)}".rstrip())


def _finish(invocation: Invocation, dry_run: bool) -> int:
    if dry_run:
        print(invocation, flush=True)
        log("INFO", "=== Dry-run complete (no VM started) ===")
        return 0
    retcode = launch(invocation)
    if retcode != 0:
        log("WARN", f"QEMU exited with status {retcode}")
    return retcode


def run_create(cfg: VMConfig, images_dir: Path = IMAGES_DIR) -> int:
    """Create (if needed) the disk for ``cfg`` and boot the installer."""
    host = detect_host()
    accel = select_accelerator(host, cfg.no_accel)
    cpu_model = select_cpu_model(host, accel)
    firmware = resolve_firmware(host, cfg.efi_path)

    if cfg.show_config:
        show_config(cfg, host, accel, cpu_model, firmware)
        return 0

    _check_binaries(host, cfg.dry_run)

    if cfg.dry_run:
        disk = DiskImage(path=disk_path_for(cfg.vm_name, images_dir), format=DEFAULT_DISK_FORMAT)
    else:
        disk = ensure_disk(cfg.vm_name, cfg.disk_gb, images_dir)

    invocation = compose_create(cfg, host, accel, cpu_model, firmware, disk)
    log("INFO", f"VM directory: {images_dir}")
    print_startup_banner(cfg.vm_name, host, accel, cfg.ram_mb, cfg.cpus, cfg.ssh_port)
    log("INFO", "Launching installer...")
    return _finish(invocation, cfg.dry_run)


def run_start(cfg: StartConfig) -> int:
    """Boot an existing disk image."""
    host = detect_host()
    accel = select_accelerator(host, cfg.no_accel)
    cpu_model = select_cpu_model(host, accel)
    firmware = resolve_firmware(host, cfg.efi_path)

    if cfg.show_config:
        show_config(cfg, host, accel, cpu_model, firmware)
        return 0

    _check_binaries(host, cfg.dry_run)
    disk = open_existing_disk(cfg.disk_path)

    invocation = compose_start(cfg, host, accel, cpu_model, firmware, disk)
    print_startup_banner(cfg.vm_name, host, accel, cfg.memory_mb, cfg.cpus, cfg.ssh_port)
    log("INFO", f"Starting VM {cfg.vm_name} from {disk.path}...")
    return _finish(invocation, cfg.dry_run)


def _guarded(action) -> int:
    try:
        return action()
    except LauncherError as exc:
        log("ERROR", str(exc))
        return 1
    except Exception as exc:
        log("ERROR", f"Unexpected error: {exc}")
        traceback.print_exc()
        return 1


def create_main(argv: Optional[List[str]] = None) -> int:
    return _guarded(lambda: run_create(parse_create_args(argv)))


def start_main(argv: Optional[List[str]] = None) -> int:
    return _guarded(lambda: run_start(parse_start_args(argv)))


def build_parser() -> ArgumentParser:
    parser = ArgumentParser(prog="quickvm", description="Provision and launch QEMU virtual machines")
    subparsers = parser.add_subparsers(dest="command", metavar="COMMAND")
    subparsers.required = True
    create = subparsers.add_parser(
        "create",
        help="Create a disk and boot an installer ISO",
        description="Create + boot a VM from an installer ISO.",
        epilog=CREATE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_create_arguments(create)
    start = subparsers.add_parser("start", help="Boot an existing disk image", description="Boot an existing VM disk image.")
    add_start_arguments(start)
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    def _dispatch() -> int:
        args = build_parser().parse_args(argv)
        if args.command == "create":
            return run_create(resolve_create(args))
        return run_start(resolve_start(args))

    return _guarded(_dispatch)
