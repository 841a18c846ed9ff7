"""Command-line argument resolution for quickvm."""

from __future__ import annotations

import argparse
import sys
import textwrap
from pathlib import Path
from typing import List, Optional

from quickvm.constants import (
    DEFAULT_CPUS,
    DEFAULT_DISK_GB,
    DEFAULT_RAM_MB,
    DEFAULT_SSH_PORT,
    MAX_PORT,
    REPO_EFI,
)
from quickvm.exceptions import ConfigError, ResourceError
from quickvm.models import StartConfig, VMConfig
from quickvm.utils import parse_int_option

CREATE_EPILOG = textwrap.dedent(
    f"""\
    What this does:
      - Detects host OS + CPU architecture (x86_64 vs arm64/aarch64)
      - Chooses qemu-system-x86_64 or qemu-system-aarch64
      - Uses KVM (Linux) or HVF (macOS) if available, unless --no-accel is set
      - Creates ./images/<vm_name>.qcow2 if missing (an existing disk is reused as is)
      - Boots the installer ISO and attaches the optional autoinstall ISO
      - User-mode networking with SSH forward: host localhost:<ssh-port> -> guest 22

    Notes:
      - On Apple Silicon (arm64) you generally must use an ARM64 ISO.
      - ARM64 firmware is taken from --efi, then ./{REPO_EFI}, then common system paths.
      - An autoinstall ISO does not always give an unattended install; some ISOs still
        need kernel args in GRUB (e.g. "autoinstall ds=nocloud\\;s=/cdrom/").
    """
)


class ArgumentParser(argparse.ArgumentParser):
    """argparse parser that reports usage errors as ``ConfigError``.

    Abbreviated long options are disabled so only the exact flag names are recognized.
    """

    def __init__(self, *args, **kwargs) -> None:
        kwargs.setdefault("allow_abbrev", False)
        super().__init__(*args, **kwargs)

    def error(self, message: str):
        self.print_usage(sys.stderr)
        raise ConfigError(f"{self.prog}: {message} (use --help)")


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--cpus", default=str(DEFAULT_CPUS), metavar="N", help=f"vCPU count (default: {DEFAULT_CPUS})")
    parser.add_argument(
        "--ssh-port",
        default=str(DEFAULT_SSH_PORT),
        metavar="N",
        help=f"Host port forwarded to guest 22 (default: {DEFAULT_SSH_PORT})",
    )
    parser.add_argument(
        "--efi",
        metavar="PATH",
        help="Path to EFI/UEFI firmware (QEMU_EFI.fd) for ARM64 hosts. Overrides default + auto-detection.",
    )
    parser.add_argument("--no-accel", action="store_true", help="Force pure emulation (TCG), even if KVM/HVF is available")
    parser.add_argument("--headless", action="store_true", help="No GUI window (uses serial console); best for servers")
    parser.add_argument("--dry-run", action="store_true", help="Print the QEMU command without creating or launching anything")
    parser.add_argument("--show-config", action="store_true", help="Show resolved VM configuration and exit")


def add_create_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("iso", metavar="ISO", help="Path to a bootable installer ISO")
    parser.add_argument("vm_name", metavar="VM_NAME", help="Name for the VM disk file")
    parser.add_argument(
        "--disk-gb", default=str(DEFAULT_DISK_GB), metavar="N", help=f"Disk size in GB (default: {DEFAULT_DISK_GB})"
    )
    parser.add_argument("--ram-mb", default=str(DEFAULT_RAM_MB), metavar="N", help=f"RAM in MB (default: {DEFAULT_RAM_MB})")
    parser.add_argument(
        "--autoinstall-iso",
        metavar="PATH",
        help="Prebuilt autoinstall/seed ISO to attach as a second, read-only CD-ROM",
    )
    _add_common_arguments(parser)


def add_start_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("disk", metavar="DISK", help="Path to an existing disk image")
    parser.add_argument("--name", metavar="NAME", help="VM display name (default: disk file name)")
    parser.add_argument("--memory", default=str(DEFAULT_RAM_MB), metavar="N", help=f"RAM in MB (default: {DEFAULT_RAM_MB})")
    _add_common_arguments(parser)


def create_parser(prog: str = "quickvm create") -> ArgumentParser:
    parser = ArgumentParser(
        prog=prog,
        description="Create + boot a VM from an installer ISO.",
        epilog=CREATE_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_create_arguments(parser)
    return parser


def start_parser(prog: str = "quickvm start") -> ArgumentParser:
    parser = ArgumentParser(prog=prog, description="Boot an existing VM disk image.")
    add_start_arguments(parser)
    return parser


def validate_vm_name(name: str) -> str:
    if not name or name in {".", ".."} or "/" in name or "\\" in name or "," in name:
        raise ConfigError(f"Invalid VM name '{name}': must be a plain file name without commas")
    return name


def _require_file(raw: Optional[str], role: str) -> Optional[Path]:
    if raw is None:
        return None
    path = Path(raw).expanduser()
    if not path.is_file():
        raise ResourceError(f"{role} not found: {raw}")
    return path


def resolve_create(args: argparse.Namespace) -> VMConfig:
    """Turn parsed ``create`` arguments into a validated VMConfig."""
    vm_name = validate_vm_name(args.vm_name)
    disk_gb = parse_int_option("--disk-gb", args.disk_gb)
    ram_mb = parse_int_option("--ram-mb", args.ram_mb)
    cpus = parse_int_option("--cpus", args.cpus)
    ssh_port = parse_int_option("--ssh-port", args.ssh_port, max_val=MAX_PORT)

    iso_path = _require_file(args.iso, "ISO")
    autoinstall_iso = _require_file(args.autoinstall_iso, "Autoinstall ISO")
    efi_path = _require_file(args.efi, "EFI firmware")

    return VMConfig(
        iso_path=iso_path,
        vm_name=vm_name,
        disk_gb=disk_gb,
        ram_mb=ram_mb,
        cpus=cpus,
        ssh_port=ssh_port,
        autoinstall_iso=autoinstall_iso,
        efi_path=efi_path,
        no_accel=args.no_accel,
        headless=args.headless,
        dry_run=args.dry_run,
        show_config=args.show_config,
    )


def resolve_start(args: argparse.Namespace) -> StartConfig:
    """Turn parsed ``start`` arguments into a validated StartConfig."""
    memory_mb = parse_int_option("--memory", args.memory)
    cpus = parse_int_option("--cpus", args.cpus)
    ssh_port = parse_int_option("--ssh-port", args.ssh_port, max_val=MAX_PORT)

    disk_path = _require_file(args.disk, "Disk image")
    assert disk_path is not None
    efi_path = _require_file(args.efi, "EFI firmware")
    vm_name = args.name if args.name is not None else disk_path.stem

    return StartConfig(
        disk_path=disk_path,
        vm_name=vm_name,
        memory_mb=memory_mb,
        cpus=cpus,
        ssh_port=ssh_port,
        efi_path=efi_path,
        no_accel=args.no_accel,
        headless=args.headless,
        dry_run=args.dry_run,
        show_config=args.show_config,
    )


def parse_create_args(argv: Optional[List[str]] = None) -> VMConfig:
    return resolve_create(create_parser().parse_args(argv))


def parse_start_args(argv: Optional[List[str]] = None) -> StartConfig:
    return resolve_start(start_parser().parse_args(argv))
