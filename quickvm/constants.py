"""Global constants and path configuration for quickvm."""

from __future__ import annotations

import os
import re
from pathlib import Path

# Paths are relative to the directory quickvm is run from.
IMAGES_DIR = Path("images")
REPO_EFI = Path("efi") / "QEMU_EFI.fd"
KVM_DEVICE = Path("/dev/kvm")
QEMU_IMG = "qemu-img"

DEFAULT_DISK_GB = 32
DEFAULT_RAM_MB = 4096
DEFAULT_CPUS = 4
DEFAULT_SSH_PORT = 2222
DEFAULT_DISK_FORMAT = "qcow2"
GUEST_SSH_PORT = 22
MAX_PORT = 65535

TRUTHY = {"1", "true", "yes", "on"}
INTEGER_RE = re.compile(r"^[0-9]+$")

SUPPORTED_ARCHES = {
    "x86_64": {
        "emulator": "qemu-system-x86_64",
        "machine": "q35",
        # x86_64 keeps the host CPU model regardless of accelerator.
        "tcg_fallback": None,
    },
    "aarch64": {
        "emulator": "qemu-system-aarch64",
        "machine": "virt",
        "tcg_fallback": "cortex-a57",
    },
}

ARCH_ALIASES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
}

OS_FAMILIES = {
    "Linux": "linux",
    "Darwin": "darwin",
}

# Checked in order after --efi and REPO_EFI.
FIRMWARE_SEARCH_PATHS = (
    Path("/usr/share/qemu-efi-aarch64/QEMU_EFI.fd"),
    Path("/usr/share/edk2/aarch64/QEMU_EFI.fd"),
    Path("/opt/homebrew/share/qemu/edk2-aarch64-code.fd"),
    Path("/usr/local/share/qemu/edk2-aarch64-code.fd"),
)

INSTALL_HINTS = {
    "darwin": {
        "qemu-system-x86_64": "Install with: brew install qemu",
        "qemu-system-aarch64": "Install with: brew install qemu",
        "qemu-img": "Install with: brew install qemu",
    },
    "linux": {
        "qemu-system-x86_64": "Install QEMU (e.g. apt install qemu-system-x86)",
        "qemu-system-aarch64": "Install QEMU (e.g. apt install qemu-system-arm)",
        "qemu-img": "Install qemu-utils (e.g. apt install qemu-utils)",
    },
}

_LOG_VERBOSE = os.environ.get("LOG_VERBOSE", "").lower() in TRUTHY
