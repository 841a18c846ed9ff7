"""Disk image provisioning for quickvm."""

from __future__ import annotations

import json
import subprocess
from pathlib import Path

from quickvm.constants import DEFAULT_DISK_FORMAT, IMAGES_DIR, QEMU_IMG
from quickvm.exceptions import ProvisionError, ResourceError
from quickvm.models import DiskImage
from quickvm.utils import ensure_directory, log, run


def disk_path_for(vm_name: str, images_dir: Path = IMAGES_DIR, fmt: str = DEFAULT_DISK_FORMAT) -> Path:
    return images_dir / f"{vm_name}.{fmt}"


def ensure_disk(
    vm_name: str,
    size_gb: int,
    images_dir: Path = IMAGES_DIR,
    fmt: str = DEFAULT_DISK_FORMAT,
) -> DiskImage:
    """Create ``<images_dir>/<vm_name>.<fmt>`` unless it already exists.

    An existing image is reused exactly as it is: it is never resized or
    reformatted, whatever ``size_gb`` asks for.
    """
    ensure_directory(images_dir)
    disk = disk_path_for(vm_name, images_dir, fmt)

    if disk.exists():
        log("INFO", f"Disk already exists: {disk} (will reuse)")
        return DiskImage(path=disk, format=fmt, created=False)

    log("INFO", f"Creating disk: {disk} ({size_gb}G)")
    try:
        run(
            [QEMU_IMG, "create", "-f", fmt, str(disk), f"{size_gb}G"],
            stdout=subprocess.PIPE,
            stderr=subprocess.PIPE,
        )
    except subprocess.CalledProcessError as exc:
        output = (exc.stderr or exc.stdout or "").strip()
        raise ProvisionError(f"{QEMU_IMG} create failed (exit {exc.returncode}): {output}") from exc
    except FileNotFoundError as exc:
        raise ProvisionError(f"{QEMU_IMG} not found: {exc}") from exc
    log("SUCCESS", "Disk created")
    return DiskImage(path=disk, format=fmt, created=True)


def detect_disk_format(path: Path) -> str:
    """Ask qemu-img for the image format, falling back to the file suffix."""
    try:
        info = run([QEMU_IMG, "info", "--output=json", str(path)], check=False, capture_output=True)
    except FileNotFoundError:
        info = None
    if info is not None and info.returncode == 0:
        try:
            fmt = json.loads(info.stdout).get("format")
        except ValueError:
            fmt = None
        if fmt:
            return fmt
    fmt = "qcow2" if path.suffix.lower() == ".qcow2" else "raw"
    log("WARN", f"Could not read image format of {path}; assuming {fmt}")
    return fmt


def open_existing_disk(path: Path) -> DiskImage:
    """Look up a disk for the start flow. A missing file is never created."""
    if not path.is_file():
        raise ResourceError(f"Disk image not found: {path}")
    return DiskImage(path=path, format=detect_disk_format(path), created=False)
