"""UEFI firmware lookup for aarch64 guests."""

from __future__ import annotations

from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from quickvm.constants import FIRMWARE_SEARCH_PATHS, REPO_EFI
from quickvm.models import HostProfile
from quickvm.utils import log


def firmware_candidates(
    explicit: Optional[Path] = None,
    repo_default: Path = REPO_EFI,
    search_paths: Iterable[Path] = FIRMWARE_SEARCH_PATHS,
) -> List[Tuple[str, Path]]:
    """Return (source, path) pairs in priority order."""
    candidates: List[Tuple[str, Path]] = []
    if explicit is not None:
        candidates.append(("user-specified", explicit))
    candidates.append(("repo", repo_default))
    candidates.extend(("auto-detected", path) for path in search_paths)
    return candidates


def resolve_firmware(
    host: HostProfile,
    explicit: Optional[Path] = None,
    repo_default: Path = REPO_EFI,
    search_paths: Iterable[Path] = FIRMWARE_SEARCH_PATHS,
) -> Optional[Path]:
    """Find the pflash image for an aarch64 guest; ``None`` means boot without one."""
    if host.arch != "aarch64":
        return None

    for source, path in firmware_candidates(explicit, repo_default, search_paths):
        # The explicit path was already checked when the arguments were parsed.
        if source == "user-specified" or path.is_file():
            log("INFO", f"Using {source} EFI firmware: {path}")
            return path

    log("WARN", "No EFI firmware found. Some ARM64 ISOs may not boot.")
    log("INFO", f"Tip: place firmware at ./{REPO_EFI} or pass --efi <path>")
    return None
