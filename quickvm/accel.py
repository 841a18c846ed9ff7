"""Accelerator and CPU-model selection for quickvm."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Callable, List, NamedTuple

from quickvm.constants import KVM_DEVICE, SUPPORTED_ARCHES
from quickvm.models import AccelChoice, HostProfile
from quickvm.utils import log


class AccelRule(NamedTuple):
    """One row of the accelerator decision table."""

    matches: Callable[[HostProfile, bool, bool], bool]  # (host, no_accel, kvm_ok)
    choice: AccelChoice
    level: str


def kvm_usable(path: Path = KVM_DEVICE) -> bool:
    """Return True if the KVM device node exists and is readable and writable."""
    return path.exists() and os.access(path, os.R_OK | os.W_OK)


# Evaluated top to bottom; first match wins.
ACCEL_RULES: List[AccelRule] = [
    AccelRule(
        lambda host, no_accel, kvm_ok: no_accel,
        AccelChoice("tcg", False, "Acceleration disabled via --no-accel (using TCG)"),
        "INFO",
    ),
    AccelRule(
        lambda host, no_accel, kvm_ok: host.os_family == "linux" and kvm_ok,
        AccelChoice("kvm", True, "Using KVM acceleration"),
        "SUCCESS",
    ),
    AccelRule(
        lambda host, no_accel, kvm_ok: host.os_family == "linux",
        AccelChoice("tcg", False, "KVM not available; using TCG (emulation)"),
        "WARN",
    ),
    AccelRule(
        lambda host, no_accel, kvm_ok: host.os_family == "darwin",
        AccelChoice("hvf", True, "Using HVF acceleration (best effort)"),
        "SUCCESS",
    ),
    AccelRule(
        lambda host, no_accel, kvm_ok: True,
        AccelChoice("tcg", False, "Unknown OS accel; using TCG"),
        "INFO",
    ),
]


def select_accelerator(host: HostProfile, no_accel: bool = False, kvm_device: Path = KVM_DEVICE) -> AccelChoice:
    # The device node only matters on Linux; skip the probe elsewhere.
    kvm_ok = not no_accel and host.os_family == "linux" and kvm_usable(kvm_device)
    for rule in ACCEL_RULES:
        if rule.matches(host, no_accel, kvm_ok):
            log(rule.level, rule.choice.reason)
            return rule.choice
    raise AssertionError("accelerator rules must end with a catch-all")  # pragma: no cover


def select_cpu_model(host: HostProfile, accel: AccelChoice) -> str:
    """Pick ``-cpu``: host passthrough unless emulating an arch that needs a safe model."""
    fallback = SUPPORTED_ARCHES[host.arch].get("tcg_fallback")
    if accel.hardware or not fallback:
        return "host"
    return fallback
