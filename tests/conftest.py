"""Shared test fixtures."""

from __future__ import annotations

from pathlib import Path

import pytest

from quickvm.models import AccelChoice, DiskImage, HostProfile, VMConfig


@pytest.fixture
def iso_file(tmp_path) -> Path:
    iso = tmp_path / "ubuntu.iso"
    iso.write_bytes(b"iso")
    return iso


@pytest.fixture
def default_vm_config(iso_file) -> VMConfig:
    """Return a VMConfig with the command-line defaults."""
    return VMConfig(iso_path=iso_file, vm_name="demo")


@pytest.fixture
def linux_x86_host() -> HostProfile:
    return HostProfile(system="Linux", os_family="linux", arch="x86_64", emulator="qemu-system-x86_64", machine="q35")


@pytest.fixture
def darwin_arm_host() -> HostProfile:
    return HostProfile(system="Darwin", os_family="darwin", arch="aarch64", emulator="qemu-system-aarch64", machine="virt")


@pytest.fixture
def linux_arm_host() -> HostProfile:
    return HostProfile(system="Linux", os_family="linux", arch="aarch64", emulator="qemu-system-aarch64", machine="virt")


@pytest.fixture
def tcg() -> AccelChoice:
    return AccelChoice("tcg", False, "test")


@pytest.fixture
def kvm() -> AccelChoice:
    return AccelChoice("kvm", True, "test")


@pytest.fixture
def qcow2_disk(tmp_path) -> DiskImage:
    return DiskImage(path=tmp_path / "images" / "demo.qcow2", format="qcow2")


@pytest.fixture
def workdir(tmp_path, monkeypatch) -> Path:
    """Run from an empty directory so ./images and ./efi resolve under tmp_path."""
    root = tmp_path / "work"
    root.mkdir()
    monkeypatch.chdir(root)
    return root
