"""Tests for quickvm.disk module."""

from __future__ import annotations

import json
import subprocess
from types import SimpleNamespace
from unittest.mock import patch

import pytest

from quickvm.disk import detect_disk_format, disk_path_for, ensure_disk, open_existing_disk
from quickvm.exceptions import ProvisionError, ResourceError


def _fake_qemu_img_create(cmd, check=True, text=True, **kwargs):
    # qemu-img create -f FMT PATH SIZE
    path = cmd[4]
    with open(path, "wb") as f:
        f.write(b"QFI\xfb")
    return subprocess.CompletedProcess(cmd, 0, "", "")


class TestDiskPath:
    def test_deterministic(self, tmp_path):
        assert disk_path_for("demo", tmp_path) == tmp_path / "demo.qcow2"
        assert disk_path_for("demo", tmp_path, "raw") == tmp_path / "demo.raw"


class TestEnsureDisk:
    def test_creates_missing_disk(self, tmp_path):
        images = tmp_path / "images" / "nested"
        with patch("quickvm.disk.run", side_effect=_fake_qemu_img_create) as mock_run:
            disk = ensure_disk("demo", 10, images)
        assert disk.created is True
        assert disk.path == images / "demo.qcow2"
        assert disk.format == "qcow2"
        assert disk.path.exists()
        cmd = mock_run.call_args.args[0]
        assert cmd == ["qemu-img", "create", "-f", "qcow2", str(images / "demo.qcow2"), "10G"]

    def test_second_call_reuses_without_resize(self, tmp_path, capsys):
        images = tmp_path / "images"
        with patch("quickvm.disk.run", side_effect=_fake_qemu_img_create) as mock_run:
            first = ensure_disk("demo", 10, images)
            size_before = first.path.stat().st_size
            second = ensure_disk("demo", 50, images)
        assert mock_run.call_count == 1
        assert second.created is False
        assert second.path == first.path
        assert second.path.stat().st_size == size_before
        assert "will reuse" in capsys.readouterr().out

    def test_images_dir_created_even_when_reusing(self, tmp_path):
        images = tmp_path / "images"
        images.mkdir()
        (images / "demo.qcow2").write_bytes(b"existing")
        with patch("quickvm.disk.run") as mock_run:
            disk = ensure_disk("demo", 10, images)
        mock_run.assert_not_called()
        assert disk.path.read_bytes() == b"existing"

    def test_tool_failure_is_provision_error(self, tmp_path):
        error = subprocess.CalledProcessError(1, ["qemu-img"], output="", stderr="Could not create image\n")
        with patch("quickvm.disk.run", side_effect=error) as mock_run:
            with pytest.raises(ProvisionError, match="exit 1.*Could not create image"):
                ensure_disk("demo", 10, tmp_path)
        assert mock_run.call_count == 1

    def test_tool_missing_is_provision_error(self, tmp_path):
        with patch("quickvm.disk.run", side_effect=FileNotFoundError("qemu-img")):
            with pytest.raises(ProvisionError, match="qemu-img not found"):
                ensure_disk("demo", 10, tmp_path)


class TestDetectDiskFormat:
    def test_reads_qemu_img_info(self, tmp_path):
        disk = tmp_path / "disk.img"
        disk.write_bytes(b"x")
        info = SimpleNamespace(returncode=0, stdout=json.dumps({"format": "qcow2", "virtual-size": 1}))
        with patch("quickvm.disk.run", return_value=info) as mock_run:
            assert detect_disk_format(disk) == "qcow2"
        assert mock_run.call_args.args[0] == ["qemu-img", "info", "--output=json", str(disk)]
        assert mock_run.call_args.kwargs["check"] is False

    @pytest.mark.parametrize("name,expected", [("a.qcow2", "qcow2"), ("a.img", "raw"), ("a.raw", "raw")])
    def test_suffix_fallback_on_failure(self, tmp_path, name, expected):
        disk = tmp_path / name
        disk.write_bytes(b"x")
        info = SimpleNamespace(returncode=1, stdout="")
        with patch("quickvm.disk.run", return_value=info):
            assert detect_disk_format(disk) == expected

    def test_suffix_fallback_without_tool(self, tmp_path):
        disk = tmp_path / "a.qcow2"
        disk.write_bytes(b"x")
        with patch("quickvm.disk.run", side_effect=FileNotFoundError):
            assert detect_disk_format(disk) == "qcow2"


class TestOpenExistingDisk:
    def test_missing_is_fatal_and_not_created(self, tmp_path):
        missing = tmp_path / "gone.qcow2"
        with patch("quickvm.disk.run") as mock_run:
            with pytest.raises(ResourceError, match="Disk image not found"):
                open_existing_disk(missing)
        mock_run.assert_not_called()
        assert not missing.exists()

    def test_existing(self, tmp_path):
        disk = tmp_path / "vm.qcow2"
        disk.write_bytes(b"x")
        with patch("quickvm.disk.detect_disk_format", return_value="qcow2"):
            image = open_existing_disk(disk)
        assert image.path == disk
        assert image.format == "qcow2"
        assert image.created is False
