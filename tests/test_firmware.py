"""Tests for quickvm.firmware module."""

from __future__ import annotations

from quickvm.constants import FIRMWARE_SEARCH_PATHS, REPO_EFI
from quickvm.firmware import firmware_candidates, resolve_firmware


def _touch(path):
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(b"fw")
    return path


class TestFirmwareCandidates:
    def test_default_order(self):
        candidates = firmware_candidates()
        assert candidates[0] == ("repo", REPO_EFI)
        assert [path for _, path in candidates[1:]] == list(FIRMWARE_SEARCH_PATHS)

    def test_explicit_first(self, tmp_path):
        explicit = tmp_path / "mine.fd"
        candidates = firmware_candidates(explicit)
        assert candidates[0] == ("user-specified", explicit)
        assert candidates[1][0] == "repo"


class TestResolveFirmware:
    def test_x86_is_noop(self, linux_x86_host, tmp_path):
        explicit = _touch(tmp_path / "mine.fd")
        assert resolve_firmware(linux_x86_host, explicit) is None

    def test_explicit_wins_over_everything(self, darwin_arm_host, tmp_path):
        explicit = _touch(tmp_path / "mine.fd")
        repo = _touch(tmp_path / "efi" / "QEMU_EFI.fd")
        system = [_touch(tmp_path / "sys1.fd"), _touch(tmp_path / "sys2.fd")]
        assert resolve_firmware(darwin_arm_host, explicit, repo, system) == explicit

    def test_repo_default_before_system(self, darwin_arm_host, tmp_path):
        repo = _touch(tmp_path / "efi" / "QEMU_EFI.fd")
        system = [_touch(tmp_path / "sys1.fd")]
        assert resolve_firmware(darwin_arm_host, None, repo, system) == repo

    def test_first_existing_system_path(self, linux_arm_host, tmp_path):
        system = [tmp_path / "absent.fd", _touch(tmp_path / "sys2.fd"), _touch(tmp_path / "sys3.fd")]
        assert resolve_firmware(linux_arm_host, None, tmp_path / "efi" / "QEMU_EFI.fd", system) == system[1]

    def test_directories_are_skipped(self, linux_arm_host, tmp_path):
        directory = tmp_path / "dir.fd"
        directory.mkdir()
        fallback = _touch(tmp_path / "real.fd")
        assert resolve_firmware(linux_arm_host, None, tmp_path / "none.fd", [directory, fallback]) == fallback

    def test_none_found_warns(self, linux_arm_host, tmp_path, capsys):
        result = resolve_firmware(linux_arm_host, None, tmp_path / "none.fd", [tmp_path / "a.fd"])
        assert result is None
        out = capsys.readouterr().out
        assert "No EFI firmware found" in out
        assert "--efi" in out
