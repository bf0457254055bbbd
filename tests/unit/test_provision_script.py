"""Tests for the bundled provisioning script."""

import os
import shlex
import shutil
import subprocess
import sys
from pathlib import Path

import pytest

from boxfleet.config import BoxfleetConfig

pytestmark = pytest.mark.skipif(shutil.which("bash") is None, reason="needs bash")

ADDRESS = "192.168.22.10"


def _provision(work_dir: Path, tool_command: list[str]) -> subprocess.CompletedProcess:
    env = {
        **os.environ,
        "VM_BOX": "trusty64",
        "VM_IP": ADDRESS,
        "VM_RAM": "1024",
        "VM_CPUS": "2",
        "VM_PUB_KEY": "ssh-ed25519 AAAA user@host",
        "VM_DIR": str(work_dir),
        "VM_TOOL": shlex.join(tool_command),
    }
    return subprocess.run(
        BoxfleetConfig().PROVISION_COMMAND, env=env, capture_output=True, text=True
    )


class TestProvisionScript:
    """Tests for provision.sh."""

    def test_tool_path_with_spaces(self, tmp_path, fake_tool, tool_log) -> None:
        tool_dir = tmp_path / "fake tools"
        tool_dir.mkdir()
        script = tool_dir / "vagrant.py"
        script.write_text(Path(fake_tool[1]).read_text())
        work_dir = tmp_path / "state" / ADDRESS

        result = _provision(work_dir, [sys.executable, str(script)])

        assert result.returncode == 0, result.stderr
        assert tool_log.args() == [["up"]]
        assert os.path.realpath(tool_log.calls()[0]["cwd"]) == os.path.realpath(
            work_dir
        )

    def test_writes_vagrantfile(self, tmp_path, fake_tool, tool_log) -> None:
        work_dir = tmp_path / "state" / ADDRESS

        result = _provision(work_dir, fake_tool)

        assert result.returncode == 0, result.stderr
        vagrantfile = (work_dir / "Vagrantfile").read_text()
        assert 'config.vm.box = "trusty64"' in vagrantfile
        assert f'ip: "{ADDRESS}"' in vagrantfile
        assert "vb.memory = 1024" in vagrantfile
        assert "ssh-ed25519 AAAA user@host" in vagrantfile

    def test_existing_directory_is_refused(self, tmp_path, fake_tool, tool_log) -> None:
        work_dir = tmp_path / "state" / ADDRESS
        work_dir.mkdir(parents=True)

        result = _provision(work_dir, fake_tool)

        assert result.returncode == 1
        assert "already exists" in result.stderr
        assert tool_log.args() == []
