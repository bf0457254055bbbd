"""Fixtures for boxfleet unit tests.

Processes are exercised for real: a small Python script stands in for
Vagrant and another for the provisioning script. Both append one JSON
line per invocation to the file named by ``FAKE_TOOL_LOG``.
"""

import io
import json
import sys
from pathlib import Path

import pytest
from rich.console import Console

from boxfleet.config import BoxfleetConfig
from boxfleet.vagrant.addressing import FIRST_ADDRESS
from boxfleet.vagrant.lifecycle import InstanceLifecycle
from boxfleet.vagrant.output import OutputMultiplexer

FAKE_TOOL = '''
import json, os, sys

args = sys.argv[1:]
log = os.environ.get("FAKE_TOOL_LOG")
if log:
    with open(log, "a") as f:
        f.write(json.dumps({"args": args, "cwd": os.getcwd()}) + "\\n")

command = args[1] if args[:1] == ["box"] else (args[0] if args else "")
if command == "list":
    for name in filter(None, os.environ.get("FAKE_BOXES", "").split(":")):
        print(f"1400000000,,box-name,{name}")
        print("1400000000,,box-provider,virtualbox")
    print("not a record")
else:
    print(f"{command}: working")
    print(f"{command}: careful", file=sys.stderr)

failing = os.environ.get("FAKE_FAIL", "").split(":")
sys.exit(3 if command in failing else 0)
'''

FAKE_PROVISION = '''
import json, os, sys

log = os.environ.get("FAKE_TOOL_LOG")
if log:
    with open(log, "a") as f:
        f.write(json.dumps({"args": ["provision"], "cwd": os.getcwd()}) + "\\n")

exit_code = int(os.environ.get("FAKE_PROVISION_EXIT", "0"))
if exit_code == 0 or os.environ.get("FAKE_PROVISION_KEEP_DIR"):
    os.makedirs(os.environ["VM_DIR"])
    with open(os.path.join(os.environ["VM_DIR"], "env.json"), "w") as f:
        json.dump({k: v for k, v in os.environ.items() if k.startswith("VM_")}, f)
print("provisioned")
sys.exit(exit_code)
'''


class ToolLog:
    """Reads the invocations recorded by the fake scripts."""

    def __init__(self, path: Path):
        self.path = path

    def calls(self) -> list[dict]:
        if not self.path.exists():
            return []
        return [json.loads(line) for line in self.path.read_text().splitlines()]

    def args(self) -> list[list[str]]:
        return [call["args"] for call in self.calls()]


@pytest.fixture
def tool_log(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> ToolLog:
    path = tmp_path / "calls.jsonl"
    monkeypatch.setenv("FAKE_TOOL_LOG", str(path))
    monkeypatch.delenv("FAKE_FAIL", raising=False)
    monkeypatch.delenv("FAKE_BOXES", raising=False)
    monkeypatch.delenv("FAKE_PROVISION_EXIT", raising=False)
    monkeypatch.delenv("FAKE_PROVISION_KEEP_DIR", raising=False)
    return ToolLog(path)


@pytest.fixture
def fake_tool(tmp_path: Path) -> list[str]:
    """Command prefix running the fake Vagrant."""
    script = tmp_path / "fake_vagrant.py"
    script.write_text(FAKE_TOOL)
    return [sys.executable, str(script)]


@pytest.fixture
def fake_provision(tmp_path: Path) -> list[str]:
    """Command running the fake provisioning script."""
    script = tmp_path / "fake_provision.py"
    script.write_text(FAKE_PROVISION)
    return [sys.executable, str(script)]


@pytest.fixture
def state_dir(tmp_path: Path) -> Path:
    path = tmp_path / "state"
    path.mkdir()
    return path


@pytest.fixture
def output() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def multiplexer(output: io.StringIO) -> OutputMultiplexer:
    console = Console(file=output, width=200, color_system=None, highlight=False)
    return OutputMultiplexer(console=console)


@pytest.fixture
def lifecycle(
    fake_tool: list[str],
    fake_provision: list[str],
    state_dir: Path,
    multiplexer: OutputMultiplexer,
    tool_log: ToolLog,
) -> InstanceLifecycle:
    cfg = BoxfleetConfig(
        HOME_DIR=str(state_dir.parent),
        STATE_DIR_NAME=state_dir.name,
        TOOL_COMMAND=fake_tool,
        PROVISION_COMMAND=fake_provision,
        FIRST_ADDRESS=FIRST_ADDRESS,
    )
    return InstanceLifecycle.from_config(cfg, multiplexer=multiplexer)
