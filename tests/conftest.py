from pathlib import Path
import sys

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1] / "src"))

from publish_manager import step_runner  # noqa: E402
from publish_manager.config import CONFIG_ENV, TOOLCHAIN_ENV, load_config  # noqa: E402


class FakeProcess:
    def __init__(self, returncode: int) -> None:
        self.returncode = returncode
        self.signals = []

    def wait(self) -> int:
        return self.returncode

    def poll(self):
        return self.returncode

    def send_signal(self, signum) -> None:
        self.signals.append(signum)

    def terminate(self) -> None:
        self.signals.append("terminate")


class FakeToolchain:
    """Stands in for subprocess.Popen and records every dotnet invocation."""

    def __init__(self) -> None:
        self.calls = []
        self.envs = []
        self.returncodes = {}
        self.artifact = None

    def __call__(self, argv, cwd=None, env=None):
        self.calls.append(list(argv))
        self.envs.append(env)
        action = argv[1]
        returncode = self.returncodes.get(action, 0)
        if action == "publish" and returncode == 0 and self.artifact is not None:
            name, size = self.artifact
            output_dir = Path(argv[argv.index("-o") + 1])
            output_dir.mkdir(parents=True, exist_ok=True)
            (output_dir / name).write_bytes(b"\0" * size)
        return FakeProcess(returncode)

    def actions(self):
        return [call[1] for call in self.calls]


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    monkeypatch.delenv(CONFIG_ENV, raising=False)
    monkeypatch.delenv(TOOLCHAIN_ENV, raising=False)


@pytest.fixture
def toolchain(monkeypatch):
    fake = FakeToolchain()
    monkeypatch.setattr(step_runner.subprocess, "Popen", fake)
    return fake


@pytest.fixture
def project_root(tmp_path):
    project_dir = tmp_path / "App"
    project_dir.mkdir()
    (project_dir / "App.csproj").write_text("<Project Sdk=\"Microsoft.NET.Sdk\" />\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def config(project_root):
    return load_config(project_root)
