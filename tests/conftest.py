"""公共测试夹具：假命令执行器、pod 列表 JSON、隔离配置、记录调用的安装器"""

from __future__ import annotations

import io
import json
from pathlib import Path

import pytest

from deployer.core.config import Config
from deployer.core.deploy_log import DeploymentLog
from deployer.core.models import DiagnosticReport, InstallResult
from deployer.utils.shell import CommandResult


class FakeExecutor:
    """按子串匹配返回预设结果的命令执行器，记录全部调用

    后注册的规则优先，未匹配的命令返回成功且无输出。
    """

    def __init__(self) -> None:
        self.calls: list[str] = []
        self.inputs: list[str | None] = []
        self._rules: list[tuple[str, CommandResult]] = []

    def on(self, fragment: str, returncode: int = 0, stdout: str = "", stderr: str = "") -> FakeExecutor:
        self._rules.append((fragment, CommandResult(returncode, stdout, stderr)))
        return self

    def execute(self, cmd, *, cwd=".", env=None, timeout=None, input_text=None) -> CommandResult:
        line = cmd if isinstance(cmd, str) else " ".join(cmd)
        self.calls.append(line)
        self.inputs.append(input_text)
        for fragment, result in reversed(self._rules):
            if fragment in line:
                return result
        return CommandResult(0, "", "")

    def count(self, fragment: str) -> int:
        return sum(1 for c in self.calls if fragment in c)

    def called(self, fragment: str) -> bool:
        return self.count(fragment) > 0


def pods_json(*names: str, ready: bool = True, phase: str = "Running") -> str:
    items = [
        {
            "metadata": {"name": n},
            "status": {
                "phase": phase,
                "conditions": [{"type": "Ready", "status": "True" if ready else "False"}],
            },
        }
        for n in names
    ]
    return json.dumps({"items": items})


@pytest.fixture
def fake_executor() -> FakeExecutor:
    return FakeExecutor()


@pytest.fixture
def make_pods():
    return pods_json


@pytest.fixture
def config(tmp_path: Path) -> Config:
    return Config(
        environment="local",
        chart_token="tok",
        db_password="secret",
        init_email="admin@example.com",
        init_password="pw",
        init_org="acme",
        settle_timeout=0,
        poll_interval=0,
        log_dir=str(tmp_path / "logs"),
        log_keywords_file=str(tmp_path / "missing_keywords.yml"),
    )


class RecordingInstaller:
    """按预设结果响应的安装器，把调用顺序写入共享的 journal"""

    def __init__(
        self, name: str, journal: list[str],
        install: InstallResult | Exception | None = None,
        verify: InstallResult | Exception | None = None,
        diagnostics: DiagnosticReport | Exception | None = None,
    ) -> None:
        self.name = name
        self.journal = journal
        self._install = install or InstallResult.ok(f"{name} 安装完成")
        self._verify = verify or InstallResult.ok(f"{name} 验证通过")
        self._diagnostics = diagnostics or DiagnosticReport(component=name)

    def _answer(self, op: str, value):
        self.journal.append(f"{self.name}.{op}")
        if isinstance(value, Exception):
            raise value
        return value

    def install(self, config):
        return self._answer("install", self._install)

    def verify(self, config):
        return self._answer("verify", self._verify)

    def collect_diagnostics(self, config):
        return self._answer("collect_diagnostics", self._diagnostics)

    def cleanup(self, config):
        self.journal.append(f"{self.name}.cleanup")


@pytest.fixture
def journal() -> list[str]:
    return []


@pytest.fixture
def make_installer(journal):
    def _make(name: str, **kwargs) -> RecordingInstaller:
        return RecordingInstaller(name, journal, **kwargs)
    return _make


@pytest.fixture
def deploy_log(tmp_path: Path):
    log = DeploymentLog(tmp_path / "logs", console=io.StringIO())
    yield log
    log.close()
