"""helm 客户端

包管理器操作的薄封装：版本、release 列表、upgrade --install、
uninstall、仓库 add/update。
"""

from __future__ import annotations

import logging
import re

from deployer.utils.shell import CommandExecutor, CommandResult, get_executor, run_cmd

logger = logging.getLogger(__name__)

_VERSION_RE = re.compile(r"v?(\d+)\.(\d+)(?:\.(\d+))?")
# helm --wait 自带超时，子进程超时在其基础上留出余量
_WAIT_GRACE_SECONDS = 60


def parse_version(text: str) -> tuple[int, int, int] | None:
    """从 'v3.12.3+g3a31588' 之类的输出提取 (major, minor, patch)"""
    m = _VERSION_RE.search(text or "")
    if not m:
        return None
    return int(m.group(1)), int(m.group(2)), int(m.group(3) or 0)


class HelmClient:
    """helm 命令封装"""

    def __init__(
        self, executor: CommandExecutor | None = None, binary: str = "helm",
    ) -> None:
        self._executor = executor
        self.binary = binary

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def run(self, *args: str, timeout: int | None = 120) -> CommandResult:
        return self.executor.execute([self.binary, *args], timeout=timeout)

    def version(self) -> str:
        """客户端版本字符串，helm 不可用时返回空串"""
        r = self.run("version", "--short", "--client", timeout=30)
        if not r.success:
            return ""
        # 旧版本输出 "Client: v2.x"，新版本直接输出 "v3.x"
        return r.stdout.strip().split(":")[-1].strip()

    def can_list_all(self) -> bool:
        """集群连通性：能否列出全部命名空间的 release"""
        return self.run("list", "--all-namespaces").success

    def list_releases(self, namespace: str) -> list[str]:
        r = self.run("list", "-n", namespace, "-q")
        if not r.success:
            logger.debug("helm list 失败 (%s): %s", namespace, r.error_text())
            return []
        return [line.strip() for line in r.stdout.splitlines() if line.strip()]

    def release_exists(self, release: str, namespace: str) -> bool:
        return release in self.list_releases(namespace)

    def upgrade_install(
        self,
        release: str,
        chart: str,
        namespace: str,
        *,
        values: dict[str, str] | None = None,
        timeout_minutes: int = 10,
        version: str = "",
        create_namespace: bool = False,
    ) -> CommandResult:
        """helm upgrade --install ... --wait，阻塞至完成或超时"""
        args = ["upgrade", "--install", release, chart, "-n", namespace]
        if version:
            args += ["--version", version]
        if create_namespace:
            args.append("--create-namespace")
        for key, value in (values or {}).items():
            args += ["--set", f"{key}={value}"]
        args += [f"--timeout={timeout_minutes}m", "--wait"]
        logger.info("helm upgrade --install %s (%s) -n %s", release, chart, namespace)
        return self.run(*args, timeout=timeout_minutes * 60 + _WAIT_GRACE_SECONDS)

    def uninstall(self, release: str, namespace: str) -> CommandResult:
        return self.run("uninstall", release, "-n", namespace, timeout=600)

    def repo_add(self, name: str, url: str) -> CommandResult:
        return self.run("repo", "add", name, url, "--force-update")

    def repo_update(self) -> CommandResult:
        """刷新仓库索引，失败抛 ExecutionError"""
        return run_cmd(
            [self.binary, "repo", "update"], executor=self.executor,
            timeout=300, label="helm repo update",
        )
