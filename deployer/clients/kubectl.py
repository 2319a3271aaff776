"""kubectl 客户端

对控制面操作的薄封装：命名空间、服务账号、pod、服务、按标签删除、
CRD、就绪等待、exec、日志、清单 apply。
所有调用经 CommandExecutor 执行，测试时注入假执行器即可。

约定：查询类方法返回 bool / 列表；变更类方法返回 CommandResult，
由调用方决定失败是否致命。
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass

from deployer.utils.shell import CommandExecutor, CommandResult, get_executor

logger = logging.getLogger(__name__)

# 外部等待命令自带超时，子进程超时在其基础上留出余量
_WAIT_GRACE_SECONDS = 30
_DEFAULT_TIMEOUT = 60

_NOT_FOUND_RE = re.compile(r"not ?found", re.IGNORECASE)


@dataclass
class PodInfo:
    name: str
    phase: str = ""
    ready: bool = False

    @property
    def running(self) -> bool:
        return self.phase == "Running"


class KubectlClient:
    """kubectl 命令封装"""

    def __init__(
        self, executor: CommandExecutor | None = None, binary: str = "kubectl",
    ) -> None:
        self._executor = executor
        self.binary = binary

    @property
    def executor(self) -> CommandExecutor:
        return self._executor or get_executor()

    def run(
        self, *args: str, timeout: int | None = _DEFAULT_TIMEOUT,
        input_text: str | None = None,
    ) -> CommandResult:
        return self.executor.execute(
            [self.binary, *args], timeout=timeout, input_text=input_text,
        )

    # =========================================================================
    # 集群
    # =========================================================================

    def cluster_info(self) -> bool:
        return self.run("cluster-info").success

    def storage_class_exists(self, name: str) -> bool:
        return self.run("get", "storageclass", name).success

    # =========================================================================
    # 命名空间 / 服务账号
    # =========================================================================

    def namespace_exists(self, namespace: str) -> bool:
        return self.run("get", "namespace", namespace).success

    def create_namespace(self, namespace: str) -> CommandResult:
        return self.run("create", "namespace", namespace)

    def label_namespace(self, namespace: str, labels: dict[str, str]) -> CommandResult:
        return self.run(
            "label", "namespace", namespace, *_pairs(labels), "--overwrite",
        )

    def delete_namespace(self, namespace: str, timeout: int = 300) -> CommandResult:
        return self.run(
            "delete", "namespace", namespace, "--ignore-not-found", timeout=timeout,
        )

    def service_account_exists(self, name: str, namespace: str) -> bool:
        return self.run("get", "serviceaccount", name, "-n", namespace).success

    def create_service_account(self, name: str, namespace: str) -> CommandResult:
        return self.run("create", "serviceaccount", name, "-n", namespace)

    def label_service_account(
        self, name: str, namespace: str, labels: dict[str, str],
    ) -> CommandResult:
        return self.run(
            "label", "serviceaccount", name, "-n", namespace,
            *_pairs(labels), "--overwrite",
        )

    def annotate_service_account(
        self, name: str, namespace: str, annotations: dict[str, str],
    ) -> CommandResult:
        return self.run(
            "annotate", "serviceaccount", name, "-n", namespace,
            *_pairs(annotations), "--overwrite",
        )

    # =========================================================================
    # Pod / Service
    # =========================================================================

    def get_pods(self, namespace: str, selector: str) -> list[PodInfo]:
        """按标签列出 pod；查询失败或输出无法解析时返回空列表"""
        r = self.run("get", "pods", "-n", namespace, "-l", selector, "-o", "json")
        if not r.success:
            logger.debug("查询 pod 失败 %s/%s: %s", namespace, selector, r.error_text())
            return []
        try:
            data = json.loads(r.stdout or "{}")
        except json.JSONDecodeError:
            logger.warning("无法解析 pod 列表输出: %s/%s", namespace, selector)
            return []
        pods: list[PodInfo] = []
        for item in data.get("items", []):
            status = item.get("status", {})
            conditions = status.get("conditions") or []
            ready = any(
                c.get("type") == "Ready" and c.get("status") == "True"
                for c in conditions
            )
            pods.append(PodInfo(
                name=item.get("metadata", {}).get("name", ""),
                phase=status.get("phase", ""),
                ready=ready,
            ))
        return pods

    def ready_pods(self, namespace: str, selector: str) -> list[PodInfo]:
        return [p for p in self.get_pods(namespace, selector) if p.running and p.ready]

    def service_names(self, namespace: str, selector: str = "") -> list[str]:
        args = ["get", "services", "-n", namespace, "-o", "name"]
        if selector:
            args += ["-l", selector]
        r = self.run(*args)
        if not r.success:
            return []
        # 输出形如 service/lightning-api
        return [line.split("/", 1)[-1] for line in r.stdout.split() if line]

    def wait_ready(self, namespace: str, selector: str, timeout: int) -> CommandResult:
        """等待匹配 pod 进入 Ready，超时返回非零结果"""
        return self.run(
            "wait", "--for=condition=ready", "pod", "-l", selector,
            "-n", namespace, f"--timeout={timeout}s",
            timeout=timeout + _WAIT_GRACE_SECONDS,
        )

    def exec(
        self, pod: str, namespace: str, command: list[str],
        *, timeout: int = 120, input_text: str | None = None,
    ) -> CommandResult:
        extra = ["-i"] if input_text is not None else []
        return self.run(
            "exec", *extra, "-n", namespace, pod, "--", *command,
            timeout=timeout, input_text=input_text,
        )

    def run_oneshot(
        self, name: str, image: str, namespace: str, command: list[str],
        *, timeout: int = 120,
    ) -> CommandResult:
        """在一次性 pod 中执行探测命令（结束即删除）"""
        return self.run(
            "run", name, f"--image={image}", "--rm", "-i", "--restart=Never",
            "-n", namespace, "--", *command, timeout=timeout,
        )

    def logs(self, pod: str, namespace: str, tail: int = 50) -> CommandResult:
        return self.run("logs", pod, "-n", namespace, f"--tail={tail}")

    # =========================================================================
    # 删除 / CRD / 清单
    # =========================================================================

    def delete_by_selector(self, kind: str, namespace: str, selector: str) -> CommandResult:
        return self.run(
            "delete", kind, "-n", namespace, "-l", selector, "--ignore-not-found",
            timeout=180,
        )

    def delete_all(self, kind: str, *, all_namespaces: bool = False) -> CommandResult:
        extra = ["--all-namespaces"] if all_namespaces else []
        return self.run(
            "delete", kind, "--all", *extra, "--ignore-not-found", timeout=180,
        )

    def list_crds(self, contains: str = "") -> list[str]:
        r = self.run("get", "crd", "-o", "name")
        if not r.success:
            return []
        names = [line.split("/", 1)[-1] for line in r.stdout.split() if line]
        return [n for n in names if contains in n]

    def delete_crd(self, name: str) -> CommandResult:
        return self.run("delete", "crd", name, "--ignore-not-found", timeout=180)

    def apply_manifest(self, manifest: str) -> CommandResult:
        return self.run("apply", "-f", "-", input_text=manifest)

    def delete_manifest(self, manifest: str) -> CommandResult:
        return self.run("delete", "-f", "-", "--ignore-not-found", input_text=manifest)

    def get_jsonpath(
        self, kind: str, name: str, path: str, namespace: str = "",
    ) -> str:
        """读取单个资源的 jsonpath 字段，失败返回空串"""
        args = ["get", kind, name, "-o", f"jsonpath={path}"]
        if namespace:
            args += ["-n", namespace]
        r = self.run(*args)
        return r.stdout.strip() if r.success else ""


def is_not_found(result: CommandResult) -> bool:
    """失败原因是否为资源不存在（清理时视为成功）"""
    return not result.success and bool(_NOT_FOUND_RE.search(result.error_text()))


def _pairs(mapping: dict[str, str]) -> list[str]:
    return [f"{k}={v}" for k, v in mapping.items()]
