"""领域协议定义

集中定义编排核心与外部协作者之间的接口契约（Protocol），
编排器只依赖这些抽象，不依赖具体的 helm / kubectl 实现。

使用 typing.Protocol 而非 ABC，测试替身无需继承即可满足协议。
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from deployer.core.config import Config
    from deployer.core.models import DiagnosticReport, InstallResult, LogFinding


# =========================================================================
# 组件安装器协议
# =========================================================================

class ComponentInstaller(Protocol):
    """组件安装器协议

    每个平台依赖（包管理器、命名空间、数据库、搜索引擎、应用服务……）一个实现。

    - install: 幂等；已存在且健康则直接成功，不健康则原地升级；超时即失败
    - verify: 只读；检查命名空间、就绪副本、服务入口
    - collect_diagnostics: 只读；扫描近期日志，永不导致部署失败
    - cleanup: 尽力删除；资源不存在视为成功
    """

    name: str

    def install(self, config: Config) -> InstallResult:
        ...

    def verify(self, config: Config) -> InstallResult:
        ...

    def collect_diagnostics(self, config: Config) -> DiagnosticReport:
        ...

    def cleanup(self, config: Config) -> None:
        ...


# =========================================================================
# 日志分类协议
# =========================================================================

class LogClassifier(Protocol):
    """日志行分类器协议

    组件可提供自己的关键字集合，无需修改核心代码。
    """

    def classify(self, lines: list[str], source: str = "") -> list[LogFinding]:
        """返回被判定为错误的行"""
        ...
