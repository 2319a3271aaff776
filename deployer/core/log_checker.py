"""日志关键字分类器

对组件 pod 的近期日志按关键字（大小写不敏感、子串匹配）判定错误行。
关键字集合可按组件覆盖，规则定义在 YAML 中，格式：
  default: [error, exception, failed]
  components:
    cert-manager: [error, failed, panic]
    spark-operator: [error, failed, panic]
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable
from pathlib import Path
from typing import TYPE_CHECKING

from deployer.core.models import DiagnosticReport, LogFinding
from deployer.utils.yaml_io import load_yaml

if TYPE_CHECKING:
    from deployer.core.protocols import LogClassifier

logger = logging.getLogger(__name__)

DEFAULT_KEYWORDS: tuple[str, ...] = ("error", "exception", "failed")
OPERATOR_KEYWORDS: tuple[str, ...] = ("error", "failed", "panic")


class KeywordClassifier:
    """关键字分类器（LogClassifier 的默认实现）"""

    def __init__(self, keywords: Iterable[str] = DEFAULT_KEYWORDS) -> None:
        self.keywords = tuple(k.lower() for k in keywords if k)
        if self.keywords:
            self._pattern: re.Pattern[str] | None = re.compile(
                "|".join(re.escape(k) for k in self.keywords), re.IGNORECASE,
            )
        else:
            self._pattern = None

    def classify(self, lines: list[str], source: str = "") -> list[LogFinding]:
        if self._pattern is None:
            return []
        findings: list[LogFinding] = []
        for line in lines:
            m = self._pattern.search(line)
            if m:
                findings.append(LogFinding(
                    source=source, line=line.rstrip(), keyword=m.group(0).lower(),
                ))
        return findings

    def classify_text(self, text: str, source: str = "") -> list[LogFinding]:
        return self.classify(text.splitlines(), source=source)

    def check_file(self, file_path: str, component: str = "") -> DiagnosticReport:
        """对日志文件执行分类，文件不存在时在 message 中说明"""
        p = Path(file_path)
        report = DiagnosticReport(component=component or p.name)
        if not p.exists():
            report.message = f"文件不存在: {file_path}"
            return report
        text = p.read_text(encoding="utf-8", errors="replace")
        report.pods_checked.append(str(p))
        report.findings = self.classify_text(text, source=str(p))
        return report


class KeywordRules:
    """按组件选择关键字集合，未配置的组件使用调用方给出的默认值"""

    def __init__(self, rules_file: str = "") -> None:
        self.default: tuple[str, ...] | None = None
        self.components: dict[str, tuple[str, ...]] = {}
        if rules_file:
            self._load_rules(rules_file)

    def _load_rules(self, path: str) -> None:
        p = Path(path)
        if not p.exists():
            logger.debug("日志关键字规则文件不存在: %s，使用内置关键字", path)
            return
        data = load_yaml(p)
        if data.get("default"):
            self.default = tuple(str(k) for k in data["default"])
        for name, words in (data.get("components") or {}).items():
            self.components[str(name)] = tuple(str(k) for k in words or ())
        logger.info("已加载日志关键字规则: %d 个组件覆盖", len(self.components))

    def classifier_for(
        self, component: str, fallback: Iterable[str] = DEFAULT_KEYWORDS,
    ) -> LogClassifier:
        if component in self.components:
            return KeywordClassifier(self.components[component])
        if self.default is not None:
            return KeywordClassifier(self.default)
        return KeywordClassifier(fallback)
