"""部署计划

固定线性计划：步骤按声明顺序执行，不重排、不并行。
每个步骤显式声明前置步骤与是否可选，validate() 在运行前检查依赖边。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from deployer.core.exceptions import PlanError

if TYPE_CHECKING:
    from deployer.core.protocols import ComponentInstaller


@dataclass
class Step:
    """计划中的一个步骤"""

    name: str
    installer: ComponentInstaller
    optional: bool = False  # 失败记 WARNING，不中止计划
    requires: list[str] = field(default_factory=list)
    enabled: bool = True


@dataclass
class DeploymentPlan:
    """有序步骤序列"""

    steps: list[Step] = field(default_factory=list)

    def add(self, step: Step) -> DeploymentPlan:
        self.steps.append(step)
        return self

    @property
    def enabled_steps(self) -> list[Step]:
        return [s for s in self.steps if s.enabled]

    def get(self, name: str) -> Step | None:
        for s in self.steps:
            if s.name == name:
                return s
        return None

    def validate(self) -> None:
        """检查步骤名唯一，且每个前置步骤都是更早声明、已启用的步骤

        Raises:
            PlanError: 列出全部问题
        """
        problems: list[str] = []
        seen: dict[str, Step] = {}
        for step in self.steps:
            if step.name in seen:
                problems.append(f"步骤重名: {step.name}")
                continue
            if step.enabled:
                for req in step.requires:
                    prior = seen.get(req)
                    if prior is None:
                        later = any(s.name == req for s in self.steps)
                        problems.append(
                            f"{step.name} 的前置步骤 {req} "
                            + ("声明在其之后" if later else "不存在")
                        )
                    elif not prior.enabled:
                        problems.append(f"{step.name} 的前置步骤 {req} 已禁用")
            seen[step.name] = step
        if problems:
            raise PlanError("部署计划无效: " + "; ".join(problems))

    def __len__(self) -> int:
        return len(self.steps)
