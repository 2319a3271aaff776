"""集中配置管理

部署所需的全部静态配置（环境、命名空间、镜像、凭据、初始用户等）
集中在 Config 中，由编排器作为显式上下文传入每个安装器调用。
支持从 YAML 文件加载 + 编程式覆盖；兼容旧安装脚本的大写变量名。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, fields
from typing import Any

from deployer.core.exceptions import ConfigError
from deployer.utils.yaml_io import load_yaml

logger = logging.getLogger(__name__)

# 旧安装脚本 (zetaris.conf) 变量名 -> Config 字段
ENV_ALIASES: dict[str, str] = {
    "ENVIRONMENT": "environment",
    "ZETARIS_NS": "namespace",
    "STORAGE_CLASS": "storage_class",
    "STORAGE_CLASS_CREATE": "storage_class_create",
    "DNS_PROTOCOL": "dns_protocol",
    "BASE_DNS_NAME": "base_dns_name",
    "DNS_DOMAIN": "dns_domain",
    "DEPLOYMENT_NAME": "deployment_name",
    "ZETARIS_RELEASE": "chart_release",
    "ZETARIS_TOKEN": "chart_token",
    "DB_USER": "db_user",
    "DB_PASSWORD": "db_password",
    "META_DB": "meta_db",
    "AUDIT_DB": "audit_db",
    "AIRFLOW_DB": "airflow_db",
    "METASTORE_JDBC_URL": "metastore_jdbc_url",
    "AUDITLOG_JDBC_URL": "auditlog_jdbc_url",
    "ZETARIS_PRIVATE_KEY_DER": "private_key_der",
    "ZETARIS_PUBLIC_KEY_DER": "public_key_der",
    "ZETARIS_SERVER_IMAGE": "server_image",
    "ZETARIS_API_IMAGE": "api_image",
    "ZETARIS_GUI_IMAGE": "gui_image",
    "ZETARIS_ZEPPELIN_IMAGE": "zeppelin_image",
    "ZETARIS_ZEPPELIN_PV_SIZE": "zeppelin_pv_size",
    "ZETARIS_COMPUTE_SPARK_IMAGE": "compute_spark_image",
    "ZETARIS_COMPUTE_PRESTO_IMAGE_REPO": "compute_presto_image_repo",
    "ZETARIS_COMPUTE_PRESTO_IMAGE_TAG": "compute_presto_image_tag",
    "PRIVATE_AI_GPU": "private_ai_gpu",
    "LIGHTNING_INIT_EMAIL": "init_email",
    "LIGHTNING_INIT_PASSWORD": "init_password",
    "LIGHTNING_INIT_ORG": "init_org",
}

_PRIVATE_REPO = "https://{token}@raw.githubusercontent.com/zetaris"

DEFAULT_HELM_REPOS: dict[str, str] = {
    "stable": "https://charts.helm.sh/stable",
    "bitnami": "https://charts.bitnami.com/bitnami",
    "jetstack": "https://charts.jetstack.io",
    "apache-airflow": "https://airflow.apache.org",
    "spark-operator": "https://kubeflow.github.io/spark-operator",
    "opensearch": "https://opensearch-project.github.io/helm-charts/",
    "helm-postgres": _PRIVATE_REPO + "/openshift/{release}/postgres",
    "helm-zetaris-lightning-solr": _PRIVATE_REPO + "/HelmDeployment/{release}/solr/helm/",
    "helm-zetaris-lightning-server": _PRIVATE_REPO + "/zetaris-lightning/{release}/deployments/helm/",
    "helm-zetaris-lightning-api": _PRIVATE_REPO + "/lightning-api/{release}/deployments/helm/",
    "helm-zetaris-lightning-gui": _PRIVATE_REPO + "/lightning-gui/{release}/deployments/helm/",
    "helm-zetaris-lightning-zeppelin": _PRIVATE_REPO + "/zetaris-zeppelin/{release}/deployments/helm/",
    "helm-zetaris-digiavatar": _PRIVATE_REPO + "/digiavatar/{release}/deployments/helm/",
    "helm-zetaris-privateai": _PRIVATE_REPO + "/privateai/{release}/deployments/helm/",
    "helm-zetaris-airflow-ing": _PRIVATE_REPO + "/HelmDeployment/{release}/airflow-ing/helm/",
}


_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


def _to_bool(name: str, value: Any) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, int) and value in (0, 1):
        return bool(value)
    if isinstance(value, str):
        text = value.strip().lower()
        if text in _TRUE:
            return True
        if text in _FALSE:
            return False
    raise ConfigError(f"配置项 {name} 应为布尔值: {value!r}")


def _to_int(name: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ConfigError(f"配置项 {name} 应为整数: {value!r}")
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int):
        raise ConfigError(f"配置项 {name} 应为整数: {value!r}")
    if value < 0:
        raise ConfigError(f"配置项 {name} 不能为负数: {value}")
    return value


def _to_str(name: str, value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float, str)):
        return str(value)
    raise ConfigError(f"配置项 {name} 应为字符串: {value!r}")



@dataclass
class Config:
    """部署全局配置（所有值对编排器而言均为不透明字符串）"""

    # 集群
    environment: str = "local"
    namespace: str = "zetaris"
    service_account: str = "zetaris-sa"
    extra_namespaces: list[str] = field(default_factory=lambda: ["airflow", "cert-manager"])
    storage_class: str = "nfs-rwx"
    storage_class_create: str = "false"

    # 网络
    dns_protocol: str = "https"
    base_dns_name: str = ""
    dns_domain: str = ""
    deployment_name: str = ""
    tls_cert_arn: str = ""

    # Chart 仓库
    chart_release: str = "main"
    chart_token: str = ""
    helm_repos: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HELM_REPOS))

    # 数据库
    db_user: str = "postgres"
    db_password: str = ""
    meta_db: str = "metastore"
    audit_db: str = "auditlog"
    airflow_db: str = "airflow"
    metastore_jdbc_url: str = ""
    auditlog_jdbc_url: str = ""

    # 加密密钥 (base64 编码的 DER)
    private_key_der: str = ""
    public_key_der: str = ""

    # 镜像
    server_image: str = ""
    api_image: str = ""
    gui_image: str = ""
    zeppelin_image: str = ""
    zeppelin_pv_size: str = "10Gi"
    compute_spark_image: str = ""
    compute_presto_image_repo: str = ""
    compute_presto_image_tag: str = ""
    private_ai_gpu: str = "false"

    # 初始用户
    init_email: str = ""
    init_password: str = ""
    init_org: str = ""

    # 计划
    enable_airflow: bool = False
    run_smoke_tests: bool = True
    settle_timeout: int = 30  # 秒，安装后等待组件初始化的上限
    poll_interval: int = 5

    # 日志
    log_dir: str = "logs"
    log_keywords_file: str = "configs/log_keywords.yml"
    diagnostics_tail: int = 50

    # 外部工具
    kubectl_bin: str = "kubectl"
    helm_bin: str = "helm"

    # 自定义扩展 (放不到字段里的配置项)
    extra: dict = field(default_factory=dict)

    def __post_init__(self) -> None:
        """按字段声明类型规整 YAML 读入的值，无法转换时抛 ConfigError"""
        for f in fields(self):
            value = getattr(self, f.name)
            if f.type == "bool":
                setattr(self, f.name, _to_bool(f.name, value))
            elif f.type == "int":
                setattr(self, f.name, _to_int(f.name, value))
            elif f.type == "str":
                setattr(self, f.name, _to_str(f.name, value))
            elif f.type.startswith("list") and not isinstance(value, list):
                raise ConfigError(f"配置项 {f.name} 应为列表: {value!r}")
            elif f.type.startswith("dict") and not isinstance(value, dict):
                raise ConfigError(f"配置项 {f.name} 应为映射: {value!r}")
        if self.diagnostics_tail == 0:
            raise ConfigError("配置项 diagnostics_tail 必须大于 0")

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Config:
        """从扁平键值映射构建配置，大写旧变量名自动映射到字段"""
        known = {f.name for f in fields(cls)}
        matched: dict[str, Any] = {}
        extra: dict[str, Any] = {}
        for key, value in data.items():
            name = ENV_ALIASES.get(key, key)
            if name in known and name != "extra":
                matched[name] = value
            else:
                extra[key] = value
        try:
            cfg = cls(**matched)
        except TypeError as e:
            raise ConfigError(f"配置字段无效: {e}") from e
        cfg.extra = extra
        return cfg

    @classmethod
    def from_file(cls, path: str = "configs/deploy.yml") -> Config:
        """从 YAML 文件加载配置，不存在则返回默认"""
        data = load_yaml(path)
        if not data:
            logger.warning("配置文件不存在或为空: %s，使用默认配置", path)
            return cls()
        return cls.from_mapping(data)

    def require(self, *names: str) -> None:
        """检查必填字段非空，缺失时抛 ConfigError 并列出全部缺失项"""
        missing = [n for n in names if not str(getattr(self, n, "") or "").strip()]
        if missing:
            aliases = {v: k for k, v in ENV_ALIASES.items()}
            labels = [f"{n} ({aliases[n]})" if n in aliases else n for n in missing]
            raise ConfigError(f"缺少必填配置: {', '.join(labels)}")

    def helm_repo_urls(self) -> dict[str, str]:
        """展开仓库 URL 中的 {token} / {release} 占位符"""
        return {
            name: url.format(token=self.chart_token, release=self.chart_release)
            for name, url in self.helm_repos.items()
        }

    @property
    def all_namespaces(self) -> list[str]:
        """平台命名空间 + 附加命名空间（去重保序）"""
        seen: list[str] = []
        for ns in [self.namespace, *self.extra_namespaces]:
            if ns and ns not in seen:
                seen.append(ns)
        return seen


# 全局单例，首次 import 时不加载文件；由 CLI 入口显式初始化
_current: Config | None = None


def get_config() -> Config:
    """获取当前配置（未初始化则返回默认值）"""
    global _current  # noqa: PLW0603
    if _current is None:
        _current = Config()
    return _current


def init_config(path: str = "configs/deploy.yml") -> Config:
    """从文件初始化全局配置"""
    global _current  # noqa: PLW0603
    _current = Config.from_file(path)
    logger.info("配置已加载: %s", path)
    return _current
