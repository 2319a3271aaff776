"""Airflow 安装器（默认不启用，见 Config.enable_airflow）"""

from __future__ import annotations

from deployer.core.config import Config
from deployer.installers.base import HelmComponentInstaller, ReleaseSpec

AIRFLOW_NAMESPACE = "airflow"


class AirflowInstaller(HelmComponentInstaller):
    name = "airflow"
    display_name = "Airflow"

    def release_spec(self, config: Config) -> ReleaseSpec:
        return ReleaseSpec(
            release="airflow-ing",
            chart="helm-zetaris-airflow-ing/airflow-ing",
            namespace=AIRFLOW_NAMESPACE,
            selector="app.kubernetes.io/name=airflow",
            helm_timeout_minutes=15,
            ready_timeout=900,
            values={
                "environment": config.environment,
                "storage.storageClass.name": config.storage_class,
                "deploymentname": config.deployment_name,
                "dnsdomain": config.dns_domain,
            },
            service_match="airflow",
            owned_kinds=("pvc", "secret", "ingress"),
        )
