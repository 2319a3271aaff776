"""AI 服务安装器：Private AI、DigiAvatar"""

from __future__ import annotations

from deployer.core.config import Config
from deployer.installers.base import HelmComponentInstaller, ReleaseSpec


class PrivateAiInstaller(HelmComponentInstaller):
    name = "privateai"
    display_name = "Private AI"

    def release_spec(self, config: Config) -> ReleaseSpec:
        return ReleaseSpec(
            release="privateai",
            chart="helm-zetaris-privateai/privateai",
            namespace=config.namespace,
            selector="app=privateai",
            helm_timeout_minutes=15,
            ready_timeout=900,
            values={
                "ingress.baseDomain": config.base_dns_name,
                "ingressprotocol": config.dns_protocol,
                "environment": config.environment,
                "gpuenabled": config.private_ai_gpu,
                "storageclass": config.storage_class,
                "serviceaccount.name": config.service_account,
            },
            service_account=config.service_account,
            service_match="privateai",
            owned_kinds=("pvc", "secret", "ingress"),
        )


class DigiAvatarInstaller(HelmComponentInstaller):
    name = "digiavatar"
    display_name = "DigiAvatar"

    def release_spec(self, config: Config) -> ReleaseSpec:
        return ReleaseSpec(
            release="digiavatar",
            chart="helm-zetaris-digiavatar/digiavatar",
            namespace=config.namespace,
            selector="app=digiavatar",
            helm_timeout_minutes=15,
            ready_timeout=900,
            values={
                "ingressprotocol": config.dns_protocol,
                "ingress.baseDomain": config.base_dns_name,
                "environment": config.environment,
                "serviceaccount": config.service_account,
            },
            service_account=config.service_account,
            service_match="digiavatar",
            owned_kinds=("secret", "ingress"),
        )
