"""Lightning 应用服务安装器：Server、API、GUI、Zeppelin

四者都部署在平台命名空间，依赖共享服务账号。
local 环境下云厂商相关参数（TLS 证书 ARN、EFS、Azure 存储账号）一律置空。
"""

from __future__ import annotations

from deployer.core.config import Config
from deployer.installers.base import HelmComponentInstaller, ReleaseSpec


def _cloud(config: Config, value: str) -> str:
    return "" if config.environment == "local" else value


def _tls_cert_arn(config: Config) -> str:
    return _cloud(config, config.tls_cert_arn)


class LightningServerInstaller(HelmComponentInstaller):
    name = "lightning-server"
    display_name = "Lightning Server"

    def release_spec(self, config: Config) -> ReleaseSpec:
        extra = config.extra
        return ReleaseSpec(
            release="lightning-server",
            chart="helm-zetaris-lightning-server/lightning-server",
            namespace=config.namespace,
            selector="app=lightning-server-driver",
            helm_timeout_minutes=15,
            ready_timeout=900,
            values={
                "db.metastore.jdbcUrl": config.metastore_jdbc_url,
                "db.auditLog.jdbcUrl": config.auditlog_jdbc_url,
                "storage.storageClass.name": config.storage_class,
                "storage.storageClass.create": config.storage_class_create,
                "environment": config.environment,
                "encryption.privateKeyDer": config.private_key_der,
                "encryption.publicKeyDer": config.public_key_der,
                "azure.storageAccountName": _cloud(config, extra.get("azure_storage_account_name", "")),
                "azure.storageAccountKey": _cloud(config, extra.get("azure_storage_account_key", "")),
                "aws.efs.id": _cloud(config, extra.get("aws_efs_id", "")),
                "aws.efs.data": _cloud(config, extra.get("aws_efs_data", "")),
                "serverImage": config.server_image,
            },
            service_account=config.service_account,
            service_match="lightning-server",
            owned_kinds=("pvc", "secret"),
            owned_selector="app=lightning-server",
        )


class LightningApiInstaller(HelmComponentInstaller):
    name = "lightning-api"
    display_name = "Lightning API"

    def release_spec(self, config: Config) -> ReleaseSpec:
        return ReleaseSpec(
            release="lightning-api",
            chart="helm-zetaris-lightning-api/lightning-api",
            namespace=config.namespace,
            selector="app=lightning-api",
            helm_timeout_minutes=15,
            ready_timeout=900,
            values={
                "environment": config.environment,
                "apiImage": config.api_image,
                "ingress.protocol": config.dns_protocol,
                "aws.ingress.tls_cert_arn": _tls_cert_arn(config),
                "ingress.baseDomain": config.base_dns_name,
                "db.metastore.jdbcUrl": config.metastore_jdbc_url,
                "db.auditLog.jdbcUrl": config.auditlog_jdbc_url,
                "compute.spark.image": config.compute_spark_image,
                "compute.presto.imageRepo": config.compute_presto_image_repo,
                "compute.presto.imageTag": config.compute_presto_image_tag,
                "encryption.privateKeyDer": config.private_key_der,
                "encryption.publicKeyDer": config.public_key_der,
            },
            service_account=config.service_account,
            service_match="lightning-api",
            owned_kinds=("secret", "ingress"),
        )


class LightningGuiInstaller(HelmComponentInstaller):
    name = "lightning-gui"
    display_name = "Lightning GUI"

    def release_spec(self, config: Config) -> ReleaseSpec:
        return ReleaseSpec(
            release="lightning-gui",
            chart="helm-zetaris-lightning-gui/lightning-gui",
            namespace=config.namespace,
            selector="app=lightning-gui",
            helm_timeout_minutes=15,
            ready_timeout=900,
            values={
                "guiImage": config.gui_image,
                "ingress.protocol": config.dns_protocol,
                "aws.ingress.tls_cert_arn": _tls_cert_arn(config),
                "ingress.baseDomain": config.base_dns_name,
                "environment": config.environment,
            },
            service_account=config.service_account,
            service_match="lightning-gui",
            owned_kinds=("secret", "ingress"),
        )


class LightningZeppelinInstaller(HelmComponentInstaller):
    name = "lightning-zeppelin"
    display_name = "Lightning Zeppelin"

    def release_spec(self, config: Config) -> ReleaseSpec:
        return ReleaseSpec(
            release="lightning-zeppelin",
            chart="helm-zetaris-lightning-zeppelin/lightning-zeppelin",
            namespace=config.namespace,
            selector="app=lightning-zeppelin",
            helm_timeout_minutes=15,
            ready_timeout=900,
            values={
                "ingress.protocol": config.dns_protocol,
                "ingress.baseDomain": config.base_dns_name,
                "ingress.tls_cert_arn": _tls_cert_arn(config),
                "storage.storageClass.name": config.storage_class,
                "environment": config.environment,
                "zeppelin.image": config.zeppelin_image,
                "storage.volume.size": config.zeppelin_pv_size,
            },
            service_account=config.service_account,
            service_match="lightning-zeppelin",
            owned_kinds=("pvc", "secret", "ingress"),
        )
