"""搜索引擎安装器：OpenSearch、Lightning Solr"""

from __future__ import annotations

from deployer.core.config import Config
from deployer.installers.base import HelmComponentInstaller, ReleaseSpec

OPENSEARCH_IMAGE_TAG = "2.11.0"


class OpenSearchInstaller(HelmComponentInstaller):
    name = "opensearch"
    display_name = "OpenSearch"

    def release_spec(self, config: Config) -> ReleaseSpec:
        return ReleaseSpec(
            release="opensearch",
            chart="opensearch/opensearch",
            namespace=config.namespace,
            selector="app.kubernetes.io/name=opensearch",
            helm_timeout_minutes=5,
            ready_timeout=600,
            values={
                "image.tag": OPENSEARCH_IMAGE_TAG,
                "serviceAccount.name": config.service_account,
            },
            service_account=config.service_account,
            service_match="opensearch",
            owned_kinds=("pvc", "statefulset", "secret"),
        )


class SolrInstaller(HelmComponentInstaller):
    name = "solr"
    display_name = "Lightning Solr"

    def release_spec(self, config: Config) -> ReleaseSpec:
        return ReleaseSpec(
            release="lightning-solr",
            chart="helm-zetaris-lightning-solr/solr",
            namespace=config.namespace,
            selector="app=lightning-solr",
            helm_timeout_minutes=10,
            ready_timeout=600,
            values={
                "storageclass": config.storage_class,
                "environment": config.environment,
            },
            service_account=config.service_account,
            service_match="lightning-solr",
            owned_kinds=("pvc", "secret"),
            owned_selector="app=solr",
        )
