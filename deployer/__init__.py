"""deployer - Kubernetes 数据平台分步安装编排器"""

__version__ = "0.3.0"
