"""Kubernetes ConfigMap adapter for the policy store."""

import logging
from typing import Callable, Optional

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from .store import ConfigDocument

logger = logging.getLogger(__name__)

KUBECONFIG_MODES = ("auto", "incluster", "kubeconfig")


def load_client_configuration(mode: str = "auto") -> client.Configuration:
    """
    Build a client configuration without touching the library's global default.

    Args:
        mode: "incluster", "kubeconfig", or "auto" (in-cluster, falling back
            to the local kubeconfig)
    """
    if mode not in KUBECONFIG_MODES:
        raise ValueError(f"Unknown kubeconfig mode {mode!r}; expected one of {KUBECONFIG_MODES}")

    configuration = client.Configuration()
    if mode == "incluster":
        config.load_incluster_config(client_configuration=configuration)
    elif mode == "kubeconfig":
        config.load_kube_config(client_configuration=configuration)
    else:
        try:
            config.load_incluster_config(client_configuration=configuration)
        except ConfigException:
            logger.debug("Not running in a cluster, loading kubeconfig")
            config.load_kube_config(client_configuration=configuration)
    return configuration


class ConfigMapClient:
    """DocumentClient backed by the CoreV1 ConfigMap API."""

    def __init__(self, api_client: client.ApiClient):
        self._api_client = api_client
        self._core = client.CoreV1Api(api_client)

    def read_document(self, namespace: str, name: str, timeout: Optional[float] = None) -> ConfigDocument:
        configmap = self._core.read_namespaced_config_map(
            name=name, namespace=namespace, _request_timeout=timeout
        )
        return ConfigDocument(
            namespace=namespace,
            name=name,
            data=dict(configmap.data or {}),
            resource_version=configmap.metadata.resource_version,
            raw=configmap,
        )

    def write_document(self, document: ConfigDocument, timeout: Optional[float] = None) -> None:
        body = document.raw
        if body is None:
            body = client.V1ConfigMap(
                metadata=client.V1ObjectMeta(
                    name=document.name,
                    namespace=document.namespace,
                    resource_version=document.resource_version,
                ),
            )
        body.data = document.data
        self._core.replace_namespaced_config_map(
            name=document.name, namespace=document.namespace, body=body, _request_timeout=timeout
        )

    def close(self) -> None:
        self._api_client.close()


def configmap_client_factory(mode: str = "auto") -> Callable[[], ConfigMapClient]:
    """Return a factory that opens a new ConfigMap session per call."""

    def factory() -> ConfigMapClient:
        return ConfigMapClient(client.ApiClient(configuration=load_client_configuration(mode)))

    return factory
