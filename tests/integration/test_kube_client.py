"""
Tests for the Kubernetes ConfigMap adapter with the API client mocked out.
"""

from unittest.mock import MagicMock, patch

import pytest
from kubernetes import client
from kubernetes.config.config_exception import ConfigException

from policy_update.modules.policy import kube
from policy_update.modules.policy.models import Policy
from policy_update.modules.policy.store import ConfigDocument, PolicyStore


@pytest.fixture
def core_api():
    with patch.object(kube.client, "CoreV1Api") as core_cls:
        yield core_cls.return_value


def _configmap(data=None, resource_version="7"):
    return client.V1ConfigMap(
        metadata=client.V1ObjectMeta(
            name="policy-update-config",
            namespace="icap-adaptation",
            resource_version=resource_version,
        ),
        data=data,
    )


class TestConfigMapClient:

    def test_read_document(self, core_api):
        core_api.read_namespaced_config_map.return_value = _configmap({"other": "value"})

        document = kube.ConfigMapClient(MagicMock()).read_document(
            "icap-adaptation", "policy-update-config"
        )

        core_api.read_namespaced_config_map.assert_called_once_with(
            name="policy-update-config", namespace="icap-adaptation", _request_timeout=None
        )
        assert document.data == {"other": "value"}
        assert document.resource_version == "7"

    def test_read_document_without_data(self, core_api):
        core_api.read_namespaced_config_map.return_value = _configmap(None)

        document = kube.ConfigMapClient(MagicMock()).read_document("ns", "name")

        assert document.data == {}

    def test_write_replaces_read_object(self, core_api):
        configmap = _configmap({"other": "value"})
        core_api.read_namespaced_config_map.return_value = configmap
        adapter = kube.ConfigMapClient(MagicMock())

        document = adapter.read_document("icap-adaptation", "policy-update-config")
        document.data["policy"] = "{}"
        adapter.write_document(document)

        kwargs = core_api.replace_namespaced_config_map.call_args.kwargs
        assert kwargs["name"] == "policy-update-config"
        assert kwargs["namespace"] == "icap-adaptation"
        assert kwargs["body"] is configmap
        assert kwargs["body"].data == {"other": "value", "policy": "{}"}
        # The read resourceVersion travels back so concurrent edits conflict
        assert kwargs["body"].metadata.resource_version == "7"

    def test_write_builds_body_when_not_read(self, core_api):
        adapter = kube.ConfigMapClient(MagicMock())

        adapter.write_document(ConfigDocument(namespace="ns", name="name", data={"policy": "{}"}))

        body = core_api.replace_namespaced_config_map.call_args.kwargs["body"]
        assert isinstance(body, client.V1ConfigMap)
        assert body.metadata.name == "name"
        assert body.data == {"policy": "{}"}

    def test_close_closes_api_client(self, core_api):
        api_client = MagicMock()

        kube.ConfigMapClient(api_client).close()

        api_client.close.assert_called_once()

    @pytest.mark.asyncio
    async def test_store_round_trip(self, core_api):
        core_api.read_namespaced_config_map.return_value = _configmap({"other": "value"})
        api_client = MagicMock()
        store = PolicyStore(lambda: kube.ConfigMapClient(api_client))
        policy = Policy.model_validate(
            {"unprocessableFileTypeAction": 2, "glasswallBlockedFilesAction": 3}
        )

        await store.update("icap-adaptation", "policy-update-config", policy)

        body = core_api.replace_namespaced_config_map.call_args.kwargs["body"]
        assert body.data["policy"] == '{"UnprocessableFileTypeAction":2,"GlasswallBlockedFilesAction":3}'
        api_client.close.assert_called_once()
        # The store deadline bounds every API request
        for call in (core_api.read_namespaced_config_map, core_api.replace_namespaced_config_map):
            assert 0 < call.call_args.kwargs["_request_timeout"] <= 10


class TestLoadClientConfiguration:

    def test_incluster(self):
        with patch.object(kube.config, "load_incluster_config") as incluster:
            configuration = kube.load_client_configuration("incluster")

        incluster.assert_called_once_with(client_configuration=configuration)

    def test_kubeconfig(self):
        with patch.object(kube.config, "load_kube_config") as kubeconfig:
            configuration = kube.load_client_configuration("kubeconfig")

        kubeconfig.assert_called_once_with(client_configuration=configuration)

    def test_auto_falls_back_to_kubeconfig(self):
        with patch.object(
            kube.config, "load_incluster_config", side_effect=ConfigException("not in cluster")
        ), patch.object(kube.config, "load_kube_config") as kubeconfig:
            kube.load_client_configuration("auto")

        kubeconfig.assert_called_once()

    def test_auto_prefers_incluster(self):
        with patch.object(kube.config, "load_incluster_config") as incluster, \
                patch.object(kube.config, "load_kube_config") as kubeconfig:
            kube.load_client_configuration("auto")

        incluster.assert_called_once()
        kubeconfig.assert_not_called()

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            kube.load_client_configuration("sideways")

    def test_factory_opens_new_session_per_call(self):
        with patch.object(kube, "load_client_configuration") as load, \
                patch.object(kube.client, "ApiClient") as api_client_cls:
            factory = kube.configmap_client_factory("kubeconfig")
            first, second = factory(), factory()

        assert first is not second
        assert load.call_count == 2
        load.assert_called_with("kubeconfig")
        assert api_client_cls.call_count == 2
