"""
Kubernetes 对象存储测试

CoreV1Api 使用 mock 替代
"""
from datetime import datetime, timezone
from unittest.mock import MagicMock

import pytest
from kubernetes import client as k8s_client
from kubernetes.client.rest import ApiException
from urllib3.exceptions import ReadTimeoutError

from kubesched.config import KubernetesSettings
from kubesched.errors import ConflictError, TransportError, WorkItemNotFoundError
from kubesched.models import WorkItemRef
from kubesched.store import KubernetesObjectStore, load_client_config
from kubesched.store import kubernetes as kube_store

REF = WorkItemRef("ml", "train")


def make_pod(resource_version="10", annotations=None):
    return k8s_client.V1Pod(
        metadata=k8s_client.V1ObjectMeta(
            name="train",
            namespace="ml",
            resource_version=resource_version,
            annotations=annotations,
            creation_timestamp=datetime(2026, 1, 1, 12, tzinfo=timezone.utc),
        ),
        spec=k8s_client.V1PodSpec(
            priority=100,
            containers=[
                k8s_client.V1Container(
                    name="trainer",
                    resources=k8s_client.V1ResourceRequirements(requests={"nvidia.com/gpu": "2"}),
                )
            ],
        ),
    )


@pytest.fixture
def api():
    mock = MagicMock(spec=k8s_client.CoreV1Api)
    mock.api_client = k8s_client.ApiClient()
    return mock


class TestRead:
    """读取工作项"""

    def test_get_work_item(self, api):
        api.read_namespaced_pod.return_value = make_pod(annotations={"a": "b"})
        store = KubernetesObjectStore(api, request_timeout=3.0)

        item = store.get_work_item(REF)

        api.read_namespaced_pod.assert_called_once_with("train", "ml", _request_timeout=3.0)
        assert item.ref == REF
        assert item.resource_version == "10"
        assert item.priority == 100
        assert item.annotations["a"] == "b"
        assert item.containers[0].requests["nvidia.com/gpu"] == "2"
        assert item.creation_timestamp == datetime(2026, 1, 1, 12, tzinfo=timezone.utc)

    def test_explicit_timeout_wins(self, api):
        api.read_namespaced_pod.return_value = make_pod()
        KubernetesObjectStore(api, request_timeout=3.0).get_work_item(REF, timeout=0.5)
        api.read_namespaced_pod.assert_called_once_with("train", "ml", _request_timeout=0.5)

    def test_not_found(self, api):
        api.read_namespaced_pod.side_effect = ApiException(status=404, reason="Not Found")
        with pytest.raises(WorkItemNotFoundError):
            KubernetesObjectStore(api).get_work_item(REF)

    def test_server_error(self, api):
        api.read_namespaced_pod.side_effect = ApiException(status=500, reason="Internal Server Error")
        with pytest.raises(TransportError):
            KubernetesObjectStore(api).get_work_item(REF)


class TestConditionalUpdate:
    """条件更新注解"""

    def test_patch_carries_resource_version(self, api):
        api.patch_namespaced_pod.return_value = make_pod(resource_version="11")
        store = KubernetesObjectStore(api, request_timeout=5.0)

        new_version = store.conditional_update_annotation(REF, "k", "v", expected_version="10", timeout=1.0)

        assert new_version == "11"
        api.patch_namespaced_pod.assert_called_once_with(
            "train",
            "ml",
            {"metadata": {"annotations": {"k": "v"}, "resourceVersion": "10"}},
            _request_timeout=1.0,
        )

    def test_patch_without_version(self, api):
        api.patch_namespaced_pod.return_value = make_pod(resource_version="11")
        KubernetesObjectStore(api).conditional_update_annotation(REF, "k", "v", expected_version=None)
        body = api.patch_namespaced_pod.call_args.args[2]
        assert body == {"metadata": {"annotations": {"k": "v"}}}

    def test_conflict(self, api):
        api.patch_namespaced_pod.side_effect = ApiException(status=409, reason="Conflict")
        with pytest.raises(ConflictError) as exc_info:
            KubernetesObjectStore(api).conditional_update_annotation(REF, "k", "v", expected_version="10")
        assert exc_info.value.expected_version == "10"

    def test_not_found(self, api):
        api.patch_namespaced_pod.side_effect = ApiException(status=404, reason="Not Found")
        with pytest.raises(WorkItemNotFoundError):
            KubernetesObjectStore(api).conditional_update_annotation(REF, "k", "v", expected_version="10")

    def test_timeout(self, api):
        api.patch_namespaced_pod.side_effect = ReadTimeoutError(None, "/api", "read timed out")
        with pytest.raises(TransportError):
            KubernetesObjectStore(api).conditional_update_annotation(REF, "k", "v", expected_version="10")


class TestClientConfig:
    """客户端配置加载"""

    def test_in_cluster_first(self, monkeypatch):
        calls = []
        monkeypatch.setattr(kube_store.k8s_config, "load_incluster_config", lambda: calls.append("in"))
        monkeypatch.setattr(kube_store.k8s_config, "load_kube_config", lambda **kw: calls.append("file"))

        load_client_config(KubernetesSettings())

        assert calls == ["in"]

    def test_falls_back_to_kubeconfig(self, monkeypatch):
        def no_cluster():
            raise kube_store.k8s_config.ConfigException("not in cluster")

        received = {}
        monkeypatch.setattr(kube_store.k8s_config, "load_incluster_config", no_cluster)
        monkeypatch.setattr(kube_store.k8s_config, "load_kube_config", lambda **kw: received.update(kw))

        load_client_config(KubernetesSettings(kubeconfig="/tmp/kubeconfig", context="dev"))

        assert received == {"config_file": "/tmp/kubeconfig", "context": "dev"}

    def test_forced_in_cluster_failure(self, monkeypatch):
        def no_cluster():
            raise kube_store.k8s_config.ConfigException("not in cluster")

        monkeypatch.setattr(kube_store.k8s_config, "load_incluster_config", no_cluster)

        with pytest.raises(TransportError):
            load_client_config(KubernetesSettings(in_cluster=True))

    def test_skip_in_cluster(self, monkeypatch):
        calls = []
        monkeypatch.setattr(kube_store.k8s_config, "load_incluster_config", lambda: calls.append("in"))
        monkeypatch.setattr(kube_store.k8s_config, "load_kube_config", lambda **kw: calls.append("file"))

        load_client_config(KubernetesSettings(in_cluster=False))

        assert calls == ["file"]
