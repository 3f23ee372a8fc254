"""
Kubernetes 对象存储

读取 Pod 并以 merge patch 写入注解；patch 中携带 metadata.resourceVersion，
由 API server 做乐观并发校验（版本不匹配返回 409）。
"""
from typing import Any, Optional

import structlog
from kubernetes import client as k8s_client, config as k8s_config
from kubernetes.client.rest import ApiException
from urllib3.exceptions import HTTPError

from ..config import KubernetesSettings, get_settings
from ..errors import ConflictError, TransportError, WorkItemNotFoundError
from ..models import WorkItem, WorkItemRef

logger = structlog.get_logger(__name__)


def load_client_config(settings: KubernetesSettings) -> None:
    """加载集群内配置，失败时回退到 kubeconfig"""
    if settings.in_cluster is not False:
        try:
            k8s_config.load_incluster_config()
            logger.info("kube_config_loaded", source="in_cluster")
            return
        except k8s_config.ConfigException as e:
            if settings.in_cluster:
                raise TransportError(f"in-cluster config unavailable: {e}") from e

    try:
        k8s_config.load_kube_config(config_file=settings.kubeconfig, context=settings.context)
    except (k8s_config.ConfigException, OSError) as e:
        raise TransportError(f"kubeconfig unavailable: {e}") from e
    logger.info("kube_config_loaded", source="kubeconfig", path=settings.kubeconfig)


class KubernetesObjectStore:
    """基于 CoreV1Api 的工作项存储"""

    def __init__(self, api: k8s_client.CoreV1Api, request_timeout: Optional[float] = None):
        """
        Args:
            api: CoreV1Api 实例
            request_timeout: 调用方未给出超时时使用的默认值（秒）
        """
        self.api = api
        self.request_timeout = request_timeout

    @classmethod
    def from_settings(cls, settings: Optional[KubernetesSettings] = None) -> "KubernetesObjectStore":
        settings = settings or get_settings().kube
        load_client_config(settings)
        return cls(k8s_client.CoreV1Api(), request_timeout=settings.request_timeout_seconds)

    def _timeout(self, timeout: Optional[float]) -> Optional[float]:
        return timeout if timeout is not None else self.request_timeout

    def _to_work_item(self, pod: Any) -> WorkItem:
        manifest = self.api.api_client.sanitize_for_serialization(pod)
        return WorkItem.from_dict(manifest)

    def get_work_item(self, ref: WorkItemRef, timeout: Optional[float] = None) -> WorkItem:
        try:
            pod = self.api.read_namespaced_pod(
                ref.name,
                ref.namespace,
                _request_timeout=self._timeout(timeout),
            )
        except ApiException as e:
            if e.status == 404:
                raise WorkItemNotFoundError(str(ref)) from e
            raise TransportError(f"read {ref} failed: {e.status} {e.reason}") from e
        except HTTPError as e:
            raise TransportError(f"read {ref} failed: {e}") from e
        return self._to_work_item(pod)

    def conditional_update_annotation(
        self,
        ref: WorkItemRef,
        key: str,
        value: str,
        expected_version: Optional[str],
        timeout: Optional[float] = None,
    ) -> Optional[str]:
        metadata = {"annotations": {key: value}}
        if expected_version is not None:
            metadata["resourceVersion"] = expected_version

        try:
            pod = self.api.patch_namespaced_pod(
                ref.name,
                ref.namespace,
                {"metadata": metadata},
                _request_timeout=self._timeout(timeout),
            )
        except ApiException as e:
            if e.status == 409:
                raise ConflictError(str(ref), expected_version) from e
            if e.status == 404:
                raise WorkItemNotFoundError(str(ref)) from e
            raise TransportError(f"patch {ref} failed: {e.status} {e.reason}") from e
        except HTTPError as e:
            raise TransportError(f"patch {ref} failed: {e}") from e

        new_version = pod.metadata.resource_version if pod.metadata else None
        logger.debug(
            "pod_annotation_patched",
            work_item=str(ref),
            key=key,
            old_version=expected_version,
            new_version=new_version,
        )
        return new_version
