"""对象存储与节点快照适配器"""
from .memory import MockObjectStore, MockResourceSnapshot
from .kubernetes import KubernetesObjectStore, load_client_config

__all__ = [
    "MockObjectStore",
    "MockResourceSnapshot",
    "KubernetesObjectStore",
    "load_client_config",
]
