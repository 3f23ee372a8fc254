"""
调度数据模型

WorkItem / Node 由外部对象存储拥有，本模块只提供只读视图。
所有模型都是不可变 dataclass，可在多个调度线程间安全共享。
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, List, Mapping, Optional, Tuple

from .timeutil import parse_timestamp

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

_EMPTY: Mapping[str, Any] = MappingProxyType({})


def _frozen_map(values: Optional[Mapping[str, Any]]) -> Mapping[str, Any]:
    """复制为只读映射"""
    if not values:
        return _EMPTY
    return MappingProxyType(dict(values))


@dataclass(frozen=True)
class WorkItemRef:
    """工作项标识"""
    namespace: str
    name: str

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}"


@dataclass(frozen=True)
class Container:
    """工作项的一个子组件及其资源请求"""
    name: str
    requests: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self):
        object.__setattr__(self, "requests", _frozen_map(self.requests))

    def __hash__(self) -> int:
        return hash(self.name)


@dataclass(frozen=True)
class WorkItem:
    """
    待调度工作项（对应 Pod）

    annotations 中保留两个键: 截止时长请求、绝对截止时间戳。
    resource_version 为对象存储的乐观并发版本号。
    """
    namespace: str
    name: str
    annotations: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    containers: Tuple[Container, ...] = ()
    priority: Optional[int] = None
    creation_timestamp: datetime = EPOCH
    resource_version: Optional[str] = None
    uid: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "annotations", _frozen_map(self.annotations))
        object.__setattr__(self, "containers", tuple(self.containers))

    def __hash__(self) -> int:
        # 映射字段不可哈希，按身份字段计算
        return hash((self.namespace, self.name, self.uid))

    @property
    def ref(self) -> WorkItemRef:
        return WorkItemRef(self.namespace, self.name)

    @classmethod
    def from_dict(cls, manifest: Mapping[str, Any]) -> "WorkItem":
        """
        从 Pod manifest（Kubernetes JSON 结构）构建

        缺失的 annotations / containers 视为空，缺失的创建时间视为 epoch。
        """
        metadata = manifest.get("metadata") or {}
        spec = manifest.get("spec") or {}

        containers = []
        for raw in spec.get("containers") or []:
            resources = raw.get("resources") or {}
            containers.append(Container(
                name=raw.get("name", ""),
                requests=resources.get("requests") or {},
            ))

        created = metadata.get("creationTimestamp")
        if isinstance(created, datetime):
            creation_timestamp = created if created.tzinfo else created.replace(tzinfo=timezone.utc)
        else:
            creation_timestamp = parse_timestamp(created) or EPOCH

        return cls(
            namespace=metadata.get("namespace") or "default",
            name=metadata.get("name", ""),
            annotations=metadata.get("annotations") or {},
            containers=tuple(containers),
            priority=spec.get("priority"),
            creation_timestamp=creation_timestamp,
            resource_version=metadata.get("resourceVersion"),
            uid=metadata.get("uid"),
        )

    def with_annotation(self, key: str, value: str, resource_version: Optional[str]) -> "WorkItem":
        """返回带新注解与新版本号的副本（供存储实现使用）"""
        annotations = dict(self.annotations)
        annotations[key] = value
        return WorkItem(
            namespace=self.namespace,
            name=self.name,
            annotations=annotations,
            containers=self.containers,
            priority=self.priority,
            creation_timestamp=self.creation_timestamp,
            resource_version=resource_version,
            uid=self.uid,
        )


@dataclass(frozen=True)
class Node:
    """调度目标节点"""
    name: str
    capacity: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    allocatable: Mapping[str, Any] = field(default_factory=lambda: _EMPTY)
    labels: Mapping[str, str] = field(default_factory=lambda: _EMPTY)
    annotations: Mapping[str, str] = field(default_factory=lambda: _EMPTY)

    def __post_init__(self):
        for name in ("capacity", "allocatable", "labels", "annotations"):
            object.__setattr__(self, name, _frozen_map(getattr(self, name)))

    def __hash__(self) -> int:
        return hash(self.name)

    @classmethod
    def from_dict(cls, manifest: Mapping[str, Any]) -> "Node":
        """从 Node manifest 构建"""
        metadata = manifest.get("metadata") or {}
        status = manifest.get("status") or {}
        return cls(
            name=metadata.get("name", ""),
            capacity=status.get("capacity") or {},
            allocatable=status.get("allocatable") or {},
            labels=metadata.get("labels") or {},
            annotations=metadata.get("annotations") or {},
        )


@dataclass(frozen=True)
class NodeInfo:
    """
    节点快照

    work_items 为当前已绑定到该节点的工作项，由外部快照维护。
    node 可能为 None（快照中节点对象已被删除）。
    """
    node: Optional[Node]
    work_items: Tuple[WorkItem, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, "work_items", tuple(self.work_items))

    @property
    def name(self) -> Optional[str]:
        return self.node.name if self.node else None


def bind_work_items(nodes: List[Node], items: List[Tuple[str, WorkItem]]) -> Dict[str, NodeInfo]:
    """
    按节点名聚合已绑定工作项

    Args:
        nodes: 节点列表
        items: (节点名, 工作项) 列表；未知节点名被忽略

    Returns:
        节点名 -> NodeInfo
    """
    bound: Dict[str, List[WorkItem]] = {node.name: [] for node in nodes}
    for node_name, item in items:
        if node_name in bound:
            bound[node_name].append(item)
    return {
        node.name: NodeInfo(node=node, work_items=tuple(bound[node.name]))
        for node in nodes
    }
