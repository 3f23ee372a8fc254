"""
调度框架扩展点

宿主调度器通过这些能力接口调用插件；插件只需实现对应方法，
不继承任何框架基类。被消费的外部能力（默认比较器、节点快照、
对象存储）同样以协议描述，由调用方显式注入。
"""
from dataclasses import dataclass
from typing import Optional, Protocol, Tuple, runtime_checkable

from ..models import NodeInfo, WorkItem, WorkItemRef
from .status import Status


# ---------------------------------------------------------------------------
# 插件暴露的能力
# ---------------------------------------------------------------------------

@runtime_checkable
class Plugin(Protocol):
    name: str


@runtime_checkable
class QueueSortPlugin(Protocol):
    """队列排序: a 是否应排在 b 之前（严格全序）"""
    name: str

    def less(self, a: WorkItem, b: WorkItem) -> bool: ...


@runtime_checkable
class PreEnqueuePlugin(Protocol):
    """入队前钩子，每个工作项调用一次"""
    name: str

    def on_admission(self, item: WorkItem, timeout: Optional[float] = None) -> Status: ...


@runtime_checkable
class FilterPlugin(Protocol):
    """节点准入过滤"""
    name: str

    def is_eligible(self, item: WorkItem, node_info: Optional[NodeInfo]) -> Status: ...


@runtime_checkable
class ScorePlugin(Protocol):
    """节点打分，仅对通过过滤的节点调用"""
    name: str

    def score(self, item: WorkItem, node_name: str) -> Tuple[int, Status]: ...


# ---------------------------------------------------------------------------
# 插件消费的外部能力
# ---------------------------------------------------------------------------

@runtime_checkable
class FallbackComparator(Protocol):
    """宿主默认排序（优先级、时间戳等）"""

    def less(self, a: WorkItem, b: WorkItem) -> bool: ...


@runtime_checkable
class ResourceSnapshot(Protocol):
    """节点快照（只读）"""

    def get_node(self, name: str) -> NodeInfo:
        """
        Raises:
            NodeNotFoundError: 节点不存在
            TransportError: 快照不可用
        """
        ...


@runtime_checkable
class ObjectStore(Protocol):
    """工作项存储（读 + 条件更新注解）"""

    def get_work_item(self, ref: WorkItemRef, timeout: Optional[float] = None) -> WorkItem: ...

    def conditional_update_annotation(
        self,
        ref: WorkItemRef,
        key: str,
        value: str,
        expected_version: Optional[str],
        timeout: Optional[float] = None,
    ) -> Optional[str]:
        """
        仅当版本号匹配时写入注解

        Returns:
            新版本号

        Raises:
            ConflictError: 版本号不匹配
            WorkItemNotFoundError: 工作项不存在
            TransportError: 通信失败
        """
        ...


@dataclass(frozen=True)
class Handle:
    """插件工厂可访问的宿主资源"""
    snapshot: ResourceSnapshot
    object_store: ObjectStore
    fallback: FallbackComparator


CAPABILITIES = {
    "queue_sort": QueueSortPlugin,
    "pre_enqueue": PreEnqueuePlugin,
    "filter": FilterPlugin,
    "score": ScorePlugin,
}


def capabilities(plugin: object) -> Tuple[str, ...]:
    """列出插件实例实现的扩展点"""
    return tuple(
        name for name, protocol in CAPABILITIES.items()
        if isinstance(plugin, protocol)
    )
