"""
调度框架契约

状态、扩展点协议、默认排序与插件注册表。
"""
from .status import Code, Status
from .interfaces import (
    Plugin,
    QueueSortPlugin,
    PreEnqueuePlugin,
    FilterPlugin,
    ScorePlugin,
    FallbackComparator,
    ResourceSnapshot,
    ObjectStore,
    Handle,
    capabilities,
)
from .queuesort import PrioritySort
from .registry import PluginRegistry, decode_args, default_registry

__all__ = [
    # 状态
    "Code",
    "Status",
    # 扩展点
    "Plugin",
    "QueueSortPlugin",
    "PreEnqueuePlugin",
    "FilterPlugin",
    "ScorePlugin",
    # 外部能力
    "FallbackComparator",
    "ResourceSnapshot",
    "ObjectStore",
    "Handle",
    "capabilities",
    # 默认排序
    "PrioritySort",
    # 注册表
    "PluginRegistry",
    "decode_args",
    "default_registry",
]
