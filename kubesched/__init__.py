"""
kubesched

集群调度器的决策插件:
- EDFQueueSort: 最早截止时间优先的队列排序 + 入队前截止时间分配
- GPUAware: GPU 准入过滤与节点打分
"""
from .errors import (
    SchedulerError,
    ConflictError,
    TransportError,
    WorkItemNotFoundError,
    NodeNotFoundError,
    PluginConfigError,
    PluginRegistrationError,
)
from .models import Container, Node, NodeInfo, WorkItem, WorkItemRef

__version__ = "0.1.0"

__all__ = [
    "SchedulerError",
    "ConflictError",
    "TransportError",
    "WorkItemNotFoundError",
    "NodeNotFoundError",
    "PluginConfigError",
    "PluginRegistrationError",
    "Container",
    "Node",
    "NodeInfo",
    "WorkItem",
    "WorkItemRef",
]
