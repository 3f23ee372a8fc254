"""
内存版对象存储与节点快照（无集群时使用）

仅用于开发和测试，生产环境应使用 Kubernetes 版本
"""
import threading
from dataclasses import replace
from typing import Dict, Iterable, List, Optional

import structlog

from ..errors import ConflictError, NodeNotFoundError, WorkItemNotFoundError
from ..models import NodeInfo, WorkItem, WorkItemRef

logger = structlog.get_logger(__name__)


class MockObjectStore:
    """
    内存版工作项存储

    每次写入将版本号加一；条件更新时版本号不匹配抛出 ConflictError。
    """

    def __init__(self, items: Optional[Iterable[WorkItem]] = None):
        self._lock = threading.Lock()
        self._items: Dict[WorkItemRef, WorkItem] = {}
        self.update_calls = 0
        for item in items or []:
            self.add(item)

    def add(self, item: WorkItem) -> WorkItem:
        """登记工作项；没有版本号时从 "1" 开始"""
        with self._lock:
            if item.resource_version is None:
                item = replace(item, resource_version="1")
            self._items[item.ref] = item
            return item

    def get_work_item(self, ref: WorkItemRef, timeout: Optional[float] = None) -> WorkItem:
        with self._lock:
            item = self._items.get(ref)
        if item is None:
            raise WorkItemNotFoundError(str(ref))
        return item

    def conditional_update_annotation(
        self,
        ref: WorkItemRef,
        key: str,
        value: str,
        expected_version: Optional[str],
        timeout: Optional[float] = None,
    ) -> Optional[str]:
        with self._lock:
            self.update_calls += 1
            current = self._items.get(ref)
            if current is None:
                raise WorkItemNotFoundError(str(ref))
            if current.resource_version != expected_version:
                raise ConflictError(str(ref), expected_version)

            new_version = str(int(current.resource_version or "0") + 1)
            self._items[ref] = current.with_annotation(key, value, new_version)

        logger.debug(
            "mock_annotation_updated",
            work_item=str(ref),
            key=key,
            new_version=new_version,
        )
        return new_version

    def list_work_items(self) -> List[WorkItem]:
        with self._lock:
            return list(self._items.values())


class MockResourceSnapshot:
    """内存版节点快照"""

    def __init__(self, nodes: Optional[Dict[str, NodeInfo]] = None):
        self._nodes: Dict[str, NodeInfo] = dict(nodes or {})

    def get_node(self, name: str) -> NodeInfo:
        node_info = self._nodes.get(name)
        if node_info is None:
            raise NodeNotFoundError(name)
        return node_info

    def refresh(self, nodes: Dict[str, NodeInfo]) -> None:
        """整体替换快照（宿主在两次调度尝试之间刷新）"""
        self._nodes = dict(nodes)

    def node_names(self) -> List[str]:
        return list(self._nodes)

    def __len__(self) -> int:
        return len(self._nodes)
