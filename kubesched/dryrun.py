"""
离线调度演练

读取 Pod / Node manifest，在内存中模拟宿主调度器的一轮调度:
1. 对每个待调度 Pod 调用入队前钩子（分配截止时间）
2. 用 EDF 比较器排序
3. 依次对每个 Pod 过滤、打分所有节点，选出得分最高的节点
4. 选中后将 Pod 计入节点已分配资源并刷新快照，再调度下一个

已设置 spec.nodeName 的 Pod 视为已绑定，只计入节点已分配资源。
"""
import json
from dataclasses import dataclass, field
from functools import cmp_to_key
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

import structlog

from .framework import Handle, PrioritySort, default_registry
from .models import Node, WorkItem, bind_work_items
from .store import MockObjectStore, MockResourceSnapshot

logger = structlog.get_logger(__name__)


@dataclass
class PlacementReport:
    """单个 Pod 的演练结果"""
    work_item: str
    queue_position: int
    deadline: Optional[str]
    ranked_nodes: List[Tuple[str, int]] = field(default_factory=list)
    rejected: Dict[str, str] = field(default_factory=dict)
    selected_node: Optional[str] = None

    def to_dict(self) -> dict:
        return {
            "work_item": self.work_item,
            "queue_position": self.queue_position,
            "deadline": self.deadline,
            "ranked_nodes": [{"node": n, "score": s} for n, s in self.ranked_nodes],
            "rejected": self.rejected,
            "selected_node": self.selected_node,
        }


def load_manifests(path: Union[str, Path]) -> List[Dict[str, Any]]:
    """
    读取 manifest 文件

    支持 Kubernetes List（含 items）、JSON 数组或单个对象。
    """
    with open(path, "r", encoding="utf-8") as f:
        document = json.load(f)

    if isinstance(document, list):
        return document
    if isinstance(document, dict) and "items" in document:
        return list(document["items"] or [])
    return [document]


def _comparator(queue_sort):
    def compare(a: WorkItem, b: WorkItem) -> int:
        if queue_sort.less(a, b):
            return -1
        if queue_sort.less(b, a):
            return 1
        return 0
    return compare


def run_dry_run(
    pod_manifests: List[Mapping[str, Any]],
    node_manifests: List[Mapping[str, Any]],
    edf_args: Optional[Mapping[str, Any]] = None,
    gpu_args: Optional[Mapping[str, Any]] = None,
) -> List[PlacementReport]:
    """
    执行一轮演练

    Args:
        pod_manifests: Pod manifest 列表
        node_manifests: Node manifest 列表
        edf_args: EDFQueueSort 插件参数
        gpu_args: GPUAware 插件参数

    Returns:
        按队列顺序排列的 PlacementReport 列表
    """
    nodes = [Node.from_dict(m) for m in node_manifests]

    bound: List[Tuple[str, WorkItem]] = []
    pending: List[WorkItem] = []
    for manifest in pod_manifests:
        item = WorkItem.from_dict(manifest)
        node_name = (manifest.get("spec") or {}).get("nodeName")
        if node_name:
            bound.append((node_name, item))
        else:
            pending.append(item)

    store = MockObjectStore(pending)
    snapshot = MockResourceSnapshot(bind_work_items(nodes, bound))
    handle = Handle(snapshot=snapshot, object_store=store, fallback=PrioritySort())

    registry = default_registry()
    edf = registry.instantiate("EDFQueueSort", handle, edf_args)
    gpu = registry.instantiate("GPUAware", handle, gpu_args)

    for item in store.list_work_items():
        edf.on_admission(item)

    queue = sorted(store.list_work_items(), key=cmp_to_key(_comparator(edf)))

    reports = []
    for position, item in enumerate(queue):
        _, has_deadline = edf.deadline_of(item)
        report = PlacementReport(
            work_item=str(item.ref),
            queue_position=position,
            deadline=item.annotations.get(edf.deadline_key) if has_deadline else None,
        )

        for node in nodes:
            status = gpu.is_eligible(item, snapshot.get_node(node.name))
            if not status.is_success():
                report.rejected[node.name] = status.message
                continue

            score, status = gpu.score(item, node.name)
            if status.is_success():
                report.ranked_nodes.append((node.name, score))
            else:
                report.rejected[node.name] = status.message

        report.ranked_nodes.sort(key=lambda pair: (-pair[1], pair[0]))
        if report.ranked_nodes:
            report.selected_node = report.ranked_nodes[0][0]
            bound.append((report.selected_node, item))
            snapshot.refresh(bind_work_items(nodes, bound))

        logger.info(
            "dry_run_placement",
            work_item=report.work_item,
            position=position,
            selected_node=report.selected_node,
            rejected=len(report.rejected),
        )
        reports.append(report)

    return reports
