"""
GPU 资源信息提取

从工作项和节点描述中读取 GPU 数量、显存、互联拓扑和代际。
全部为纯函数；格式错误的输入按 0 / 不存在处理，从不抛出异常。
"""
import math
import re
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

import structlog
from kubernetes.utils import parse_quantity

from ...models import Node, NodeInfo, WorkItem

logger = structlog.get_logger(__name__)

DEFAULT_GPU_RESOURCE = "nvidia.com/gpu"
DEFAULT_MEMORY_LABEL = "gpu-memory-gb"
DEFAULT_INTERCONNECT_LABEL = "gpu-interconnect"
DEFAULT_GENERATION_LABEL = "gpu-generation"
DEFAULT_HIGH_BANDWIDTH_INTERCONNECTS = frozenset({"nvlink"})

# GPU 型号 -> 代际序号（按架构: Pascal=6, Volta/Turing=7, Ampere/Ada=8, Hopper=9, Blackwell=10）
GPU_GENERATION_RANKS = {
    "p100": 6,
    "v100": 7,
    "t4": 7,
    "a10": 8,
    "a30": 8,
    "a40": 8,
    "a100": 8,
    "l4": 8,
    "l40": 8,
    "l40s": 8,
    "h100": 9,
    "h200": 9,
    "b100": 10,
    "b200": 10,
}

# 显存单位 -> GB 倍率
_MEMORY_UNITS = {
    "": Decimal(1),
    "g": Decimal(1),
    "gb": Decimal(1),
    "gi": Decimal(1),
    "gib": Decimal(1),
    "m": Decimal(1) / Decimal(1000),
    "mb": Decimal(1) / Decimal(1000),
    "mi": Decimal(1) / Decimal(1024),
    "mib": Decimal(1) / Decimal(1024),
    "t": Decimal(1000),
    "tb": Decimal(1000),
    "ti": Decimal(1024),
    "tib": Decimal(1024),
}

_MEMORY_VALUE = re.compile(r"(\d+(?:\.\d+)?)\s*([a-z]*)")


def quantity_value(raw: Any) -> int:
    """
    资源数量取整数值（向上取整，与 API server 的 Value() 一致）

    无法解析的数量视为 0。
    """
    if raw is None:
        return 0
    try:
        return int(math.ceil(parse_quantity(raw)))
    except (ValueError, TypeError, ArithmeticError) as e:
        logger.debug("quantity_unparsable", value=str(raw), error=str(e))
        return 0


def _sum_requests(items: Iterable[WorkItem], resource_name: str) -> int:
    total = 0
    for item in items:
        for container in item.containers:
            if resource_name in container.requests:
                total += quantity_value(container.requests[resource_name])
    return total


def requested_gpu_count(item: WorkItem, resource_name: str = DEFAULT_GPU_RESOURCE) -> int:
    """工作项所有容器请求的 GPU 数之和"""
    return _sum_requests((item,), resource_name)


def capacity_gpu_count(node: Node, resource_name: str = DEFAULT_GPU_RESOURCE) -> int:
    """节点 GPU 容量，缺失为 0"""
    return quantity_value(node.capacity.get(resource_name))


def allocated_gpu_count(node_info: NodeInfo, resource_name: str = DEFAULT_GPU_RESOURCE) -> int:
    """节点上已绑定工作项请求的 GPU 数之和"""
    return _sum_requests(node_info.work_items, resource_name)


def parse_memory_gb(raw: Optional[str]) -> int:
    """
    解析显存标签为整数 GB

    支持 "16"、"16G"、"16GB"、"16Gi"、"24576Mi"、"1Ti" 等，大小写不敏感，
    结果向下取整；无法解析或为负时返回 0。
    """
    if not raw:
        return 0

    match = _MEMORY_VALUE.fullmatch(raw.strip().lower())
    if match is None:
        return 0

    factor = _MEMORY_UNITS.get(match.group(2))
    if factor is None:
        return 0

    return int(Decimal(match.group(1)) * factor)


def gpu_memory_gb(node: Node, label: str = DEFAULT_MEMORY_LABEL) -> int:
    """节点单卡显存 (GB)，缺失或无法解析为 0"""
    return parse_memory_gb(node.labels.get(label))


def has_high_bandwidth_interconnect(
    node: Node,
    label: str = DEFAULT_INTERCONNECT_LABEL,
    recognized: Iterable[str] = DEFAULT_HIGH_BANDWIDTH_INTERCONNECTS,
) -> bool:
    """互联标签是否为已知高带宽互联（如 nvlink）"""
    value = node.labels.get(label)
    return value is not None and value in set(recognized)


def gpu_generation_rank(
    node: Node,
    label: str = DEFAULT_GENERATION_LABEL,
    ranks: Mapping[str, int] = GPU_GENERATION_RANKS,
) -> int:
    """代际序号，未知或缺失为 0"""
    value = node.labels.get(label)
    if not value:
        return 0
    return ranks.get(value.strip().lower(), 0)
