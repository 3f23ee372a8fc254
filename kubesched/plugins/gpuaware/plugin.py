"""
GPU 感知调度插件

Filter: 检查空闲 GPU 数与单卡显存，不请求 GPU 的工作项直接放行。
Score:  利用率 + 显存 + 互联 + 代际 四项加权求和，分值只在同一次
        调度尝试内对同一工作项可比。
"""
from typing import Any, List, Mapping, Optional, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ...config import GPUAwareSettings, get_settings
from ...errors import SchedulerError
from ...framework.interfaces import Handle, ResourceSnapshot
from ...framework.registry import decode_args
from ...framework.status import Status
from ...models import NodeInfo, WorkItem
from .resources import (
    allocated_gpu_count,
    capacity_gpu_count,
    gpu_generation_rank,
    gpu_memory_gb,
    has_high_bandwidth_interconnect,
    requested_gpu_count,
)

logger = structlog.get_logger(__name__)

NAME = "GPUAware"


class GPUAwareArgs(BaseModel):
    """pluginConfig.args；未给出的字段取环境配置默认值"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    resource_name: Optional[str] = Field(default=None, alias="resourceName", min_length=1)
    memory_label: Optional[str] = Field(default=None, alias="memoryLabel", min_length=1)
    interconnect_label: Optional[str] = Field(default=None, alias="interconnectLabel", min_length=1)
    generation_label: Optional[str] = Field(default=None, alias="generationLabel", min_length=1)
    high_bandwidth_interconnects: Optional[List[str]] = Field(default=None, alias="highBandwidthInterconnects")
    min_gpu_memory_gb: Optional[int] = Field(default=None, alias="minGPUMemoryGB", ge=0)
    utilization_weight: Optional[int] = Field(default=None, alias="utilizationWeight", ge=0)
    memory_weight: Optional[int] = Field(default=None, alias="memoryWeight", ge=0)
    interconnect_bonus: Optional[int] = Field(default=None, alias="interconnectBonus", ge=0)
    generation_weight: Optional[int] = Field(default=None, alias="generationWeight", ge=0)

    def resolve(self, settings: GPUAwareSettings) -> GPUAwareSettings:
        """合并到环境配置之上"""
        return settings.model_copy(update=self.model_dump(exclude_none=True))


class GPUAware:
    """
    GPU 感知过滤与打分

    只读取外部快照，不持有可变状态，可被并发调用。
    """

    name = NAME

    def __init__(self, snapshot: ResourceSnapshot, settings: GPUAwareSettings):
        self.snapshot = snapshot
        self.settings = settings
        self._interconnects = frozenset(settings.high_bandwidth_interconnects)

    def is_eligible(self, item: WorkItem, node_info: Optional[NodeInfo]) -> Status:
        """
        节点准入

        顺序检查，遇到第一个失败即返回:
        1. 空闲 GPU 数 >= 请求数
        2. 单卡显存 >= 最低要求
        """
        s = self.settings
        requested = requested_gpu_count(item, s.resource_name)
        if requested == 0:
            return Status.success().with_plugin(self.name)

        if node_info is None or node_info.node is None:
            return Status.error("node not found").with_plugin(self.name)

        node = node_info.node
        available = capacity_gpu_count(node, s.resource_name) - allocated_gpu_count(node_info, s.resource_name)
        if available < requested:
            return Status.unschedulable(
                f"insufficient GPU: need {requested}, available {available}"
            ).with_plugin(self.name)

        memory = gpu_memory_gb(node, s.memory_label)
        if memory < s.min_gpu_memory_gb:
            return Status.unschedulable(
                f"insufficient GPU memory: need {s.min_gpu_memory_gb}GB, available {memory}GB"
            ).with_plugin(self.name)

        return Status.success().with_plugin(self.name)

    def score(self, item: WorkItem, node_name: str) -> Tuple[int, Status]:
        """节点打分；快照中取不到节点时返回 Error"""
        try:
            node_info = self.snapshot.get_node(node_name)
        except SchedulerError as e:
            logger.warning("score_node_lookup_failed", node=node_name, error=str(e))
            return 0, Status.error(str(e)).with_plugin(self.name)

        if node_info.node is None:
            return 0, Status.error(f"node {node_name} not found").with_plugin(self.name)

        return self.score_node(node_info), Status.success().with_plugin(self.name)

    def score_node(self, node_info: NodeInfo) -> int:
        """四项加权求和"""
        s = self.settings
        node = node_info.node
        score = 0

        # 利用率：越空闲越好
        capacity = capacity_gpu_count(node, s.resource_name)
        allocated = allocated_gpu_count(node_info, s.resource_name)
        if capacity > 0:
            utilization_pct = (allocated * 100) // capacity
            score += (100 - utilization_pct) * s.utilization_weight

        # 显存：越大越好，无上限
        score += gpu_memory_gb(node, s.memory_label) * s.memory_weight

        # 互联
        if has_high_bandwidth_interconnect(node, s.interconnect_label, self._interconnects):
            score += s.interconnect_bonus

        # 代际
        score += gpu_generation_rank(node, s.generation_label) * s.generation_weight

        return score


def new_gpu_aware(args: Optional[Mapping[str, Any]], handle: Handle) -> GPUAware:
    """插件工厂"""
    settings = decode_args(args, GPUAwareArgs).resolve(get_settings().gpu)
    logger.debug(
        "gpu_aware_config",
        resource_name=settings.resource_name,
        min_gpu_memory_gb=settings.min_gpu_memory_gb,
    )
    return GPUAware(handle.snapshot, settings)
