"""
EDF 队列排序插件

Less 规则（首个可判定规则生效）:
1. 解析双方截止时间注解（RFC 3339）；缺失、空串或无法解析视为无截止时间
2. 仅一方有截止时间 -> 有截止时间者优先，与优先级无关
3. 双方都没有 -> 交给默认比较器
4. 双方都有 -> 更早者优先；相同则交给默认比较器
"""
from datetime import datetime
from typing import Any, Mapping, Optional, Tuple

import structlog
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ...config import EDFSettings, get_settings
from ...framework.interfaces import FallbackComparator, Handle
from ...framework.registry import decode_args
from ...framework.status import Status
from ...models import WorkItem
from ...timeutil import parse_timestamp
from .assignment import DeadlineAssigner
from .deadline_store import DeadlineStore

logger = structlog.get_logger(__name__)

NAME = "EDFQueueSort"


class EDFQueueSortArgs(BaseModel):
    """pluginConfig.args；未给出的字段取环境配置默认值"""
    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    deadline_annotation: Optional[str] = Field(default=None, alias="deadlineAnnotation")
    duration_annotation: Optional[str] = Field(default=None, alias="durationAnnotation")
    default_duration_seconds: Optional[float] = Field(default=None, alias="defaultDurationSeconds", gt=0)
    conflict_retries: Optional[int] = Field(default=None, alias="conflictRetries", ge=0, le=5)

    @field_validator("deadline_annotation", "duration_annotation")
    @classmethod
    def empty_as_default(cls, v: Optional[str]) -> Optional[str]:
        return v or None

    def resolve(self, settings: EDFSettings) -> EDFSettings:
        """合并到环境配置之上"""
        return settings.model_copy(update=self.model_dump(exclude_none=True))


class EDFQueueSort:
    """
    最早截止时间优先排序

    同时提供入队前钩子（截止时间分配），两个能力注册在同一插件名下。
    实例无可变状态，可被多个队列并发使用。
    """

    name = NAME

    def __init__(
        self,
        fallback: FallbackComparator,
        assigner: DeadlineAssigner,
        deadline_annotation: str,
    ):
        self.fallback = fallback
        self.assigner = assigner
        self.deadline_key = deadline_annotation

    def deadline_of(self, item: WorkItem) -> Tuple[Optional[datetime], bool]:
        """读取截止时间，无效时返回 (None, False)"""
        raw = item.annotations.get(self.deadline_key)
        if not raw:
            return None, False

        deadline = parse_timestamp(raw)
        if deadline is None:
            logger.debug(
                "deadline_invalid",
                work_item=str(item.ref),
                key=self.deadline_key,
                value=raw,
            )
            return None, False
        return deadline, True

    def less(self, a: WorkItem, b: WorkItem) -> bool:
        deadline_a, has_a = self.deadline_of(a)
        deadline_b, has_b = self.deadline_of(b)

        if has_a != has_b:
            return has_a

        if not has_a:
            return self.fallback.less(a, b)

        if deadline_a < deadline_b:
            return True
        if deadline_b < deadline_a:
            return False

        # 截止时间相同，按默认规则打破平局
        return self.fallback.less(a, b)

    def on_admission(self, item: WorkItem, timeout: Optional[float] = None) -> Status:
        return self.assigner.on_admission(item, timeout=timeout).with_plugin(self.name)


def new_edf_queue_sort(args: Optional[Mapping[str, Any]], handle: Handle) -> EDFQueueSort:
    """插件工厂"""
    settings = decode_args(args, EDFQueueSortArgs).resolve(get_settings().edf)
    logger.debug(
        "edf_queue_sort_config",
        deadline_annotation=settings.deadline_annotation,
        duration_annotation=settings.duration_annotation,
        default_duration_seconds=settings.default_duration_seconds,
    )
    assigner = DeadlineAssigner(DeadlineStore(handle.object_store), settings)
    return EDFQueueSort(handle.fallback, assigner, settings.deadline_annotation)
