"""
截止时间写回适配器

通过对象存储的条件更新写入截止时间注解。单次网络往返，
不做内部重试；超时与重试策略由调用方决定。
"""
from typing import Optional

import structlog

from ...errors import ConflictError, TransportError
from ...framework.interfaces import ObjectStore
from ...models import WorkItem, WorkItemRef

logger = structlog.get_logger(__name__)


class DeadlineStore:
    """截止时间注解的读写"""

    def __init__(self, object_store: ObjectStore):
        self.object_store = object_store

    def try_assign_deadline(
        self,
        item: WorkItem,
        key: str,
        value: str,
        timeout: Optional[float] = None,
    ) -> bool:
        """
        注解不存在时写入

        以 item.resource_version 作为期望版本号；空字符串视为不存在。
        没有版本号的工作项不会写入，直接抛出 ConflictError。

        Args:
            item: 观察到的工作项
            key: 注解键
            value: 注解值
            timeout: 剩余时间预算（秒），<= 0 立即失败

        Returns:
            True 表示已写入，False 表示注解已存在

        Raises:
            ConflictError: 版本号已过期或缺失，需要重读
            TransportError: 通信失败或时间预算耗尽
            WorkItemNotFoundError: 工作项已被删除
        """
        if item.annotations.get(key):
            return False

        # 没有版本号无法做条件更新，按冲突处理让调用方重读
        if item.resource_version is None:
            raise ConflictError(str(item.ref), None)

        if timeout is not None and timeout <= 0:
            raise TransportError(f"deadline exceeded before updating {item.ref}")

        new_version = self.object_store.conditional_update_annotation(
            item.ref,
            key,
            value,
            expected_version=item.resource_version,
            timeout=timeout,
        )

        logger.debug(
            "deadline_annotation_written",
            work_item=str(item.ref),
            key=key,
            value=value,
            old_version=item.resource_version,
            new_version=new_version,
        )
        return True

    def read(self, ref: WorkItemRef, timeout: Optional[float] = None) -> WorkItem:
        """重读工作项（冲突后使用）"""
        if timeout is not None and timeout <= 0:
            raise TransportError(f"deadline exceeded before reading {ref}")
        return self.object_store.get_work_item(ref, timeout=timeout)
