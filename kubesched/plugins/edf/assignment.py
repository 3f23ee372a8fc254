"""
截止时间分配策略

工作项首次入队前调用: 没有截止时间注解时，按请求时长（或默认时长）
计算绝对截止时间并尽力写回。写回失败只记录日志，不阻塞入队。
"""
import time
from datetime import datetime, timedelta
from typing import Callable, Optional

import structlog

from ...config import EDFSettings
from ...errors import ConflictError, SchedulerError
from ...framework.status import Status
from ...models import WorkItem
from ...timeutil import format_timestamp, parse_duration, parse_timestamp, utcnow
from .deadline_store import DeadlineStore

logger = structlog.get_logger(__name__)

# timedelta 可表示的最大秒数
_MAX_DURATION_SECONDS = timedelta.max.total_seconds()


class DeadlineAssigner:
    """
    截止时间分配

    步骤:
    1. 已有非空截止时间注解 -> 不做任何事
    2. 读取时长注解；缺失、无法解析、<= 0 或过大时使用默认时长
    3. 截止时间 = 当前时间 + 时长
    4. 条件更新写回；冲突时重读并有限次重试，其余失败直接放弃

    无论写回是否成功都返回 Success。
    """

    def __init__(
        self,
        store: DeadlineStore,
        settings: EDFSettings,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.store = store
        self.deadline_key = settings.deadline_annotation
        self.duration_key = settings.duration_annotation
        self.default_duration = settings.default_duration_seconds
        self.conflict_retries = settings.conflict_retries
        self._clock = clock

    def requested_duration(self, item: WorkItem) -> float:
        """请求的截止时长（秒），无效时返回默认值"""
        raw = item.annotations.get(self.duration_key)
        if raw is None:
            return self.default_duration

        seconds = parse_duration(raw)
        if seconds is None or seconds <= 0 or seconds > _MAX_DURATION_SECONDS:
            logger.info(
                "deadline_duration_invalid",
                work_item=str(item.ref),
                value=raw,
                default_seconds=self.default_duration,
            )
            return self.default_duration
        return seconds

    def compute_deadline(self, item: WorkItem) -> str:
        """计算并格式化绝对截止时间"""
        now = self._clock()
        try:
            moment = now + timedelta(seconds=self.requested_duration(item))
        except OverflowError:
            # 截止时间超出 datetime 可表示范围
            logger.info(
                "deadline_duration_invalid",
                work_item=str(item.ref),
                value=item.annotations.get(self.duration_key),
                default_seconds=self.default_duration,
            )
            moment = now + timedelta(seconds=self.default_duration)
        return format_timestamp(moment)

    def on_admission(self, item: WorkItem, timeout: Optional[float] = None) -> Status:
        """
        入队前钩子

        Args:
            item: 工作项
            timeout: 写回的总时间预算（秒），None 表示由存储决定

        Returns:
            始终为 Success
        """
        existing = item.annotations.get(self.deadline_key)
        if existing:
            if parse_timestamp(existing) is None:
                logger.info(
                    "deadline_annotation_unparsable",
                    work_item=str(item.ref),
                    value=existing,
                )
            return Status.success()

        deadline = self.compute_deadline(item)
        self._persist(item, deadline, timeout)
        return Status.success()

    def _persist(self, item: WorkItem, deadline: str, timeout: Optional[float]) -> None:
        expires_at = time.monotonic() + timeout if timeout is not None else None

        def remaining() -> Optional[float]:
            if expires_at is None:
                return None
            return expires_at - time.monotonic()

        current = item
        for attempt in range(self.conflict_retries + 1):
            try:
                written = self.store.try_assign_deadline(
                    current, self.deadline_key, deadline, timeout=remaining()
                )
            except ConflictError as e:
                logger.info(
                    "deadline_persist_conflict",
                    work_item=str(item.ref),
                    attempt=attempt + 1,
                    error=str(e),
                )
            except SchedulerError as e:
                logger.warning(
                    "deadline_persist_failed",
                    work_item=str(item.ref),
                    error=str(e),
                )
                return
            else:
                if written:
                    logger.info(
                        "deadline_assigned",
                        work_item=str(item.ref),
                        deadline=deadline,
                    )
                return

            if attempt == self.conflict_retries:
                break

            try:
                current = self.store.read(current.ref, timeout=remaining())
            except SchedulerError as e:
                logger.warning(
                    "deadline_reread_failed",
                    work_item=str(item.ref),
                    error=str(e),
                )
                return

            if current.annotations.get(self.deadline_key):
                logger.debug(
                    "deadline_already_assigned",
                    work_item=str(item.ref),
                    deadline=current.annotations[self.deadline_key],
                )
                return

        logger.warning(
            "deadline_persist_abandoned",
            work_item=str(item.ref),
            attempts=self.conflict_retries + 1,
        )
