"""EDF 队列排序与截止时间分配"""
from .deadline_store import DeadlineStore
from .assignment import DeadlineAssigner
from .queue_sort import NAME, EDFQueueSort, EDFQueueSortArgs, new_edf_queue_sort

__all__ = [
    "NAME",
    "DeadlineStore",
    "DeadlineAssigner",
    "EDFQueueSort",
    "EDFQueueSortArgs",
    "new_edf_queue_sort",
]
