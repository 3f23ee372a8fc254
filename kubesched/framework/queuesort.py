"""
默认队列排序

宿主调度器的缺省比较器: 优先级高者优先，同优先级按创建时间 FIFO。
EDF 排序在无法决定时委托给它；这里提供一份实现以便在无宿主时
组装和测试，使用时通过构造参数注入。
"""
from ..models import WorkItem


class PrioritySort:
    """
    优先级排序

    顺序:
    1. priority 大者优先（None 视为 0）
    2. creation_timestamp 早者优先
    3. namespace / name 字典序，保证严格全序
    """

    name = "PrioritySort"

    @staticmethod
    def _key(item: WorkItem) -> tuple:
        priority = item.priority if item.priority is not None else 0
        return (-priority, item.creation_timestamp, item.namespace, item.name)

    def less(self, a: WorkItem, b: WorkItem) -> bool:
        return self._key(a) < self._key(b)
