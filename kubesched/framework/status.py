"""
插件返回状态

Success / Unschedulable / Error 三种结果:
- Unschedulable: 节点不满足条件，属于正常结果
- Error: 无法做出决策（例如节点对象缺失）
"""
from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Optional, Tuple


class Code(IntEnum):
    """状态码"""
    SUCCESS = 0
    ERROR = 1
    UNSCHEDULABLE = 2


@dataclass(frozen=True)
class Status:
    """插件调用结果"""
    code: Code = Code.SUCCESS
    reasons: Tuple[str, ...] = ()
    plugin: Optional[str] = None

    @classmethod
    def success(cls) -> "Status":
        return cls(Code.SUCCESS)

    @classmethod
    def error(cls, message: str) -> "Status":
        return cls(Code.ERROR, (message,))

    @classmethod
    def unschedulable(cls, message: str) -> "Status":
        return cls(Code.UNSCHEDULABLE, (message,))

    def is_success(self) -> bool:
        return self.code == Code.SUCCESS

    def is_unschedulable(self) -> bool:
        return self.code == Code.UNSCHEDULABLE

    def is_error(self) -> bool:
        return self.code == Code.ERROR

    @property
    def message(self) -> str:
        return ", ".join(self.reasons)

    def with_plugin(self, plugin: str) -> "Status":
        """标记产生该状态的插件"""
        return replace(self, plugin=plugin)

    def to_dict(self) -> dict:
        return {
            "code": self.code.name,
            "reasons": list(self.reasons),
            "plugin": self.plugin,
        }
