"""
调度插件异常定义

错误分类:
- 冲突 / 传输错误: 截止时间写回失败，记录日志后吞掉
- 节点 / 工作项缺失: 仅在无法继续决策时转换为 Error 状态
- 配置错误: 插件实例化时直接抛出
"""
from typing import Optional


class SchedulerError(Exception):
    """所有调度核心异常的基类"""
    pass


class ConflictError(SchedulerError):
    """条件更新时版本号不匹配"""
    def __init__(self, ref: str, expected_version: Optional[str] = None):
        self.ref = ref
        self.expected_version = expected_version
        super().__init__(
            f"conflict updating {ref}: expected version {expected_version!r} is stale"
        )


class TransportError(SchedulerError):
    """与对象存储通信失败（网络、超时、服务端错误）"""
    pass


class WorkItemNotFoundError(SchedulerError):
    """工作项不存在"""
    def __init__(self, ref: str):
        self.ref = ref
        super().__init__(f"work item {ref} not found")


class NodeNotFoundError(SchedulerError):
    """节点不存在于快照中"""
    def __init__(self, node_name: str):
        self.node_name = node_name
        super().__init__(f"node {node_name} not found")


class PluginConfigError(SchedulerError):
    """插件参数无效"""
    pass


class PluginRegistrationError(SchedulerError):
    """插件注册冲突或未注册"""
    pass
