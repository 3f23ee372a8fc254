"""
插件注册表

按名称登记插件工厂，宿主根据 profile 中的插件名和参数实例化。
工厂签名: factory(args: Optional[Mapping], handle: Handle) -> plugin
"""
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from ..errors import PluginConfigError, PluginRegistrationError
from .interfaces import Handle, capabilities

logger = structlog.get_logger(__name__)

PluginFactory = Callable[[Optional[Mapping[str, Any]], Handle], Any]

ArgsT = TypeVar("ArgsT", bound=BaseModel)


def decode_args(raw: Optional[Mapping[str, Any]], model: Type[ArgsT]) -> ArgsT:
    """
    将 pluginConfig.args 解码为参数模型

    Raises:
        PluginConfigError: 参数校验失败
    """
    try:
        return model.model_validate(dict(raw or {}))
    except ValidationError as e:
        raise PluginConfigError(f"invalid args for {model.__name__}: {e}") from e


class PluginRegistry:
    """插件名 -> 工厂"""

    def __init__(self):
        self._factories: Dict[str, PluginFactory] = {}

    def register(self, name: str, factory: PluginFactory) -> None:
        if name in self._factories:
            raise PluginRegistrationError(f"plugin {name} already registered")
        self._factories[name] = factory
        logger.debug("plugin_registered", plugin=name)

    def names(self) -> List[str]:
        return sorted(self._factories)

    def __contains__(self, name: str) -> bool:
        return name in self._factories

    def instantiate(
        self,
        name: str,
        handle: Handle,
        args: Optional[Mapping[str, Any]] = None,
    ) -> Any:
        """
        创建插件实例

        Raises:
            PluginRegistrationError: 插件未注册
            PluginConfigError: 参数无效
        """
        factory = self._factories.get(name)
        if factory is None:
            raise PluginRegistrationError(f"plugin {name} is not registered")

        plugin = factory(args, handle)
        logger.info(
            "plugin_instantiated",
            plugin=name,
            capabilities=list(capabilities(plugin)),
        )
        return plugin


def default_registry() -> PluginRegistry:
    """注册内置插件: EDFQueueSort、GPUAware"""
    from ..plugins.edf import NAME as EDF_NAME, new_edf_queue_sort
    from ..plugins.gpuaware import NAME as GPU_NAME, new_gpu_aware

    registry = PluginRegistry()
    registry.register(EDF_NAME, new_edf_queue_sort)
    registry.register(GPU_NAME, new_gpu_aware)
    return registry
