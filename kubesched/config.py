"""
配置管理系统

支持:
1. 环境变量读取
2. .env 文件
3. 类型验证

每组插件配置使用独立的环境变量前缀；插件实例化时传入的
参数（profile 中的 pluginConfig.args）优先于这里的默认值。
"""
from functools import lru_cache
from typing import Optional, List
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EDFSettings(BaseSettings):
    """EDF 队列排序配置"""
    model_config = SettingsConfigDict(
        env_prefix="EDF_",
        extra="ignore"
    )

    deadline_annotation: str = Field(
        default="scheduling.ui.ac.id/deadline",
        description="绝对截止时间注解键（RFC 3339）"
    )
    duration_annotation: str = Field(
        default="scheduling.ui.ac.id/deadline-duration",
        description="截止时长请求注解键"
    )
    default_duration_seconds: float = Field(default=600.0, gt=0, description="默认截止时长（秒）")
    conflict_retries: int = Field(default=1, ge=0, le=5, description="写回冲突后重读重试次数")


class GPUAwareSettings(BaseSettings):
    """GPU 感知过滤 / 打分配置"""
    model_config = SettingsConfigDict(
        env_prefix="GPUAWARE_",
        extra="ignore"
    )

    resource_name: str = Field(default="nvidia.com/gpu", description="GPU 扩展资源名")
    memory_label: str = Field(default="gpu-memory-gb", description="GPU 显存标签键")
    interconnect_label: str = Field(default="gpu-interconnect", description="GPU 互联标签键")
    generation_label: str = Field(default="gpu-generation", description="GPU 代际标签键")
    high_bandwidth_interconnects: List[str] = Field(
        default_factory=lambda: ["nvlink"],
        description="视为高带宽互联的标签值"
    )

    min_gpu_memory_gb: int = Field(default=8, ge=0, description="最低 GPU 显存 (GB)")

    utilization_weight: int = Field(default=2, ge=0, description="利用率权重")
    memory_weight: int = Field(default=3, ge=0, description="显存权重")
    interconnect_bonus: int = Field(default=100, ge=0, description="高带宽互联加分")
    generation_weight: int = Field(default=10, ge=0, description="代际权重")


class KubernetesSettings(BaseSettings):
    """Kubernetes API 访问配置"""
    model_config = SettingsConfigDict(
        env_prefix="KUBE_",
        extra="ignore"
    )

    in_cluster: Optional[bool] = Field(default=None, description="是否使用集群内配置，None 表示自动检测")
    kubeconfig: Optional[str] = Field(default=None, description="kubeconfig 路径")
    context: Optional[str] = Field(default=None, description="kubeconfig context")
    request_timeout_seconds: float = Field(default=5.0, gt=0, description="单次 API 调用超时（秒）")


class LoggingSettings(BaseSettings):
    """日志配置"""
    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        extra="ignore"
    )

    level: str = Field(default="INFO", description="日志级别")
    format: str = Field(default="json", description="日志格式: json, console")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        allowed = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v = v.upper()
        if v not in allowed:
            raise ValueError(f"log level must be one of {allowed}")
        return v

    @field_validator("format")
    @classmethod
    def validate_format(cls, v: str) -> str:
        allowed = {"json", "console"}
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"log format must be one of {allowed}")
        return v


class Settings(BaseSettings):
    """
    主配置类

    层级:
    1. 环境变量 (最高优先级)
    2. .env 文件
    3. 默认值 (最低优先级)

    使用示例:
    >>> settings = Settings()
    >>> print(settings.edf.deadline_annotation)
    """
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = Field(default="kubesched", description="应用名称")
    environment: str = Field(default="development", description="运行环境: development, staging, production")

    # 子配置
    edf: EDFSettings = Field(default_factory=EDFSettings)
    gpu: GPUAwareSettings = Field(default_factory=GPUAwareSettings)
    kube: KubernetesSettings = Field(default_factory=KubernetesSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        allowed = {"development", "staging", "production"}
        v = v.lower()
        if v not in allowed:
            raise ValueError(f"environment must be one of {allowed}")
        return v

    def display_config(self) -> dict:
        """返回配置摘要（用于日志/调试）"""
        return {
            "app_name": self.app_name,
            "environment": self.environment,
            "deadline_annotation": self.edf.deadline_annotation,
            "duration_annotation": self.edf.duration_annotation,
            "default_duration_seconds": self.edf.default_duration_seconds,
            "gpu_resource_name": self.gpu.resource_name,
            "min_gpu_memory_gb": self.gpu.min_gpu_memory_gb,
            "kube_in_cluster": self.kube.in_cluster,
            "kube_request_timeout_seconds": self.kube.request_timeout_seconds,
        }


@lru_cache()
def get_settings() -> Settings:
    """获取配置单例（缓存）"""
    return Settings()
