"""GPU 感知过滤与打分"""
from .resources import (
    GPU_GENERATION_RANKS,
    requested_gpu_count,
    capacity_gpu_count,
    allocated_gpu_count,
    parse_memory_gb,
    gpu_memory_gb,
    has_high_bandwidth_interconnect,
    gpu_generation_rank,
    quantity_value,
)
from .plugin import NAME, GPUAware, GPUAwareArgs, new_gpu_aware

__all__ = [
    "NAME",
    "GPUAware",
    "GPUAwareArgs",
    "new_gpu_aware",
    "GPU_GENERATION_RANKS",
    "requested_gpu_count",
    "capacity_gpu_count",
    "allocated_gpu_count",
    "parse_memory_gb",
    "gpu_memory_gb",
    "has_high_bandwidth_interconnect",
    "gpu_generation_rank",
    "quantity_value",
]
