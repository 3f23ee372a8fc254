"""
GPU 资源信息提取测试
"""
import pytest

from kubesched.models import Node, NodeInfo
from kubesched.plugins.gpuaware import (
    allocated_gpu_count,
    capacity_gpu_count,
    gpu_generation_rank,
    gpu_memory_gb,
    has_high_bandwidth_interconnect,
    parse_memory_gb,
    quantity_value,
    requested_gpu_count,
)


class TestQuantity:
    """资源数量解析"""

    @pytest.mark.parametrize("raw,expected", [
        ("2", 2),
        (3, 3),
        ("1k", 1000),
        ("500m", 1),
        ("1.5", 2),
        (None, 0),
        ("lots", 0),
    ])
    def test_quantity_value(self, raw, expected):
        assert quantity_value(raw) == expected


class TestGPUCounts:
    """GPU 数量"""

    def test_requested_sums_containers(self, make_work_item):
        assert requested_gpu_count(make_work_item(gpus=[1, 2, 0])) == 3

    def test_requested_zero_for_cpu_only(self, make_work_item):
        assert requested_gpu_count(make_work_item()) == 0

    def test_requested_custom_resource(self, make_work_item):
        item = make_work_item(gpus=2, resource_name="amd.com/gpu")
        assert requested_gpu_count(item) == 0
        assert requested_gpu_count(item, "amd.com/gpu") == 2

    def test_capacity(self, make_node):
        assert capacity_gpu_count(make_node(gpus=8)) == 8
        assert capacity_gpu_count(make_node(gpus=None)) == 0

    def test_allocated_sums_bound_items(self, make_node, make_work_item):
        node_info = NodeInfo(
            node=make_node(),
            work_items=(make_work_item(name="a", gpus=1), make_work_item(name="b", gpus=[1, 1]), make_work_item(name="c")),
        )
        assert allocated_gpu_count(node_info) == 3

    def test_allocated_empty_node(self, make_node):
        assert allocated_gpu_count(NodeInfo(node=make_node())) == 0


class TestGPUMemory:
    """显存标签"""

    @pytest.mark.parametrize("raw,expected", [
        ("16", 16),
        ("16G", 16),
        ("16GB", 16),
        ("16gb", 16),
        ("80Gi", 80),
        ("40GiB", 40),
        ("24576Mi", 24),
        ("1Ti", 1024),
        ("12.5", 12),
        (" 24 GB ", 24),
        ("", 0),
        (None, 0),
        ("lots", 0),
        ("-8", 0),
        ("16XB", 0),
    ])
    def test_parse_memory(self, raw, expected):
        assert parse_memory_gb(raw) == expected

    def test_node_label(self, make_node):
        assert gpu_memory_gb(make_node(memory="40")) == 40
        assert gpu_memory_gb(make_node(memory=None)) == 0


class TestInterconnect:
    """互联拓扑"""

    def test_nvlink(self, make_node):
        assert has_high_bandwidth_interconnect(make_node(interconnect="nvlink"))

    @pytest.mark.parametrize("value", ["pcie", "NVLINK", "", None])
    def test_not_recognized(self, make_node, value):
        assert not has_high_bandwidth_interconnect(make_node(interconnect=value))

    def test_custom_identifiers(self, make_node):
        node = make_node(interconnect="nvswitch")
        assert has_high_bandwidth_interconnect(node, recognized={"nvlink", "nvswitch"})


class TestGeneration:
    """代际"""

    @pytest.mark.parametrize("label,expected", [
        ("v100", 7),
        ("a100", 8),
        ("h100", 9),
        ("H100", 9),
        (" b200 ", 10),
        ("unknown", 0),
        (None, 0),
    ])
    def test_rank(self, make_node, label, expected):
        assert gpu_generation_rank(make_node(generation=label)) == expected

    def test_node_without_labels(self):
        assert gpu_generation_rank(Node(name="bare")) == 0
