"""
pytest 配置
"""
import os
from datetime import datetime, timedelta, timezone

import pytest

os.environ.setdefault("ENVIRONMENT", "development")

from kubesched.models import Container, Node, NodeInfo, WorkItem  # noqa: E402

FIXED_NOW = datetime(2026, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """每个测试重新读取环境配置"""
    from kubesched.config import get_settings
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def make_work_item():
    """
    工作项工厂

    gpus 可以是单个数量或每个容器的数量列表
    """
    def _make(
        name="pod",
        namespace="default",
        annotations=None,
        gpus=0,
        priority=None,
        created_offset=0,
        version="1",
        resource_name="nvidia.com/gpu",
    ):
        per_container = gpus if isinstance(gpus, (list, tuple)) else [gpus]
        containers = []
        for i, count in enumerate(per_container):
            requests = {"cpu": "500m"}
            if count:
                requests[resource_name] = str(count)
            containers.append(Container(name=f"c{i}", requests=requests))

        return WorkItem(
            namespace=namespace,
            name=name,
            annotations=annotations or {},
            containers=tuple(containers),
            priority=priority,
            creation_timestamp=FIXED_NOW + timedelta(seconds=created_offset),
            resource_version=version,
        )
    return _make


@pytest.fixture
def make_node():
    """节点工厂"""
    def _make(
        name="node-1",
        gpus=4,
        memory="16",
        interconnect=None,
        generation=None,
    ):
        capacity = {"cpu": "32"}
        if gpus is not None:
            capacity["nvidia.com/gpu"] = str(gpus)

        labels = {}
        if memory is not None:
            labels["gpu-memory-gb"] = memory
        if interconnect is not None:
            labels["gpu-interconnect"] = interconnect
        if generation is not None:
            labels["gpu-generation"] = generation

        return Node(name=name, capacity=capacity, allocatable=capacity, labels=labels)
    return _make


@pytest.fixture
def make_node_info(make_node, make_work_item):
    """带已分配 GPU 的节点快照"""
    def _make(allocated=0, **node_kwargs):
        bound = []
        if allocated:
            bound.append(make_work_item(name="bound", gpus=allocated))
        return NodeInfo(node=make_node(**node_kwargs), work_items=tuple(bound))
    return _make
