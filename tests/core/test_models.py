"""
数据模型测试
"""
from datetime import datetime, timezone

import pytest

from kubesched.models import EPOCH, Node, NodeInfo, WorkItem, WorkItemRef, bind_work_items


POD_MANIFEST = {
    "apiVersion": "v1",
    "kind": "Pod",
    "metadata": {
        "name": "train-bert",
        "namespace": "ml",
        "uid": "abc-123",
        "resourceVersion": "42",
        "creationTimestamp": "2026-01-01T12:00:00Z",
        "annotations": {"scheduling.ui.ac.id/deadline-duration": "300s"},
    },
    "spec": {
        "priority": 1000,
        "containers": [
            {"name": "trainer", "resources": {"requests": {"nvidia.com/gpu": "2", "cpu": "4"}}},
            {"name": "sidecar", "resources": {}},
        ],
    },
}


class TestWorkItem:
    """工作项"""

    def test_from_dict(self):
        """测试从 Pod manifest 构建"""
        item = WorkItem.from_dict(POD_MANIFEST)

        assert item.ref == WorkItemRef("ml", "train-bert")
        assert item.priority == 1000
        assert item.resource_version == "42"
        assert item.uid == "abc-123"
        assert item.creation_timestamp == datetime(2026, 1, 1, 12, tzinfo=timezone.utc)
        assert item.annotations["scheduling.ui.ac.id/deadline-duration"] == "300s"
        assert len(item.containers) == 2
        assert item.containers[0].requests["nvidia.com/gpu"] == "2"
        assert dict(item.containers[1].requests) == {}

    def test_from_dict_missing_fields(self):
        """测试缺失字段的默认值"""
        item = WorkItem.from_dict({"metadata": {"name": "bare"}})

        assert item.namespace == "default"
        assert dict(item.annotations) == {}
        assert item.containers == ()
        assert item.priority is None
        assert item.creation_timestamp == EPOCH

    def test_annotations_read_only(self):
        """测试注解不可修改"""
        item = WorkItem.from_dict(POD_MANIFEST)
        with pytest.raises(TypeError):
            item.annotations["x"] = "y"

    def test_source_mapping_copied(self):
        """测试构建后与源数据解耦"""
        annotations = {"a": "1"}
        item = WorkItem(namespace="default", name="p", annotations=annotations)
        annotations["a"] = "2"
        assert item.annotations["a"] == "1"

    def test_with_annotation(self):
        """测试生成新版本副本"""
        item = WorkItem.from_dict(POD_MANIFEST)
        updated = item.with_annotation("k", "v", "43")

        assert updated.annotations["k"] == "v"
        assert updated.resource_version == "43"
        assert "k" not in item.annotations
        assert updated.containers == item.containers

    def test_ref_str(self):
        assert str(WorkItemRef("ml", "job")) == "ml/job"

    def test_hashable(self):
        """测试可作为集合元素"""
        item = WorkItem.from_dict(POD_MANIFEST)
        same = WorkItem.from_dict(POD_MANIFEST)
        updated = item.with_annotation("k", "v", "43")

        assert hash(item) == hash(same)
        assert len({item, same, updated}) == 2
        assert hash(item.containers[0]) == hash(same.containers[0])


class TestNode:
    """节点"""

    def test_from_dict(self):
        node = Node.from_dict({
            "metadata": {"name": "gpu-1", "labels": {"gpu-generation": "h100"}},
            "status": {"capacity": {"nvidia.com/gpu": "8"}, "allocatable": {"nvidia.com/gpu": "8"}},
        })
        assert node.name == "gpu-1"
        assert node.capacity["nvidia.com/gpu"] == "8"
        assert node.labels["gpu-generation"] == "h100"

    def test_bind_work_items(self):
        """测试按节点聚合已绑定工作项"""
        nodes = [Node(name="a"), Node(name="b")]
        p1 = WorkItem(namespace="default", name="p1")
        p2 = WorkItem(namespace="default", name="p2")

        infos = bind_work_items(nodes, [("a", p1), ("a", p2), ("missing", p1)])

        assert set(infos) == {"a", "b"}
        assert [i.name for i in infos["a"].work_items] == ["p1", "p2"]
        assert infos["b"].work_items == ()
        assert infos["a"].name == "a"

    def test_node_info_without_node(self):
        assert NodeInfo(node=None).name is None

    def test_node_hashable(self):
        node = Node(name="a", labels={"gpu-generation": "h100"})
        info = NodeInfo(node=node, work_items=(WorkItem(namespace="default", name="p1"),))
        assert {node, Node(name="a", labels={"gpu-generation": "h100"})} == {node}
        assert hash(info) == hash(NodeInfo(node=node, work_items=info.work_items))
