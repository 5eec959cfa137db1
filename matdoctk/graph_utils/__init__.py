# !/usr/bin/python
# coding=utf-8
"""Content graph model and snapshot helpers."""
from matdoctk.graph_utils._graph_utils import (
    PATH_SEPARATOR,
    AssetIndex,
    AssetNode,
    BlendMode,
    Category,
    ContentGraph,
    IssueKind,
    IssueRecord,
    MaterialDescriptor,
    Severity,
    ShaderRef,
    Slot,
    TextureRef,
)
from matdoctk.graph_utils.snapshot import DiffEntry, Snapshot, SlotState, diff_snapshots
