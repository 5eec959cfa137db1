# !/usr/bin/python
# coding=utf-8
__package__ = "matdoctk"
__version__ = "0.1.0"

"""Material and render integrity toolkit for character content graphs.

    >>> import matdoctk as mdt
    >>> store = mdt.GraphStore()
    >>> graph, index = store.load_graph("char.yaml"), store.load_index("assets.yaml")
    >>> diagnosis = mdt.diagnose(graph, index)
    >>> diagnosis.root_cause, diagnosis.remediation
"""

from matdoctk.errors import (
    EmptyIndexError,
    IntegrityError,
    PatchError,
    RuleConfigError,
    StoreError,
)
from matdoctk.graph_utils import (
    AssetIndex,
    AssetNode,
    BlendMode,
    Category,
    ContentGraph,
    DiffEntry,
    IssueKind,
    IssueRecord,
    MaterialDescriptor,
    Severity,
    ShaderRef,
    Slot,
    Snapshot,
    TextureRef,
    diff_snapshots,
)
from matdoctk.env_utils.rule_config import RuleConfig
from matdoctk.env_utils.graph_store import GraphStore
from matdoctk.mat_utils.naming import normalize_name
from matdoctk.mat_utils.classifier import CategoryClassifier, classify
from matdoctk.mat_utils.render_policy import RenderPolicy, RenderPolicyTable
from matdoctk.mat_utils.asset_matcher import AssetMatcher, MatchCandidate, MatchResult
from matdoctk.core_utils.diagnostics.render_diag import RenderPolicyValidator
from matdoctk.core_utils.diagnostics.root_cause import (
    Diagnosis,
    RootCause,
    RootCauseAnalyzer,
)
from matdoctk.core_utils.repair.repair_planner import (
    MaterialPatch,
    Patch,
    RepairPlan,
    RepairPlanner,
    SlotPatch,
    apply_patches,
)
from matdoctk.core_utils.integrity import (
    FixResult,
    IntegrityEngine,
    diagnose,
    fix,
    plan_repairs,
    verify,
)
