# !/usr/bin/python
# coding=utf-8
"""Diagnose, plan, fix and verify passes over a content graph.

Each pass is a single synchronous walk over an immutable graph snapshot.
Nothing is cached between calls, so the passes compose freely::

    diagnosis = diagnose(graph, index)
    patches = plan_repairs(graph, index, diagnosis)
    repaired = apply_patches(graph, patches)
    ok, after = verify(repaired, index)
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple

import pythontk as ptk

from matdoctk.core_utils.diagnostics.render_diag import RenderPolicyValidator
from matdoctk.core_utils.diagnostics.root_cause import Diagnosis, RootCauseAnalyzer
from matdoctk.core_utils.repair.repair_planner import (
    Patch,
    RepairPlan,
    RepairPlanner,
    apply_patches,
)
from matdoctk.env_utils.rule_config import RuleConfig
from matdoctk.errors import EmptyIndexError
from matdoctk.graph_utils import AssetIndex, ContentGraph, IssueRecord


@dataclass(frozen=True)
class FixResult:
    """Outcome of :meth:`IntegrityEngine.fix`."""

    graph: ContentGraph
    before: Diagnosis
    after: Diagnosis
    patches: Tuple[Patch, ...] = ()
    unresolved: Tuple[IssueRecord, ...] = ()

    @property
    def passed(self) -> bool:
        return not self.after.has_critical


class IntegrityEngine(ptk.LoggingMixin):
    """Classifier, validator, analyzer and planner wired to one rule set."""

    def __init__(self, rules: Optional[RuleConfig] = None, log_level: Optional[str] = None):
        super().__init__()
        if log_level:
            self.logger.setLevel(log_level)
        self.rules = rules or RuleConfig.default()
        self.validator = RenderPolicyValidator(self.rules)
        self.analyzer = RootCauseAnalyzer()
        self.planner = RepairPlanner(self.rules, validator=self.validator)

    @staticmethod
    def _require_index(index: AssetIndex) -> None:
        if index is None or index.is_empty:
            raise EmptyIndexError("The asset index is empty; nothing can be matched.")

    def diagnose(self, graph: ContentGraph, index: AssetIndex) -> Diagnosis:
        """Read-only pass: every issue plus the single dominant root cause."""
        self._require_index(index)
        self.logger.info(
            f"Diagnosing {len(graph)} node(s) against {len(index.textures)} texture(s) "
            f"and {len(index.materials)} material(s)."
        )
        issues = self.validator.inspect(graph, index)
        diagnosis = self.analyzer.analyze(issues)
        if diagnosis.has_critical:
            self.logger.warning(
                f"{len(diagnosis.critical)} critical issue(s); root cause "
                f"{diagnosis.root_cause.value}: {diagnosis.remediation}"
            )
        return diagnosis

    def plan(
        self, graph: ContentGraph, index: AssetIndex, diagnosis: Diagnosis
    ) -> RepairPlan:
        self._require_index(index)
        return self.planner.plan_detailed(graph, index, diagnosis)

    def plan_repairs(
        self, graph: ContentGraph, index: AssetIndex, diagnosis: Diagnosis
    ) -> List[Patch]:
        return list(self.plan(graph, index, diagnosis).patches)

    def verify(self, graph: ContentGraph, index: AssetIndex) -> Tuple[bool, Diagnosis]:
        """Acceptance gate: passes only when no critical issue remains."""
        diagnosis = self.diagnose(graph, index)
        passed = not diagnosis.has_critical
        if passed:
            self.logger.info("Verify passed.")
        else:
            self.logger.error(
                f"Verify failed: {len(diagnosis.critical)} critical issue(s) remain."
            )
        return passed, diagnosis

    def fix(self, graph: ContentGraph, index: AssetIndex) -> FixResult:
        """Diagnose, apply every confident patch as one batch, then re-diagnose."""
        before = self.diagnose(graph, index)
        plan = self.plan(graph, index, before)
        repaired = apply_patches(graph, plan.patches)
        after = self.diagnose(repaired, index) if plan.patches else before
        return FixResult(
            graph=repaired,
            before=before,
            after=after,
            patches=plan.patches,
            unresolved=plan.unresolved,
        )


def diagnose(
    graph: ContentGraph, index: AssetIndex, rules: Optional[RuleConfig] = None
) -> Diagnosis:
    return IntegrityEngine(rules).diagnose(graph, index)


def plan_repairs(
    graph: ContentGraph,
    index: AssetIndex,
    diagnosis: Diagnosis,
    rules: Optional[RuleConfig] = None,
) -> List[Patch]:
    return IntegrityEngine(rules).plan_repairs(graph, index, diagnosis)


def verify(
    graph: ContentGraph, index: AssetIndex, rules: Optional[RuleConfig] = None
) -> Tuple[bool, Diagnosis]:
    return IntegrityEngine(rules).verify(graph, index)


def fix(
    graph: ContentGraph, index: AssetIndex, rules: Optional[RuleConfig] = None
) -> FixResult:
    return IntegrityEngine(rules).fix(graph, index)
