# !/usr/bin/python
# coding=utf-8
"""Reduce the issues of one pass to a single prioritized root cause.

Issues are not equally actionable.  A broken shader makes every other
observation about its material meaningless until it is fixed, so it wins over
a missing texture even when the texture problem affects more slots.  The
priority list below is fixed; counts never reorder it.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Dict, Iterable, List, Tuple

import pythontk as ptk

from matdoctk.graph_utils import Category, IssueKind, IssueRecord, Severity


class RootCause(Enum):
    NONE = "None"
    BROKEN_SHADER = "BrokenShader"
    NULL_SLOT = "NullSlot"
    MISSING_PRIMARY_TEXTURE = "MissingPrimaryTexture"
    OPAQUE_OVERLAY = "OpaqueOverlay"
    MISSING_TEXTURE = "MissingTexture"
    UNRESOLVED_REPLACEMENT = "UnresolvedReplacement"
    WRONG_BLEND_MODE = "WrongBlendMode"
    DRAW_ORDER = "DrawOrder"


NO_ACTION = "no action required."

REMEDIATION: Dict[RootCause, str] = {
    RootCause.NONE: NO_ACTION,
    RootCause.BROKEN_SHADER: (
        "Reassign a valid shader on the materials of {paths}; their textures and "
        "blend settings cannot be trusted until the shader compiles."
    ),
    RootCause.NULL_SLOT: (
        "Bind a material to the empty slots of {paths}; an empty slot renders "
        "with the engine's error material."
    ),
    RootCause.MISSING_PRIMARY_TEXTURE: (
        "Bind the color map on {paths}; eye and hair surfaces render blank "
        "without it."
    ),
    RootCause.OPAQUE_OVERLAY: (
        "Switch the overlay materials on {paths} to Fade with zWrite off and "
        "draw order 3000 or higher; an opaque overlay hides the eye beneath it."
    ),
    RootCause.MISSING_TEXTURE: "Bind the required color map on {paths}.",
    RootCause.UNRESOLVED_REPLACEMENT: (
        "Choose replacements by hand for {paths}; no single candidate in the "
        "asset index matches them."
    ),
    RootCause.WRONG_BLEND_MODE: (
        "Align the blend mode and zWrite of {paths} with their category policy."
    ),
    RootCause.DRAW_ORDER: (
        "Raise the draw order of {paths} so they draw after the surface they overlay."
    ),
}

_PRIMARY_TEXTURE_CATEGORIES = frozenset({Category.EYE_BASE, Category.HAIR})

# (cause, predicate) pairs, highest priority first.
PRIORITY: Tuple[Tuple[RootCause, Callable[[IssueRecord], bool]], ...] = (
    (RootCause.BROKEN_SHADER, lambda i: i.kind is IssueKind.BROKEN_SHADER),
    (RootCause.NULL_SLOT, lambda i: i.kind is IssueKind.NULL_SLOT),
    (
        RootCause.MISSING_PRIMARY_TEXTURE,
        lambda i: i.kind is IssueKind.MISSING_REQUIRED_TEXTURE
        and i.category in _PRIMARY_TEXTURE_CATEGORIES,
    ),
    (
        RootCause.OPAQUE_OVERLAY,
        lambda i: i.kind is IssueKind.WRONG_BLEND_MODE and i.is_critical,
    ),
    (RootCause.MISSING_TEXTURE, lambda i: i.kind is IssueKind.MISSING_REQUIRED_TEXTURE),
    (
        RootCause.UNRESOLVED_REPLACEMENT,
        lambda i: i.kind
        in (IssueKind.AMBIGUOUS_REPLACEMENT, IssueKind.NO_REPLACEMENT_FOUND),
    ),
    (
        RootCause.WRONG_BLEND_MODE,
        lambda i: i.kind is IssueKind.WRONG_BLEND_MODE and not i.is_critical,
    ),
    (RootCause.DRAW_ORDER, lambda i: i.kind is IssueKind.DRAW_ORDER_TOO_LOW),
)


@dataclass(frozen=True)
class Diagnosis:
    """Outcome of one diagnose pass: ordered issues and a single root cause."""

    issues: Tuple[IssueRecord, ...] = ()
    root_cause: RootCause = RootCause.NONE
    remediation: str = NO_ACTION
    offenders: Tuple[str, ...] = field(default=())

    @property
    def critical(self) -> Tuple[IssueRecord, ...]:
        return tuple(i for i in self.issues if i.is_critical)

    @property
    def warnings(self) -> Tuple[IssueRecord, ...]:
        return tuple(i for i in self.issues if not i.is_critical)

    @property
    def has_critical(self) -> bool:
        return any(i.is_critical for i in self.issues)

    @property
    def is_clean(self) -> bool:
        return not self.issues

    def by_kind(self) -> Dict[IssueKind, List[IssueRecord]]:
        grouped: Dict[IssueKind, List[IssueRecord]] = OrderedDict()
        for issue in self.issues:
            grouped.setdefault(issue.kind, []).append(issue)
        return grouped

    def counts(self) -> Dict[str, int]:
        return {kind.value: len(items) for kind, items in self.by_kind().items()}

    def to_dict(self) -> Dict[str, object]:
        return {
            "issues": [i.to_dict() for i in self.issues],
            "rootCause": self.root_cause.value,
            "remediation": self.remediation,
            "offenders": list(self.offenders),
            "counts": self.counts(),
            "critical": len(self.critical),
            "warnings": len(self.warnings),
        }


class RootCauseAnalyzer(ptk.LoggingMixin):
    """Pick the dominant cause of a set of issues by fixed priority."""

    def __init__(self, max_paths: int = 5):
        super().__init__()
        self.max_paths = max_paths

    @staticmethod
    def _unique_paths(issues: Iterable[IssueRecord]) -> Tuple[str, ...]:
        return tuple(OrderedDict.fromkeys(i.node_path for i in issues))

    def _format_paths(self, paths: Tuple[str, ...]) -> str:
        shown = ", ".join(paths[: self.max_paths])
        hidden = len(paths) - self.max_paths
        if hidden > 0:
            shown += f" and {hidden} more"
        return shown

    def analyze(self, issues: Iterable[IssueRecord]) -> Diagnosis:
        issues = tuple(issues)
        if not issues:
            self.logger.info("No issues found; no action required.")
            return Diagnosis()

        for cause, predicate in PRIORITY:
            evidence = [i for i in issues if predicate(i)]
            if not evidence:
                continue
            offenders = self._unique_paths(evidence)
            remediation = REMEDIATION[cause].format(paths=self._format_paths(offenders))
            self.logger.info(
                f"Root cause: {cause.value} ({len(evidence)} of {len(issues)} issue(s))."
            )
            return Diagnosis(
                issues=issues,
                root_cause=cause,
                remediation=remediation,
                offenders=offenders,
            )
        # Every IssueKind is covered above; this only triggers for a new, unmapped kind.
        raise ValueError(f"No root cause rule covers: {sorted({i.kind.value for i in issues})}")
