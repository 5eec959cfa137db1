# !/usr/bin/python
# coding=utf-8
"""Per slot integrity checks against the category render policy."""
from __future__ import annotations

from typing import List, Optional

import pythontk as ptk

from matdoctk.env_utils.rule_config import RuleConfig
from matdoctk.graph_utils import (
    AssetIndex,
    AssetNode,
    BlendMode,
    Category,
    ContentGraph,
    IssueKind,
    IssueRecord,
    MaterialDescriptor,
    Severity,
    Slot,
)
from matdoctk.mat_utils.asset_matcher import AssetMatcher, MatchResult
from matdoctk.mat_utils.classifier import CategoryClassifier
from matdoctk.mat_utils.render_policy import RenderPolicyTable


class RenderPolicyValidator(ptk.LoggingMixin):
    """Compare slots and materials with the render policy of their category.

    Every check is independent and total: a validator never raises for bad
    data, it reports an :class:`IssueRecord` instead.
    """

    def __init__(
        self,
        rules: Optional[RuleConfig] = None,
        classifier: Optional[CategoryClassifier] = None,
        matcher: Optional[AssetMatcher] = None,
    ):
        super().__init__()
        self.rules = rules or RuleConfig.default()
        self.policies = RenderPolicyTable.from_rules(self.rules)
        self.classifier = classifier or CategoryClassifier(self.rules)
        self.matcher = matcher or AssetMatcher(self.rules)

    # ------------------------------------------------------------------
    # Material checks
    # ------------------------------------------------------------------

    def is_shader_broken(self, material: MaterialDescriptor) -> bool:
        shader = material.shader
        return (
            shader is None
            or shader.error
            or not shader.name
            or self.rules.is_error_shader(shader.name)
        )

    def has_color_map(self, material: MaterialDescriptor) -> bool:
        return material.bound_texture(self.rules.color_properties) is not None

    def validate(
        self,
        material: MaterialDescriptor,
        category: Category,
        node_path: str = "",
        slot_index: int = 0,
    ) -> List[IssueRecord]:
        """Run the shader, texture, blend and draw order checks on *material*."""
        issues: List[IssueRecord] = []

        def _issue(kind, severity, detail):
            issues.append(
                IssueRecord(
                    node_path=node_path,
                    slot_index=slot_index,
                    kind=kind,
                    severity=severity,
                    category=category,
                    material=material.name,
                    detail=detail,
                )
            )

        if self.is_shader_broken(material):
            shader_name = material.shader.name if material.shader else None
            _issue(
                IssueKind.BROKEN_SHADER,
                Severity.CRITICAL,
                f"shader '{shader_name}' is missing or failed to compile"
                if shader_name
                else "no shader assigned",
            )

        if self.rules.requires_texture(category) and not self.has_color_map(material):
            _issue(
                IssueKind.MISSING_REQUIRED_TEXTURE,
                Severity.CRITICAL,
                f"{category.value} needs a color map on one of "
                f"{', '.join(self.rules.color_properties)}",
            )

        policy = self.policies.lookup(category)
        if policy is None:
            return issues

        if material.blend_mode is not policy.blend_mode:
            opaque_overlay = (
                category is Category.EYE_OVERLAY
                and material.blend_mode is BlendMode.OPAQUE
            )
            _issue(
                IssueKind.WRONG_BLEND_MODE,
                Severity.CRITICAL if opaque_overlay else Severity.WARNING,
                f"blend mode {material.blend_mode.value}, expected {policy.blend_mode.value}"
                + (" (hides the surface beneath it)" if opaque_overlay else ""),
            )
        elif material.z_write != policy.z_write:
            _issue(
                IssueKind.WRONG_BLEND_MODE,
                Severity.WARNING,
                f"zWrite {material.z_write}, expected {policy.z_write}",
            )

        if (
            material.blend_mode is not BlendMode.OPAQUE
            and policy.min_draw_order is not None
            and material.draw_order < policy.min_draw_order
        ):
            _issue(
                IssueKind.DRAW_ORDER_TOO_LOW,
                Severity.WARNING,
                f"draw order {material.draw_order} below {policy.min_draw_order}",
            )
        return issues

    # ------------------------------------------------------------------
    # Slot checks
    # ------------------------------------------------------------------

    def resolve_material(
        self, node: AssetNode, slot: Slot, index: AssetIndex
    ) -> MatchResult:
        """Find a replacement for an unbound slot: materials first, then textures."""
        queries = [q for q in (self.dangling_name(slot), node.name) if q]
        result = self.matcher.match_first(queries, index.materials)
        if result.is_unambiguous:
            return result
        by_texture = self.matcher.match_first(queries, self.usable_textures(index))
        if by_texture.is_unambiguous or result.is_empty:
            return by_texture
        return result

    def resolve_texture(
        self, node: AssetNode, material: MaterialDescriptor, index: AssetIndex
    ) -> MatchResult:
        """Find a color map for *material*, trying its name then the node name."""
        return self.matcher.match_first(
            [material.name, node.name], self.usable_textures(index)
        )

    @staticmethod
    def usable_textures(index: AssetIndex):
        return {name: tex for name, tex in index.textures.items() if tex.usable}

    def dangling_name(self, slot: Slot) -> Optional[str]:
        if slot.material and not self.rules.is_placeholder(slot.material):
            return slot.material
        return None

    def is_slot_unbound(self, graph: ContentGraph, slot: Slot) -> bool:
        return (
            slot.material is None
            or self.rules.is_placeholder(slot.material)
            or graph.material_for(slot) is None
        )

    def _replacement_issue(
        self, result: MatchResult, base: IssueRecord, what: str
    ) -> Optional[IssueRecord]:
        if result.is_unambiguous:
            return None
        if result.is_empty:
            kind = IssueKind.NO_REPLACEMENT_FOUND
            detail = f"no {what} candidate for '{result.query}'"
        else:
            kind = IssueKind.AMBIGUOUS_REPLACEMENT
            detail = (
                f"{len(result.top)} {what} candidates tie at {result.top_score}: "
                f"{', '.join(c.name for c in result.top)}"
            )
        return IssueRecord(
            node_path=base.node_path,
            slot_index=base.slot_index,
            kind=kind,
            severity=Severity.WARNING,
            category=base.category,
            material=base.material,
            detail=detail,
        )

    def inspect_slot(
        self, graph: ContentGraph, node: AssetNode, slot: Slot, index: AssetIndex
    ) -> List[IssueRecord]:
        """All issues for one slot, including unresolvable replacements."""
        if self.is_slot_unbound(graph, slot):
            category = self.classifier.classify_slot(node.name, self.dangling_name(slot))
            if slot.material is None:
                detail = "slot has no material"
            elif self.rules.is_placeholder(slot.material):
                detail = f"slot uses placeholder material '{slot.material}'"
            else:
                detail = f"material '{slot.material}' does not exist"
            null_issue = IssueRecord(
                node_path=node.path,
                slot_index=slot.index,
                kind=IssueKind.NULL_SLOT,
                severity=Severity.CRITICAL,
                category=category,
                material=slot.material,
                detail=detail,
            )
            issues = [null_issue]
            extra = self._replacement_issue(
                self.resolve_material(node, slot, index), null_issue, "material"
            )
            if extra:
                issues.append(extra)
            return issues

        material = graph.material_for(slot)
        category = self.classifier.classify_slot(node.name, material.name)
        issues = self.validate(material, category, node.path, slot.index)
        for issue in list(issues):
            if issue.kind is IssueKind.MISSING_REQUIRED_TEXTURE:
                extra = self._replacement_issue(
                    self.resolve_texture(node, material, index), issue, "texture"
                )
                if extra:
                    issues.insert(issues.index(issue) + 1, extra)
        return issues

    def inspect(self, graph: ContentGraph, index: AssetIndex) -> List[IssueRecord]:
        """Inspect every slot of every node in load order."""
        issues: List[IssueRecord] = []
        for node in graph.nodes:
            for slot in node.slots:
                slot_issues = self.inspect_slot(graph, node, slot, index)
                for issue in slot_issues:
                    self.logger.debug(
                        f"{issue.location} {issue.severity.value} {issue.kind.value}: {issue.detail}"
                    )
                issues.extend(slot_issues)
        return issues
