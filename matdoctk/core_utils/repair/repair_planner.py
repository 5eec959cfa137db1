# !/usr/bin/python
# coding=utf-8
"""Turn a diagnosis into concrete, idempotent patches.

The planner only proposes what it can prove: an unambiguous match, a valid
category policy, a default shader.  Anything else is reported as unresolved
and left untouched.  Patches carry absolute values and only the values that
differ from the graph they were planned against, so planning again on a
repaired graph yields nothing and applying a patch set twice changes nothing
the second time.
"""
from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

import pythontk as ptk

from matdoctk.core_utils.diagnostics.render_diag import RenderPolicyValidator
from matdoctk.core_utils.diagnostics.root_cause import Diagnosis
from matdoctk.env_utils.rule_config import RuleConfig
from matdoctk.errors import PatchError
from matdoctk.graph_utils import (
    AssetIndex,
    AssetNode,
    BlendMode,
    Category,
    ContentGraph,
    IssueKind,
    IssueRecord,
    MaterialDescriptor,
    ShaderRef,
    Slot,
    TextureRef,
)


def _value_repr(value):
    if isinstance(value, BlendMode):
        return value.value
    if isinstance(value, ShaderRef):
        return value.name
    if isinstance(value, TextureRef):
        return value.name
    return value


@dataclass(frozen=True)
class Patch:
    """Base class of proposed changes; ``resolves`` lists the issues it fixes."""

    resolves: Tuple[IssueRecord, ...]

    def check(self, graph: ContentGraph) -> None:
        raise NotImplementedError

    def apply(self, graph: ContentGraph) -> ContentGraph:
        raise NotImplementedError

    def to_dict(self) -> Dict[str, object]:
        raise NotImplementedError


@dataclass(frozen=True)
class SlotPatch(Patch):
    """Bind a slot to *material*, adding or replacing it in the material table."""

    node_path: str = ""
    slot_index: int = 0
    material: Optional[MaterialDescriptor] = None

    def check(self, graph: ContentGraph) -> None:
        node = graph.node(self.node_path)
        if node is None:
            raise PatchError(f"Node not found: '{self.node_path}'")
        if node.slot(self.slot_index) is None:
            raise PatchError(f"Slot {self.slot_index} not found on '{self.node_path}'")
        if self.material is None:
            raise PatchError(f"Slot patch for '{self.node_path}' has no material")

    def apply(self, graph: ContentGraph) -> ContentGraph:
        self.check(graph)
        return graph.with_slot_material(self.node_path, self.slot_index, self.material)

    def to_dict(self) -> Dict[str, object]:
        mat = self.material
        return {
            "type": "slot",
            "nodePath": self.node_path,
            "slotIndex": self.slot_index,
            "material": mat.name,
            "shader": mat.shader.name if mat.shader else None,
            "blendMode": mat.blend_mode.value,
            "zWrite": mat.z_write,
            "drawOrder": mat.draw_order,
            "textures": {p: t.name if t else None for p, t in mat.textures.items()},
            "resolves": [i.to_dict() for i in self.resolves],
        }


@dataclass(frozen=True)
class MaterialPatch(Patch):
    """Set fields and texture bindings on an existing material.

    Fields not named in ``changes`` or ``textures`` are preserved.
    """

    material_name: str = ""
    changes: Tuple[Tuple[str, object], ...] = ()
    textures: Tuple[Tuple[str, TextureRef], ...] = ()

    @property
    def fields(self) -> Dict[str, object]:
        return dict(self.changes)

    def check(self, graph: ContentGraph) -> None:
        if self.material_name not in graph.materials:
            raise PatchError(f"Material not found: '{self.material_name}'")

    def apply(self, graph: ContentGraph) -> ContentGraph:
        self.check(graph)
        current = graph.materials[self.material_name]
        updated = current.evolve(**self.fields, textures=dict(self.textures))
        return graph.with_material(updated)

    def to_dict(self) -> Dict[str, object]:
        return {
            "type": "material",
            "material": self.material_name,
            "changes": {k: _value_repr(v) for k, v in self.changes},
            "textures": {p: t.name for p, t in self.textures},
            "resolves": [i.to_dict() for i in self.resolves],
        }


@dataclass(frozen=True)
class RepairPlan:
    patches: Tuple[Patch, ...] = ()
    unresolved: Tuple[IssueRecord, ...] = ()

    def __len__(self):
        return len(self.patches)

    @property
    def is_empty(self) -> bool:
        return not self.patches

    def to_dict(self) -> Dict[str, object]:
        return {
            "patches": [p.to_dict() for p in self.patches],
            "unresolved": [i.to_dict() for i in self.unresolved],
        }


@dataclass
class _PendingMaterial:
    category: Category
    conflict: bool = False
    changes: Dict[str, object] = field(default_factory=OrderedDict)
    textures: Dict[str, TextureRef] = field(default_factory=OrderedDict)
    resolves: List[IssueRecord] = field(default_factory=list)


class RepairPlanner(ptk.LoggingMixin):
    """Propose patches for the issues of a :class:`Diagnosis`."""

    def __init__(
        self,
        rules: Optional[RuleConfig] = None,
        validator: Optional[RenderPolicyValidator] = None,
    ):
        super().__init__()
        self.rules = rules or RuleConfig.default()
        self.validator = validator or RenderPolicyValidator(self.rules)
        self.policies = self.validator.policies
        self.classifier = self.validator.classifier

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def plan(
        self, graph: ContentGraph, index: AssetIndex, diagnosis: Diagnosis
    ) -> List[Patch]:
        return list(self.plan_detailed(graph, index, diagnosis).patches)

    def plan_detailed(
        self, graph: ContentGraph, index: AssetIndex, diagnosis: Diagnosis
    ) -> RepairPlan:
        """Plan patches and collect the issues that cannot be fixed automatically."""
        by_slot: Dict[Tuple[str, int], List[IssueRecord]] = OrderedDict()
        for issue in diagnosis.issues:
            by_slot.setdefault((issue.node_path, issue.slot_index), []).append(issue)

        slot_patches: List[Patch] = []
        pending: Dict[str, _PendingMaterial] = OrderedDict()
        unresolved: List[IssueRecord] = []

        for (path, index_), issues in by_slot.items():
            node = graph.node(path)
            slot = node.slot(index_) if node else None
            if slot is None:
                self.logger.warning(f"Skipping issues for unknown slot {path}[{index_}].")
                unresolved.extend(issues)
                continue

            kinds = {i.kind for i in issues}
            if IssueKind.NULL_SLOT in kinds:
                patch = self._plan_null_slot(graph, index, node, slot, issues)
                if patch is None:
                    unresolved.extend(issues)
                else:
                    slot_patches.append(patch)
                continue

            material = graph.material_for(slot)
            if material is None:
                self.logger.warning(
                    f"Skipping issues for {path}[{index_}]; its material is no longer bound."
                )
                unresolved.extend(issues)
                continue
            unresolved.extend(
                self._plan_material(graph, node, material, index, issues, pending)
            )

        patches = slot_patches + self._material_patches(graph, pending)
        for issue in unresolved:
            self.logger.warning(
                f"Unresolved {issue.kind.value} at {issue.location}: {issue.detail}"
            )
        self.logger.info(
            f"Planned {len(patches)} patch(es); {len(unresolved)} issue(s) left unresolved."
        )
        return RepairPlan(patches=tuple(patches), unresolved=tuple(unresolved))

    # ------------------------------------------------------------------
    # Material level repairs
    # ------------------------------------------------------------------

    def shared_policy_conflict(self, graph: ContentGraph, material_name: str) -> bool:
        """True when slots bound to *material_name* need different render policies."""
        wanted = set()
        for node in graph.nodes:
            for slot in node.slots:
                if slot.material != material_name:
                    continue
                category = self.classifier.classify_slot(node.name, material_name)
                policy = self.policies.lookup(category)
                if policy is not None:
                    wanted.add(tuple(sorted(policy.fields().items(), key=lambda kv: kv[0])))
        return len(wanted) > 1

    def _plan_material(
        self,
        graph: ContentGraph,
        node: AssetNode,
        material: MaterialDescriptor,
        index: AssetIndex,
        issues: List[IssueRecord],
        pending: Dict[str, _PendingMaterial],
    ) -> List[IssueRecord]:
        """Accumulate changes for *material*; return the issues left unresolved."""
        category = issues[0].category
        entry = pending.get(material.name)
        if entry is None:
            entry = pending[material.name] = _PendingMaterial(
                category, conflict=self.shared_policy_conflict(graph, material.name)
            )
            if entry.conflict:
                self.logger.warning(
                    f"Material '{material.name}' is shared by slots with different render "
                    f"policies; blend and draw order are left for a manual split."
                )

        policy = None if entry.conflict else self.policies.lookup(category)
        current = material.evolve(**entry.changes, textures=dict(entry.textures))
        unresolved: List[IssueRecord] = []

        for issue in issues:
            kind = issue.kind
            if kind is IssueKind.BROKEN_SHADER:
                entry.changes["shader"] = ShaderRef(self.rules.default_shader)
                if policy is not None:
                    entry.changes.update(policy.changes_for(current))
                binding = self._color_binding(node, current, index)
                if binding:
                    entry.textures.update(binding)
                entry.resolves.append(issue)

            elif kind is IssueKind.MISSING_REQUIRED_TEXTURE:
                binding = self._color_binding(node, current, index)
                if self.validator.has_color_map(current):
                    entry.resolves.append(issue)
                elif binding:
                    entry.textures.update(binding)
                    entry.resolves.append(issue)
                else:
                    unresolved.append(issue)

            elif kind in (IssueKind.WRONG_BLEND_MODE, IssueKind.DRAW_ORDER_TOO_LOW):
                if policy is None:
                    unresolved.append(issue)
                    continue
                entry.changes.update(policy.changes_for(current))
                entry.resolves.append(issue)

            else:
                # Ambiguous or missing replacements are never guessed.
                unresolved.append(issue)

            current = material.evolve(**entry.changes, textures=dict(entry.textures))
        return unresolved

    def _color_binding(
        self, node: AssetNode, material: MaterialDescriptor, index: AssetIndex
    ) -> Dict[str, TextureRef]:
        """``{property: texture}`` for an unambiguous color map, else empty."""
        if self.validator.has_color_map(material):
            return {}
        result = self.validator.resolve_texture(node, material, index)
        if result.best is None:
            return {}
        return {self._color_property(material): result.best.asset}

    def _color_property(self, material: MaterialDescriptor) -> str:
        for prop in self.rules.color_properties:
            if prop in material.textures:
                return prop
        return self.rules.color_properties[0]

    def _material_patches(
        self, graph: ContentGraph, pending: Mapping[str, _PendingMaterial]
    ) -> List[Patch]:
        patches: List[Patch] = []
        for name, entry in pending.items():
            original = graph.materials[name]
            changes = tuple(
                (k, v) for k, v in entry.changes.items() if getattr(original, k) != v
            )
            textures = tuple(
                (p, t) for p, t in entry.textures.items() if original.texture(p) != t
            )
            if not changes and not textures:
                continue
            patches.append(
                MaterialPatch(
                    resolves=tuple(entry.resolves),
                    material_name=name,
                    changes=changes,
                    textures=textures,
                )
            )
        return patches

    # ------------------------------------------------------------------
    # Slot level repairs
    # ------------------------------------------------------------------

    def conform(
        self,
        material: MaterialDescriptor,
        category: Category,
        node: AssetNode,
        index: AssetIndex,
    ) -> MaterialDescriptor:
        """Return *material* with a valid shader, policy fields and color map where provable."""
        changes: Dict[str, object] = {}
        if self.validator.is_shader_broken(material):
            changes["shader"] = ShaderRef(self.rules.default_shader)
        policy = self.policies.lookup(category)
        if policy is not None:
            changes.update(policy.changes_for(material))
        conformed = material.evolve(**changes)
        binding = self._color_binding(node, conformed, index)
        if binding:
            conformed = conformed.evolve(textures=binding)
        return conformed

    def _plan_null_slot(
        self,
        graph: ContentGraph,
        index: AssetIndex,
        node: AssetNode,
        slot: Slot,
        issues: List[IssueRecord],
    ) -> Optional[SlotPatch]:
        result = self.validator.resolve_material(node, slot, index)
        best = result.best
        if best is None:
            return None

        asset = best.asset
        if isinstance(asset, MaterialDescriptor):
            seed = graph.materials.get(asset.name, asset)
        else:
            seed = graph.materials.get(best.name) or MaterialDescriptor(
                name=best.name,
                shader=ShaderRef(self.rules.default_shader),
                textures={self.rules.color_properties[0]: asset},
            )
        category = self.classifier.classify_slot(node.name, seed.name)
        fresh = self.conform(seed, category, node, index)
        self.logger.debug(
            f"{node.path}[{slot.index}] -> '{fresh.name}' ({category.value}, score {best.score})"
        )
        return SlotPatch(
            resolves=tuple(issues),
            node_path=node.path,
            slot_index=slot.index,
            material=fresh,
        )


def apply_patches(graph: ContentGraph, patches) -> ContentGraph:
    """Apply *patches* in order as one batch.

    Every patch is applied to a working copy; if any of them fails the
    :class:`PatchError` propagates and the caller keeps the untouched input.
    """
    working = graph
    for patch in patches:
        working = patch.apply(working)
    return working
