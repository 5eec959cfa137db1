# !/usr/bin/python
# coding=utf-8
"""Expected blend configuration per category."""
from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Mapping, Optional

from matdoctk.graph_utils import BlendMode, Category, MaterialDescriptor


@dataclass(frozen=True)
class RenderPolicy:
    """What a material of one category is expected to look like.

    Attributes:
        blend_mode: Required blend mode.
        z_write: Required depth write state.
        draw_order: Draw order assigned when the policy is applied.
        min_draw_order: Lowest acceptable draw order for non-opaque modes,
            or None when the category has no ordering constraint.
        cutoff: Alpha cutoff applied with cutout modes.
    """

    category: Category
    blend_mode: BlendMode
    z_write: bool
    draw_order: int
    min_draw_order: Optional[int] = None
    cutoff: Optional[float] = None

    @classmethod
    def from_dict(cls, category: Category, data: Mapping) -> "RenderPolicy":
        blend = BlendMode.parse(data["blend_mode"])
        cutoff = data.get("cutoff")
        if cutoff is not None and not 0.0 <= float(cutoff) <= 1.0:
            raise ValueError(f"Cutoff for {category.value} must be within 0..1: {cutoff}")
        min_order = data.get("min_draw_order")
        return cls(
            category=category,
            blend_mode=blend,
            z_write=bool(data.get("z_write", True)),
            draw_order=int(data.get("draw_order", 2000)),
            min_draw_order=None if min_order is None else int(min_order),
            cutoff=None if cutoff is None else float(cutoff),
        )

    def fields(self) -> Dict[str, object]:
        """Material fields this policy owns, as ``MaterialDescriptor`` keywords."""
        values: Dict[str, object] = {
            "blend_mode": self.blend_mode,
            "z_write": self.z_write,
            "draw_order": self.draw_order,
        }
        if self.blend_mode is BlendMode.CUTOUT and self.cutoff is not None:
            values["cutoff"] = self.cutoff
        return values

    def changes_for(self, material: MaterialDescriptor) -> Dict[str, object]:
        """Only the policy fields that differ from *material*.

        When the blend mode is already right, draw order is only raised if it
        sits below the minimum, and an existing cutoff is kept.
        """
        changes = {}
        for key, value in self.fields().items():
            if getattr(material, key) != value:
                changes[key] = value
        if "blend_mode" in changes:
            return changes

        if "draw_order" in changes and (
            self.min_draw_order is None or material.draw_order >= self.min_draw_order
        ):
            del changes["draw_order"]
        if "cutoff" in changes and material.cutoff is not None:
            del changes["cutoff"]
        return changes


class RenderPolicyTable:
    """Lookup from :class:`Category` to :class:`RenderPolicy`.

    ``Category.OTHER`` never has an entry; those materials are not checked.
    """

    def __init__(self, policies: Mapping[Category, RenderPolicy]):
        self._policies = MappingProxyType(
            {c: p for c, p in policies.items() if c is not Category.OTHER}
        )

    def __contains__(self, category: Category) -> bool:
        return category in self._policies

    def __len__(self):
        return len(self._policies)

    @classmethod
    def from_rules(cls, rules=None) -> "RenderPolicyTable":
        if rules is None:
            from matdoctk.env_utils.rule_config import RuleConfig

            rules = RuleConfig.default()
        return cls(rules.policies)

    def lookup(self, category: Category) -> Optional[RenderPolicy]:
        return self._policies.get(category)

    def items(self):
        return self._policies.items()
