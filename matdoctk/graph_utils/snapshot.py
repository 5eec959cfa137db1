# !/usr/bin/python
# coding=utf-8
"""Immutable per-slot material snapshots and their diff.

Capture a snapshot before an operation that may rewrite bindings (an import,
a prefab refresh, entering play mode), capture another afterwards, then diff
the two::

    before = Snapshot.capture(graph)
    ...
    after = Snapshot.capture(reloaded_graph)
    for entry in diff_snapshots(before, after):
        print(entry.key, entry.issue)

A snapshot is a plain value; nothing is cached between calls.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Dict, List, Mapping, Optional, Tuple

from matdoctk.graph_utils._graph_utils import ContentGraph


@dataclass(frozen=True)
class SlotState:
    """Render relevant state of the material bound to one slot."""

    material: Optional[str]
    shader: Optional[str] = None
    shader_error: bool = False
    blend_mode: Optional[str] = None
    draw_order: Optional[int] = None
    z_write: Optional[bool] = None
    textures: Tuple[Tuple[str, Optional[str]], ...] = ()

    @classmethod
    def from_material(cls, name: Optional[str], material) -> "SlotState":
        if material is None:
            return cls(material=name)
        return cls(
            material=material.name,
            shader=material.shader.name if material.shader else None,
            shader_error=bool(material.shader and material.shader.error),
            blend_mode=material.blend_mode.value,
            draw_order=material.draw_order,
            z_write=material.z_write,
            textures=tuple(
                sorted(
                    (prop, tex.name if tex is not None and tex.exists else None)
                    for prop, tex in material.textures.items()
                )
            ),
        )

    @property
    def is_null(self) -> bool:
        return self.shader is None and self.blend_mode is None


@dataclass(frozen=True)
class Snapshot:
    """Slot states keyed by ``"<node path>[<slot index>]"``."""

    label: str
    slots: Mapping[str, SlotState] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "slots", MappingProxyType(dict(self.slots)))

    def __hash__(self):
        return hash((self.label, tuple(self.slots.items())))

    @classmethod
    def capture(cls, graph: ContentGraph, label: str = "snapshot") -> "Snapshot":
        states: Dict[str, SlotState] = {}
        for node in graph.nodes:
            for slot in node.slots:
                key = f"{node.path}[{slot.index}]"
                states[key] = SlotState.from_material(
                    slot.material, graph.material_for(slot)
                )
        return cls(label=label, slots=states)

    def to_dict(self) -> Dict[str, object]:
        return {
            "label": self.label,
            "slots": {
                key: {
                    "material": state.material,
                    "shader": state.shader,
                    "shaderError": state.shader_error,
                    "blendMode": state.blend_mode,
                    "drawOrder": state.draw_order,
                    "zWrite": state.z_write,
                    "textures": dict(state.textures),
                }
                for key, state in self.slots.items()
            },
        }


@dataclass(frozen=True)
class DiffEntry:
    key: str
    field: str
    before: Optional[str]
    after: Optional[str]
    issue: str

    def to_dict(self) -> Dict[str, object]:
        return {
            "key": self.key,
            "field": self.field,
            "before": self.before,
            "after": self.after,
            "issue": self.issue,
        }


def _fmt(value) -> Optional[str]:
    return None if value is None else str(value)


def _diff_slot(key: str, old: SlotState, new: SlotState) -> List[DiffEntry]:
    entries: List[DiffEntry] = []
    if old.is_null != new.is_null:
        issue = "material lost" if new.is_null else "material resolved"
        entries.append(DiffEntry(key, "material", old.material, new.material, issue))
    elif old.material != new.material:
        entries.append(
            DiffEntry(key, "material", old.material, new.material, "material swapped")
        )
    if new.is_null or old.is_null:
        return entries

    if old.shader != new.shader or old.shader_error != new.shader_error:
        issue = "shader broken" if new.shader_error or not new.shader else "shader changed"
        entries.append(DiffEntry(key, "shader", old.shader, new.shader, issue))
    if old.blend_mode != new.blend_mode:
        entries.append(
            DiffEntry(key, "blendMode", old.blend_mode, new.blend_mode, "blend mode changed")
        )
    if old.draw_order != new.draw_order:
        entries.append(
            DiffEntry(
                key,
                "drawOrder",
                _fmt(old.draw_order),
                _fmt(new.draw_order),
                "draw order changed",
            )
        )
    if old.z_write != new.z_write:
        entries.append(
            DiffEntry(key, "zWrite", _fmt(old.z_write), _fmt(new.z_write), "zWrite changed")
        )

    old_tex = dict(old.textures)
    new_tex = dict(new.textures)
    for prop in sorted(set(old_tex) | set(new_tex)):
        before, after = old_tex.get(prop), new_tex.get(prop)
        if before == after:
            continue
        if after is None:
            issue = "texture lost"
        elif before is None:
            issue = "texture bound"
        else:
            issue = "texture changed"
        entries.append(DiffEntry(key, f"texture:{prop}", before, after, issue))
    return entries


def diff_snapshots(before: Snapshot, after: Snapshot) -> List[DiffEntry]:
    """Return every slot level difference between two snapshots, ordered by key."""
    entries: List[DiffEntry] = []
    for key in sorted(set(before.slots) | set(after.slots)):
        old = before.slots.get(key)
        new = after.slots.get(key)
        if old is None:
            entries.append(DiffEntry(key, "slot", None, new.material, "slot added"))
        elif new is None:
            entries.append(DiffEntry(key, "slot", old.material, None, "slot removed"))
        elif old != new:
            entries.extend(_diff_slot(key, old, new))
    return entries
