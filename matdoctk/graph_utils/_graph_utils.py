# !/usr/bin/python
# coding=utf-8
"""Content graph data model.

A :class:`ContentGraph` is an immutable snapshot of renderable nodes and the
materials their slots reference.  Nodes are addressed by a ``/`` separated
hierarchy path; parent and child relations are derived from those paths so
the engine never holds live references into a content store.
"""
from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from types import MappingProxyType
from typing import Dict, Iterator, List, Mapping, Optional, Tuple


PATH_SEPARATOR = "/"


class BlendMode(Enum):
    OPAQUE = "Opaque"
    CUTOUT = "Cutout"
    FADE = "Fade"
    TRANSPARENT = "Transparent"

    @classmethod
    def parse(cls, value) -> "BlendMode":
        """Resolve a blend mode from its name, value or legacy integer mode."""
        if isinstance(value, cls):
            return value
        if isinstance(value, int) and not isinstance(value, bool):
            try:
                return list(cls)[value]
            except IndexError:
                raise ValueError(f"Unknown blend mode index: {value}") from None
        text = str(value).strip()
        for mode in cls:
            if text.lower() in (mode.value.lower(), mode.name.lower()):
                return mode
        raise ValueError(f"Unknown blend mode: {value!r}")


class Category(Enum):
    EYE_BASE = "EyeBase"
    EYE_OVERLAY = "EyeOverlay"
    HAIR = "Hair"
    BROW_LASH = "BrowLash"
    SKIN_BODY = "SkinBody"
    MOUTH = "Mouth"
    OTHER = "Other"

    @classmethod
    def parse(cls, value) -> "Category":
        if isinstance(value, cls):
            return value
        text = str(value).strip().lower()
        for category in cls:
            if text in (category.value.lower(), category.name.lower()):
                return category
        raise ValueError(f"Unknown category: {value!r}")


class Severity(Enum):
    CRITICAL = "Critical"
    WARNING = "Warning"


class IssueKind(Enum):
    NULL_SLOT = "NullSlot"
    BROKEN_SHADER = "BrokenShader"
    MISSING_REQUIRED_TEXTURE = "MissingRequiredTexture"
    WRONG_BLEND_MODE = "WrongBlendModeForCategory"
    AMBIGUOUS_REPLACEMENT = "AmbiguousReplacement"
    NO_REPLACEMENT_FOUND = "NoReplacementFound"
    DRAW_ORDER_TOO_LOW = "DrawOrderTooLow"


@dataclass(frozen=True)
class TextureRef:
    """A texture asset as reported by the content store.

    ``exists`` and ``sane`` come from the external content analyzer.
    """

    name: str
    path: str = ""
    exists: bool = True
    sane: bool = True

    @property
    def usable(self) -> bool:
        return self.exists


@dataclass(frozen=True)
class ShaderRef:
    name: str
    error: bool = False


@dataclass(frozen=True)
class MaterialDescriptor:
    """Shader, blend configuration and texture bindings of one material."""

    name: str
    shader: Optional[ShaderRef] = None
    blend_mode: BlendMode = BlendMode.OPAQUE
    draw_order: int = 2000
    z_write: bool = True
    textures: Mapping[str, Optional[TextureRef]] = field(default_factory=dict)
    cutoff: Optional[float] = None
    color: Optional[Tuple[float, ...]] = None
    extras: Mapping[str, object] = field(default_factory=dict)

    def __post_init__(self):
        # Freeze the mappings so a descriptor can be shared between snapshots.
        object.__setattr__(self, "textures", MappingProxyType(dict(self.textures)))
        object.__setattr__(self, "extras", MappingProxyType(dict(self.extras)))
        if self.color is not None:
            object.__setattr__(self, "color", tuple(self.color))

    def __hash__(self):
        return hash((self.name, self.shader, self.blend_mode, self.draw_order))

    def __eq__(self, other):
        if not isinstance(other, MaterialDescriptor):
            return NotImplemented
        return (
            self.name == other.name
            and self.shader == other.shader
            and self.blend_mode == other.blend_mode
            and self.draw_order == other.draw_order
            and self.z_write == other.z_write
            and dict(self.textures) == dict(other.textures)
            and self.cutoff == other.cutoff
            and self.color == other.color
            and dict(self.extras) == dict(other.extras)
        )

    def texture(self, prop: str) -> Optional[TextureRef]:
        return self.textures.get(prop)

    def bound_texture(self, properties) -> Optional[TextureRef]:
        """Return the first usable texture bound under any of *properties*."""
        for prop in properties:
            tex = self.textures.get(prop)
            if tex is not None and tex.usable:
                return tex
        return None

    def evolve(self, **changes) -> "MaterialDescriptor":
        """Return a copy with *changes* applied; ``textures`` entries are merged."""
        textures = changes.pop("textures", None)
        if textures is not None:
            merged = dict(self.textures)
            merged.update(textures)
            changes["textures"] = merged
        return replace(self, **changes)


@dataclass(frozen=True)
class Slot:
    """A binding point on a node; ``material`` is a material name or None."""

    index: int
    material: Optional[str] = None


@dataclass(frozen=True)
class AssetNode:
    path: str
    name: str = ""
    slots: Tuple[Slot, ...] = ()

    def __post_init__(self):
        if not self.name:
            object.__setattr__(self, "name", self.path.split(PATH_SEPARATOR)[-1])
        slots = tuple(sorted(self.slots, key=lambda s: s.index))
        indices = [s.index for s in slots]
        if len(set(indices)) != len(indices):
            raise ValueError(f"Duplicate slot index on node '{self.path}'")
        object.__setattr__(self, "slots", slots)

    @property
    def parent_path(self) -> Optional[str]:
        head, sep, _ = self.path.rpartition(PATH_SEPARATOR)
        return head if sep and head else None

    @property
    def depth(self) -> int:
        return self.path.count(PATH_SEPARATOR)

    def slot(self, index: int) -> Optional[Slot]:
        for slot in self.slots:
            if slot.index == index:
                return slot
        return None

    def with_slot(self, index: int, material: Optional[str]) -> "AssetNode":
        slots = [s for s in self.slots if s.index != index]
        slots.append(Slot(index, material))
        return replace(self, slots=tuple(slots))


class ContentGraph:
    """Immutable snapshot of nodes and the materials they reference.

    Nodes keep the order they were loaded in; that order drives the order of
    issues in a diagnosis.
    """

    def __init__(self, nodes=(), materials: Optional[Mapping[str, MaterialDescriptor]] = None):
        self._nodes: Dict[str, AssetNode] = {}
        for node in nodes:
            if node.path in self._nodes:
                raise ValueError(f"Duplicate node path: '{node.path}'")
            self._nodes[node.path] = node
        self._materials: Dict[str, MaterialDescriptor] = dict(materials or {})

    def __repr__(self):
        return f"<ContentGraph nodes={len(self._nodes)} materials={len(self._materials)}>"

    def __eq__(self, other):
        if not isinstance(other, ContentGraph):
            return NotImplemented
        return (
            list(self._nodes.values()) == list(other._nodes.values())
            and self._materials == other._materials
        )

    def __len__(self):
        return len(self._nodes)

    @property
    def nodes(self) -> Tuple[AssetNode, ...]:
        return tuple(self._nodes.values())

    @property
    def materials(self) -> Mapping[str, MaterialDescriptor]:
        return MappingProxyType(self._materials)

    def node(self, path: str) -> Optional[AssetNode]:
        return self._nodes.get(path)

    def parent(self, path: str) -> Optional[AssetNode]:
        node = self._nodes.get(path)
        if node is None or node.parent_path is None:
            return None
        return self._nodes.get(node.parent_path)

    def children(self, path: str) -> List[AssetNode]:
        return [n for n in self._nodes.values() if n.parent_path == path]

    def roots(self) -> List[AssetNode]:
        return [
            n
            for n in self._nodes.values()
            if n.parent_path is None or n.parent_path not in self._nodes
        ]

    def walk(self) -> Iterator[AssetNode]:
        """Depth-first traversal from every root, children in load order."""

        def _visit(node):
            yield node
            for child in self.children(node.path):
                yield from _visit(child)

        for root in self.roots():
            yield from _visit(root)

    def material_for(self, slot: Slot) -> Optional[MaterialDescriptor]:
        if slot.material is None:
            return None
        return self._materials.get(slot.material)

    def with_material(self, material: MaterialDescriptor) -> "ContentGraph":
        materials = dict(self._materials)
        materials[material.name] = material
        return ContentGraph(self._nodes.values(), materials)

    def with_slot_material(
        self, path: str, index: int, material: MaterialDescriptor
    ) -> "ContentGraph":
        node = self._nodes.get(path)
        if node is None:
            raise KeyError(path)
        nodes = [
            n.with_slot(index, material.name) if n.path == path else n
            for n in self._nodes.values()
        ]
        materials = dict(self._materials)
        materials[material.name] = material
        return ContentGraph(nodes, materials)


@dataclass(frozen=True)
class AssetIndex:
    """Name indexed candidates available to the matcher."""

    textures: Mapping[str, TextureRef] = field(default_factory=dict)
    materials: Mapping[str, MaterialDescriptor] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "textures", MappingProxyType(dict(self.textures)))
        object.__setattr__(self, "materials", MappingProxyType(dict(self.materials)))

    def __hash__(self):
        return hash((tuple(self.textures), tuple(self.materials)))

    @property
    def is_empty(self) -> bool:
        return not self.textures and not self.materials


@dataclass(frozen=True)
class IssueRecord:
    node_path: str
    slot_index: int
    kind: IssueKind
    severity: Severity
    category: Category = Category.OTHER
    material: Optional[str] = None
    detail: str = ""

    @property
    def is_critical(self) -> bool:
        return self.severity is Severity.CRITICAL

    @property
    def location(self) -> str:
        return f"{self.node_path}[{self.slot_index}]"

    def to_dict(self) -> Dict[str, object]:
        return {
            "nodePath": self.node_path,
            "slotIndex": self.slot_index,
            "kind": self.kind.value,
            "severity": self.severity.value,
            "category": self.category.value,
            "material": self.material,
            "detail": self.detail,
        }
