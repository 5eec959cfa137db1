# !/usr/bin/python
# coding=utf-8
"""File-backed content store: graph snapshots and asset indexes as YAML or JSON.

Graph document::

    nodes:
      - path: Character/CC_Base_Eye
        slots:
          - material: Std_Eye_L
          - material: null
    materials:
      Std_Eye_L:
        shader: Standard            # or {name: ..., error: true}, or null
        blend_mode: Opaque
        draw_order: 2000
        z_write: true
        textures:
          _MainTex: Std_Eye_L_Diffuse   # or {name, path, exists, sane}, or null

Index document::

    textures:
      Std_Eye_L_Diffuse: {path: Textures/Std_Eye_L_Diffuse.png}
    materials:
      Std_Eye_L: {shader: Standard, blend_mode: Opaque}

Slots without an explicit ``index`` are numbered by position.  Material keys
the model does not know are kept in ``extras`` and written back unchanged.
"""
from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import pythontk as ptk
import yaml

from matdoctk.errors import StoreError
from matdoctk.graph_utils import (
    AssetIndex,
    AssetNode,
    BlendMode,
    ContentGraph,
    MaterialDescriptor,
    ShaderRef,
    Slot,
    TextureRef,
)

_MATERIAL_KEYS = {
    "name",
    "shader",
    "blend_mode",
    "draw_order",
    "z_write",
    "textures",
    "cutoff",
    "color",
}


class GraphStore(ptk.LoggingMixin):
    """Load and save :class:`ContentGraph` and :class:`AssetIndex` documents."""

    def __init__(self, root: Optional[Union[str, Path]] = None):
        super().__init__()
        self.root = Path(root) if root else None

    def _resolve(self, path: Union[str, Path]) -> Path:
        path = Path(path)
        if self.root is not None and not path.is_absolute():
            path = self.root / path
        return path

    # ------------------------------------------------------------------
    # Files
    # ------------------------------------------------------------------

    def read(self, path: Union[str, Path]) -> Dict[str, Any]:
        path = self._resolve(path)
        try:
            with open(path, "r", encoding="utf-8") as file:
                if path.suffix.lower() == ".json":
                    data = json.load(file)
                else:
                    data = yaml.safe_load(file)
        except FileNotFoundError:
            raise StoreError(f"Content store file not found: {path}") from None
        except (OSError, ValueError, yaml.YAMLError) as error:
            raise StoreError(f"Failed to read '{path}': {error}") from error
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise StoreError(f"'{path}' must contain a mapping at the top level.")
        return data

    def write(self, data: Mapping[str, Any], path: Union[str, Path]) -> Path:
        path = self._resolve(path)
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as file:
                if path.suffix.lower() == ".json":
                    json.dump(data, file, indent=2)
                else:
                    yaml.safe_dump(data, file, default_flow_style=False, sort_keys=False)
        except OSError as error:
            raise StoreError(f"Failed to write '{path}': {error}") from error
        self.logger.info(f"Saved '{path}'.")
        return path

    def load_graph(self, path: Union[str, Path]) -> ContentGraph:
        graph = self.graph_from_dict(self.read(path), source=str(path))
        self.logger.debug(f"Loaded {graph!r} from '{path}'.")
        return graph

    def load_index(self, path: Union[str, Path]) -> AssetIndex:
        index = self.index_from_dict(self.read(path), source=str(path))
        self.logger.debug(
            f"Loaded index with {len(index.textures)} texture(s) and "
            f"{len(index.materials)} material(s) from '{path}'."
        )
        return index

    def save_graph(self, graph: ContentGraph, path: Union[str, Path]) -> Path:
        return self.write(self.graph_to_dict(graph), path)

    # ------------------------------------------------------------------
    # Parsing
    # ------------------------------------------------------------------

    @staticmethod
    def _texture(value: Any, name: Optional[str] = None) -> Optional[TextureRef]:
        if value is None:
            return None
        if isinstance(value, TextureRef):
            return value
        if isinstance(value, str):
            return TextureRef(name=value)
        if isinstance(value, Mapping):
            tex_name = value.get("name", name)
            if not tex_name:
                raise ValueError(f"Texture entry without a name: {dict(value)}")
            return TextureRef(
                name=str(tex_name),
                path=str(value.get("path", "") or ""),
                exists=bool(value.get("exists", True)),
                sane=bool(value.get("sane", True)),
            )
        raise ValueError(f"Unsupported texture entry: {value!r}")

    @staticmethod
    def _shader(value: Any) -> Optional[ShaderRef]:
        if value is None:
            return None
        if isinstance(value, str):
            return ShaderRef(name=value)
        if isinstance(value, Mapping):
            return ShaderRef(name=str(value.get("name") or ""), error=bool(value.get("error", False)))
        raise ValueError(f"Unsupported shader entry: {value!r}")

    @classmethod
    def material_from_dict(cls, name: str, data: Mapping[str, Any]) -> MaterialDescriptor:
        data = data or {}
        textures = {
            prop: cls._texture(tex) for prop, tex in (data.get("textures") or {}).items()
        }
        cutoff = data.get("cutoff")
        color = data.get("color")
        return MaterialDescriptor(
            name=str(data.get("name", name)),
            shader=cls._shader(data.get("shader")),
            blend_mode=BlendMode.parse(data.get("blend_mode", BlendMode.OPAQUE)),
            draw_order=int(data.get("draw_order", 2000)),
            z_write=bool(data.get("z_write", True)),
            textures=textures,
            cutoff=None if cutoff is None else float(cutoff),
            color=None if color is None else tuple(float(c) for c in color),
            extras={k: v for k, v in data.items() if k not in _MATERIAL_KEYS},
        )

    @classmethod
    def _materials(cls, data: Any) -> Dict[str, MaterialDescriptor]:
        if not data:
            return {}
        if isinstance(data, list):
            data = {entry["name"]: entry for entry in data}
        return {str(name): cls.material_from_dict(str(name), body) for name, body in data.items()}

    @classmethod
    def graph_from_dict(cls, data: Mapping[str, Any], source: str = "<dict>") -> ContentGraph:
        try:
            nodes = []
            for entry in data.get("nodes") or []:
                slots = []
                for position, slot in enumerate(entry.get("slots") or []):
                    if isinstance(slot, Mapping):
                        slots.append(Slot(int(slot.get("index", position)), slot.get("material")))
                    else:
                        slots.append(Slot(position, slot))
                nodes.append(
                    AssetNode(path=str(entry["path"]), name=str(entry.get("name") or ""), slots=tuple(slots))
                )
            return ContentGraph(nodes, cls._materials(data.get("materials")))
        except (KeyError, TypeError, ValueError, AttributeError) as error:
            raise StoreError(f"Malformed graph document '{source}': {error}") from error

    @classmethod
    def index_from_dict(cls, data: Mapping[str, Any], source: str = "<dict>") -> AssetIndex:
        try:
            raw_textures = data.get("textures") or {}
            if isinstance(raw_textures, list):
                textures = {}
                for entry in raw_textures:
                    tex = cls._texture(entry)
                    textures[tex.name] = tex
            else:
                textures = {
                    str(name): cls._texture(body if body is not None else {}, name=str(name))
                    for name, body in raw_textures.items()
                }
            return AssetIndex(textures=textures, materials=cls._materials(data.get("materials")))
        except (KeyError, TypeError, ValueError, AttributeError) as error:
            raise StoreError(f"Malformed index document '{source}': {error}") from error

    # ------------------------------------------------------------------
    # Serialization
    # ------------------------------------------------------------------

    @staticmethod
    def texture_to_dict(tex: Optional[TextureRef]) -> Optional[Dict[str, Any]]:
        if tex is None:
            return None
        return {"name": tex.name, "path": tex.path, "exists": tex.exists, "sane": tex.sane}

    @classmethod
    def material_to_dict(cls, material: MaterialDescriptor) -> Dict[str, Any]:
        shader = material.shader
        data: Dict[str, Any] = {
            "shader": None
            if shader is None
            else (shader.name if not shader.error else {"name": shader.name, "error": True}),
            "blend_mode": material.blend_mode.value,
            "draw_order": material.draw_order,
            "z_write": material.z_write,
            "textures": {p: cls.texture_to_dict(t) for p, t in material.textures.items()},
        }
        if material.cutoff is not None:
            data["cutoff"] = material.cutoff
        if material.color is not None:
            data["color"] = list(material.color)
        data.update(material.extras)
        return data

    @classmethod
    def graph_to_dict(cls, graph: ContentGraph) -> Dict[str, Any]:
        return {
            "nodes": [
                {
                    "path": node.path,
                    "name": node.name,
                    "slots": [{"index": s.index, "material": s.material} for s in node.slots],
                }
                for node in graph.nodes
            ],
            "materials": {
                name: cls.material_to_dict(mat) for name, mat in graph.materials.items()
            },
        }
