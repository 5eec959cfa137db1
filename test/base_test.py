# !/usr/bin/python
# coding=utf-8
"""
Base Test Class for matdoctk Tests

Provides graph, material and index builders plus issue assertions shared by
every matdoctk test case.
"""
import shutil
import tempfile
import unittest
from pathlib import Path

from matdoctk import (
    AssetIndex,
    AssetNode,
    BlendMode,
    ContentGraph,
    IntegrityEngine,
    MaterialDescriptor,
    RuleConfig,
    ShaderRef,
    Slot,
    TextureRef,
)

_DEFAULT = object()


class MatDocTestCase(unittest.TestCase):
    """Base class for all matdoctk test cases."""

    @classmethod
    def setUpClass(cls):
        """Load the packaged rules once, ignoring any MATDOCTK_RULES override."""
        cls.rules = RuleConfig.load()

    def make_engine(self, rules=None) -> IntegrityEngine:
        return IntegrityEngine(rules=rules or self.rules)

    def make_temp_dir(self) -> Path:
        """Create a temp directory removed after the test."""
        path = Path(tempfile.mkdtemp(prefix="matdoctk_"))
        self.addCleanup(shutil.rmtree, path, True)
        return path

    # ------------------------------------------------------------------
    # Builders
    # ------------------------------------------------------------------

    @staticmethod
    def tex(name: str, exists: bool = True) -> TextureRef:
        return TextureRef(name=name, path=f"Textures/{name}.png", exists=exists)

    @staticmethod
    def mat(
        name: str,
        shader=_DEFAULT,
        blend_mode: BlendMode = BlendMode.OPAQUE,
        draw_order: int = 2000,
        z_write: bool = True,
        textures=None,
        cutoff=None,
    ) -> MaterialDescriptor:
        """Build a material; ``shader`` defaults to Standard, pass None for no shader."""
        if shader is _DEFAULT:
            shader = ShaderRef("Standard")
        elif isinstance(shader, str):
            shader = ShaderRef(shader)
        return MaterialDescriptor(
            name=name,
            shader=shader,
            blend_mode=blend_mode,
            draw_order=draw_order,
            z_write=z_write,
            textures=textures or {},
            cutoff=cutoff,
        )

    def hair_mat(self, name: str, **kwargs) -> MaterialDescriptor:
        """A cutout material that satisfies the Hair/BrowLash policy."""
        kwargs.setdefault("blend_mode", BlendMode.CUTOUT)
        kwargs.setdefault("draw_order", 2450)
        kwargs.setdefault("cutoff", 0.3)
        return self.mat(name, **kwargs)

    @staticmethod
    def node(path: str, *materials) -> AssetNode:
        """A node whose slots are bound to *materials* by position."""
        return AssetNode(path=path, slots=tuple(Slot(i, m) for i, m in enumerate(materials)))

    @staticmethod
    def graph(nodes, materials=()) -> ContentGraph:
        return ContentGraph(nodes, {m.name: m for m in materials})

    @staticmethod
    def index(textures=(), materials=()) -> AssetIndex:
        return AssetIndex(
            textures={t.name: t for t in textures},
            materials={m.name: m for m in materials},
        )

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------

    @staticmethod
    def kinds(issues):
        return [i.kind for i in issues]

    def assertIssue(self, issues, kind, severity=None, node_path=None, msg: str = None):
        """Assert that *issues* holds at least one issue matching the filters."""
        for issue in issues:
            if issue.kind is not kind:
                continue
            if severity is not None and issue.severity is not severity:
                continue
            if node_path is not None and issue.node_path != node_path:
                continue
            return issue
        msg = msg or (
            f"No {kind.value} issue"
            + (f" with severity {severity.value}" if severity else "")
            + (f" on '{node_path}'" if node_path else "")
            + f" in {[(i.kind.value, i.severity.value, i.node_path) for i in issues]}"
        )
        raise AssertionError(msg)

    def assertNoIssue(self, issues, kind, msg: str = None):
        found = [i for i in issues if i.kind is kind]
        if found:
            msg = msg or f"Unexpected {kind.value} issue(s): {[i.detail for i in found]}"
            raise AssertionError(msg)
