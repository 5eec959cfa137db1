# !/usr/bin/python
# coding=utf-8
import json
import unittest

from base_test import MatDocTestCase
from matdoctk import BlendMode, GraphStore
from matdoctk.cli import EXIT_CRITICAL, EXIT_FAILURE, EXIT_OK, main

GRAPH_YAML = """\
nodes:
  - path: Character/CC_Base_TearLine_R
    slots:
      - material: Std_Tearline_R
materials:
  Std_Tearline_R:
    shader: Standard
    blend_mode: Opaque
    draw_order: 2000
"""

INDEX_YAML = """\
textures:
  Std_Eye_R_Diffuse: {path: Textures/Std_Eye_R_Diffuse.png}
"""


class CliTest(MatDocTestCase):
    def setUp(self):
        self.root = self.make_temp_dir()
        self.graph_path = self.root / "graph.yaml"
        self.index_path = self.root / "index.yaml"
        self.out_path = self.root / "report.json"
        self.graph_path.write_text(GRAPH_YAML, encoding="utf-8")
        self.index_path.write_text(INDEX_YAML, encoding="utf-8")

    def run_cli(self, *args):
        return main(["--log-level", "ERROR", *[str(a) for a in args]])

    def read_report(self):
        return json.loads(self.out_path.read_text(encoding="utf-8"))

    def test_diagnose(self):
        code = self.run_cli("diagnose", self.graph_path, self.index_path, "--out", self.out_path)
        self.assertEqual(code, EXIT_CRITICAL)
        report = self.read_report()
        self.assertEqual(report["rootCause"], "OpaqueOverlay")
        self.assertEqual(report["issues"][0]["kind"], "WrongBlendModeForCategory")
        self.assertIn("timestamp", report)
        self.assertIn("remediation", report)

    def test_fix_dry_run_leaves_graph(self):
        code = self.run_cli(
            "fix", self.graph_path, self.index_path, "--dry-run", "--out", self.out_path
        )
        self.assertEqual(code, EXIT_CRITICAL)
        self.assertEqual(self.graph_path.read_text(encoding="utf-8"), GRAPH_YAML)
        report = self.read_report()
        self.assertEqual(report["patchesApplied"], 0)
        self.assertEqual(len(report["patches"]), 1)
        self.assertEqual(report["rootCause"], "OpaqueOverlay")
        self.assertFalse(report["passed"])
        self.assertEqual(report["projected"]["rootCause"], "None")
        self.assertTrue(report["projected"]["passed"])
        self.assertEqual(
            self.run_cli("verify", self.graph_path, self.index_path, "--out", self.out_path),
            EXIT_CRITICAL,
        )

    def test_fix_then_verify(self):
        saved = self.root / "fixed.yaml"
        code = self.run_cli(
            "fix", self.graph_path, self.index_path, "--save", saved, "--out", self.out_path
        )
        self.assertEqual(code, EXIT_OK)
        report = self.read_report()
        self.assertEqual(report["patchesApplied"], 1)
        self.assertEqual(report["unresolved"], [])
        self.assertEqual(report["rootCauseBefore"], "OpaqueOverlay")

        material = GraphStore().load_graph(saved).materials["Std_Tearline_R"]
        self.assertIs(material.blend_mode, BlendMode.FADE)
        self.assertEqual(
            self.run_cli("verify", saved, self.index_path, "--out", self.out_path), EXIT_OK
        )
        self.assertTrue(self.read_report()["passed"])
        self.assertEqual(
            self.run_cli("verify", self.graph_path, self.index_path, "--out", self.out_path),
            EXIT_CRITICAL,
        )

    def test_diff(self):
        saved = self.root / "fixed.yaml"
        self.run_cli("fix", self.graph_path, self.index_path, "--save", saved, "--out", self.out_path)
        code = self.run_cli("diff", self.graph_path, saved, "--out", self.out_path)
        self.assertEqual(code, EXIT_OK)
        report = self.read_report()
        self.assertEqual(
            [e["field"] for e in report["entries"]], ["blendMode", "drawOrder", "zWrite"]
        )

    def test_collaborator_failures(self):
        empty_index = self.root / "empty.yaml"
        empty_index.write_text("textures: {}\n", encoding="utf-8")
        cases = [
            ("diagnose", self.root / "missing.yaml", self.index_path),
            ("diagnose", self.graph_path, empty_index),
        ]
        for args in cases:
            with self.subTest(args=args):
                self.assertEqual(self.run_cli(*args), EXIT_FAILURE)
        bad_rules = self.root / "rules.yaml"
        bad_rules.write_text("matching:\n  top_n: 0\n", encoding="utf-8")
        self.assertEqual(
            self.run_cli("verify", self.graph_path, self.index_path, "--rules", bad_rules),
            EXIT_FAILURE,
        )


# -----------------------------------------------------------------------------

if __name__ == "__main__":
    unittest.main(exit=False)
