# !/usr/bin/python
# coding=utf-8
import unittest

from base_test import MatDocTestCase
from matdoctk import (
    BlendMode,
    Category,
    IssueKind,
    RenderPolicyValidator,
    Severity,
    ShaderRef,
)


class RenderPolicyValidatorTest(MatDocTestCase):
    def setUp(self):
        self.validator = RenderPolicyValidator(self.rules)
        self.eye_tex = self.tex("Std_Eye_L_Diffuse")

    def eye_mat(self, **kwargs):
        kwargs.setdefault("textures", {"_MainTex": self.eye_tex})
        return self.mat("Std_Eye_L", **kwargs)

    def test_valid_material(self):
        self.assertEqual(self.validator.validate(self.eye_mat(), Category.EYE_BASE), [])

    def test_broken_shader_variants(self):
        for shader in (None, ShaderRef("Custom/Eye", error=True), ShaderRef("Hidden/InternalErrorShader")):
            with self.subTest(shader=shader):
                issues = self.validator.validate(self.eye_mat(shader=shader), Category.EYE_BASE)
                self.assertIssue(issues, IssueKind.BROKEN_SHADER, Severity.CRITICAL)

    def test_missing_texture(self):
        issues = self.validator.validate(self.mat("Std_Eye_L"), Category.EYE_BASE)
        self.assertIssue(issues, IssueKind.MISSING_REQUIRED_TEXTURE, Severity.CRITICAL)

    def test_texture_that_does_not_exist_is_missing(self):
        material = self.eye_mat(textures={"_MainTex": self.tex("Std_Eye_L_Diffuse", exists=False)})
        issues = self.validator.validate(material, Category.EYE_BASE)
        self.assertIssue(issues, IssueKind.MISSING_REQUIRED_TEXTURE)

    def test_texture_not_required_for_skin(self):
        issues = self.validator.validate(self.mat("Std_Skin_Body"), Category.SKIN_BODY)
        self.assertEqual(issues, [])

    def test_opaque_overlay_is_critical(self):
        issues = self.validator.validate(self.mat("Std_Tearline_R"), Category.EYE_OVERLAY)
        self.assertEqual(self.kinds(issues), [IssueKind.WRONG_BLEND_MODE])
        self.assertIs(issues[0].severity, Severity.CRITICAL)

    def test_other_blend_mismatch_is_warning(self):
        material = self.mat("Std_Skin_Body", blend_mode=BlendMode.FADE)
        issues = self.validator.validate(material, Category.SKIN_BODY)
        self.assertIssue(issues, IssueKind.WRONG_BLEND_MODE, Severity.WARNING)

    def test_z_write_mismatch_is_warning(self):
        material = self.mat("Std_Tearline_R", blend_mode=BlendMode.FADE, draw_order=3000)
        issues = self.validator.validate(material, Category.EYE_OVERLAY)
        self.assertEqual(self.kinds(issues), [IssueKind.WRONG_BLEND_MODE])
        self.assertIs(issues[0].severity, Severity.WARNING)

    def test_draw_order_too_low(self):
        material = self.mat(
            "Std_Tearline_R", blend_mode=BlendMode.FADE, z_write=False, draw_order=2500
        )
        issues = self.validator.validate(material, Category.EYE_OVERLAY)
        self.assertEqual(self.kinds(issues), [IssueKind.DRAW_ORDER_TOO_LOW])
        self.assertIs(issues[0].severity, Severity.WARNING)

    def test_other_category_is_not_checked(self):
        material = self.mat("XYZ_Custom", blend_mode=BlendMode.TRANSPARENT, z_write=False)
        self.assertEqual(self.validator.validate(material, Category.OTHER), [])

    def test_null_slot(self):
        graph = self.graph([self.node("Character/CC_Base_Eye", None)])
        index = self.index(textures=[self.tex("Unrelated")])
        issues = self.validator.inspect(graph, index)
        issue = self.assertIssue(issues, IssueKind.NULL_SLOT, Severity.CRITICAL)
        self.assertIs(issue.category, Category.EYE_BASE)
        self.assertIssue(issues, IssueKind.NO_REPLACEMENT_FOUND, Severity.WARNING)

    def test_placeholder_and_dangling_materials_are_null_slots(self):
        graph = self.graph(
            [self.node("Character/CC_Base_Body", "Default-Material", "Std_Gone")]
        )
        index = self.index(textures=[self.tex("Unrelated")])
        issues = [i for i in self.validator.inspect(graph, index) if i.kind is IssueKind.NULL_SLOT]
        self.assertEqual([i.slot_index for i in issues], [0, 1])

    def test_ambiguous_texture_replacement(self):
        graph = self.graph(
            [self.node("Character/CC_Base_Hair", "Std_Hair")], [self.hair_mat("Std_Hair")]
        )
        index = self.index(textures=[self.tex("Hair_A_Diffuse"), self.tex("Hair_B_Diffuse")])
        issues = self.validator.inspect(graph, index)
        self.assertEqual(
            self.kinds(issues),
            [IssueKind.MISSING_REQUIRED_TEXTURE, IssueKind.AMBIGUOUS_REPLACEMENT],
        )
        self.assertIs(issues[1].severity, Severity.WARNING)

    def test_unusable_textures_are_not_candidates(self):
        graph = self.graph(
            [self.node("Character/CC_Base_Eye", "Std_Eye_L")], [self.mat("Std_Eye_L")]
        )
        index = self.index(textures=[self.tex("Std_Eye_L_Diffuse", exists=False)])
        issues = self.validator.inspect(graph, index)
        self.assertIssue(issues, IssueKind.NO_REPLACEMENT_FOUND)

    def test_issues_follow_load_order(self):
        graph = self.graph(
            [
                self.node("Character/B_Eye", None),
                self.node("Character/A_Eye", None),
            ]
        )
        index = self.index(textures=[self.tex("Unrelated")])
        paths = [i.node_path for i in self.validator.inspect(graph, index)]
        self.assertEqual(paths[0], "Character/B_Eye")


# -----------------------------------------------------------------------------

if __name__ == "__main__":
    unittest.main(exit=False)
