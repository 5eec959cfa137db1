# !/usr/bin/python
# coding=utf-8
import unittest

from base_test import MatDocTestCase
from matdoctk import BlendMode, Category, RenderPolicy, RenderPolicyTable


class RenderPolicyTest(MatDocTestCase):
    def setUp(self):
        self.table = RenderPolicyTable.from_rules(self.rules)

    def test_overlay_policy(self):
        policy = self.table.lookup(Category.EYE_OVERLAY)
        self.assertIs(policy.blend_mode, BlendMode.FADE)
        self.assertFalse(policy.z_write)
        self.assertEqual(policy.draw_order, 3000)
        self.assertEqual(policy.min_draw_order, 3000)

    def test_other_has_no_policy(self):
        self.assertNotIn(Category.OTHER, self.table)
        self.assertIsNone(self.table.lookup(Category.OTHER))

    def test_changes_for_opaque_overlay(self):
        policy = self.table.lookup(Category.EYE_OVERLAY)
        changes = policy.changes_for(self.mat("Std_Tearline_R"))
        self.assertEqual(
            changes, {"blend_mode": BlendMode.FADE, "z_write": False, "draw_order": 3000}
        )

    def test_higher_draw_order_is_kept(self):
        policy = self.table.lookup(Category.EYE_OVERLAY)
        material = self.mat("Std_Tearline_R", blend_mode=BlendMode.FADE, draw_order=3100)
        self.assertEqual(policy.changes_for(material), {"z_write": False})

    def test_low_draw_order_is_raised(self):
        policy = self.table.lookup(Category.EYE_OVERLAY)
        material = self.mat(
            "Std_Tearline_R", blend_mode=BlendMode.FADE, z_write=False, draw_order=2500
        )
        self.assertEqual(policy.changes_for(material), {"draw_order": 3000})

    def test_existing_cutoff_is_kept(self):
        policy = self.table.lookup(Category.HAIR)
        self.assertEqual(policy.changes_for(self.hair_mat("Std_Hair", cutoff=0.5)), {})

    def test_cutout_policy_sets_cutoff(self):
        policy = self.table.lookup(Category.HAIR)
        self.assertEqual(
            policy.changes_for(self.mat("Std_Hair")),
            {"blend_mode": BlendMode.CUTOUT, "draw_order": 2450, "cutoff": 0.3},
        )

    def test_cutoff_out_of_range(self):
        with self.assertRaises(ValueError):
            RenderPolicy.from_dict(
                Category.HAIR, {"blend_mode": "Cutout", "cutoff": 1.5}
            )

    def test_blend_mode_parse(self):
        self.assertIs(BlendMode.parse("fade"), BlendMode.FADE)
        self.assertIs(BlendMode.parse("CUTOUT"), BlendMode.CUTOUT)
        self.assertIs(BlendMode.parse(2), BlendMode.FADE)
        with self.assertRaises(ValueError):
            BlendMode.parse("Additive")


# -----------------------------------------------------------------------------

if __name__ == "__main__":
    unittest.main(exit=False)
