# !/usr/bin/python
# coding=utf-8
import unittest

from base_test import MatDocTestCase
from matdoctk import AssetMatcher


class AssetMatcherTest(MatDocTestCase):
    def setUp(self):
        self.matcher = AssetMatcher(self.rules)

    def test_score_table(self):
        score = self.matcher.score
        self.assertEqual(score("std_eye_l_diffuse", "Std_Eye_L_Diffuse"), 100)
        self.assertEqual(score("Std_Eye_L", "Eye_L"), 90)
        self.assertEqual(score("Eye_L", "EyeLDiffuse"), 85)
        self.assertEqual(
            score("Scalp_Transparency_Diffuse", "Scalp_Transparency_Diffuse_0002"), 50
        )

    def test_diffuse_bonus(self):
        self.assertEqual(self.matcher.score("Std_Hair", "Hair_A_Diffuse"), 70)
        self.assertEqual(self.matcher.score("Std_Hair", "Hair_A_Normal"), 50)

    def test_short_keys_do_not_substring_match(self):
        self.assertEqual(self.matcher.score("Ey", "Eye_L"), 0)

    def test_no_match(self):
        self.assertEqual(self.matcher.score("XYZ_Custom", "Std_Eye_L"), 0)
        self.assertEqual(self.matcher.score("", "Std_Eye_L"), 0)

    def test_exact_match_is_unambiguous(self):
        index = {
            "Scalp_Transparency_Diffuse_0002": self.tex("Scalp_Transparency_Diffuse_0002"),
            "Scalp_Transparency_Diffuse": self.tex("Scalp_Transparency_Diffuse"),
        }
        result = self.matcher.match("Scalp_Transparency_Diffuse", index)
        self.assertTrue(result.is_unambiguous)
        self.assertEqual([c.name for c in result], ["Scalp_Transparency_Diffuse"])
        self.assertEqual(result.best.score, 100)

    def test_ties_are_ordered_by_key(self):
        index = {
            "Hair_B_Diffuse": self.tex("Hair_B_Diffuse"),
            "Hair_A_Diffuse": self.tex("Hair_A_Diffuse"),
        }
        result = self.matcher.match("Std_Hair", index)
        self.assertTrue(result.is_ambiguous)
        self.assertIsNone(result.best)
        self.assertEqual([c.name for c in result], ["Hair_A_Diffuse", "Hair_B_Diffuse"])

    def test_ranking_is_independent_of_index_order(self):
        names = ["Skin_3", "Skin_1", "Skin_2"]
        forward = self.matcher.rank("Std_Skin", {n: n for n in names})
        backward = self.matcher.rank("Std_Skin", {n: n for n in reversed(names)})
        self.assertEqual([c.name for c in forward], [c.name for c in backward])

    def test_top_n_limit(self):
        index = {f"Skin_{i}": self.tex(f"Skin_{i}") for i in range(1, 8)}
        result = self.matcher.match("Std_Skin", index)
        self.assertEqual(len(result), 5)
        self.assertEqual(result.candidates[0].name, "Skin_1")
        self.assertEqual(len(self.matcher.match("Std_Skin", index, top_n=2)), 2)

    def test_empty_index(self):
        result = self.matcher.match("Std_Eye_L", {})
        self.assertTrue(result.is_empty)
        self.assertEqual(result.top_score, 0)

    def test_match_first_tries_queries_in_order(self):
        index = {"Std_Eye_R_Diffuse": self.tex("Std_Eye_R_Diffuse")}
        result = self.matcher.match_first(["XYZ_Custom", "Std_Eye_R"], index)
        self.assertEqual(result.query, "Std_Eye_R")
        self.assertEqual(result.best.name, "Std_Eye_R_Diffuse")

    def test_match_first_without_results(self):
        result = self.matcher.match_first(["XYZ_Custom", None], {})
        self.assertTrue(result.is_empty)
        self.assertEqual(result.query, "XYZ_Custom")


# -----------------------------------------------------------------------------

if __name__ == "__main__":
    unittest.main(exit=False)
