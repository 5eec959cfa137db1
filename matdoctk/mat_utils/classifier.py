# !/usr/bin/python
# coding=utf-8
"""Keyword based category classification of node and material names."""
from __future__ import annotations

from typing import Optional

import pythontk as ptk

from matdoctk.env_utils.rule_config import RuleConfig
from matdoctk.graph_utils import Category
from matdoctk.mat_utils.naming import normalize_name


class CategoryClassifier(ptk.LoggingMixin):
    """Assign one :class:`Category` to a name.

    Keyword sets are tried in the configured precedence order against the
    normalized name and the first set with a hit wins.  Overlay keywords come
    before eye keywords so that ``Std_Cornea_L`` is an overlay even though it
    also reads as an eye.  Names that hit nothing are ``Category.OTHER``.
    """

    def __init__(self, rules: Optional[RuleConfig] = None):
        super().__init__()
        self.rules = rules or RuleConfig.default()

    def classify(self, name: Optional[str]) -> Category:
        key = normalize_name(name or "", self.rules)
        if not key:
            return Category.OTHER
        for category, keywords in self.rules.category_rules:
            for keyword in keywords:
                if keyword and keyword in key:
                    return category
        return Category.OTHER

    def classify_slot(self, node_name: str, material_name: Optional[str]) -> Category:
        """Category of a slot: the material's, or the node's when the material is unknown."""
        category = self.classify(material_name) if material_name else Category.OTHER
        if category is Category.OTHER:
            category = self.classify(node_name)
        self.logger.debug(f"Classified '{node_name}' / '{material_name}' as {category.value}")
        return category


def classify(name: Optional[str], rules: Optional[RuleConfig] = None) -> Category:
    """Functional shortcut for :meth:`CategoryClassifier.classify`."""
    return CategoryClassifier(rules).classify(name)
