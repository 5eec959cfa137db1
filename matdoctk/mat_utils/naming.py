# !/usr/bin/python
# coding=utf-8
"""Name normalization shared by the classifier and the matcher."""
from __future__ import annotations

import re
from typing import Iterable, Optional

from matdoctk.env_utils.rule_config import RuleConfig

_SEPARATORS = re.compile(r"[\s_]+")
_WHITESPACE = re.compile(r"\s+")


def compact_name(name: str) -> str:
    """Lower-case *name* and drop whitespace and underscores, nothing else."""
    return _SEPARATORS.sub("", str(name or "").lower())


def strip_affixes(name: str, prefixes: Iterable[str], suffixes: Iterable[str]) -> str:
    """Strip each prefix, then each suffix (longest first), at most once each.

    Matching is case-insensitive; the result is lower-case.
    """
    result = _WHITESPACE.sub("_", str(name or "").strip().lower())
    for prefix in prefixes:
        if prefix and result.startswith(prefix) and len(result) > len(prefix):
            result = result[len(prefix) :]
    for suffix in sorted(suffixes, key=len, reverse=True):
        if suffix and result.endswith(suffix) and len(result) > len(suffix):
            result = result[: -len(suffix)]
    return result


def normalize_name(name: str, rules: Optional[RuleConfig] = None) -> str:
    """Return the comparable key of an asset or node name.

    Example:
        >>> normalize_name("Std_Eye_L_Diffuse")
        'eyel'
    """
    rules = rules or RuleConfig.default()
    return compact_name(strip_affixes(name, rules.prefixes, rules.suffixes))
