# !/usr/bin/python
# coding=utf-8
"""Rule tables for the integrity engine, loaded from YAML.

The packaged ``configs/integrity_rules.yaml`` is the single source of truth
for keywords, policies and matcher tuning.  An override file only needs the
keys it changes::

    rules = RuleConfig.load("studio_rules.yaml")
    engine = IntegrityEngine(rules=rules)

``MATDOCTK_RULES`` may name an override file used by :meth:`RuleConfig.default`.
"""
from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, FrozenSet, Mapping, Optional, Tuple, Union

import yaml

from matdoctk.errors import RuleConfigError
from matdoctk.graph_utils import Category
from matdoctk.mat_utils.render_policy import RenderPolicy

logger = logging.getLogger(__name__)

DEFAULT_RULES_PATH = Path(__file__).resolve().parent.parent / "configs" / "integrity_rules.yaml"
ENV_VAR = "MATDOCTK_RULES"


@dataclass(frozen=True)
class MatchSettings:
    """Scores and limits used by :class:`~matdoctk.mat_utils.asset_matcher.AssetMatcher`."""

    exact: int = 100
    normalized: int = 90
    suffixed: int = 85
    substring: int = 50
    preferred_bonus: int = 20
    unambiguous_score: int = 80
    top_n: int = 5
    min_substring_length: int = 3
    suffixes: Tuple[str, ...] = ("_diffuse",)
    preferred_token: str = "diffuse"

    @classmethod
    def from_dict(cls, data: Mapping) -> "MatchSettings":
        scores = data.get("scores", {}) or {}
        settings = cls(
            exact=int(scores.get("exact", cls.exact)),
            normalized=int(scores.get("normalized", cls.normalized)),
            suffixed=int(scores.get("suffixed", cls.suffixed)),
            substring=int(scores.get("substring", cls.substring)),
            preferred_bonus=int(scores.get("preferred_bonus", cls.preferred_bonus)),
            unambiguous_score=int(data.get("unambiguous_score", cls.unambiguous_score)),
            top_n=int(data.get("top_n", cls.top_n)),
            min_substring_length=int(
                data.get("min_substring_length", cls.min_substring_length)
            ),
            suffixes=tuple(data.get("suffixes", cls.suffixes)),
            preferred_token=str(data.get("preferred_token", cls.preferred_token)).lower(),
        )
        if settings.top_n < 1:
            raise RuleConfigError(f"matching.top_n must be at least 1: {settings.top_n}")
        if not settings.exact > settings.normalized > settings.suffixed > settings.substring:
            raise RuleConfigError(
                "matching scores must rank exact > normalized > suffixed > substring"
            )
        return settings


@dataclass(frozen=True)
class RuleConfig:
    """Immutable, validated rule set."""

    prefixes: Tuple[str, ...]
    suffixes: Tuple[str, ...]
    category_rules: Tuple[Tuple[Category, Tuple[str, ...]], ...]
    policies: Mapping[Category, RenderPolicy]
    texture_required: FrozenSet[Category]
    color_properties: Tuple[str, ...]
    default_shader: str
    error_shaders: FrozenSet[str]
    placeholder_materials: FrozenSet[str]
    matching: MatchSettings = field(default_factory=MatchSettings)
    source: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "policies", MappingProxyType(dict(self.policies)))

    def __hash__(self):
        return hash((self.prefixes, self.suffixes, self.category_rules, self.source))

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    @classmethod
    def default(cls) -> "RuleConfig":
        """The packaged rules, or the ``MATDOCTK_RULES`` override when set."""
        return _load_cached(os.environ.get(ENV_VAR) or None)

    @classmethod
    def load(cls, path: Optional[Union[str, Path]] = None) -> "RuleConfig":
        """Load *path* merged over the packaged defaults."""
        data = cls._read_yaml(DEFAULT_RULES_PATH)
        source = str(DEFAULT_RULES_PATH)
        if path:
            override = cls._read_yaml(Path(path))
            data = _merge(data, override)
            source = str(path)
            logger.debug(f"Merged rule overrides from '{path}'.")
        return cls.from_dict(data, source=source)

    @staticmethod
    def _read_yaml(path: Path) -> Dict[str, Any]:
        try:
            with open(path, "r", encoding="utf-8") as file:
                data = yaml.safe_load(file)
        except FileNotFoundError:
            raise RuleConfigError(f"Rules file not found: {path}") from None
        except yaml.YAMLError as error:
            raise RuleConfigError(f"Failed to parse rules file '{path}': {error}") from error
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise RuleConfigError(f"Rules file '{path}' must contain a mapping.")
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any], source: Optional[str] = None) -> "RuleConfig":
        try:
            naming = data.get("naming", {}) or {}
            category_rules = tuple(
                (
                    Category.parse(entry["category"]),
                    tuple(str(k).lower() for k in entry.get("keywords", [])),
                )
                for entry in data.get("categories", [])
            )
            if any(category is Category.OTHER for category, _ in category_rules):
                raise RuleConfigError("'Other' is the fallback category and takes no keywords.")

            policies = {
                Category.parse(name): RenderPolicy.from_dict(Category.parse(name), body)
                for name, body in (data.get("policies", {}) or {}).items()
            }
            textures = data.get("textures", {}) or {}
            shaders = data.get("shaders", {}) or {}
            return cls(
                prefixes=tuple(str(p).lower() for p in naming.get("prefixes", [])),
                suffixes=tuple(str(s).lower() for s in naming.get("suffixes", [])),
                category_rules=category_rules,
                policies=policies,
                texture_required=frozenset(
                    Category.parse(c) for c in textures.get("required_for", [])
                ),
                color_properties=tuple(textures.get("color_properties", ["_MainTex"])),
                default_shader=str(shaders.get("default", "Standard")),
                error_shaders=frozenset(shaders.get("error_names", [])),
                placeholder_materials=frozenset(data.get("placeholder_materials", [])),
                matching=MatchSettings.from_dict(data.get("matching", {}) or {}),
                source=source,
            )
        except RuleConfigError:
            raise
        except (KeyError, TypeError, ValueError) as error:
            raise RuleConfigError(f"Invalid rule configuration: {error}") from error

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def requires_texture(self, category: Category) -> bool:
        return category in self.texture_required

    def is_error_shader(self, name: Optional[str]) -> bool:
        return name in self.error_shaders

    def is_placeholder(self, material_name: Optional[str]) -> bool:
        return material_name in self.placeholder_materials


def _merge(base: Dict[str, Any], override: Mapping[str, Any]) -> Dict[str, Any]:
    """Recursively merge mappings; lists and scalars in *override* replace."""
    merged = copy.deepcopy(base)
    for key, value in override.items():
        if isinstance(value, Mapping) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


@lru_cache(maxsize=8)
def _load_cached(path: Optional[str]) -> RuleConfig:
    return RuleConfig.load(path)
