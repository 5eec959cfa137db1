# !/usr/bin/python
# coding=utf-8
"""Scored name matching of broken bindings against an asset index.

Scores are fixed integers so results are reproducible and explainable:

===============================================  =====
rule                                             score
===============================================  =====
same name (case-insensitive)                       100
same normalized key                                 90
normalized key plus a known suffix (``_diffuse``)   85
normalized keys contain one another                 50
  ... and the candidate names a color map          +20
===============================================  =====

A top score at or above ``unambiguous_score`` short-circuits the ranking and
only the top candidate is returned.  Below that every positive candidate is
returned, best first, with ties broken by normalized key and then raw name.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generic, List, Mapping, Optional, Tuple, TypeVar

import pythontk as ptk

from matdoctk.env_utils.rule_config import RuleConfig
from matdoctk.mat_utils.naming import compact_name, normalize_name

T = TypeVar("T")


@dataclass(frozen=True)
class MatchCandidate(Generic[T]):
    name: str
    asset: T
    score: int
    key: str

    @property
    def sort_key(self) -> Tuple[int, str, str]:
        return (-self.score, self.key, self.name)

    def to_dict(self) -> dict:
        return {"name": self.name, "score": self.score, "key": self.key}


@dataclass(frozen=True)
class MatchResult(Generic[T]):
    """Ranked candidates for one query."""

    query: str
    candidates: Tuple[MatchCandidate, ...] = ()

    def __len__(self):
        return len(self.candidates)

    def __iter__(self):
        return iter(self.candidates)

    @property
    def is_empty(self) -> bool:
        return not self.candidates

    @property
    def top_score(self) -> int:
        return self.candidates[0].score if self.candidates else 0

    @property
    def top(self) -> Tuple[MatchCandidate, ...]:
        """Every candidate sharing the top score."""
        return tuple(c for c in self.candidates if c.score == self.top_score)

    @property
    def is_ambiguous(self) -> bool:
        return len(self.top) > 1

    @property
    def is_unambiguous(self) -> bool:
        return len(self.top) == 1

    @property
    def best(self) -> Optional[MatchCandidate]:
        """The single top candidate, or None when empty or ambiguous."""
        return self.candidates[0] if self.is_unambiguous else None

    def to_dict(self) -> dict:
        return {
            "query": self.query,
            "candidates": [c.to_dict() for c in self.candidates],
        }


class AssetMatcher(ptk.LoggingMixin):
    """Rank replacement candidates for a missing or broken binding."""

    def __init__(self, rules: Optional[RuleConfig] = None):
        super().__init__()
        self.rules = rules or RuleConfig.default()
        self.settings = self.rules.matching

    def score(self, query: str, candidate: str) -> int:
        """Score a single candidate name against *query*; 0 means no match."""
        s = self.settings
        if not query or not candidate:
            return 0
        if query.strip().lower() == candidate.strip().lower():
            return s.exact

        query_key = normalize_name(query, self.rules)
        cand_key = normalize_name(candidate, self.rules)
        if query_key and query_key == cand_key:
            return s.normalized

        query_compact = compact_name(query)
        cand_compact = compact_name(candidate)
        for suffix in s.suffixes:
            tail = compact_name(suffix)
            if query_key and cand_compact == query_key + tail:
                return s.suffixed
            if cand_key and query_compact == cand_key + tail:
                return s.suffixed

        shortest = min(len(query_key), len(cand_key))
        if shortest >= s.min_substring_length and (
            query_key in cand_key or cand_key in query_key
        ):
            score = s.substring
            token = s.preferred_token
            if token and token in cand_compact and token not in query_compact:
                score += s.preferred_bonus
            return score
        return 0

    def rank(self, query: str, index: Mapping[str, T]) -> List[MatchCandidate]:
        """Every positive candidate in deterministic order, uncapped."""
        candidates = []
        for name, asset in index.items():
            score = self.score(query, name)
            if score > 0:
                candidates.append(
                    MatchCandidate(name, asset, score, normalize_name(name, self.rules))
                )
        candidates.sort(key=lambda c: c.sort_key)
        return candidates

    def match(
        self, query: str, index: Mapping[str, T], top_n: Optional[int] = None
    ) -> MatchResult:
        """Return the ranked :class:`MatchResult` for *query* against *index*."""
        ranked = self.rank(query, index)
        if ranked and ranked[0].score >= self.settings.unambiguous_score:
            result = tuple(c for c in ranked if c.score == ranked[0].score)
        else:
            result = tuple(ranked[: top_n or self.settings.top_n])

        if not result:
            self.logger.debug(f"No candidates for '{query}'.")
        elif len(result) > 1 and result[0].score == result[1].score:
            self.logger.debug(
                f"Ambiguous match for '{query}': "
                f"{', '.join(c.name for c in result if c.score == result[0].score)}"
            )
        else:
            self.logger.debug(
                f"Best match for '{query}': '{result[0].name}' ({result[0].score})"
            )
        return MatchResult(query=query, candidates=result)

    def match_first(self, queries, index: Mapping[str, Any]) -> MatchResult:
        """Try each query in turn; return the first unambiguous result.

        Falls back to the first non-empty result, then to an empty one.
        """
        fallback = None
        for query in ptk.make_iterable(queries):
            if not query:
                continue
            result = self.match(query, index)
            if result.is_unambiguous:
                return result
            if fallback is None and not result.is_empty:
                fallback = result
        if fallback is not None:
            return fallback
        first = next((q for q in ptk.make_iterable(queries) if q), "")
        return MatchResult(query=first)
