# !/usr/bin/python
# coding=utf-8
"""Structured reports for the diagnose, fix, verify and diff commands."""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any, Dict, Iterable, Optional

from matdoctk.core_utils.diagnostics.root_cause import Diagnosis
from matdoctk.graph_utils import DiffEntry


def _timestamp(now: Optional[datetime] = None) -> str:
    return (now or datetime.now()).isoformat(timespec="seconds")


def diagnosis_report(
    diagnosis: Diagnosis, command: str = "diagnose", now: Optional[datetime] = None
) -> Dict[str, Any]:
    """``{timestamp, issues[], rootCause, remediation}`` plus summary counts."""
    report = {"command": command, "timestamp": _timestamp(now)}
    report.update(diagnosis.to_dict())
    return report


def verify_report(
    passed: bool, diagnosis: Diagnosis, now: Optional[datetime] = None
) -> Dict[str, Any]:
    report = diagnosis_report(diagnosis, command="verify", now=now)
    report["passed"] = passed
    return report


def fix_report(result, dry_run: bool = False, now: Optional[datetime] = None) -> Dict[str, Any]:
    """Diagnosis of the stored graph plus ``patchesApplied`` and ``unresolved``.

    After a real fix the top level describes the saved, repaired graph.  On a
    dry run nothing is saved, so the top level describes the unchanged graph
    and the repaired outcome moves to ``projected``.
    """
    current = result.before if dry_run else result.after
    report = diagnosis_report(current, command="fix", now=now)
    report.update(
        {
            "dryRun": dry_run,
            "rootCauseBefore": result.before.root_cause.value,
            "patchesApplied": 0 if dry_run else len(result.patches),
            "patches": [p.to_dict() for p in result.patches],
            "unresolved": [i.to_dict() for i in result.unresolved],
            "passed": not current.has_critical,
        }
    )
    if dry_run:
        report["projected"] = {
            "rootCause": result.after.root_cause.value,
            "remediation": result.after.remediation,
            "critical": len(result.after.critical),
            "passed": result.passed,
        }
    return report


def diff_report(
    entries: Iterable[DiffEntry], before: str, after: str, now: Optional[datetime] = None
) -> Dict[str, Any]:
    entries = list(entries)
    return {
        "command": "diff",
        "timestamp": _timestamp(now),
        "before": before,
        "after": after,
        "changed": len(entries),
        "entries": [e.to_dict() for e in entries],
    }


def to_json(report: Dict[str, Any]) -> str:
    return json.dumps(report, indent=2, sort_keys=False)
