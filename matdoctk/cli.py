# !/usr/bin/python
# coding=utf-8
"""Command line entry point.

Exit status: 0 when no critical issue remains, 1 when critical issues remain,
2 when a collaborator failed (unreadable store, empty index, bad rules).
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from matdoctk.core_utils import report
from matdoctk.core_utils.integrity import IntegrityEngine
from matdoctk.env_utils.graph_store import GraphStore
from matdoctk.env_utils.rule_config import RuleConfig
from matdoctk.errors import IntegrityError, RuleConfigError
from matdoctk.graph_utils import Snapshot, diff_snapshots

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_CRITICAL = 1
EXIT_FAILURE = 2


def _emit(data: dict, out: Optional[str]) -> None:
    text = report.to_json(data)
    if out:
        path = Path(out)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text + "\n", encoding="utf-8")
        logger.info(f"Report written to '{path}'.")
    else:
        print(text)


def _engine(args) -> IntegrityEngine:
    rules = RuleConfig.load(args.rules) if args.rules else RuleConfig.default()
    return IntegrityEngine(rules=rules, log_level=args.log_level)


def _cmd_diagnose(args, store: GraphStore) -> int:
    graph = store.load_graph(args.graph)
    index = store.load_index(args.index)
    diagnosis = _engine(args).diagnose(graph, index)
    _emit(report.diagnosis_report(diagnosis), args.out)
    return EXIT_CRITICAL if diagnosis.has_critical else EXIT_OK


def _cmd_verify(args, store: GraphStore) -> int:
    graph = store.load_graph(args.graph)
    index = store.load_index(args.index)
    passed, diagnosis = _engine(args).verify(graph, index)
    _emit(report.verify_report(passed, diagnosis), args.out)
    return EXIT_OK if passed else EXIT_CRITICAL


def _cmd_fix(args, store: GraphStore) -> int:
    graph = store.load_graph(args.graph)
    index = store.load_index(args.index)
    result = _engine(args).fix(graph, index)
    if args.dry_run:
        logger.info(f"Dry run: {len(result.patches)} patch(es) not saved.")
        passed = not result.before.has_critical
    else:
        if result.patches:
            store.save_graph(result.graph, args.save or args.graph)
        passed = result.passed
    _emit(report.fix_report(result, dry_run=args.dry_run), args.out)
    return EXIT_OK if passed else EXIT_CRITICAL


def _cmd_diff(args, store: GraphStore) -> int:
    before = Snapshot.capture(store.load_graph(args.before), label=args.before)
    after = Snapshot.capture(store.load_graph(args.after), label=args.after)
    entries = diff_snapshots(before, after)
    _emit(report.diff_report(entries, args.before, args.after), args.out)
    return EXIT_OK


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matdoctk",
        description="Diagnose and repair material bindings of a content graph.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Report issues and the dominant root cause
  matdoctk diagnose character.yaml assets.yaml

  # Preview repairs without saving
  matdoctk fix character.yaml assets.yaml --dry-run

  # Compare bindings before and after an import
  matdoctk diff before.yaml after.yaml
        """,
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level (default: WARNING)",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    def _graph_command(name, help_text, func):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument("graph", help="Graph document (YAML or JSON)")
        cmd.add_argument("index", help="Asset index document (YAML or JSON)")
        cmd.add_argument("--rules", help="Rule override file merged over the defaults")
        cmd.add_argument("--out", help="Write the JSON report here instead of stdout")
        cmd.set_defaults(func=func)
        return cmd

    _graph_command("diagnose", "Report issues without changing anything", _cmd_diagnose)
    _graph_command("verify", "Pass only when no critical issue remains", _cmd_verify)
    fix = _graph_command("fix", "Apply confident repairs and re-diagnose", _cmd_fix)
    fix.add_argument(
        "--dry-run",
        action="store_true",
        help="Plan and report the repairs without saving the graph",
    )
    fix.add_argument("--save", help="Write the repaired graph here (default: GRAPH)")

    diff = sub.add_parser("diff", help="Compare slot bindings of two graph documents")
    diff.add_argument("before", help="Graph captured before the change")
    diff.add_argument("after", help="Graph captured after the change")
    diff.add_argument("--out", help="Write the JSON report here instead of stdout")
    diff.set_defaults(func=_cmd_diff)
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Command-line entry point."""
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=args.log_level, format="%(levelname)s %(name)s: %(message)s"
    )
    try:
        return args.func(args, GraphStore())
    except (IntegrityError, RuleConfigError) as error:
        logger.error(str(error))
        return EXIT_FAILURE


if __name__ == "__main__":
    sys.exit(main())
