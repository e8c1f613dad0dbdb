"""CLI entry-point for ref_audit.

Usage:
    python -m ref_audit scan <path> [<path> ...] [--ext .prefab ...] [--asset-root DIR]
    python -m ref_audit scan --preset presets/ui.json [--json] [--output FILE]
    python -m ref_audit scan <path> --all --jobs 4
    python -m ref_audit validate <path> [<path> ...] [--ext .prefab ...] [--asset-root DIR]
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

import jsonschema

from ref_audit import __version__
from ref_audit.contracts.load import validate_instance
from ref_audit.core.config import (
    DEFAULT_EXTENSIONS,
    ScanConfiguration,
    default_jobs,
    load_preset,
)
from ref_audit.core.runner import ScanOrchestrator
from ref_audit.core.validate import validate_config
from ref_audit.loaders import default_registry
from ref_audit.model.scan_result import LoadDiagnostic, ScanReport, ScanResult
from ref_audit.utils.exit_codes import ExitCode
from ref_audit.utils.json_norm import stable_json_dump, stable_json_dumps

# Seconds between wakeups while waiting on a background scan (keeps Ctrl-C responsive).
_POLL_INTERVAL = 0.2


def _add_config_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("paths", nargs="*", help="Root directories (or files) to check.")
    p.add_argument(
        "--ext",
        dest="extensions",
        action="append",
        default=None,
        metavar="EXT",
        help=f"File extension to check (repeatable). Default: {' '.join(DEFAULT_EXTENSIONS)}",
    )
    p.add_argument(
        "--asset-root",
        type=Path,
        default=None,
        help="Managed asset root; its .meta files resolve cross-file references.",
    )
    p.add_argument(
        "--preset",
        type=Path,
        default=None,
        help="JSON preset with check_asset_paths / check_file_extensions.",
    )


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="ref-audit",
        description="Find serialized object references that point at nothing.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging.")
    sub = p.add_subparsers(dest="command", required=True)

    scan = sub.add_parser("scan", help="Scan files and report missing references.")
    _add_config_args(scan)
    scan.add_argument(
        "--jobs",
        type=int,
        default=None,
        help="Worker threads for load + classify (default: REF_AUDIT_JOBS or 1).",
    )
    scan.add_argument("--json", action="store_true", help="Print a JSON report to stdout.")
    scan.add_argument("--output", type=Path, default=None, help="Also write the JSON report here.")
    scan.add_argument("--all", action="store_true", help="List clean files too.")
    scan.add_argument(
        "--summary-only",
        action="store_true",
        help="Report only which files are affected, not each missing field.",
    )

    validate = sub.add_parser("validate", help="Show advisory warnings for a configuration.")
    _add_config_args(validate)
    validate.add_argument("--json", action="store_true", help="Print warnings as JSON.")
    return p


def _config_from_args(args: argparse.Namespace) -> ScanConfiguration:
    overrides: dict = {}
    if args.asset_root is not None:
        overrides["asset_root"] = args.asset_root
    if getattr(args, "jobs", None) is not None:
        overrides["jobs"] = args.jobs

    if args.preset is not None:
        config = load_preset(args.preset, **overrides)
        if args.paths or args.extensions:
            config = ScanConfiguration(
                check_asset_paths=tuple(args.paths) or config.check_asset_paths,
                check_file_extensions=tuple(args.extensions or config.check_file_extensions),
                asset_root=config.asset_root,
                jobs=config.jobs,
            )
        return config

    overrides.setdefault("jobs", default_jobs())
    return ScanConfiguration.create(args.paths, args.extensions, **overrides)


def _print_result(result: ScanResult, *, show_all: bool) -> None:
    if result.has_missing_property:
        print(f"MISSING  {result.path}")
        for m in result.missing:
            target = f"guid {m.target_guid}" if m.target_guid else f"fileID {m.target_file_id}"
            if m.target_type is not None:
                target += f" (type {m.target_type})"
            print(f"         {m.type_tag}.{m.field_path} -> {target}")
    elif show_all:
        print(f"ok       {result.path}")


def _print_summary(report: ScanReport) -> None:
    outcome = report.outcome
    state = outcome.state.value if outcome else "running"
    if outcome is not None and outcome.cancelled:
        state += " (cancelled)"
    print(f"\nScan {state}", file=sys.stderr)
    print(f"   Files checked : {len(report.results)}", file=sys.stderr)
    print(f"   With missing  : {len(report.missing_paths)}", file=sys.stderr)
    if report.diagnostics:
        print(f"   Skipped       : {len(report.diagnostics)}", file=sys.stderr)
    if outcome is not None and outcome.error is not None:
        print(f"   Error         : {outcome.error}", file=sys.stderr)
    print("", file=sys.stderr)


def _run_scan(args: argparse.Namespace) -> int:
    try:
        config = _config_from_args(args)
    except (OSError, ValueError, jsonschema.ValidationError) as exc:
        print(f"error: cannot load preset: {exc}", file=sys.stderr)
        return ExitCode.ERROR

    if config.is_empty:
        print("error: nothing to scan (no paths or no extensions)", file=sys.stderr)
        return ExitCode.ERROR

    for w in validate_config(config, default_registry().extensions):
        print(f"warning: {w.value}: {w.reason}", file=sys.stderr)

    report = ScanReport()
    quiet = args.json

    def _on_result(result: ScanResult) -> None:
        report.results.append(result)
        if not quiet:
            _print_result(result, show_all=args.all)

    def _on_diagnostic(diag: LoadDiagnostic) -> None:
        report.diagnostics.append(diag)

    orchestrator = ScanOrchestrator(
        config,
        _on_result,
        lambda: None,
        lambda exc: None,
        on_diagnostic=_on_diagnostic,
        details=not args.summary_only,
    )
    handle = orchestrator.start()
    try:
        while not handle.done:
            handle.wait(_POLL_INTERVAL)
    except KeyboardInterrupt:
        handle.cancel()
        handle.wait()
    report.outcome = handle.outcome

    report_dict = report.to_dict()
    validate_instance(report_dict, "scan_report.schema.json")
    if args.json:
        sys.stdout.write(stable_json_dumps(report_dict))
    else:
        _print_summary(report)
    if args.output is not None:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        with args.output.open("w", encoding="utf-8") as fp:
            stable_json_dump(report_dict, fp)

    if report.outcome is None or not report.outcome.ok:
        return ExitCode.ERROR
    return ExitCode.VIOLATION if report.missing_paths else ExitCode.SUCCESS


def _run_validate(args: argparse.Namespace) -> int:
    try:
        config = _config_from_args(args)
    except (OSError, ValueError, jsonschema.ValidationError) as exc:
        print(f"error: cannot load preset: {exc}", file=sys.stderr)
        return ExitCode.ERROR

    warnings = validate_config(config, default_registry().extensions)
    if args.json:
        sys.stdout.write(stable_json_dumps({"warnings": warnings}))
    else:
        for w in warnings:
            print(f"{w.kind}: {w.value or '<empty>'}: {w.reason}")
        if not warnings:
            print("configuration ok")
    return ExitCode.VIOLATION if warnings else ExitCode.SUCCESS


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    if args.command == "scan":
        return _run_scan(args)
    return _run_validate(args)


if __name__ == "__main__":
    sys.exit(main())
