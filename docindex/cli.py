"""CLI entrypoints for docindex commands."""

from __future__ import annotations

import argparse
import getpass
import json
import sys
from pathlib import Path
from typing import List, Sequence

from .docs_store import format_size
from .errors import ConfigError, DocIndexError
from .freshness import ExitCode
from .logging import configure_logging, resolve_log_file
from .models import ActionKind, SyncPlan
from .patterns import DetectedPattern
from .orchestrator import (
    AddOutcome,
    AuthStatus,
    FrameworkOutcome,
    IndexOutcome,
    Orchestrator,
    OrphanDocs,
)

_STATUS_ICONS = {"ok": "+", "warn": "!", "error": "x", "info": "-"}


def _add_verbose_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    kwargs: dict[str, object] = {
        "action": "store_true",
        "help": "Increase log verbosity for troubleshooting.",
    }
    if suppress_default:
        kwargs["default"] = argparse.SUPPRESS
    else:
        kwargs["default"] = False
    parser.add_argument("-v", "--verbose", **kwargs)


def _add_log_file_option(
    parser: argparse.ArgumentParser, *, suppress_default: bool = False
) -> None:
    parser.add_argument(
        "--log-file",
        default=argparse.SUPPRESS if suppress_default else None,
        help="Also write debug logs to this file (relative to the project root).",
    )


def _add_common_options(parser: argparse.ArgumentParser) -> None:
    _add_verbose_option(parser, suppress_default=True)
    _add_log_file_option(parser, suppress_default=True)


def _add_root_option(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        default=".",
        help="Path to the project root (defaults to current directory).",
    )


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="docindex",
        description="Keep a local framework docs cache and a compact CLAUDE.md index in sync with package.json.",
    )
    _add_verbose_option(parser)
    _add_log_file_option(parser)
    subparsers = parser.add_subparsers(dest="command", required=True)

    init_parser = subparsers.add_parser("init", help="Initialize docindex in a Node.js project.")
    _add_common_options(init_parser)
    _add_root_option(init_parser)
    init_parser.add_argument("--force", action="store_true", help="Reinitialize an existing setup.")
    init_parser.add_argument("--no-detect", action="store_true", help="Skip framework detection.")
    init_parser.add_argument("--internal", action="store_true", help="Create the internal docs directory.")

    add_parser = subparsers.add_parser("add", help="Fetch docs for one or more frameworks.")
    _add_common_options(add_parser)
    _add_root_option(add_parser)
    add_parser.add_argument("frameworks", nargs="+", help="Framework names, e.g. hono drizzle.")
    add_parser.add_argument("--version", dest="framework_version", help="Version to record for the docs.")
    add_parser.add_argument("--force", action="store_true", help="Overwrite existing docs.")
    add_parser.add_argument("--no-index", action="store_true", help="Do not update the CLAUDE.md index.")
    add_parser.add_argument("--offline", action="store_true", help="Write placeholders without fetching.")

    sync_parser = subparsers.add_parser("sync", help="Reconcile docs with package.json.")
    _add_common_options(sync_parser)
    _add_root_option(sync_parser)
    sync_parser.add_argument("--check", action="store_true", help="Report pending changes and exit 1 if any.")
    sync_parser.add_argument("--prune", action="store_true", help="Remove docs for undeclared frameworks.")
    sync_parser.add_argument("-y", "--yes", action="store_true", help="Apply changes without confirmation.")
    sync_parser.add_argument("--offline", action="store_true", help="Write placeholders without fetching.")

    update_parser = subparsers.add_parser("update", help="Re-fetch docs for installed frameworks.")
    _add_common_options(update_parser)
    _add_root_option(update_parser)
    update_parser.add_argument("frameworks", nargs="*", help="Frameworks to refresh (defaults to all).")
    update_parser.add_argument("--no-index", action="store_true", help="Do not update the CLAUDE.md index.")

    status_parser = subparsers.add_parser("status", help="Show cached docs and limits.")
    _add_common_options(status_parser)
    _add_root_option(status_parser)

    clean_parser = subparsers.add_parser("clean", help="Remove docs for frameworks no longer declared.")
    _add_common_options(clean_parser)
    _add_root_option(clean_parser)
    clean_parser.add_argument("--dry-run", action="store_true", help="Show what would be removed.")
    clean_parser.add_argument("-y", "--yes", action="store_true", help="Remove without confirmation.")

    check_parser = subparsers.add_parser("check", help="Check docs freshness against npm.")
    _add_common_options(check_parser)
    _add_root_option(check_parser)
    check_parser.add_argument("--json", action="store_true", help="Print the report as JSON.")
    check_parser.add_argument(
        "--stale-days",
        type=int,
        default=30,
        help="Age in days after which docs without an npm package are stale.",
    )

    doctor_parser = subparsers.add_parser("doctor", help="Diagnose the docindex setup.")
    _add_common_options(doctor_parser)
    _add_root_option(doctor_parser)

    list_parser = subparsers.add_parser("list", help="List frameworks with doc templates.")
    _add_common_options(list_parser)
    list_parser.add_argument("--category", help="Only show one category.")

    index_parser = subparsers.add_parser("index", help="Rebuild the CLAUDE.md index from the docs cache.")
    _add_common_options(index_parser)
    _add_root_option(index_parser)

    generate_parser = subparsers.add_parser("generate", help="Generate internal pattern docs from the codebase.")
    _add_common_options(generate_parser)
    _add_root_option(generate_parser)
    generate_parser.add_argument("kind", choices=["internal"], help="Type of docs to generate.")
    generate_parser.add_argument("--category", help="Only run detectors for one category.")
    generate_parser.add_argument("--dry-run", action="store_true", help="Show what would be generated.")
    generate_parser.add_argument("-y", "--yes", action="store_true", help="Write docs without confirmation.")

    auth_parser = subparsers.add_parser("auth", help="Store or inspect the Context7 API key.")
    _add_common_options(auth_parser)
    auth_mode = auth_parser.add_mutually_exclusive_group()
    auth_mode.add_argument("--key", help="API key to store (prompted for when omitted).")
    auth_mode.add_argument("--status", action="store_true", help="Show where the API key comes from.")
    auth_mode.add_argument("--logout", action="store_true", help="Remove the stored API key.")

    serve_parser = subparsers.add_parser("serve", help="Run the HTTP service.")
    _add_common_options(serve_parser)
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)

    return parser


def main(argv: list[str] | None = None) -> None:
    """CLI entrypoint for docindex commands."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    configure_logging(
        verbose=bool(args.verbose),
        log_file=resolve_log_file(getattr(args, "log_file", None), getattr(args, "root", ".")),
    )

    orchestrator = Orchestrator()

    try:
        code = _dispatch(orchestrator, args)
    except ConfigError as exc:
        parser.exit(1, _format_error(exc, exc.format_issues()))
    except DocIndexError as exc:
        parser.exit(1, _format_error(exc))
    except KeyboardInterrupt:  # pragma: no cover - interactive path
        parser.exit(130, "Interrupted\n")
    if code:
        sys.exit(code)


def _dispatch(orchestrator: Orchestrator, args: argparse.Namespace) -> int:
    command = args.command
    if command == "init":
        return _cmd_init(orchestrator, args)
    if command == "add":
        result = orchestrator.run_add(
            args.root,
            args.frameworks,
            version=args.framework_version,
            force=bool(args.force),
            index=not args.no_index,
            offline=bool(args.offline),
        )
        _print_add(result)
        return 0
    if command == "sync":
        return _cmd_sync(orchestrator, args)
    if command == "update":
        result = orchestrator.run_update(args.root, args.frameworks, index=not args.no_index)
        _print_add(result, verb="Updated")
        return 0
    if command == "status":
        return _cmd_status(orchestrator, args)
    if command == "clean":
        return _cmd_clean(orchestrator, args)
    if command == "check":
        return _cmd_check(orchestrator, args)
    if command == "doctor":
        return _cmd_doctor(orchestrator, args)
    if command == "list":
        return _cmd_list(orchestrator, args)
    if command == "index":
        _print_index(orchestrator.run_index(args.root))
        return 0
    if command == "generate":
        return _cmd_generate(orchestrator, args)
    if command == "auth":
        return _cmd_auth(orchestrator, args)
    if command == "serve":  # pragma: no cover - integration path
        from .service import run_service

        run_service(host=args.host, port=args.port)
        return 0
    raise DocIndexError(f"Unknown command {command!r}")  # pragma: no cover - argparse enforces choices


def _cmd_init(orchestrator: Orchestrator, args: argparse.Namespace) -> int:
    result = orchestrator.run_init(
        args.root,
        force=bool(args.force),
        detect=not args.no_detect,
        internal=bool(args.internal),
    )
    print(f"Initialized docindex for {result.project_name} ({result.project_type})")
    print(f"Config written to {_relativize(result.config_path)}")
    if result.gitignore_updated:
        print("Updated .gitignore")
    documented = [record for record in result.detected if record.template_ref]
    if documented:
        print("\nDetected frameworks:")
        for record in documented:
            print(f"  {record.key} ({record.name}@{record.version_specifier})")
        names = " ".join(dict.fromkeys(record.key for record in documented))
        print(f"\nNext: docindex add {names}")
    else:
        print("\nNext: docindex add <framework>  (see `docindex list`)")
    return 0


def _cmd_sync(orchestrator: Orchestrator, args: argparse.Namespace) -> int:
    confirm = None if args.yes else _confirm_plan
    result = orchestrator.run_sync(
        args.root,
        check=bool(args.check),
        prune=bool(args.prune),
        offline=bool(args.offline),
        confirm=confirm,
    )
    plan = result.plan
    if plan.is_in_sync:
        print("Docs are in sync with package.json")
        return 0
    if args.check:
        _print_plan(plan)
        return 1
    if result.cancelled:
        print("Sync cancelled")
        return 0
    for outcome in result.added:
        _print_framework(outcome, "Added")
    for outcome in result.updated:
        _print_framework(outcome, "Updated")
    for name in result.removed:
        print(f"Removed {name}")
    skipped = [action.framework for action in plan.of_kind(ActionKind.REMOVE) if action.framework not in result.removed]
    if skipped:
        print(f"Kept undeclared frameworks: {', '.join(skipped)} (use --prune to remove)")
    if result.index is not None:
        _print_index(result.index)
    return 0


def _cmd_status(orchestrator: Orchestrator, args: argparse.Namespace) -> int:
    report = orchestrator.run_status(args.root)
    print(f"Project: {report.project_name}")
    print("\nFrameworks:")
    if not report.frameworks:
        print("  (none)")
    for item in report.frameworks:
        line = f"  {item.name}@{item.version}  {item.files} files  {format_size(item.size_bytes)}"
        if item.update_available:
            line += f"  (package.json has {item.installed_version})"
        print(line)
    if report.internal:
        print("\nInternal:")
        for category in report.internal:
            print(f"  {category.category}  {category.files} files  {format_size(category.size_bytes)}")
    print(f"\nIndex: {report.index_kb:.2f}KB / {report.max_index_kb:.1f}KB ({_percent(report.index_kb, report.max_index_kb)})")
    print(f"Docs:  {report.docs_kb:.1f}KB / {report.max_docs_kb:.1f}KB ({_percent(report.docs_kb, report.max_docs_kb)})")
    print(f"Last sync: {report.last_sync or 'never'}")
    if report.missing:
        names = " ".join(dict.fromkeys(record.key for record in report.missing))
        print(f"\nDetected without docs: {names}")
        print(f"Run: docindex add {names}")
    return 0


def _cmd_clean(orchestrator: Orchestrator, args: argparse.Namespace) -> int:
    confirm = None if args.yes else _confirm_orphans
    result = orchestrator.run_clean(args.root, dry_run=bool(args.dry_run), confirm=confirm)
    if not result.orphans:
        print("No orphaned docs found")
        return 0
    print("Orphaned docs:")
    for orphan in result.orphans:
        print(f"  {orphan.name}  {format_size(orphan.size_bytes)}")
    if result.dry_run:
        print("\nDry run: nothing removed")
        return 0
    if result.cancelled:
        print("Clean cancelled")
        return 0
    print(f"\nRemoved {len(result.removed)} framework(s), freed {format_size(result.freed_bytes)}")
    if result.index_after_kb is not None:
        print(f"Index: {result.index_before_kb:.2f}KB -> {result.index_after_kb:.2f}KB")
    return 0


def _cmd_check(orchestrator: Orchestrator, args: argparse.Namespace) -> int:
    report = orchestrator.run_check(args.root, stale_days=args.stale_days)
    if args.json:
        print(json.dumps(report.to_dict(), indent=2))
        return int(report.exit_code)
    if report.exit_code is ExitCode.NETWORK_ERROR:
        print(f"Could not reach the npm registry: {report.error}")
        return int(report.exit_code)
    for result in report.results:
        latest = f" -> {result.latest_version}" if result.latest_version else ""
        indexed = result.indexed_version or "-"
        detail = f" ({result.diff_type})" if result.diff_type else ""
        print(f"  {result.status:<11} {result.framework}@{indexed}{latest}{detail}")
    summary = report.summary
    print(
        f"\n{summary['total']} checked: {summary['up_to_date']} up to date, {summary['stale']} stale, "
        f"{summary['missing']} missing, {summary['orphaned']} orphaned"
    )
    return int(report.exit_code)


def _cmd_doctor(orchestrator: Orchestrator, args: argparse.Namespace) -> int:
    report = orchestrator.run_doctor(args.root)
    for item in report.results:
        print(f"[{_STATUS_ICONS.get(item.status, '?')}] {item.name}: {item.message}")
        if item.hint:
            print(f"    {item.hint}")
    if report.errors:
        print(f"\n{len(report.errors)} error(s), {len(report.warnings)} warning(s)")
        return 1
    if report.warnings:
        print(f"\n{len(report.warnings)} warning(s)")
    else:
        print("\nAll checks passed")
    return 0


def _cmd_list(orchestrator: Orchestrator, args: argparse.Namespace) -> int:
    grouped = orchestrator.list_templates(args.category)
    for category, templates in grouped.items():
        print(f"{category}:")
        if not templates:
            print("  (none)")
        for template in templates:
            print(f"  {template.name:<16} {template.display_name} {template.version}  {template.description}")
    return 0


def _cmd_generate(orchestrator: Orchestrator, args: argparse.Namespace) -> int:
    confirm = None if args.yes or args.dry_run else _confirm_patterns
    result = orchestrator.run_generate(
        args.root,
        category=args.category,
        dry_run=bool(args.dry_run),
        confirm=confirm,
    )
    print(f"Scanned {result.scanned_files} files ({result.read_files} read)")
    if not result.patterns:
        print("No patterns detected.")
        return 0
    if confirm is None:
        _print_patterns(result.patterns)
    if result.dry_run:
        print("\nDry run:")
        for pattern in result.patterns:
            print(f"  Would generate: .claude-docs/internal/{pattern.doc_path}")
        return 0
    if result.cancelled:
        print("Generate cancelled")
        return 0
    for doc in result.written:
        print(f"Generated {_relativize(doc.path)} ({format_size(doc.size_bytes)})")
    if result.index is not None:
        _print_index(result.index)
    return 0


def _cmd_auth(orchestrator: Orchestrator, args: argparse.Namespace) -> int:
    if args.status:
        _print_auth_status(orchestrator.auth_status())
        return 0
    if args.logout:
        if orchestrator.run_logout():
            print("Removed stored API key")
        else:
            print("No stored API key")
        return 0
    key = args.key
    if key is None:
        if not sys.stdin.isatty():
            raise DocIndexError(
                "No API key given.",
                hint="Pass it with `docindex auth --key ctx7sk-...`.",
                code="MISSING_API_KEY",
            )
        key = getpass.getpass("Context7 API key: ")  # pragma: no cover - interactive path
    path = orchestrator.run_login(key)
    print(f"API key saved to {path}")
    return 0


def _print_auth_status(status: AuthStatus) -> None:
    if status.source == "env":
        print("API key: from CONTEXT7_API_KEY")
        if status.stored:
            print(f"A stored key in {status.credentials_path} is also present (environment wins)")
    elif status.source == "stored":
        configured = f" (saved {status.configured_at})" if status.configured_at else ""
        print(f"API key: stored in {status.credentials_path}{configured}")
    else:
        print("API key: not configured")
        print("Run `docindex auth` or export CONTEXT7_API_KEY=ctx7sk-...")


def _print_patterns(patterns: List[DetectedPattern]) -> None:
    print("Detected patterns:")
    for pattern in patterns:
        print(f"  {pattern.name} [{pattern.category}] ({pattern.confidence} confidence)")
        for item in pattern.evidence[:3]:
            print(f"    {item}")


def _print_add(result: AddOutcome, verb: str = "Added") -> None:
    if not result.source_available:
        print("No documentation source available; writing placeholders (run `docindex auth` to fetch docs)")
    for outcome in result.added:
        _print_framework(outcome, verb)
    if result.skipped:
        print(f"Skipped: {', '.join(result.skipped)}")
    if result.unknown:
        print(f"Unknown frameworks: {', '.join(result.unknown)} (see `docindex list`)")
    if result.index is not None:
        _print_index(result.index)


def _print_framework(outcome: FrameworkOutcome, verb: str) -> None:
    line = f"{verb} {outcome.display_name}@{outcome.version}: {len(outcome.files)} files ({format_size(outcome.total_bytes)})"
    if outcome.placeholder_count:
        line += f", {outcome.placeholder_count} placeholder(s)"
    print(line)


def _print_index(index: IndexOutcome) -> None:
    action = "Created" if index.created else ("Updated" if index.changed else "Unchanged")
    print(f"{action} index in {_relativize(index.path)} ({index.size_kb:.2f}KB)")
    if index.over_limit:
        print(f"Warning: index exceeds the {index.limit_kb:.1f}KB limit")


def _print_plan(plan: SyncPlan) -> None:
    print("Pending changes:")
    for action in plan.actions:
        versions = ""
        if action.current_version and action.new_version:
            versions = f" {action.current_version} -> {action.new_version}"
        elif action.new_version:
            versions = f" {action.new_version}"
        print(f"  {action.kind.value:<6} {action.framework}{versions} ({action.reason})")


def _confirm_plan(plan: SyncPlan) -> bool:
    _print_plan(plan)
    return _ask("Apply these changes?")


def _confirm_orphans(orphans: List[OrphanDocs]) -> bool:
    return _ask(f"Remove docs for {', '.join(orphan.name for orphan in orphans)}?")


def _confirm_patterns(patterns: List[DetectedPattern]) -> bool:
    _print_patterns(patterns)
    return _ask(f"Write {len(patterns)} internal doc(s)?")


def _ask(question: str) -> bool:
    if not sys.stdin.isatty():
        return True
    answer = input(f"{question} [Y/n] ").strip().lower()
    return answer in ("", "y", "yes")


def _format_error(exc: DocIndexError, details: str = "") -> str:
    lines: Sequence[str] = [f"Error: {exc}"]
    if details:
        lines = [*lines, details]
    if exc.hint:
        lines = [*lines, f"Fix: {exc.hint}"]
    return "\n".join(lines) + "\n"


def _percent(value: float, limit: float) -> str:
    if limit <= 0:
        return "n/a"
    return f"{value / limit * 100:.0f}%"


def _relativize(path: Path) -> str:
    try:
        return str(path.relative_to(Path.cwd()))
    except ValueError:
        return str(path)


if __name__ == "__main__":
    main(sys.argv[1:])
