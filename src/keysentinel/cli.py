# SPDX-License-Identifier: MIT
"""
KeySentinel - Command Line Interface

This CLI provides:
- keysentinel version
- keysentinel scan [--pre-push | --range A..B | --diff-file PATH | --files PATH...]
  --format {text,json,markdown,sarif}
- keysentinel install [--force] [--write-config]
- keysentinel action

Note:
- Only masked previews are ever printed or written.
"""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from . import __version__
from .core.exceptions import GitError, KeySentinelConfigError
from .core.log import StdLogger, configure_logging


def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    p = argparse.ArgumentParser(prog="keysentinel", description="KeySentinel - block secrets in diffs")
    p.add_argument("-v", "--version", action="store_true", help="print version and exit")

    sub = p.add_subparsers(dest="cmd")
    sub.add_parser("version", help="print version")

    sp = sub.add_parser("scan", help="scan added lines for secrets (default: staged changes)")
    source = sp.add_mutually_exclusive_group()
    source.add_argument(
        "--pre-push",
        dest="pre_push",
        action="store_true",
        help="scan commits about to be pushed (push lines on stdin)"
    )
    source.add_argument(
        "--range",
        dest="rev_range",
        metavar="A..B",
        help="scan the diff of a revision range"
    )
    source.add_argument(
        "--diff-file",
        dest="diff_file",
        metavar="PATH",
        help="scan a unified diff file ('-' for stdin)"
    )
    source.add_argument(
        "--files",
        nargs="+",
        metavar="PATH",
        help="scan whole files, every line treated as added"
    )
    sp.add_argument("--config", help="path to config YAML file")
    sp.add_argument(
        "--fail-on",
        dest="fail_on",
        choices=["high", "medium", "low", "off"],
        help="severity that fails the scan (default: from config, else high)"
    )
    sp.add_argument("--allowlist", help="comma separated allowlist regexes")
    sp.add_argument("--ignore", help="comma separated extra ignore globs")
    sp.add_argument(
        "--no-entropy",
        dest="no_entropy",
        action="store_true",
        help="disable high entropy string detection"
    )
    sp.add_argument(
        "--format",
        choices=["text", "json", "markdown", "sarif"],
        default="text",
        help="output format (default: text)"
    )
    sp.add_argument(
        "--json-out",
        dest="json_out",
        help="write JSON results to file"
    )
    sp.add_argument(
        "--sarif-out",
        dest="sarif_out",
        help="write SARIF results to file"
    )
    sp.add_argument(
        "--workers",
        type=int,
        default=1,
        help="scan files in this many threads (default: 1)"
    )
    sp.add_argument("--verbose", action="store_true", help="debug logging")

    ip = sub.add_parser("install", help="install pre-commit and pre-push hooks")
    ip.add_argument("--force", action="store_true", help="overwrite hooks not written by keysentinel")
    ip.add_argument(
        "--write-config",
        dest="write_config",
        action="store_true",
        help="also write a .keysentinel.yml template"
    )

    sub.add_parser("action", help="scan the current pull request (GitHub Actions)")

    args = p.parse_args(argv)

    if args.version or args.cmd == "version":
        print(__version__)
        return 0

    if args.cmd == "scan":
        return handle_scan_command(args)

    if args.cmd == "install":
        return handle_install_command(args)

    if args.cmd == "action":
        from .action import run_action

        return run_action()

    p.print_help()
    return 0


def _collect_inputs(args, root: Optional[Path], log):
    """File inputs for the requested source plus a label for the report."""
    from .git import outbound_diff, range_diff, staged_diff
    from .scanner import FileInput, split_unified_diff

    if args.files:
        inputs = [
            FileInput(
                filename=path.replace("\\", "/"),
                load_content=lambda path=path: Path(path).read_text(encoding="utf-8", errors="replace"),
            )
            for path in args.files
        ]
        return inputs, "files"

    if args.diff_file:
        if args.diff_file == "-":
            diff_text = sys.stdin.read()
        else:
            diff_text = Path(args.diff_file).read_text(encoding="utf-8", errors="replace")
        label = "diff"
    elif args.pre_push:
        diff_text = outbound_diff(root, sys.stdin.read().splitlines(), logger=log)
        label = "outbound commits"
    elif args.rev_range:
        diff_text = range_diff(root, args.rev_range)
        label = args.rev_range
    else:
        diff_text = staged_diff(root)
        label = "staged changes"

    inputs = [FileInput(filename=name, patch=patch) for name, patch in split_unified_diff(diff_text).items()]
    return inputs, label


def handle_scan_command(args):
    """Handle the scan subcommand."""
    import json

    from .detectors import get_enabled_rules
    from .git import find_git_root
    from .policy.enforce import should_fail
    from .reporting.console import format_terminal_report
    from .reporting.markdown import generate_report
    from .sarif.export import build_sarif
    from .scanner import ConfigOverrides, load_scanner_config, scan_files

    configure_logging(args.verbose)
    log = StdLogger()

    root = find_git_root()
    needs_git = not (args.files or args.diff_file)
    if needs_git and root is None:
        print("keysentinel: not a git repository (or any parent). Run from a repo root.", file=sys.stderr)
        return 1

    overrides = ConfigOverrides(
        fail_on=args.fail_on,
        allowlist=args.allowlist,
        ignore=args.ignore,
        entropy_enabled=False if args.no_entropy else None,
    )
    try:
        config = load_scanner_config(
            config_path=args.config,
            repo_root=str(root or Path.cwd()),
            overrides=overrides,
            logger=log,
        )
    except KeySentinelConfigError as e:
        print(f"CONFIG ERROR: {e}", file=sys.stderr)
        return 1

    try:
        inputs, label = _collect_inputs(args, root, log)
    except GitError as e:
        print(f"keysentinel: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"keysentinel: failed to read input: {e}", file=sys.stderr)
        return 1

    result = scan_files(inputs, config, get_enabled_rules(config.patterns), logger=log, workers=args.workers)

    if args.json_out:
        Path(args.json_out).write_text(json.dumps(result.to_dict(), indent=2))
        if args.format == "text":
            print(f"[keysentinel] JSON output written to {args.json_out}")
    if args.sarif_out:
        Path(args.sarif_out).write_text(json.dumps(build_sarif(result), indent=2))
        if args.format == "text":
            print(f"[keysentinel] SARIF output written to {args.sarif_out}")

    if args.format == "json":
        print(json.dumps(result.to_dict(), indent=2))
    elif args.format == "sarif":
        print(json.dumps(build_sarif(result), indent=2))
    elif args.format == "markdown":
        print(generate_report(result.findings, result.files_scanned))
    else:
        report = format_terminal_report(result.findings, result.files_scanned, source=label)
        print(report, file=sys.stderr if result.findings else sys.stdout)

    # Exit with appropriate code
    if should_fail(result.findings, config.fail_on, log):
        return 1
    return 0


def handle_install_command(args):
    """Handle the install subcommand."""
    from .git import find_git_root, install_hooks
    from .scanner.config import CONFIG_FILENAMES, create_default_config_template

    root = find_git_root()
    if root is None:
        print("keysentinel: not a git repository (or any parent). Run from a repo root.", file=sys.stderr)
        return 1

    results = install_hooks(root, force=args.force)
    for name, status in results.items():
        if status == "skipped":
            print(
                f"[keysentinel] Existing .git/hooks/{name} was not written by keysentinel, "
                "left unchanged (use --force to overwrite)"
            )
        else:
            print(f"[keysentinel] {name.capitalize()} hook {status} at .git/hooks/{name}")

    if args.write_config:
        config_file = root / CONFIG_FILENAMES[0]
        existing: List[Path] = [root / name for name in CONFIG_FILENAMES if (root / name).exists()]
        if existing:
            print(f"[keysentinel] {existing[0].name} already exists, not overwritten")
        else:
            config_file.write_text(create_default_config_template(), encoding="utf-8")
            print(f"[keysentinel] Wrote {config_file.name}")

    return 0
