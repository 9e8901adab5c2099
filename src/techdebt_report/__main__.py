import argparse
import os
import logging
import sys
from .config import load_config
from .errors import ConfigError, ReportWriteError
from .pipeline import generate_report
from .utils import find_repo_root


def main(argv=None):
    parser = argparse.ArgumentParser(prog="techdebt-report", description="Consolidated tech debt report")
    sub = parser.add_subparsers(dest="cmd", required=True)

    report = sub.add_parser("report", help="Generate the consolidated HTML report")
    report.add_argument("path", nargs="?", default=".", help="Project root (or any child path)")
    report.add_argument("--config", default=None, help="Config file (default: <root>/.techdebt.yml)")
    report.add_argument("--output", default=None, help="Report file, relative to the root")
    report.add_argument("--comments", action="store_true", help="Collect TODO/FIXME comments")
    report.add_argument("--suppress", action="store_true", help="Include suppressed lint rules")
    report.add_argument("--git", action="store_true", help="Add last author/modified date from git blame")
    report.add_argument("--ticket-url", default=None, help="Base URL for ticket links")
    report.add_argument("--shard", action="append", default=None, help="Shard JSON file (repeatable)")
    report.add_argument("--source", action="append", default=None, help="Source file to scan (repeatable)")
    report.add_argument("-v", "--verbose", action="count", default=0)

    args = parser.parse_args(argv)

    level = logging.WARNING if args.verbose == 0 else logging.INFO if args.verbose == 1 else logging.DEBUG
    logging.basicConfig(level=level, format="[%(levelname)s] %(name)s: %(message)s")

    root = find_repo_root(args.path) or args.path
    overrides = {}
    if args.output:
        overrides["output"] = args.output
    if args.comments:
        overrides["collect_comments"] = True
    if args.suppress:
        overrides["collect_suppress"] = True
    if args.git:
        overrides["enable_git_metadata"] = True
    if args.ticket_url:
        overrides["base_ticket_url"] = args.ticket_url
    if args.shard:
        overrides["shard_files"] = [os.path.abspath(p) for p in args.shard]
    if args.source:
        overrides["source_files"] = [os.path.abspath(p) for p in args.source]

    try:
        cfg = load_config(root, path=args.config, overrides=overrides)
    except ConfigError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 2

    try:
        generate_report(cfg)
    except ReportWriteError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
