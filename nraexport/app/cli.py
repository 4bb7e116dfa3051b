"""Application-layer CLI adapter."""

from __future__ import annotations

import argparse
import logging

from sqlalchemy.exc import SQLAlchemyError

from ..config import load_config
from ..errors import ConfigError, NraExportError
from ..logging_config import setup_logging
from ..services import ExportService, InstanceRegistry

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create CLI parser."""
    parser = argparse.ArgumentParser(
        prog="nraexport", description="SIMNRA result export and reporting"
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sync_p = sub.add_parser("sync", help="Export new or changed result files once")
    sync_p.add_argument("config", type=str, help="Path to config YAML")
    sync_p.add_argument(
        "--no-reports",
        action="store_true",
        help="Skip report rendering after the export pass.",
    )

    report_p = sub.add_parser("report", help="Render configured reports from the store")
    report_p.add_argument("config", type=str, help="Path to config YAML")

    watch_p = sub.add_parser("watch", help="Export on startup, then re-export on file changes")
    watch_p.add_argument("config", type=str, help="Path to config YAML")

    depth_p = sub.add_parser("depth", help="Maximum analysis depth of one result file")
    depth_p.add_argument("config", type=str, help="Path to config YAML")
    depth_p.add_argument("file", type=str, help="Path to result file")
    depth_p.add_argument(
        "--element",
        action="append",
        default=[],
        help="Element to integrate down to the maximum depth (repeatable).",
    )

    return parser


def main(argv: list[str] | None = None, *, instances: InstanceRegistry | None = None) -> int:
    """CLI entrypoint."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
    except ConfigError as exc:
        parser.exit(2, f"Error: {exc}\n")
    setup_logging(config.logging.level, config.logging.file)

    service: ExportService | None = None
    try:
        service = ExportService(config, instances=instances)
        if args.command == "sync":
            report = service.sync_once(render_reports=not bool(args.no_reports))
            print(f"Done. scanned={report.scanned}, exported={len(report.exported)}, failed={len(report.failed)}")
            return 0 if not report.failed else 1

        if args.command == "report":
            run = service.render_reports()
            for path in run.written:
                print(f"Output: {path}")
            return 0 if run.ok else 1

        if args.command == "watch":
            try:
                service.watch()
            except KeyboardInterrupt:
                logger.info("Interrupted, stopping watcher")
            return 0

        if args.command == "depth":
            summary = service.depth_summary(args.file, args.element)
            print(f"max_depth={summary.max_depth:.12g}")
            for element, value in summary.integrals.items():
                print(f"{element.strip()}={value:.12g}")
            return 0
    except (NraExportError, OSError, SQLAlchemyError) as exc:
        parser.exit(1, f"Error: {exc}\n")
    finally:
        if service is not None:
            service.stop()

    parser.exit(2, "Unknown command\n")
    return 2
