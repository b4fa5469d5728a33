#!/usr/bin/env python3
"""
Replicate a RuleApp and its managed XOMs from a source RES to a destination RES.

Runs as a dry run unless ``--execute`` is given: every read is performed
and archives are staged locally, but nothing is posted to the destination.
Server settings come from ``RES_PROMOTER_*`` environment variables (or a
``.env`` file) and can be overridden on the command line.
"""

import argparse
import json
import sys
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from shared.config import PromoterConfig, get_config
from shared.logging import configure_logging, get_logger

from service_promoter.app.domain.endpoint import ServerEndpoint
from service_promoter.app.domain.models import PromotionReport
from service_promoter.app.promotion.promoter import Promoter


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="replicate",
        description="Promote the highest version of a RuleApp from a source RES to a destination RES."
    )
    parser.add_argument("ruleapp", help="RuleApp name")
    parser.add_argument("--execute", action="store_true", help="Deploy to the destination; default is a dry run")
    for role in ("source", "destination"):
        parser.add_argument(f"--{role}-host", default=None, help=f"{role.capitalize()} RES host")
        parser.add_argument(f"--{role}-port", default=None, help=f"{role.capitalize()} RES port (empty for none)")
        parser.add_argument(f"--{role}-user", default=None, help=f"{role.capitalize()} RES user")
        parser.add_argument(f"--{role}-password", default=None, help=f"{role.capitalize()} RES password")
    parser.add_argument("--stage-dir", default=None, help="Staging directory for downloaded archives")
    parser.add_argument("--skip-existing-xom", action="store_true", default=None,
                        help="Do not re-post XOMs already present on the destination")
    parser.add_argument("--log-level", default=None, help="Log level (debug, info, warning, error)")
    parser.add_argument("--json-logs", action="store_const", const="json", dest="log_format", default=None,
                        help="Render log events as JSON")
    parser.add_argument("--output", type=Path, default=None, help="Optional path to write the JSON report")
    return parser


def load_config(args: argparse.Namespace) -> PromoterConfig:
    overrides = {
        key: getattr(args, key)
        for key in (
            "source_host", "source_port", "source_user", "source_password",
            "destination_host", "destination_port", "destination_user", "destination_password",
            "stage_dir", "skip_existing_xom", "log_level", "log_format",
        )
    }
    return get_config(**overrides)


def run(args: argparse.Namespace, config: PromoterConfig) -> PromotionReport:
    """Execute one promotion and return its report."""
    with Promoter.from_endpoints(
        ServerEndpoint.from_config(config, "source"),
        ServerEndpoint.from_config(config, "destination"),
        stage_dir=config.stage_dir,
        timeout=config.request_timeout,
        skip_existing_xom=config.skip_existing_xom,
    ) as promoter:
        return promoter.replicate(args.ruleapp, args.execute)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args)
    except ValidationError as exc:
        parser.error("; ".join(
            f"{'.'.join(str(part) for part in error['loc'])}: {error['msg']}" for error in exc.errors()
        ))
    configure_logging(config.log_level, config.log_format)
    logger = get_logger("promoter.cli")

    try:
        report = run(args, config)
    except KeyboardInterrupt:
        return 130

    if not args.execute:
        print("[replicate] DRY RUN - nothing was deployed to the destination RES")

    summary = report.to_dict()
    print(json.dumps(summary, indent=2))

    if args.output:
        args.output.write_text(json.dumps(summary, indent=2))

    if not report.ok:
        logger.error("Promotion did not complete", ruleapp=args.ruleapp, status=report.status.value)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
