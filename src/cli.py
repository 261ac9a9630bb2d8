"""Console entry point for the managed instance group image rollout CLI."""

from __future__ import annotations

import argparse
import logging
from typing import List

from config import RolloutConfig
from log_utils import setup_logging
from rollout import RolloutDriver

VERSION = "0.1.0"

REQUIRED_OPTIONS = ("project", "image_id", "zone", "instance_group", "instance_template")

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Build and return the CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="rollout",
        description="Automate the rollout of google images to an instance group",
    )
    parser.add_argument("--project", help="Google project")
    parser.add_argument("--zone", help="Google zone to update")
    parser.add_argument(
        "--image-id",
        help="An identifier for selecting a google image to deploy",
    )
    parser.add_argument(
        "--instance-group", help="Instance group to rollout image to"
    )
    parser.add_argument("--instance-template", help="Instance template to clone")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    return parser


def main(argv: List[str] | None = None) -> int:
    """CLI main for console_scripts entry point."""
    parser = build_parser()
    args = parser.parse_args(args=argv)

    if not all(getattr(args, name) for name in REQUIRED_OPTIONS):
        parser.print_help()
        return 0

    setup_logging(verbose=args.verbose)

    config = RolloutConfig.from_args(args)

    try:
        RolloutDriver(config).run()
    except Exception as e:
        logger.error(f"Error running command: {e}")
        return 1
    return 0
