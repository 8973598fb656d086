"""
Plan an environment offline from a Pulumi stack file and print the result.

Usage:
    plan-topology Pulumi.dev.yaml
    plan-topology Pulumi.dev.yaml --format json
    plan-topology Pulumi.dev.yaml --region us-west-2 --exports
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import yaml

from topology.config import load_stack_file
from topology.errors import ConfigError, PlanningError
from topology.planner import plan_environment
from topology.settings import get_settings

logger = logging.getLogger(__name__)

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _stack_from_path(path: Path) -> Optional[str]:
    """`Pulumi.<stack>.yaml` -> `<stack>`."""
    parts = path.name.split(".")
    if len(parts) == 3 and parts[0] == "Pulumi" and parts[2] in ("yaml", "yml"):
        return parts[1]
    return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="plan-topology",
        description="Plan the VPC and EKS resources of a stack without deploying anything",
    )
    parser.add_argument("stack_file", help="Pulumi stack file (Pulumi.<stack>.yaml)")
    parser.add_argument("--stack", help="Stack name (default: from the file name, then TOPOLOGY_STACK)")
    parser.add_argument("--project", help="Project name (default: TOPOLOGY_PROJECT)")
    parser.add_argument("--region", help="AWS region (default: aws:region from the stack file)")
    parser.add_argument("--format", choices=["yaml", "json"], default="yaml", help="Output format")
    parser.add_argument("--exports", action="store_true", help="Print only the stack output names")
    parser.add_argument(
        "--log-level",
        type=str.upper,
        choices=LOG_LEVELS,
        help="Log level (default: TOPOLOGY_LOG_LEVEL)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    level = (args.log_level or settings.log_level).upper()
    logging.basicConfig(
        level=level if level in LOG_LEVELS else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stderr,
    )
    if level not in LOG_LEVELS:
        logger.error("Unknown log level %s, expected one of %s", level, ", ".join(LOG_LEVELS))
        return 1

    path = Path(args.stack_file)
    stack = args.stack or _stack_from_path(path) or settings.stack
    project = args.project or settings.project

    try:
        config, file_region = load_stack_file(path, args.project)
        region = args.region or file_region or settings.region
        plan = plan_environment(config, stack=stack, project=project, region=region)
    except ConfigError as e:
        for detail in e.errors:
            logger.error("%s: %s", detail.field, detail.message)
        logger.error("Planning stack %s failed", stack)
        return 1
    except PlanningError as e:
        logger.error("Planning stack %s failed: %s", stack, e)
        return 1

    if args.exports:
        for binding in plan.exports:
            print(binding.name)
    elif args.format == "json":
        print(json.dumps(plan.to_dict(), indent=2))
    else:
        print(yaml.safe_dump(plan.to_dict(), sort_keys=False), end="")

    return 0


if __name__ == "__main__":
    sys.exit(main())
