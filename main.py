"""
Puppet Runner - command line entry point.
Runs a scripted scenario file and prints the result as JSON.

    python main.py scenario.json [--debug] [--no-proxy]
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import List, Optional

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

from puppet.config import PuppetConfig
from scenarios import Scenario, ScenarioRunner

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="puppet-runner",
        description="Run a scripted headless browser scenario",
    )
    parser.add_argument("scenario", help="Path to the scenario JSON file")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Headful browser, slow typing and debug logs",
    )
    parser.add_argument(
        "--no-proxy",
        action="store_true",
        help="Do not route traffic through the local forwarding proxy",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: DEBUG with --debug, INFO otherwise)",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    level_name = args.log_level or ("DEBUG" if args.debug else "INFO")
    logging.basicConfig(
        level=getattr(logging, level_name.upper(), logging.INFO),
        format=LOG_FORMAT,
    )

    try:
        scenario = Scenario.from_json_file(args.scenario)
    except (OSError, ValueError) as e:
        logger.error(f"Could not load scenario {args.scenario}: {e}")
        return 2

    try:
        config = PuppetConfig().with_overrides(
            debug=True if args.debug else None,
            proxy_mode=False if args.no_proxy else None,
        )
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    result = asyncio.run(ScenarioRunner(config).run(scenario))
    print(json.dumps(result, indent=2, ensure_ascii=False, default=str))
    return 0 if result["success"] else 1


if __name__ == "__main__":
    sys.exit(main())
