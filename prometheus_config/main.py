"""Config check entrypoint: validates a Prometheus catalog file before deploy.

Responsibilities:
  - Read the ``.properties`` catalog file named on the command line.
  - Keep the properties under the prefix; skip the catalog's own keys.
  - Build and validate the connector configuration from them.
  - Print the redacted configuration as JSON on success (exit 0).
  - Log every error and exit 1 on failure; nothing partial is printed.
"""

import argparse
import json
import logging
import sys
from typing import Optional

from prometheus_config.config import DEFAULT_PREFIX, load_config
from prometheus_config.errors import ConfigurationError
from prometheus_config.log_helper import _configure_logging
from prometheus_config.properties import load_properties

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="prometheus-config-check",
        description="Validate a Prometheus connector catalog file.",
    )
    parser.add_argument("catalog", help="Path to the .properties catalog file.")
    parser.add_argument("--prefix", default=DEFAULT_PREFIX, help="Property name prefix (default: %(default)s).")
    parser.add_argument("--log-level", default="INFO", help="Python logging level (default: %(default)s).")
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Application entrypoint.

    Args:
        argv: Command-line arguments without the program name; ``sys.argv`` when omitted.

    Returns:
        Process exit status.
    """
    args = _build_parser().parse_args(argv)
    _configure_logging(args.log_level)

    try:
        properties = load_properties(args.catalog)
    except (OSError, ValueError) as exc:
        logger.error("Cannot read catalog %s: %s", args.catalog, exc)
        return 1

    # connector.name and friends belong to the catalog, not to this config
    owned = {name: value for name, value in properties.items() if name.startswith(f"{args.prefix}.")}
    for name in sorted(properties.keys() - owned.keys()):
        logger.info("Skipping property %s outside the %r prefix", name, args.prefix)

    try:
        config = load_config(owned, prefix=args.prefix)
    except ConfigurationError as exc:
        logger.error("Invalid configuration in %s (%d problem(s))", args.catalog, len(exc.messages))
        for message in exc.messages:
            logger.error("  - %s", message)
        return 1

    json.dump(config.redacted(), sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")
    logger.info("Catalog %s is valid", args.catalog)
    return 0


if __name__ == "__main__":
    sys.exit(main())
