"""Command line interface for Jira Burndown."""

import argparse
import logging
import os
import sys

from dotenv import load_dotenv

from .calculator import run_calculators
from .config import ConfigError, config_to_options, validate_settings
from .config.type_utils import force_date
from .config_main import CALCULATORS
from .exceptions import BurndownDataError
from .jira_client import create_jira_client
from .querymanager import QueryManager
from .utils import set_chart_context

load_dotenv()

logger = logging.getLogger(__name__)


def configure_argument_parser():
    """Configure an ArgumentParser that manages command line options."""

    parser = argparse.ArgumentParser(
        description=(
            "Reconstruct weekly completion of JIRA issues and project "
            "completion dates into a burndown report."
        )
    )

    # Basic options
    parser.add_argument("config", metavar="config.yml", nargs="?", help="Configuration file")
    parser.add_argument("-v", dest="verbose", action="store_true", help="Verbose output")
    parser.add_argument(
        "-vv",
        dest="very_verbose",
        action="store_true",
        help="Even more verbose output",
    )
    parser.add_argument(
        "-n",
        metavar="N",
        dest="max_results",
        type=int,
        help="Only fetch N most recently updated issues",
    )

    # Output directory
    parser.add_argument(
        "--output-directory",
        "-o",
        metavar="metrics",
        help=("Write output files to this directory, rather than the current working directory."),
    )

    # Report options
    parser.add_argument(
        "--start-date",
        metavar="YYYY-MM-DD",
        help="Date of the first weekly checkpoint",
    )
    parser.add_argument(
        "--as-of",
        metavar="YYYY-MM-DD",
        help="Date of the report (defaults to today)",
    )

    # Connection options
    parser.add_argument("--domain", metavar="https://my.jira.com", help="JIRA domain name")
    parser.add_argument("--username", metavar="user", help="JIRA user name")
    parser.add_argument("--password", metavar="password", help="JIRA password or API token")
    parser.add_argument("--http-proxy", metavar="https://proxy.local", help="URL to HTTP Proxy")
    parser.add_argument(
        "--https-proxy",
        metavar="https://proxy.local",
        help="URL to HTTPS Proxy",
    )
    parser.add_argument(
        "--jira-server-version-check",
        type=bool,
        metavar="True",
        help=(
            "If true it will fetch JIRA server version info first"
            "to determine if some API calls are available"
        ),
    )

    return parser


def main():
    parser = configure_argument_parser()
    args = parser.parse_args()

    sys.exit(run_command_line(parser, args))


def run_command_line(parser, args):
    """Run the report described by `args`. Returns a process exit status."""
    if not args.config:
        parser.print_usage()
        return 0

    logging.basicConfig(
        format="[%(asctime)s %(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        level=(
            logging.DEBUG
            if args.very_verbose
            else logging.INFO if args.verbose else logging.WARNING
        ),
    )

    # Configuration and settings
    # (command line arguments override config file options)

    logger.debug("Parsing options from %s", args.config)
    try:
        with open(args.config, encoding="utf-8") as config:
            options = config_to_options(
                config.read(),
                cwd=os.path.dirname(os.path.abspath(args.config)),
                validate=False,
            )

        override_options(options["connection"], args)
        override_options(options["settings"], args)

        for key in ["start_date", "as_of"]:
            if isinstance(options["settings"][key], str):
                options["settings"][key] = force_date(key, options["settings"][key])

        validate_settings(options["settings"])
    except FileNotFoundError:
        logger.error("Configuration file '%s' not found", args.config)
        return 1
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1

    # Set charting context, which determines how charts are rendered
    set_chart_context("paper")

    # Set output directory if required
    output_dir = options.get("output_directory")
    if args.output_directory:
        output_dir = args.output_directory
    if output_dir:
        logger.info("Changing working directory to %s", output_dir)
        os.makedirs(output_dir, exist_ok=True)
        os.chdir(output_dir)

    try:
        jira = create_jira_client(options["connection"], interactive=True)
    except ValueError as e:
        logger.error("Connection error: %s", e)
        return 1

    try:
        # Query JIRA and run calculators
        logger.info("Running calculators")
        query_manager = QueryManager(jira, options["settings"])
        run_calculators(CALCULATORS, query_manager, options["settings"])
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 1
    except BurndownDataError as e:
        logger.error("Invalid issue data: %s", e)
        return 1

    return 0


def override_options(options, arguments):
    """Update `options` dict with settings from `arguments`
    with the same key.
    """
    for key in options.keys():
        if getattr(arguments, key, None) is not None:
            options[key] = getattr(arguments, key)


if __name__ == "__main__":
    main()
