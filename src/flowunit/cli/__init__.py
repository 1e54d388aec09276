"""CLI entry point for flowunit.

Provides command-line interface for:
- Verifying processors against scenarios from a YAML file
- Validating scenario files
- Listing registered processor plugins
- Displaying version information

Usage:
    flowunit verify -c scenarios.yaml
    flowunit verify -c scenarios.yaml --scenario sum
    flowunit validate -c scenarios.yaml --check-plugins
    flowunit plugins list
    flowunit version
"""

import argparse
import logging
import sys
from typing import List, Optional


def create_parser() -> argparse.ArgumentParser:
    """Create the main argument parser."""
    parser = argparse.ArgumentParser(
        prog="flowunit",
        description="Cooperative processor verification toolkit",
    )
    parser.add_argument(
        "--version",
        action="store_true",
        help="Show version and exit",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # verify command
    verify_parser = subparsers.add_parser(
        "verify",
        help="Verify processors against scenarios",
    )
    verify_parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to YAML scenario file",
    )
    verify_parser.add_argument(
        "--scenario",
        help="Specific scenario to run (default: all)",
    )

    # validate command
    validate_parser = subparsers.add_parser(
        "validate",
        help="Validate a scenario file",
    )
    validate_parser.add_argument(
        "-c", "--config",
        required=True,
        help="Path to YAML scenario file",
    )
    validate_parser.add_argument(
        "--check-plugins",
        action="store_true",
        help="Also verify that referenced processors can be resolved",
    )

    # plugins command
    plugins_parser = subparsers.add_parser(
        "plugins",
        help="Manage plugins",
    )
    plugins_subparsers = plugins_parser.add_subparsers(
        dest="plugins_command",
        help="Plugin commands",
    )
    plugins_subparsers.add_parser(
        "list",
        help="List registered processors",
    )

    # version command
    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code (0 for success, non-zero for errors).
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="[%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )

    if args.version:
        from flowunit.cli.commands.version import cmd_version
        return cmd_version()

    if args.command is None:
        parser.print_help()
        return 0

    if args.command == "verify":
        from flowunit.cli.commands.verify import cmd_verify
        return cmd_verify(
            config_path=args.config,
            scenario_name=args.scenario,
        )

    elif args.command == "validate":
        from flowunit.cli.commands.validate import cmd_validate
        return cmd_validate(
            config_path=args.config,
            check_plugins=args.check_plugins,
        )

    elif args.command == "plugins":
        if args.plugins_command == "list":
            from flowunit.cli.commands.plugins import cmd_plugins_list
            return cmd_plugins_list()
        else:
            parser.parse_args(["plugins", "--help"])
            return 0

    elif args.command == "version":
        from flowunit.cli.commands.version import cmd_version
        return cmd_version()

    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
