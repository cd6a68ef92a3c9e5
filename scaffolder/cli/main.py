"""Main CLI entry point for scaffolder."""

import argparse
import sys
from typing import Optional

from .commands import run_workflow


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the scaffold CLI."""
    parser = argparse.ArgumentParser(
        prog='scaffold',
        description='Run a declarative boilerplate workflow'
    )

    parser.add_argument(
        'config',
        type=str,
        help='Path to boilerplate YAML file'
    )
    parser.add_argument(
        '--set',
        action='append',
        dest='variables',
        metavar='KEY=VALUE',
        help='Variable override, applied before prompting (can be specified multiple times)'
    )
    parser.add_argument(
        '--vars-file',
        type=str,
        help='Path to JSON file containing variable overrides'
    )
    parser.add_argument(
        '--dry-run',
        action='store_true',
        help='Check the configuration and print the workflow outline without executing'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error log output'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose output'
    )
    parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warn', 'error'],
        default='info',
        help='Set log level'
    )

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)
    return run_workflow(parsed_args)


if __name__ == '__main__':
    sys.exit(main())
