"""Run command implementation."""

import json
import logging
from argparse import Namespace
from pathlib import Path
from typing import Any, Dict

import click

from scaffolder.exceptions import ConfigLoadError, ScaffoldError
from scaffolder.loader import Configuration, ConfigLoader
from scaffolder.variables import VariableStore
from scaffolder.workflow.executor import WorkflowExecutor


logger = logging.getLogger(__name__)

DEBUG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DEFAULT_FORMAT = '%(levelname)s: %(message)s'


def parse_variables(args: Namespace) -> Dict[str, Any]:
    """Parse variable overrides from command line arguments."""
    variables: Dict[str, Any] = {}

    # JSON file first so --set wins
    if args.vars_file:
        vars_file = Path(args.vars_file)
        if not vars_file.exists():
            raise FileNotFoundError(f"Variables file not found: {vars_file}")

        with open(vars_file, 'r', encoding='utf-8') as f:
            file_vars = json.load(f)
            if not isinstance(file_vars, dict):
                raise ValueError(f"Variables file must contain a JSON object, got {type(file_vars).__name__}")

            for key, value in file_vars.items():
                variables[str(key)] = value

    if args.variables:
        for item in args.variables:
            if '=' not in item:
                raise ValueError(f"Invalid variable format: {item}. Expected KEY=VALUE")
            key, value = item.split('=', 1)
            variables[key] = value

    return variables


def configure_logging(args: Namespace) -> None:
    """Set up logging on stderr from the CLI flags."""
    level_name = 'WARNING' if args.log_level == 'warn' else args.log_level.upper()
    log_level = getattr(logging, level_name)
    if args.debug:
        log_level = logging.DEBUG
    elif args.quiet:
        log_level = logging.ERROR
    elif args.verbose:
        log_level = logging.DEBUG

    logging.basicConfig(
        level=log_level,
        format=DEBUG_FORMAT if args.debug else DEFAULT_FORMAT,
        force=True,
    )


def print_outline(config: Configuration) -> None:
    """Print the phases and steps a run would walk through."""
    for phase in config.phases:
        condition = f" (when: {phase['when']})" if phase.get('when') is not None else ""
        print(f"{phase.get('title')}{condition}")
        for step in phase.get('steps') or []:
            condition = f" (when: {step['when']})" if step.get('when') is not None else ""
            kind = step.get('type')
            if kind == 'file':
                kind = f"file/{step.get('action')}"
            print(f"  - [{kind}] {step.get('title')}{condition}")


def run_workflow(args: Namespace) -> int:
    """
    Load a boilerplate document and run it.

    Returns:
        0 on success, 1 on any load, configuration or step failure
    """
    configure_logging(args)

    config_path = Path(args.config).resolve()
    if not config_path.exists():
        logger.error(f"❌ Configuration file not found: {config_path}")
        return 1

    try:
        print(f"📖 Loading boilerplate from: {config_path}")
        try:
            config = ConfigLoader().load(config_path)
        except ConfigLoadError as e:
            for issue in e.issues:
                logger.error(f"❌ Configuration error: {issue}")
            return e.exit_code

        if args.dry_run:
            print_outline(config)
            logger.info("[DRY RUN] Configuration is valid")
            return 0

        store = VariableStore(config.variables)
        store.merge(parse_variables(args))

        print(f"🚀 Starting {config.name} setup...")
        executor = WorkflowExecutor(config, store=store)
        executor.run()
        return 0

    except ScaffoldError as e:
        if e.step_title is None:
            logger.error(f"❌ Error: {e}")
        else:
            logger.debug(f"Run aborted at step '{e.step_title}'")
        return e.exit_code
    except click.Abort:
        logger.error("❌ Aborted")
        return 1
    except FileNotFoundError as e:
        logger.error(f"❌ File not found: {e}")
        return 1
    except (OSError, ValueError) as e:
        logger.error(f"❌ Error: {e}")
        return 1
