"""CLI command handlers."""

from .run import run_workflow

__all__ = ['run_workflow']
