"""Workflow execution module."""

from .executor import RunSummary, WorkflowExecutor
from .validation import OutcomeKind, StepValidator, ValidationOutcome

__all__ = ['WorkflowExecutor', 'RunSummary', 'StepValidator', 'ValidationOutcome', 'OutcomeKind']
