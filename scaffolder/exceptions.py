"""Scaffolder exceptions."""

from typing import TYPE_CHECKING, List, Optional
from dataclasses import dataclass

if TYPE_CHECKING:
    from .workflow.validation import ValidationOutcome


@dataclass
class ConfigIssue:
    """Single configuration problem found while loading."""
    message: str
    location: str = ""

    def __str__(self) -> str:
        if self.location:
            return f"{self.location}: {self.message}"
        return self.message


class ScaffoldError(Exception):
    """Base class for every error that aborts a run.

    step_title is set by the workflow executor once it has reported the
    failure of that step.
    """
    exit_code = 1
    step_title: Optional[str] = None


class ConfigLoadError(ScaffoldError):
    """Raised when the configuration document is missing, unparseable or malformed.

    The loader collects every issue it finds before raising, so the CLI can
    report them all at once.
    """

    def __init__(self, issues: List[ConfigIssue]):
        self.issues = issues
        messages = [f"Configuration error: {issue}" for issue in issues]
        super().__init__("\n".join(messages))


class WorkflowConfigError(ScaffoldError):
    """Raised when a step is authored in a way the engine cannot execute."""


class UnsupportedStepError(WorkflowConfigError):
    """Unknown step ``type``."""

    def __init__(self, step_type: Optional[str]):
        self.step_type = step_type
        super().__init__(f"Unsupported step type: {step_type}")


class UnsupportedActionError(WorkflowConfigError):
    """Unknown file ``action``."""

    def __init__(self, action: Optional[str]):
        self.action = action
        super().__init__(f"Unsupported file action: {action}")


class CommandExecutionError(ScaffoldError):
    """Raised when a command exits non-zero or cannot be spawned."""

    def __init__(self, message: str, returncode: Optional[int] = None):
        self.returncode = returncode
        super().__init__(message)


class FilesystemError(ScaffoldError):
    """Raised on filesystem failures other than the tolerated exists/missing cases."""

    def __init__(self, message: str, path: str = ""):
        self.path = path
        super().__init__(message)


class StepValidationError(ScaffoldError):
    """Raised when a step's post-condition does not hold."""

    def __init__(self, outcome: 'ValidationOutcome'):
        self.outcome = outcome
        super().__init__(outcome.message)


class VariableStoreSealedError(ScaffoldError):
    """Raised when the variable store is written after collection completed."""
