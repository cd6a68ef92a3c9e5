"""
Step executor module.
Dispatches a step to the command, directory or file executor by its ``type``.
"""

from typing import Any, Callable, Dict, Optional, TextIO

from .command import CommandExecutor
from .filesystem import ConflictResolver, DirectoryExecutor, FileExecutor
from ..exceptions import UnsupportedStepError
from ..variables import TemplateResolver


class StepExecutor:
    """
    Executes workflow steps.
    Each handler raises on failure; returning normally means the step succeeded.
    """

    def __init__(
        self,
        resolver: TemplateResolver,
        conflict_resolver: ConflictResolver,
        operator_input: Optional[Any] = None,
        echo: Optional[TextIO] = None,
    ):
        """
        Initialize step executor.

        Args:
            resolver: Template resolver shared by all executors
            conflict_resolver: Asked how to handle files that already exist
            operator_input: Stream relayed to interactive commands
            echo: Stream interactive command output is echoed to
        """
        self.command_executor = CommandExecutor(resolver, operator_input, echo)
        self.directory_executor = DirectoryExecutor(resolver)
        self.file_executor = FileExecutor(resolver, conflict_resolver)

        self._handlers: Dict[str, Callable[[Dict[str, Any]], None]] = {
            'command': self.command_executor.execute,
            'directory': self.directory_executor.execute,
            'file': self.file_executor.execute,
        }

    def execute(self, step: Dict[str, Any]) -> None:
        """Execute one step; unknown types raise UnsupportedStepError."""
        handler = self._handlers.get(step.get('type'))
        if handler is None:
            raise UnsupportedStepError(step.get('type'))
        handler(step)
