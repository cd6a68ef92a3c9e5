"""
Execution module for the scaffolder.
Handles command, directory and file steps.
"""

from .command import CommandExecutor
from .filesystem import DirectoryExecutor, FileExecutor
from .step_executor import StepExecutor

__all__ = [
    "CommandExecutor",
    "DirectoryExecutor",
    "FileExecutor",
    "StepExecutor",
]
