"""Test helpers shared across modules."""

import shlex
import sys
from pathlib import Path

from scaffolder.loader import Configuration


def python_command(code: str) -> str:
    """Shell command running code with the current interpreter."""
    return f'{shlex.quote(sys.executable)} -c "{code}"'


def make_config(phases, variables=None, prompts=None, after_message=None, meta=None) -> Configuration:
    """Build a Configuration without going through a file."""
    return Configuration(
        meta=meta or {'name': 'Test Boilerplate'},
        variables=variables or {},
        prompts=prompts or [],
        phases=phases,
        after_message=after_message,
    )


class FakePromptCollector:
    """Prompt collaborator returning canned answers."""

    def __init__(self, answers=None, conflict_choice='skip'):
        self.answers = answers or {}
        self.conflict_choice = conflict_choice
        self.asked = []
        self.defaults = {}
        self.conflicts = []

    def collect(self, prompts, defaults):
        self.asked = [p['name'] for p in prompts]
        self.defaults = {name: defaults.get(name) for name in self.asked}
        return {name: value for name, value in self.answers.items() if name in self.asked}

    def resolve_conflict(self, path: Path) -> str:
        self.conflicts.append(path)
        return self.conflict_choice
