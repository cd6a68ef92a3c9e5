"""Shared fixtures."""

import logging

import pytest


@pytest.fixture
def workspace(tmp_path, monkeypatch):
    """Temporary working directory for runs that use relative paths."""
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture
def restore_logging():
    """Undo root logger changes made by the CLI's logging setup."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
