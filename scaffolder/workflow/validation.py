"""
Post-step validation (``validate: {test, path, text?}``).

Outcomes are returned as values so a missing file, an unreadable file and
absent text stay distinguishable; ``check`` turns a failing outcome into
StepValidationError.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional

from ..exceptions import StepValidationError
from ..variables import TemplateResolver

logger = logging.getLogger(__name__)


class OutcomeKind(str, Enum):
    """Validation outcome kinds."""
    PASSED = "passed"
    MISSING = "missing"
    NOT_CONTAINED = "not_contained"
    UNREADABLE = "unreadable"
    UNKNOWN_TEST = "unknown_test"


@dataclass
class ValidationOutcome:
    """Result of one validation."""
    kind: OutcomeKind
    path: str
    message: str

    @property
    def failed(self) -> bool:
        return self.kind in (OutcomeKind.MISSING, OutcomeKind.NOT_CONTAINED, OutcomeKind.UNREADABLE)


class StepValidator:
    """Runs ``exists`` and ``contains`` assertions against the filesystem."""

    def __init__(self, resolver: TemplateResolver):
        self.resolver = resolver

    def validate(self, validation: Dict[str, Any]) -> ValidationOutcome:
        """Evaluate a validate block without raising."""
        test = validation.get('test')
        path = self.resolver.resolve(str(validation.get('path', '')))

        if test == 'exists':
            if os.path.exists(path):
                return ValidationOutcome(OutcomeKind.PASSED, path, f"{path} exists")
            return ValidationOutcome(
                OutcomeKind.MISSING, path, f"Validation failed: {path} does not exist"
            )

        if test == 'contains':
            try:
                content = Path(path).read_text(encoding='utf-8')
            except (OSError, UnicodeDecodeError):
                return ValidationOutcome(
                    OutcomeKind.UNREADABLE, path, f"Validation failed: Could not read {path}"
                )
            text = self.resolver.resolve(str(validation.get('text', '')))
            if text not in content:
                return ValidationOutcome(
                    OutcomeKind.NOT_CONTAINED, path,
                    f'Validation failed: {path} does not contain "{text}"'
                )
            return ValidationOutcome(OutcomeKind.PASSED, path, f"{path} contains expected content")

        return ValidationOutcome(OutcomeKind.UNKNOWN_TEST, path, f"Unknown validation test: {test}")

    def check(self, validation: Optional[Dict[str, Any]]) -> Optional[ValidationOutcome]:
        """
        Validate a step's post-condition.

        Args:
            validation: The step's validate block (None means nothing to check)

        Returns:
            The outcome, or None when the step has no validate block

        Raises:
            StepValidationError: If the assertion does not hold
        """
        if not validation:
            return None

        outcome = self.validate(validation)
        if outcome.failed:
            raise StepValidationError(outcome)
        if outcome.kind == OutcomeKind.UNKNOWN_TEST:
            logger.warning(outcome.message)
        else:
            print(f"    ✅ Validation passed: {outcome.message}")
        return outcome
