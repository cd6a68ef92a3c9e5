"""
Condition parsing and evaluation for {{#if}} blocks and phase/step ``when`` strings.

Exactly four surface forms are accepted, tried in this order:

    name == 'literal'     Equality (single quotes)
    name == "literal"     Equality (double quotes)
    name                  Truthy
    !name                 Falsy

Anything else parses to Unrecognized, which always evaluates to False.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Mapping, Union

from .store import stringify

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Equality:
    """``name == 'literal'``"""
    var: str
    literal: str


@dataclass(frozen=True)
class Truthy:
    """``name``"""
    var: str


@dataclass(frozen=True)
class Falsy:
    """``!name``"""
    var: str


@dataclass(frozen=True)
class Unrecognized:
    """Any text outside the four accepted forms."""
    text: str


Condition = Union[Equality, Truthy, Falsy, Unrecognized]

_FORMS = (
    (re.compile(r"^(\w+)\s*==\s*'([^']+)'$"), lambda m: Equality(m.group(1), m.group(2))),
    (re.compile(r'^(\w+)\s*==\s*"([^"]+)"$'), lambda m: Equality(m.group(1), m.group(2))),
    (re.compile(r'^(\w+)$'), lambda m: Truthy(m.group(1))),
    (re.compile(r'^!(\w+)$'), lambda m: Falsy(m.group(1))),
)


def parse_condition(text: str) -> Condition:
    """Parse condition text into its tagged form; first matching form wins."""
    for pattern, build in _FORMS:
        match = pattern.match(text)
        if match:
            return build(match)
    return Unrecognized(text)


def strip_delimiters(when: Any) -> str:
    """Turn a ``when`` value into condition text: ``{{flag}}`` and ``flag`` are equivalent."""
    return str(when).replace('{{', '').replace('}}', '').strip()


def is_truthy(value: Any) -> bool:
    """Truthiness used by the Truthy/Falsy forms."""
    if value is None or value is False:
        return False
    if value in ('none', 'false'):
        return False
    return bool(value)


class ConditionEvaluator:
    """
    Evaluates condition text against the variable store.

    Unrecognized conditions log a warning and evaluate to False, so a
    malformed condition never enables a phase, step or block.
    """

    def __init__(self, variables: Mapping[str, Any]):
        """
        Initialize the condition evaluator.

        Args:
            variables: Variable store (or any mapping) to read values from
        """
        self.variables = variables

    def evaluate(self, condition: Union[str, Condition]) -> bool:
        """
        Evaluate a condition.

        Args:
            condition: Condition text or an already parsed condition

        Returns:
            True if the condition holds
        """
        if isinstance(condition, str):
            condition = parse_condition(condition)

        if isinstance(condition, Equality):
            if condition.var not in self.variables:
                return False
            return stringify(self.variables[condition.var]) == condition.literal
        if isinstance(condition, Truthy):
            return is_truthy(self.variables.get(condition.var))
        if isinstance(condition, Falsy):
            return not is_truthy(self.variables.get(condition.var))

        logger.warning(f"Unsupported condition format: {condition.text}")
        return False

    def evaluate_when(self, when: Any) -> bool:
        """Evaluate a phase or step ``when`` value."""
        return self.evaluate(strip_delimiters(when))
