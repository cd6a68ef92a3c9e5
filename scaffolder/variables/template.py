"""
Template resolution for step fields.

Two ordered passes:
1. {{#if COND}}BODY{{/if}} blocks are kept or dropped by the condition evaluator.
2. {{name}} placeholders are replaced with store values. Unknown names are
   left in place and reported.
"""

import logging
import re
from typing import Optional

from .store import VariableStore
from .conditions import ConditionEvaluator

logger = logging.getLogger(__name__)


class TemplateResolver:
    """
    Resolves {{var}} interpolation and {{#if}} blocks against a VariableStore.

    Blocks do not nest: a block runs from ``{{#if`` to the nearest ``{{/if}}``.
    An inner ``{{#if}}`` is not recognised as such, so nested input yields
    whatever that scan produces.
    """

    IF_BLOCK_PATTERN = re.compile(r'\{\{#if\s+([^}]+)\}\}(.*?)\{\{/if\}\}', re.DOTALL)
    VAR_PATTERN = re.compile(r'\{\{(\w+)\}\}')

    def __init__(self, store: VariableStore, evaluator: Optional[ConditionEvaluator] = None):
        self.store = store
        self.evaluator = evaluator or ConditionEvaluator(store)

    def resolve(self, text: Optional[str]) -> Optional[str]:
        """
        Resolve a template string.

        Args:
            text: Template text; None and empty strings pass through unchanged

        Returns:
            Resolved text
        """
        if not text:
            return text
        if not isinstance(text, str):
            text = str(text)

        text = self._resolve_blocks(text)
        return self._substitute(text)

    def _resolve_blocks(self, text: str) -> str:
        def replace_block(match):
            if self.evaluator.evaluate(match.group(1).strip()):
                return match.group(2)
            return ''

        return self.IF_BLOCK_PATTERN.sub(replace_block, text)

    def _substitute(self, text: str) -> str:
        def replace_var(match):
            name = match.group(1)
            value = self.store.lookup(name)
            if value is None:
                # Left in place so the gap stays visible downstream
                logger.warning(f"Variable {{{{{name}}}}} not found")
                return match.group(0)
            return value

        return self.VAR_PATTERN.sub(replace_var, text)
