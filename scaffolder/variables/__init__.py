"""
Variable store, condition evaluation and template resolution.
"""

from .store import VariableStore, stringify
from .conditions import ConditionEvaluator, parse_condition
from .template import TemplateResolver

__all__ = [
    'VariableStore',
    'ConditionEvaluator',
    'TemplateResolver',
    'parse_condition',
    'stringify',
]
