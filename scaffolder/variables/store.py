"""
Variable store shared by every resolution call of a run.
Seeded from config.variables, extended once by prompt answers, then sealed.
"""

import logging
from typing import Any, Dict, Iterator, Mapping, Optional

from ..exceptions import VariableStoreSealedError

logger = logging.getLogger(__name__)


class VariableStore(Mapping):
    """
    Case-sensitive map of identifier -> scalar value.

    Writes are accepted only until ``seal()`` is called. The workflow
    executor seals the store once prompt collection completes, so every
    step of the run reads the same values.
    """

    def __init__(self, initial: Optional[Mapping[str, Any]] = None):
        self._values: Dict[str, Any] = dict(initial or {})
        self._sealed = False

    def __getitem__(self, name: str) -> Any:
        return self._values[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._values)

    def __len__(self) -> int:
        return len(self._values)

    @property
    def sealed(self) -> bool:
        return self._sealed

    def merge(self, values: Mapping[str, Any]) -> None:
        """Merge values into the store; later values win."""
        if self._sealed:
            raise VariableStoreSealedError(
                "Variable store is read-only once collection has completed"
            )
        self._values.update(values)

    def seal(self) -> None:
        """Make the store read-only for the rest of the run."""
        self._sealed = True
        logger.debug(f"Variable store sealed with {len(self._values)} variables")

    def lookup(self, name: str) -> Optional[str]:
        """Return the stringified value for name, or None when absent."""
        if name not in self._values:
            return None
        return stringify(self._values[name])


def stringify(value: Any) -> str:
    """Render a stored value the way it appears in resolved text."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return ''
    if isinstance(value, (list, tuple)):
        return ','.join(stringify(item) for item in value)
    return str(value)
