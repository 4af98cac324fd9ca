"""
Named table of registered strategies.
"""

import logging
from typing import Dict, Iterator, Optional

from .base import Strategy


logger = logging.getLogger(__name__)


class StrategyRegistry:
    """Maps strategy names to strategy instances. Last registration wins."""

    def __init__(self):
        self._strategies: Dict[str, Strategy] = {}

    def register(self, name: str, strategy: Strategy) -> None:
        if strategy.name is None:
            strategy.name = name
        if name in self._strategies:
            logger.info(f"Replacing registered strategy: {name}")
        self._strategies[name] = strategy

    def unregister(self, name: str) -> bool:
        return self._strategies.pop(name, None) is not None

    def get(self, name: Optional[str]) -> Optional[Strategy]:
        if name is None or not isinstance(name, str):
            return None
        return self._strategies.get(name)

    def names(self) -> Iterator[str]:
        return iter(list(self._strategies.keys()))

    def __contains__(self, name: str) -> bool:
        return name in self._strategies

    def __len__(self) -> int:
        return len(self._strategies)
