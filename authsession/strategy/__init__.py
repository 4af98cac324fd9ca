"""
Pluggable authentication strategies.
"""

from .base import Capability, Strategy, StrategyOptions
from .registry import StrategyRegistry

__all__ = [
    "Capability",
    "Strategy",
    "StrategyOptions",
    "StrategyRegistry",
]
