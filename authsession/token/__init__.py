"""
Token record management for authsession.
"""

from .manager import TokenManager, Scope

__all__ = ["TokenManager", "Scope"]
