"""
Utility package with configuration helpers for authsession.
"""

from .config import (
    ENV_PREFIX,
    get_config_value,
    get_bool_config,
    parse_redirect_map,
)

__all__ = [
    'ENV_PREFIX',
    'get_config_value',
    'get_bool_config',
    'parse_redirect_map',
]
