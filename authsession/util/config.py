"""
Configuration utilities for authsession.
Provides typed environment value helpers.
"""

import os
from typing import Any, Dict, Optional


ENV_PREFIX = "AUTHSESSION_"


def get_config_value(key: str, default: Any = None,
                     cast_type: Optional[type] = None,
                     env_prefix: str = ENV_PREFIX) -> Any:
    """
    Get configuration value from environment or return default.
    Optionally cast to specified type.
    """
    env_key = f"{env_prefix}{key.upper()}"
    value = os.environ.get(env_key, default)

    if value is None or cast_type is None:
        return value

    try:
        if cast_type == bool:
            if isinstance(value, str):
                return value.lower() in ('true', '1', 'yes', 'on')
            return bool(value)
        return cast_type(value)
    except (ValueError, TypeError):
        return default


def get_bool_config(key: str, default: bool = False,
                    env_prefix: str = ENV_PREFIX) -> bool:
    """Get boolean configuration value."""
    return get_config_value(key, default, bool, env_prefix)


def parse_redirect_map(value: Optional[str]) -> Dict[str, str]:
    """
    Parse "login=/login,home=/" into a redirect mapping.

    Entries without "=" are ignored; an empty target disables that
    transition.
    """
    result = {}
    if not value:
        return result

    for item in value.split(','):
        name, sep, target = item.partition('=')
        if not sep:
            continue
        name = name.strip()
        target = target.strip()
        if name:
            result[name] = target or None

    return result
