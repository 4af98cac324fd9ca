"""
Storage package for authsession.

Provides the three-tier universal store and its persistence backends.
"""

from .backends import (
    StorageBackend,
    MemoryBackend,
    CookieBackend,
    CookieOptions,
    encode_value,
    decode_value,
)
from .file import FileBackend, create_file_backend
from .store import Storage

__all__ = [
    "Storage",
    "StorageBackend",
    "MemoryBackend",
    "CookieBackend",
    "CookieOptions",
    "FileBackend",
    "create_file_backend",
    "encode_value",
    "decode_value",
]
