from __future__ import annotations

from .interface import BoolHandle, DecryptionCallback, Handle, OpaqueEngine
from .local import LocalEngine

__all__ = [
    "BoolHandle",
    "DecryptionCallback",
    "Handle",
    "LocalEngine",
    "OpaqueEngine",
]
