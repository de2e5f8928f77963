"""OpaqueEngine protocol - the homomorphic capability the ledger consumes.

Implementations: LocalEngine (in-process reference engine), future
adapters for a real FHE coprocessor/gateway.
"""

from __future__ import annotations

from typing import Any, Callable, Protocol, Sequence, runtime_checkable

# Handles are opaque to the ledger; only the engine interprets them.
Handle = Any
BoolHandle = Any

DecryptionCallback = Callable[[int, bytes, bytes], Any]


@runtime_checkable
class OpaqueEngine(Protocol):
    """Arithmetic, comparison and decryption over opaque handles."""

    def constant(self, value: int) -> Handle:
        """Opaque representation of a plaintext constant."""
        ...

    def add(self, a: Handle, b: Handle) -> Handle:
        """Opaque a + b. Commutative and associative."""
        ...

    def greater_or_equal(self, a: Handle, b: Handle) -> BoolHandle:
        """Opaque boolean a >= b."""
        ...

    def select(self, cond: BoolHandle, a: Handle, b: Handle) -> Handle:
        """Opaque ``a if cond else b``."""
        ...

    def export_identifier(self, handle: Handle) -> bytes:
        """Stable fixed-size (32 byte) identifier of a handle."""
        ...

    def begin_decryption(
        self, handles: Sequence[Handle], callback: DecryptionCallback,
    ) -> int:
        """Start an asynchronous decryption. Returns the request id.

        The engine later invokes ``callback(request_id, cleartexts, proof)``.
        """
        ...

    def verify_proof(self, request_id: int, cleartexts: bytes, proof: bytes) -> bool:
        """True if ``proof`` attests ``cleartexts`` for ``request_id``."""
        ...


__all__ = ["BoolHandle", "DecryptionCallback", "Handle", "OpaqueEngine"]
