"""
Transaction signers.

Any object with ``sign`` and ``public_address`` can be used by the
submitter; :class:`LocalSigner` holds a private key in memory.
"""
from typing import Any, Dict, Protocol, runtime_checkable

from .local import LocalSigner


@runtime_checkable
class Signer(Protocol):
    """Protocol for transaction signers"""

    def sign(self, unsigned_tx: Dict[str, Any], chain_id: int) -> bytes:
        """Sign an unsigned transaction dict for ``chain_id`` and return raw bytes"""
        ...

    def public_address(self) -> str:
        """Checksum address of the signing account"""
        ...


__all__ = ["Signer", "LocalSigner"]
