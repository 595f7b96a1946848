"""Base types for the signing façade.

Signing flow:
1. Resolve the active backend from the persisted login marker
2. Delegate to the host capability, the remote bunker, or the local key
3. Return the result unchanged (no partial results, no retries)
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol, TypedDict

logger = logging.getLogger(__name__)


class RelayPolicy(TypedDict):
    """Read/write permissions for one relay."""
    read: bool
    write: bool


RelayMap = dict[str, RelayPolicy]


@dataclass
class Event:
    """Nostr event (NIP-01).

    Attributes:
        kind: Event kind
        content: Arbitrary string content
        tags: List of tags, each a list of strings
        created_at: Unix timestamp in seconds
        pubkey: Author public key (hex), filled in when signing locally
        id: sha256 of the canonical serialization (hex)
        sig: BIP-340 signature over `id` (hex)
    """
    kind: int
    content: str
    tags: list[list[str]] = field(default_factory=list)
    created_at: int = field(default_factory=lambda: int(time.time()))
    pubkey: Optional[str] = None
    id: Optional[str] = None
    sig: Optional[str] = None

    @property
    def is_signed(self) -> bool:
        return self.id is not None and self.sig is not None

    def to_dict(self) -> dict[str, Any]:
        """JSON-shaped dict, omitting unset fields."""
        data: dict[str, Any] = {
            "kind": self.kind,
            "content": self.content,
            "tags": [list(tag) for tag in self.tags],
            "created_at": self.created_at,
        }
        for name in ("pubkey", "id", "sig"):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Event":
        return cls(
            kind=data["kind"],
            content=data["content"],
            tags=[list(tag) for tag in data.get("tags", [])],
            created_at=data.get("created_at", int(time.time())),
            pubkey=data.get("pubkey"),
            id=data.get("id"),
            sig=data.get("sig"),
        )


# ======================
# Collaborators
# ======================

class HostNip04(Protocol):
    """Optional encryption sub-capability of a host signer."""

    async def encrypt(self, pubkey: str, plaintext: str) -> str:
        ...

    async def decrypt(self, pubkey: str, ciphertext: str) -> str:
        ...


class HostCapability(Protocol):
    """Signing capability supplied by the surrounding environment (NIP-07).

    `nip04` is None when the host does not offer encryption.
    """

    nip04: Optional[HostNip04]

    async def get_public_key(self) -> str:
        ...

    async def sign_event(self, event: dict[str, Any]) -> Mapping[str, Any]:
        ...

    async def get_relays(self) -> RelayMap:
        ...


class RemoteSigner(Protocol):
    """Live NIP-46 session with a remote bunker."""

    async def get_public_key(self) -> str:
        ...

    async def sign_event(self, event: dict[str, Any]) -> Mapping[str, Any]:
        ...

    async def get_relays(self) -> RelayMap:
        ...

    async def nip04_encrypt(self, pubkey: str, plaintext: str) -> str:
        ...

    async def nip04_decrypt(self, pubkey: str, ciphertext: str) -> str:
        ...


# ======================
# Errors
# ======================

class SignerError(Exception):
    """Base exception for the signing façade."""
    pass


class LogicError(SignerError):
    """Precondition violated: no usable credential, or bunker session missing."""
    pass


class DescriptorParseError(SignerError):
    """Bunker connection descriptor could not be parsed."""
    pass


class BackendError(SignerError):
    """Failure reported by a delegated backend."""
    pass


class HostUnavailableError(BackendError):
    """Host signing capability selected but not available."""
    pass
