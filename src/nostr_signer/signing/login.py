"""Login marker decoding.

The persisted marker selects the active backend. It is decoded at the
storage boundary into one of four variants:

- "NIP-07"          -> HostLogin
- "bunker://..."    -> BunkerLogin
- "nsec1..."        -> LocalKeyLogin
- "npub1..."        -> ViewOnlyLogin (display only, never signs)
"""

import logging
from dataclasses import dataclass
from typing import Optional, Union

from nostr_signer.crypto import decode_npub, decode_nsec
from nostr_signer.signing.base import LogicError

logger = logging.getLogger(__name__)

HOST_MARKER = "NIP-07"
BUNKER_PREFIX = "bunker://"
NSEC_PREFIX = "nsec"
NPUB_PREFIX = "npub"


@dataclass(frozen=True)
class HostLogin:
    """Signing delegated to the host capability."""

    def encode(self) -> str:
        return HOST_MARKER


@dataclass(frozen=True)
class BunkerLogin:
    """Signing delegated to a NIP-46 remote bunker."""
    uri: str

    def encode(self) -> str:
        return self.uri


@dataclass(frozen=True)
class LocalKeyLogin:
    """Signing with a locally held secret key."""
    nsec: str

    @property
    def secret_key(self) -> bytes:
        # Decoded on every access, never cached
        return decode_nsec(self.nsec)

    def encode(self) -> str:
        return self.nsec

    def __repr__(self) -> str:
        return "LocalKeyLogin(nsec=***)"


@dataclass(frozen=True)
class ViewOnlyLogin:
    """Public key only."""
    npub: str

    @property
    def pubkey(self) -> str:
        return decode_npub(self.npub)

    def encode(self) -> str:
        return self.npub


Login = Union[HostLogin, BunkerLogin, LocalKeyLogin, ViewOnlyLogin]


def decode_login(marker: Optional[str]) -> Optional[Login]:
    """Decode a persisted login marker.

    Args:
        marker: Raw stored value, None (or empty) when nobody is logged in

    Returns:
        Login variant, or None if no marker is stored

    Raises:
        LogicError: If the marker has an unknown shape
    """
    if not marker:
        return None
    if marker == HOST_MARKER:
        return HostLogin()
    if marker.startswith(BUNKER_PREFIX):
        return BunkerLogin(marker)
    if marker.startswith(NSEC_PREFIX):
        return LocalKeyLogin(marker)
    if marker.startswith(NPUB_PREFIX):
        return ViewOnlyLogin(marker)

    raise LogicError("[logic error] unrecognized login marker")
