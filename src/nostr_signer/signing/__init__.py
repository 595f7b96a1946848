"""Nostr signing façade.

One async contract over three mutually exclusive backends:
- Host capability (NIP-07)
- Remote bunker (NIP-46)
- Local secret key (nsec)
"""

from nostr_signer.signing.base import (
    BackendError,
    DescriptorParseError,
    Event,
    HostCapability,
    HostUnavailableError,
    LogicError,
    RelayMap,
    RelayPolicy,
    RemoteSigner,
    SignerError,
)
from nostr_signer.signing.bunker import BunkerPointer, parse_bunker_input
from nostr_signer.signing.factory import get_signer, reset_signer
from nostr_signer.signing.login import (
    BunkerLogin,
    HostLogin,
    LocalKeyLogin,
    Login,
    ViewOnlyLogin,
    decode_login,
)
from nostr_signer.signing.signer import Signer

__all__ = [
    "BackendError",
    "BunkerLogin",
    "BunkerPointer",
    "DescriptorParseError",
    "Event",
    "HostCapability",
    "HostLogin",
    "HostUnavailableError",
    "LocalKeyLogin",
    "Login",
    "LogicError",
    "RelayMap",
    "RelayPolicy",
    "RemoteSigner",
    "Signer",
    "SignerError",
    "ViewOnlyLogin",
    "decode_login",
    "get_signer",
    "parse_bunker_input",
    "reset_signer",
]
