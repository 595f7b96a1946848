"""NIP-46 bunker connection descriptors and sessions.

A descriptor is either a bunker URL:

    bunker://<remote-pubkey-hex>?relay=wss://...&relay=wss://...&secret=...

or a NIP-05 identifier (`name@domain`) whose `.well-known/nostr.json`
publishes the bunker pubkey and its relays under `nip46`.
"""

import logging
import re
from dataclasses import dataclass, field
from typing import Callable, Optional
from urllib.parse import parse_qs, urlsplit

import httpx

from nostr_signer.config import get_settings
from nostr_signer.signing.base import RemoteSigner

logger = logging.getLogger(__name__)

BUNKER_URL_RE = re.compile(r"^bunker://([0-9a-f]{64})\??([?/\w:.=&%-]*)$")
NIP05_RE = re.compile(r"^(?:([\w.+-]+)@)?([\w_-]+(\.[\w_-]+)+)$")


@dataclass
class BunkerPointer:
    """Parsed remote signer endpoint.

    Attributes:
        pubkey: Remote signer public key (hex)
        relays: Relay URLs the bunker listens on
        secret: Optional one-time connection secret
    """
    pubkey: str
    relays: list[str] = field(default_factory=list)
    secret: Optional[str] = None


# Opens a session from (client secret, endpoint)
BunkerFactory = Callable[[bytes, BunkerPointer], RemoteSigner]


@dataclass
class BunkerSession:
    """Established remote signer session with the cached remote pubkey."""
    signer: RemoteSigner
    pubkey: str
    pointer: BunkerPointer


def parse_bunker_url(raw: str) -> Optional[BunkerPointer]:
    """Parse a `bunker://` URL, or return None if it is not one."""
    match = BUNKER_URL_RE.match(raw.strip())
    if not match:
        return None

    params = parse_qs(urlsplit(raw.strip()).query)
    secret_values = params.get("secret")
    return BunkerPointer(
        pubkey=match.group(1),
        relays=params.get("relay", []),
        secret=secret_values[0] if secret_values else None,
    )


async def query_bunker_profile(
    nip05: str,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[BunkerPointer]:
    """Resolve a NIP-05 identifier to a bunker pointer.

    Args:
        nip05: `name@domain` or bare `domain` (name defaults to `_`)
        client: Optional HTTP client (a short-lived one is created otherwise)

    Returns:
        BunkerPointer, or None if the identifier is malformed or the lookup fails
    """
    match = NIP05_RE.match(nip05.strip())
    if not match:
        return None

    name = match.group(1) or "_"
    domain = match.group(2)
    url = f"https://{domain}/.well-known/nostr.json"

    try:
        if client is not None:
            response = await client.get(url, params={"name": name})
        else:
            timeout = get_settings().nip05_timeout
            async with httpx.AsyncClient(timeout=timeout) as http:
                response = await http.get(url, params={"name": name})
        response.raise_for_status()
        data = response.json()
    except (httpx.HTTPError, ValueError) as e:
        logger.warning(f"NIP-05 bunker lookup failed for {nip05}: {e}")
        return None

    names = data.get("names") if isinstance(data, dict) else None
    pubkey = names.get(name) if isinstance(names, dict) else None
    if not isinstance(pubkey, str):
        logger.warning(f"NIP-05 document for {nip05} has no entry for '{name}'")
        return None

    nip46 = data.get("nip46") or {}
    relays = nip46.get(pubkey, []) if isinstance(nip46, dict) else []
    if not isinstance(relays, list) or not all(isinstance(r, str) for r in relays):
        logger.warning(f"NIP-05 document for {nip05} has a malformed nip46 relay list")
        return None
    return BunkerPointer(pubkey=pubkey, relays=list(relays), secret=None)


async def parse_bunker_input(
    raw: str,
    client: Optional[httpx.AsyncClient] = None,
) -> Optional[BunkerPointer]:
    """Parse a bunker URL or NIP-05 identifier.

    Returns:
        BunkerPointer, or None if `raw` cannot be turned into an endpoint
    """
    pointer = parse_bunker_url(raw)
    if pointer is not None:
        return pointer
    return await query_bunker_profile(raw, client=client)
