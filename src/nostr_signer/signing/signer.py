"""Signing façade over the host capability, a remote bunker and a local key.

Every operation re-reads the login marker from storage, so a login change
between calls is picked up immediately.

Usage:
    signer = Signer(storage, host=host_capability, bunker_factory=open_bunker)
    await signer.establish_bunker_connection("bunker://...")  # bunker logins only
    event = await signer.sign_event(Event(kind=1, content="hi"))
"""

import dataclasses
import logging
from typing import Any, Awaitable, Callable, Mapping, Optional, Union

from nostr_signer import crypto
from nostr_signer.config import Settings, get_settings
from nostr_signer.signing.base import (
    BackendError,
    DescriptorParseError,
    Event,
    HostCapability,
    HostNip04,
    HostUnavailableError,
    LogicError,
    RelayMap,
)
from nostr_signer.signing.bunker import (
    BunkerFactory,
    BunkerPointer,
    BunkerSession,
    parse_bunker_input,
)
from nostr_signer.signing.login import (
    BunkerLogin,
    HostLogin,
    LocalKeyLogin,
    Login,
    ViewOnlyLogin,
    decode_login,
)
from nostr_signer.storage import KeyValueStorage

logger = logging.getLogger(__name__)

DescriptorParser = Callable[[str], Awaitable[Optional[BunkerPointer]]]


def _delegated_event(signed: Mapping[str, Any], source: str) -> Event:
    """Convert an event returned by the host or bunker."""
    try:
        return Event.from_dict(signed)
    except (KeyError, TypeError, AttributeError) as e:
        raise BackendError(f"{source} returned a malformed event: {e!r}") from e


class Signer:
    """One contract for public key lookup, event signing, relay lookup and
    NIP-04 encryption, whichever backend the login marker selects.

    The bunker session is owned by this instance. It is None until
    `establish_bunker_connection` completes and is never persisted.
    """

    def __init__(
        self,
        storage: KeyValueStorage,
        host: Optional[HostCapability] = None,
        bunker_factory: Optional[BunkerFactory] = None,
        parse_descriptor: DescriptorParser = parse_bunker_input,
        settings: Optional[Settings] = None,
    ):
        """Initialize the signer.

        Args:
            storage: Persistent key-value store holding the login marker
            host: Host signing capability (NIP-07), if the environment has one
            bunker_factory: Opens a NIP-46 session from (client secret, pointer)
            parse_descriptor: Turns a connection descriptor into a BunkerPointer
            settings: Settings override (defaults to get_settings())
        """
        self.storage = storage
        self.host = host
        self.bunker_factory = bunker_factory
        self.parse_descriptor = parse_descriptor
        self.settings = settings or get_settings()
        self._session: Optional[BunkerSession] = None

    # ======================
    # Login state
    # ======================

    @property
    def is_bunker_connected(self) -> bool:
        return self._session is not None

    def current_login(self) -> Optional[Login]:
        """Decode the persisted login marker (None if nobody is logged in)."""
        return decode_login(self.storage.get(self.settings.login_storage_key))

    def login(self, login: Login) -> None:
        """Persist a new login marker.

        Switching away from a bunker login drops the bunker session.
        """
        if isinstance(login, LocalKeyLogin):
            # Fail now rather than on the first signature
            crypto.decode_nsec(login.nsec)
        if not isinstance(login, BunkerLogin):
            self.disconnect()

        self.storage.set(self.settings.login_storage_key, login.encode())
        logger.info(f"Logged in with {type(login).__name__}")

    def logout(self) -> None:
        """Clear the login marker and drop any bunker session."""
        self.storage.set(self.settings.login_storage_key, "")
        self.disconnect()
        logger.info("Logged out")

    def disconnect(self) -> None:
        """Drop the bunker session, if any."""
        if self._session is not None:
            logger.info(f"Dropping bunker session with {self._session.pubkey}")
        self._session = None

    def _resolve(self) -> Login:
        """Resolve the backend for one operation.

        Raises:
            LogicError: If no signing-capable credential is selected
        """
        login = self.current_login()
        if login is None or isinstance(login, ViewOnlyLogin):
            raise LogicError("[logic error] no signing credential selected")
        logger.debug(f"Resolved backend: {type(login).__name__}")
        return login

    def _require_session(self) -> BunkerSession:
        if self._session is None:
            raise LogicError("[logic error] bunker session not established")
        return self._session

    def _require_host(self) -> HostCapability:
        if self.host is None:
            raise HostUnavailableError("Host signing capability (NIP-07) not available")
        return self.host

    def _host_nip04(self) -> Optional[HostNip04]:
        return getattr(self.host, "nip04", None)

    # ======================
    # Bunker session
    # ======================

    def _client_secret(self) -> bytes:
        """Load the NIP-46 client secret, generating and persisting it once."""
        key = self.settings.client_secret_storage_key
        stored = self.storage.get(key)
        if stored:
            return bytes.fromhex(stored)

        secret = crypto.generate_secret_key()
        self.storage.set(key, secret.hex())
        logger.info("Generated new NIP-46 client identity")
        return secret

    async def establish_bunker_connection(self, descriptor: str) -> None:
        """Open a NIP-46 session and cache the remote public key.

        Args:
            descriptor: bunker:// URL or NIP-05 identifier

        Raises:
            DescriptorParseError: If the descriptor cannot be parsed
            LogicError: If no bunker factory is configured
        """
        pointer = await self.parse_descriptor(descriptor)
        if pointer is None:
            raise DescriptorParseError(f"failed to parse '{descriptor}'")
        if self.bunker_factory is None:
            raise LogicError("[logic error] no bunker factory configured")

        client_secret = self._client_secret()
        remote = self.bunker_factory(client_secret, pointer)
        pubkey = await remote.get_public_key()

        self._session = BunkerSession(signer=remote, pubkey=pubkey, pointer=pointer)
        logger.info(f"Bunker session established with {pointer.pubkey} (user {pubkey})")

    # ======================
    # Operations
    # ======================

    async def get_public_key(self) -> str:
        """Public key (hex) of the active identity."""
        login = self._resolve()

        if isinstance(login, HostLogin):
            return await self._require_host().get_public_key()
        elif isinstance(login, BunkerLogin):
            return self._require_session().pubkey
        elif isinstance(login, LocalKeyLogin):
            return crypto.get_public_key(login.secret_key)
        raise LogicError("[logic error] unsupported login")

    async def sign_event(self, template: Union[Event, Mapping[str, Any]]) -> Event:
        """Sign an event template with the active backend.

        Args:
            template: Event or event-shaped mapping; not modified

        Returns:
            Signed event with pubkey, id and sig populated
        """
        login = self._resolve()
        event = template if isinstance(template, Event) else Event.from_dict(template)

        if isinstance(login, HostLogin):
            signed = await self._require_host().sign_event(event.to_dict())
            return _delegated_event(signed, "host")
        elif isinstance(login, BunkerLogin):
            signed = await self._require_session().signer.sign_event(event.to_dict())
            return _delegated_event(signed, "bunker")
        elif isinstance(login, LocalKeyLogin):
            secret_key = login.secret_key
            pubkey = event.pubkey
            if pubkey is None:
                pubkey = crypto.get_public_key(secret_key)
            event = dataclasses.replace(event, pubkey=pubkey, id=None, sig=None)
            event_id = crypto.get_event_hash(event.to_dict())
            return dataclasses.replace(
                event,
                id=event_id,
                sig=crypto.sign_event_id(event_id, secret_key),
            )
        raise LogicError("[logic error] unsupported login")

    async def get_relays(self) -> RelayMap:
        """Relay list of the active identity.

        Advisory only on the host path: failures there degrade to {}.
        """
        login = self._resolve()

        if isinstance(login, HostLogin):
            try:
                return await self._require_host().get_relays()
            except Exception as e:
                logger.error(f"[NIP-07 get_relays()] {e!r}")
                return {}
        elif isinstance(login, BunkerLogin):
            return await self._require_session().signer.get_relays()
        return {}

    async def encrypt(self, pubkey: str, plaintext: str) -> str:
        """NIP-04 encrypt `plaintext` for `pubkey`."""
        login = self._resolve()
        nip04 = self._host_nip04() if isinstance(login, HostLogin) else None

        if nip04 is not None:
            return await nip04.encrypt(pubkey, plaintext)
        elif isinstance(login, BunkerLogin):
            return await self._require_session().signer.nip04_encrypt(pubkey, plaintext)
        elif isinstance(login, LocalKeyLogin):
            return crypto.nip04_encrypt(login.secret_key, pubkey, plaintext)
        raise LogicError("[logic error] encryption not available for this login")

    async def decrypt(self, pubkey: str, ciphertext: str) -> str:
        """NIP-04 decrypt `ciphertext` exchanged with `pubkey`."""
        login = self._resolve()
        nip04 = self._host_nip04() if isinstance(login, HostLogin) else None

        if nip04 is not None:
            return await nip04.decrypt(pubkey, ciphertext)
        elif isinstance(login, BunkerLogin):
            return await self._require_session().signer.nip04_decrypt(pubkey, ciphertext)
        elif isinstance(login, LocalKeyLogin):
            return crypto.nip04_decrypt(login.secret_key, pubkey, ciphertext)
        raise LogicError("[logic error] decryption not available for this login")
