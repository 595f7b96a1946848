"""Pytest configuration and fixtures."""

from typing import Any, Mapping, Optional

import pytest

from nostr_signer import crypto
from nostr_signer.config import Settings
from nostr_signer.signing.bunker import BunkerPointer
from nostr_signer.signing.signer import Signer
from nostr_signer.storage import MemoryStorage

# BIP-340 test vector 0
SECRET_KEY = bytes.fromhex("00" * 31 + "03")
PUBLIC_KEY = "f9308a019258c31049344f85f89d5229b531c845836f99b08601f113bce036f9"

REMOTE_PUBKEY = "fa984bd7dbb282f07e16e7ae87b26a2a7b9b90b7246a44771f0cf5ae58018f52"
BUNKER_URL = f"bunker://{REMOTE_PUBKEY}?relay=wss%3A%2F%2Frelay.example.com&secret=s3cr3t"
REMOTE_USER_SECRET = bytes.fromhex("00" * 31 + "07")


class FakeNip04:
    """NIP-04 sub-capability backed by a local key."""

    def __init__(self, secret_key: bytes):
        self._secret_key = secret_key

    async def encrypt(self, pubkey: str, plaintext: str) -> str:
        return crypto.nip04_encrypt(self._secret_key, pubkey, plaintext)

    async def decrypt(self, pubkey: str, ciphertext: str) -> str:
        return crypto.nip04_decrypt(self._secret_key, pubkey, ciphertext)


class FakeRemoteSigner:
    """In-process stand-in for a NIP-46 session."""

    def __init__(self, secret_key: bytes, relays: Optional[dict] = None):
        self._secret_key = secret_key
        self._nip04 = FakeNip04(secret_key)
        self.relays = relays or {}
        self.calls: list[str] = []

    async def get_public_key(self) -> str:
        self.calls.append("get_public_key")
        return crypto.get_public_key(self._secret_key)

    async def sign_event(self, event: dict[str, Any]) -> Mapping[str, Any]:
        self.calls.append("sign_event")
        signed = dict(event, pubkey=crypto.get_public_key(self._secret_key))
        signed["id"] = crypto.get_event_hash(signed)
        signed["sig"] = crypto.sign_event_id(signed["id"], self._secret_key)
        return signed

    async def get_relays(self) -> dict:
        self.calls.append("get_relays")
        return self.relays

    async def nip04_encrypt(self, pubkey: str, plaintext: str) -> str:
        self.calls.append("nip04_encrypt")
        return await self._nip04.encrypt(pubkey, plaintext)

    async def nip04_decrypt(self, pubkey: str, ciphertext: str) -> str:
        self.calls.append("nip04_decrypt")
        return await self._nip04.decrypt(pubkey, ciphertext)


class RecordingBunkerFactory:
    """Bunker factory that remembers the client secrets it was given."""

    def __init__(self, remote: FakeRemoteSigner):
        self.remote = remote
        self.client_secrets: list[bytes] = []
        self.pointers: list[BunkerPointer] = []

    def __call__(self, client_secret: bytes, pointer: BunkerPointer) -> FakeRemoteSigner:
        self.client_secrets.append(client_secret)
        self.pointers.append(pointer)
        return self.remote


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(storage_path=str(tmp_path / "signer.json"))


@pytest.fixture
def storage() -> MemoryStorage:
    return MemoryStorage()


@pytest.fixture
def nsec() -> str:
    return crypto.encode_nsec(SECRET_KEY)


@pytest.fixture
def remote() -> FakeRemoteSigner:
    return FakeRemoteSigner(
        REMOTE_USER_SECRET,
        relays={"wss://relay.example.com": {"read": True, "write": True}},
    )


@pytest.fixture
def bunker_factory(remote) -> RecordingBunkerFactory:
    return RecordingBunkerFactory(remote)


@pytest.fixture
def signer(storage, settings, bunker_factory) -> Signer:
    return Signer(storage, bunker_factory=bunker_factory, settings=settings)
