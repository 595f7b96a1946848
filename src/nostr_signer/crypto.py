"""Cryptographic primitives for Nostr keys and events.

Thin layer over established libraries:
- coincurve (libsecp256k1) for key derivation, BIP-340 Schnorr and ECDH
- bip_utils for NIP-19 bech32 encoding (nsec / npub)
- cryptography for the AES-256-CBC cipher used by NIP-04
"""

import base64
import hashlib
import json
import logging
import os
from typing import Any, Mapping

from bip_utils import Bech32ChecksumError, Bech32Decoder, Bech32Encoder
from coincurve import PrivateKey, PublicKey, PublicKeyXOnly
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

logger = logging.getLogger(__name__)

NSEC_HRP = "nsec"
NPUB_HRP = "npub"


class InvalidKeyError(ValueError):
    """Raised when a key cannot be decoded or is not a valid secp256k1 key."""
    pass


# ======================
# Keys
# ======================

def generate_secret_key() -> bytes:
    """Generate a new random secp256k1 secret key (32 bytes)."""
    return PrivateKey().secret


def get_public_key(secret_key: bytes) -> str:
    """Derive the x-only public key for a secret key.

    Args:
        secret_key: 32-byte secret key

    Returns:
        Public key as 64-char lowercase hex string
    """
    try:
        compressed = PublicKey.from_secret(secret_key).format(compressed=True)
    except ValueError as e:
        raise InvalidKeyError(f"Invalid secret key: {e}") from e
    return compressed[1:].hex()


def _bech32_decode(hrp: str, value: str) -> bytes:
    try:
        data = Bech32Decoder.Decode(hrp, value)
    except (Bech32ChecksumError, ValueError) as e:
        raise InvalidKeyError(f"Invalid {hrp} value: {e}") from e
    if len(data) != 32:
        raise InvalidKeyError(f"Invalid {hrp} value: expected 32 bytes, got {len(data)}")
    return data


def decode_nsec(nsec: str) -> bytes:
    """Decode a NIP-19 `nsec` string into secret key bytes."""
    return _bech32_decode(NSEC_HRP, nsec)


def encode_nsec(secret_key: bytes) -> str:
    """Encode secret key bytes as a NIP-19 `nsec` string."""
    return Bech32Encoder.Encode(NSEC_HRP, secret_key)


def decode_npub(npub: str) -> str:
    """Decode a NIP-19 `npub` string into a hex public key."""
    return _bech32_decode(NPUB_HRP, npub).hex()


def encode_npub(pubkey: str) -> str:
    """Encode a hex public key as a NIP-19 `npub` string."""
    return Bech32Encoder.Encode(NPUB_HRP, bytes.fromhex(pubkey))


# ======================
# Events (NIP-01)
# ======================

def serialize_event(event: Mapping[str, Any]) -> str:
    """Canonical NIP-01 serialization used for the event id."""
    return json.dumps(
        [
            0,
            event["pubkey"],
            event["created_at"],
            event["kind"],
            event["tags"],
            event["content"],
        ],
        separators=(",", ":"),
        ensure_ascii=False,
    )


def get_event_hash(event: Mapping[str, Any]) -> str:
    """Compute the event id (sha256 of the canonical serialization, hex)."""
    return hashlib.sha256(serialize_event(event).encode("utf-8")).hexdigest()


def sign_event_id(event_id: str, secret_key: bytes) -> str:
    """Produce a BIP-340 Schnorr signature over an event id.

    Fresh auxiliary randomness is used, so repeated signatures over the same
    id differ while all of them verify.

    Args:
        event_id: 32-byte event id as hex
        secret_key: 32-byte secret key

    Returns:
        64-byte signature as hex
    """
    try:
        key = PrivateKey(secret_key)
    except ValueError as e:
        raise InvalidKeyError(f"Invalid secret key: {e}") from e
    return key.sign_schnorr(bytes.fromhex(event_id), os.urandom(32)).hex()


def verify_event(event: Mapping[str, Any]) -> bool:
    """Check that an event's id matches its content and its signature is valid."""
    try:
        if get_event_hash(event) != event.get("id"):
            return False
        pubkey = PublicKeyXOnly(bytes.fromhex(event["pubkey"]))
        return pubkey.verify(bytes.fromhex(event["sig"]), bytes.fromhex(event["id"]))
    except (KeyError, TypeError, ValueError) as e:
        logger.debug(f"Event verification failed: {e}")
        return False


# ======================
# NIP-04 encryption
# ======================

def _shared_secret(secret_key: bytes, pubkey: str) -> bytes:
    """ECDH shared secret: x coordinate of secret_key * pubkey."""
    try:
        point = PublicKey(b"\x02" + bytes.fromhex(pubkey))
        return point.multiply(secret_key).format(compressed=True)[1:]
    except ValueError as e:
        raise InvalidKeyError(f"Invalid key for ECDH: {e}") from e


def nip04_encrypt(secret_key: bytes, pubkey: str, plaintext: str) -> str:
    """Encrypt a message for `pubkey` following NIP-04.

    Returns:
        `base64(ciphertext) + "?iv=" + base64(iv)`
    """
    key = _shared_secret(secret_key, pubkey)
    iv = os.urandom(16)

    padder = padding.PKCS7(128).padder()
    padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

    encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
    ciphertext = encryptor.update(padded) + encryptor.finalize()

    return f"{base64.b64encode(ciphertext).decode()}?iv={base64.b64encode(iv).decode()}"


def nip04_decrypt(secret_key: bytes, pubkey: str, payload: str) -> str:
    """Decrypt a NIP-04 payload received from (or sent to) `pubkey`."""
    try:
        ct_b64, iv_b64 = payload.split("?iv=", 1)
        ciphertext = base64.b64decode(ct_b64)
        iv = base64.b64decode(iv_b64)
    except ValueError as e:
        raise ValueError(f"Malformed NIP-04 payload: {e}") from e

    key = _shared_secret(secret_key, pubkey)
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()

    unpadder = padding.PKCS7(128).unpadder()
    return (unpadder.update(padded) + unpadder.finalize()).decode("utf-8")
