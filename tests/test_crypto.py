"""Tests for the cryptographic primitives."""

import hashlib

import pytest

from nostr_signer import crypto
from nostr_signer.crypto import InvalidKeyError

from conftest import PUBLIC_KEY, SECRET_KEY

# NIP-19 examples
NIP19_NPUB = "npub10elfcs4fr0l0r8af98jlmgdh9c8tcxjvz9qkw038js35mp4dma8qzvjptg"
NIP19_PUBKEY = "7e7e9c42a91bfef19fa929e5fda1b72e0ebc1a4c1141673e2794234d86addf4e"
NIP19_NSEC = "nsec1vl029mgpspedva04g90vltkh6fvh240zqtv9k0t9af8935ke9laqsnlfe5"
NIP19_SECRET = "67dea2ed018072d675f5415ecfaed7d2597555e202d85b3d65ea4e58d2d92ffa"


class TestKeys:
    """Tests for key generation and derivation."""

    def test_get_public_key_matches_bip340_vector(self):
        assert crypto.get_public_key(SECRET_KEY) == PUBLIC_KEY

    def test_generate_secret_key(self):
        key1 = crypto.generate_secret_key()
        key2 = crypto.generate_secret_key()

        assert len(key1) == 32
        assert key1 != key2
        assert len(crypto.get_public_key(key1)) == 64

    def test_invalid_secret_key(self):
        with pytest.raises(InvalidKeyError):
            crypto.get_public_key(b"\x00" * 32)


class TestBech32:
    """Tests for NIP-19 nsec/npub encoding."""

    def test_decode_npub(self):
        assert crypto.decode_npub(NIP19_NPUB) == NIP19_PUBKEY

    def test_decode_nsec(self):
        assert crypto.decode_nsec(NIP19_NSEC).hex() == NIP19_SECRET

    def test_encode_matches_nip19(self):
        assert crypto.encode_npub(NIP19_PUBKEY) == NIP19_NPUB
        assert crypto.encode_nsec(bytes.fromhex(NIP19_SECRET)) == NIP19_NSEC

    def test_wrong_prefix_rejected(self):
        with pytest.raises(InvalidKeyError):
            crypto.decode_nsec(NIP19_NPUB)

    def test_bad_checksum_rejected(self):
        corrupted = NIP19_NSEC[:-1] + ("q" if NIP19_NSEC[-1] != "q" else "p")
        with pytest.raises(InvalidKeyError):
            crypto.decode_nsec(corrupted)


class TestEvents:
    """Tests for event hashing and signing."""

    def _event(self, **overrides):
        event = {
            "pubkey": PUBLIC_KEY,
            "created_at": 0,
            "kind": 1,
            "tags": [],
            "content": "hi",
        }
        event.update(overrides)
        return event

    def test_serialize_event(self):
        assert crypto.serialize_event(self._event()) == f'[0,"{PUBLIC_KEY}",0,1,[],"hi"]'

    def test_serialize_keeps_unicode(self):
        serialized = crypto.serialize_event(self._event(content="héllo ⚡"))
        assert "héllo ⚡" in serialized

    def test_event_hash(self):
        expected = hashlib.sha256(f'[0,"{PUBLIC_KEY}",0,1,[],"hi"]'.encode()).hexdigest()
        assert crypto.get_event_hash(self._event()) == expected

    def test_sign_and_verify(self):
        event = self._event()
        event["id"] = crypto.get_event_hash(event)
        event["sig"] = crypto.sign_event_id(event["id"], SECRET_KEY)

        assert len(event["sig"]) == 128
        assert crypto.verify_event(event) is True

    def test_verify_rejects_tampered_content(self):
        event = self._event()
        event["id"] = crypto.get_event_hash(event)
        event["sig"] = crypto.sign_event_id(event["id"], SECRET_KEY)
        event["content"] = "bye"

        assert crypto.verify_event(event) is False

    def test_verify_rejects_missing_sig(self):
        event = self._event()
        event["id"] = crypto.get_event_hash(event)

        assert crypto.verify_event(event) is False


class TestNip04:
    """Tests for NIP-04 encryption."""

    def test_round_trip_between_two_keys(self):
        alice = crypto.generate_secret_key()
        bob = crypto.generate_secret_key()

        payload = crypto.nip04_encrypt(alice, crypto.get_public_key(bob), "secret message")
        assert "?iv=" in payload

        plaintext = crypto.nip04_decrypt(bob, crypto.get_public_key(alice), payload)
        assert plaintext == "secret message"

    def test_self_round_trip(self):
        pubkey = crypto.get_public_key(SECRET_KEY)
        payload = crypto.nip04_encrypt(SECRET_KEY, pubkey, "note to self")

        assert crypto.nip04_decrypt(SECRET_KEY, pubkey, payload) == "note to self"

    def test_random_iv(self):
        pubkey = crypto.get_public_key(SECRET_KEY)

        assert crypto.nip04_encrypt(SECRET_KEY, pubkey, "x") != crypto.nip04_encrypt(
            SECRET_KEY, pubkey, "x"
        )

    def test_malformed_payload(self):
        with pytest.raises(ValueError):
            crypto.nip04_decrypt(SECRET_KEY, PUBLIC_KEY, "not-a-payload")
