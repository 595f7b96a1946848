"""nostr-signer: signing and NIP-04 encryption for Nostr clients."""

__version__ = "0.1.0"
