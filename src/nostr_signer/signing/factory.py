"""Signer factory.

Builds the process-wide signer from settings. The host capability and the
NIP-46 session factory depend on the embedding environment, so callers pass
them in on first use.
"""

import logging
from typing import Optional

from nostr_signer.config import get_settings
from nostr_signer.signing.base import HostCapability
from nostr_signer.signing.bunker import BunkerFactory
from nostr_signer.signing.signer import Signer
from nostr_signer.storage import JsonFileStorage

logger = logging.getLogger(__name__)

_signer_instance: Optional[Signer] = None


def get_signer(
    host: Optional[HostCapability] = None,
    bunker_factory: Optional[BunkerFactory] = None,
) -> Signer:
    """Get the configured signer instance.

    Returns singleton instance backed by JSON file storage at
    `settings.storage_path`. Collaborators passed on later calls are
    attached to the existing instance.

    Args:
        host: Host signing capability (NIP-07)
        bunker_factory: NIP-46 session factory

    Returns:
        Signer instance
    """
    global _signer_instance

    if _signer_instance is None:
        settings = get_settings()
        logger.info(f"Initializing signer with storage at {settings.storage_path}")
        _signer_instance = Signer(
            JsonFileStorage(settings.storage_path),
            settings=settings,
        )

    if host is not None:
        _signer_instance.host = host
    if bunker_factory is not None:
        _signer_instance.bunker_factory = bunker_factory

    return _signer_instance


def reset_signer():
    """Reset the signer instance (for testing)."""
    global _signer_instance
    _signer_instance = None
    get_settings.cache_clear()


def get_signer_info() -> dict:
    """Get information about the current signer configuration.

    Returns:
        Dict with the active login type and collaborator availability
    """
    signer = get_signer()
    login = signer.current_login()

    return {
        "login": type(login).__name__ if login is not None else None,
        "host_available": signer.host is not None,
        "bunker_connected": signer.is_bunker_connected,
        "storage_path": signer.settings.storage_path,
    }
