"""
Security utilities module.

This module provides:
- Cryptographically secure asset names for staged and promoted files
"""

import logging
import secrets


# Configure logger for security operations
logger = logging.getLogger(__name__)

# Random bytes behind every asset name; token_urlsafe encodes them as ~43 chars
ASSET_TOKEN_BYTES = 32


def generate_asset_token(nbytes: int = ASSET_TOKEN_BYTES) -> str:
    """
    Generate a URL-safe random token for naming an asset file.

    Unguessable names prevent collisions between concurrent uploads and stop
    clients from predicting (and cache-poisoning) an asset URL.

    Args:
        nbytes: Number of random bytes. Must be at least ASSET_TOKEN_BYTES.

    Returns:
        A base64url string without padding.

    Example:
        >>> token = generate_asset_token()
        >>> len(token) >= 43
        True
    """
    if nbytes < ASSET_TOKEN_BYTES:
        raise ValueError(f"Asset tokens need at least {ASSET_TOKEN_BYTES} random bytes")
    return secrets.token_urlsafe(nbytes)
