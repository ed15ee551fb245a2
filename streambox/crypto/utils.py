"""
Cryptographic utilities for random number generation and byte formatting.

This module provides the nonce source used by the encrypting transform and
small helpers shared by the key and command-line code.
"""

import secrets

from .aead import NONCE_SIZE


def generate_random_bytes(length: int) -> bytes:
    """
    Generate cryptographically secure random bytes.

    Args:
        length: Number of random bytes to generate

    Returns:
        Cryptographically secure random bytes
    """
    return secrets.token_bytes(length)


def generate_nonce() -> bytes:
    """
    Generate a fresh 24-byte record nonce.

    Returns:
        24 bytes of cryptographically secure random data
    """
    return generate_random_bytes(NONCE_SIZE)


def parse_hex(hex_string: str) -> bytes:
    """
    Parse hexadecimal string to bytes.

    Args:
        hex_string: Hex string (with or without separators)

    Returns:
        Parsed bytes
    """
    # Remove common separators
    cleaned = hex_string.strip().replace(" ", "").replace(":", "").replace("-", "")
    return bytes.fromhex(cleaned)
