"""
Pre-shared key handling for Streambox.

Keys are exactly 32 raw bytes shared out of band by both ends of a stream.
This module only generates, validates, stores and loads them; nothing is
derived or rotated.
"""

import logging
import os
from typing import Optional

from .aead import KEY_SIZE
from .utils import generate_random_bytes, parse_hex

logger = logging.getLogger(__name__)


def validate_key(key: bytes) -> bytes:
    """
    Check that ``key`` is usable as a stream key.

    Args:
        key: Candidate key material

    Returns:
        The key as immutable ``bytes``

    Raises:
        TypeError: If the key is not bytes-like
        ValueError: If the key is not exactly 32 bytes
    """
    if not isinstance(key, (bytes, bytearray, memoryview)):
        raise TypeError(f"Key must be bytes, got {type(key).__name__}")
    key = bytes(key)
    if len(key) != KEY_SIZE:
        raise ValueError(f"Key must be {KEY_SIZE} bytes, got {len(key)}")
    return key


def generate_key() -> bytes:
    """Generate a cryptographically secure 32-byte stream key."""
    return generate_random_bytes(KEY_SIZE)


def load_key(key_file_path: str) -> bytes:
    """
    Load a stream key from a file.

    Supported formats:
    - Raw binary (32 bytes)
    - Hex encoded (64 characters)
    - Hex encoded with trailing newline

    Args:
        key_file_path: Path to the file containing the key

    Returns:
        bytes: The 32-byte key

    Raises:
        FileNotFoundError: If the key file doesn't exist
        ValueError: If the key file format is invalid
    """
    if not os.path.exists(key_file_path):
        raise FileNotFoundError(f"Key file not found: {key_file_path}")

    with open(key_file_path, 'rb') as f:
        key_data = f.read()

    if len(key_data) == KEY_SIZE:
        return key_data

    stripped = key_data.rstrip(b'\r\n')
    if len(stripped) == KEY_SIZE * 2:
        try:
            return parse_hex(stripped.decode('ascii'))
        except (ValueError, UnicodeDecodeError):
            pass

    raise ValueError(
        f"Invalid key format. Expected {KEY_SIZE} raw bytes or "
        f"{KEY_SIZE * 2} hex characters, got {len(key_data)} bytes"
    )


def create_key_file(key_file_path: str, key: Optional[bytes] = None) -> bytes:
    """
    Create a key file with either a provided key or a generated one.

    Args:
        key_file_path: Path where to save the key file
        key: Optional pre-existing key. If None, generates a new one.

    Returns:
        bytes: The key that was saved
    """
    key = generate_key() if key is None else validate_key(key)

    # Hex for human readability, newline so `cat` output stays tidy
    with open(key_file_path, 'w') as f:
        f.write(key.hex() + '\n')

    try:
        os.chmod(key_file_path, 0o600)  # rw-------
    except OSError:
        logger.warning("Could not set restrictive permissions on %s", key_file_path)

    return key
