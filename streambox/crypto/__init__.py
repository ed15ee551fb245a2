"""
Cryptographic primitives for Streambox.

This module provides:
- Authenticated encryption (XSalsa20-Poly1305 secretbox)
- The record nonce source
- Pre-shared key loading and generation
"""

from .aead import AEADCipher, AEADDecryptionError, KEY_SIZE, NONCE_SIZE, TAG_SIZE
from .keys import generate_key, load_key, create_key_file, validate_key
from .utils import generate_nonce, generate_random_bytes

__all__ = [
    'AEADCipher',
    'AEADDecryptionError',
    'KEY_SIZE',
    'NONCE_SIZE',
    'TAG_SIZE',
    'generate_key',
    'load_key',
    'create_key_file',
    'validate_key',
    'generate_nonce',
    'generate_random_bytes',
]
