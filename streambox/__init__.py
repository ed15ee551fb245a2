"""
Streambox: chunked authenticated encryption for byte streams.

Plaintext of any length is split into chunks of at most 16KB. Each chunk is
sealed with XSalsa20-Poly1305 under a fresh random nonce and written as an
independent, length-prefixed record. Decryption authenticates every record
before releasing its plaintext and detects tampering, truncation and key
mismatch.

Basic Usage:
    >>> import io
    >>> from streambox import encrypt, decrypt, generate_key
    >>>
    >>> key = generate_key()
    >>> ciphertext = encrypt(key, io.BytesIO(b"Hello, Streambox!")).read()
    >>> decrypt(key, io.BytesIO(ciphertext)).read()
    b'Hello, Streambox!'

Both readers are pull-based file objects: wrap any source with a ``read(n)``
method and read as much or as little as needed. A reader instance must be
driven by a single consumer.
"""

__version__ = "1.0.0"
__author__ = "Streambox Team"

# Stream transforms
from .protocol.encryptor import (
    EncryptingReader,
    MESSAGE_SIZE,
    NonceGenerationError,
    encrypt,
    encrypt_bytes,
    encrypt_stream,
)
from .protocol.decryptor import (
    DecryptingReader,
    DecryptionError,
    decrypt,
    decrypt_bytes,
    decrypt_stream,
)
from .protocol.stream import StreamError, StreamFailedError, StreamState
from .protocol.record import (
    StreamRecord,
    RecordFormatError,
    TruncatedStreamError,
    MalformedRecordError,
)

# Cryptographic primitives
from .crypto.aead import AEADCipher, AEADDecryptionError
from .crypto.keys import generate_key, load_key

# Configuration
from .config import StreamboxConfig, ConfigError


__all__ = [
    # Version info
    '__version__',

    # High-level interface
    'encrypt',
    'decrypt',
    'encrypt_bytes',
    'decrypt_bytes',
    'encrypt_stream',
    'decrypt_stream',
    'EncryptingReader',
    'DecryptingReader',
    'MESSAGE_SIZE',

    # Errors and state
    'StreamError',
    'StreamFailedError',
    'StreamState',
    'NonceGenerationError',
    'DecryptionError',
    'RecordFormatError',
    'TruncatedStreamError',
    'MalformedRecordError',
    'StreamRecord',

    # Cryptographic primitives
    'AEADCipher',
    'AEADDecryptionError',
    'generate_key',
    'load_key',

    # Configuration
    'StreamboxConfig',
    'ConfigError',
]
