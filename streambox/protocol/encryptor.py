"""
Encryption pipeline for Streambox.

For every chunk pulled from the plaintext source:
1. Read up to ``message_size`` bytes
2. Generate a fresh 24-byte nonce
3. Seal the chunk with the pre-shared key (XSalsa20-Poly1305)
4. Frame nonce and sealed payload into a length-prefixed record
5. Append the record to the pending buffer for the caller to read
"""

import io
import logging
import shutil
from typing import Callable, Optional

from ..crypto.aead import AEADCipher, TAG_SIZE
from ..crypto.keys import validate_key
from ..crypto.utils import generate_nonce
from .record import NONCE_SIZE, MAX_RECORD_LENGTH, encode_record
from .stream import PullResult, StreamError, StreamTransform

logger = logging.getLogger(__name__)

# 16KB messages, the size recommended for secretbox
MESSAGE_SIZE = 16 * 1024


class NonceGenerationError(StreamError):
    """Raised when the nonce source cannot produce a nonce."""
    pass


class EncryptingReader(StreamTransform):
    """
    Readable stream of records built from an upstream plaintext source.

    The source is any object with ``read(n)``. ``b""`` from the source
    means it is exhausted; ``None`` means nothing is available yet and the
    read is retried.
    """

    def __init__(self, key: bytes, source, message_size: int = MESSAGE_SIZE,
                 cipher: Optional[AEADCipher] = None,
                 nonce_source: Callable[[], bytes] = generate_nonce,
                 closefd: bool = False):
        """
        Initialize encrypting reader.

        Args:
            key: 32-byte pre-shared key
            source: Plaintext source with a ``read(n)`` method
            message_size: Maximum plaintext bytes per record
            cipher: AEAD primitive, secretbox by default
            nonce_source: Callable returning a fresh 24-byte nonce
            closefd: Close ``source`` when this reader is closed
        """
        key = validate_key(key)
        message_size = validate_message_size(message_size)
        super().__init__(source, closefd=closefd)
        self.key = key
        self.message_size = message_size
        self.cipher = cipher if cipher is not None else AEADCipher()
        self._nonce_source = nonce_source

    def _pull(self) -> PullResult:
        chunk = self._source.read(self.message_size)
        if chunk is None:
            return PullResult.STALLED
        if not chunk:
            logger.debug("Plaintext source exhausted after %d records", self.records_processed)
            return PullResult.EXHAUSTED

        nonce = self._generate_nonce()
        sealed = self.cipher.seal(self.key, nonce, bytes(chunk))
        self._buffer.append(encode_record(nonce, sealed))
        self.records_processed += 1

        logger.debug(
            "Sealed record %d: %d plaintext bytes, %d sealed bytes",
            self.records_processed, len(chunk), len(sealed)
        )
        return PullResult.PROGRESS

    def _generate_nonce(self) -> bytes:
        try:
            nonce = self._nonce_source()
        except Exception as e:
            raise NonceGenerationError(f"Nonce generation failed: {e}") from e

        if not isinstance(nonce, (bytes, bytearray, memoryview)):
            raise NonceGenerationError(
                f"Nonce source returned {type(nonce).__name__}, expected bytes"
            )
        nonce = bytes(nonce)
        if len(nonce) != NONCE_SIZE:
            raise NonceGenerationError(
                f"Nonce source returned {len(nonce)} bytes, expected {NONCE_SIZE}"
            )
        return nonce


def validate_message_size(message_size: int) -> int:
    """
    Check a per-record plaintext size.

    Raises:
        ValueError: If the size is not positive or a record could not
            describe its own length in 32 bits
    """
    if isinstance(message_size, bool) or not isinstance(message_size, int):
        raise TypeError("Message size must be an integer")
    if message_size <= 0:
        raise ValueError(f"Message size must be positive, got {message_size}")
    # Leave room for the nonce and the tag inside a 32-bit length
    if message_size > MAX_RECORD_LENGTH - NONCE_SIZE - TAG_SIZE:
        raise ValueError(f"Message size too large: {message_size}")
    return message_size


def encrypt(key: bytes, source, message_size: int = MESSAGE_SIZE) -> EncryptingReader:
    """
    Wrap a plaintext source in an encrypting reader.

    Args:
        key: 32-byte pre-shared key
        source: Plaintext source with a ``read(n)`` method
        message_size: Maximum plaintext bytes per record

    Returns:
        EncryptingReader producing the record stream
    """
    return EncryptingReader(key, source, message_size=message_size)


def encrypt_bytes(key: bytes, data: bytes, message_size: int = MESSAGE_SIZE) -> bytes:
    """
    Encrypt an in-memory payload.

    Args:
        key: 32-byte pre-shared key
        data: Plaintext
        message_size: Maximum plaintext bytes per record

    Returns:
        The complete record stream
    """
    with encrypt(key, io.BytesIO(data), message_size=message_size) as reader:
        return reader.read()


def encrypt_stream(key: bytes, source, destination, message_size: int = MESSAGE_SIZE,
                   buffer_size: int = 64 * 1024) -> int:
    """
    Encrypt everything from ``source`` into ``destination``.

    Args:
        key: 32-byte pre-shared key
        source: Plaintext source with a ``read(n)`` method
        destination: Writable binary file object
        message_size: Maximum plaintext bytes per record
        buffer_size: Read size used when copying

    Returns:
        Number of ciphertext bytes written
    """
    with encrypt(key, source, message_size=message_size) as reader:
        shutil.copyfileobj(reader, destination, buffer_size)
        logger.info(
            "Encrypted %d records, %d bytes", reader.records_processed, reader.bytes_delivered
        )
        return reader.bytes_delivered
