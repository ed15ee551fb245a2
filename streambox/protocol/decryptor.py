"""
Decryption pipeline for Streambox.

For every record pulled from the ciphertext source:
1. Read the 4-byte length prefix (zero bytes here is the normal end)
2. Read exactly the declared number of bytes
3. Split into nonce and sealed payload
4. Verify and open the payload with the pre-shared key
5. If valid, append the plaintext to the pending buffer; else fail the stream

No resynchronization is attempted after a bad record: once one frame is
invalid, no later frame boundary can be trusted.
"""

import io
import logging
import shutil
from typing import Optional

from ..crypto.aead import AEADCipher, AEADDecryptionError
from ..crypto.keys import validate_key
from .record import read_record
from .stream import PullResult, StreamError, StreamTransform

logger = logging.getLogger(__name__)


class DecryptionError(StreamError):
    """Raised when a record fails authentication (wrong key or tampering)."""
    pass


class DecryptingReader(StreamTransform):
    """
    Readable plaintext stream recovered from an upstream record stream.
    """

    def __init__(self, key: bytes, source, cipher: Optional[AEADCipher] = None,
                 closefd: bool = False):
        """
        Initialize decrypting reader.

        Args:
            key: 32-byte pre-shared key
            source: Ciphertext source with a ``read(n)`` method
            cipher: AEAD primitive, secretbox by default
            closefd: Close ``source`` when this reader is closed
        """
        key = validate_key(key)
        super().__init__(source, closefd=closefd)
        self.key = key
        self.cipher = cipher if cipher is not None else AEADCipher()

    def _pull(self) -> PullResult:
        record = read_record(self._source)
        if record is None:
            logger.debug("Record stream ended cleanly after %d records", self.records_processed)
            return PullResult.EXHAUSTED

        index = self.records_processed + 1
        try:
            plaintext = self.cipher.open(self.key, record.nonce, record.sealed_payload)
        except AEADDecryptionError as e:
            raise DecryptionError(f"Could not decrypt record {index}: {e}") from e

        self._buffer.append(plaintext)
        self.records_processed = index

        logger.debug("Opened record %d: %d plaintext bytes", index, len(plaintext))
        return PullResult.PROGRESS


def decrypt(key: bytes, source) -> DecryptingReader:
    """
    Wrap a record source in a decrypting reader.

    Args:
        key: 32-byte pre-shared key
        source: Ciphertext source with a ``read(n)`` method

    Returns:
        DecryptingReader producing the original plaintext
    """
    return DecryptingReader(key, source)


def decrypt_bytes(key: bytes, data: bytes) -> bytes:
    """
    Decrypt an in-memory record stream.

    Args:
        key: 32-byte pre-shared key
        data: Complete record stream

    Returns:
        The original plaintext
    """
    with decrypt(key, io.BytesIO(data)) as reader:
        return reader.read()


def decrypt_stream(key: bytes, source, destination, buffer_size: int = 64 * 1024) -> int:
    """
    Decrypt everything from ``source`` into ``destination``.

    Plaintext is written as records are authenticated. If the stream fails
    part way, what was already written is authentic but incomplete.

    Args:
        key: 32-byte pre-shared key
        source: Ciphertext source with a ``read(n)`` method
        destination: Writable binary file object
        buffer_size: Read size used when copying

    Returns:
        Number of plaintext bytes written
    """
    with decrypt(key, source) as reader:
        shutil.copyfileobj(reader, destination, buffer_size)
        logger.info(
            "Decrypted %d records, %d bytes", reader.records_processed, reader.bytes_delivered
        )
        return reader.bytes_delivered
