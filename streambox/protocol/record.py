"""
Record structure and parsing for Streambox streams.

Every plaintext chunk becomes one self-contained record on the wire:

record = length (4B, big-endian) || nonce (24B) || sealed_payload
length = len(nonce) + len(sealed_payload)
stream = record*

The length field does not count itself. A stream is simply the records
concatenated; it ends where the underlying transport ends.
"""

import struct
from dataclasses import dataclass
from typing import Iterator, Optional

from ..crypto.aead import NONCE_SIZE, TAG_SIZE
from .stream import StreamError

# Constants
LENGTH_PREFIX_SIZE = 4
MAX_RECORD_LENGTH = 0xFFFFFFFF

_LENGTH_STRUCT = struct.Struct('>I')


class RecordFormatError(StreamError):
    """Raised when a record cannot be framed or parsed."""
    pass


class TruncatedStreamError(RecordFormatError):
    """Raised when a stream ends inside a length prefix or record body."""
    pass


class MalformedRecordError(RecordFormatError):
    """Raised when a record declares a length shorter than its nonce."""
    pass


@dataclass(frozen=True)
class StreamRecord:
    """
    One framed record.

    Fields:
        nonce: 24-byte nonce the payload was sealed with
        sealed_payload: Ciphertext followed by the authentication tag
    """
    nonce: bytes
    sealed_payload: bytes

    def __post_init__(self):
        """Validate record fields."""
        if len(self.nonce) != NONCE_SIZE:
            raise RecordFormatError(f"Nonce must be {NONCE_SIZE} bytes, got {len(self.nonce)}")
        if self.length > MAX_RECORD_LENGTH:
            raise RecordFormatError(f"Record too large: {self.length} bytes")

    @property
    def length(self) -> int:
        """Value of the length prefix: nonce plus sealed payload."""
        return NONCE_SIZE + len(self.sealed_payload)

    @property
    def size(self) -> int:
        """Total size on the wire, prefix included."""
        return LENGTH_PREFIX_SIZE + self.length

    def to_bytes(self) -> bytes:
        """Serialize the record, length prefix first."""
        return _LENGTH_STRUCT.pack(self.length) + self.nonce + self.sealed_payload

    @classmethod
    def from_bytes(cls, data: bytes) -> 'StreamRecord':
        """Deserialize one complete record, length prefix included."""
        if len(data) < LENGTH_PREFIX_SIZE:
            raise TruncatedStreamError(f"Record too short for length prefix: {len(data)} bytes")

        length = parse_length_prefix(data[:LENGTH_PREFIX_SIZE])
        body = data[LENGTH_PREFIX_SIZE:]
        if len(body) < length:
            raise TruncatedStreamError(f"Record declares {length} bytes, only {len(body)} present")
        if len(body) > length:
            raise RecordFormatError(f"{len(body) - length} trailing bytes after record")

        return decode_record(body)

    def __len__(self) -> int:
        """Get record size on the wire."""
        return self.size


def check_record_length(length: int) -> int:
    """
    Validate a declared record length.

    Raises:
        MalformedRecordError: If the length cannot hold a nonce
    """
    if length < NONCE_SIZE:
        raise MalformedRecordError(
            f"Record length {length} is shorter than the {NONCE_SIZE}-byte nonce"
        )
    return length


def parse_length_prefix(prefix: bytes) -> int:
    """
    Decode and validate a 4-byte big-endian length prefix.

    Raises:
        TruncatedStreamError: If fewer than 4 bytes are given
        MalformedRecordError: If the declared length is below the nonce size
    """
    if len(prefix) != LENGTH_PREFIX_SIZE:
        raise TruncatedStreamError(
            f"Stream ended inside a length prefix ({len(prefix)} of {LENGTH_PREFIX_SIZE} bytes)"
        )
    (length,) = _LENGTH_STRUCT.unpack(prefix)
    return check_record_length(length)


def encode_record(nonce: bytes, sealed_payload: bytes) -> bytes:
    """
    Frame a sealed payload into wire bytes.

    Args:
        nonce: 24-byte nonce used for sealing
        sealed_payload: Ciphertext with authentication tag

    Returns:
        ``BE32(24 + len(sealed_payload)) || nonce || sealed_payload``

    Raises:
        RecordFormatError: If the nonce size is wrong or the record is too large
    """
    return StreamRecord(nonce=nonce, sealed_payload=sealed_payload).to_bytes()


def decode_record(body: bytes) -> StreamRecord:
    """
    Split a record body (everything after the length prefix).

    Args:
        body: Exactly the number of bytes the length prefix declared

    Returns:
        Parsed StreamRecord

    Raises:
        MalformedRecordError: If the body cannot hold a nonce
    """
    check_record_length(len(body))
    return StreamRecord(nonce=bytes(body[:NONCE_SIZE]), sealed_payload=bytes(body[NONCE_SIZE:]))


def read_exactly(source, size: int) -> bytes:
    """
    Read up to ``size`` bytes, stopping early only at end of stream.

    ``source.read`` returning ``None`` (a non-blocking source with nothing
    ready) is retried; ``b""`` means the source is exhausted.

    Returns:
        The bytes read; shorter than ``size`` only if the source ended
    """
    buf = bytearray()
    while len(buf) < size:
        data = source.read(size - len(buf))
        if data is None:
            continue
        if not data:
            break
        buf += data
    return bytes(buf)


def read_record(source) -> Optional[StreamRecord]:
    """
    Read the next length-prefixed record from a file-like source.

    Args:
        source: Object with a ``read(n)`` method returning bytes

    Returns:
        The next StreamRecord, or None if the source ended cleanly at a
        record boundary

    Raises:
        TruncatedStreamError: If the source ends inside a prefix or body
        MalformedRecordError: If the declared length is below the nonce size
    """
    prefix = read_exactly(source, LENGTH_PREFIX_SIZE)
    if not prefix:
        return None

    length = parse_length_prefix(prefix)
    body = read_exactly(source, length)
    if len(body) != length:
        raise TruncatedStreamError(
            f"Stream ended inside a record body ({len(body)} of {length} bytes)"
        )
    return decode_record(body)


def iter_records(data: bytes) -> Iterator[StreamRecord]:
    """
    Iterate over every record of an in-memory ciphertext.

    Raises:
        TruncatedStreamError: If the data ends inside a record
        MalformedRecordError: If a record declares a bad length
    """
    view = memoryview(data)
    offset = 0
    while offset < len(view):
        length = parse_length_prefix(bytes(view[offset:offset + LENGTH_PREFIX_SIZE]))
        start = offset + LENGTH_PREFIX_SIZE
        end = start + length
        if end > len(view):
            raise TruncatedStreamError(
                f"Data ended inside a record body ({len(view) - start} of {length} bytes)"
            )
        yield decode_record(bytes(view[start:end]))
        offset = end


def record_overhead(tag_size: int = TAG_SIZE) -> int:
    """Bytes each record adds on top of its plaintext chunk."""
    return LENGTH_PREFIX_SIZE + NONCE_SIZE + tag_size


def record_summary(record: StreamRecord) -> str:
    """
    Create a human-readable summary of a record.

    Args:
        record: Record to summarize

    Returns:
        Summary string
    """
    return (
        f"Streambox Record:\n"
        f"  Length field: {record.length}\n"
        f"  Nonce: {record.nonce.hex()}\n"
        f"  Sealed payload size: {len(record.sealed_payload)} bytes\n"
        f"  Total size: {record.size} bytes"
    )
