"""
Protocol layer components for Streambox.

This module provides the core protocol functionality including:
- Record framing and parsing
- The shared pull/buffer loop and its state machine
- Encrypting and decrypting stream transforms
"""

from .stream import StreamError, StreamFailedError, StreamState, StreamTransform
from .record import (
    StreamRecord,
    RecordFormatError,
    TruncatedStreamError,
    MalformedRecordError,
    encode_record,
    decode_record,
    read_record,
    iter_records,
)
from .encryptor import EncryptingReader, NonceGenerationError, MESSAGE_SIZE
from .decryptor import DecryptingReader, DecryptionError

__all__ = [
    'StreamError',
    'StreamFailedError',
    'StreamState',
    'StreamTransform',
    'StreamRecord',
    'RecordFormatError',
    'TruncatedStreamError',
    'MalformedRecordError',
    'encode_record',
    'decode_record',
    'read_record',
    'iter_records',
    'EncryptingReader',
    'NonceGenerationError',
    'MESSAGE_SIZE',
    'DecryptingReader',
    'DecryptionError',
]
