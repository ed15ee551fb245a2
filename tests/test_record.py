"""
Record codec tests for Streambox.
"""

import io
import os
import struct

import pytest

from streambox.protocol.record import (
    LENGTH_PREFIX_SIZE,
    NONCE_SIZE,
    MalformedRecordError,
    RecordFormatError,
    StreamRecord,
    TruncatedStreamError,
    decode_record,
    encode_record,
    iter_records,
    parse_length_prefix,
    read_exactly,
    read_record,
    record_overhead,
    record_summary,
)


class TestEncode:
    """Test framing of sealed payloads."""

    def test_layout(self):
        """Records are BE32 length, nonce, then payload."""
        nonce = os.urandom(NONCE_SIZE)
        sealed = os.urandom(50)

        data = encode_record(nonce, sealed)

        assert data[:4] == struct.pack('>I', NONCE_SIZE + 50)
        assert data[4:4 + NONCE_SIZE] == nonce
        assert data[4 + NONCE_SIZE:] == sealed
        assert len(data) == LENGTH_PREFIX_SIZE + NONCE_SIZE + 50

    def test_empty_payload(self):
        """A bare nonce is a valid frame."""
        data = encode_record(b"\x00" * NONCE_SIZE, b"")
        assert data == b"\x00\x00\x00\x18" + b"\x00" * NONCE_SIZE

    @pytest.mark.parametrize("size", [0, 12, 23, 25, 32])
    def test_bad_nonce_size(self, size):
        """Nonces must be exactly 24 bytes."""
        with pytest.raises(RecordFormatError):
            encode_record(b"\x00" * size, b"payload")

    def test_record_properties(self):
        """length excludes the prefix, size includes it."""
        record = StreamRecord(nonce=b"n" * NONCE_SIZE, sealed_payload=b"p" * 10)

        assert record.length == 34
        assert record.size == 38
        assert len(record) == 38


class TestDecode:
    """Test parsing of record bodies and prefixes."""

    def test_decode_body(self):
        """The first 24 bytes are the nonce, the rest the payload."""
        nonce = os.urandom(NONCE_SIZE)
        record = decode_record(nonce + b"sealed")

        assert record.nonce == nonce
        assert record.sealed_payload == b"sealed"

    def test_decode_short_body(self):
        """Bodies shorter than a nonce are malformed."""
        with pytest.raises(MalformedRecordError):
            decode_record(b"x" * (NONCE_SIZE - 1))

    def test_from_bytes_roundtrip(self):
        """from_bytes inverts to_bytes."""
        record = StreamRecord(nonce=os.urandom(NONCE_SIZE), sealed_payload=os.urandom(33))
        assert StreamRecord.from_bytes(record.to_bytes()) == record

    def test_from_bytes_trailing_data(self):
        """Extra bytes after a complete record are rejected."""
        data = encode_record(os.urandom(NONCE_SIZE), b"abc") + b"extra"
        with pytest.raises(RecordFormatError):
            StreamRecord.from_bytes(data)

    def test_from_bytes_short(self):
        """A record missing body bytes is truncated."""
        data = encode_record(os.urandom(NONCE_SIZE), b"abc")
        with pytest.raises(TruncatedStreamError):
            StreamRecord.from_bytes(data[:-1])

    def test_prefix(self):
        """Prefixes decode big-endian and enforce the minimum."""
        assert parse_length_prefix(b"\x00\x00\x01\x00") == 256

        with pytest.raises(MalformedRecordError):
            parse_length_prefix(b"\x00\x00\x00\x17")
        with pytest.raises(TruncatedStreamError):
            parse_length_prefix(b"\x00\x00")

    def test_malformed_is_not_truncated(self):
        """The two framing errors are distinct classes."""
        assert not issubclass(MalformedRecordError, TruncatedStreamError)
        assert not issubclass(TruncatedStreamError, MalformedRecordError)


class TestReadRecord:
    """Test pulling records from file-like sources."""

    def test_clean_end(self):
        """An empty source at a boundary means no more records."""
        assert read_record(io.BytesIO(b"")) is None

    def test_sequence(self):
        """Records are read back in order, then None."""
        first = encode_record(b"a" * NONCE_SIZE, b"one")
        second = encode_record(b"b" * NONCE_SIZE, b"two")
        source = io.BytesIO(first + second)

        assert read_record(source).sealed_payload == b"one"
        assert read_record(source).sealed_payload == b"two"
        assert read_record(source) is None

    @pytest.mark.parametrize("cut", [1, 2, 3])
    def test_partial_prefix(self, cut):
        """A prefix cut short is truncation."""
        data = encode_record(b"a" * NONCE_SIZE, b"one")
        with pytest.raises(TruncatedStreamError):
            read_record(io.BytesIO(data[:cut]))

    def test_partial_body(self):
        """A body cut short is truncation."""
        data = encode_record(b"a" * NONCE_SIZE, b"payload")
        with pytest.raises(TruncatedStreamError):
            read_record(io.BytesIO(data[:-3]))

    def test_malformed_length(self):
        """Short declared lengths are rejected before reading the body."""
        with pytest.raises(MalformedRecordError):
            read_record(io.BytesIO(b"\x00\x00\x00\x05hello"))

    def test_read_exactly_gathers_short_reads(self):
        """Sources returning a few bytes at a time are assembled."""
        class Trickle:
            def __init__(self, data):
                self._data = io.BytesIO(data)

            def read(self, size=-1):
                return self._data.read(min(size, 3))

        data = encode_record(os.urandom(NONCE_SIZE), os.urandom(40))
        assert read_exactly(Trickle(data), len(data)) == data
        assert read_record(Trickle(data)).size == len(data)

    def test_read_exactly_stops_at_end(self):
        """read_exactly returns fewer bytes only at end of stream."""
        assert read_exactly(io.BytesIO(b"abc"), 10) == b"abc"


class TestHelpers:
    """Test in-memory iteration and reporting helpers."""

    def test_iter_records(self):
        """iter_records walks a concatenated stream."""
        payloads = [b"x" * n for n in (1, 50, 0, 7)]
        data = b"".join(encode_record(os.urandom(NONCE_SIZE), p) for p in payloads)

        assert [r.sealed_payload for r in iter_records(data)] == payloads

    def test_iter_records_truncated(self):
        """iter_records reports a cut body."""
        data = encode_record(os.urandom(NONCE_SIZE), b"abc")
        with pytest.raises(TruncatedStreamError):
            list(iter_records(data[:-1]))

    def test_overhead(self):
        """Each record costs prefix + nonce + tag."""
        assert record_overhead() == 44
        assert record_overhead(tag_size=0) == 28

    def test_summary(self):
        """Summaries mention the sizes."""
        record = StreamRecord(nonce=b"\x01" * NONCE_SIZE, sealed_payload=b"p" * 10)
        summary = record_summary(record)

        assert "Length field: 34" in summary
        assert "Total size: 38 bytes" in summary
        assert ("01" * NONCE_SIZE) in summary
