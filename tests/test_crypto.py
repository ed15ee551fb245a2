"""
Test suite for Streambox cryptographic functions.
"""

import os

import pytest
from nacl.secret import SecretBox

from streambox.crypto.aead import AEADCipher, AEADDecryptionError, KEY_SIZE, NONCE_SIZE, TAG_SIZE
from streambox.crypto.keys import create_key_file, generate_key, load_key, validate_key
from streambox.crypto.utils import generate_nonce, generate_random_bytes, parse_hex


class TestAEAD:
    """Test the secretbox wrapper."""

    def test_sizes(self):
        """Secretbox uses 32-byte keys, 24-byte nonces and 16-byte tags."""
        cipher = AEADCipher()
        assert (cipher.key_size, cipher.nonce_size, cipher.tag_size) == (32, 24, 16)
        assert (KEY_SIZE, NONCE_SIZE, TAG_SIZE) == (32, 24, 16)
        assert cipher.algorithm_name == "XSalsa20-Poly1305"

    def test_seal_open(self):
        """Sealed messages open with the same key and nonce."""
        cipher = AEADCipher()
        key, nonce = generate_key(), generate_nonce()
        message = b"Hello, Streambox!"

        sealed = cipher.seal(key, nonce, message)

        assert len(sealed) == len(message) + TAG_SIZE
        assert cipher.open(key, nonce, sealed) == message

    def test_deterministic(self):
        """Sealing is a function of key, nonce and message."""
        cipher = AEADCipher()
        key, nonce = generate_key(), generate_nonce()
        assert cipher.seal(key, nonce, b"abc") == cipher.seal(key, nonce, b"abc")

    def test_matches_nacl_secretbox(self):
        """Output is interchangeable with plain NaCl secretbox."""
        key, nonce = generate_key(), generate_nonce()
        sealed = AEADCipher().seal(key, nonce, b"interop")
        assert SecretBox(key).decrypt(sealed, nonce) == b"interop"

    def test_wrong_nonce(self):
        """Opening with another nonce fails authentication."""
        cipher = AEADCipher()
        key = generate_key()
        sealed = cipher.seal(key, generate_nonce(), b"message")

        with pytest.raises(AEADDecryptionError):
            cipher.open(key, generate_nonce(), sealed)

    def test_tampered(self):
        """Any modified byte fails authentication."""
        cipher = AEADCipher()
        key, nonce = generate_key(), generate_nonce()
        sealed = bytearray(cipher.seal(key, nonce, b"message"))
        sealed[0] ^= 0x80

        with pytest.raises(AEADDecryptionError):
            cipher.open(key, nonce, bytes(sealed))

    def test_too_short(self):
        """Payloads shorter than a tag cannot be authentic."""
        with pytest.raises(AEADDecryptionError):
            AEADCipher().open(generate_key(), generate_nonce(), b"short")

    def test_parameter_sizes(self):
        """Key and nonce sizes are checked."""
        cipher = AEADCipher()
        with pytest.raises(ValueError):
            cipher.seal(b"k" * 16, generate_nonce(), b"m")
        with pytest.raises(ValueError):
            cipher.seal(generate_key(), b"n" * 12, b"m")


class TestRandom:
    """Test the nonce source."""

    def test_nonce_length(self):
        """Nonces are 24 random bytes."""
        assert len(generate_nonce()) == 24
        assert generate_nonce() != generate_nonce()

    def test_random_bytes(self):
        """Arbitrary lengths are supported."""
        assert len(generate_random_bytes(7)) == 7
        assert generate_random_bytes(0) == b""

    def test_hex_helpers(self):
        """Hex helpers accept common separators."""
        assert parse_hex("01:ab") == b"\x01\xab"
        assert parse_hex(" 01-ab\n") == b"\x01\xab"


class TestKeys:
    """Test key validation and key files."""

    def test_generate_key(self):
        """Generated keys are 32 fresh bytes."""
        key = generate_key()
        assert len(key) == 32
        assert key != generate_key()

    def test_validate_key(self):
        """Only 32-byte bytes-like values are keys."""
        assert validate_key(bytearray(32)) == bytes(32)
        with pytest.raises(ValueError):
            validate_key(b"x" * 31)
        with pytest.raises(TypeError):
            validate_key("x" * 32)

    def test_raw_key_file(self, tmp_path):
        """Raw 32-byte files load as-is."""
        key = os.urandom(32)
        path = tmp_path / "raw.key"
        path.write_bytes(key)
        assert load_key(str(path)) == key

    def test_hex_key_file(self, tmp_path):
        """Hex files load with or without a trailing newline."""
        key = os.urandom(32)
        bare = tmp_path / "bare.hex"
        bare.write_text(key.hex())
        newline = tmp_path / "newline.hex"
        newline.write_text(key.hex() + "\n")

        assert load_key(str(bare)) == key
        assert load_key(str(newline)) == key

    def test_invalid_key_file(self, tmp_path):
        """Other contents are rejected."""
        path = tmp_path / "bad.key"
        path.write_bytes(b"not a key")
        with pytest.raises(ValueError):
            load_key(str(path))

        path.write_text("zz" * 32)
        with pytest.raises(ValueError):
            load_key(str(path))

    def test_missing_key_file(self, tmp_path):
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            load_key(str(tmp_path / "absent.key"))

    def test_create_key_file(self, tmp_path):
        """create_key_file writes a loadable hex key."""
        path = str(tmp_path / "new.key")
        key = create_key_file(path)

        assert load_key(path) == key
        with open(path) as f:
            assert f.read() == key.hex() + "\n"

    @pytest.mark.skipif(os.name != "posix", reason="POSIX permissions only")
    def test_create_key_file_permissions(self, tmp_path):
        """Key files are private to the owner."""
        path = tmp_path / "private.key"
        create_key_file(str(path))
        assert path.stat().st_mode & 0o777 == 0o600

    def test_create_key_file_rejects_bad_key(self, tmp_path):
        """Provided keys are validated before writing."""
        with pytest.raises(ValueError):
            create_key_file(str(tmp_path / "bad.key"), b"short")
