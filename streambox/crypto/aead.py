"""
AEAD (Authenticated Encryption with Associated Data) implementation.

This module wraps the NaCl secretbox construction (XSalsa20-Poly1305) used to
seal every record of a stream. It takes a 32-byte key and a 24-byte nonce and
produces ``ciphertext || tag`` with a 16-byte Poly1305 tag.

Uses PyNaCl (libsodium bindings).
"""

from nacl.exceptions import CryptoError
from nacl.secret import SecretBox

KEY_SIZE = SecretBox.KEY_SIZE        # 32
NONCE_SIZE = SecretBox.NONCE_SIZE    # 24
TAG_SIZE = SecretBox.MACBYTES        # 16


class AEADDecryptionError(Exception):
    """Exception raised when AEAD decryption fails."""
    pass


class AEADCipher:
    """
    Secretbox AEAD cipher.

    Stateless: the key and nonce are passed on every call so one instance
    can be shared by any number of transforms.
    """

    @property
    def algorithm_name(self) -> str:
        """Get the name of the current algorithm."""
        return "XSalsa20-Poly1305"

    @property
    def key_size(self) -> int:
        """Get the required key size in bytes."""
        return KEY_SIZE

    @property
    def nonce_size(self) -> int:
        """Get the required nonce size in bytes."""
        return NONCE_SIZE

    @property
    def tag_size(self) -> int:
        """Get the authentication tag size in bytes."""
        return TAG_SIZE

    def seal(self, key: bytes, nonce: bytes, message: bytes) -> bytes:
        """
        Encrypt and authenticate a message.

        Args:
            key: 32-byte secret key
            nonce: 24-byte nonce, never reused under the same key
            message: Data to encrypt

        Returns:
            Sealed payload (ciphertext with the authentication tag)
        """
        self._check_parameters(key, nonce)
        return SecretBox(key).encrypt(message, nonce).ciphertext

    def open(self, key: bytes, nonce: bytes, sealed: bytes) -> bytes:
        """
        Verify and decrypt a sealed payload.

        Args:
            key: 32-byte secret key
            nonce: Nonce used for sealing
            sealed: Ciphertext with the authentication tag

        Returns:
            Decrypted message

        Raises:
            AEADDecryptionError: If authentication fails
        """
        self._check_parameters(key, nonce)
        if len(sealed) < TAG_SIZE:
            raise AEADDecryptionError(
                f"Sealed payload too short: {len(sealed)} bytes, tag alone is {TAG_SIZE}"
            )

        try:
            return SecretBox(key).decrypt(sealed, nonce)
        except CryptoError as e:
            raise AEADDecryptionError("XSalsa20-Poly1305 verification failed") from e

    def _check_parameters(self, key: bytes, nonce: bytes) -> None:
        if len(key) != KEY_SIZE:
            raise ValueError(f"XSalsa20-Poly1305 requires {KEY_SIZE}-byte key")
        if len(nonce) != NONCE_SIZE:
            raise ValueError(f"XSalsa20-Poly1305 requires {NONCE_SIZE}-byte nonce")
