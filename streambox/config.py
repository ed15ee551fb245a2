"""
Configuration management for Streambox.

The only persistent state is the pre-shared key file. Both ends of a stream
must hold the same key; this module loads and stores it and exposes the
default chunk size, delegating file format handling to the keys module.

Environment overrides:
    STREAMBOX_HOME: configuration directory (default ~/.streambox)
    STREAMBOX_MESSAGE_SIZE: plaintext bytes per record (default 16384)
"""

import logging
import os
from typing import Optional

from .crypto.aead import KEY_SIZE
from .crypto.keys import load_key, create_key_file
from .crypto.utils import parse_hex
from .protocol.encryptor import MESSAGE_SIZE, validate_message_size

logger = logging.getLogger(__name__)

KEY_FILE_NAME = "key.hex"


class ConfigError(Exception):
    """Raised when configuration operations fail."""
    pass


class StreamboxConfig:
    """
    Simple configuration manager for Streambox.

    Handles locating, loading and provisioning the pre-shared key.
    """

    def __init__(self, config_dir: Optional[str] = None):
        """
        Initialize configuration.

        Args:
            config_dir: Directory for configuration files. Defaults to
                $STREAMBOX_HOME, then ~/.streambox/
        """
        if config_dir is None:
            config_dir = os.environ.get("STREAMBOX_HOME") or os.path.expanduser("~/.streambox")

        self.config_dir = config_dir
        self.key_file_path = os.path.join(config_dir, KEY_FILE_NAME)

    @property
    def message_size(self) -> int:
        """Plaintext bytes per record, from $STREAMBOX_MESSAGE_SIZE if set."""
        raw = os.environ.get("STREAMBOX_MESSAGE_SIZE")
        if not raw:
            return MESSAGE_SIZE
        try:
            return validate_message_size(int(raw))
        except (TypeError, ValueError) as e:
            raise ConfigError(f"Invalid STREAMBOX_MESSAGE_SIZE {raw!r}: {e}") from e

    def get_key(self) -> bytes:
        """
        Load the pre-shared key.

        Returns:
            bytes: The 32-byte key

        Raises:
            ConfigError: If the key cannot be loaded
        """
        if not os.path.exists(self.key_file_path):
            raise ConfigError(f"Key file not found: {self.key_file_path}")

        try:
            return load_key(self.key_file_path)
        except ValueError as e:
            raise ConfigError(f"Invalid key format: {e}") from e
        except OSError as e:
            raise ConfigError(f"Failed to load key: {e}") from e

    def set_key(self, hex_key: str) -> None:
        """
        Set the key from a hex string.

        Args:
            hex_key: 64-character hex string

        Raises:
            ConfigError: If key format is invalid
        """
        try:
            key = parse_hex(hex_key)
        except ValueError as e:
            raise ConfigError("Invalid hex characters in key") from e

        if len(key) != KEY_SIZE:
            raise ConfigError(f"Key must be {2 * KEY_SIZE} hex characters ({KEY_SIZE} bytes)")

        self._save(key)
        logger.info("Key saved to %s", self.key_file_path)

    def set_key_from_file(self, source_file: str) -> None:
        """
        Copy the key from another file.

        Args:
            source_file: Path to an existing key file (raw or hex)

        Raises:
            ConfigError: If source file cannot be read or key is invalid
        """
        try:
            key = load_key(source_file)
        except FileNotFoundError as e:
            raise ConfigError(f"Source key file not found: {source_file}") from e
        except ValueError as e:
            raise ConfigError(f"Invalid source key format: {e}") from e

        self._save(key)
        logger.info("Key copied from %s to %s", source_file, self.key_file_path)

    def create_new_key(self) -> bytes:
        """
        Generate and store a new random key.

        Returns:
            bytes: The generated 32-byte key

        Raises:
            ConfigError: If the key cannot be saved
        """
        key = self._save(None)
        logger.info("Generated new key at %s", self.key_file_path)
        return key

    def key_exists(self) -> bool:
        """Check if a key file exists."""
        return os.path.exists(self.key_file_path)

    def _save(self, key: Optional[bytes]) -> bytes:
        try:
            os.makedirs(self.config_dir, exist_ok=True)
            return create_key_file(self.key_file_path, key)
        except OSError as e:
            raise ConfigError(f"Failed to save key: {e}") from e
