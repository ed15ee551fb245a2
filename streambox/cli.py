"""
Command line interface for Streambox.

    streambox keygen [--output PATH] [--force]
    streambox encrypt [--key-file PATH] [--message-size N] [INPUT] [OUTPUT]
    streambox decrypt [--key-file PATH] [INPUT] [OUTPUT]
    streambox inspect [INPUT]

INPUT and OUTPUT default to stdin and stdout; ``-`` means the same.
"""

import argparse
import contextlib
import logging
import os
import sys
import tempfile
from typing import List, Optional

from . import __version__
from .config import ConfigError, StreamboxConfig
from .crypto.keys import create_key_file, load_key
from .protocol.decryptor import decrypt_stream
from .protocol.encryptor import encrypt_stream, validate_message_size
from .protocol.record import read_record, record_overhead, record_summary
from .protocol.stream import StreamError

logger = logging.getLogger(__name__)


def configure_logging(level: int = logging.WARNING) -> None:
    # stdout may carry stream data, so log to stderr only
    logging.basicConfig(
        level=level,
        format="[%(asctime)s] %(levelname)s %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser with all subcommands."""
    parser = argparse.ArgumentParser(
        prog='streambox',
        description='Chunked authenticated encryption for byte streams'
    )
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--config-dir', type=str, default=None,
                        help='Configuration directory (default: $STREAMBOX_HOME or ~/.streambox)')
    subparsers = parser.add_subparsers(dest='command', help='Sub-commands')

    keygen_parser = subparsers.add_parser('keygen', help='Generate a new pre-shared key')
    keygen_parser.add_argument('--output', '-o', type=str, default=None,
                               help='Key file to write (default: key in config dir)')
    keygen_parser.add_argument('--force', action='store_true',
                               help='Overwrite an existing key file')

    encrypt_parser = subparsers.add_parser('encrypt', help='Encrypt a byte stream')
    encrypt_parser.add_argument('--key-file', '-k', type=str, default=None,
                                help='Key file (default: key in config dir)')
    encrypt_parser.add_argument('--message-size', type=int, default=None,
                                help='Plaintext bytes per record (default: 16384)')
    encrypt_parser.add_argument('input', nargs='?', default='-', help='Plaintext input (default: stdin)')
    encrypt_parser.add_argument('output', nargs='?', default='-', help='Ciphertext output (default: stdout)')

    decrypt_parser = subparsers.add_parser('decrypt', help='Decrypt a byte stream')
    decrypt_parser.add_argument('--key-file', '-k', type=str, default=None,
                                help='Key file (default: key in config dir)')
    decrypt_parser.add_argument('input', nargs='?', default='-', help='Ciphertext input (default: stdin)')
    decrypt_parser.add_argument('output', nargs='?', default='-', help='Plaintext output (default: stdout)')

    inspect_parser = subparsers.add_parser('inspect', help='List the records of a ciphertext stream')
    inspect_parser.add_argument('input', nargs='?', default='-', help='Ciphertext input (default: stdin)')

    return parser


def _open_input(path: str):
    if path == '-':
        return sys.stdin.buffer, False
    return open(path, 'rb'), True


@contextlib.contextmanager
def _atomic_output(path: str):
    """
    Yield a writable binary file for ``path``.

    Named outputs are written to a temporary file in the same directory
    and moved into place only when the block completes, so a failed run
    leaves no partial output and never touches an existing file.
    """
    if path == '-':
        yield sys.stdout.buffer
        sys.stdout.buffer.flush()
        return

    directory = os.path.dirname(os.path.abspath(path))
    fd, temp_path = tempfile.mkstemp(
        prefix=f".{os.path.basename(path)}.", suffix='.tmp', dir=directory
    )
    try:
        with os.fdopen(fd, 'wb') as destination:
            yield destination
        os.replace(temp_path, path)
    except BaseException:
        logger.debug("Discarding partial output %s", temp_path)
        os.unlink(temp_path)
        raise


def _resolve_key(args, config: StreamboxConfig) -> bytes:
    if args.key_file:
        try:
            return load_key(args.key_file)
        except (OSError, ValueError) as e:
            raise ConfigError(f"Cannot load key from {args.key_file}: {e}") from e
    return config.get_key()


def cmd_keygen(args, config: StreamboxConfig) -> int:
    path = args.output or config.key_file_path
    if os.path.exists(path) and not args.force:
        raise ConfigError(f"Key file already exists: {path} (use --force to replace it)")

    if args.output:
        create_key_file(path)
    else:
        config.create_new_key()
    print(path)
    return 0


def cmd_encrypt(args, config: StreamboxConfig) -> int:
    key = _resolve_key(args, config)
    message_size = args.message_size if args.message_size is not None else config.message_size
    message_size = validate_message_size(message_size)

    source, close_source = _open_input(args.input)
    try:
        with _atomic_output(args.output) as destination:
            encrypt_stream(key, source, destination, message_size=message_size)
    finally:
        if close_source:
            source.close()
    return 0


def cmd_decrypt(args, config: StreamboxConfig) -> int:
    key = _resolve_key(args, config)

    source, close_source = _open_input(args.input)
    try:
        with _atomic_output(args.output) as destination:
            decrypt_stream(key, source, destination)
    finally:
        if close_source:
            source.close()
    return 0


def cmd_inspect(args, config: StreamboxConfig) -> int:
    source, close_source = _open_input(args.input)
    try:
        count = 0
        total = 0
        while True:
            record = read_record(source)
            if record is None:
                break
            count += 1
            total += record.size
            print(f"#{count} " + record_summary(record))
        # Secretbox adds a 16-byte tag per record
        plaintext = total - count * record_overhead()
        print(f"{count} records, {total} bytes, {plaintext} plaintext bytes")
    finally:
        if close_source:
            source.close()
    return 0


COMMANDS = {
    'keygen': cmd_keygen,
    'encrypt': cmd_encrypt,
    'decrypt': cmd_decrypt,
    'inspect': cmd_inspect,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Entry point for the ``streambox`` console script."""
    parser = create_parser()
    args = parser.parse_args(argv)

    configure_logging(logging.DEBUG if args.verbose else logging.WARNING)

    if not args.command:
        parser.print_help(sys.stderr)
        return 2

    config = StreamboxConfig(args.config_dir)
    try:
        return COMMANDS[args.command](args, config)
    except (StreamError, ConfigError, OSError, ValueError) as e:
        logger.debug("Command %s failed", args.command, exc_info=True)
        print(f"streambox: error: {e}", file=sys.stderr)
        return 1


if __name__ == '__main__':
    sys.exit(main())
